from slack_status.external_libraries.slack.helpers.slack_helpers import (
    set_presence,
    set_profile_status,
    set_snooze,
    end_snooze,
    set_photo,
    oauth_v2_access,
)

__all__ = [
    "set_presence",
    "set_profile_status",
    "set_snooze",
    "end_snooze",
    "set_photo",
    "oauth_v2_access",
]
