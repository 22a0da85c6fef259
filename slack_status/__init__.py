"""slack-status: set your Slack status across several workspaces at once."""

from slack_status.config import VERSION

__version__ = VERSION
