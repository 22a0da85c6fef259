"""Per-workspace client for the Slack Web API calls slack-status needs."""
from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import requests

from slack_status.config import HTTP_TIMEOUT
from slack_status.external_libraries.slack.helpers import slack_helpers
from slack_status.logger import logger

PRESENCE_AUTO = "auto"
PRESENCE_AWAY = "away"


class SlackAPIError(RuntimeError):
    """Raised when Slack rejects a call or cannot be reached."""

    def __init__(self, method: str, error: str, details: Any = None) -> None:
        super().__init__(f"{method} failed: {error}")
        self.method = method
        self.error = error
        self.details = details


def _call(method: str, func: Callable[..., Dict[str, Any]], *args: Any, **kwargs: Any) -> Dict[str, Any]:
    try:
        result = func(*args, **kwargs)
    except requests.RequestException as e:
        raise SlackAPIError(method, str(e)) from e

    if "error" in result:
        logger.debug(f"[Slack] {method} error response: {result.get('details')}")
        raise SlackAPIError(method, slack_helpers.describe_error(result), result.get("details"))
    return result


class SlackClient:
    """Thin wrapper binding one access token to the Slack helpers."""

    def __init__(self, access_token: str, *, timeout: float = HTTP_TIMEOUT) -> None:
        if not access_token:
            raise ValueError("`access_token` must be a non-empty string.")
        self._access_token = access_token
        self._timeout = timeout

    def set_presence(self, presence: str) -> None:
        if presence not in (PRESENCE_AUTO, PRESENCE_AWAY):
            raise ValueError(f"presence must be {PRESENCE_AUTO!r} or {PRESENCE_AWAY!r}, got {presence!r}")
        _call("users.setPresence", slack_helpers.set_presence,
              self._access_token, presence, timeout=self._timeout)

    def set_custom_status(self, text: str, emoji: str, expiration: int, user: Optional[str] = None) -> None:
        _call("users.profile.set", slack_helpers.set_profile_status,
              self._access_token, text, emoji, expiration, user=user, timeout=self._timeout)

    def set_snooze(self, minutes: int) -> None:
        """Snooze notifications for ``minutes``; ``0`` clears any active snooze."""
        if minutes < 0:
            raise ValueError("snooze minutes must not be negative")
        if minutes:
            _call("dnd.setSnooze", slack_helpers.set_snooze,
                  self._access_token, minutes, timeout=self._timeout)
            return

        try:
            _call("dnd.endSnooze", slack_helpers.end_snooze, self._access_token, timeout=self._timeout)
        except SlackAPIError as e:
            if e.error != "snooze_not_active":
                raise

    def set_photo(self, file_path: str) -> None:
        try:
            _call("users.setPhoto", slack_helpers.set_photo,
                  self._access_token, file_path, timeout=self._timeout)
        except OSError as e:
            raise SlackAPIError("users.setPhoto", f"cannot read {file_path}: {e}") from e


def exchange_code(
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
    *,
    timeout: float = HTTP_TIMEOUT,
) -> Dict[str, Any]:
    """OAuth2 code-for-token exchange (``oauth.v2.access``)."""
    return _call("oauth.v2.access", slack_helpers.oauth_v2_access,
                 client_id, client_secret, code, redirect_uri, timeout=timeout)
