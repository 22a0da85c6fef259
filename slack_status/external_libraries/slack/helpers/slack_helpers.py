"""
Slack API helper functions.

These functions make direct calls to the Slack Web API. They never raise
for Slack-level failures; instead they return ``{"error": ..., "details": ...}``
so callers decide how to surface them.
"""
import json
from typing import Any, Dict, Optional

import requests

SLACK_API_BASE = "https://slack.com/api"
SLACK_AUTHORIZE_URL = "https://slack.com/oauth/v2/authorize"


def _get_headers(access_token: str) -> Dict[str, str]:
    """Get headers for Slack API requests."""
    return {
        "Authorization": f"Bearer {access_token}",
        "Content-Type": "application/json; charset=utf-8",
    }


def _result(response: requests.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {"error": f"invalid_response (HTTP {response.status_code})", "details": response.text[:500]}

    if not data:
        return {"error": "empty_response", "details": data}

    if not isinstance(data, dict):
        return {"error": f"invalid_response (HTTP {response.status_code})", "details": data}

    if not data.get("ok"):
        return {"error": data.get("error", "Unknown error"), "details": data}

    return data


def set_presence(
    access_token: str,
    presence: str,
    timeout: float = 10,
) -> Dict[str, Any]:
    """
    Manually set user presence.

    Args:
        access_token: Slack user token (xoxp-)
        presence: Either ``auto`` or ``away``
        timeout: Request timeout in seconds

    Returns:
        API response or error
    """
    url = f"{SLACK_API_BASE}/users.setPresence"
    payload = {"presence": presence}

    response = requests.post(url, headers=_get_headers(access_token), json=payload, timeout=timeout)
    return _result(response)


def set_profile_status(
    access_token: str,
    status_text: str,
    status_emoji: str,
    status_expiration: int,
    user: Optional[str] = None,
    timeout: float = 10,
) -> Dict[str, Any]:
    """
    Set the custom status text, emoji and expiry of a user profile.

    Args:
        access_token: Slack user token
        status_text: Status text, empty to clear
        status_emoji: Emoji token such as ``:coffee:``, empty to clear
        status_expiration: Unix timestamp when the status expires, 0 for never
        user: Optional user ID to act on, needed when the token is app-level
        timeout: Request timeout in seconds

    Returns:
        API response with the updated profile or error
    """
    url = f"{SLACK_API_BASE}/users.profile.set"
    payload: Dict[str, Any] = {
        "profile": {
            "status_text": status_text,
            "status_emoji": status_emoji,
            "status_expiration": status_expiration,
        }
    }

    if user:
        payload["user"] = user

    response = requests.post(url, headers=_get_headers(access_token), json=payload, timeout=timeout)
    return _result(response)


def set_snooze(
    access_token: str,
    num_minutes: int,
    timeout: float = 10,
) -> Dict[str, Any]:
    """Turn on Do Not Disturb for ``num_minutes``."""
    url = f"{SLACK_API_BASE}/dnd.setSnooze"
    payload = {"num_minutes": num_minutes}

    response = requests.post(url, headers=_get_headers(access_token), json=payload, timeout=timeout)
    return _result(response)


def end_snooze(
    access_token: str,
    timeout: float = 10,
) -> Dict[str, Any]:
    """End the current Do Not Disturb snooze."""
    url = f"{SLACK_API_BASE}/dnd.endSnooze"

    response = requests.post(url, headers=_get_headers(access_token), timeout=timeout)
    return _result(response)


def set_photo(
    access_token: str,
    file_path: str,
    timeout: float = 10,
) -> Dict[str, Any]:
    """
    Upload a new profile photo.

    Args:
        access_token: Slack user token
        file_path: Path to a local jpeg/png/gif file
        timeout: Request timeout in seconds

    Returns:
        API response or error
    """
    url = f"{SLACK_API_BASE}/users.setPhoto"
    headers = {"Authorization": f"Bearer {access_token}"}

    with open(file_path, "rb") as image:
        response = requests.post(url, headers=headers, files={"image": image}, timeout=timeout)

    return _result(response)


def oauth_v2_access(
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
    timeout: float = 10,
) -> Dict[str, Any]:
    """
    Exchange a temporary OAuth code for an access token.

    Returns:
        API response with ``authed_user`` (and ``team``) or error
    """
    url = f"{SLACK_API_BASE}/oauth.v2.access"
    data = {
        "client_id": client_id,
        "client_secret": client_secret,
        "code": code,
        "redirect_uri": redirect_uri,
    }

    response = requests.post(url, data=data, timeout=timeout)
    return _result(response)


def describe_error(result: Dict[str, Any]) -> str:
    """Render an error result for log and exception messages."""
    details = result.get("details")
    if isinstance(details, dict) and details.get("response_metadata"):
        return f"{result['error']} ({json.dumps(details['response_metadata'])})"
    return str(result.get("error", "Unknown error"))
