"""Slack OAuth2 (v2, user scopes) authorization flow."""
from __future__ import annotations

import webbrowser
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode, urlparse

from slack_status.config import DEFAULT_HTTP_BIND, DEFAULT_OAUTH_SCOPES, DEFAULT_REDIRECT_URI, HTTP_TIMEOUT
from slack_status.credentials.oauth_server import AuthorizationError, OAuthCallbackServer
from slack_status.external_libraries.slack.client import SlackAPIError, exchange_code
from slack_status.external_libraries.slack.helpers.slack_helpers import SLACK_AUTHORIZE_URL
from slack_status.logger import logger, mask_token

USER_TOKEN_TYPE = "user"


@dataclass(frozen=True)
class AuthorizationResult:
    user: str
    access_token: str
    team: str = ""


def build_authorize_url(client_id: str, scopes: str, redirect_uri: str) -> str:
    params = {"user_scope": scopes, "client_id": client_id, "redirect_uri": redirect_uri}
    return f"{SLACK_AUTHORIZE_URL}?{urlencode(params)}"


def redirect_route(redirect_uri: str) -> str:
    """The path the listener serves, taken from the redirect URI."""
    return urlparse(redirect_uri).path or "/"


def parse_token_response(response: Optional[Dict[str, Any]]) -> AuthorizationResult:
    """Accept only a user token; bot or workspace tokens are the wrong scope."""
    if not response:
        raise AuthorizationError("response is empty")

    authed_user = response.get("authed_user") or {}
    if authed_user.get("token_type") != USER_TOKEN_TYPE:
        raise AuthorizationError("response does not contain user auth token")

    user = authed_user.get("id", "")
    access_token = authed_user.get("access_token", "")
    if not user or not access_token:
        raise AuthorizationError("response does not contain user auth token")

    team = (response.get("team") or {}).get("name", "")
    return AuthorizationResult(user=user, access_token=access_token, team=team)


def exchange_code_for_token(
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
    *,
    timeout: float = HTTP_TIMEOUT,
) -> AuthorizationResult:
    try:
        response = exchange_code(client_id, client_secret, code, redirect_uri, timeout=timeout)
    except SlackAPIError as e:
        raise AuthorizationError(
            f"failed to convert temporary authorization code for authorization code: {e.error}"
        ) from e
    return parse_token_response(response)


def authorize(
    client_id: str,
    client_secret: str,
    redirect_uri: str = DEFAULT_REDIRECT_URI,
    scopes: str = DEFAULT_OAUTH_SCOPES,
    bind: str = DEFAULT_HTTP_BIND,
    *,
    timeout: Optional[float] = None,
    http_timeout: float = HTTP_TIMEOUT,
    present_url: Optional[Callable[[str], None]] = None,
    open_browser: bool = False,
) -> AuthorizationResult:
    """
    Run the full flow: show the URL, wait for the redirect, exchange the code.

    The listener is started before the URL is shown so a fast browser
    cannot beat it. ``timeout`` bounds the wait for the redirect.
    """
    url = build_authorize_url(client_id, scopes, redirect_uri)
    server = OAuthCallbackServer(bind, redirect_route(redirect_uri)).start()

    try:
        if present_url is not None:
            present_url(url)
        if open_browser:
            try:
                webbrowser.open(url)
            except webbrowser.Error as e:
                logger.warning(f"[OAuth] Could not open browser, visit the URL manually: {e}")
    except BaseException:
        server.close()
        raise

    code = server.wait(timeout)
    result = exchange_code_for_token(client_id, client_secret, code, redirect_uri, timeout=http_timeout)
    logger.info(f"[OAuth] Authorized user {result.user} with token {mask_token(result.access_token)}")
    return result
