# -*- coding: utf-8 -*-
"""
Root config for slack-status.

Constants are the defaults; environment variables (optionally loaded from a
``.env`` file by the entry point) override some of them.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

VERSION = "1.1.0"

CONFIG_PATH_DEFAULT = "~/.slack-status"
CONFIG_SCHEMA_VERSION = 2

DEFAULT_OAUTH_SCOPES = "dnd:write,users.profile:write,users:write"
DEFAULT_HTTP_BIND = "127.0.0.1:3030"
DEFAULT_REDIRECT_URI = "http://localhost:3030/redirect"
DEFAULT_EMOJI = ":male-technologist:"

HTTP_TIMEOUT: int = 10  # seconds, per Slack API call
AUTHORIZE_TIMEOUT: int = 300  # seconds to wait for the OAuth redirect

VALID_IMAGE_FORMATS = ("jpeg", "jpg", "gif", "png")
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "")
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {value!r}")


def get_config_path() -> str:
    return os.getenv("SLACK_STATUS_CONFIG", CONFIG_PATH_DEFAULT)


def get_http_timeout() -> int:
    return _env_int("SLACK_STATUS_HTTP_TIMEOUT", HTTP_TIMEOUT)


def get_authorize_timeout() -> int:
    return _env_int("SLACK_STATUS_AUTHORIZE_TIMEOUT", AUTHORIZE_TIMEOUT)


def get_log_level() -> str:
    return os.getenv("SLACK_STATUS_LOG_LEVEL", "INFO").upper()


def expand_config_path(path: str) -> Path:
    """Resolve ``~`` in a config path to the current user's home directory."""
    return Path(path).expanduser()


@dataclass(frozen=True)
class InitSettings:
    """Everything the ``init`` command needs, collected once from the CLI."""
    workspace: str
    client_id: str
    client_secret: str
    config_path: Path
    http_bind: str = DEFAULT_HTTP_BIND
    scopes: str = DEFAULT_OAUTH_SCOPES
    redirect_uri: str = DEFAULT_REDIRECT_URI
    groups: Tuple[str, ...] = ()
    timeout: Optional[int] = AUTHORIZE_TIMEOUT
    http_timeout: int = HTTP_TIMEOUT
    open_browser: bool = True


@dataclass(frozen=True)
class StatusSettings:
    """Raw status flags plus where to find the credential store."""
    config_path: Path
    message: str = ""
    emoji: str = DEFAULT_EMOJI
    duration: str = ""
    away: bool = False
    dnd: bool = False
    group: str = ""
    workspace: str = ""
    profile_picture: str = ""
    http_timeout: int = HTTP_TIMEOUT
