# -*- coding: utf-8 -*-
"""
slack_status.logger

Standard logger for slack-status. Console output goes to stderr so stdout
stays free for things the operator is meant to copy (the OAuth URL).
"""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger as _logger

_CONSOLE_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


def define_log_level(
    print_level: str = "INFO",
    logfile_level: str = "DEBUG",
    logfile: Optional[Union[str, Path]] = None,
):
    """
    Configure Loguru logger.
    print_level: console log threshold
    logfile_level: file log threshold
    logfile: optional path of a log file to also write to
    """
    # Remove all sinks
    _logger.remove()

    # Console output
    _logger.add(
        sys.stderr,
        level=print_level,
        format=_CONSOLE_FORMAT,
        backtrace=False,
        diagnose=False,
    )

    # File output
    if logfile:
        log_path = Path(logfile).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            log_path,
            level=logfile_level,
            backtrace=True,
            diagnose=True,
            enqueue=True,
            rotation="50 MB",
            retention="14 days",
        )

    return _logger


def mask_token(token: str, visible: int = 8) -> str:
    """Shorten a token for log output, e.g. ``xoxp-123...``."""
    if not token:
        return ""
    if len(token) <= visible:
        return "*" * len(token)
    return f"{token[:visible]}..."


# Create global logger with defaults
logger = define_log_level()
