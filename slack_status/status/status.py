# -*- coding: utf-8 -*-
"""
slack_status.status.status

Applies one status intent to the matching workspaces, one at a time and in
store order. The first workspace that fails stops the run; remote changes
already made are left in place.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

from slack_status.external_libraries.slack.client import PRESENCE_AUTO, PRESENCE_AWAY, SlackAPIError, SlackClient
from slack_status.external_libraries.slack.credentials import WorkspaceCredential
from slack_status.logger import logger


class StatusApplyError(RuntimeError):
    """A remote call failed for ``workspace``; ``applied`` workspaces had already succeeded."""

    def __init__(self, message: str, workspace: str, applied: int = 0) -> None:
        super().__init__(message)
        self.workspace = workspace
        self.applied = applied


@dataclass(frozen=True)
class StatusIntent:
    message: str = ""
    emoji: str = ""
    duration: int = 0  # minutes, 0 = no expiry
    away: bool = False
    dnd: bool = False
    group: str = ""
    workspace: str = ""
    profile_picture: Optional[str] = None

    @property
    def presence(self) -> str:
        return PRESENCE_AWAY if self.away else PRESENCE_AUTO

    @property
    def effective_emoji(self) -> str:
        # clearing the message clears the icon too
        if not self.message:
            return ""
        return self.emoji

    def expiration(self, now: float) -> int:
        """Absolute expiry in epoch seconds, 0 when the status never expires."""
        if self.duration == 0:
            return 0
        return int(now) + self.duration * 60

    def matches(self, workspace: WorkspaceCredential) -> bool:
        if self.group and not workspace.is_in_group(self.group):
            return False
        if self.workspace and workspace.name != self.workspace:
            return False
        return True


ClientFactory = Callable[[str], SlackClient]


def select_workspaces(intent: StatusIntent, workspaces: Iterable[WorkspaceCredential]) -> Iterator[WorkspaceCredential]:
    """Matching workspaces, in the order given."""
    return (w for w in workspaces if intent.matches(w))


def set_one(
    intent: StatusIntent,
    workspace: WorkspaceCredential,
    client: SlackClient,
    *,
    clock: Callable[[], float] = time.time,
) -> None:
    """Apply every step to one workspace; the first failing call aborts the rest."""
    name = workspace.name

    try:
        client.set_presence(intent.presence)
    except SlackAPIError as e:
        raise StatusApplyError(f"failed to set user presence in: {name}: {e}", workspace=name) from e

    if not intent.message:
        logger.info(f"[{name}] clearing status message")
    elif intent.duration == 0:
        logger.info(f"[{name}] setting status message: '{intent.message}'")
    else:
        logger.info(f"[{name}] setting status message: '{intent.message}' for {intent.duration} minute(s)")

    expiration = intent.expiration(clock())
    try:
        client.set_custom_status(intent.message, intent.effective_emoji, expiration, user=workspace.user)
    except SlackAPIError as e:
        raise StatusApplyError(f"failed to set custom status in: {name}: {e}", workspace=name) from e

    if intent.dnd:
        logger.info(f"[{name}] setting do not disturb for {intent.duration} minute(s)")
        snooze, action = intent.duration, "set"
    else:
        logger.info(f"[{name}] resetting do not disturb")
        snooze, action = 0, "reset"
    try:
        client.set_snooze(snooze)
    except SlackAPIError as e:
        raise StatusApplyError(f"failed to {action} snooze in: {name}: {e}", workspace=name) from e

    if intent.profile_picture:
        logger.info(f"[{name}] setting profile picture: {intent.profile_picture}")
        try:
            client.set_photo(intent.profile_picture)
        except SlackAPIError as e:
            raise StatusApplyError(f"failed to set profile picture in: {name}: {e}", workspace=name) from e


def apply(
    intent: StatusIntent,
    workspaces: Iterable[WorkspaceCredential],
    client_factory: ClientFactory = SlackClient,
    *,
    clock: Callable[[], float] = time.time,
) -> int:
    """
    Set the status on every matching workspace.

    Returns the number of workspaces fully applied. On failure raises
    :class:`StatusApplyError` whose ``applied`` is the count reached before
    the failing workspace; later workspaces are not contacted.
    """
    applied = 0
    for workspace in select_workspaces(intent, workspaces):
        try:
            set_one(intent, workspace, client_factory(workspace.access_token), clock=clock)
        except StatusApplyError as e:
            e.applied = applied
            raise
        applied += 1

    if applied == 0:
        logger.warning("No workspace matched the given group/workspace filters")
    return applied
