"""
Workspace credential store.

The store is one YAML document read in full at start-up and written in
full on save::

    version: 2
    workspaces:
      - name: acme
        user: U0123ABCD
        accessToken: xoxp-...
        groups: [eng]

Documents without a ``version`` key are the legacy schema (version 1),
where ``user`` may be missing. They are migrated on load and written back
as version 2 on the next save. Version 2 always carries the ``user`` key; a
null value means status calls act as the token owner.
"""
import os
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import yaml

from slack_status.config import CONFIG_SCHEMA_VERSION
from slack_status.external_libraries.slack.credentials import WorkspaceCredential
from slack_status.logger import logger

LEGACY_SCHEMA_VERSION = 1


class ConfigError(RuntimeError):
    """Raised when the credential store cannot be read, parsed or validated."""


class CredentialsStore:
    """
    In-memory snapshot of the workspace credential file.
    Entries keep file order, which is the order status is applied in.
    """

    def __init__(self, path: Union[str, Path], workspaces: Optional[List[WorkspaceCredential]] = None):
        self.path = Path(path)
        self.workspaces: List[WorkspaceCredential] = list(workspaces or [])

    def __iter__(self) -> Iterator[WorkspaceCredential]:
        return iter(self.workspaces)

    def __len__(self) -> int:
        return len(self.workspaces)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "CredentialsStore":
        """Read and validate the store. Any invalid entry fails the whole load."""
        path = Path(path)
        try:
            contents = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"failed to read file: {path}") from e

        try:
            document = yaml.safe_load(contents)
        except yaml.YAMLError as e:
            raise ConfigError(f"failed to parse configuration: {path}") from e

        workspaces = _parse_document(document, path)
        logger.debug(f"[CredentialsStore] Loaded {len(workspaces)} workspace(s) from {path}")
        return cls(path, workspaces)

    @classmethod
    def load_or_empty(cls, path: Union[str, Path]) -> "CredentialsStore":
        """Like :meth:`load`, but a missing file yields an empty store."""
        path = Path(path)
        if not path.exists():
            logger.info(f"[CredentialsStore] No config file at {path}, starting a new one")
            return cls(path)
        return cls.load(path)

    def add(self, credential: WorkspaceCredential) -> None:
        """Append a credential. Names are not de-duplicated."""
        _validate(credential, len(self.workspaces))
        self.workspaces.append(credential)

    def save(self) -> None:
        """Write the whole store to disk, readable by the owner only."""
        document = {
            "version": CONFIG_SCHEMA_VERSION,
            "workspaces": [w.to_dict() for w in self.workspaces],
        }
        try:
            data = yaml.safe_dump(document, sort_keys=False, default_flow_style=False)
        except yaml.YAMLError as e:
            raise ConfigError("failed to marshal config file") from e

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.chmod(self.path, 0o600)
        except OSError as e:
            raise ConfigError(f"failed to save config file: {self.path}") from e

        logger.debug(f"[CredentialsStore] Saved {len(self.workspaces)} workspace(s) to {self.path}")


def _parse_document(document: Any, path: Path) -> List[WorkspaceCredential]:
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ConfigError(f"config failed to pass validation: {path} is not a mapping")

    version = document.get("version", LEGACY_SCHEMA_VERSION)
    if (not isinstance(version, int) or isinstance(version, bool)
            or version not in (LEGACY_SCHEMA_VERSION, CONFIG_SCHEMA_VERSION)):
        raise ConfigError(f"config failed to pass validation: unsupported version {version!r}")
    if version == LEGACY_SCHEMA_VERSION:
        logger.warning(
            f"[CredentialsStore] {path} uses the legacy schema; "
            "it will be upgraded on the next save"
        )

    entries = document.get("workspaces") or []
    if not isinstance(entries, list):
        raise ConfigError("config failed to pass validation: 'workspaces' must be a list")

    workspaces = []
    for index, entry in enumerate(entries):
        credential = _parse_entry(entry, index, version)
        _validate(credential, index)
        workspaces.append(credential)
    return workspaces


def _parse_entry(entry: Any, index: int, version: int) -> WorkspaceCredential:
    if not isinstance(entry, dict):
        raise ConfigError(f"config failed to pass validation: workspace #{index + 1} is not a mapping")

    groups = entry.get("groups") or []
    if not isinstance(groups, list) or not all(isinstance(g, str) for g in groups):
        raise ConfigError(
            f"config failed to pass validation: groups of workspace #{index + 1} must be a list of strings"
        )

    if version == CONFIG_SCHEMA_VERSION and "user" not in entry:
        raise ConfigError(
            f"config failed to pass validation: user is required (workspace #{index + 1})"
        )
    user = entry.get("user")
    if not user:
        logger.warning(
            f"[CredentialsStore] Workspace {entry.get('name')!r} has no user id; "
            "status will be set for the token owner"
        )
    return WorkspaceCredential(
        name=str(entry.get("name") or ""),
        access_token=str(entry.get("accessToken") or ""),
        user=str(user) if user else None,
        groups=list(groups),
    )


def _validate(credential: WorkspaceCredential, index: int) -> None:
    if not credential.access_token:
        label = credential.name or f"#{index + 1}"
        raise ConfigError(f"config failed to pass validation: access token is required (workspace {label})")
