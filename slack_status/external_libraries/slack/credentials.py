from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class WorkspaceCredential:
    """One linked Slack workspace: a label, the user bound to the token, and filter groups."""
    name: str
    access_token: str
    user: Optional[str] = None
    groups: List[str] = field(default_factory=list)

    def is_in_group(self, group: str) -> bool:
        return group in self.groups

    def to_dict(self) -> Dict[str, Any]:
        """Convert credential to its on-disk mapping."""
        return {
            "name": self.name,
            "user": self.user,
            "accessToken": self.access_token,
            "groups": list(self.groups),
        }
