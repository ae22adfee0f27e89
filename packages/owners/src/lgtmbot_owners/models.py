"""OWNERS data models.

Decoupled from lgtmbot_core so the owners layer can be used on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field


def normalize_login(login: str) -> str:
    return str(login).strip().lstrip("@").lower()


@dataclass
class OwnersEntry:
    """The contents of one OWNERS file (or one static config entry)."""

    approvers: frozenset[str] = field(default_factory=frozenset)
    reviewers: frozenset[str] = field(default_factory=frozenset)
    no_parent_owners: bool = False

    @classmethod
    def from_dict(cls, data: dict | None) -> OwnersEntry:
        data = data or {}
        options = data.get("options") or {}
        return cls(
            approvers=frozenset(normalize_login(a) for a in data.get("approvers") or []),
            reviewers=frozenset(normalize_login(r) for r in data.get("reviewers") or []),
            no_parent_owners=bool(options.get("no_parent_owners", False)),
        )
