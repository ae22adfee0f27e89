"""StaticOwners: permissions declared directly in .lgtmbot.yml.

For repos without OWNERS files, or for trying the bot out:

    owners:
      backend: static
      static:
        "": {approvers: [lead]}
        docs/: {reviewers: [writer]}

Keys are path prefixes; "" covers the whole repo. Every matching prefix
contributes, longest first, until an entry sets ``options.no_parent_owners``.
"""

from __future__ import annotations

from lgtmbot_owners.base import BaseOwners
from lgtmbot_owners.models import OwnersEntry


class StaticOwners(BaseOwners):
    def __init__(self, mapping: dict | None = None):
        entries = {}
        for prefix, data in (mapping or {}).items():
            key = str(prefix or "").strip("/")
            entries[key] = OwnersEntry.from_dict(data)
        # Longest prefix first so no_parent_owners cuts off the shorter ones.
        self._entries = sorted(entries.items(), key=lambda kv: len(kv[0]), reverse=True)

    def approvers(self, path: str) -> frozenset[str]:
        return self._collect(path, "approvers")

    def reviewers(self, path: str) -> frozenset[str]:
        return self._collect(path, "reviewers")

    def _collect(self, path: str, attr: str) -> frozenset[str]:
        found: set[str] = set()
        for prefix, entry in self._entries:
            if prefix and path != prefix and not path.startswith(prefix + "/"):
                continue
            found |= getattr(entry, attr)
            if entry.no_parent_owners:
                break
        return frozenset(found)
