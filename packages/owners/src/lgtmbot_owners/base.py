"""Abstract OWNERS interface.

Any source of per-path review permissions (OWNERS files in the repo, a static
map in config, an external owners service) implements this interface. The
LGTM handlers depend on BaseOwners, not on a concrete backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseOwners(ABC):
    """Answers "who may approve/review this path?" for one repo and branch.

    Implementations must never raise from approvers() or reviewers(): a lookup
    that fails is logged and reported as nobody, so a broken OWNERS entry
    leaves a path unreviewable instead of aborting the whole event.
    """

    @abstractmethod
    def approvers(self, path: str) -> frozenset[str]:
        """Return the normalized logins allowed to approve ``path``."""

    @abstractmethod
    def reviewers(self, path: str) -> frozenset[str]:
        """Return the normalized logins allowed to review ``path``."""

    def close(self) -> None:
        """Release any resources held by the backend.

        Default is a no-op so callers can always call close() safely.
        """
