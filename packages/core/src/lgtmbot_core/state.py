"""Review consensus data model.

A ReviewState is the whole record of who approved and who objected for one
revision of a pull request. It is never stored anywhere but the bot's status
comment; see lgtmbot_core.notification for the text encoding.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum

ROOT_DIR = "root directory"


def normalize_login(login: str) -> str:
    return login.strip().lstrip("@").lower()


class Vote(str, Enum):
    CONSENT = "consent"
    OPPOSE = "oppose"


@dataclass(frozen=True)
class Ballot:
    """One participant's current position.

    ``authorized`` is True when the participant is an OWNERS approver or
    reviewer of at least one changed file; only authorized ballots affect the
    label.
    """

    login: str
    vote: Vote
    authorized: bool


@dataclass
class ReviewState:
    tree_hash: str | None = None
    pending_dirs: list[str] = field(default_factory=list)
    ballots: dict[str, Ballot] = field(default_factory=dict)
    comment_id: int | None = None

    @property
    def consentors(self) -> list[Ballot]:
        return [b for b in self.ballots.values() if b.vote is Vote.CONSENT]

    @property
    def opponents(self) -> list[Ballot]:
        return [b for b in self.ballots.values() if b.vote is Vote.OPPOSE]

    def ballot_for(self, login: str) -> Ballot | None:
        return self.ballots.get(normalize_login(login))

    def add_consentor(self, login: str, authorized: bool) -> None:
        # Keyed by normalized login, so a consent replaces any earlier objection.
        self.ballots[normalize_login(login)] = Ballot(login, Vote.CONSENT, authorized)

    def add_opponent(self, login: str, authorized: bool) -> None:
        self.ballots[normalize_login(login)] = Ballot(login, Vote.OPPOSE, authorized)

    def reset_ballots(self) -> None:
        self.ballots = {}

    def reset_dirs(self, dirs) -> None:
        self.pending_dirs = sorted(set(dirs))

    def has_authorized_opponent(self) -> bool:
        return any(b.authorized for b in self.opponents)

    def authorized_consentors(self) -> set[str]:
        return {normalize_login(b.login) for b in self.consentors if b.authorized}

    def same_as(self, other: ReviewState) -> bool:
        """Compare two states ignoring ballot order and the comment id."""
        return (
            self.tree_hash == other.tree_hash
            and sorted(self.pending_dirs) == sorted(other.pending_dirs)
            and self.ballots == other.ballots
        )


def gen_dirs(filenames) -> list[str]:
    """Map changed files to the sorted set of directories containing them."""
    dirs = set()
    for name in filenames:
        d = posixpath.dirname(name)
        dirs.add(d if d else ROOT_DIR)
    return sorted(dirs)


def fresh_state(tree_hash: str | None, filenames, comment_id: int | None = None) -> ReviewState:
    """Build a state in which every changed directory still needs review."""
    return ReviewState(tree_hash=tree_hash, pending_dirs=gen_dirs(filenames), comment_id=comment_id)
