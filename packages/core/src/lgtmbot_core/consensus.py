"""Strict-review consensus engine.

Applies one approve or cancel command to a ReviewState. The engine is pure: it
never talks to GitHub. The caller (lgtmbot_core.strict) supplies the decoded
state and the reviewer map, then persists whatever the engine decides.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from lgtmbot_core.state import ReviewState, Vote, gen_dirs, normalize_login

logger = logging.getLogger(__name__)

SELF_APPROVAL_RESPONSE = "you cannot LGTM your own PR."


def is_reviewer(path_reviewers: dict[str, frozenset[str]], login: str) -> bool:
    """Return True if ``login`` may review at least one changed file."""
    login = normalize_login(login)
    return any(login in reviewers for reviewers in path_reviewers.values())


def pending_dirs(path_reviewers: dict[str, frozenset[str]], approved_by: set[str]) -> list[str]:
    """Directories holding a file that none of ``approved_by`` may review."""
    return gen_dirs(f for f, reviewers in path_reviewers.items() if not reviewers & approved_by)


def can_add_label(state: ReviewState) -> bool:
    return not state.pending_dirs and not state.has_authorized_opponent()


class Outcome(str, Enum):
    REFUSED = "refused"  # reply to the commenter, touch nothing else
    UNCHANGED = "unchanged"  # nothing to write
    RECORDED = "recorded"  # rewrite the comment, leave the label alone
    CONVERGE = "converge"  # rewrite the comment, then make the label follow the verdict


@dataclass
class Decision:
    outcome: Outcome
    verdict: bool
    response: str | None = None


class ConsensusEngine:
    """Owns one PR's ReviewState for the duration of a single event."""

    def __init__(
        self,
        state: ReviewState,
        path_reviewers: dict[str, frozenset[str]],
        pr_author: str,
        has_label: bool,
    ):
        self.state = state
        self.path_reviewers = path_reviewers
        self.pr_author = normalize_login(pr_author)
        self.has_label = has_label

    def _is_author(self, login: str) -> bool:
        return normalize_login(login) == self.pr_author

    def approve(self, login: str) -> Decision:
        if self._is_author(login):
            return Decision(Outcome.REFUSED, self.has_label, SELF_APPROVAL_RESPONSE)

        existing = self.state.ballot_for(login)
        if existing is not None and existing.vote is Vote.CONSENT:
            logger.debug("%s already approved; ignoring repeated /lgtm", login)
            return Decision(Outcome.UNCHANGED, self.has_label)

        authorized = is_reviewer(self.path_reviewers, login)
        self.state.add_consentor(login, authorized)
        if not authorized:
            logger.info("%s is not an OWNERS reviewer of any changed file; recording only", login)
            return Decision(Outcome.RECORDED, self.has_label)

        self.state.reset_dirs(pending_dirs(self.path_reviewers, self.state.authorized_consentors()))
        verdict = can_add_label(self.state)
        logger.info("Approval from %s; %d dir(s) still pending", login, len(self.state.pending_dirs))
        return Decision(Outcome.CONVERGE, verdict)

    def cancel(self, login: str) -> Decision:
        is_author = self._is_author(login)
        authorized = is_reviewer(self.path_reviewers, login)

        if not is_author and not authorized:
            self.state.add_opponent(login, False)
            return Decision(Outcome.RECORDED, self.has_label)

        if is_author:
            self.state.reset_ballots()
        else:
            self.state.add_opponent(login, True)

        # Which part of the change the objection is about is unknown, so every
        # changed directory needs review again.
        self.state.reset_dirs(gen_dirs(self.path_reviewers))
        logger.info("Cancel from %s; all %d dir(s) pending again", login, len(self.state.pending_dirs))
        return Decision(Outcome.CONVERGE, False)
