"""Status comment encoding.

The bot keeps the review consensus for a PR in one comment it owns. The comment
is both the human-readable status and the only persisted copy of the state, so
encode() and decode() must round-trip: decode(encode(s, v)) gives back the
same ballots, pending directories and tree hash.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from lgtmbot_core.state import Ballot, ReviewState, Vote, normalize_login

logger = logging.getLogger(__name__)

CONSENTIENT_DESC = "**LGTM**"
OPPOSED_DESC = "**NOT LGTM**"
_SEPARATOR = ", "
_DIR_SEPARATOR = "\n- "

_TEMPLATE = (
    "LGTM NOTIFIER: This PR is {verdict}.\n\n"
    "Reviewers added `/lgtm` are: {consentors}.\n\n"
    "Reviewers added `/lgtm cancel` are: {opponents}.\n\n"
    "It still needs review for the codes in each of these directories:{dirs}\n"
    "<details>Git tree hash: {tree_hash}</details>"
)


def _template_re() -> re.Pattern:
    placeholders = {
        "verdict": r"(?P<verdict>\*\*(?:NOT )?LGTM\*\*)",
        "consentors": r"(?P<consentors>.*)",
        "opponents": r"(?P<opponents>.*)",
        "dirs": r"(?P<dirs>[\s\S]*)",
        "tree_hash": r"(?P<tree_hash>.*)",
    }
    pattern = ""
    for literal, name in re.findall(r"([^{]*)(?:\{(\w+)\})?", _TEMPLATE):
        pattern += re.escape(literal)
        if name:
            pattern += placeholders[name]
    return re.compile(pattern)


_NOTIFICATION_RE = _template_re()


def _ballots_to_text(ballots: list[Ballot]) -> str:
    return _SEPARATOR.join(f"**{b.login}**" if b.authorized else b.login for b in ballots)


def _text_to_ballots(text: str, vote: Vote) -> dict[str, Ballot]:
    ballots: dict[str, Ballot] = {}
    if not text:
        return ballots
    for item in text.split(_SEPARATOR):
        login = item.strip("*")
        ballots[normalize_login(login)] = Ballot(login, vote, login != item)
    return ballots


def encode(state: ReviewState, verdict: bool) -> str:
    dirs = ""
    if state.pending_dirs:
        dirs = _DIR_SEPARATOR + _DIR_SEPARATOR.join(state.pending_dirs)

    return _TEMPLATE.format(
        verdict=CONSENTIENT_DESC if verdict else OPPOSED_DESC,
        consentors=_ballots_to_text(state.consentors),
        opponents=_ballots_to_text(state.opponents),
        dirs=dirs,
        tree_hash=state.tree_hash or "",
    )


def decode(text: str | None) -> ReviewState | None:
    """Parse a status comment body, or return None if it is not one."""
    m = _NOTIFICATION_RE.search(text or "")
    if m is None:
        return None

    ballots = _text_to_ballots(m.group("consentors"), Vote.CONSENT)
    for key, ballot in _text_to_ballots(m.group("opponents"), Vote.OPPOSE).items():
        # A hand-edited comment could list someone twice; the objection wins.
        ballots[key] = ballot

    dirs_text = m.group("dirs")
    dirs = [d for d in dirs_text.split(_DIR_SEPARATOR) if d] if dirs_text else []

    return ReviewState(
        tree_hash=m.group("tree_hash") or None,
        pending_dirs=dirs,
        ballots=ballots,
    )


@dataclass
class LocatedState:
    state: ReviewState
    current: bool  # stored tree hash equals the one asked for


def locate(comments, bot_login: str, tree_hash: str | None, unedited_only: bool = True) -> LocatedState | None:
    """Find the newest status comment written by the bot.

    ``comments`` must be ordered oldest first. With ``unedited_only`` a comment
    whose updated timestamp differs from its created timestamp is not trusted.
    Callers that rewrite their own status comment in place must pass False,
    since every rewrite moves the updated timestamp.
    """
    for comment in reversed(list(comments)):
        if comment.user is None or comment.user.login != bot_login:
            continue
        if unedited_only and comment.updated_at != comment.created_at:
            continue
        state = decode(comment.body)
        if state is None:
            continue

        state.comment_id = comment.id
        current = tree_hash is not None and state.tree_hash == tree_hash
        logger.debug("Found status comment %s (current=%s)", comment.id, current)
        return LocatedState(state=state, current=current)
    return None
