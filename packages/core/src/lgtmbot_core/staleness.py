"""Detect new commits that invalidate earlier approval.

Freshness is judged on the head commit's tree hash rather than its SHA: a
rebase or squash that leaves the file contents untouched changes the SHA but
keeps the tree, and should not cost the PR its LGTM.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from lgtmbot_core.gh.pull_request import get_changed_files, get_tree_hash, list_comments
from lgtmbot_core.notification import locate
from lgtmbot_core.state import ReviewState, fresh_state

logger = logging.getLogger(__name__)

ADD_LABEL_NOTIFICATION = "LGTM label has been added.  <details>Git tree hash: {tree_hash}</details>"
REMOVE_LABEL_NOTIFICATION = "New changes are detected. LGTM label has been removed."

_ADD_LABEL_NOTIFICATION_RE = re.compile(r"LGTM label has been added\.  <details>Git tree hash: (.*)</details>")


def head_tree_hash(repo, pr) -> str | None:
    return get_tree_hash(repo, pr.head.sha)


@dataclass
class LoadedState:
    state: ReviewState
    changed: bool  # True when earlier consensus was discarded


def load_state(pr, bot_login: str, tree_hash: str | None, filenames: list[str] | None = None) -> LoadedState:
    """Return the consensus that still applies to the PR's current tree.

    A status comment written for the same tree is reused as-is. Otherwise the
    ballots are dropped and every changed directory is pending again; the old
    comment id is kept so the same comment gets rewritten.
    """
    found = locate(list_comments(pr), bot_login, tree_hash, unedited_only=False)
    if found is not None and found.current:
        return LoadedState(found.state, changed=False)

    comment_id = found.state.comment_id if found is not None else None
    if found is not None:
        logger.info("Tree hash of #%s changed (%s -> %s)", pr.number, found.state.tree_hash, tree_hash)
    if filenames is None:
        filenames = get_changed_files(pr)
    state = fresh_state(tree_hash, filenames, comment_id=comment_id)
    return LoadedState(state, changed=True)


def marker_comment(tree_hash: str | None) -> str:
    return ADD_LABEL_NOTIFICATION.format(tree_hash=tree_hash or "")


def is_marker_comment(comment) -> bool:
    return _ADD_LABEL_NOTIFICATION_RE.search(comment.body or "") is not None


def is_removal_notice(comment) -> bool:
    return REMOVE_LABEL_NOTIFICATION in (comment.body or "")


def last_marker_tree_hash(comments, bot_login: str) -> str | None:
    """Return the tree hash from the newest unedited bot marker comment."""
    for comment in reversed(list(comments)):
        if comment.user is None or comment.user.login != bot_login:
            continue
        m = _ADD_LABEL_NOTIFICATION_RE.search(comment.body or "")
        if m and comment.updated_at == comment.created_at:
            return m.group(1)
    return None


def is_stale(recorded: str | None, current: str | None) -> bool:
    """An unknown fingerprint on either side counts as stale."""
    return recorded is None or current is None or recorded != current
