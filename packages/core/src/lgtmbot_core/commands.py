"""Classification of PR comment bodies into LGTM commands."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_LGTM_RE = re.compile(r"^[ \t]*/lgtm(?: no-issue)?\s*$", re.IGNORECASE | re.MULTILINE)
_LGTM_CANCEL_RE = re.compile(r"^[ \t]*/lgtm cancel\s*$", re.IGNORECASE | re.MULTILINE)


class Command(str, Enum):
    APPROVE = "approve"
    CANCEL = "cancel"
    NONE = "none"


def classify(body: str | None) -> Command:
    """Return the command carried by a comment body.

    A command must occupy a whole line on its own. An approve line wins over a
    cancel line when a comment carries both.
    """
    text = body or ""
    if _LGTM_RE.search(text):
        return Command.APPROVE
    if _LGTM_CANCEL_RE.search(text):
        return Command.CANCEL
    return Command.NONE


@dataclass
class CommentEvent:
    """The parts of a PR comment the LGTM handlers need."""

    commenter: str
    body: str
    html_url: str
    command: Command
