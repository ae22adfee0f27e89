"""Shared fakes for the GitHub objects the handlers talk to."""

import itertools
import types
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

BOT = "lgtm-bot"
TREE = "1" * 40
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeComment:
    def __init__(self, thread, comment_id, body, login, created_at):
        self._thread = thread
        self.id = comment_id
        self.body = body
        self.user = types.SimpleNamespace(login=login)
        self.created_at = created_at
        self.updated_at = created_at

    def edit(self, body):
        self.body = body
        self.updated_at = self._thread.tick()

    def delete(self):
        self._thread.comments.remove(self)


class FakeThread:
    """A pull request whose comments and labels behave like GitHub's.

    ``pr`` and ``repo`` are MagicMocks wired to this state, so tests can both
    inspect the resulting thread and assert on the API calls made.
    """

    def __init__(self, files, author="author", labels=(), tree=TREE, assignees=()):
        self.files = list(files)
        self.labels = set(labels)
        self.comments = []
        self.tree = tree
        self._ids = itertools.count(100)
        self._clock = itertools.count(1)

        pr = MagicMock()
        pr.number = 7
        pr.merged = False
        pr.user.login = author
        pr.head.sha = "f" * 40
        pr.base.ref = "main"
        pr.assignees = [types.SimpleNamespace(login=a) for a in assignees]
        pr.get_files.side_effect = lambda: [types.SimpleNamespace(filename=f) for f in self.files]
        pr.get_issue_comments.side_effect = lambda: list(self.comments)
        pr.get_issue_comment.side_effect = lambda cid: next(c for c in self.comments if c.id == cid)
        pr.create_issue_comment.side_effect = lambda body: self.post(body, BOT)
        pr.get_labels.side_effect = lambda: [types.SimpleNamespace(name=n) for n in sorted(self.labels)]
        pr.add_to_labels.side_effect = self.labels.add
        pr.remove_from_labels.side_effect = self.labels.discard
        self.pr = pr

        repo = MagicMock()
        repo.full_name = "org/repo"
        repo.get_commit.side_effect = lambda sha: types.SimpleNamespace(
            commit=types.SimpleNamespace(tree=types.SimpleNamespace(sha=self.tree))
        )
        repo.has_in_collaborators.return_value = True
        self.repo = repo

    def tick(self):
        return T0 + timedelta(minutes=next(self._clock))

    def post(self, body, login):
        comment = FakeComment(self, next(self._ids), body, login, self.tick())
        self.comments.append(comment)
        return comment

    def bot_comments(self):
        return [c for c in self.comments if c.user.login == BOT]


class FakeOwners:
    def __init__(self, approvers=None, reviewers=None):
        self._approvers = approvers or {}
        self._reviewers = reviewers or {}
        self.closed = False

    @staticmethod
    def _lookup(table, path):
        found = set()
        for prefix, logins in table.items():
            if path.startswith(prefix):
                found |= set(logins)
        return frozenset(found)

    def approvers(self, path):
        return self._lookup(self._approvers, path)

    def reviewers(self, path):
        return self._lookup(self._reviewers, path)

    def close(self):
        self.closed = True


@pytest.fixture
def make_thread():
    return FakeThread


@pytest.fixture
def make_owners():
    return FakeOwners
