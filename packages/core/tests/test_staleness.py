"""Tests for tree-hash staleness detection in both review modes."""

import types
from datetime import timedelta

import pytest
from conftest import BOT, T0, TREE

from lgtmbot_core.labels import LabelAction
from lgtmbot_core.notification import encode
from lgtmbot_core.simple import handle_simple_pr_event
from lgtmbot_core.staleness import (
    REMOVE_LABEL_NOTIFICATION,
    is_marker_comment,
    is_removal_notice,
    is_stale,
    last_marker_tree_hash,
    load_state,
    marker_comment,
)
from lgtmbot_core.state import ReviewState

TREE2 = "2" * 40

SETTINGS = {
    "label": "lgtm",
    "strict_review": False,
    "store_tree_hash": True,
    "skip_collaborators": False,
    "trusted_team_for_sticky_lgtm": None,
}


def _never_trusted(login):
    return False


def _comment(body, login=BOT, created=T0, updated=None):
    return types.SimpleNamespace(
        body=body,
        user=types.SimpleNamespace(login=login),
        created_at=created,
        updated_at=updated if updated is not None else created,
    )


@pytest.mark.parametrize(
    "recorded, current, expected",
    [
        (TREE, TREE, False),
        (TREE, TREE2, True),
        (None, TREE, True),
        (TREE, None, True),
        (None, None, True),
    ],
)
def test_is_stale(recorded, current, expected):
    assert is_stale(recorded, current) is expected


class TestMarkers:
    def test_marker_round_trip(self):
        comments = [_comment(marker_comment(TREE))]
        assert last_marker_tree_hash(comments, BOT) == TREE

    def test_marker_text(self):
        assert marker_comment(TREE) == f"LGTM label has been added.  <details>Git tree hash: {TREE}</details>"

    def test_newest_marker_wins(self):
        comments = [
            _comment(marker_comment(TREE)),
            _comment(marker_comment(TREE2), created=T0 + timedelta(minutes=1)),
        ]
        assert last_marker_tree_hash(comments, BOT) == TREE2

    def test_ignores_other_authors(self):
        assert last_marker_tree_hash([_comment(marker_comment(TREE), login="mallory")], BOT) is None

    def test_ignores_edited_markers(self):
        edited = _comment(marker_comment(TREE), updated=T0 + timedelta(seconds=1))
        assert last_marker_tree_hash([edited], BOT) is None

    def test_no_marker(self):
        assert last_marker_tree_hash([_comment("hello")], BOT) is None

    def test_classifiers(self):
        assert is_marker_comment(_comment(marker_comment(TREE)))
        assert not is_marker_comment(_comment(REMOVE_LABEL_NOTIFICATION))
        assert is_removal_notice(_comment(REMOVE_LABEL_NOTIFICATION))
        assert not is_removal_notice(_comment(None))


class TestLoadState:
    def test_no_status_comment_starts_fresh(self, make_thread):
        thread = make_thread(["a/x.go", "b/y.go"])
        loaded = load_state(thread.pr, BOT, TREE)
        assert loaded.changed is True
        assert loaded.state.pending_dirs == ["a", "b"]
        assert loaded.state.comment_id is None

    def test_current_status_reused(self, make_thread):
        thread = make_thread(["a/x.go"])
        state = ReviewState(tree_hash=TREE, pending_dirs=[])
        state.add_consentor("alice", True)
        posted = thread.post(encode(state, True), BOT)

        loaded = load_state(thread.pr, BOT, TREE)

        assert loaded.changed is False
        assert loaded.state.comment_id == posted.id
        assert set(loaded.state.ballots) == {"alice"}
        thread.pr.get_files.assert_not_called()

    def test_stale_status_reset_but_comment_kept(self, make_thread):
        thread = make_thread(["a/x.go"])
        state = ReviewState(tree_hash=TREE, pending_dirs=[])
        state.add_consentor("alice", True)
        posted = thread.post(encode(state, True), BOT)

        loaded = load_state(thread.pr, BOT, TREE2, filenames=["c/z.go"])

        assert loaded.changed is True
        assert loaded.state.comment_id == posted.id
        assert loaded.state.ballots == {}
        assert loaded.state.pending_dirs == ["c"]
        assert loaded.state.tree_hash == TREE2


class TestSimpleSynchronize:
    def _labelled_thread(self, make_thread):
        thread = make_thread(["a/x.go"], labels={"lgtm"})
        thread.post(marker_comment(TREE), BOT)
        return thread

    def test_new_tree_removes_label_and_notifies(self, make_thread):
        thread = self._labelled_thread(make_thread)
        thread.tree = TREE2

        action = handle_simple_pr_event(thread.repo, thread.pr, BOT, "synchronize", SETTINGS, _never_trusted)

        assert action is LabelAction.REMOVE
        assert "lgtm" not in thread.labels
        assert thread.comments[-1].body == REMOVE_LABEL_NOTIFICATION

    def test_same_tree_keeps_label(self, make_thread):
        thread = self._labelled_thread(make_thread)

        action = handle_simple_pr_event(thread.repo, thread.pr, BOT, "synchronize", SETTINGS, _never_trusted)

        assert action is None
        assert "lgtm" in thread.labels
        assert len(thread.comments) == 1

    def test_without_marker_label_is_removed(self, make_thread):
        thread = make_thread(["a/x.go"], labels={"lgtm"})

        action = handle_simple_pr_event(thread.repo, thread.pr, BOT, "synchronize", SETTINGS, _never_trusted)

        assert action is LabelAction.REMOVE

    def test_tree_hash_storage_disabled_always_removes(self, make_thread):
        thread = self._labelled_thread(make_thread)
        settings = dict(SETTINGS, store_tree_hash=False)

        action = handle_simple_pr_event(thread.repo, thread.pr, BOT, "synchronize", settings, _never_trusted)

        assert action is LabelAction.REMOVE

    def test_sticky_author_keeps_label(self, make_thread):
        thread = self._labelled_thread(make_thread)
        thread.tree = TREE2

        action = handle_simple_pr_event(thread.repo, thread.pr, BOT, "synchronize", SETTINGS, lambda login: True)

        assert action is None
        assert "lgtm" in thread.labels

    def test_unlabelled_pr_untouched(self, make_thread):
        thread = make_thread(["a/x.go"])
        thread.tree = TREE2

        assert handle_simple_pr_event(thread.repo, thread.pr, BOT, "synchronize", SETTINGS, _never_trusted) is None
        assert thread.comments == []

    def test_merged_and_other_actions_ignored(self, make_thread):
        thread = self._labelled_thread(make_thread)
        thread.tree = TREE2
        assert handle_simple_pr_event(thread.repo, thread.pr, BOT, "opened", SETTINGS, _never_trusted) is None

        thread.pr.merged = True
        assert handle_simple_pr_event(thread.repo, thread.pr, BOT, "synchronize", SETTINGS, _never_trusted) is None
        assert "lgtm" in thread.labels
