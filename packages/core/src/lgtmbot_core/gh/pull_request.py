from __future__ import annotations

import logging

from github import Github, GithubException

logger = logging.getLogger(__name__)


def get_client(token: str) -> Github:
    return Github(token)


def get_repo(client: Github, repo_name: str):
    return client.get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


ACTIONS_BOT_LOGIN = "github-actions[bot]"


def get_bot_login(client: Github, configured: str | None = None) -> str:
    """Return the login the bot posts comments as.

    ``configured`` wins when set. Otherwise the token's own account is asked
    for; installation tokens (the Actions GITHUB_TOKEN) cannot read /user and
    post as github-actions[bot].
    """
    if configured:
        return configured
    try:
        return client.get_user().login
    except GithubException as e:
        if e.status != 403:
            raise
        logger.info("Token cannot read /user; assuming it posts as %s", ACTIONS_BOT_LOGIN)
        return ACTIONS_BOT_LOGIN


def get_changed_files(pr) -> list[str]:
    return [f.filename for f in pr.get_files()]


def list_comments(pr) -> list:
    """Return the PR's conversation comments, oldest first."""
    return sorted(pr.get_issue_comments(), key=lambda c: c.created_at)


def create_comment(pr, body: str):
    return pr.create_issue_comment(body)


def update_comment(pr, comment_id: int, body: str) -> None:
    pr.get_issue_comment(comment_id).edit(body)


def prune_comments(pr, bot_login: str, should_prune) -> int:
    """Delete the bot's comments for which ``should_prune(comment)`` is true.

    Comments by anyone else are never touched, even when they quote bot text.

    Deletion failures are logged and skipped so one stale comment cannot block
    the rest of the event.
    """
    pruned = 0
    for comment in list_comments(pr):
        if comment.user is None or comment.user.login != bot_login:
            continue
        if not should_prune(comment):
            continue
        try:
            comment.delete()
            pruned += 1
        except GithubException as e:
            logger.warning("Could not delete comment %s: %s", comment.id, e)
    return pruned


def has_label(pr, label: str) -> bool:
    return any(lb.name == label for lb in pr.get_labels())


def add_label(pr, label: str) -> None:
    pr.add_to_labels(label)


def remove_label(pr, label: str) -> None:
    pr.remove_from_labels(label)


def get_tree_hash(repo, sha: str) -> str | None:
    """Return the tree SHA of commit ``sha``, or None if the commit has no tree.

    The tree SHA survives rebases and squashes that leave file contents alone,
    unlike the commit SHA.
    """
    commit = repo.get_commit(sha)
    tree = getattr(getattr(commit, "commit", None), "tree", None)
    tree_sha = getattr(tree, "sha", None)
    if not tree_sha:
        logger.error("Commit %s of %s has no tree; treating fingerprint as unavailable.", sha, repo.full_name)
        return None
    return tree_sha


def is_collaborator(repo, login: str) -> bool:
    return repo.has_in_collaborators(login)


def assign(pr, login: str) -> None:
    pr.add_to_assignees(login)


def is_team_member(client: Github, org: str, team_name: str, login: str) -> bool:
    """Return True if ``login`` belongs to the org team named ``team_name``.

    Lookup failures are logged and count as "not a member".
    """
    try:
        teams = list(client.get_organization(org).get_teams())
    except GithubException as e:
        logger.error("Failed to list teams in org %s: %s", org, e)
        return False

    for team in teams:
        if team_name not in (team.name, team.slug):
            continue
        try:
            return any(m.login == login for m in team.get_members())
        except GithubException as e:
            logger.error("Failed to list members in %s:%s: %s", org, team.name, e)
    return False


def format_reply(author: str, body: str, html_url: str, response: str) -> str:
    """Build a reply addressed to ``author`` that quotes the triggering comment."""
    quoted = "\n".join(f">{line}" for line in body.splitlines()) or ">"
    return (
        f"@{author}: {response}\n\n"
        "<details>\n\n"
        f"In response to [this]({html_url}):\n\n"
        f"{quoted}\n"
        "</details>"
    )
