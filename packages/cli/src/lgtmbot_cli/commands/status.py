"""status command: show the consensus recorded in a PR's status comment."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from lgtmbot_core.gh.pull_request import get_bot_login, get_client, get_pull, get_repo, has_label, list_comments
from lgtmbot_core.notification import locate
from lgtmbot_core.staleness import head_tree_hash

console = Console()

_VOTE_STYLE = {"consent": "green", "oppose": "red"}


@click.command("status")
@click.option("--repo", required=True, help="GitHub repository (owner/name).")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option("--label", default=None, help="Label name to check. Defaults to the configured label.")
@click.pass_context
def status_cmd(ctx, repo: str, pr_number: int, label: str | None):
    """Show who approved or objected and which directories still need review.

    Reads the bot's status comment; nothing is written to GitHub.
    """
    config = ctx.obj["config"]
    token = config.get("github_token")
    if not token:
        raise click.UsageError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")

    client = get_client(token)
    this_repo = get_repo(client, repo)
    pr = get_pull(this_repo, pr_number)
    label = label or config.get("label", "lgtm")

    bot_login = get_bot_login(client, config.get("bot_login"))
    found = locate(list_comments(pr), bot_login, head_tree_hash(this_repo, pr), unedited_only=False)
    labelled = has_label(pr, label)
    label_text = "[green]present[/green]" if labelled else "[dim]absent[/dim]"

    if found is None:
        console.print(f"[yellow]No status comment found on {repo}#{pr_number}.[/yellow] Label: {label_text}")
        return

    state = found.state
    freshness = "[green]current[/green]" if found.current else "[yellow]stale (new commits)[/yellow]"
    console.print(f"[bold]{repo}#{pr_number}[/bold]  tree {(state.tree_hash or '?')[:7]} {freshness}  label {label_text}")

    if state.ballots:
        table = Table(title="Ballots", show_header=True, header_style="bold cyan")
        table.add_column("Reviewer", style="bold")
        table.add_column("Vote", width=10)
        table.add_column("OWNERS", justify="center", width=8)
        for ballot in state.ballots.values():
            style = _VOTE_STYLE.get(ballot.vote.value, "white")
            table.add_row(
                ballot.login,
                f"[{style}]{ballot.vote.value}[/{style}]",
                "yes" if ballot.authorized else "-",
            )
        console.print(table)
    else:
        console.print("[dim]No /lgtm or /lgtm cancel recorded.[/dim]")

    if state.pending_dirs:
        console.print("\n[bold]Still needs review:[/bold]")
        for d in state.pending_dirs:
            console.print(f"  - {d}")
    else:
        console.print("\n[green]Every changed directory has an OWNERS approval.[/green]")
