"""handle command: process one GitHub webhook event."""

from __future__ import annotations

import json

import click
from rich.console import Console

from lgtmbot_core.handler import handle_event

console = Console()

_LABEL_STYLE = {"add": "green", "remove": "red", "keep": "dim"}


@click.command("handle")
@click.option(
    "--event",
    "event_name",
    required=True,
    envvar="GITHUB_EVENT_NAME",
    help="Webhook event name (issue_comment or pull_request).",
)
@click.option(
    "--payload",
    "payload_path",
    required=True,
    envvar="GITHUB_EVENT_PATH",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the webhook JSON payload.",
)
@click.pass_context
def handle_cmd(ctx, event_name: str, payload_path: str):
    """Apply /lgtm comments and new commits to a pull request's lgtm label.

    Meant to run from a GitHub Actions workflow triggered on `issue_comment`
    and `pull_request`; the event name and payload path default to the
    variables Actions sets.

    \b
    Required environment variables:
      GITHUB_TOKEN or LGTMBOT_GITHUB_TOKEN   token of the bot account
    """
    config = ctx.obj["config"]
    if not config.get("github_token"):
        raise click.UsageError(
            "No GitHub token found. Set LGTMBOT_GITHUB_TOKEN or GITHUB_TOKEN, or run `gh auth login` first."
        )

    with open(payload_path, encoding="utf-8") as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise click.UsageError(f"Payload is not valid JSON: {e}")

    try:
        summary = handle_event(event_name, payload, config, ctx.obj["owners_factory"])
    except ValueError as e:
        raise click.ClickException(str(e))

    if summary is None:
        console.print(f"[dim]Nothing to do for {event_name} event.[/dim]")
        return

    line = f"{summary.repo}#{summary.pr_number} ({summary.mode}): {summary.outcome}"
    if summary.label_action:
        style = _LABEL_STYLE.get(summary.label_action, "white")
        line += f", label [{style}]{summary.label_action}[/{style}]"
    line += f" [dim]at {summary.handled_at}[/dim]"
    console.print(line)
