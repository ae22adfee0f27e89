"""CLI entry point for lgtmbot.

Commands:
  handle   process one GitHub webhook event (the GitHub Actions entry point)
  status   show the review consensus recorded on a pull request
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from lgtmbot_cli.commands.handle import handle_cmd
from lgtmbot_cli.commands.status import status_cmd

console = Console()


def _build_owners(repo, ref: str, settings: dict):
    """Instantiate the configured OWNERS backend for one repo and branch.

    Backend selection:
      owners.backend: files  → OwnersFileBackend (OWNERS files on ``ref``)
      owners.backend: static → StaticOwners (owners.static in .lgtmbot.yml)

    This factory lives in cli.py so neither lgtmbot_core nor lgtmbot_owners
    know about the config format of the other.
    """
    owners_cfg = settings.get("owners") or {}
    backend = owners_cfg.get("backend", "files")

    if backend == "static":
        from lgtmbot_owners.static import StaticOwners

        return StaticOwners(owners_cfg.get("static") or {})

    if backend == "files":
        from lgtmbot_owners.files import OwnersFileBackend

        return OwnersFileBackend(repo, ref, filename=owners_cfg.get("filename", "OWNERS"))

    raise click.UsageError(f"Unknown owners backend: {backend!r}. Choose 'files' or 'static'.")


@click.group()
@click.version_option(
    version=importlib.metadata.version("lgtmbot"),
    prog_name="lgtmbot",
)
@click.option(
    "--config",
    "config_path",
    default=".lgtmbot.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="LGTMBOT_CONFIG",
)
@click.option(
    "--bot-login",
    default=None,
    envvar="LGTMBOT_BOT_LOGIN",
    help="Login the token posts comments as. Looked up from the token when omitted.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output.")
@click.pass_context
def main(ctx: click.Context, config_path: str, bot_login: str | None, verbose: bool):
    """LGTM label bot driven by /lgtm comments and OWNERS files."""
    from lgtmbot_core.config import load_config
    from lgtmbot_cli.auth import resolve_github_token

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    ctx.ensure_object(dict)

    config = load_config(config_path, cli_overrides={"bot_login": bot_login})

    if not config.get("github_token"):
        config["github_token"] = resolve_github_token()

    ctx.obj["config"] = config
    ctx.obj["owners_factory"] = _build_owners


main.add_command(handle_cmd)
main.add_command(status_cmd)
