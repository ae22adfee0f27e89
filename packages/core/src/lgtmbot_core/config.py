import copy
import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "label": "lgtm",
    "strict_review": True,
    "store_tree_hash": True,  # simple mode: keep LGTM across squashes that keep the tree
    "skip_collaborators": False,  # simple mode: trust OWNERS instead of repo collaborators
    "trusted_team_for_sticky_lgtm": None,  # simple mode: authors in this team keep LGTM on new commits
    "owners": {
        "backend": "files",  # "files" reads OWNERS from the base branch, "static" uses owners.static
        "filename": "OWNERS",
        "static": {},
    },
    "bot_login": None,  # login the token posts as; looked up from the token when unset
    "repos": [],  # per-repo overrides, see config_for()
}

# Keys a `repos` entry may override.
_REPO_KEYS = ("label", "strict_review", "store_tree_hash", "skip_collaborators", "trusted_team_for_sticky_lgtm", "owners")


def load_config(config_path: str = ".lgtmbot.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .lgtmbot.yml in the current directory
      3. CLI argument overrides
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        owners = file_config.pop("owners", None)
        config.update(file_config)
        if owners:
            config["owners"].update(owners)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["github_token"] = os.environ.get("LGTMBOT_GITHUB_TOKEN") or os.environ.get("GITHUB_TOKEN")

    return config


def _matches(entry: dict, org: str, full_name: str) -> int:
    """Score how specifically a `repos` entry selects a repository.

    2 for an exact owner/name match, 1 for an org match, 0 for no match or an
    excluded repository.
    """
    if full_name in (entry.get("excluded_repos") or []):
        return 0
    repos = entry.get("repos") or []
    if full_name in repos:
        return 2
    if org in repos:
        return 1
    return 0


def config_for(config: dict, org: str, repo: str) -> Optional[dict]:
    """Return the effective settings for ``org/repo``, or None if it is not configured.

    With no `repos` entries every repository uses the top-level settings.
    Otherwise the most specific matching entry is layered over them.
    """
    entries = config.get("repos") or []
    effective = {k: copy.deepcopy(config.get(k, DEFAULT_CONFIG[k])) for k in _REPO_KEYS}
    if not entries:
        return effective

    full_name = f"{org}/{repo}"
    best, best_score = None, 0
    for entry in entries:
        score = _matches(entry, org, full_name)
        if score > best_score:
            best, best_score = entry, score
    if best is None:
        return None

    for key in _REPO_KEYS:
        if key not in best:
            continue
        if key == "owners":
            effective["owners"].update(best["owners"] or {})
        else:
            effective[key] = best[key]
    return effective
