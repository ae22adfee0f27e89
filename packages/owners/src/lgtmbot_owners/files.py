"""OwnersFileBackend: permissions from OWNERS files committed to the repo.

Reads Kubernetes-style OWNERS files from the PR's base branch, so a PR cannot
grant itself reviewers by editing OWNERS:

    approvers:
      - alice
    reviewers:
      - bob
    options:
      no_parent_owners: true

A path is covered by the OWNERS file in its own directory and every parent
directory up to the repo root, unless a file sets ``no_parent_owners``.
"""

from __future__ import annotations

import logging
import posixpath

import yaml
from github import GithubException

from lgtmbot_owners.base import BaseOwners
from lgtmbot_owners.models import OwnersEntry

logger = logging.getLogger(__name__)


class OwnersFileBackend(BaseOwners):
    """Resolves permissions through the GitHub contents API, one file per directory.

    Each directory's OWNERS file is fetched at most once per backend instance;
    a backend lives for a single event, so the cache never goes stale.
    """

    def __init__(self, repo, ref: str, filename: str = "OWNERS"):
        self._repo = repo
        self._ref = ref
        self._filename = filename
        self._cache: dict[str, OwnersEntry] = {}

    def approvers(self, path: str) -> frozenset[str]:
        return self._collect(path, "approvers")

    def reviewers(self, path: str) -> frozenset[str]:
        return self._collect(path, "reviewers")

    def _collect(self, path: str, attr: str) -> frozenset[str]:
        found: set[str] = set()
        for directory in _ancestors(posixpath.dirname(path)):
            entry = self._entry(directory)
            found |= getattr(entry, attr)
            if entry.no_parent_owners:
                break
        return frozenset(found)

    def _entry(self, directory: str) -> OwnersEntry:
        if directory not in self._cache:
            self._cache[directory] = self._load(directory)
        return self._cache[directory]

    def _load(self, directory: str) -> OwnersEntry:
        owners_path = posixpath.join(directory, self._filename) if directory else self._filename
        try:
            content = self._repo.get_contents(owners_path, ref=self._ref)
        except GithubException as e:
            if e.status != 404:
                logger.error("Could not read %s@%s (%s): %s", owners_path, self._ref, e.status, e)
            return OwnersEntry()

        if isinstance(content, list):
            # A directory named like the OWNERS file, not a file.
            return OwnersEntry()

        try:
            data = yaml.safe_load(content.decoded_content.decode("utf-8", errors="replace"))
        except yaml.YAMLError as e:
            logger.error("Malformed %s@%s: %s", owners_path, self._ref, e)
            return OwnersEntry()

        if not isinstance(data, dict):
            logger.warning("Ignoring %s@%s: expected a mapping", owners_path, self._ref)
            return OwnersEntry()
        return OwnersEntry.from_dict(data)


def _ancestors(directory: str):
    """Yield ``directory`` and each of its parents, ending with the root ("")."""
    while directory:
        yield directory
        directory = posixpath.dirname(directory)
    yield ""
