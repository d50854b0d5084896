"""
Repository Selector
Resolves the set of repositories to audit: an explicit list, or the full
organization listing narrowed by scope.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import httpx

from ..config import (
    CRITICAL_NAME_MARKERS,
    CRITICAL_TOPICS,
    DEFAULT_PAGE_SIZE,
    SCOPE_CRITICAL,
)
from ..github.client import GitHubClient, GitHubAPIError
from ..models import RepositoryIdentity

logger = logging.getLogger("fleet_audit.collectors.repositories")


def is_critical(repo: RepositoryIdentity) -> bool:
    """Heuristic for the 'critical' scope: a recognised topic or name marker."""
    if any(topic in repo.topics for topic in CRITICAL_TOPICS):
        return True
    return any(marker in repo.name for marker in CRITICAL_NAME_MARKERS)


def _deduplicate(repos: Iterable[RepositoryIdentity]) -> list[RepositoryIdentity]:
    seen: set[str] = set()
    unique = []
    for repo in repos:
        if repo.name in seen:
            continue
        seen.add(repo.name)
        unique.append(repo)
    return unique


class RepositorySelector:
    """Produces the deduplicated list of repositories for one run."""

    def __init__(
        self,
        client: GitHubClient,
        organization: str,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.client = client
        self.organization = organization
        self.page_size = page_size
        self.skipped: list[dict] = []

    async def select(
        self,
        scope: str,
        names: Optional[Iterable[str]] = None,
    ) -> list[RepositoryIdentity]:
        """
        Explicit names take precedence over the listing. An empty result is valid.
        Organization listing errors propagate; they are setup failures.
        """
        names = list(names or ())
        if names:
            return await self._resolve_names(names)

        repos = await self._list_organization()
        if scope == SCOPE_CRITICAL:
            repos = [r for r in repos if is_critical(r)]
            logger.info(f"Critical scope: {len(repos)} repositories match")
        return _deduplicate(repos)

    async def _resolve_names(self, names: list[str]) -> list[RepositoryIdentity]:
        repos = []
        for name in dict.fromkeys(names):
            try:
                record = await self.client.get(f"repos/{self.organization}/{name}")
            except (GitHubAPIError, httpx.TransportError, ValueError) as e:
                logger.warning(f"Could not access repository {name}: {e}")
                self.skipped.append({"repository": name, "reason": str(e)})
                continue
            repos.append(RepositoryIdentity.from_api(record))
        return _deduplicate(repos)

    async def _list_organization(self) -> list[RepositoryIdentity]:
        records = await self.client.get_all_pages(
            f"orgs/{self.organization}/repos",
            params={"type": "all"},
            per_page=self.page_size,
        )
        logger.info(f"Listed {len(records)} repositories in {self.organization}")
        return [RepositoryIdentity.from_api(r) for r in records]
