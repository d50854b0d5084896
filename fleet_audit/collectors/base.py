"""
Base collector class — Abstract interface for the per-repository alert sources.
A failing source yields an empty collection and an error; it never stops the others.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..config import DEFAULT_PAGE_SIZE
from ..github.client import GitHubClient
from ..models import Alert, RepositoryIdentity

logger = logging.getLogger("fleet_audit.collectors")


class CollectorResult:
    """Standardized result from one alert source for one repository."""

    def __init__(self, source: str, repository: str):
        self.source = source
        self.repository = repository
        self.alerts: list[Alert] = []
        self.metadata: dict[str, Any] = {
            "source": source,
            "repository": repository,
            "started_at": None,
            "completed_at": None,
            "duration_seconds": 0,
            "items_collected": 0,
            "pages_fetched": 0,
            "errors": [],
        }

    @property
    def error(self) -> Optional[str]:
        """First recorded error, used as the feature annotation."""
        errors = self.metadata["errors"]
        return errors[0] if errors else None

    def add_page(self, alerts: list[Alert]):
        self.alerts.extend(alerts)
        self.metadata["pages_fetched"] += 1
        self.metadata["items_collected"] += len(alerts)

    def add_error(self, error: str):
        self.metadata["errors"].append(error)
        logger.warning(f"[{self.source}] {self.repository}: {error}")

    def discard_alerts(self):
        """Drop partial results so a failed source reports an empty collection."""
        self.alerts = []
        self.metadata["items_collected"] = 0


class BaseCollector(ABC):
    """
    Abstract base class for alert collectors.

    Subclasses implement collect() for one source. The base class provides:
      - Timing and metadata
      - Failure isolation: any exception empties the collection and is
        recorded on the result instead of propagating
    """

    source: str = "base"
    feature: str = ""              # SecurityFeatureStatus attribute annotated on failure
    description: str = "Base collector"

    def __init__(
        self,
        client: GitHubClient,
        organization: str,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.client = client
        self.organization = organization
        self.page_size = page_size

    async def execute(self, repo: RepositoryIdentity) -> CollectorResult:
        """
        Run the collector with timing and error isolation.
        """
        result = CollectorResult(self.source, repo.name)
        result.metadata["started_at"] = time.time()
        logger.debug(f"[{self.source}] Collecting alerts for {repo.name}...")

        try:
            await self.collect(repo, result)
        except Exception as e:
            result.discard_alerts()
            result.add_error(f"{type(e).__name__}: {e}")

        result.metadata["completed_at"] = time.time()
        result.metadata["duration_seconds"] = round(
            result.metadata["completed_at"] - result.metadata["started_at"], 2
        )
        logger.debug(
            f"[{self.source}] {repo.name}: {len(result.alerts)} alerts in "
            f"{result.metadata['pages_fetched']} pages ({result.metadata['duration_seconds']}s)"
        )
        return result

    @abstractmethod
    async def collect(self, repo: RepositoryIdentity, result: CollectorResult):
        """
        Implement alert retrieval for one repository.
        Add mapped alerts page by page via result.add_page(alerts).
        """
        raise NotImplementedError

    def repo_path(self, repo: RepositoryIdentity, suffix: str = "") -> str:
        path = f"repos/{self.organization}/{repo.name}"
        return f"{path}/{suffix.lstrip('/')}" if suffix else path
