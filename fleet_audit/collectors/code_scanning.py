"""
Code Scanning Collector
Open static-analysis alerts, offset-paginated over the REST API.
"""

from __future__ import annotations

import logging

from ..github.client import GitHubAPIError
from ..models import CodeAlert, RepositoryIdentity
from .base import BaseCollector, CollectorResult

logger = logging.getLogger("fleet_audit.collectors.code_scanning")


class CodeScanningCollector(BaseCollector):
    source = "code"
    feature = "code_scanning"
    description = "Open code-scanning alerts"

    async def collect(self, repo: RepositoryIdentity, result: CollectorResult):
        pages = self.client.iter_pages(
            self.repo_path(repo, "code-scanning/alerts"),
            params={"state": "open"},
            per_page=self.page_size,
        )
        try:
            async for page in pages:
                result.add_page([CodeAlert.from_api(record) for record in page.items])
        except GitHubAPIError as e:
            # 404: code scanning has never run here
            if e.status_code != 404:
                raise
            logger.debug(f"No code scanning analyses for {repo.name}")
