"""
Secret Scanning Collector
Open exposed-credential alerts, offset-paginated over the REST API.
"""

from __future__ import annotations

import logging

from ..github.client import GitHubAPIError
from ..models import SecretAlert, RepositoryIdentity
from .base import BaseCollector, CollectorResult

logger = logging.getLogger("fleet_audit.collectors.secret_scanning")

# Not licensed, disabled, or no admin access: nothing to report
UNAVAILABLE_STATUSES = (403, 404)


class SecretScanningCollector(BaseCollector):
    source = "secret"
    feature = "secret_scanning"
    description = "Open secret-scanning alerts"

    async def collect(self, repo: RepositoryIdentity, result: CollectorResult):
        pages = self.client.iter_pages(
            self.repo_path(repo, "secret-scanning/alerts"),
            params={"state": "open"},
            per_page=self.page_size,
        )
        try:
            async for page in pages:
                result.add_page([SecretAlert.from_api(record) for record in page.items])
        except GitHubAPIError as e:
            if e.status_code not in UNAVAILABLE_STATUSES:
                raise
            logger.debug(f"Secret scanning alerts unavailable for {repo.name} ({e.status_code})")
