"""
Dependabot Collector
Open dependency-vulnerability alerts, cursor-paginated over GraphQL.
"""

from __future__ import annotations

import logging

from ..models import DependencyAlert, RepositoryIdentity
from .base import BaseCollector, CollectorResult

logger = logging.getLogger("fleet_audit.collectors.dependabot")


VULNERABILITY_ALERTS_QUERY = """
query($org: String!, $repo: String!, $first: Int!, $cursor: String) {
  repository(owner: $org, name: $repo) {
    vulnerabilityAlerts(first: $first, after: $cursor, states: OPEN) {
      nodes {
        id
        state
        createdAt
        dismissedAt
        fixedAt
        securityVulnerability {
          severity
          package {
            name
            ecosystem
          }
          advisory {
            summary
            cvss {
              score
            }
          }
        }
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
}
"""


class DependabotCollector(BaseCollector):
    source = "dependency"
    feature = "dependency_alerts"
    description = "Open Dependabot vulnerability alerts"

    async def collect(self, repo: RepositoryIdentity, result: CollectorResult):
        pages = self.client.iter_connection_pages(
            VULNERABILITY_ALERTS_QUERY,
            {"org": self.organization, "repo": repo.name, "first": self.page_size},
            connection_path=("repository", "vulnerabilityAlerts"),
        )
        async for page in pages:
            result.add_page([DependencyAlert.from_api(node) for node in page.items])
