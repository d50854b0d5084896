"""
Audit orchestration — selects repositories, audits each one and folds the results.

Per repository, the feature probes and the three alert collectors run
concurrently; metrics are computed once all of them finish. Repositories
are audited through a bounded worker pool (one at a time by default) and
folded into the aggregate in selection order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .aggregator import AuditAggregate
from .collectors import ALERT_COLLECTORS, FeatureProber, RepositorySelector
from .collectors.base import BaseCollector, CollectorResult
from .config import AuditConfig
from .github.client import GitHubClient
from .models import AuditRun, RepositoryIdentity, RepositorySummary
from .scoring import compute_repository_metrics

logger = logging.getLogger("fleet_audit.auditor")


class RepositoryAuditor:
    """Runs the probe and collection pipelines for one repository at a time."""

    def __init__(self, client: GitHubClient, config: AuditConfig):
        self.client = client
        self.config = config
        self.prober = FeatureProber(client, config.organization)
        self.collectors: list[BaseCollector] = [
            cls(client, config.organization, page_size=config.page_size)
            for cls in ALERT_COLLECTORS
        ]

    async def audit(self, repo: RepositoryIdentity) -> RepositorySummary:
        features, *results = await asyncio.gather(
            self.prober.probe(repo),
            *(collector.execute(repo) for collector in self.collectors),
        )
        by_source: dict[str, CollectorResult] = {}
        for collector, result in zip(self.collectors, results):
            by_source[collector.source] = result
            if result.error:
                features = features.with_error(collector.feature, result.error)

        code = tuple(by_source["code"].alerts)
        secret = tuple(by_source["secret"].alerts)
        dependency = tuple(by_source["dependency"].alerts)

        summary = RepositorySummary(
            repository=repo,
            features=features,
            code_alerts=code,
            secret_alerts=secret,
            dependency_alerts=dependency,
            metrics=compute_repository_metrics(code, secret, dependency),
        )
        logger.info(f"{repo.name} - {summary.metrics.total_alerts} alerts found")
        return summary


async def audit_repositories(
    auditor: RepositoryAuditor,
    repos: list[RepositoryIdentity],
    aggregate: AuditAggregate,
    concurrency: int = 1,
) -> AuditAggregate:
    """
    Audit every repository and fold the summaries into the aggregate.
    A repository whose pipeline fails outright is logged and left out.
    """
    semaphore = asyncio.Semaphore(concurrency)

    async def _bounded(repo: RepositoryIdentity) -> RepositorySummary:
        async with semaphore:
            return await auditor.audit(repo)

    outcomes = await asyncio.gather(*(_bounded(r) for r in repos), return_exceptions=True)

    for repo, outcome in zip(repos, outcomes):
        if isinstance(outcome, Exception):
            logger.error(f"{repo.name} - Error: {type(outcome).__name__}: {outcome}")
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        aggregate = aggregate.with_repository(outcome)
    return aggregate


async def run_audit(
    client: GitHubClient,
    config: AuditConfig,
    run: Optional[AuditRun] = None,
) -> AuditAggregate:
    """
    Execute one complete audit and return the scored aggregate.
    The client must already be open and the credential verified.
    """
    run = run or AuditRun(organization=config.organization, scope=config.scope)
    aggregate = AuditAggregate(run=run)

    selector = RepositorySelector(client, config.organization, page_size=config.page_size)
    repos = await selector.select(config.scope, config.repositories)
    logger.info(f"Found {len(repos)} repositories to audit")
    aggregate = aggregate.with_selection(len(repos))

    auditor = RepositoryAuditor(client, config)
    aggregate = await audit_repositories(auditor, repos, aggregate, config.concurrency)

    return aggregate.with_compliance()
