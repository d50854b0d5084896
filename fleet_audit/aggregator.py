"""
Result aggregation — the run-scoped accumulator handed to downstream consumers.

Every value here is immutable: adding a repository returns a new aggregate.
The fleet summary is a commutative fold, so repository processing order
never changes the totals.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from .models import AuditRun, RepositorySummary, Severity
from .scoring import ComplianceResult, compute_compliance


@dataclass(frozen=True)
class FleetSummary:
    """Running totals across processed repositories."""
    total_repositories: int = 0
    scanned_repositories: int = 0
    total_alerts: int = 0
    critical_alerts: int = 0
    high_alerts: int = 0
    medium_alerts: int = 0
    low_alerts: int = 0
    secret_alerts: int = 0
    dependency_alerts: int = 0
    code_alerts: int = 0

    @classmethod
    def for_repository(cls, repo: RepositorySummary) -> "FleetSummary":
        """Totals contributed by a single repository."""
        severities = {s: 0 for s in Severity}
        # Secret alerts carry no severity
        for alert in (*repo.code_alerts, *repo.dependency_alerts):
            severities[alert.severity] += 1
        return cls(
            scanned_repositories=1,
            total_alerts=repo.metrics.total_alerts,
            critical_alerts=severities[Severity.CRITICAL],
            high_alerts=severities[Severity.HIGH],
            medium_alerts=severities[Severity.MEDIUM],
            low_alerts=severities[Severity.LOW],
            secret_alerts=len(repo.secret_alerts),
            dependency_alerts=len(repo.dependency_alerts),
            code_alerts=len(repo.code_alerts),
        )

    def merge(self, other: "FleetSummary") -> "FleetSummary":
        return FleetSummary(
            total_repositories=self.total_repositories + other.total_repositories,
            scanned_repositories=self.scanned_repositories + other.scanned_repositories,
            total_alerts=self.total_alerts + other.total_alerts,
            critical_alerts=self.critical_alerts + other.critical_alerts,
            high_alerts=self.high_alerts + other.high_alerts,
            medium_alerts=self.medium_alerts + other.medium_alerts,
            low_alerts=self.low_alerts + other.low_alerts,
            secret_alerts=self.secret_alerts + other.secret_alerts,
            dependency_alerts=self.dependency_alerts + other.dependency_alerts,
            code_alerts=self.code_alerts + other.code_alerts,
        )

    def to_dict(self) -> dict:
        return {
            "totalRepositories": self.total_repositories,
            "scannedRepositories": self.scanned_repositories,
            "totalAlerts": self.total_alerts,
            "criticalAlerts": self.critical_alerts,
            "highAlerts": self.high_alerts,
            "mediumAlerts": self.medium_alerts,
            "lowAlerts": self.low_alerts,
            "secretAlerts": self.secret_alerts,
            "dependencyAlerts": self.dependency_alerts,
            "codeAlerts": self.code_alerts,
        }


@dataclass(frozen=True)
class AuditAggregate:
    """
    Snapshot of one audit run. Built with with_* methods that return new
    snapshots; compliance is set once, after the last repository.
    """
    run: AuditRun
    summary: FleetSummary = field(default_factory=FleetSummary)
    repositories: tuple[RepositorySummary, ...] = ()
    compliance: Optional[ComplianceResult] = None

    def with_selection(self, repository_count: int) -> "AuditAggregate":
        return replace(self, summary=replace(self.summary, total_repositories=repository_count))

    def with_repository(self, repo: RepositorySummary) -> "AuditAggregate":
        if self.compliance is not None:
            raise ValueError("Cannot add repositories after compliance scoring")
        return replace(
            self,
            summary=self.summary.merge(FleetSummary.for_repository(repo)),
            repositories=self.repositories + (repo,),
        )

    def with_compliance(self) -> "AuditAggregate":
        """Score the complete repository list; runs once per aggregate."""
        return replace(self, compliance=compute_compliance(self.repositories))

    def to_dict(self) -> dict:
        compliance = self.compliance or ComplianceResult()
        return {
            "metadata": self.run.to_dict(),
            "summary": self.summary.to_dict(),
            "repositories": [r.to_dict() for r in self.repositories],
            "compliance": compliance.to_dict(),
        }
