"""
Scoring Engine — Computes the fleet compliance posture from audited repositories.

Scoring model:
  - Three sub-scores are computed per repository:
      scanning    0.33 code scanning + 0.33 secret scanning + 0.34 Dependabot
      protection  0.5 branch protection + 0.5 secret push protection
      resolution  closed / total alerts, or 1 when the repository has none
  - Each sub-score is averaged across repositories and scaled to 0-100.
  - The overall score is the unweighted mean of the three percentages.
  - Framework scores are computed independently (see frameworks.py).
"""

from __future__ import annotations

import math
from typing import Sequence

from ..models import RepositorySummary
from .frameworks import build_framework_scores
from .models import ComplianceResult

# ---------------------------------------------------------------------------
# Per-repository sub-score weights
# ---------------------------------------------------------------------------
SCANNING_WEIGHTS = {
    "code_scanning": 0.33,
    "secret_scanning": 0.33,
    "dependency_alerts": 0.34,
}
PROTECTION_WEIGHTS = {
    "branch_protection": 0.5,
    "push_protection": 0.5,
}


def scanning_subscore(repo: RepositorySummary) -> float:
    return sum(
        weight
        for feature, weight in SCANNING_WEIGHTS.items()
        if getattr(repo.features, feature).enabled
    )


def protection_subscore(repo: RepositorySummary) -> float:
    score = 0.0
    if repo.features.branch_protection.enabled:
        score += PROTECTION_WEIGHTS["branch_protection"]
    if repo.features.push_protection:
        score += PROTECTION_WEIGHTS["push_protection"]
    return score


def resolution_subscore(repo: RepositorySummary) -> float:
    """A repository without alerts is fully compliant on this axis."""
    if repo.metrics.total_alerts > 0:
        return repo.metrics.closed_alerts / repo.metrics.total_alerts
    return 1.0


def compute_compliance(repos: Sequence[RepositorySummary]) -> ComplianceResult:
    """
    Compute the overall and framework scores over the complete repository list.

    Args:
        repos: Every RepositorySummary of the run.

    Returns:
        ComplianceResult; an empty fleet scores 0 with no frameworks.
    """
    if not repos:
        return ComplianceResult()

    count = len(repos)
    # fsum keeps the result independent of repository order
    scanning = math.fsum(scanning_subscore(r) for r in repos) / count * 100
    protection = math.fsum(protection_subscore(r) for r in repos) / count * 100
    resolution = math.fsum(resolution_subscore(r) for r in repos) / count * 100

    overall = (scanning + protection + resolution) / 3
    # Clamp to [0, 100]
    overall = max(0.0, min(100.0, overall))

    return ComplianceResult(
        overall_score=overall,
        scanning_score=scanning,
        protection_score=protection,
        resolution_score=resolution,
        frameworks=build_framework_scores(repos),
    )
