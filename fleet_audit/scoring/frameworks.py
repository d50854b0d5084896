"""
Framework alignment — Additive-credit scores for OWASP Top 10, NIST CSF and ISO 27001.

Each score is a sum of credits capped at 100. Coverage credits are
(repositories with the capability / N) * weight. The weights are kept
exactly as historical reports computed them so scores stay comparable.
"""

from __future__ import annotations

import math
from typing import Callable, Sequence

from ..models import RepositorySummary
from .models import FrameworkScore


# ---------------------------------------------------------------------------
# OWASP Top 10 keyword checks against code-scanning rule identifiers
# ---------------------------------------------------------------------------
OWASP_RULE_KEYWORDS = {
    "injection": 10,        # A03 Injection
    "auth": 10,             # A07 Identification and Authentication Failures
    "config": 10,           # A05 Security Misconfiguration
}
OWASP_NO_SECRETS_CREDIT = 20          # A02 Cryptographic Failures / exposure
OWASP_DEPENDENCY_TIERS = [            # A06 Vulnerable and Outdated Components
    (5, 20),
    (20, 10),
]
OWASP_SCANNING_WEIGHT = 30

# ---------------------------------------------------------------------------
# NIST Cybersecurity Framework functions
# ---------------------------------------------------------------------------
NIST_IDENTIFY_CREDIT = 20             # Asset inventory: every repo is enumerated
NIST_PROTECT_WEIGHT = 20
NIST_DETECT_WEIGHT = 20
NIST_RESPOND_TIERS = [                # Fleet-average MTTR in days
    (7, 20),
    (30, 10),
]
NIST_RECOVER_CREDIT = 20              # Audit process exists

# ---------------------------------------------------------------------------
# ISO/IEC 27001 Annex A controls
# ---------------------------------------------------------------------------
ISO_CONTROL_WEIGHT = 25
ISO_COMPLIANCE_CREDIT = 25            # A.18.1 audit process exists

MAX_SCORE = 100.0


def _fraction(repos: Sequence[RepositorySummary], predicate: Callable[[RepositorySummary], bool]) -> float:
    if not repos:
        return 0.0
    return sum(1 for r in repos if predicate(r)) / len(repos)


def _tiered(value: float, tiers: list[tuple[float, float]]) -> float:
    for threshold, credit in tiers:
        if value < threshold:
            return credit
    return 0.0


def _capped(credits: dict[str, float]) -> float:
    return max(0.0, min(sum(credits.values()), MAX_SCORE))


def rule_keyword_count(repos: Sequence[RepositorySummary], keyword: str) -> int:
    """Count code-scanning alerts whose rule identifier contains `keyword` (case-sensitive)."""
    return sum(
        1
        for repo in repos
        for alert in repo.code_alerts
        if keyword in alert.rule_id
    )


def score_owasp(repos: Sequence[RepositorySummary]) -> FrameworkScore:
    credits: dict[str, float] = {}
    for keyword, credit in OWASP_RULE_KEYWORDS.items():
        credits[f"no_{keyword}_alerts"] = credit if rule_keyword_count(repos, keyword) == 0 else 0.0

    secret_alerts = sum(len(r.secret_alerts) for r in repos)
    credits["no_secret_alerts"] = OWASP_NO_SECRETS_CREDIT if secret_alerts == 0 else 0.0

    dependency_alerts = sum(len(r.dependency_alerts) for r in repos)
    credits["dependency_alerts"] = _tiered(dependency_alerts, OWASP_DEPENDENCY_TIERS)

    credits["code_scanning_coverage"] = (
        _fraction(repos, lambda r: r.features.code_scanning.enabled) * OWASP_SCANNING_WEIGHT
    )
    return FrameworkScore("OWASP", _capped(credits), "Based on OWASP Top 10 coverage", credits)


def score_nist(repos: Sequence[RepositorySummary]) -> FrameworkScore:
    credits: dict[str, float] = {"identify": NIST_IDENTIFY_CREDIT}
    credits["protect"] = (
        _fraction(repos, lambda r: r.features.branch_protection.enabled) * NIST_PROTECT_WEIGHT
    )
    credits["detect"] = _fraction(
        repos,
        lambda r: (
            r.features.code_scanning.enabled
            or r.features.secret_scanning.enabled
            or r.features.dependency_alerts.enabled
        ),
    ) * NIST_DETECT_WEIGHT

    average_mttr = (
        math.fsum(r.metrics.mean_time_to_resolve_days for r in repos) / len(repos) if repos else 0.0
    )
    credits["respond"] = _tiered(average_mttr, NIST_RESPOND_TIERS)
    credits["recover"] = NIST_RECOVER_CREDIT
    return FrameworkScore("NIST", _capped(credits), "Based on NIST Cybersecurity Framework", credits)


def score_iso27001(repos: Sequence[RepositorySummary]) -> FrameworkScore:
    credits = {
        "A.12.6_vulnerability_management": _fraction(
            repos, lambda r: r.features.dependency_alerts.enabled
        ) * ISO_CONTROL_WEIGHT,
        "A.14.2_secure_development": _fraction(
            repos, lambda r: r.features.code_scanning.enabled
        ) * ISO_CONTROL_WEIGHT,
        "A.13.1_secret_management": _fraction(
            repos, lambda r: r.features.secret_scanning.enabled
        ) * ISO_CONTROL_WEIGHT,
        "A.18.1_compliance": ISO_COMPLIANCE_CREDIT,
    }
    return FrameworkScore("ISO27001", _capped(credits), "Based on ISO 27001 controls", credits)


FRAMEWORK_SCORERS = [
    score_owasp,
    score_nist,
    score_iso27001,
]


def build_framework_scores(repos: Sequence[RepositorySummary]) -> dict[str, FrameworkScore]:
    """Score every framework over the full repository list."""
    scores = [scorer(repos) for scorer in FRAMEWORK_SCORERS]
    return {fw.name: fw for fw in scores}
