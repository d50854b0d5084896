"""Scoring package — repository metrics, compliance posture and framework scores."""

from .engine import compute_compliance
from .metrics import compute_repository_metrics
from .models import ComplianceResult, FrameworkScore
from .frameworks import build_framework_scores

__all__ = [
    "compute_compliance",
    "compute_repository_metrics",
    "ComplianceResult",
    "FrameworkScore",
    "build_framework_scores",
]
