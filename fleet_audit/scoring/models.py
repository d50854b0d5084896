"""
Scoring data models — Compliance result types for the output document.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FrameworkScore:
    """Additive-credit score for one compliance framework."""
    name: str
    score: float
    details: str
    credits: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "details": self.details,
        }


@dataclass(frozen=True)
class ComplianceResult:
    """Fleet-wide overall score plus per-framework scores."""
    overall_score: float = 0.0
    scanning_score: float = 0.0
    protection_score: float = 0.0
    resolution_score: float = 0.0
    frameworks: dict[str, FrameworkScore] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "overallScore": self.overall_score,
            "frameworks": {
                name: fw.to_dict() for name, fw in self.frameworks.items()
            },
        }
