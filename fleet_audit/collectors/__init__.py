from .base import BaseCollector, CollectorResult
from .code_scanning import CodeScanningCollector
from .secret_scanning import SecretScanningCollector
from .dependabot import DependabotCollector
from .features import FeatureProber
from .repositories import RepositorySelector

ALERT_COLLECTORS = [
    CodeScanningCollector,
    SecretScanningCollector,
    DependabotCollector,
]

__all__ = [
    "BaseCollector",
    "CollectorResult",
    "CodeScanningCollector",
    "SecretScanningCollector",
    "DependabotCollector",
    "FeatureProber",
    "RepositorySelector",
    "ALERT_COLLECTORS",
]
