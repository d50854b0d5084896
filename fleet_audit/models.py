"""
Audit data models — normalized alerts, feature status and per-repository summaries.

Each alert source has its own variant with a mapping function from the
source's native record shape. Severity and state are normalized once, at
that mapping boundary, so nothing downstream sees source-specific casing.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Iterator, Optional, Union

from .config import SCHEMA_VERSION


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"

    @classmethod
    def normalize(cls, value: Any) -> "Severity":
        """Map any source vocabulary onto the common severity buckets."""
        if not isinstance(value, str):
            return cls.UNKNOWN
        key = value.strip().lower()
        key = _SEVERITY_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return cls.UNKNOWN


# Dependency advisories use MODERATE where scanners say medium
_SEVERITY_ALIASES = {
    "moderate": "medium",
}


class AlertState(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"

    @classmethod
    def normalize(cls, value: Any) -> "AlertState":
        if not isinstance(value, str) or not value.strip():
            return cls.OPEN
        if value.strip().lower() == "open":
            return cls.OPEN
        return cls.RESOLVED


class FeatureState(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    UNKNOWN = "unknown"          # Probe failed; see FeatureCheck.error


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 API timestamp ('Z' suffix allowed) into an aware datetime."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# ─── Alerts ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Alert:
    """Fields shared by every alert source."""
    identifier: Union[int, str]
    state: AlertState = AlertState.OPEN
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    source: ClassVar[str] = "alert"

    @property
    def is_open(self) -> bool:
        return self.state is AlertState.OPEN or self.resolved_at is None

    @property
    def resolution_days(self) -> Optional[float]:
        if self.resolved_at is None or self.created_at is None:
            return None
        return (self.resolved_at - self.created_at).total_seconds() / 86400

    def _common_dict(self) -> dict:
        return {
            "state": self.state.value,
            "createdAt": format_timestamp(self.created_at),
            "resolvedAt": format_timestamp(self.resolved_at),
        }


@dataclass(frozen=True)
class CodeAlert(Alert):
    severity: Severity = Severity.UNKNOWN
    rule_id: str = ""
    description: str = ""
    file_path: Optional[str] = None
    detection_tool: str = ""

    source: ClassVar[str] = "code"

    @classmethod
    def from_api(cls, record: dict) -> "CodeAlert":
        """Map a REST code-scanning alert record."""
        rule = record.get("rule") or {}
        instance = record.get("most_recent_instance") or {}
        location = instance.get("location") or {}
        tool = record.get("tool") or {}
        return cls(
            identifier=record.get("number"),
            state=AlertState.normalize(record.get("state")),
            created_at=parse_timestamp(record.get("created_at")),
            resolved_at=parse_timestamp(record.get("fixed_at") or record.get("dismissed_at")),
            severity=Severity.normalize(rule.get("security_severity_level")),
            rule_id=rule.get("id") or "",
            description=rule.get("description") or "",
            file_path=location.get("path"),
            detection_tool=tool.get("name") or "",
        )

    def to_dict(self) -> dict:
        return {
            "number": self.identifier,
            **self._common_dict(),
            "severity": self.severity.value,
            "rule": self.rule_id,
            "description": self.description,
            "path": self.file_path,
            "tool": self.detection_tool,
        }


@dataclass(frozen=True)
class SecretAlert(Alert):
    secret_type_id: str = ""
    secret_type_label: str = ""
    resolved_by: Optional[str] = None
    push_protection_bypassed: bool = False

    source: ClassVar[str] = "secret"

    @classmethod
    def from_api(cls, record: dict) -> "SecretAlert":
        """Map a REST secret-scanning alert record."""
        resolver = record.get("resolved_by") or {}
        return cls(
            identifier=record.get("number"),
            state=AlertState.normalize(record.get("state")),
            created_at=parse_timestamp(record.get("created_at")),
            resolved_at=parse_timestamp(record.get("resolved_at")),
            secret_type_id=record.get("secret_type") or "",
            secret_type_label=record.get("secret_type_display_name") or "",
            resolved_by=resolver.get("login"),
            push_protection_bypassed=bool(record.get("push_protection_bypassed")),
        )

    def to_dict(self) -> dict:
        return {
            "number": self.identifier,
            **self._common_dict(),
            "secretType": self.secret_type_id,
            "secretTypeDisplayName": self.secret_type_label,
            "resolvedBy": self.resolved_by,
            "pushProtectionBypassed": self.push_protection_bypassed,
        }


@dataclass(frozen=True)
class DependencyAlert(Alert):
    severity: Severity = Severity.UNKNOWN
    package_name: str = ""
    ecosystem: str = ""
    advisory_summary: str = ""
    cvss_score: Optional[float] = None

    source: ClassVar[str] = "dependency"

    @classmethod
    def from_api(cls, node: dict) -> "DependencyAlert":
        """Map a GraphQL vulnerabilityAlerts node."""
        vulnerability = node.get("securityVulnerability") or {}
        package = vulnerability.get("package") or {}
        advisory = vulnerability.get("advisory") or {}
        cvss = advisory.get("cvss") or {}
        return cls(
            identifier=node.get("id"),
            state=AlertState.normalize(node.get("state")),
            created_at=parse_timestamp(node.get("createdAt")),
            resolved_at=parse_timestamp(node.get("dismissedAt") or node.get("fixedAt")),
            severity=Severity.normalize(vulnerability.get("severity")),
            package_name=package.get("name") or "",
            ecosystem=package.get("ecosystem") or "",
            advisory_summary=advisory.get("summary") or "",
            cvss_score=cvss.get("score"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.identifier,
            **self._common_dict(),
            "severity": self.severity.value,
            "package": self.package_name,
            "ecosystem": self.ecosystem,
            "summary": self.advisory_summary,
            "cvssScore": self.cvss_score,
        }


# ─── Feature status ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FeatureCheck:
    """Outcome of one capability probe."""
    state: FeatureState = FeatureState.DISABLED
    error: Optional[str] = None
    assume_enabled_on_unknown: bool = False

    @property
    def enabled(self) -> bool:
        if self.state is FeatureState.UNKNOWN:
            return self.assume_enabled_on_unknown
        return self.state is FeatureState.ENABLED

    def with_error(self, error: str) -> "FeatureCheck":
        return replace(self, error=error)


@dataclass(frozen=True)
class SecurityFeatureStatus:
    code_scanning: FeatureCheck = field(default_factory=FeatureCheck)
    secret_scanning: FeatureCheck = field(default_factory=FeatureCheck)
    dependency_alerts: FeatureCheck = field(default_factory=FeatureCheck)
    branch_protection: FeatureCheck = field(default_factory=FeatureCheck)
    code_scanning_last_run: Optional[str] = None
    push_protection: bool = False
    security_updates: bool = False
    protection_rules: tuple[str, ...] = ()

    # Output key for each feature, in document order
    FEATURE_KEYS: ClassVar[dict[str, str]] = {
        "code_scanning": "codeScanning",
        "secret_scanning": "secretScanning",
        "dependency_alerts": "dependabot",
        "branch_protection": "branchProtection",
    }

    def with_error(self, feature: str, error: str) -> "SecurityFeatureStatus":
        """Return a copy with an error annotation on one feature."""
        check: FeatureCheck = getattr(self, feature)
        return replace(self, **{feature: check.with_error(error)})

    def to_dict(self) -> dict:
        extras = {
            "code_scanning": {"lastRun": self.code_scanning_last_run},
            "secret_scanning": {"pushProtection": self.push_protection},
            "dependency_alerts": {"securityUpdates": self.security_updates},
            "branch_protection": {"rules": list(self.protection_rules)},
        }
        out = {}
        for attr, key in self.FEATURE_KEYS.items():
            check: FeatureCheck = getattr(self, attr)
            entry = {"enabled": check.enabled, **extras[attr]}
            if check.error:
                entry["error"] = check.error
            out[key] = entry
        return out


# ─── Repository ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RepositoryMetrics:
    total_alerts: int = 0
    open_alerts: int = 0
    closed_alerts: int = 0
    mean_time_to_resolve_days: float = 0.0

    def to_dict(self) -> dict:
        return {
            "totalAlerts": self.total_alerts,
            "openAlerts": self.open_alerts,
            "closedAlerts": self.closed_alerts,
            "meanTimeToResolve": self.mean_time_to_resolve_days,
        }


@dataclass(frozen=True)
class RepositoryIdentity:
    """A selected repository, as returned by the listing or lookup endpoints."""
    name: str
    url: str = ""
    private: bool = False
    default_branch: str = "main"
    last_updated: Optional[str] = None
    topics: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, record: dict) -> "RepositoryIdentity":
        return cls(
            name=record["name"],
            url=record.get("html_url") or "",
            private=bool(record.get("private")),
            default_branch=record.get("default_branch") or "main",
            last_updated=record.get("updated_at"),
            topics=tuple(record.get("topics") or ()),
        )


@dataclass(frozen=True)
class RepositorySummary:
    repository: RepositoryIdentity
    features: SecurityFeatureStatus = field(default_factory=SecurityFeatureStatus)
    code_alerts: tuple[CodeAlert, ...] = ()
    secret_alerts: tuple[SecretAlert, ...] = ()
    dependency_alerts: tuple[DependencyAlert, ...] = ()
    metrics: RepositoryMetrics = field(default_factory=RepositoryMetrics)

    @property
    def name(self) -> str:
        return self.repository.name

    def iter_alerts(self) -> Iterator[Alert]:
        yield from self.code_alerts
        yield from self.secret_alerts
        yield from self.dependency_alerts

    def to_dict(self) -> dict:
        return {
            "name": self.repository.name,
            "url": self.repository.url,
            "private": self.repository.private,
            "defaultBranch": self.repository.default_branch,
            "lastUpdated": self.repository.last_updated,
            "securityFeatures": self.features.to_dict(),
            "alerts": {
                "code": [a.to_dict() for a in self.code_alerts],
                "secret": [a.to_dict() for a in self.secret_alerts],
                "dependency": [a.to_dict() for a in self.dependency_alerts],
            },
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class AuditRun:
    """Run metadata; created once before any repository is processed."""
    organization: str
    scope: str
    audit_timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    schema_version: str = SCHEMA_VERSION

    def to_dict(self) -> dict:
        return {
            "organization": self.organization,
            "auditDate": format_timestamp(self.audit_timestamp),
            "scope": self.scope,
            "version": self.schema_version,
        }
