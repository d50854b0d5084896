"""Unit tests for alert normalization and output shapes."""

from datetime import datetime, timezone

import pytest

from conftest import code_alert_record, dependency_node, repo_record, secret_alert_record
from fleet_audit.models import (
    AlertState,
    CodeAlert,
    DependencyAlert,
    FeatureCheck,
    FeatureState,
    RepositoryIdentity,
    SecretAlert,
    SecurityFeatureStatus,
    Severity,
    parse_timestamp,
)


class TestSeverity:
    """Severity values from every source land in one of five buckets."""

    def test_mixed_casing_normalizes_to_one_of_each(self):
        raw = ["critical", "HIGH", "Medium", "low", "unknown-string"]
        normalized = [Severity.normalize(value) for value in raw]
        assert normalized == [
            Severity.CRITICAL,
            Severity.HIGH,
            Severity.MEDIUM,
            Severity.LOW,
            Severity.UNKNOWN,
        ]

    def test_moderate_is_medium(self):
        assert Severity.normalize("MODERATE") is Severity.MEDIUM

    @pytest.mark.parametrize("value", [None, "", "  ", 7, "error", "warning"])
    def test_missing_or_foreign_values_are_unknown(self, value):
        assert Severity.normalize(value) is Severity.UNKNOWN

    def test_ingested_alerts_always_carry_an_enum(self):
        alerts = [
            CodeAlert.from_api(code_alert_record(1, severity="HIGH")),
            CodeAlert.from_api(code_alert_record(2, severity=None)),
            DependencyAlert.from_api(dependency_node("D1", severity="MODERATE")),
            DependencyAlert.from_api(dependency_node("D2", severity="bogus")),
        ]
        assert [a.severity for a in alerts] == [
            Severity.HIGH, Severity.UNKNOWN, Severity.MEDIUM, Severity.UNKNOWN,
        ]
        assert all(isinstance(a.severity, Severity) for a in alerts)


class TestAlertMapping:
    """Each source record maps onto its variant once."""

    def test_code_alert_from_api(self):
        alert = CodeAlert.from_api(code_alert_record(
            7, severity="critical", state="fixed",
            created="2026-01-01T00:00:00Z", fixed="2026-01-03T00:00:00Z",
        ))
        assert alert.identifier == 7
        assert alert.state is AlertState.RESOLVED
        assert alert.rule_id == "js/sql-injection"
        assert alert.file_path == "src/app.js"
        assert alert.detection_tool == "CodeQL"
        assert alert.resolution_days == pytest.approx(2.0)

    def test_code_alert_without_rule_severity(self):
        record = code_alert_record(1)
        del record["rule"]["security_severity_level"]
        assert CodeAlert.from_api(record).severity is Severity.UNKNOWN

    def test_secret_alert_from_api(self):
        record = secret_alert_record(3, state="resolved", resolved="2026-09-02T00:00:00Z")
        record["resolved_by"] = {"login": "octocat"}
        alert = SecretAlert.from_api(record)
        assert alert.state is AlertState.RESOLVED
        assert alert.resolved_by == "octocat"
        assert alert.to_dict()["secretTypeDisplayName"] == "GitHub Personal Access Token"

    def test_dependency_alert_from_api(self):
        alert = DependencyAlert.from_api(dependency_node("RVA_1"))
        data = alert.to_dict()
        assert data["id"] == "RVA_1"
        assert data["package"] == "lodash"
        assert data["ecosystem"] == "NPM"
        assert data["cvssScore"] == 7.4
        assert data["severity"] == "high"
        assert data["state"] == "open"

    def test_open_when_no_resolution_timestamp(self):
        alert = SecretAlert.from_api(secret_alert_record(1, state="resolved", resolved=None))
        assert alert.state is AlertState.RESOLVED
        assert alert.is_open is True


class TestTimestamps:

    def test_parse_z_suffix(self):
        assert parse_timestamp("2026-09-01T12:00:00Z") == datetime(2026, 9, 1, 12, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "yesterday", 12])
    def test_unparseable_is_none(self, value):
        assert parse_timestamp(value) is None


class TestFeatureStatus:
    """Three-valued probe results collapse to booleans only on output."""

    def test_unknown_collapses_to_false_by_default(self):
        check = FeatureCheck(FeatureState.UNKNOWN, error="boom")
        assert check.enabled is False

    def test_unknown_can_collapse_to_true(self):
        check = FeatureCheck(FeatureState.UNKNOWN, error="403", assume_enabled_on_unknown=True)
        assert check.enabled is True
        assert check.state is FeatureState.UNKNOWN

    def test_defaults_are_all_disabled(self):
        data = SecurityFeatureStatus().to_dict()
        assert set(data) == {"codeScanning", "secretScanning", "dependabot", "branchProtection"}
        assert not any(entry["enabled"] for entry in data.values())
        assert all("error" not in entry for entry in data.values())

    def test_error_annotation_is_emitted(self):
        status = SecurityFeatureStatus().with_error("dependency_alerts", "GraphQL unavailable")
        data = status.to_dict()
        assert data["dependabot"]["error"] == "GraphQL unavailable"
        assert "error" not in data["codeScanning"]


class TestRepositoryIdentity:

    def test_from_api(self):
        repo = RepositoryIdentity.from_api(repo_record("payments-api", topics=["production"], private=True))
        assert repo.name == "payments-api"
        assert repo.private is True
        assert repo.topics == ("production",)
        assert repo.url == "https://github.com/acme/payments-api"
