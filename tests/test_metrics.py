"""Unit tests for per-repository metrics."""

import pytest

from conftest import code_alert_record, dependency_node, make_summary, secret_alert_record
from fleet_audit.models import CodeAlert, SecretAlert
from fleet_audit.scoring import compute_repository_metrics


class TestRepositoryMetrics:
    """Counts and MTTR derived from the three alert collections."""

    def test_empty_repository(self):
        metrics = compute_repository_metrics((), (), ())
        assert metrics.total_alerts == 0
        assert metrics.open_alerts == 0
        assert metrics.closed_alerts == 0
        assert metrics.mean_time_to_resolve_days == 0

    def test_count_invariant(self):
        summary = make_summary(
            "web",
            code=[code_alert_record(1), code_alert_record(2, state="fixed", fixed="2026-09-03T00:00:00Z")],
            secret=[secret_alert_record(1), secret_alert_record(2, state="resolved", resolved="2026-09-02T00:00:00Z")],
            dependency=[dependency_node("D1"), dependency_node("D2"), dependency_node("D3")],
        )
        m = summary.metrics
        assert m.total_alerts == m.open_alerts + m.closed_alerts
        assert m.total_alerts == (
            len(summary.code_alerts) + len(summary.secret_alerts) + len(summary.dependency_alerts)
        )
        assert m.total_alerts == 7
        assert m.closed_alerts == 2

    def test_no_resolved_alerts_gives_zero_mttr(self):
        alerts = [CodeAlert.from_api(code_alert_record(n)) for n in range(3)]
        assert compute_repository_metrics(alerts).mean_time_to_resolve_days == 0

    def test_single_alert_resolved_after_five_days(self):
        alert = SecretAlert.from_api(secret_alert_record(
            1, state="resolved", created="2026-03-01T00:00:00Z", resolved="2026-03-06T00:00:00Z",
        ))
        metrics = compute_repository_metrics([alert])
        assert metrics.mean_time_to_resolve_days == pytest.approx(5.0)
        assert metrics.closed_alerts == 1

    def test_mttr_averages_across_sources(self):
        code = [CodeAlert.from_api(code_alert_record(
            1, state="dismissed", created="2026-03-01T00:00:00Z", fixed="2026-03-03T00:00:00Z",
        ))]
        secret = [SecretAlert.from_api(secret_alert_record(
            1, state="resolved", created="2026-03-01T00:00:00Z", resolved="2026-03-07T00:00:00Z",
        ))]
        open_code = [CodeAlert.from_api(code_alert_record(2))]
        metrics = compute_repository_metrics(code + open_code, secret)
        assert metrics.mean_time_to_resolve_days == pytest.approx(4.0)
        assert metrics.open_alerts == 1

    def test_dismissed_dependency_counts_for_mttr(self):
        summary = make_summary("svc", dependency=[
            dependency_node("D1", created="2026-03-01T00:00:00Z", dismissed="2026-03-11T00:00:00Z"),
        ])
        # Still OPEN by state, so it counts as open; MTTR uses the timestamp
        assert summary.metrics.open_alerts == 1
        assert summary.metrics.mean_time_to_resolve_days == pytest.approx(10.0)
