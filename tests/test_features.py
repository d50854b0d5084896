"""Tests for the per-repository feature probes."""

import httpx
import pytest

from conftest import repo_record
from fleet_audit.collectors import FeatureProber
from fleet_audit.github.client import GitHubClient
from fleet_audit.models import FeatureState, RepositoryIdentity

WEB = RepositoryIdentity.from_api(repo_record("web"))


def all_enabled(fake):
    fake.add("/repos/acme/web/code-scanning/analyses", [{"id": 9, "created_at": "2026-10-01T08:00:00Z"}])
    fake.add("/repos/acme/web/secret-scanning/alerts", [])
    fake.add("/repos/acme/web", repo_record("web", vulnerability_alerts=True, push_protection=True))
    fake.add("/repos/acme/web/branches/main/protection", {
        "url": "https://api.github.com/repos/acme/web/branches/main/protection",
        "required_pull_request_reviews": {"required_approving_review_count": 1},
        "enforce_admins": {"enabled": True},
        "required_status_checks": None,
    })


class TestFeatureProber:

    @pytest.mark.asyncio
    async def test_everything_enabled(self, fake):
        all_enabled(fake)
        async with fake.client() as client:
            status = await FeatureProber(client, "acme").probe(WEB)
        assert status.code_scanning.enabled
        assert status.code_scanning_last_run == "2026-10-01T08:00:00Z"
        assert status.secret_scanning.state is FeatureState.ENABLED
        assert status.dependency_alerts.enabled
        assert status.push_protection is True
        assert status.branch_protection.enabled
        assert status.protection_rules == ("enforce_admins", "required_pull_request_reviews")

    @pytest.mark.asyncio
    async def test_nothing_configured(self, fake):
        fake.add("/repos/acme/web/code-scanning/analyses", [])
        fake.add("/repos/acme/web", repo_record("web"))
        async with fake.client() as client:
            status = await FeatureProber(client, "acme").probe(WEB)
        assert status.code_scanning.state is FeatureState.DISABLED
        assert status.secret_scanning.state is FeatureState.DISABLED
        assert status.dependency_alerts.state is FeatureState.DISABLED
        assert status.branch_protection.state is FeatureState.DISABLED
        assert status.push_protection is False
        assert all(not entry["enabled"] for entry in status.to_dict().values())

    @pytest.mark.asyncio
    async def test_secret_scanning_permission_error_reads_as_enabled(self, fake):
        fake.add("/repos/acme/web", repo_record("web"))
        fake.add("/repos/acme/web/secret-scanning/alerts", {"message": "Must have admin rights"}, status=403)
        async with fake.client() as client:
            status = await FeatureProber(client, "acme").probe(WEB)
        assert status.secret_scanning.state is FeatureState.UNKNOWN
        assert status.secret_scanning.enabled is True
        assert "403" in status.secret_scanning.error

    @pytest.mark.asyncio
    async def test_branch_protection_access_denied_reads_as_disabled(self, fake):
        fake.add("/repos/acme/web", repo_record("web"))
        fake.add("/repos/acme/web/branches/main/protection", {"message": "Forbidden"}, status=403)
        async with fake.client() as client:
            status = await FeatureProber(client, "acme").probe(WEB)
        assert status.branch_protection.state is FeatureState.UNKNOWN
        assert status.branch_protection.enabled is False

    @pytest.mark.asyncio
    async def test_uses_default_branch(self, fake):
        repo = RepositoryIdentity.from_api(repo_record("legacy", default_branch="master"))
        fake.add("/repos/acme/legacy", repo_record("legacy", default_branch="master"))
        fake.add("/repos/acme/legacy/branches/master/protection", {"enforce_admins": {"enabled": True}})
        async with fake.client() as client:
            status = await FeatureProber(client, "acme").probe(repo)
        assert status.branch_protection.enabled

    @pytest.mark.asyncio
    async def test_network_failure_keeps_defaults_and_annotates(self, fake):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        fake.add_handler("/repos/acme/web", unreachable)
        fake.add("/repos/acme/web/code-scanning/analyses", [{"created_at": "2026-10-01T08:00:00Z"}])
        async with fake.client() as client:
            status = await FeatureProber(client, "acme").probe(WEB)
        assert status.dependency_alerts.enabled is False
        assert "ConnectError" in status.dependency_alerts.error
        assert status.push_protection is False
        # Other probes are unaffected
        assert status.code_scanning.enabled

    @pytest.mark.asyncio
    async def test_total_network_failure_does_not_raise(self):
        def down(request):
            raise httpx.ConnectError("network down", request=request)

        async with GitHubClient(token="t", transport=httpx.MockTransport(down)) as client:
            status = await FeatureProber(client, "acme").probe(WEB)
        data = status.to_dict()
        assert not any(entry["enabled"] for entry in data.values())
        assert all("error" in entry for entry in data.values())
