"""Shared fixtures: an in-memory GitHub API served through httpx.MockTransport."""

import json

import httpx
import pytest

from fleet_audit.github.client import GitHubClient
from fleet_audit.models import (
    CodeAlert,
    DependencyAlert,
    FeatureCheck,
    FeatureState,
    RepositoryIdentity,
    RepositorySummary,
    SecretAlert,
    SecurityFeatureStatus,
)
from fleet_audit.scoring import compute_repository_metrics

ORG = "acme"


class FakeGitHub:
    """Routes REST paths and GraphQL queries to canned responses."""

    def __init__(self):
        self.routes = {}
        self.graphql_handler = None
        self.requests = []

    def add(self, path, body=None, status=200):
        self.routes[path] = (status, body)

    def add_handler(self, path, handler):
        self.routes[path] = handler

    def add_paged(self, path, items, status_after=None, fail_on_page=None):
        """Serve `items` with page/per_page; optionally fail on one page number."""
        def handler(request):
            page = int(request.url.params.get("page", 1))
            per_page = int(request.url.params.get("per_page", 30))
            if fail_on_page is not None and page == fail_on_page:
                return httpx.Response(status_after or 500, json={"message": "Server Error"})
            start = (page - 1) * per_page
            return httpx.Response(200, json=items[start:start + per_page])
        self.routes[path] = handler

    def handle(self, request):
        self.requests.append(request)
        path = request.url.path
        if path == "/graphql":
            if self.graphql_handler is None:
                return httpx.Response(404, json={"message": "Not Found"})
            return self.graphql_handler(json.loads(request.content))
        route = self.routes.get(path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        status, body = route
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def paths(self):
        return [r.url.path for r in self.requests]

    def client(self, **kwargs):
        return GitHubClient(token="test-token", transport=httpx.MockTransport(self.handle), **kwargs)


@pytest.fixture
def fake():
    return FakeGitHub()


def repo_record(name, topics=(), private=False, default_branch="main",
                vulnerability_alerts=False, push_protection=False):
    return {
        "name": name,
        "full_name": f"{ORG}/{name}",
        "html_url": f"https://github.com/{ORG}/{name}",
        "private": private,
        "default_branch": default_branch,
        "updated_at": "2026-09-01T12:00:00Z",
        "topics": list(topics),
        "has_vulnerability_alerts": vulnerability_alerts,
        "security_and_analysis": {
            "secret_scanning_push_protection": {
                "status": "enabled" if push_protection else "disabled",
            },
            "dependabot_security_updates": {"status": "disabled"},
        },
    }


def code_alert_record(number, severity="high", rule="js/sql-injection", state="open",
                      created="2026-09-01T00:00:00Z", fixed=None):
    return {
        "number": number,
        "state": state,
        "created_at": created,
        "fixed_at": fixed,
        "dismissed_at": None,
        "rule": {
            "id": rule,
            "security_severity_level": severity,
            "description": f"Rule {rule}",
        },
        "most_recent_instance": {"location": {"path": "src/app.js"}},
        "tool": {"name": "CodeQL"},
    }


def secret_alert_record(number, state="open", created="2026-09-01T00:00:00Z", resolved=None):
    return {
        "number": number,
        "state": state,
        "secret_type": "github_personal_access_token",
        "secret_type_display_name": "GitHub Personal Access Token",
        "created_at": created,
        "resolved_at": resolved,
        "resolved_by": None,
        "push_protection_bypassed": False,
    }


def dependency_node(alert_id, severity="HIGH", created="2026-09-01T00:00:00Z", dismissed=None):
    return {
        "id": alert_id,
        "state": "OPEN",
        "createdAt": created,
        "dismissedAt": dismissed,
        "fixedAt": None,
        "securityVulnerability": {
            "severity": severity,
            "package": {"name": "lodash", "ecosystem": "NPM"},
            "advisory": {"summary": "Prototype pollution", "cvss": {"score": 7.4}},
        },
    }


def graphql_pages(pages_by_repo):
    """GraphQL handler serving vulnerabilityAlerts pages keyed by repo name and cursor."""
    def handler(body):
        variables = body["variables"]
        pages = pages_by_repo.get(variables["repo"], [[]])
        index = int(variables["cursor"] or 0)
        has_next = index + 1 < len(pages)
        return httpx.Response(200, json={
            "data": {
                "repository": {
                    "vulnerabilityAlerts": {
                        "nodes": pages[index],
                        "pageInfo": {
                            "hasNextPage": has_next,
                            "endCursor": str(index + 1) if has_next else None,
                        },
                    }
                }
            }
        })
    return handler


def make_features(code=False, secret=False, dependabot=False, branch=False, push=False):
    def check(on):
        return FeatureCheck(FeatureState.ENABLED if on else FeatureState.DISABLED)

    return SecurityFeatureStatus(
        code_scanning=check(code),
        secret_scanning=check(secret),
        dependency_alerts=check(dependabot),
        branch_protection=check(branch),
        push_protection=push,
    )


def make_summary(name, features=None, code=(), secret=(), dependency=()):
    """Build a RepositorySummary from raw API records, computing its metrics."""
    code_alerts = tuple(CodeAlert.from_api(r) for r in code)
    secret_alerts = tuple(SecretAlert.from_api(r) for r in secret)
    dependency_alerts = tuple(DependencyAlert.from_api(n) for n in dependency)
    return RepositorySummary(
        repository=RepositoryIdentity.from_api(repo_record(name)),
        features=features or make_features(),
        code_alerts=code_alerts,
        secret_alerts=secret_alerts,
        dependency_alerts=dependency_alerts,
        metrics=compute_repository_metrics(code_alerts, secret_alerts, dependency_alerts),
    )
