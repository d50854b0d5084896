"""
Feature Prober
Determines which security capabilities are switched on for one repository:
code scanning, secret scanning (+ push protection), Dependabot alerts and
branch protection on the default branch.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..github.client import GitHubClient, GitHubAPIError
from ..models import FeatureCheck, FeatureState, RepositoryIdentity, SecurityFeatureStatus

logger = logging.getLogger("fleet_audit.collectors.features")


def _setting_enabled(record: dict, name: str) -> bool:
    """Read a `security_and_analysis` toggle from a repository record."""
    settings = record.get("security_and_analysis") or {}
    return (settings.get(name) or {}).get("status") == "enabled"


class FeatureProber:
    """Runs the four capability probes for a repository independently."""

    def __init__(self, client: GitHubClient, organization: str):
        self.client = client
        self.organization = organization

    async def probe(self, repo: RepositoryIdentity) -> SecurityFeatureStatus:
        """
        Probe every capability. Never raises: a probe that fails keeps its
        default (disabled) and carries the error on its FeatureCheck.
        """
        outcomes = await asyncio.gather(
            self._probe_code_scanning(repo),
            self._probe_secret_scanning(repo),
            self._probe_repository_settings(repo),
            self._probe_branch_protection(repo),
            return_exceptions=True,
        )
        labels = ("code scanning", "secret scanning", "repository settings", "branch protection")
        for label, outcome in zip(labels, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(
                    f"Could not probe {label} for {repo.name}: {type(outcome).__name__}: {outcome}"
                )

        code, secret, settings, branch = (
            None if isinstance(o, BaseException) else o for o in outcomes
        )

        status = SecurityFeatureStatus(
            code_scanning=code[0] if code else _failed(outcomes[0]),
            code_scanning_last_run=code[1] if code else None,
            secret_scanning=secret if secret else _failed(outcomes[1]),
            dependency_alerts=settings[0] if settings else _failed(outcomes[2]),
            push_protection=settings[1] if settings else False,
            security_updates=settings[2] if settings else False,
            branch_protection=branch[0] if branch else _failed(outcomes[3]),
            protection_rules=branch[1] if branch else (),
        )
        return status

    async def _probe_code_scanning(self, repo: RepositoryIdentity) -> tuple[FeatureCheck, Optional[str]]:
        """Enabled iff at least one analysis exists; records the latest run."""
        try:
            analyses = await self.client.get(
                f"repos/{self.organization}/{repo.name}/code-scanning/analyses",
                params={"per_page": 1},
            )
        except GitHubAPIError as e:
            if e.status_code == 404:
                return FeatureCheck(FeatureState.DISABLED), None
            return FeatureCheck(FeatureState.UNKNOWN, error=str(e)), None

        if isinstance(analyses, list) and analyses:
            return FeatureCheck(FeatureState.ENABLED), analyses[0].get("created_at")
        return FeatureCheck(FeatureState.DISABLED), None

    async def _probe_secret_scanning(self, repo: RepositoryIdentity) -> FeatureCheck:
        """
        Any data (even empty) means access is granted: enabled.
        404 means disabled. Other error responses are ambiguous (usually
        permissions) and count as enabled to avoid false negatives.
        """
        try:
            await self.client.get(
                f"repos/{self.organization}/{repo.name}/secret-scanning/alerts",
                params={"per_page": 1},
            )
        except GitHubAPIError as e:
            if e.status_code == 404:
                return FeatureCheck(FeatureState.DISABLED)
            return FeatureCheck(FeatureState.UNKNOWN, error=str(e), assume_enabled_on_unknown=True)
        return FeatureCheck(FeatureState.ENABLED)

    async def _probe_repository_settings(self, repo: RepositoryIdentity) -> tuple[FeatureCheck, bool, bool]:
        """Dependabot alerts flag, push protection and security updates from the repo record."""
        record = await self.client.get(f"repos/{self.organization}/{repo.name}")
        alerts_enabled = bool(record.get("has_vulnerability_alerts", False))
        return (
            FeatureCheck(FeatureState.ENABLED if alerts_enabled else FeatureState.DISABLED),
            _setting_enabled(record, "secret_scanning_push_protection"),
            _setting_enabled(record, "dependabot_security_updates"),
        )

    async def _probe_branch_protection(self, repo: RepositoryIdentity) -> tuple[FeatureCheck, tuple[str, ...]]:
        """Protection on the default branch; any failure reads as disabled."""
        try:
            protection = await self.client.get(
                f"repos/{self.organization}/{repo.name}/branches/{repo.default_branch}/protection"
            )
        except GitHubAPIError as e:
            if e.status_code == 404:
                return FeatureCheck(FeatureState.DISABLED), ()
            return FeatureCheck(FeatureState.UNKNOWN, error=str(e)), ()

        rules = tuple(sorted(k for k, v in protection.items() if k != "url" and v))
        return FeatureCheck(FeatureState.ENABLED), rules


def _failed(error: BaseException) -> FeatureCheck:
    return FeatureCheck(FeatureState.UNKNOWN, error=f"{type(error).__name__}: {error}")
