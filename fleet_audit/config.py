"""
Configuration module for the Fleet Security Audit engine.
Defines API endpoints, tunable limits, scope heuristics and the run configuration.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class ConfigurationError(Exception):
    """Raised when the audit cannot start because required settings are missing."""
    pass


# ─── GitHub API Settings ─────────────────────────────────────────────────────

GITHUB_API_URL = "https://api.github.com"
GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
GITHUB_API_VERSION = "2022-11-28"

# Concurrency / timeouts
MAX_CONCURRENT_REQUESTS = 4       # Parallel requests to the API
REQUEST_TIMEOUT_SECONDS = 60.0
CONNECT_TIMEOUT_SECONDS = 30.0

# Pagination
DEFAULT_PAGE_SIZE = 100           # GitHub per_page / first maximum
MAX_PAGES_PER_ENDPOINT = 1000     # Safety cap on pagination loops


# ─── Audit Scope ────────────────────────────────────────────────────────────

SCOPE_ALL = "all"
SCOPE_CRITICAL = "critical"
SCOPE_CUSTOM = "custom"
VALID_SCOPES = (SCOPE_ALL, SCOPE_CRITICAL, SCOPE_CUSTOM)

# "critical" scope heuristic
CRITICAL_TOPICS = ("critical", "production")
CRITICAL_NAME_MARKERS = ("api", "auth")


# ─── Output ─────────────────────────────────────────────────────────────────

SCHEMA_VERSION = "1.0.0"

# Environment variable names
ENV_ORGANIZATION = "GITHUB_ORG"
ENV_TOKEN = "GH_PAT_READ_ORG"
ENV_TOKEN_FALLBACK = "GITHUB_TOKEN"
ENV_SCOPE = "AUDIT_SCOPE"
ENV_REPOSITORIES = "AUDIT_REPOS"


def default_output_path() -> Path:
    return Path("reports") / f"audit-{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.json"


def split_repository_list(value: Optional[str]) -> tuple[str, ...]:
    """Split a comma-separated repository string, dropping blanks."""
    if not value:
        return ()
    return tuple(name.strip() for name in value.split(",") if name.strip())


# ─── Master Configuration ───────────────────────────────────────────────────

@dataclass
class AuditConfig:
    """Top-level configuration for one audit run."""
    organization: str = ""
    scope: str = SCOPE_ALL
    repositories: tuple[str, ...] = ()
    token: str = field(default="", repr=False)
    output: Path = field(default_factory=default_output_path)
    concurrency: int = 1              # Repositories audited in parallel
    page_size: int = DEFAULT_PAGE_SIZE
    api_url: str = GITHUB_API_URL
    graphql_url: str = GITHUB_GRAPHQL_URL
    verbose: bool = False

    @classmethod
    def from_file(cls, path: str | Path) -> "AuditConfig":
        """Load configuration from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        config = cls()
        for key, value in data.items():
            if not hasattr(config, key):
                continue
            if key == "repositories":
                value = split_repository_list(value) if isinstance(value, str) else tuple(value)
            elif key == "output":
                value = Path(value)
            setattr(config, key, value)
        return config

    def apply_environment(self, environ: Optional[dict] = None) -> "AuditConfig":
        """Override values with those set in the environment; unset variables are ignored."""
        env = os.environ if environ is None else environ
        if env.get(ENV_ORGANIZATION):
            self.organization = env[ENV_ORGANIZATION]
        token = env.get(ENV_TOKEN) or env.get(ENV_TOKEN_FALLBACK)
        if token:
            self.token = token
        if env.get(ENV_SCOPE):
            self.scope = env[ENV_SCOPE]
        repositories = split_repository_list(env.get(ENV_REPOSITORIES))
        if repositories:
            self.repositories = repositories
        return self

    def validate(self) -> "AuditConfig":
        """Raise ConfigurationError for settings that make the run impossible."""
        if not self.organization:
            raise ConfigurationError(
                f"Organization name is required (--org or {ENV_ORGANIZATION})"
            )
        if not self.token:
            raise ConfigurationError(
                f"GitHub token is required (--token or {ENV_TOKEN})"
            )
        if self.scope not in VALID_SCOPES:
            raise ConfigurationError(
                f"Unknown scope '{self.scope}'; expected one of {', '.join(VALID_SCOPES)}"
            )
        if self.scope == SCOPE_CUSTOM and not self.repositories:
            raise ConfigurationError("Scope 'custom' requires an explicit repository list")
        if self.concurrency < 1:
            raise ConfigurationError("Concurrency must be at least 1")
        if not 1 <= self.page_size <= DEFAULT_PAGE_SIZE:
            raise ConfigurationError(f"Page size must be between 1 and {DEFAULT_PAGE_SIZE}")
        return self
