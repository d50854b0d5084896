"""
Fleet Security Audit Engine — Main Orchestrator

Usage:
    python -m fleet_audit --org acme                          # whole organization
    python -m fleet_audit --org acme --scope critical         # topic/name heuristic
    python -m fleet_audit --org acme --scope custom --repos api,web
    python -m fleet_audit --config audit.json --output reports/audit.json

The token is read from --token, GH_PAT_READ_ORG or GITHUB_TOKEN and must be
able to read security alerts. This tool is STRICTLY READ-ONLY.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx

from . import __version__
from .aggregator import AuditAggregate
from .auditor import run_audit
from .auth.authenticator import Authenticator, AuthenticationError
from .config import AuditConfig, ConfigurationError, VALID_SCOPES, split_repository_list
from .github.client import GitHubClient, GitHubAPIError
from .reporting import export_json
from .safety.guardian import SafetyGuardian


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="fleet_audit",
        description="Fleet Security Audit Engine (READ-ONLY)",
    )
    parser.add_argument(
        "--org", "-o",
        type=str,
        default=None,
        help="GitHub organization to audit (default: $GITHUB_ORG)",
    )
    parser.add_argument(
        "--scope", "-s",
        choices=VALID_SCOPES,
        default=None,
        help="Audit scope (default: all)",
    )
    parser.add_argument(
        "--repos", "-r",
        type=str,
        default=None,
        help="Specific repositories to audit (comma-separated)",
    )
    parser.add_argument(
        "--token",
        type=str,
        default=None,
        help="GitHub token (default: $GH_PAT_READ_ORG)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output file for audit results (default: reports/audit-<date>.json)",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Path to JSON configuration file",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Repositories audited in parallel (default: 1)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AuditConfig:
    """Build the run configuration: config file, then environment, then CLI flags."""
    if args.config and args.config.exists():
        config = AuditConfig.from_file(args.config)
    else:
        config = AuditConfig()
    config.apply_environment()

    # CLI overrides
    if args.org:
        config.organization = args.org
    if args.token:
        config.token = args.token
    if args.scope:
        config.scope = args.scope
    if args.repos:
        config.repositories = split_repository_list(args.repos)
    if args.output:
        config.output = args.output
    if args.concurrency is not None:
        config.concurrency = args.concurrency
    if args.verbose:
        config.verbose = True

    return config.validate()


def print_summary(aggregate: AuditAggregate):
    summary = aggregate.summary
    print(f"  Total Repositories:   {summary.total_repositories}")
    print(f"  Scanned Repositories: {summary.scanned_repositories}")
    print(f"  Total Alerts:         {summary.total_alerts}")
    print()
    print(f"  🚨 Critical: {summary.critical_alerts}")
    print(f"  ⚠️  High:     {summary.high_alerts}")
    print(f"  ℹ️  Medium:   {summary.medium_alerts}")
    print(f"  📝 Low:      {summary.low_alerts}")
    print()
    print("  Alert Types:")
    print(f"    Code Scanning:   {summary.code_alerts}")
    print(f"    Secret Scanning: {summary.secret_alerts}")
    print(f"    Dependencies:    {summary.dependency_alerts}")

    if aggregate.compliance:
        print("\n  ✅ Compliance Scores:")
        print(f"    Overall: {aggregate.compliance.overall_score:.1f}%")
        for name, framework in aggregate.compliance.frameworks.items():
            print(f"    {name}: {framework.score:.1f}%")


async def main_async(argv: list[str] | None = None) -> int:
    """Async entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    print("=" * 70)
    print(f" Fleet Security Audit Engine v{__version__}")
    print(" Mode: READ-ONLY — No repository settings will be modified")
    print("=" * 70)

    # --- Configuration ---
    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"\n❌ {e}")
        return 1

    print(f"\n🏢 Organization: {config.organization}")
    print(f"🎯 Scope:        {config.scope}")
    print(f"📂 Output:       {config.output}")

    guardian = SafetyGuardian()
    async with GitHubClient(
        token=config.token,
        guardian=guardian,
        api_url=config.api_url,
        graphql_url=config.graphql_url,
    ) as client:

        # --- Authentication ---
        print("\n🔐 Verifying credentials...")
        try:
            await Authenticator(client, config.organization).verify()
        except AuthenticationError as e:
            print(f"❌ {e}")
            return 1
        print("✅ Organization resolved.")

        # --- Audit Phase ---
        print("\n" + "=" * 70)
        print(" PHASE 1: REPOSITORY AUDIT")
        print("=" * 70 + "\n")
        try:
            aggregate = await run_audit(client, config)
        except (GitHubAPIError, httpx.TransportError) as e:
            print(f"❌ Could not list repositories: {e}")
            return 1
        stats = client.get_stats()

    # --- Reporting Phase ---
    print("\n" + "=" * 70)
    print(" PHASE 2: REPORT")
    print("=" * 70 + "\n")
    path = export_json(aggregate, config.output)
    print(f"  📄 JSON: {path.resolve()}")
    print(f"  🌐 API requests: {stats['total_requests']} ({stats['failed_requests']} failed)")
    print(f"  🛡  Safety:       {guardian.get_audit_record()['status']}\n")

    print_summary(aggregate)
    print()
    return 0


def main():
    """Synchronous entry point for `python -m fleet_audit`."""
    sys.exit(asyncio.run(main_async()))


if __name__ == "__main__":
    main()
