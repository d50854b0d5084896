"""
Safety Guardian — Keeps the auditor strictly read-only.
Every outbound request is validated; the only POST allowed is a GraphQL query.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger("fleet_audit.safety")

READ_METHODS = {"GET", "HEAD", "OPTIONS"}

# GraphQL reads are sent as POST
SAFE_POST_ENDPOINTS = [
    re.compile(r"/graphql$"),
]

# GraphQL documents that change state
GRAPHQL_MUTATION = re.compile(r"^\s*mutation\b", re.IGNORECASE)


class SafetyViolation(Exception):
    """Raised when a write operation is attempted."""
    pass


class SafetyGuardian:
    """
    Validates every outbound HTTP request to ensure read-only operation.
    Keeps a record of checks and violations for the run.
    """

    def __init__(self):
        self.violations: list[dict] = []
        self.checks_performed: int = 0

    def validate_request(self, method: str, url: str, body: Optional[dict] = None) -> bool:
        """
        Validate that a request is read-only.
        Returns True if safe, raises SafetyViolation if not.
        """
        self.checks_performed += 1
        method_upper = method.upper()

        if method_upper in READ_METHODS:
            return True

        if method_upper == "POST" and any(p.search(url) for p in SAFE_POST_ENDPOINTS):
            query = (body or {}).get("query", "")
            if GRAPHQL_MUTATION.search(query):
                self._record_violation(method_upper, url, "GraphQL mutation blocked")
                raise SafetyViolation(f"SAFETY VIOLATION: GraphQL mutation blocked: {url}")
            return True

        self._record_violation(method_upper, url, "Write HTTP method blocked")
        raise SafetyViolation(f"SAFETY VIOLATION: Write method blocked: {method_upper} {url}")

    def _record_violation(self, method: str, url: str, reason: str):
        self.violations.append({
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "method": method,
            "url": url,
            "reason": reason,
        })
        logger.critical(f"SAFETY VIOLATION: {reason} — {method} {url}")

    def get_audit_record(self) -> dict:
        return {
            "mode": "READ-ONLY",
            "checks_performed": self.checks_performed,
            "violations_detected": len(self.violations),
            "status": "CLEAN" if not self.violations else "VIOLATIONS_DETECTED",
        }
