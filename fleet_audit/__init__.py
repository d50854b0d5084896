"""
Fleet Security Audit Engine
===========================
A read-only audit of security posture across an organization's repositories.
Collects code-scanning, secret-scanning and Dependabot alerts, computes
per-repository metrics and scores the fleet against OWASP, NIST CSF and
ISO 27001.
"""

from .config import SCHEMA_VERSION

__version__ = SCHEMA_VERSION
__mode__ = "READ-ONLY"
