"""
Authentication module — Verifies the access token and resolves the organization.
Both checks run before any repository is processed; failure aborts the run.
"""

from __future__ import annotations

import logging

import httpx

from ..github.client import GitHubClient, GitHubAPIError

logger = logging.getLogger("fleet_audit.auth")


class AuthenticationError(Exception):
    """Raised when the credential is rejected or the organization cannot be resolved."""
    pass


class Authenticator:
    """
    Validates the configured token against the target organization.
    A token that cannot read the organization record cannot audit it either.
    """

    def __init__(self, client: GitHubClient, organization: str):
        self.client = client
        self.organization = organization

    async def verify(self) -> dict:
        """Return the organization record, or raise AuthenticationError."""
        if not self.client.token:
            raise AuthenticationError("No GitHub token provided.")

        logger.info(f"Resolving organization '{self.organization}'...")
        try:
            org = await self.client.get(f"orgs/{self.organization}")
        except GitHubAPIError as e:
            if e.status_code == 401:
                raise AuthenticationError(
                    f"GitHub rejected the token (401): {e.message}"
                ) from e
            if e.status_code == 404:
                raise AuthenticationError(
                    f"Organization '{self.organization}' not found or not visible to this token"
                ) from e
            raise AuthenticationError(
                f"Could not resolve organization '{self.organization}': {e}"
            ) from e
        except httpx.TransportError as e:
            raise AuthenticationError(f"Could not reach GitHub: {e}") from e

        logger.info(f"Organization resolved: {org.get('login', self.organization)}")
        return org
