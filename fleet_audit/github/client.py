"""
Async GitHub API client with offset and cursor pagination and safety enforcement.
REST v3 serves repositories, features, code and secret alerts; GraphQL v4 serves
dependency alerts.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Optional

import httpx

from ..config import (
    GITHUB_API_URL,
    GITHUB_GRAPHQL_URL,
    GITHUB_API_VERSION,
    DEFAULT_PAGE_SIZE,
    MAX_PAGES_PER_ENDPOINT,
    MAX_CONCURRENT_REQUESTS,
    REQUEST_TIMEOUT_SECONDS,
    CONNECT_TIMEOUT_SECONDS,
)
from ..safety.guardian import SafetyGuardian

logger = logging.getLogger("fleet_audit.github")


class GitHubAPIError(Exception):
    """Raised when the API answers with a non-success status."""
    def __init__(self, status_code: int, message: str, url: str):
        self.status_code = status_code
        self.url = url
        self.message = message
        super().__init__(f"GitHub API Error {status_code} for {url}: {message}")


class GraphQLError(GitHubAPIError):
    """Raised when a GraphQL response carries an `errors` list."""
    def __init__(self, errors: list[dict], url: str):
        self.errors = errors
        message = "; ".join(e.get("message", "Unknown error") for e in errors) or "Unknown error"
        super().__init__(200, message, url)


@dataclass(frozen=True)
class Page:
    """One page of results plus the position that produced it."""
    items: list
    position: Any                # page number or GraphQL cursor
    next_position: Any = None    # None when there are no more pages


class GitHubClient:
    """
    Async GitHub API client.
    Features:
      - Safety-validated requests (read-only enforcement)
      - Offset pagination (page/per_page), ends on a short page
      - Cursor pagination for GraphQL connections (pageInfo.hasNextPage)
      - Concurrent request semaphore
      - No automatic retries: a failed page ends its pagination loop
    """

    def __init__(
        self,
        token: str,
        guardian: Optional[SafetyGuardian] = None,
        api_url: str = GITHUB_API_URL,
        graphql_url: str = GITHUB_GRAPHQL_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.guardian = guardian or SafetyGuardian()
        self.api_url = api_url.rstrip("/")
        self.graphql_url = graphql_url
        self._transport = transport
        self._semaphore = asyncio.Semaphore(MAX_CONCURRENT_REQUESTS)
        self._request_count = 0
        self._error_count = 0
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS, connect=CONNECT_TIMEOUT_SECONDS),
            limits=httpx.Limits(
                max_connections=MAX_CONCURRENT_REQUESTS * 2,
                max_keepalive_connections=MAX_CONCURRENT_REQUESTS,
            ),
            headers={
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    def _build_url(self, endpoint: str) -> str:
        """Build a full REST URL from a relative endpoint."""
        if endpoint.startswith("http"):
            return endpoint
        return f"{self.api_url}/{endpoint.lstrip('/')}"

    async def get(self, endpoint: str, params: Optional[dict] = None) -> Any:
        """Execute a single GET and return the decoded JSON body."""
        url = self._build_url(endpoint)
        self.guardian.validate_request("GET", url)

        async with self._semaphore:
            response = await self._execute_raw("GET", url, params=params)
        return self._decode(response, url)

    async def iter_pages(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        per_page: int = DEFAULT_PAGE_SIZE,
        start_page: int = 1,
    ) -> AsyncGenerator[Page, None]:
        """
        Yield offset-paginated pages lazily, starting at `start_page`.
        Stops after the first page holding fewer than `per_page` items.
        An error on any page propagates and ends the sequence.
        """
        page_number = start_page
        pages = 0

        while pages < MAX_PAGES_PER_ENDPOINT:
            query = dict(params or {})
            query.update({"per_page": per_page, "page": page_number})
            items = await self.get(endpoint, params=query)
            if not isinstance(items, list):
                raise GitHubAPIError(200, "Expected a list response", self._build_url(endpoint))

            has_more = len(items) == per_page
            yield Page(items=items, position=page_number,
                       next_position=page_number + 1 if has_more else None)
            pages += 1
            if not has_more:
                return
            page_number += 1

        logger.warning(
            f"Pagination safety cap reached ({MAX_PAGES_PER_ENDPOINT} pages) "
            f"for endpoint: {endpoint}"
        )

    async def get_all_pages(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> list:
        """Fetch every offset page of an endpoint into one list."""
        items = []
        async for page in self.iter_pages(endpoint, params, per_page=per_page):
            items.extend(page.items)
        return items

    async def graphql(self, query: str, variables: Optional[dict] = None) -> dict:
        """Execute a GraphQL query and return its `data` object."""
        body = {"query": query, "variables": variables or {}}
        self.guardian.validate_request("POST", self.graphql_url, body)

        async with self._semaphore:
            response = await self._execute_raw("POST", self.graphql_url, json_body=body)
        payload = self._decode(response, self.graphql_url) or {}

        if payload.get("errors"):
            self._error_count += 1
            raise GraphQLError(payload["errors"], self.graphql_url)
        return payload.get("data") or {}

    async def iter_connection_pages(
        self,
        query: str,
        variables: dict,
        connection_path: tuple[str, ...],
        cursor: Optional[str] = None,
    ) -> AsyncGenerator[Page, None]:
        """
        Yield the nodes of a GraphQL connection page by page.
        The query must accept a `$cursor` variable and select
        `nodes` and `pageInfo { hasNextPage endCursor }` on the connection.
        A missing connection (e.g. repository not visible) ends the sequence.
        """
        pages = 0

        while pages < MAX_PAGES_PER_ENDPOINT:
            data = await self.graphql(query, {**variables, "cursor": cursor})
            connection = data
            for key in connection_path:
                connection = connection.get(key) if isinstance(connection, dict) else None
            if not isinstance(connection, dict) or connection.get("nodes") is None:
                return

            page_info = connection.get("pageInfo") or {}
            next_cursor = page_info.get("endCursor") if page_info.get("hasNextPage") else None
            yield Page(items=connection["nodes"], position=cursor, next_position=next_cursor)
            pages += 1
            if next_cursor is None:
                return
            cursor = next_cursor

        logger.warning(
            f"Pagination safety cap reached ({MAX_PAGES_PER_ENDPOINT} pages) "
            f"for GraphQL connection: {'.'.join(connection_path)}"
        )

    def _decode(self, response: httpx.Response, url: str) -> Any:
        """Return the JSON body of a success response or raise GitHubAPIError."""
        self._request_count += 1

        if response.status_code == 204 or (
            200 <= response.status_code < 300 and not response.content.strip()
        ):
            return {}

        if 200 <= response.status_code < 300:
            return response.json()

        self._error_count += 1
        try:
            error_msg = response.json().get("message", response.text[:200])
        except ValueError:
            error_msg = response.text[:200]
        if response.status_code == 404:
            logger.debug(f"404 Not Found: {url}")
        raise GitHubAPIError(response.status_code, error_msg, url)

    async def _execute_raw(
        self,
        method: str,
        url: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
    ) -> httpx.Response:
        """Execute raw HTTP request."""
        if not self._client:
            raise RuntimeError("GitHubClient not initialized. Use 'async with' context.")

        if method == "GET":
            return await self._client.get(url, params=params)
        return await self._client.post(url, json=json_body, params=params)

    def get_stats(self) -> dict:
        """Return client statistics."""
        return {
            "total_requests": self._request_count,
            "failed_requests": self._error_count,
            "safety_checks": self.guardian.checks_performed,
        }
