"""GraphQL client for the Sonic staking API with bounded retries.

Every query is a JSON POST of ``{"query": ..., "variables": ...}``. An attempt
fails on a transport error, a non-2xx status, or a response carrying a
non-empty top-level ``errors`` list. Failed attempts are retried with a plain
exponential backoff (2s, then 4s) and the last error is raised once the
attempt budget is spent.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx
import structlog

from sonic_staking.core.config import get_settings

logger = structlog.get_logger()


class GraphQLClientError(Exception):
    """Base class for query failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class GraphQLTransportError(GraphQLClientError):
    """Network, connection or timeout failure before a response arrived."""
    pass


class GraphQLStatusError(GraphQLClientError):
    """Upstream answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"GraphQL endpoint returned {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class GraphQLDataError(GraphQLClientError):
    """Upstream answered 2xx but reported errors (or an unusable payload)."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(f"GraphQL error: {message}")
        self.errors = errors or []


class GraphQLClient:
    """Async GraphQL client with bounded retries and exponential backoff."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        max_attempts: Optional[int] = None,
        backoff_base_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.endpoint = endpoint or settings.graphql_endpoint
        self.max_attempts = max_attempts or settings.graphql_max_attempts
        self.backoff_base_seconds = backoff_base_seconds or settings.graphql_backoff_base_seconds
        self._timeout = httpx.Timeout(
            connect=settings.graphql_connect_timeout_seconds,
            read=settings.graphql_read_timeout_seconds,
            write=10.0,
            pool=5.0,
        )
        self._transport = transport
        self._metrics_enabled = settings.enable_api_metrics

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _calculate_backoff(self, attempt: int) -> float:
        """Delay after the given 1-based attempt: base ** attempt seconds."""
        return self.backoff_base_seconds ** attempt

    async def _post(self, body: Dict[str, Any]) -> Any:
        """Run a single attempt and return the payload's ``data`` field."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            raise GraphQLTransportError(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise GraphQLStatusError(response.status_code, response.text[:500])

        try:
            payload = response.json()
        except ValueError as e:
            raise GraphQLDataError(f"invalid JSON response ({e})") from e

        if not isinstance(payload, dict):
            raise GraphQLDataError(f"unexpected payload type {type(payload).__name__}")

        errors = payload.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else errors
            message = first.get("message") if isinstance(first, dict) else str(first)
            raise GraphQLDataError(message or "unknown error", errors if isinstance(errors, list) else None)

        return payload.get("data")

    async def _record(
        self,
        query_name: str,
        started: float,
        success: bool,
        attempts: int,
        error: Optional[GraphQLClientError] = None,
    ) -> None:
        if not self._metrics_enabled:
            return
        from sonic_staking.core.metrics import get_metrics

        await get_metrics().record_query(
            query_name=query_name,
            latency_ms=(time.monotonic() - started) * 1000,
            success=success,
            status_code=getattr(error, "status_code", None),
            error_message=str(error) if error else None,
            retries=attempts - 1,
        )

    async def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        query_name: str = "anonymous",
    ) -> Any:
        """Execute a query and return its ``data`` field.

        Args:
            query: GraphQL document
            variables: Optional variables object
            query_name: Label used in logs and metrics

        Returns:
            The decoded ``data`` member of the response

        Raises:
            GraphQLClientError: The last failure, once all attempts are spent
        """
        body: Dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables

        started = time.monotonic()
        last_error: Optional[GraphQLClientError] = None

        for attempt in range(1, self.max_attempts + 1):
            logger.debug("GraphQL request", query_name=query_name, attempt=attempt)
            try:
                data = await self._post(body)
            except GraphQLClientError as e:
                last_error = e
                if attempt < self.max_attempts:
                    backoff = self._calculate_backoff(attempt)
                    logger.warning(
                        "GraphQL attempt failed, retrying",
                        query_name=query_name,
                        attempt=attempt,
                        backoff_seconds=backoff,
                        error=str(e),
                    )
                    await asyncio.sleep(backoff)
                else:
                    logger.error(
                        "GraphQL request failed after retries",
                        query_name=query_name,
                        attempts=attempt,
                        error=str(e),
                    )
                continue

            await self._record(query_name, started, True, attempt)
            return data

        await self._record(query_name, started, False, self.max_attempts, last_error)
        raise last_error
