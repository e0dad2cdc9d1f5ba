"""
Shared async HTTP client for the upstream price APIs.

Features:
- Single session with connection pooling and keep-alive
- Per-request timeouts
- Fast JSON parsing with orjson
- Request counters and latency samples per source
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp
import orjson

from dexarb.config.constants import DEFAULT_HEADERS, LISTING_TIMEOUT
from dexarb.core.types import MetricsSink
from dexarb.telemetry.metrics import UPSTREAM_ERRORS, UPSTREAM_REQUESTS
from dexarb.utils.time import LatencyTimer


logger = logging.getLogger(__name__)


class PriceApiError(Exception):
    """Network error, timeout or unreadable response from a price API."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class PriceApiStatusError(PriceApiError):
    """Price API answered with a non-200 status."""

    def __init__(self, message: str, status: int, source: str | None = None) -> None:
        super().__init__(message, source)
        self.status = status


class PriceApiClient:
    """
    Async JSON-over-HTTPS client shared by all price sources.

    The session is created lazily on first use and reused until
    `close()` is called.
    """

    def __init__(
        self,
        headers: Mapping[str, str] | None = None,
        metrics: MetricsSink | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            headers: Default headers sent with every request.
            metrics: Optional sink for request counters and latencies.
            session: Pre-built session, mostly for tests. The client
                does not close a session it did not create.
        """
        self._headers = dict(headers or DEFAULT_HEADERS)
        self._metrics = metrics
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=50,
                limit_per_host=10,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers=self._headers,
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()
        self._session = None

    async def get_json(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = LISTING_TIMEOUT,
        source: str = "upstream",
    ) -> Any:
        """
        GET a URL and decode the JSON body.

        Args:
            url: Absolute URL.
            params: Query parameters.
            headers: Extra headers merged over the session defaults.
            timeout: Total request timeout in seconds.
            source: Source name used for logs and metrics.

        Returns:
            Decoded JSON value.

        Raises:
            PriceApiStatusError: On a non-200 response.
            PriceApiError: On network errors, timeouts or invalid JSON.
        """
        session = await self._get_session()
        if self._metrics:
            self._metrics.increment_counter(UPSTREAM_REQUESTS)

        try:
            with LatencyTimer() as timer:
                async with session.get(
                    url,
                    params=dict(params) if params else None,
                    headers=dict(headers) if headers else None,
                    timeout=aiohttp.ClientTimeout(total=timeout),
                ) as response:
                    body = await response.read()
                    status = response.status
        except asyncio.TimeoutError as e:
            self._record_error()
            raise PriceApiError(f"{source}: request timed out after {timeout}s", source) from e
        except aiohttp.ClientError as e:
            self._record_error()
            raise PriceApiError(f"{source}: network error: {e}", source) from e

        if self._metrics:
            self._metrics.record_latency(source, timer.latency_ms)

        if status != 200:
            self._record_error()
            raise PriceApiStatusError(f"{source}: HTTP {status} from {url}", status, source)

        try:
            data = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            self._record_error()
            raise PriceApiError(f"{source}: invalid JSON response: {e}", source) from e

        logger.debug("%s: GET %s took %.1fms", source, url, timer.latency_ms)
        return data

    def _record_error(self) -> None:
        if self._metrics:
            self._metrics.increment_counter(UPSTREAM_ERRORS)

    async def __aenter__(self) -> "PriceApiClient":
        await self._get_session()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
