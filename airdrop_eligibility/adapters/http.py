"""
Async JSON-over-HTTP client shared by the network adapters.

httpx.AsyncClient with a per-request timeout, bounded retries and exponential
backoff. Connection errors, timeouts, 429 and 5xx are retried; other 4xx fail
immediately. Exhausted retries raise AdapterError (or AdapterTimeoutError).
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from airdrop_eligibility.core.exceptions import (
    AdapterError,
    AdapterTimeoutError,
    MalformedRecordError,
)
from airdrop_eligibility.eligibility_logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 15.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SEC = 1.0
MAX_RETRY_DELAY_SEC = 30.0


class HttpJsonClient:
    """
    GET JSON from one base URL with retry and backoff.

    One client per adapter; the underlying httpx.AsyncClient is created lazily
    and reused until aclose().
    """

    def __init__(
        self,
        source: str,
        base_url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay_sec: float = DEFAULT_RETRY_DELAY_SEC,
        max_retry_delay_sec: float = MAX_RETRY_DELAY_SEC,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            source: Source name used in errors and logs (e.g. "orbiter").
            base_url: API root; request paths are joined onto it.
            headers: Extra headers sent with every request (API keys).
            timeout_sec: HTTP timeout for each request.
            max_retries: Attempts per request (>= 1).
            retry_delay_sec: Initial backoff delay; doubled after every failure.
            max_retry_delay_sec: Cap for the backoff delay.
            transport: Optional httpx transport (tests pass httpx.MockTransport).
        """
        if not base_url.strip():
            raise ValueError("base_url must be non-empty")
        self.source = source
        self._base_url = base_url.rstrip("/")
        self._headers = {"Accept": "application/json", **(headers or {})}
        self._timeout_sec = timeout_sec
        self._max_retries = max(1, int(max_retries))
        self._retry_delay = max(0.0, retry_delay_sec)
        self._max_retry_delay = max_retry_delay_sec
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=httpx.Timeout(self._timeout_sec),
                transport=self._transport,
            )
        return self._client

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET path and decode JSON.

        Raises:
            AdapterError: non-retryable HTTP status (code HTTP_<status>) or retries exhausted.
            AdapterTimeoutError: last attempt timed out.
            MalformedRecordError: response body is not JSON.
        """
        client = self._get_client()
        delay = self._retry_delay
        last_error: AdapterError

        for attempt in range(self._max_retries):
            try:
                response = await client.get(path, params=params)
            except httpx.TimeoutException:
                last_error = AdapterTimeoutError(self.source, self._timeout_sec)
            except httpx.HTTPError as e:
                last_error = AdapterError(
                    f"{self.source} request failed: {e}",
                    source=self.source,
                    code="NETWORK_ERROR",
                    retryable=True,
                    context={"path": path},
                )
            else:
                status = response.status_code
                if status < 400:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise MalformedRecordError(self.source, "response body is not JSON") from e
                error = AdapterError(
                    f"{self.source} returned HTTP {status}",
                    source=self.source,
                    code=f"HTTP_{status}",
                    retryable=status == 429 or status >= 500,
                    context={"path": path, "status": status},
                )
                if not error.retryable:
                    raise error
                last_error = error

            logger.warning(
                "adapter_retry",
                source=self.source,
                path=path,
                attempt=attempt + 1,
                max_retries=self._max_retries,
                error=last_error.message,
            )
            if attempt + 1 < self._max_retries:
                await asyncio.sleep(delay)
                delay = min(delay * 2, self._max_retry_delay)

        logger.error(
            "adapter_give_up",
            source=self.source,
            path=path,
            max_retries=self._max_retries,
            error=last_error.message,
        )
        raise last_error

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
