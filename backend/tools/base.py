"""
Shared plumbing for external oracle clients.

- OracleError: typed failure carrying the provider name
- MinIntervalRateLimiter: per-provider minimum spacing between calls
- HTTPOracle: base for the enrichment providers (httpx, injectable transport)
- unexpected_shape: turns parsing errors on a decoded body into OracleError
"""

import asyncio
import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class OracleError(Exception):
    """An external oracle failed or returned something unusable."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


@contextmanager
def unexpected_shape(provider: str) -> Iterator[None]:
    """Raise OracleError when a decoded response does not have the expected fields or types."""
    try:
        yield
    except (ValueError, TypeError, AttributeError, KeyError) as e:
        logger.warning(f"Unexpected {provider} response shape: {e}")
        raise OracleError(provider, f"Unexpected response shape: {e}") from e


class MinIntervalRateLimiter:
    """Suspend callers until `min_interval` seconds have passed since the last call."""

    def __init__(self, min_interval: float = 1.0):
        self.min_interval = min_interval
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            if self._last_call is not None:
                remaining = self.min_interval - (time.monotonic() - self._last_call)
                if remaining > 0:
                    await asyncio.sleep(remaining)
            self._last_call = time.monotonic()


class HTTPOracle:
    """Base class for HTTP-backed enrichment providers."""

    provider = "http"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 30.0,
        min_interval: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.rate_limiter = MinIntervalRateLimiter(min_interval)
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Rate-limited request returning the decoded JSON body."""
        await self.rate_limiter.wait()
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            raise OracleError(self.provider, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise OracleError(self.provider, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise OracleError(self.provider, f"Invalid JSON response: {e}") from e

        if not isinstance(body, dict):
            raise OracleError(self.provider, "Expected a JSON object")
        return body
