"""Shared HTTP plumbing for external source clients.

Owns the httpx client lifecycle, bounded retries on transient failures, and
an optional Redis cache for search results serialized with orjson.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, ClassVar

import httpx
import orjson

from nutrition_engine.clients.exceptions import SourceFetchError, SourceTimeoutError
from nutrition_engine.observability.logging import get_logger
from nutrition_engine.observability.metrics import SOURCE_REQUESTS, record


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from nutrition_engine.core.config import SourceSettings

logger = get_logger(__name__)


class HttpSourceClient:
    """Base class for JSON-over-HTTP food data sources."""

    SOURCE_NAME: ClassVar[str]
    CACHE_PREFIX: ClassVar[str]

    def __init__(
        self,
        settings: SourceSettings,
        cache_client: Redis[bytes] | None = None,
        http_client: httpx.AsyncClient | None = None,
        retry_backoff: float = 0.5,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Base URL, timeout, retry and cache settings.
            cache_client: Redis client for caching search results.
            http_client: HTTP client for API requests.
            retry_backoff: Initial delay in seconds between retries, doubled
                on each attempt.
        """
        self._settings = settings
        self.base_url = settings.base_url.rstrip("/")
        self.timeout = settings.timeout
        self.max_retries = settings.max_retries
        self._cache = cache_client
        self._http = http_client
        self._owns_http_client = http_client is None
        self._retry_backoff = retry_backoff

    @property
    def name(self) -> str:
        return self.SOURCE_NAME

    async def initialize(self) -> None:
        """Create the HTTP client if one was not injected."""
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self._settings.user_agent},
            )
            self._owns_http_client = True
        logger.info("Source client initialized", source=self.name)

    async def shutdown(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_http_client and self._http is not None:
            await self._http.aclose()
            self._http = None
        logger.info("Source client shutdown", source=self.name)

    async def _get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        not_found_ok: bool = False,
    ) -> Any:
        """GET ``path`` and decode the JSON body.

        Timeouts and connection errors are retried up to ``max_retries``
        times; error statuses are not.

        Returns:
            Decoded JSON, or None for a 404 when ``not_found_ok`` is set.

        Raises:
            SourceTimeoutError: If every attempt timed out.
            SourceFetchError: On an error status or unrecoverable transport error.
        """
        if self._http is None:
            await self.initialize()
        assert self._http is not None

        url = f"{self.base_url}{path}"
        for attempt in range(self.max_retries + 1):
            try:
                response = await self._http.get(url, params=params)
                if not_found_ok and response.status_code == 404:
                    record(SOURCE_REQUESTS, source=self.name, result="not_found")
                    return None
                response.raise_for_status()
                payload = response.json()
            except httpx.TimeoutException as e:
                logger.warning(
                    "Source request timeout",
                    source=self.name,
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                )
                if attempt < self.max_retries:
                    await self._backoff(attempt)
                    continue
                record(SOURCE_REQUESTS, source=self.name, result="timeout")
                msg = f"{self.name} timed out after {self.timeout}s"
                raise SourceTimeoutError(msg, source=self.name) from e
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                logger.warning(
                    "Source request failed",
                    source=self.name,
                    status_code=status,
                    path=path,
                )
                record(SOURCE_REQUESTS, source=self.name, result="error")
                msg = f"{self.name} returned {status}"
                raise SourceFetchError(msg, source=self.name, status_code=status) from e
            except httpx.RequestError as e:
                logger.warning(
                    "Source connection error",
                    source=self.name,
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                    error=str(e),
                )
                if attempt < self.max_retries:
                    await self._backoff(attempt)
                    continue
                record(SOURCE_REQUESTS, source=self.name, result="error")
                msg = f"Cannot reach {self.name}: {e}"
                raise SourceFetchError(msg, source=self.name) from e
            except ValueError as e:
                record(SOURCE_REQUESTS, source=self.name, result="error")
                msg = f"{self.name} returned a non-JSON body"
                raise SourceFetchError(msg, source=self.name) from e
            else:
                record(SOURCE_REQUESTS, source=self.name, result="ok")
                return payload

        msg = f"{self.name} request was not attempted"
        raise SourceFetchError(msg, source=self.name)

    async def _backoff(self, attempt: int) -> None:
        if self._retry_backoff > 0:
            await asyncio.sleep(self._retry_backoff * (2**attempt))

    def _cache_key(self, query: str, limit: int) -> str:
        return f"{self.CACHE_PREFIX}:search:{limit}:{query.strip().lower()}"

    async def _get_cached_search(
        self, query: str, limit: int
    ) -> list[dict[str, Any]] | None:
        if self._cache is None:
            return None
        try:
            cached = await self._cache.get(self._cache_key(query, limit))
            if cached:
                return orjson.loads(cached)
        except Exception:
            logger.exception("Cache read error", source=self.name)
        return None

    async def _save_cached_search(
        self, query: str, limit: int, results: list[dict[str, Any]]
    ) -> None:
        if self._cache is None or not results:
            return
        try:
            await self._cache.setex(
                self._cache_key(query, limit),
                self._settings.cache_ttl,
                orjson.dumps(results),
            )
        except Exception:
            logger.exception("Cache write error", source=self.name)
