"""
Base client for the dblp data sources.

Provides: disk caching, rate limiting, bounded retry with exponential
backoff, structured logging and graceful degradation. The generation
services never retry on their own; whatever resilience exists lives here,
at the transport.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import aiohttp
from pydantic import BaseModel

from dblp_masterfile.constants import (
    DEFAULT_CACHE_DIR,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
)
from dblp_masterfile.utils.cache import cache_get, cache_set

logger = logging.getLogger("dblp_masterfile.data_sources")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class RetryConfig(BaseModel):
    """Retry behaviour for failed requests."""

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    backoff_factor: float = 2.0
    retryable_status_codes: set[int] = {429, 500, 502, 503, 504}


class RateLimitConfig(BaseModel):
    """Token-bucket rate limiter settings. dblp asks for modest request rates."""

    requests_per_second: float = 1.0
    burst: int = 3


class CacheConfig(BaseModel):
    """Disk cache settings."""

    enabled: bool = True
    directory: Path = DEFAULT_CACHE_DIR
    ttl_seconds: int | None = None  # None: per-namespace TTL from CACHE_TTLS


class ClientConfig(BaseModel):
    """Top-level config aggregating retry, rate limit, and cache."""

    retry: RetryConfig = RetryConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    cache: CacheConfig = CacheConfig()
    timeout_seconds: float = DEFAULT_TIMEOUT


# ---------------------------------------------------------------------------
# Rate limiter (async token bucket)
# ---------------------------------------------------------------------------


class TokenBucketRateLimiter:
    """
    Async token-bucket rate limiter.

    Allows `burst` requests immediately, then refills at
    `requests_per_second`. Callers await `acquire()` before each request.
    """

    def __init__(self, config: RateLimitConfig):
        self.rate = config.requests_per_second
        self.max_tokens = config.burst
        self.tokens = float(config.burst)
        self.last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            now = time.monotonic()
            self.tokens = min(
                self.max_tokens, self.tokens + (now - self.last_refill) * self.rate
            )
            self.last_refill = now

            if self.tokens >= 1.0:
                self.tokens -= 1.0
                return

            wait = (1.0 - self.tokens) / self.rate
            logger.debug("Rate limiter: sleeping %.2fs", wait)
            await asyncio.sleep(wait)
            self.tokens = 0.0
            self.last_refill = time.monotonic()


# ---------------------------------------------------------------------------
# Request context (for structured logging)
# ---------------------------------------------------------------------------


class RequestContext(BaseModel):
    """Metadata attached to every outgoing request for logging."""

    source: str  # e.g. "dblp_sparql", "dblp"
    method: str  # e.g. "run_query"
    protagonist: str | None = None  # pid the request is made for, if any


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DataSourceError(Exception):
    """Base exception for data source failures."""

    def __init__(self, source: str, message: str, status_code: int | None = None):
        self.source = source
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")


class RateLimitError(DataSourceError):
    """dblp answered 429 Too Many Requests."""

    pass


class MalformedRowError(DataSourceError):
    """A result row lacks a field every well-formed row must carry."""

    pass


# ---------------------------------------------------------------------------
# Partial result wrapper
# ---------------------------------------------------------------------------


class PartialResult(BaseModel):
    """
    Wraps a response that may be incomplete due to errors or timeouts.

    Callers check `is_complete` and `errors` before trusting `data`.
    """

    data: Any
    is_complete: bool = True
    errors: list[str] = []
    cached: bool = False
    elapsed_seconds: float = 0.0


def _retry_after_seconds(headers: Any) -> float | None:
    """Delay asked for by a Retry-After header, when it is given in seconds."""
    value = headers.get("Retry-After")
    try:
        return max(0.0, float(value)) if value else None
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------


class BaseClient(ABC):
    """
    Abstract base for the dblp SPARQL and dblp web API clients.

    Subclasses implement `_source_name` and their own typed methods on top
    of `_rest_get()` (JSON) and `_rest_get_xml()` (raw text).
    """

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self.rate_limiter = TokenBucketRateLimiter(self.config.rate_limit)
        self._session: aiohttp.ClientSession | None = None

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Identifier for this data source, e.g. 'dblp_sparql'."""
        ...

    def _ctx(self, method: str, protagonist: str | None = None) -> RequestContext:
        return RequestContext(
            source=self._source_name, method=method, protagonist=protagonist
        )

    # -- Session management --------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # -- Cache ---------------------------------------------------------------

    def _cache_get(self, namespace: str, params: dict[str, Any]) -> Any | None:
        if not self.config.cache.enabled:
            return None
        return cache_get(
            namespace,
            params,
            self.config.cache.directory,
            ttl=self.config.cache.ttl_seconds,
        )

    def _cache_set(self, namespace: str, params: dict[str, Any], data: Any) -> None:
        if not self.config.cache.enabled:
            return
        cache_set(namespace, params, data, self.config.cache.directory)

    # -- Core request with retry + rate limiting -----------------------------

    def _backoff(self, attempt: int) -> float:
        retry = self.config.retry
        return min(retry.base_delay * (retry.backoff_factor**attempt), retry.max_delay)

    async def _request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        as_text: bool = False,
        raise_on_exhaust: bool = False,
        context: RequestContext | None = None,
    ) -> PartialResult:
        """
        GET a URL with rate limiting and bounded retry.

        Retryable statuses and connection failures are retried up to
        `retry.max_retries` times; once exhausted the failure is returned as
        an incomplete PartialResult (or raised, with `raise_on_exhaust`).
        Other 4xx statuses and undecodable JSON raise DataSourceError
        immediately.

        Parameters
        ----------
        url : str
            Full URL.
        params : dict, optional
            Query string parameters.
        headers : dict, optional
            Additional HTTP headers.
        as_text : bool
            Return the body as text instead of decoding JSON.
        raise_on_exhaust : bool
            Raise the last error instead of degrading once retries run out.
        context : RequestContext, optional
            Logging context.
        """
        ctx = context or self._ctx("unknown")
        retry = self.config.retry
        last_error: DataSourceError | None = None
        retry_after: float | None = None
        start = time.monotonic()

        for attempt in range(retry.max_retries + 1):
            if attempt:
                if retry_after is None:
                    await asyncio.sleep(self._backoff(attempt - 1))
                else:
                    await asyncio.sleep(retry_after)
                retry_after = None

            try:
                await self.rate_limiter.acquire()
                session = await self._get_session()
                logger.info(
                    "Request [%s.%s] attempt=%d url=%s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    url,
                )
                resp = await session.get(url, params=params, headers=headers)

                if resp.status in retry.retryable_status_codes:
                    # Reading the body hands the connection back to the pool.
                    body = await resp.text()
                    error_cls = RateLimitError if resp.status == 429 else DataSourceError
                    last_error = error_cls(
                        ctx.source,
                        f"HTTP {resp.status}: {body[:200]}",
                        status_code=resp.status,
                    )
                    logger.warning(
                        "Retryable %d from %s.%s", resp.status, ctx.source, ctx.method
                    )
                    if resp.status == 429:
                        retry_after = _retry_after_seconds(resp.headers)
                    continue

                if resp.status >= 400:
                    body = await resp.text()
                    raise DataSourceError(
                        ctx.source,
                        f"HTTP {resp.status}: {body[:500]}",
                        status_code=resp.status,
                    )

                if as_text:
                    data = await resp.text()
                else:
                    try:
                        data = await resp.json(content_type=None)
                    except json.JSONDecodeError as e:
                        raise DataSourceError(
                            ctx.source, f"Malformed JSON response: {e}"
                        ) from e

                elapsed = time.monotonic() - start
                logger.info(
                    "Success [%s.%s] elapsed=%.2fs", ctx.source, ctx.method, elapsed
                )
                return PartialResult(data=data, elapsed_seconds=elapsed)

            except asyncio.TimeoutError:
                last_error = DataSourceError(
                    ctx.source, f"Timeout after {time.monotonic() - start:.1f}s"
                )
                logger.warning(
                    "Timeout [%s.%s] attempt=%d", ctx.source, ctx.method, attempt + 1
                )

            except aiohttp.ClientError as e:
                last_error = DataSourceError(ctx.source, f"Connection error: {e}")
                logger.warning(
                    "Connection error [%s.%s] attempt=%d: %s",
                    ctx.source,
                    ctx.method,
                    attempt + 1,
                    e,
                )

        elapsed = time.monotonic() - start
        logger.error(
            "All retries exhausted [%s.%s] after %.1fs: %s",
            ctx.source,
            ctx.method,
            elapsed,
            last_error,
        )
        if raise_on_exhaust and last_error is not None:
            raise last_error
        return PartialResult(
            data=None,
            is_complete=False,
            errors=[str(last_error)],
            elapsed_seconds=elapsed,
        )

    # -- Convenience methods for subclasses ----------------------------------

    async def _rest_get(
        self,
        url: str,
        params: dict[str, Any],
        *,
        headers: dict[str, str] | None = None,
        context: RequestContext | None = None,
    ) -> PartialResult:
        """GET returning decoded JSON in a PartialResult."""
        return await self._request(url, params=params, headers=headers, context=context)

    async def _rest_get_xml(
        self,
        url: str,
        params: dict[str, Any],
        *,
        context: RequestContext | None = None,
    ) -> str:
        """GET returning the raw body. Raises DataSourceError once retries run out."""
        result = await self._request(
            url, params=params, as_text=True, raise_on_exhaust=True, context=context
        )
        return result.data
