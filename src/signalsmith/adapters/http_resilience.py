"""Rate-limited, retrying and caching HTTP access to paid directory APIs."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from signalsmith.config.storage import get_http_cache_path

if TYPE_CHECKING:
    from types import TracebackType

    from signalsmith.config.http_resilience import (
        CacheConfig,
        RateLimit,
        ResilienceConfig,
        RetryPolicy,
        ShouldCacheHook,
    )

log = logging.getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )


def build_limiter(ratelimit: RateLimit | None) -> AsyncLimiter | None:
    """Limiter for ``ratelimit``; share one instance across clients of the same API."""

    if ratelimit is None:
        return None
    return AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds)


class _JsonBodyFilter(BaseFilter[HishelCacheResponse]):
    """Store a response only when its decoded JSON body passes ``predicate``."""

    def __init__(self, predicate: ShouldCacheHook, name: str) -> None:
        self._predicate = predicate
        self._name = name

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return True
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            log.debug("%s: not caching a response without a JSON body", self._name)
            return False
        return bool(self._predicate(payload))


def _build_cache(
    config: CacheConfig | None, name: str
) -> tuple[AsyncSqliteStorage, FilterPolicy | None] | None:
    if config is None or not config.enabled:
        return None
    storage = AsyncSqliteStorage(
        database_path=config.sqlite_path or str(get_http_cache_path()),
        default_ttl=config.default_ttl_seconds,
    )
    policy = None
    if config.should_cache is not None:
        policy = FilterPolicy(response_filters=[_JsonBodyFilter(config.should_cache, name)])
    return storage, policy


class ResilientClient:
    """Async JSON client used by directory adapters.

    A request waits for the rate limiter, is answered from the response cache when
    possible, and otherwise goes out through a retrying transport. Pass ``limiter`` to
    share one budget between several short-lived clients, and ``transport`` to replace
    the network layer beneath the retries.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        limiter: AsyncLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = limiter if limiter is not None else build_limiter(config.ratelimit)

        retrying = RetryTransport(transport=transport, retry=build_retry(config.retry))
        base_url = config.base_url or ""
        headers = dict(config.default_headers or {})

        cache = _build_cache(config.cache, config.name)
        if cache is None:
            self._client = httpx.AsyncClient(
                base_url=base_url,
                timeout=config.timeout_seconds,
                headers=headers,
                transport=retrying,
            )
        else:
            storage, policy = cache
            self._client = AsyncCacheClient(
                base_url=base_url,
                timeout=config.timeout_seconds,
                headers=headers,
                transport=retrying,
                storage=storage,
                policy=policy,
            )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def post_json(self, path: str, payload: object) -> httpx.Response:
        """POST ``payload`` as JSON. Cached responses are keyed on the body as well."""

        if self._limiter is None:
            return await self._post(path, payload)
        async with self._limiter:
            return await self._post(path, payload)

    async def _post(self, path: str, payload: object) -> httpx.Response:
        response = await self._client.post(
            path,
            json=payload,
            extensions={"hishel_body_key": True},
        )
        log.debug("%s: POST %s -> %s", self.config.name, path, response.status_code)
        return response
