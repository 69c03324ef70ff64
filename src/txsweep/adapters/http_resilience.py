"""Async HTTP client with retries, a call-rate limit and a per-request timeout."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager, nullcontext
from logging import getLogger
from time import perf_counter
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import RetryTransport

from txsweep.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._client import UseClientDefault
    from httpx._types import HeaderTypes, QueryParamTypes, RequestData, TimeoutTypes, URLTypes

__all__ = ["RateLimit", "ResilienceConfig", "ResilientClient", "RetryPolicy"]

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    data: RequestData | None
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    timeout: TimeoutTypes | UseClientDefault


class ResilientClient:
    """One pooled ``httpx.AsyncClient`` per external service.

    Retries happen inside the transport, so a single limiter slot covers a call and
    all of its retries. ``transport`` replaces the network layer underneath the
    retry transport; tests pass ``httpx.MockTransport`` there.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        ratelimit = config.ratelimit
        self._limiter = (
            AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds) if ratelimit else None
        )
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers=dict(config.default_headers or {}),
            event_hooks={"response": list(config.response_hooks)},
            transport=RetryTransport(transport=transport, retry=config.retry.build()),
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

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        started = perf_counter()
        async with self._slot():
            response = await self._client.request(method, url, **kwargs)
        log.debug(
            "%s: %s %s -> %d in %.2fs",
            self.config.name,
            method,
            response.url.path,
            response.status_code,
            perf_counter() - started,
        )
        return response

    async def post(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    def _slot(self) -> AbstractAsyncContextManager[object]:
        if self._limiter is None:
            return nullcontext()
        return self._limiter
