"""Configuration types for resilient HTTP clients."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
from httpx_retries import Retry

from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

ResponseHook = Callable[[httpx.Response], Awaitable[None]]

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Retry schedule applied inside the transport.

    POST is retryable: every remote action the sweeper sends is a read-only query
    that happens to be form-encoded.
    """

    total: int = 2
    backoff_factor: float = 0.5
    max_backoff_wait: float = 4.0
    backoff_jitter: float = 1.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = frozenset({"GET", "POST"})
    status_forcelist: frozenset[int] = RETRYABLE_STATUS_CODES
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )

    def __post_init__(self) -> None:
        if self.total < 0:
            raise ConfigurationError("Retry total must not be negative")

    def build(self) -> Retry:
        return Retry(
            total=self.total,
            allowed_methods=sorted(self.allowed_methods),
            status_forcelist=sorted(self.status_forcelist),
            retry_on_exceptions=self.retry_on_exceptions,
            backoff_factor=self.backoff_factor,
            max_backoff_wait=self.max_backoff_wait,
            backoff_jitter=self.backoff_jitter,
            respect_retry_after_header=self.respect_retry_after_header,
        )


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.max_calls < 1 or self.per_seconds <= 0:
            raise ConfigurationError("Rate limit needs at least one call per positive period")


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    response_hooks: tuple[ResponseHook, ...] = ()
    default_headers: Mapping[str, str] | None = None
