"""Sectigo implementation of the ``AuthorityClient`` port."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from txsweep.config.sectigo import get_sectigo_config
from txsweep.domain.errors import VerificationError
from txsweep.domain.ports.authority import AuthorityClient, LastOrderStatus

from .client import SectigoAPIError, SectigoClient, SectigoOrderNotFoundError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

    from txsweep.adapters.http_resilience import ResilientClient
    from txsweep.config.http_resilience import ResilienceConfig
    from txsweep.config.sectigo import SectigoConfig

log = getLogger(__name__)


class SectigoAuthority:
    """Answers verification questions using LISTDOMAINS and GETLASTORDER.

    Every call is bounded by ``call_deadline_seconds`` (retries included). Transport
    failures, timeouts and API errors surface as ``VerificationError``; only an
    explicit "no order" answer from GETLASTORDER counts as absence.
    """

    def __init__(self, client: SectigoClient, *, call_deadline_seconds: float) -> None:
        self._client = client
        self._deadline = call_deadline_seconds

    @classmethod
    def from_config(
        cls,
        config: SectigoConfig | None = None,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> SectigoAuthority:
        effective = config or get_sectigo_config()
        client = SectigoClient(config=effective, client_factory=client_factory)
        return cls(client, call_deadline_seconds=effective.call_deadline_seconds)

    async def __aenter__(self) -> SectigoAuthority:
        await self._client.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._client.aclose()

    async def verify_exists(self, account_ref: str, subject_ref: str) -> bool:
        response = await self._guard("LISTDOMAINS", self._client.list_domains(account_ref))
        return response.contains(subject_ref)

    async def get_last_status(self, account_ref: str, subject_ref: str) -> LastOrderStatus | None:
        try:
            response = await self._guard(
                "GETLASTORDER", self._client.get_last_order(account_ref, subject_ref)
            )
        except SectigoOrderNotFoundError as exc:
            log.info("GETLASTORDER reports no order for %s: %s", subject_ref, exc)
            return None

        order = response.latest_order(subject_ref)
        if order is None:
            return None
        return LastOrderStatus(
            status_code=order.status_code,
            issued=order.issued,
            status_desc=order.status_desc,
            order_number=order.order_number,
        )

    async def _guard[T](self, action: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self._deadline)
        except SectigoOrderNotFoundError:
            raise
        except TimeoutError as exc:
            raise VerificationError(
                f"Sectigo {action} timed out after {self._deadline:g}s"
            ) from exc
        except (httpx.HTTPError, SectigoAPIError) as exc:
            raise VerificationError(f"Sectigo {action} failed: {exc}") from exc


if TYPE_CHECKING:
    _authority_check: AuthorityClient = SectigoAuthority(
        SectigoClient(config=get_sectigo_config()), call_deadline_seconds=1.0
    )
