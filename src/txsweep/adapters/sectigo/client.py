"""HTTP client for the Sectigo CaaS API (read-only actions used by the sweeper)."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final, cast

from pydantic import ValidationError

from txsweep.adapters.http_resilience import ResilientClient

from .schema import ErrorResponse, GetLastOrderResponse, ListDomainsResponse

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    import httpx

    from txsweep.config.http_resilience import ResilienceConfig
    from txsweep.config.sectigo import SectigoConfig

log = getLogger(__name__)

# "not found" must directly follow the order or domain it is about.
_ORDER_NOT_FOUND_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"\bno\s+(last\s+)?orders?\b", re.IGNORECASE),
    re.compile(r"\b(last\s+)?orders?\s+((was|were)\s+)?not\s+found\b", re.IGNORECASE),
    re.compile(r"\bdomain(\s+name)?\s+((was|is)\s+)?not\s+found\b", re.IGNORECASE),
)


class SectigoAPIError(RuntimeError):
    """Raised when the Sectigo API fails or returns an application-level error."""

    def __init__(
        self,
        message: str,
        *,
        action: str,
        code: int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.action = action
        self.code = code
        self.status_code = status_code


class SectigoOrderNotFoundError(SectigoAPIError):
    """Raised when GETLASTORDER conclusively reports that no order exists."""


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def is_order_not_found(error: SectigoAPIError) -> bool:
    if error.status_code is not None and error.status_code >= 500:  # noqa: PLR2004
        return False
    message = str(error)
    return any(pattern.search(message) for pattern in _ORDER_NOT_FOUND_PATTERNS)


class SectigoClient:
    """Low-level async client; open it with ``async with`` before calling actions."""

    def __init__(
        self,
        *,
        config: SectigoConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or _default_client_factory
        self._http: ResilientClient | None = None

    async def __aenter__(self) -> SectigoClient:
        if self._http is None:
            self._http = self._client_factory(self._config.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def list_domains(self, acme_account_id: str) -> ListDomainsResponse:
        payload = await self._call("LISTDOMAINS", {"acmeAccountID": acme_account_id})
        try:
            return ListDomainsResponse.model_validate(payload)
        except ValidationError as exc:
            raise SectigoAPIError(
                "Unexpected LISTDOMAINS response payload", action="LISTDOMAINS"
            ) from exc

    async def get_last_order(self, acme_account_id: str, domain_name: str) -> GetLastOrderResponse:
        try:
            payload = await self._call(
                "GETLASTORDER",
                {"acmeAccountID": acme_account_id, "domainName": domain_name},
            )
        except SectigoAPIError as exc:
            if is_order_not_found(exc):
                raise SectigoOrderNotFoundError(
                    str(exc),
                    action=exc.action,
                    code=exc.code,
                    status_code=exc.status_code,
                ) from exc
            raise
        try:
            return GetLastOrderResponse.model_validate(payload)
        except ValidationError as exc:
            raise SectigoAPIError(
                "Unexpected GETLASTORDER response payload", action="GETLASTORDER"
            ) from exc

    async def _call(self, action: str, params: dict[str, str]) -> dict[str, Any]:
        if self._http is None:
            raise RuntimeError("SectigoClient used outside of 'async with'")

        # credentials never reach the log
        log.debug("Sectigo %s request: %s", action, params)
        form = {
            "loginName": self._config.credentials.login_name,
            "loginPassword": self._config.credentials.login_password,
            "action": action,
            **params,
        }
        response = await self._http.post(self._config.api_url, data=form)
        payload = self._decode(response, action)

        if payload.get("success") is False:
            error = ErrorResponse.model_validate(payload)
            log.error("Sectigo %s error %s: %s", action, error.error_code, error.message)
            raise SectigoAPIError(error.message, action=action, code=error.error_code)

        log.debug("Sectigo %s response received", action)
        return payload

    @staticmethod
    def _decode(response: httpx.Response, action: str) -> dict[str, Any]:
        try:
            payload: object = response.json()
        except ValueError:
            payload = None

        if response.is_error:
            error = (
                ErrorResponse.model_validate(payload)
                if isinstance(payload, dict)
                else ErrorResponse(error_message=response.reason_phrase or None)
            )
            log.error(
                "Sectigo %s failed with HTTP %d: %s", action, response.status_code, error.message
            )
            raise SectigoAPIError(
                error.message,
                action=action,
                code=error.error_code,
                status_code=response.status_code,
            )

        if not isinstance(payload, dict):
            raise SectigoAPIError(f"Unexpected {action} response payload", action=action)
        return cast(dict[str, Any], payload)
