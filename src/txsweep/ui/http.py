"""FastAPI trigger for scheduled sweeps."""

from __future__ import annotations

import secrets
from datetime import datetime  # noqa: TC003
from logging import getLogger
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from txsweep.domain.errors import AuthorizationError, StoreUnavailableError, SweepError

if TYPE_CHECKING:
    from collections.abc import Callable

    from txsweep.config import TriggerConfig
    from txsweep.domain.reconciliation import SweepRunSummary

log = getLogger(__name__)

SWEEP_PATH = "/api/cron/zombie-sweeper"


class SweepFailedError(SweepError):
    """Raised by the trigger when a sweep could not produce a summary."""


class SweepSummaryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    swept: int
    committed: int
    rolled_back: int = Field(alias="rolledBack")
    skipped: int
    conflicts: int
    errors: int
    timestamp: datetime

    @classmethod
    def from_summary(cls, summary: SweepRunSummary) -> SweepSummaryResponse:
        return cls(
            swept=summary.swept,
            committed=summary.committed,
            rolled_back=summary.rolled_back,
            skipped=summary.skipped,
            conflicts=summary.conflicts,
            errors=summary.errors,
            timestamp=summary.timestamp,
        )


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def create_app(*, sweep: Callable[[], SweepRunSummary], trigger: TriggerConfig) -> FastAPI:
    """Build the trigger app around a blocking ``sweep`` callable.

    ``Authorization`` must equal ``Bearer <secret>`` exactly. Without a configured
    secret every request is rejected.
    """

    app = FastAPI(title="txsweep", docs_url=None, redoc_url=None)

    def require_cron_secret(
        authorization: Annotated[str | None, Header()] = None,
    ) -> None:
        expected = trigger.secret
        if not expected:
            log.warning("CRON_SECRET is not configured; rejecting sweep trigger")
            raise AuthorizationError("No trigger secret configured")
        if authorization is None or not secrets.compare_digest(
            authorization.encode(), f"Bearer {expected}".encode()
        ):
            raise AuthorizationError("Invalid trigger credentials")

    @app.exception_handler(AuthorizationError)
    async def unauthorized(_request: Request, exc: AuthorizationError) -> JSONResponse:
        log.warning("Rejected sweep trigger: %s", exc)
        return _error(401, "Unauthorized", headers={"WWW-Authenticate": "Bearer"})

    @app.exception_handler(SweepFailedError)
    async def sweep_failed(_request: Request, exc: SweepFailedError) -> JSONResponse:
        return _error(500, str(exc))

    # Runs in the threadpool; the sweep starts its own event loop there.
    @app.api_route(
        SWEEP_PATH,
        methods=["GET", "POST"],
        response_model=SweepSummaryResponse,
        dependencies=[Depends(require_cron_secret)],
    )
    def trigger_sweep() -> SweepSummaryResponse:
        try:
            summary = sweep()
        except StoreUnavailableError as exc:
            log.exception("Zombie sweeper could not query the ledger")
            raise SweepFailedError("Database query failed") from exc
        except Exception as exc:
            log.exception("Zombie sweeper error")
            raise SweepFailedError("Internal server error") from exc
        return SweepSummaryResponse.from_summary(summary)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
