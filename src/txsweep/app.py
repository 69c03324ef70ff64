"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from functools import cache, partial
from logging import getLogger
from typing import TYPE_CHECKING

from txsweep.adapters.sectigo import SectigoAuthority
from txsweep.adapters.sqlalchemy.unit_of_work import SqlAlchemySweepUnitOfWork, startup
from txsweep.config import get_sweep_config, get_trigger_config
from txsweep.domain.ports.authority import AuthorityClient
from txsweep.domain.reconciliation import SweepRunSummary, UnitOfWorkFactory, run_sweep
from txsweep.ui.http import create_app

if TYPE_CHECKING:
    from fastapi import FastAPI
    from sqlalchemy.engine import Engine

    from txsweep.config import TriggerConfig
    from txsweep.domain.reconciliation import Clock, SweepConfig

type AuthorityFactory = Callable[[], AbstractAsyncContextManager[AuthorityClient]]

log = getLogger(__name__)


def build_unit_of_work_factory(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
) -> UnitOfWorkFactory:
    """Prepare the ledger store and return a factory for sweep units of work."""

    session_factory = startup(engine=engine, database_uri=database_uri)
    return partial(SqlAlchemySweepUnitOfWork, session_factory)


def sweep_stale_transactions(
    *,
    config: SweepConfig | None = None,
    authority_factory: AuthorityFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock | None = None,
) -> SweepRunSummary:
    """Run one sweep against Sectigo and the configured ledger store."""

    effective_config = config or get_sweep_config()
    effective_uow = unit_of_work_factory or build_unit_of_work_factory()
    make_authority = authority_factory or SectigoAuthority.from_config
    log.info(
        "Starting zombie sweep: staleness=%s, batch_size=%d, concurrency=%d",
        effective_config.staleness,
        effective_config.batch_size,
        effective_config.concurrency,
    )

    async def sweep() -> SweepRunSummary:
        async with make_authority() as authority:
            return await run_sweep(
                authority=authority,
                unit_of_work_factory=effective_uow,
                config=effective_config,
                clock=clock,
            )

    return asyncio.run(sweep())


def create_trigger_app(
    *,
    trigger: TriggerConfig | None = None,
    authority_factory: AuthorityFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> FastAPI:
    """Build the HTTP trigger; the ledger store is prepared on the first sweep."""

    @cache
    def ledger() -> UnitOfWorkFactory:
        return unit_of_work_factory or build_unit_of_work_factory()

    def sweep() -> SweepRunSummary:
        return sweep_stale_transactions(
            authority_factory=authority_factory,
            unit_of_work_factory=ledger(),
        )

    return create_app(sweep=sweep, trigger=trigger or get_trigger_config())
