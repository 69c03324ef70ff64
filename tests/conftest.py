from __future__ import annotations

import os
from functools import partial
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from txsweep.adapters.sqlalchemy.mappings import start_mappers
from txsweep.adapters.sqlalchemy.migrations import upgrade_head
from txsweep.adapters.sqlalchemy.unit_of_work import SqlAlchemySweepUnitOfWork, startup

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.orm import Session, sessionmaker

    from txsweep.domain.reconciliation import UnitOfWorkFactory


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: Engine) -> sessionmaker[Session]:
    return startup(engine=sqlite_engine, migrate=False)


@pytest.fixture
def unit_of_work_factory(session_factory: sessionmaker[Session]) -> UnitOfWorkFactory:
    return partial(SqlAlchemySweepUnitOfWork, session_factory)
