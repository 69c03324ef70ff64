"""SQLAlchemy-backed units of work for sweep runs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from txsweep.adapters.sqlalchemy.mappings import start_mappers
from txsweep.adapters.sqlalchemy.migrations import upgrade_head
from txsweep.adapters.sqlalchemy.repositories import (
    SqlAlchemyAuditRepository,
    SqlAlchemyLedgerRepository,
)
from txsweep.config import get_database_config
from txsweep.domain.ports.unit_of_work import RepositoryCollection, SweepRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used outside its session."""


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    migrate: bool = True,
) -> sessionmaker[Session]:
    """Map the domain, bring the schema to head and return a session factory.

    Each unit of work receives the returned factory; pass ``migrate=False`` for a
    database that is already at head.
    """

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    start_mappers()
    if migrate:
        upgrade_head(engine=resolved_engine)
    log.info("Ledger store ready at %s", resolved_engine.url.render_as_string(hide_password=True))
    return sessionmaker(bind=resolved_engine, expire_on_commit=False)


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections.

    Leaving the block without ``commit()`` discards the work.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemySweepUnitOfWork(BaseSqlAlchemyUnitOfWork[SweepRepositories]):
    """Unit of work over the ledger and the audit log."""

    def _build_repositories(self, session: Session) -> SweepRepositories:
        return SweepRepositories(
            ledger=SqlAlchemyLedgerRepository(session),
            audit=SqlAlchemyAuditRepository(session),
        )


if TYPE_CHECKING:
    from txsweep.domain.ports.unit_of_work import SweepUnitOfWork

    _uow_check: SweepUnitOfWork = SqlAlchemySweepUnitOfWork(sessionmaker())
