"""SQLAlchemy adapter package for txsweep."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import SqlAlchemyAuditRepository, SqlAlchemyLedgerRepository
from .unit_of_work import SqlAlchemySweepUnitOfWork, StartupError, startup

__all__ = [
    "SqlAlchemyAuditRepository",
    "SqlAlchemyLedgerRepository",
    "SqlAlchemySweepUnitOfWork",
    "StartupError",
    "mapper_registry",
    "start_mappers",
    "startup",
]
