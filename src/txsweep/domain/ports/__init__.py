"""Ports the reconciliation engine depends on."""

from __future__ import annotations

from .authority import AuthorityClient, LastOrderStatus
from .persistence import AuditRepository, LedgerRepository
from .unit_of_work import RepositoryCollection, SweepRepositories, SweepUnitOfWork, UnitOfWork

__all__ = [
    "AuditRepository",
    "AuthorityClient",
    "LastOrderStatus",
    "LedgerRepository",
    "RepositoryCollection",
    "SweepRepositories",
    "SweepUnitOfWork",
    "UnitOfWork",
]
