"""Persistence ports for the ledger and audit log."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from txsweep.domain.model import (
        AuditAction,
        AuditEntry,
        AuditTargetType,
        StaleCandidate,
        TransactionKind,
        TransactionRecord,
        TransactionStatus,
        TransitionOutcome,
    )


@runtime_checkable
class LedgerRepository(Protocol):
    def select_stale(
        self,
        *,
        kind: TransactionKind,
        older_than: datetime,
        limit: int,
    ) -> list[StaleCandidate]:
        """Return up to ``limit`` pending records created at or before ``older_than``.

        Oldest first. Raises ``StoreUnavailableError`` if the ledger cannot be read.
        """
        ...

    def transition_status(
        self,
        transaction_id: UUID,
        *,
        from_status: TransactionStatus,
        to_status: TransactionStatus,
    ) -> TransitionOutcome:
        """Atomically move one record from ``from_status`` to ``to_status``."""
        ...

    def get(self, transaction_id: UUID) -> TransactionRecord | None: ...


@runtime_checkable
class AuditRepository(Protocol):
    def append(self, entry: AuditEntry) -> None: ...

    def list_for_target(
        self,
        target_type: AuditTargetType,
        target_id: UUID,
    ) -> list[AuditEntry]: ...

    def count(self, *, action: AuditAction | None = None) -> int: ...
