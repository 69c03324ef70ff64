"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from txsweep.adapters.sqlalchemy.mappings import (
    acme_account_table,
    audit_log_table,
    domain_table,
    transaction_table,
)
from txsweep.domain.errors import StoreUnavailableError
from txsweep.domain.model import (
    AuditEntry,
    StaleCandidate,
    TransactionRecord,
    TransactionStatus,
    TransitionOutcome,
)

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

    from txsweep.domain.model import (
        AuditAction,
        AuditTargetType,
        TransactionKind,
    )

log = getLogger(__name__)


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class SqlAlchemyLedgerRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def select_stale(
        self,
        *,
        kind: TransactionKind,
        older_than: datetime,
        limit: int,
    ) -> list[StaleCandidate]:
        stmt = (
            select(
                TransactionRecord,
                domain_table.c.domain_name,
                acme_account_table.c.acme_account_id.label("account_ref"),
            )
            .outerjoin(domain_table, transaction_table.c.domain_id == domain_table.c.id)
            .outerjoin(
                acme_account_table,
                domain_table.c.acme_account_id == acme_account_table.c.id,
            )
            .where(transaction_table.c.status == TransactionStatus.PENDING)
            .where(transaction_table.c.kind == kind)
            .where(transaction_table.c.created_at <= older_than)
            .order_by(transaction_table.c.created_at, transaction_table.c.id)
            .limit(limit)
        )
        try:
            rows = self.session.execute(stmt).all()
        except SQLAlchemyError as exc:
            log.error("Failed to query stale transactions: %s", exc)
            raise StoreUnavailableError("Failed to query stale transactions") from exc

        return [
            StaleCandidate(
                record=record,
                account_ref=_blank_to_none(account_ref),
                subject_ref=_blank_to_none(domain_name),
            )
            for record, domain_name, account_ref in rows
        ]

    def transition_status(
        self,
        transaction_id: UUID,
        *,
        from_status: TransactionStatus,
        to_status: TransactionStatus,
    ) -> TransitionOutcome:
        stmt = (
            update(transaction_table)
            .where(transaction_table.c.id == transaction_id)
            .where(transaction_table.c.status == from_status)
            .values(status=to_status)
        )
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        if result.rowcount == 1:
            return TransitionOutcome.APPLIED

        current = self.session.execute(
            select(transaction_table.c.status).where(transaction_table.c.id == transaction_id)
        ).scalar_one_or_none()
        if current is None:
            return TransitionOutcome.NOT_FOUND
        return TransitionOutcome.ALREADY_CHANGED

    def get(self, transaction_id: UUID) -> TransactionRecord | None:
        return self.session.get(TransactionRecord, transaction_id)


class SqlAlchemyAuditRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def append(self, entry: AuditEntry) -> None:
        self.session.add(entry)

    def list_for_target(
        self,
        target_type: AuditTargetType,
        target_id: UUID,
    ) -> list[AuditEntry]:
        stmt = (
            select(AuditEntry)
            .where(audit_log_table.c.target_type == target_type)
            .where(audit_log_table.c.target_id == target_id)
            .order_by(audit_log_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())

    def count(self, *, action: AuditAction | None = None) -> int:
        stmt = select(func.count()).select_from(audit_log_table)
        if action is not None:
            stmt = stmt.where(audit_log_table.c.action == action)
        return self.session.execute(stmt).scalar_one()

