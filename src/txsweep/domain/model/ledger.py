"""Ledger records and the typed join result used for verification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from txsweep.domain.errors import JoinDataMissingError

from .enums import TransactionKind, TransactionStatus

if TYPE_CHECKING:
    from datetime import timedelta
    from decimal import Decimal


@dataclass(eq=False)
class TransactionRecord:
    """A ledger entry for a side-effecting call against the certificate authority.

    The originating operation writes the record as ``pending`` before it calls the
    authority and finalises it afterwards. A record still pending past the staleness
    threshold is a zombie and belongs to the sweeper.
    """

    kind: TransactionKind
    status: TransactionStatus = TransactionStatus.PENDING
    amount: Decimal | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    partner_id: UUID | None = None
    acme_account_id: UUID | None = None
    domain_id: UUID | None = None
    transaction_ref: str | None = None
    description: str | None = None
    sectigo_order_number: str | None = None
    id: UUID = field(default_factory=uuid4)

    def age(self, now: datetime) -> timedelta:
        return now - self.created_at

    def is_sweepable(self, *, now: datetime, staleness: timedelta) -> bool:
        return (
            self.status == TransactionStatus.PENDING
            and self.kind == TransactionKind.ADD_DOMAIN
            and self.age(now) >= staleness
        )


@dataclass(frozen=True, slots=True)
class VerificationTarget:
    """Remote identifiers needed to ask the authority about one record."""

    account_ref: str
    subject_ref: str


@dataclass(frozen=True, slots=True)
class StaleCandidate:
    """A stale record joined with its remote account id and domain name.

    Either identifier can be missing when the join is incomplete; ``target()``
    refuses to guess and raises instead.
    """

    record: TransactionRecord
    account_ref: str | None
    subject_ref: str | None

    @property
    def transaction_id(self) -> UUID:
        return self.record.id

    def target(self) -> VerificationTarget:
        account_ref, subject_ref = self.account_ref, self.subject_ref
        if not account_ref or not subject_ref:
            missing = tuple(
                name
                for name, value in (("domain_name", subject_ref), ("acme_account_id", account_ref))
                if not value
            )
            raise JoinDataMissingError(self.transaction_id, missing)
        return VerificationTarget(account_ref=account_ref, subject_ref=subject_ref)
