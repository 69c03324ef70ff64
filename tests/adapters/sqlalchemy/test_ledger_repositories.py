from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from txsweep.adapters.sqlalchemy.mappings import start_mappers
from txsweep.adapters.sqlalchemy.repositories import (
    SqlAlchemyAuditRepository,
    SqlAlchemyLedgerRepository,
)
from txsweep.domain.errors import StoreUnavailableError
from txsweep.domain.model import (
    AuditAction,
    AuditEntry,
    AuditTargetType,
    TransactionKind,
    TransactionStatus,
    TransitionOutcome,
)
from tests.helpers.ledger import NOW, minutes_ago, seed_transaction

if TYPE_CHECKING:
    from sqlalchemy.orm import sessionmaker

CUTOFF = NOW - timedelta(minutes=10)


def test_select_stale_joins_remote_identifiers(session_factory: sessionmaker[Session]) -> None:
    transaction_id = seed_transaction(
        session_factory, domain_name="joined.example", acme_account_id="acme-77"
    )

    with session_factory() as session:
        (candidate,) = SqlAlchemyLedgerRepository(session).select_stale(
            kind=TransactionKind.ADD_DOMAIN, older_than=CUTOFF, limit=50
        )

    assert candidate.transaction_id == transaction_id
    assert candidate.account_ref == "acme-77"
    assert candidate.subject_ref == "joined.example"
    assert candidate.record.status is TransactionStatus.PENDING


def test_select_stale_reaches_account_through_domain_when_record_has_none(
    session_factory: sessionmaker[Session],
) -> None:
    seed_transaction(
        session_factory,
        domain_name="unlinked.example",
        acme_account_id="acme-9",
        link_record_account=False,
    )

    with session_factory() as session:
        (candidate,) = SqlAlchemyLedgerRepository(session).select_stale(
            kind=TransactionKind.ADD_DOMAIN, older_than=CUTOFF, limit=50
        )

    assert candidate.record.acme_account_id is None
    assert candidate.account_ref == "acme-9"
    assert candidate.subject_ref == "unlinked.example"


def test_select_stale_prefers_domain_account_over_record_account(
    session_factory: sessionmaker[Session],
) -> None:
    seed_transaction(
        session_factory,
        domain_name="owned.example",
        acme_account_id="acme-owner",
        record_acme_account_id="acme-other",
    )

    with session_factory() as session:
        (candidate,) = SqlAlchemyLedgerRepository(session).select_stale(
            kind=TransactionKind.ADD_DOMAIN, older_than=CUTOFF, limit=50
        )

    assert candidate.account_ref == "acme-owner"


def test_select_stale_keeps_incomplete_joins(session_factory: sessionmaker[Session]) -> None:
    seed_transaction(session_factory, domain_name=None, acme_account_id="  ")

    with session_factory() as session:
        (candidate,) = SqlAlchemyLedgerRepository(session).select_stale(
            kind=TransactionKind.ADD_DOMAIN, older_than=CUTOFF, limit=50
        )

    assert candidate.subject_ref is None
    assert candidate.account_ref is None


def test_select_stale_orders_oldest_first_and_limits(
    session_factory: sessionmaker[Session],
) -> None:
    middle = seed_transaction(session_factory, created_at=minutes_ago(30))
    oldest = seed_transaction(session_factory, created_at=minutes_ago(60))
    seed_transaction(session_factory, created_at=minutes_ago(20))
    seed_transaction(session_factory, created_at=minutes_ago(2))

    with session_factory() as session:
        candidates = SqlAlchemyLedgerRepository(session).select_stale(
            kind=TransactionKind.ADD_DOMAIN, older_than=CUTOFF, limit=2
        )

    assert [candidate.transaction_id for candidate in candidates] == [oldest, middle]


def test_select_stale_wraps_driver_errors() -> None:
    start_mappers()
    # no migrations: the ledger tables do not exist
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)

    with Session(engine) as session, pytest.raises(StoreUnavailableError):
        SqlAlchemyLedgerRepository(session).select_stale(
            kind=TransactionKind.ADD_DOMAIN, older_than=CUTOFF, limit=1
        )
    engine.dispose()


def test_transition_status_is_compare_and_set(session_factory: sessionmaker[Session]) -> None:
    transaction_id = seed_transaction(session_factory)

    with session_factory() as session:
        ledger = SqlAlchemyLedgerRepository(session)
        first = ledger.transition_status(
            transaction_id,
            from_status=TransactionStatus.PENDING,
            to_status=TransactionStatus.SUCCESS,
        )
        second = ledger.transition_status(
            transaction_id,
            from_status=TransactionStatus.PENDING,
            to_status=TransactionStatus.FAILED,
        )
        missing = ledger.transition_status(
            uuid4(),
            from_status=TransactionStatus.PENDING,
            to_status=TransactionStatus.FAILED,
        )
        session.commit()

    assert first is TransitionOutcome.APPLIED
    assert second is TransitionOutcome.ALREADY_CHANGED
    assert missing is TransitionOutcome.NOT_FOUND

    with session_factory() as session:
        record = SqlAlchemyLedgerRepository(session).get(transaction_id)
        assert record is not None
        assert record.status is TransactionStatus.SUCCESS


def test_audit_repository_appends_and_counts(session_factory: sessionmaker[Session]) -> None:
    target_id = uuid4()
    with session_factory() as session:
        audit = SqlAlchemyAuditRepository(session)
        audit.append(
            AuditEntry(
                action=AuditAction.ZOMBIE_COMMIT,
                target_id=target_id,
                details={"domain_name": "example.com", "reason": "Found in Sectigo"},
                created_at=NOW,
            )
        )
        audit.append(
            AuditEntry(
                action=AuditAction.ZOMBIE_ROLLBACK,
                target_id=uuid4(),
                created_at=NOW,
            )
        )
        session.commit()

    with session_factory() as session:
        audit = SqlAlchemyAuditRepository(session)
        (entry,) = audit.list_for_target(AuditTargetType.TRANSACTION, target_id)
        assert entry.details == {"domain_name": "example.com", "reason": "Found in Sectigo"}
        assert entry.target_type == "transaction"
        assert entry.created_at == NOW
        assert audit.count() == 2
        assert audit.count(action=AuditAction.ZOMBIE_ROLLBACK) == 1
