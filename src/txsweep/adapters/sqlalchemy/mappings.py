"""SQLAlchemy mapping metadata for the ledger and audit log."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Table,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from txsweep.domain.model import (
    AuditEntry,
    TransactionKind,
    TransactionRecord,
    TransactionStatus,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _value_enum(enum_cls: type[StrEnum], length: int) -> Enum:
    # Persist the lowercase values the portal writes, not the member names.
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [member.value for member in members],
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Portal-owned tables the sweeper joins through ------------------------------

acme_account_table = Table(
    "acme_accounts",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("client_id", UUIDColumnType, nullable=True),
    # Sectigo's identifier for the account, not a local key.
    Column("acme_account_id", String, nullable=True),
    Column("account_name", String, nullable=True),
    Column("status", String(32), nullable=True),
    Column("created_at", UTCDateTime, nullable=True, default=lambda: datetime.now(tz=UTC)),
)

domain_table = Table(
    "domains",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "acme_account_id",
        UUIDColumnType,
        ForeignKey("acme_accounts.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("domain_name", String, nullable=False),
    Column("order_number", String, nullable=True),
    Column("status", String(32), nullable=True),
    Column("added_at", UTCDateTime, nullable=True, default=lambda: datetime.now(tz=UTC)),
)

# Ledger ----------------------------------------------------------------------

transaction_table = Table(
    "transactions",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("transaction_ref", String, nullable=True, unique=True),
    Column("partner_id", UUIDColumnType, nullable=True),
    Column("acme_account_id", UUIDColumnType, ForeignKey("acme_accounts.id"), nullable=True),
    Column("domain_id", UUIDColumnType, ForeignKey("domains.id"), nullable=True),
    Column("type", _value_enum(TransactionKind, 16), key="kind", nullable=False),
    Column("description", String, nullable=True),
    Column("amount", Numeric(15, 2), nullable=True),
    Column("status", _value_enum(TransactionStatus, 16), nullable=False),
    Column("sectigo_order_number", String, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Index("ix_transactions_status_type_created", "status", "kind", "created_at"),
)

audit_log_table = Table(
    "audit_logs",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("actor_id", UUIDColumnType, nullable=True),
    # Free text: the portal writes other actions to the same table.
    Column("action", String, nullable=False),
    Column("target_type", String, nullable=True),
    Column("target_id", UUIDColumnType, nullable=True),
    Column("details", JSON, nullable=True),
    Column("ip_address", String, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Index("ix_audit_logs_target", "target_type", "target_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Map the domain dataclasses onto their tables (idempotent)."""

    log.debug("Mapping ledger and audit tables")
    mapper_registry.map_imperatively(TransactionRecord, transaction_table)
    mapper_registry.map_imperatively(AuditEntry, audit_log_table)

    configure_mappers()
    return mapper_registry
