"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class TransactionKind(StrEnum):
    ADD_DOMAIN = "add_domain"
    REMOVE_DOMAIN = "remove_domain"
    EXTEND = "extend"
    REFUND = "refund"


class TransactionStatus(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"


class TransitionOutcome(StrEnum):
    """Result of a compare-and-set status transition."""

    APPLIED = "applied"
    ALREADY_CHANGED = "already_changed"
    NOT_FOUND = "not_found"


class AuditAction(StrEnum):
    ZOMBIE_COMMIT = "zombie_commit"
    ZOMBIE_ROLLBACK = "zombie_rollback"


class AuditTargetType(StrEnum):
    TRANSACTION = "transaction"


class VerdictSource(StrEnum):
    PRIMARY = "primary"
    FALLBACK = "fallback"
    NONE = "none"


class FollowUpAction(StrEnum):
    """Work deliberately left for an operator after a sweep decision."""

    REFUND_RESERVED_BALANCE = "refund_reserved_balance"
