"""Domain model for the transaction ledger and its audit trail."""

from __future__ import annotations

from .audit import AuditEntry
from .enums import (
    AuditAction,
    AuditTargetType,
    FollowUpAction,
    TransactionKind,
    TransactionStatus,
    TransitionOutcome,
    VerdictSource,
)
from .ledger import StaleCandidate, TransactionRecord, VerificationTarget

__all__ = [
    "AuditAction",
    "AuditEntry",
    "AuditTargetType",
    "FollowUpAction",
    "StaleCandidate",
    "TransactionKind",
    "TransactionRecord",
    "TransactionStatus",
    "TransitionOutcome",
    "VerdictSource",
    "VerificationTarget",
]
