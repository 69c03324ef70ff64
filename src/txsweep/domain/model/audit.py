"""Audit records for sweep decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from .enums import AuditAction, AuditTargetType


@dataclass(eq=False)
class AuditEntry:
    """Append-only record of one reconciliation decision.

    ``actor_id`` is ``None`` for system actions such as the sweeper.
    """

    action: AuditAction
    target_id: UUID
    target_type: AuditTargetType = AuditTargetType.TRANSACTION
    details: dict[str, Any] = field(default_factory=dict)
    actor_id: UUID | None = None
    ip_address: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    id: UUID = field(default_factory=uuid4)
