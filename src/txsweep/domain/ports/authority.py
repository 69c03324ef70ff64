"""Port for verifying remote side effects against the system of record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class LastOrderStatus:
    """Status of the most recent order the authority holds for a domain."""

    status_code: int
    issued: bool
    status_desc: str | None = None
    order_number: int | None = None


@runtime_checkable
class AuthorityClient(Protocol):
    """Capability set the reconciliation engine needs from the authority.

    Both calls raise ``VerificationError`` when the authority cannot answer; a
    failed call is never reported as absence.
    """

    async def verify_exists(self, account_ref: str, subject_ref: str) -> bool:
        """Primary signal: cheap listing query that may lag the remote state."""
        ...

    async def get_last_status(self, account_ref: str, subject_ref: str) -> LastOrderStatus | None:
        """Fallback signal: authoritative order lookup, ``None`` when no order exists."""
        ...


__all__ = ["AuthorityClient", "LastOrderStatus"]
