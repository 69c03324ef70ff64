"""Error taxonomy for sweep runs."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class SweepError(RuntimeError):
    """Base class for reconciliation failures."""


class AuthorizationError(SweepError):
    """Raised when a sweep trigger presents a missing or wrong shared secret."""


class StoreUnavailableError(SweepError):
    """Raised when the ledger cannot be queried at all; fatal for the whole run."""


class VerificationError(SweepError):
    """Raised when the external authority could not answer a verification call.

    Never evidence of absence: the candidate is left pending for the next run.
    """


class JoinDataMissingError(SweepError):
    """Raised when a candidate lacks the domain or account data needed to verify it."""

    def __init__(self, transaction_id: UUID, missing: tuple[str, ...]) -> None:
        super().__init__(
            f"Transaction {transaction_id} is missing join data: {', '.join(missing)}"
        )
        self.transaction_id = transaction_id
        self.missing = missing
