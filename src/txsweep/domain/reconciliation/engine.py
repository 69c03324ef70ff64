"""Reconciliation engine that resolves zombie transactions.

A zombie is a ledger record left ``pending`` because the process died between the
side-effecting call against the authority and the local status write. Each sweep
selects a bounded, oldest-first batch of such records, asks the authority what
actually happened, and finalises every record it can decide:

* present in the authority's domain list, or its last order was issued: ``success``
  plus a ``zombie_commit`` audit entry;
* absent from the list and the order lookup conclusively says no: ``failed`` plus a
  ``zombie_rollback`` audit entry (the refund is flagged, never performed);
* the authority could not answer: left ``pending`` for the next sweep.

The status update is a compare-and-set committed together with its audit entry, so
overlapping sweeps converge on one transition and one entry per record.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from txsweep.domain.errors import JoinDataMissingError, VerificationError
from txsweep.domain.model import (
    AuditAction,
    AuditEntry,
    AuditTargetType,
    FollowUpAction,
    TransactionKind,
    TransactionStatus,
    TransitionOutcome,
)

from .verdict import AuthorityVerdict, verify_candidate

if TYPE_CHECKING:
    from txsweep.domain.model import StaleCandidate, VerificationTarget
    from txsweep.domain.ports.authority import AuthorityClient
    from txsweep.domain.ports.unit_of_work import SweepUnitOfWork

log = getLogger(__name__)

DEFAULT_STALENESS = timedelta(minutes=10)
DEFAULT_BATCH_SIZE = 50
DEFAULT_CONCURRENCY = 1

type UnitOfWorkFactory = Callable[[], SweepUnitOfWork]
type Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class SweepConfig:
    staleness: timedelta = DEFAULT_STALENESS
    batch_size: int = DEFAULT_BATCH_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    kind: TransactionKind = TransactionKind.ADD_DOMAIN

    def __post_init__(self) -> None:
        if self.staleness < timedelta(0):
            raise ValueError("staleness must not be negative")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")


class CandidateOutcome(StrEnum):
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    SKIPPED = "skipped"
    CONFLICT = "conflict"
    ERROR = "error"


@dataclass(slots=True)
class SweepRunSummary:
    """Outcome of one sweep; ``skipped`` candidates are also counted in ``errors``."""

    swept: int = 0
    committed: int = 0
    rolled_back: int = 0
    skipped: int = 0
    conflicts: int = 0
    errors: int = 0
    timestamp: datetime = field(default_factory=_utcnow)

    def record(self, outcome: CandidateOutcome) -> None:
        match outcome:
            case CandidateOutcome.COMMITTED:
                self.committed += 1
            case CandidateOutcome.ROLLED_BACK:
                self.rolled_back += 1
            case CandidateOutcome.CONFLICT:
                self.conflicts += 1
            case CandidateOutcome.SKIPPED:
                self.skipped += 1
                self.errors += 1
            case CandidateOutcome.ERROR:
                self.errors += 1


async def run_sweep(
    *,
    authority: AuthorityClient,
    unit_of_work_factory: UnitOfWorkFactory,
    config: SweepConfig | None = None,
    clock: Clock | None = None,
) -> SweepRunSummary:
    """Resolve one bounded batch of stale pending transactions.

    Failing to read the candidate batch is fatal and propagates; every failure after
    that is confined to its candidate and counted in the summary.

    Store calls are synchronous and run on the event loop between authority calls.
    A slow store therefore eats into the authority deadline of the other in-flight
    candidates; those candidates are skipped and retried on the next run.
    """

    effective_config = config or SweepConfig()
    now = clock or _utcnow
    cutoff = now() - effective_config.staleness

    candidates = _select_candidates(unit_of_work_factory, effective_config, cutoff)
    summary = SweepRunSummary(swept=len(candidates))
    if not candidates:
        log.info("No stuck transactions found")
        summary.timestamp = now()
        return summary

    log.info("Found %d stuck transactions (cutoff=%s)", len(candidates), cutoff.isoformat())

    semaphore = asyncio.Semaphore(effective_config.concurrency)

    async def bounded(candidate: StaleCandidate) -> CandidateOutcome:
        async with semaphore:
            return await reconcile_candidate(
                candidate,
                authority=authority,
                unit_of_work_factory=unit_of_work_factory,
                clock=now,
            )

    outcomes = await asyncio.gather(*(bounded(candidate) for candidate in candidates))
    for outcome in outcomes:
        summary.record(outcome)

    summary.timestamp = now()
    log.info(
        "Sweep complete: swept=%d, committed=%d, rolled_back=%d, skipped=%d, "
        "conflicts=%d, errors=%d",
        summary.swept,
        summary.committed,
        summary.rolled_back,
        summary.skipped,
        summary.conflicts,
        summary.errors,
    )
    return summary


async def reconcile_candidate(
    candidate: StaleCandidate,
    *,
    authority: AuthorityClient,
    unit_of_work_factory: UnitOfWorkFactory,
    clock: Clock = _utcnow,
) -> CandidateOutcome:
    """Verify, transition and audit one candidate without ever raising."""

    transaction_id = candidate.transaction_id
    try:
        target = candidate.target()
        log.info("Checking %s (tx %s)", target.subject_ref, transaction_id)
        verdict = await verify_candidate(authority, target)
        return _apply_verdict(candidate, target, verdict, unit_of_work_factory, clock)
    except JoinDataMissingError as exc:
        log.warning("Skipping tx %s: %s", transaction_id, exc)
        return CandidateOutcome.ERROR
    except VerificationError as exc:
        log.warning("Verification failed for tx %s, leaving pending: %s", transaction_id, exc)
        return CandidateOutcome.SKIPPED
    except Exception:  # noqa: BLE001
        log.exception("Error processing tx %s", transaction_id)
        return CandidateOutcome.ERROR


def _select_candidates(
    unit_of_work_factory: UnitOfWorkFactory,
    config: SweepConfig,
    cutoff: datetime,
) -> list[StaleCandidate]:
    with unit_of_work_factory() as uow:
        return uow.repositories.ledger.select_stale(
            kind=config.kind,
            older_than=cutoff,
            limit=config.batch_size,
        )


def _apply_verdict(
    candidate: StaleCandidate,
    target: VerificationTarget,
    verdict: AuthorityVerdict,
    unit_of_work_factory: UnitOfWorkFactory,
    clock: Clock,
) -> CandidateOutcome:
    if verdict.exists:
        to_status = TransactionStatus.SUCCESS
        action = AuditAction.ZOMBIE_COMMIT
    else:
        to_status = TransactionStatus.FAILED
        action = AuditAction.ZOMBIE_ROLLBACK

    transaction_id = candidate.transaction_id
    with unit_of_work_factory() as uow:
        transition = uow.repositories.ledger.transition_status(
            transaction_id,
            from_status=TransactionStatus.PENDING,
            to_status=to_status,
        )
        if transition is not TransitionOutcome.APPLIED:
            uow.rollback()
            log.info("tx %s already resolved elsewhere (%s), no-op", transaction_id, transition)
            return CandidateOutcome.CONFLICT

        uow.repositories.audit.append(_build_audit_entry(candidate, target, verdict, action, clock))
        uow.commit()

    if verdict.exists:
        log.info(
            "COMMITTED: %s (tx %s, via %s)", target.subject_ref, transaction_id, verdict.source
        )
        return CandidateOutcome.COMMITTED

    log.info("ROLLED BACK: %s (tx %s)", target.subject_ref, transaction_id)
    # TODO: release the reserved balance once a refund policy for prepaid partners exists.
    log.warning(
        "tx %s needs follow-up: %s (amount=%s)",
        transaction_id,
        FollowUpAction.REFUND_RESERVED_BALANCE,
        candidate.record.amount,
    )
    return CandidateOutcome.ROLLED_BACK


def _build_audit_entry(
    candidate: StaleCandidate,
    target: VerificationTarget,
    verdict: AuthorityVerdict,
    action: AuditAction,
    clock: Clock,
) -> AuditEntry:
    details: dict[str, object] = {
        "domain_name": target.subject_ref,
        "reason": verdict.reason,
        "verified_by": verdict.source.value,
        "evidence": verdict.evidence,
    }
    if not verdict.exists:
        details["follow_up"] = FollowUpAction.REFUND_RESERVED_BALANCE.value
        amount = candidate.record.amount
        details["amount"] = str(amount) if amount is not None else None
    return AuditEntry(
        action=action,
        target_type=AuditTargetType.TRANSACTION,
        target_id=candidate.transaction_id,
        details=details,
        created_at=clock(),
    )
