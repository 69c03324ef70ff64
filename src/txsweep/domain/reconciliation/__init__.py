"""Stuck-transaction reconciliation."""

from __future__ import annotations

from .engine import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CONCURRENCY,
    DEFAULT_STALENESS,
    CandidateOutcome,
    Clock,
    SweepConfig,
    SweepRunSummary,
    UnitOfWorkFactory,
    reconcile_candidate,
    run_sweep,
)
from .verdict import AuthorityVerdict, verify_candidate

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_STALENESS",
    "AuthorityVerdict",
    "CandidateOutcome",
    "Clock",
    "SweepConfig",
    "SweepRunSummary",
    "UnitOfWorkFactory",
    "reconcile_candidate",
    "run_sweep",
    "verify_candidate",
]
