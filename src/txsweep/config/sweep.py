"""Sweep defaults and environment overrides."""

from __future__ import annotations

from datetime import timedelta

from txsweep.domain.reconciliation import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CONCURRENCY,
    DEFAULT_STALENESS,
    SweepConfig,
)

from .env import env_float, env_int
from .errors import ConfigurationError


def get_sweep_config() -> SweepConfig:
    staleness_minutes = env_float(
        "SWEEP_STALENESS_MINUTES", DEFAULT_STALENESS.total_seconds() / 60
    )
    batch_size = env_int("SWEEP_BATCH_SIZE", DEFAULT_BATCH_SIZE)
    concurrency = env_int("SWEEP_CONCURRENCY", DEFAULT_CONCURRENCY)
    try:
        return SweepConfig(
            staleness=timedelta(minutes=staleness_minutes),
            batch_size=batch_size,
            concurrency=concurrency,
        )
    except ValueError as exc:
        raise ConfigurationError(f"Invalid sweep configuration: {exc}") from exc
