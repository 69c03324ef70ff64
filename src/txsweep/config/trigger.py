"""Settings for the HTTP sweep trigger."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var


@dataclass(frozen=True, slots=True)
class TriggerConfig:
    # None rejects every request.
    secret: str | None = field(default=None, repr=False)


def get_trigger_config() -> TriggerConfig:
    return TriggerConfig(secret=optional_env_var("CRON_SECRET"))
