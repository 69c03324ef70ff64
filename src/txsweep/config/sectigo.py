"""Sectigo CaaS configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import decode_secret, env_float, env_int, optional_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_SECTIGO_CAAS_API_URL = "https://secure.trust-provider.com/products/!ACMEAdmin"
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_CALL_DEADLINE_SECONDS = 15.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_CALLS_PER_SECOND = 5


@dataclass(frozen=True, slots=True)
class SectigoCredentials:
    login_name: str
    login_password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class SectigoConfig:
    credentials: SectigoCredentials
    api_url: str = DEFAULT_SECTIGO_CAAS_API_URL
    call_deadline_seconds: float = DEFAULT_CALL_DEADLINE_SECONDS
    resilience: ResilienceConfig = field(
        default_factory=lambda: build_sectigo_resilience(timeout_seconds=DEFAULT_TIMEOUT_SECONDS)
    )


def build_sectigo_resilience(
    *,
    timeout_seconds: float,
    max_retries: int = DEFAULT_MAX_RETRIES,
    calls_per_second: int = DEFAULT_CALLS_PER_SECOND,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="sectigo",
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(total=max_retries),
        ratelimit=RateLimit(max_calls=calls_per_second, per_seconds=1.0),
        default_headers={"Accept": "application/json"},
    )


def get_sectigo_config() -> SectigoConfig:
    values = require_env_vars(("SECTIGO_LOGIN_NAME", "SECTIGO_LOGIN_PASSWORD"))
    credentials = SectigoCredentials(
        login_name=values["SECTIGO_LOGIN_NAME"],
        login_password=decode_secret(values["SECTIGO_LOGIN_PASSWORD"]),
    )

    timeout_seconds = env_float("SECTIGO_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
    deadline_seconds = env_float("SECTIGO_CALL_DEADLINE_SECONDS", DEFAULT_CALL_DEADLINE_SECONDS)
    max_retries = env_int("SECTIGO_MAX_RETRIES", DEFAULT_MAX_RETRIES)
    if timeout_seconds <= 0 or deadline_seconds <= 0:
        raise ConfigurationError("Sectigo timeouts must be positive")
    if max_retries < 0:
        raise ConfigurationError("SECTIGO_MAX_RETRIES must not be negative")

    return SectigoConfig(
        credentials=credentials,
        api_url=optional_env_var("SECTIGO_CAAS_API_URL") or DEFAULT_SECTIGO_CAAS_API_URL,
        call_deadline_seconds=deadline_seconds,
        resilience=build_sectigo_resilience(
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
        ),
    )
