from __future__ import annotations

import base64
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import pytest

from txsweep.config import (
    ConfigurationError,
    MissingConfigurationError,
    configure_logging,
    decode_secret,
    get_database_config,
    get_sectigo_config,
    get_storage_config,
    get_sweep_config,
    get_trigger_config,
)
from txsweep.config.sectigo import DEFAULT_SECTIGO_CAAS_API_URL

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def sectigo_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    monkeypatch.setenv("SECTIGO_LOGIN_NAME", "partner-login")
    monkeypatch.setenv("SECTIGO_LOGIN_PASSWORD", "plain-password")
    for name in (
        "SECTIGO_CAAS_API_URL",
        "SECTIGO_TIMEOUT_SECONDS",
        "SECTIGO_CALL_DEADLINE_SECONDS",
        "SECTIGO_MAX_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_sectigo_config_defaults(sectigo_env: pytest.MonkeyPatch) -> None:
    config = get_sectigo_config()

    assert config.credentials.login_name == "partner-login"
    assert config.credentials.login_password == "plain-password"
    assert config.api_url == DEFAULT_SECTIGO_CAAS_API_URL
    assert config.resilience.timeout_seconds == 5.0
    assert config.resilience.retry.status_forcelist >= {429, 500, 502, 503, 504}
    assert "POST" in config.resilience.retry.allowed_methods
    assert "plain-password" not in repr(config)


def test_sectigo_config_overrides(sectigo_env: pytest.MonkeyPatch) -> None:
    sectigo_env.setenv("SECTIGO_CAAS_API_URL", "https://sandbox.test/ACMEAdmin")
    sectigo_env.setenv("SECTIGO_TIMEOUT_SECONDS", "2.5")
    sectigo_env.setenv("SECTIGO_CALL_DEADLINE_SECONDS", "8")
    sectigo_env.setenv("SECTIGO_MAX_RETRIES", "0")

    config = get_sectigo_config()

    assert config.api_url == "https://sandbox.test/ACMEAdmin"
    assert config.resilience.timeout_seconds == 2.5
    assert config.call_deadline_seconds == 8.0
    assert config.resilience.retry.total == 0


def test_sectigo_password_may_be_base64(sectigo_env: pytest.MonkeyPatch) -> None:
    encoded = base64.b64encode("p@ss#word$".encode()).decode()
    sectigo_env.setenv("SECTIGO_LOGIN_PASSWORD", f"base64:{encoded}")

    assert get_sectigo_config().credentials.login_password == "p@ss#word$"


def test_invalid_base64_secret_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        decode_secret("base64:***not-base64***")


def test_missing_sectigo_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SECTIGO_LOGIN_NAME", raising=False)
    monkeypatch.setenv("SECTIGO_LOGIN_PASSWORD", "   ")

    with pytest.raises(
        MissingConfigurationError, match="SECTIGO_LOGIN_NAME, SECTIGO_LOGIN_PASSWORD"
    ) as excinfo:
        get_sectigo_config()

    assert excinfo.value.names == ("SECTIGO_LOGIN_NAME", "SECTIGO_LOGIN_PASSWORD")


def test_non_numeric_timeout_is_rejected(sectigo_env: pytest.MonkeyPatch) -> None:
    sectigo_env.setenv("SECTIGO_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ConfigurationError, match="SECTIGO_TIMEOUT_SECONDS"):
        get_sectigo_config()


def test_sweep_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SWEEP_STALENESS_MINUTES", "30")
    monkeypatch.setenv("SWEEP_BATCH_SIZE", "10")
    monkeypatch.setenv("SWEEP_CONCURRENCY", "4")

    config = get_sweep_config()

    assert config.staleness == timedelta(minutes=30)
    assert config.batch_size == 10
    assert config.concurrency == 4


def test_sweep_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SWEEP_STALENESS_MINUTES", "SWEEP_BATCH_SIZE", "SWEEP_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)

    config = get_sweep_config()

    assert config.staleness == timedelta(minutes=10)
    assert config.batch_size == 50
    assert config.concurrency == 1


def test_invalid_sweep_config_is_a_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SWEEP_BATCH_SIZE", "0")

    with pytest.raises(ConfigurationError, match="batch_size"):
        get_sweep_config()


def test_trigger_secret_is_optional(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CRON_SECRET", raising=False)
    assert get_trigger_config().secret is None

    monkeypatch.setenv("CRON_SECRET", "cron-token")
    config = get_trigger_config()
    assert config.secret == "cron-token"
    assert "cron-token" not in repr(config)


def test_database_uri_prefers_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://db/ledger")

    assert get_database_config().uri == "postgresql+psycopg://db/ledger"


def test_database_uri_defaults_to_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("TXSWEEP_DATA_DIR", str(tmp_path))

    storage = get_storage_config()

    assert get_database_config().uri == f"sqlite+pysqlite:///{tmp_path.resolve() / 'ledger.db'}"
    assert storage.database_path(ensure=False).parent == tmp_path.resolve()


@pytest.mark.parametrize(
    ("env_level", "expected"),
    [
        ("debug", logging.DEBUG),
        ("WARNING", logging.WARNING),
        ("", logging.INFO),
        ("loud", logging.INFO),
    ],
)
def test_log_level_comes_from_environment(
    monkeypatch: pytest.MonkeyPatch, env_level: str, expected: int
) -> None:
    captured: dict[str, Any] = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))
    monkeypatch.setenv("TXSWEEP_LOG_LEVEL", env_level)
    httpx_logger = logging.getLogger("httpx")
    monkeypatch.setattr(httpx_logger, "level", httpx_logger.level)

    configure_logging()

    assert captured["level"] == expected
    assert httpx_logger.level == max(expected, logging.WARNING)
