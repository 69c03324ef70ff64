from __future__ import annotations

import json
from datetime import timedelta

import pytest

from txsweep.domain.errors import StoreUnavailableError
from txsweep.domain.reconciliation import SweepConfig, SweepRunSummary
from txsweep.ui import cli as cli_module
from tests.helpers.ledger import NOW


@pytest.fixture(autouse=True)
def clean_sweep_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SWEEP_STALENESS_MINUTES", "SWEEP_BATCH_SIZE", "SWEEP_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)


def test_sweep_prints_summary(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    def fake_sweep(**kwargs: object) -> SweepRunSummary:
        captured.update(kwargs)
        return SweepRunSummary(swept=2, committed=1, rolled_back=1, timestamp=NOW)

    monkeypatch.setattr(cli_module, "sweep_stale_transactions", fake_sweep)

    cli_module.main(["sweep"])

    assert captured["config"] == SweepConfig()
    output = json.loads(capsys.readouterr().out)
    assert output["swept"] == 2
    assert output["rolledBack"] == 1
    assert output["success"] is True


def test_sweep_flags_override_config(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_sweep(**kwargs: object) -> SweepRunSummary:
        captured.update(kwargs)
        return SweepRunSummary(timestamp=NOW)

    monkeypatch.setattr(cli_module, "sweep_stale_transactions", fake_sweep)
    monkeypatch.setenv("SWEEP_BATCH_SIZE", "20")

    cli_module.main(
        ["sweep", "--staleness-minutes", "30", "--concurrency", "4"]
    )

    assert captured["config"] == SweepConfig(
        staleness=timedelta(minutes=30), batch_size=20, concurrency=4
    )


def test_invalid_flag_value_exits_with_2(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "sweep_stale_transactions", lambda **_: None)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["sweep", "--batch-size", "0"])

    assert excinfo.value.code == 2


def test_fatal_sweep_error_exits_with_1(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_sweep(**_: object) -> SweepRunSummary:
        raise StoreUnavailableError("ledger offline")

    monkeypatch.setattr(cli_module, "sweep_stale_transactions", fake_sweep)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["sweep"])

    assert excinfo.value.code == 1


def test_bad_environment_exits_with_1(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SWEEP_CONCURRENCY", "many")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["sweep"])

    assert excinfo.value.code == 1


def test_serve_runs_uvicorn(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    sentinel = object()

    monkeypatch.setattr(cli_module, "create_trigger_app", lambda: sentinel)
    monkeypatch.setattr(
        cli_module.uvicorn, "run", lambda app, **kwargs: captured.update(app=app, **kwargs)
    )

    cli_module.main(["serve", "--port", "9100"])

    assert captured == {"app": sentinel, "host": "127.0.0.1", "port": 9100}
