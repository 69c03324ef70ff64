from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from txsweep.config import TriggerConfig
from txsweep.domain.errors import StoreUnavailableError
from txsweep.domain.reconciliation import SweepRunSummary
from txsweep.ui.http import SWEEP_PATH, create_app
from tests.helpers.ledger import NOW

if TYPE_CHECKING:
    from collections.abc import Callable

SECRET = "cron-secret-value"
AUTH = {"Authorization": f"Bearer {SECRET}"}


def _summary() -> SweepRunSummary:
    return SweepRunSummary(
        swept=3, committed=1, rolled_back=1, skipped=1, conflicts=0, errors=1, timestamp=NOW
    )


def _client(
    sweep: Callable[[], SweepRunSummary] = _summary,
    secret: str | None = SECRET,
) -> tuple[TestClient, list[int]]:
    calls: list[int] = []

    def counted() -> SweepRunSummary:
        calls.append(1)
        return sweep()

    app = create_app(sweep=counted, trigger=TriggerConfig(secret=secret))
    return TestClient(app), calls


@pytest.mark.parametrize("method", ["POST", "GET"])
def test_authorized_trigger_returns_summary(method: str) -> None:
    client, calls = _client()

    response = client.request(method, SWEEP_PATH, headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "swept": 3,
        "committed": 1,
        "rolledBack": 1,
        "skipped": 1,
        "conflicts": 0,
        "errors": 1,
        "timestamp": "2026-10-12T12:00:00Z",
    }
    assert calls == [1]


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer wrong"},
        {"Authorization": SECRET},
        {"Authorization": f"bearer {SECRET}"},
    ],
    ids=["missing", "wrong-secret", "no-scheme", "lowercase-scheme"],
)
def test_unauthorized_requests_do_no_work(headers: dict[str, str]) -> None:
    client, calls = _client()

    response = client.post(SWEEP_PATH, headers=headers)

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert calls == []


def test_unconfigured_secret_rejects_everything() -> None:
    client, calls = _client(secret=None)

    response = client.post(SWEEP_PATH, headers={"Authorization": "Bearer "})

    assert response.status_code == 401
    assert calls == []


def test_store_failure_maps_to_500() -> None:
    def broken() -> SweepRunSummary:
        raise StoreUnavailableError("ledger offline")

    client, _ = _client(broken)

    response = client.post(SWEEP_PATH, headers=AUTH)

    assert response.status_code == 500
    assert response.json() == {"error": "Database query failed"}


def test_unexpected_failure_maps_to_500() -> None:
    def broken() -> SweepRunSummary:
        raise RuntimeError("SECTIGO_LOGIN_NAME missing")

    client, _ = _client(broken)

    response = client.post(SWEEP_PATH, headers=AUTH)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_health_needs_no_secret() -> None:
    client, calls = _client()

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert calls == []
