"""알림 엔진 API 엔드포인트 테스트"""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import set_engine
from src.exceptions import EngineBusyError
from src.main import app

client = TestClient(app)

STATUS = {
    "is_running": True,
    "cycle_in_progress": False,
    "interval_seconds": 60,
    "next_run_time": "2026-10-17T12:01:00+00:00",
    "total_cycles": 1,
    "last_cycle_result": {"status": "completed"},
}

COMPLETED = {
    "timestamp": "2026-10-17T12:00:00+00:00",
    "status": "completed",
    "cycle_result": {"cycle_id": "abc123", "claimed": 1, "notified": 1},
}


@pytest.fixture
def mock_engine() -> Iterator[MagicMock]:
    engine = MagicMock()
    engine.scheduler.get_status.return_value = STATUS
    engine.scheduler.get_cycle_history.return_value = [COMPLETED]
    engine.scheduler.run_once = AsyncMock(return_value=COMPLETED)
    engine.sources.markets = ["BINANCE", "BITSO"]
    set_engine(engine)
    yield engine
    set_engine(None)


def test_status(mock_engine: MagicMock) -> None:
    resp = client.get("/api/v1/engine/status")

    assert resp.status_code == 200
    body = resp.json()
    assert body["is_running"] is True
    assert body["interval_seconds"] == 60
    assert body["markets"] == ["BINANCE", "BITSO"]


def test_history(mock_engine: MagicMock) -> None:
    resp = client.get("/api/v1/engine/history?limit=5")

    assert resp.status_code == 200
    assert resp.json()[0]["cycle_result"]["cycle_id"] == "abc123"
    mock_engine.scheduler.get_cycle_history.assert_called_once_with(5)


def test_run_cycle(mock_engine: MagicMock) -> None:
    resp = client.post("/api/v1/engine/run")

    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    mock_engine.scheduler.run_once.assert_awaited_once()


def test_run_cycle_busy(mock_engine: MagicMock) -> None:
    mock_engine.scheduler.run_once.side_effect = EngineBusyError()

    resp = client.post("/api/v1/engine/run")

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "ENGINE_BUSY"


def test_status_before_startup() -> None:
    set_engine(None)
    resp = client.get("/api/v1/engine/status")
    assert resp.status_code == 503
