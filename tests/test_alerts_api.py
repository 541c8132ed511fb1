"""알림 API 엔드포인트 테스트"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.alerts.models import AlertDirection, BasePriceAlert, NewAlert, PriceAlert
from src.alerts.store import AlertStore
from src.api.dependencies import get_store, set_engine
from src.exceptions import AlertStoreError, NotFoundError
from src.main import app

client = TestClient(app)

HEADERS = {"X-User-Id": "alice"}
CREATED_AT = datetime(2026, 10, 17, 9, 0, tzinfo=UTC)


# ─────────────────── Helper ─────────────────────


def _alert(alert_id: int = 1, user_id: str = "alice", **overrides: object) -> PriceAlert:
    fields: dict[str, object] = {
        "id": alert_id,
        "user_id": user_id,
        "market": "BITSO",
        "pair": "BTC_MXN",
        "direction": AlertDirection.GREATER_THAN_OR_EQUAL,
        "target_price": Decimal("1200000"),
        "created_at": CREATED_AT,
    }
    fields.update(overrides)
    return PriceAlert(**fields)  # type: ignore[arg-type]


@pytest.fixture
def mock_store() -> Iterator[MagicMock]:
    store = MagicMock(spec=AlertStore)
    store.create_alert = AsyncMock()
    store.get_alert = AsyncMock()
    store.list_user_alerts = AsyncMock(return_value=[])
    app.dependency_overrides[get_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


# ─────────────────── 생성 ─────────────────────


class TestCreateAlert:
    def test_create_alert(self, mock_store: MagicMock) -> None:
        mock_store.create_alert.return_value = _alert(alert_id=10)

        resp = client.post(
            "/api/v1/alerts",
            json={
                "market": "BITSO",
                "pair": "BTC_MXN",
                "direction": "greater_than_or_equal",
                "target_price": "1200000",
            },
            headers=HEADERS,
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["id"] == 10
        assert body["alert_type"] == "default"
        assert body["reference_price"] is None
        assert body["triggered_at"] is None

        new_alert: NewAlert = mock_store.create_alert.call_args.args[0]
        assert new_alert.user_id == "alice"
        assert new_alert.target_price == Decimal("1200000")

    def test_create_base_price_alert(self, mock_store: MagicMock) -> None:
        mock_store.create_alert.return_value = BasePriceAlert(
            id=11,
            user_id="alice",
            market="BITSO",
            pair="BTC_MXN",
            direction=AlertDirection.LESS_THAN_OR_EQUAL,
            target_price=Decimal("900000"),
            reference_price=Decimal("1000000"),
            created_at=CREATED_AT,
        )

        resp = client.post(
            "/api/v1/alerts",
            json={
                "market": "BITSO",
                "pair": "BTC_MXN",
                "direction": "less_than_or_equal",
                "target_price": "900000",
                "reference_price": "1000000",
            },
            headers=HEADERS,
        )

        assert resp.status_code == 201
        assert resp.json()["alert_type"] == "base_price"
        assert Decimal(resp.json()["reference_price"]) == Decimal("1000000")

    def test_missing_user_header(self, mock_store: MagicMock) -> None:
        resp = client.post(
            "/api/v1/alerts",
            json={
                "market": "BITSO",
                "pair": "BTC_MXN",
                "direction": "greater_than_or_equal",
                "target_price": "1",
            },
        )

        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"
        mock_store.create_alert.assert_not_awaited()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"pair": "BTCMXN"},
            {"market": "bitso"},
            {"target_price": "0"},
            {"reference_price": "-1"},
            {"direction": "sideways"},
            # 가격 컬럼(NUMERIC(24, 10)) 범위 초과
            {"target_price": "123456789012345"},
            {"target_price": "1.00000000001"},
            {"reference_price": "123456789012345.5"},
        ],
    )
    def test_invalid_request(self, mock_store: MagicMock, overrides: dict) -> None:
        body = {
            "market": "BITSO",
            "pair": "BTC_MXN",
            "direction": "greater_than_or_equal",
            "target_price": "100",
            **overrides,
        }
        resp = client.post("/api/v1/alerts", json=body, headers=HEADERS)

        assert resp.status_code == 422
        mock_store.create_alert.assert_not_awaited()

    def test_large_price_accepted(self, mock_store: MagicMock) -> None:
        """정수부 14자리까지 허용 (예: BTC_MXN 수백만 단위)"""
        mock_store.create_alert.return_value = _alert(
            alert_id=12, target_price=Decimal("12345678901234.5")
        )

        resp = client.post(
            "/api/v1/alerts",
            json={
                "market": "BITSO",
                "pair": "BTC_MXN",
                "direction": "greater_than_or_equal",
                "target_price": "12345678901234.5",
            },
            headers=HEADERS,
        )

        assert resp.status_code == 201
        new_alert: NewAlert = mock_store.create_alert.call_args.args[0]
        assert new_alert.target_price == Decimal("12345678901234.5")

    def test_store_unavailable(self, mock_store: MagicMock) -> None:
        mock_store.create_alert.side_effect = AlertStoreError()

        resp = client.post(
            "/api/v1/alerts",
            json={
                "market": "BITSO",
                "pair": "BTC_MXN",
                "direction": "greater_than_or_equal",
                "target_price": "1",
            },
            headers=HEADERS,
        )

        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "ALERT_STORE_ERROR"


# ─────────────────── 조회 ─────────────────────


class TestReadAlerts:
    def test_list_alerts(self, mock_store: MagicMock) -> None:
        mock_store.list_user_alerts.return_value = [_alert(2), _alert(1)]

        resp = client.get("/api/v1/alerts?limit=20", headers=HEADERS)

        assert resp.status_code == 200
        assert [a["id"] for a in resp.json()] == [2, 1]
        mock_store.list_user_alerts.assert_awaited_once_with("alice", limit=20, offset=0)

    def test_list_limit_bounds(self, mock_store: MagicMock) -> None:
        resp = client.get("/api/v1/alerts?limit=500", headers=HEADERS)
        assert resp.status_code == 422

    def test_get_alert(self, mock_store: MagicMock) -> None:
        mock_store.get_alert.return_value = _alert(5)

        resp = client.get("/api/v1/alerts/5", headers=HEADERS)

        assert resp.status_code == 200
        assert resp.json()["pair"] == "BTC_MXN"

    def test_get_other_users_alert(self, mock_store: MagicMock) -> None:
        """다른 사용자의 알림은 존재 여부를 드러내지 않음"""
        mock_store.get_alert.return_value = _alert(5, user_id="bob")

        resp = client.get("/api/v1/alerts/5", headers=HEADERS)

        assert resp.status_code == 404

    def test_get_missing_alert(self, mock_store: MagicMock) -> None:
        mock_store.get_alert.side_effect = NotFoundError("없음")

        resp = client.get("/api/v1/alerts/999", headers=HEADERS)

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"


def test_engine_not_ready() -> None:
    """lifespan 전에는 503"""
    set_engine(None)
    resp = client.get("/api/v1/alerts", headers=HEADERS)

    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "ENGINE_NOT_READY"
