"""알림 도메인 모델 검증 테스트"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pydantic
import pytest

from src.alerts.models import (
    AlertDirection,
    AlertType,
    BasePriceAlert,
    MarketKey,
    NewAlert,
    PriceAlert,
    PriceQuote,
)

NOW = datetime(2026, 10, 17, tzinfo=UTC)


def _new_alert(**overrides: object) -> NewAlert:
    fields: dict[str, object] = {
        "user_id": "user-1",
        "market": "BITSO",
        "pair": "BTC_MXN",
        "direction": AlertDirection.GREATER_THAN_OR_EQUAL,
        "target_price": Decimal("100"),
    }
    fields.update(overrides)
    return NewAlert(**fields)  # type: ignore[arg-type]


class TestNewAlert:
    def test_default_type(self) -> None:
        assert _new_alert().alert_type == AlertType.DEFAULT

    def test_base_price_type(self) -> None:
        alert = _new_alert(reference_price=Decimal("50"))
        assert alert.alert_type == AlertType.BASE_PRICE

    @pytest.mark.parametrize("price", ["0", "-1"])
    def test_target_price_must_be_positive(self, price: str) -> None:
        with pytest.raises(pydantic.ValidationError):
            _new_alert(target_price=Decimal(price))

    def test_reference_price_must_be_positive(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            _new_alert(reference_price=Decimal("0"))

    @pytest.mark.parametrize("market", ["bitso", "BT", "BIT-SO"])
    def test_market_format(self, market: str) -> None:
        with pytest.raises(pydantic.ValidationError):
            _new_alert(market=market)

    @pytest.mark.parametrize("pair", ["BTCMXN", "btc_mxn", "BTC_MXNUSDT", "B_MXN"])
    def test_pair_format(self, pair: str) -> None:
        with pytest.raises(pydantic.ValidationError):
            _new_alert(pair=pair)


class TestPriceAlert:
    def test_active_until_triggered(self) -> None:
        alert = PriceAlert(
            id=1,
            user_id="u",
            market="BITSO",
            pair="BTC_MXN",
            direction=AlertDirection.LESS_THAN_OR_EQUAL,
            target_price=Decimal("1"),
            created_at=NOW,
        )
        assert alert.is_active
        assert alert.key == MarketKey("BITSO", "BTC_MXN")
        assert alert.alert_type == AlertType.DEFAULT

        triggered = alert.model_copy(update={"triggered_at": NOW})
        assert not triggered.is_active

    def test_frozen(self) -> None:
        alert = PriceAlert(
            id=1,
            user_id="u",
            market="BITSO",
            pair="BTC_MXN",
            direction=AlertDirection.LESS_THAN_OR_EQUAL,
            target_price=Decimal("1"),
            created_at=NOW,
        )
        with pytest.raises(pydantic.ValidationError):
            alert.target_price = Decimal("2")  # type: ignore[misc]

    def test_base_price_alert_is_price_alert(self) -> None:
        alert = BasePriceAlert(
            id=1,
            user_id="u",
            market="BITSO",
            pair="BTC_MXN",
            direction=AlertDirection.GREATER_THAN_OR_EQUAL,
            target_price=Decimal("1"),
            reference_price=Decimal("2"),
            created_at=NOW,
        )
        assert isinstance(alert, PriceAlert)
        assert alert.alert_type == AlertType.BASE_PRICE


def test_quote_price_must_be_positive() -> None:
    with pytest.raises(pydantic.ValidationError):
        PriceQuote(market="BITSO", pair="BTC_MXN", price=Decimal("0"), observed_at=NOW)


def test_market_key_str() -> None:
    assert str(MarketKey("BINANCE", "ETH_USDT")) == "BINANCE:ETH_USDT"
