"""알림 메시지 렌더링 / 알림 채널 선택 테스트"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from config.settings import Settings
from src.alerts.models import AlertDirection, AlertPayload
from src.notification import (
    DiscordNotifier,
    LogNotifier,
    Notifier,
    build_notifier,
    render_alert_message,
)
from src.notification.message import format_delta, format_price


def _payload(**overrides: object) -> AlertPayload:
    fields: dict[str, object] = {
        "alert_id": 1,
        "market": "BITSO",
        "pair": "BTC_MXN",
        "direction": AlertDirection.GREATER_THAN_OR_EQUAL,
        "target_price": Decimal("1200000"),
        "observed_price": Decimal("1250000"),
        "observed_at": datetime(2026, 10, 17, 12, 0, tzinfo=UTC),
    }
    fields.update(overrides)
    return AlertPayload(**fields)  # type: ignore[arg-type]


# ───────────────────── 포맷 ─────────────────────


class TestFormat:
    @pytest.mark.parametrize(
        ("price", "expected"),
        [
            ("1250000", "1,250,000"),
            ("1250000.50", "1,250,000.5"),
            ("0.00012300", "0.000123"),
            ("67123.45000000", "67,123.45"),
        ],
    )
    def test_format_price(self, price: str, expected: str) -> None:
        assert format_price(Decimal(price)) == expected

    @pytest.mark.parametrize(
        ("delta", "expected"),
        [("50.00", "+50.00%"), ("-25.00", "-25.00%"), ("0.00", "0.00%")],
    )
    def test_format_delta(self, delta: str, expected: str) -> None:
        assert format_delta(Decimal(delta)) == expected


# ───────────────────── 메시지 ─────────────────────


class TestRenderAlertMessage:
    def test_plain_alert(self) -> None:
        message = render_alert_message(_payload())
        assert message == "BTC/MXN 현재가 1,250,000 (BITSO) — 목표가 1,200,000 이상 도달"

    def test_less_than_alert(self) -> None:
        message = render_alert_message(
            _payload(
                direction=AlertDirection.LESS_THAN_OR_EQUAL,
                observed_price=Decimal("1100000"),
            )
        )
        assert "이하 도달" in message

    def test_base_price_gain(self) -> None:
        message = render_alert_message(
            _payload(reference_price=Decimal("1000000"), delta_percent=Decimal("25.00"))
        )
        assert message.splitlines()[1] == "매입가 1,000,000 대비 +25.00% 수익입니다."

    def test_base_price_loss(self) -> None:
        message = render_alert_message(
            _payload(reference_price=Decimal("1500000"), delta_percent=Decimal("-16.67"))
        )
        assert message.endswith("-16.67% 손실입니다.")

    def test_base_price_flat(self) -> None:
        message = render_alert_message(
            _payload(reference_price=Decimal("1250000"), delta_percent=Decimal("0.00"))
        )
        assert message.endswith("변동 없음입니다.")


# ───────────────────── 채널 선택 ─────────────────────


class TestBuildNotifier:
    def test_log_notifier_without_webhook(self) -> None:
        notifier = build_notifier(Settings(_env_file=None, discord_webhook_url=""))
        assert isinstance(notifier, LogNotifier)
        assert isinstance(notifier, Notifier)

    def test_discord_with_webhook(self) -> None:
        config = Settings(
            _env_file=None,
            discord_webhook_url="https://discord.com/api/webhooks/x",
            notify_timeout_seconds=3,
        )
        notifier = build_notifier(config)
        assert isinstance(notifier, DiscordNotifier)
        assert notifier.webhook_url == "https://discord.com/api/webhooks/x"

    def test_request_timeout_leaves_room_for_retries(self) -> None:
        """재시도까지 포함한 전송이 notify 제한 시간 안에 끝나야 함"""
        config = Settings(
            _env_file=None,
            discord_webhook_url="https://discord.com/api/webhooks/x",
            notify_timeout_seconds=9,
            notify_max_retries=2,
        )
        notifier = build_notifier(config)

        assert isinstance(notifier, DiscordNotifier)
        assert notifier.request_timeout == pytest.approx(3.0)
        assert notifier.request_timeout < config.notify_timeout_seconds


@pytest.mark.asyncio
async def test_log_notifier_logs_message(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="src.notification.notifier"):
        await LogNotifier().notify("alice", _payload())

    assert "alice" in caplog.text
    assert "BTC/MXN" in caplog.text
