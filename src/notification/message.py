"""
알림 메시지 렌더링

트리거된 알림 payload를 사용자에게 보낼 문장으로 변환합니다.
기준가 알림이면 매입가 대비 수익/손실 문구를 덧붙입니다.
"""

from __future__ import annotations

from decimal import Decimal

from src.alerts.models import AlertDirection, AlertPayload


def format_price(price: Decimal) -> str:
    """천 단위 구분 + 불필요한 0 제거 (최대 소수 8자리)"""
    quantized = price.quantize(Decimal("0.00000001")).normalize()
    if quantized == quantized.to_integral():
        return f"{quantized:,.0f}"
    text = f"{quantized:,f}"
    return text.rstrip("0").rstrip(".")


def format_delta(delta: Decimal) -> str:
    """+12.50% / -3.00% 형식"""
    sign = "+" if delta > 0 else ""
    return f"{sign}{delta:.2f}%"


def render_title(payload: AlertPayload) -> str:
    return f"{payload.pair.replace('_', '/')} @ {payload.market} 가격 알림"


def render_alert_message(payload: AlertPayload) -> str:
    """
    알림 본문 생성

    예시::

        BTC/MXN 현재가 1,250,000 (BITSO) — 목표가 1,200,000 이상 도달
        매입가 1,000,000 대비 +25.00% 수익입니다.
    """
    condition = (
        "이상" if payload.direction == AlertDirection.GREATER_THAN_OR_EQUAL else "이하"
    )
    lines = [
        f"{payload.pair.replace('_', '/')} 현재가 {format_price(payload.observed_price)} "
        f"({payload.market}) — 목표가 {format_price(payload.target_price)} {condition} 도달",
    ]

    if payload.reference_price is not None and payload.delta_percent is not None:
        if payload.delta_percent > 0:
            outcome = "수익"
        elif payload.delta_percent < 0:
            outcome = "손실"
        else:
            outcome = "변동 없음"
        lines.append(
            f"매입가 {format_price(payload.reference_price)} 대비 "
            f"{format_delta(payload.delta_percent)} {outcome}입니다."
        )

    return "\n".join(lines)
