"""
알림 조건 판정

I/O 없는 순수 함수로 알림과 시세를 비교해 트리거 여부와
알림 메시지용 payload를 계산합니다.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from src.alerts.models import (
    NOT_SATISFIED,
    AlertDirection,
    AlertPayload,
    BasePriceAlert,
    Evaluation,
    PriceAlert,
    PriceQuote,
)

# 기준가 대비 등락률 소수 자릿수
DELTA_DECIMAL_PLACES = 2

_DELTA_QUANTUM = Decimal(1).scaleb(-DELTA_DECIMAL_PLACES)


def is_condition_met(alert: PriceAlert, price: Decimal) -> bool:
    """트리거 방향에 따라 현재가가 목표가에 도달했는지 판정"""
    if alert.direction == AlertDirection.GREATER_THAN_OR_EQUAL:
        return price >= alert.target_price
    if alert.direction == AlertDirection.LESS_THAN_OR_EQUAL:
        return price <= alert.target_price
    return False


def delta_percent(reference_price: Decimal, observed_price: Decimal) -> Decimal:
    """
    기준가 대비 등락률(%) 계산

    Args:
        reference_price: 기준가 (매입가, 0보다 커야 함)
        observed_price: 현재가

    Returns:
        (현재가 - 기준가) / 기준가 * 100, 소수 둘째 자리 반올림
    """
    if reference_price <= 0:
        raise ValueError(f"reference_price must be positive: {reference_price}")
    delta = (observed_price - reference_price) / reference_price * 100
    return delta.quantize(_DELTA_QUANTUM, rounding=ROUND_HALF_UP)


def evaluate(alert: PriceAlert, quote: PriceQuote) -> Evaluation:
    """
    알림 하나를 시세 하나에 대해 평가합니다.

    Args:
        alert: 평가할 알림 (같은 거래소/거래쌍의 시세와 짝지어야 함)
        quote: 이번 사이클에 조회한 시세

    Returns:
        조건 충족 시 payload를 담은 Evaluation, 아니면 NOT_SATISFIED

    Raises:
        ValueError: 알림과 시세의 (market, pair)가 다른 경우
    """
    if alert.key != quote.key:
        raise ValueError(f"quote {quote.key} does not match alert {alert.id} ({alert.key})")

    if not is_condition_met(alert, quote.price):
        return NOT_SATISFIED

    reference_price = None
    delta = None
    if isinstance(alert, BasePriceAlert):
        reference_price = alert.reference_price
        delta = delta_percent(alert.reference_price, quote.price)

    return Evaluation(
        payload=AlertPayload(
            alert_id=alert.id,
            market=alert.market,
            pair=alert.pair,
            direction=alert.direction,
            target_price=alert.target_price,
            observed_price=quote.price,
            observed_at=quote.observed_at,
            reference_price=reference_price,
            delta_percent=delta,
        )
    )
