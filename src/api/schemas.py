"""
API 요청/응답 Pydantic 스키마

가격 알림, 알림 엔진 상태, 헬스체크 관련 DTO를 정의합니다.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from src.alerts.models import (
    MARKET_PATTERN,
    PAIR_PATTERN,
    AlertDirection,
    AlertType,
    BasePriceAlert,
    NewAlert,
    PriceAlert,
)
from src.models.schema import PRICE_PRECISION, PRICE_SCALE


# ─────────────────────────────────────────────
# 공통
# ─────────────────────────────────────────────

class ErrorDetail(BaseModel):
    """에러 응답"""

    code: str
    message: str
    detail: dict | None = None


class ErrorResponse(BaseModel):
    """에러 응답 래퍼"""

    error: ErrorDetail


# ─────────────────────────────────────────────
# 알림
# ─────────────────────────────────────────────

class AlertCreateRequest(BaseModel):
    """알림 생성 요청"""

    market: str = Field(..., pattern=MARKET_PATTERN, description="거래소 (예: BITSO)")
    pair: str = Field(..., pattern=PAIR_PATTERN, description="거래쌍 (예: BTC_MXN)")
    direction: AlertDirection = Field(description="트리거 방향")
    target_price: Decimal = Field(
        ...,
        gt=0,
        max_digits=PRICE_PRECISION,
        decimal_places=PRICE_SCALE,
        description="목표가",
    )
    reference_price: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=PRICE_PRECISION,
        decimal_places=PRICE_SCALE,
        description="매입가 (지정 시 기준가 알림)",
    )

    def to_new_alert(self, user_id: str) -> NewAlert:
        return NewAlert(user_id=user_id, **self.model_dump())


class AlertResponse(BaseModel):
    """알림 응답"""

    id: int = Field(description="알림 ID")
    alert_type: AlertType = Field(description="알림 종류")
    market: str = Field(description="거래소")
    pair: str = Field(description="거래쌍")
    direction: AlertDirection = Field(description="트리거 방향")
    target_price: Decimal = Field(description="목표가")
    reference_price: Decimal | None = Field(default=None, description="매입가")
    created_at: datetime = Field(description="생성 시각")
    triggered_at: datetime | None = Field(default=None, description="트리거 시각")

    @classmethod
    def from_alert(cls, alert: PriceAlert) -> AlertResponse:
        return cls(
            id=alert.id,
            alert_type=alert.alert_type,
            market=alert.market,
            pair=alert.pair,
            direction=alert.direction,
            target_price=alert.target_price,
            reference_price=(
                alert.reference_price if isinstance(alert, BasePriceAlert) else None
            ),
            created_at=alert.created_at,
            triggered_at=alert.triggered_at,
        )


# ─────────────────────────────────────────────
# 알림 엔진
# ─────────────────────────────────────────────

class EngineStatusResponse(BaseModel):
    """스케줄러 상태"""

    is_running: bool = Field(description="스케줄러 실행 여부")
    cycle_in_progress: bool = Field(description="사이클 진행 여부")
    interval_seconds: int = Field(description="실행 주기 (초)")
    next_run_time: str | None = Field(default=None, description="다음 실행 예정 시각")
    total_cycles: int = Field(description="기록된 사이클 수")
    last_cycle_result: dict[str, Any] | None = Field(default=None, description="최근 사이클 결과")
    markets: list[str] = Field(default_factory=list, description="활성 거래소 어댑터")


class CycleResultResponse(BaseModel):
    """사이클 실행 결과"""

    timestamp: str
    status: str
    reason: str | None = None
    error: str | None = None
    cycle_result: dict[str, Any] | None = None
