"""
가격 알림 도메인 모델

알림(PriceAlert / BasePriceAlert), 시세(PriceQuote), 평가 결과와
트리거 클레임 결과를 정의합니다. 모두 한 사이클 동안만 쓰이는 불변 값입니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

MARKET_PATTERN = r"^[A-Z]{3,20}$"
PAIR_PATTERN = r"^[A-Z]{3,5}_[A-Z]{3,5}$"


class AlertDirection(str, Enum):
    """트리거 방향"""

    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"


class AlertType(str, Enum):
    """알림 종류 (저장 시 alert_type 컬럼 값)"""

    DEFAULT = "default"
    BASE_PRICE = "base_price"


class ClaimResult(str, Enum):
    """try_claim 결과"""

    CLAIMED = "claimed"
    ALREADY_TRIGGERED = "already_triggered"


class MarketKey(NamedTuple):
    """시세 조회 단위 (거래소, 거래쌍)"""

    market: str
    pair: str

    def __str__(self) -> str:
        return f"{self.market}:{self.pair}"


class PriceAlert(BaseModel):
    """가격 알림"""

    id: int
    user_id: str
    market: str
    pair: str
    direction: AlertDirection
    target_price: Decimal = Field(..., gt=0)
    created_at: datetime
    triggered_at: datetime | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def alert_type(self) -> AlertType:
        return AlertType.DEFAULT

    @property
    def key(self) -> MarketKey:
        return MarketKey(self.market, self.pair)

    @property
    def is_active(self) -> bool:
        """트리거되지 않은 알림만 평가 대상"""
        return self.triggered_at is None


class BasePriceAlert(PriceAlert):
    """기준가(매입가) 알림 — 트리거 조건은 PriceAlert와 같고 메시지에만 기준가를 사용"""

    reference_price: Decimal = Field(..., gt=0)

    @property
    def alert_type(self) -> AlertType:
        return AlertType.BASE_PRICE


class NewAlert(BaseModel):
    """저장소에 새로 기록할 알림 (외부 API에서 검증을 마친 값)"""

    user_id: str = Field(..., min_length=1, max_length=40)
    market: str = Field(..., pattern=MARKET_PATTERN)
    pair: str = Field(..., pattern=PAIR_PATTERN)
    direction: AlertDirection
    target_price: Decimal = Field(..., gt=0)
    reference_price: Decimal | None = Field(default=None, gt=0)

    @property
    def alert_type(self) -> AlertType:
        if self.reference_price is None:
            return AlertType.DEFAULT
        return AlertType.BASE_PRICE


class PriceQuote(BaseModel):
    """거래소에서 조회한 현재가 (저장하지 않음)"""

    market: str
    pair: str
    price: Decimal = Field(..., gt=0)
    observed_at: datetime

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> MarketKey:
        return MarketKey(self.market, self.pair)


class AlertPayload(BaseModel):
    """트리거된 알림의 메시지 데이터 (Notifier 전달용)"""

    alert_id: int
    market: str
    pair: str
    direction: AlertDirection
    target_price: Decimal
    observed_price: Decimal
    observed_at: datetime
    reference_price: Decimal | None = None
    delta_percent: Decimal | None = None

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class Evaluation:
    """평가 결과: payload가 있으면 Satisfied, 없으면 NotSatisfied"""

    payload: AlertPayload | None = None

    @property
    def satisfied(self) -> bool:
        return self.payload is not None


NOT_SATISFIED = Evaluation()
