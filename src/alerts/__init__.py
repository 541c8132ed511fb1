"""
가격 알림 패키지

알림 도메인 모델, 조건 판정(evaluator), 알림 저장소(store)를 제공합니다.
"""

from __future__ import annotations

__all__ = [
    "AlertDirection",
    "AlertPayload",
    "AlertStore",
    "AlertType",
    "BasePriceAlert",
    "ClaimResult",
    "Evaluation",
    "MarketKey",
    "NewAlert",
    "PriceAlert",
    "PriceQuote",
    "evaluate",
]

from src.alerts.evaluator import evaluate
from src.alerts.models import (
    AlertDirection,
    AlertPayload,
    AlertType,
    BasePriceAlert,
    ClaimResult,
    Evaluation,
    MarketKey,
    NewAlert,
    PriceAlert,
    PriceQuote,
)
from src.alerts.store import AlertStore
