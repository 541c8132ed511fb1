"""
거래소 시세 어댑터 패키지

거래소별 PriceSource 구현과 거래소 ID → 어댑터 레지스트리를 제공합니다.
"""

from __future__ import annotations

from config.settings import Settings
from src.markets.base import PriceSource, PriceSourceRegistry
from src.markets.binance import BinancePriceSource
from src.markets.bitso import BitsoPriceSource
from src.markets.kucoin import KucoinPriceSource
from src.utils.logger import get_logger

logger = get_logger(__name__)

__all__ = [
    "AVAILABLE_SOURCES",
    "BinancePriceSource",
    "BitsoPriceSource",
    "KucoinPriceSource",
    "PriceSource",
    "PriceSourceRegistry",
    "build_registry",
]

AVAILABLE_SOURCES: dict[str, type] = {
    BitsoPriceSource.market: BitsoPriceSource,
    BinancePriceSource.market: BinancePriceSource,
    KucoinPriceSource.market: KucoinPriceSource,
}


def build_registry(config: Settings) -> PriceSourceRegistry:
    """설정의 enabled_markets로 어댑터 레지스트리 구성"""
    registry = PriceSourceRegistry()
    for market in config.enabled_markets:
        source_cls = AVAILABLE_SOURCES.get(market)
        if source_cls is None:
            logger.warning("지원하지 않는 거래소 설정 무시: %s", market)
            continue
        registry.register(market, source_cls(timeout=config.fetch_timeout_seconds))
    return registry
