"""
Binance 시세 어댑터

GET https://api.binance.com/api/v3/ticker/price?symbol=BTCUSDT

응답 예시::

    {"symbol": "BTCUSDT", "price": "67123.45000000"}

존재하지 않는 심볼은 HTTP 400 ({"code": -1121, "msg": "Invalid symbol."})으로 응답합니다.
"""

from __future__ import annotations

import httpx

from src.alerts.models import PriceQuote
from src.markets.base import (
    DEFAULT_TIMEOUT,
    build_quote,
    parse_price,
    request_json,
    split_pair,
)

BASE_URL = "https://api.binance.com"
PATH_TICKER_PRICE = "/api/v3/ticker/price"


class BinancePriceSource:
    """Binance 현재가 조회"""

    market = "BINANCE"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._timeout = timeout
        self._client = client or httpx.AsyncClient(base_url=BASE_URL, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def to_symbol(pair: str) -> str:
        """'BTC_USDT' → 'BTCUSDT'"""
        base, quote = split_pair(pair)
        return f"{base}{quote}"

    async def fetch_price(self, market: str, pair: str) -> PriceQuote:
        data = await request_json(
            self._client,
            PATH_TICKER_PRICE,
            market=self.market,
            pair=pair,
            params={"symbol": self.to_symbol(pair)},
            timeout=self._timeout,
        )
        price = parse_price(data.get("price"), market=self.market, pair=pair)
        return build_quote(market, pair, price)
