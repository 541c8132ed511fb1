"""
KuCoin 시세 어댑터

GET https://api.kucoin.com/api/v1/market/orderbook/level1?symbol=BTC-USDT

응답 예시::

    {"code": "200000", "data": {"price": "67120.1", "time": 1729150000000, ...}}

존재하지 않는 심볼은 HTTP 200 + data=null 로 응답합니다.
"""

from __future__ import annotations

import httpx

from src.alerts.models import PriceQuote
from src.exceptions import InvalidPairError, SourceUnavailableError
from src.markets.base import (
    DEFAULT_TIMEOUT,
    build_quote,
    expect_object,
    parse_price,
    request_json,
    split_pair,
)

BASE_URL = "https://api.kucoin.com"
PATH_LEVEL1 = "/api/v1/market/orderbook/level1"

CODE_SUCCESS = "200000"


class KucoinPriceSource:
    """KuCoin 현재가 조회"""

    market = "KUCOIN"

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
        """'BTC_USDT' → 'BTC-USDT'"""
        base, quote = split_pair(pair)
        return f"{base}-{quote}"

    async def fetch_price(self, market: str, pair: str) -> PriceQuote:
        data = await request_json(
            self._client,
            PATH_LEVEL1,
            market=self.market,
            pair=pair,
            params={"symbol": self.to_symbol(pair)},
            timeout=self._timeout,
        )

        if data.get("code") != CODE_SUCCESS:
            raise SourceUnavailableError(
                "KuCoin 오류 응답",
                detail={"market": self.market, "pair": pair, "code": str(data.get("code"))},
            )

        ticker = data.get("data")
        if ticker is None:
            raise InvalidPairError(
                f"KuCoin에 없는 심볼입니다: {pair}",
                detail={"market": self.market, "pair": pair},
            )

        ticker = expect_object(ticker, market=self.market, pair=pair, field="data")
        price = parse_price(ticker.get("price"), market=self.market, pair=pair)
        return build_quote(market, pair, price)
