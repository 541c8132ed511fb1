"""
Bitso 시세 어댑터

GET https://api.bitso.com/v3/ticker/?book=btc_mxn

응답 예시::

    {"success": true, "payload": {"book": "btc_mxn", "last": "1250000.00", ...}}
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

BASE_URL = "https://api.bitso.com"
PATH_TICKER = "/v3/ticker/"

# Bitso 오류 코드: 존재하지 않는 오더북
ERROR_UNKNOWN_BOOK = "0301"


class BitsoPriceSource:
    """Bitso 현재가 조회"""

    market = "BITSO"

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
    def to_book(pair: str) -> str:
        """'BTC_MXN' → 'btc_mxn'"""
        base, quote = split_pair(pair)
        return f"{base}_{quote}".lower()

    async def fetch_price(self, market: str, pair: str) -> PriceQuote:
        data = await request_json(
            self._client,
            PATH_TICKER,
            market=self.market,
            pair=pair,
            params={"book": self.to_book(pair)},
            timeout=self._timeout,
        )

        if not data.get("success", False):
            error = data.get("error") or {}
            if isinstance(error, dict) and error.get("code") == ERROR_UNKNOWN_BOOK:
                raise InvalidPairError(
                    f"Bitso에 없는 오더북입니다: {pair}",
                    detail={"market": self.market, "pair": pair},
                )
            raise SourceUnavailableError(
                "Bitso 오류 응답",
                detail={"market": self.market, "pair": pair, "error": str(error)},
            )

        payload = expect_object(
            data.get("payload"), market=self.market, pair=pair, field="payload"
        )
        price = parse_price(payload.get("last"), market=self.market, pair=pair)
        return build_quote(market, pair, price)
