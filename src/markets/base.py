"""
거래소 시세 어댑터 공통 계약

각 거래소 어댑터는 PriceSource 프로토콜(fetch_price)을 구현합니다.
어댑터는 호출마다 타임아웃을 적용하고, 재시도는 하지 않습니다
(재시도는 다음 스케줄 사이클의 몫입니다).

모든 HTTP 오류는 PriceSourceError 계열 예외로 변환됩니다.
- 타임아웃 → PriceSourceTimeoutError
- 연결 실패/5xx/응답 형식 오류 → SourceUnavailableError
- 존재하지 않는 거래쌍 → InvalidPairError
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol, runtime_checkable

import httpx

from src.alerts.models import PriceQuote
from src.exceptions import (
    InvalidPairError,
    PriceSourceTimeoutError,
    SourceUnavailableError,
)
from src.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


@runtime_checkable
class PriceSource(Protocol):
    """거래소 하나의 현재가 조회 계약"""

    market: str

    async def fetch_price(self, market: str, pair: str) -> PriceQuote:
        """현재가 조회 (실패 시 PriceSourceError 계열 예외)"""
        ...

    async def aclose(self) -> None:
        ...


def split_pair(pair: str) -> tuple[str, str]:
    """'BTC_MXN' → ('BTC', 'MXN')"""
    base, sep, quote = pair.partition("_")
    if not sep or not base or not quote:
        raise InvalidPairError(
            f"거래쌍 형식이 올바르지 않습니다: {pair}",
            detail={"pair": pair},
        )
    return base, quote


def parse_price(raw: Any, *, market: str, pair: str) -> Decimal:
    """거래소 응답의 가격 문자열을 양수 Decimal로 변환"""
    try:
        price = Decimal(str(raw))
    except (InvalidOperation, ValueError) as e:
        raise SourceUnavailableError(
            f"{market} 시세 응답의 가격 형식이 올바르지 않습니다.",
            detail={"market": market, "pair": pair, "price": str(raw)},
        ) from e

    if not price.is_finite() or price <= 0:
        raise SourceUnavailableError(
            f"{market} 시세 응답의 가격이 유효하지 않습니다.",
            detail={"market": market, "pair": pair, "price": str(raw)},
        )
    return price


def expect_object(value: Any, *, market: str, pair: str, field: str) -> dict[str, Any]:
    """응답의 JSON 객체 필드 확인 (객체가 아니면 SourceUnavailableError)"""
    if not isinstance(value, dict):
        raise SourceUnavailableError(
            f"{market} 응답 형식이 올바르지 않습니다 ({field})",
            detail={"market": market, "pair": pair, "field": field, "type": type(value).__name__},
        )
    return value


def build_quote(market: str, pair: str, price: Decimal) -> PriceQuote:
    return PriceQuote(
        market=market,
        pair=pair,
        price=price,
        observed_at=datetime.now(UTC),
    )


async def request_json(
    client: httpx.AsyncClient,
    path: str,
    *,
    market: str,
    pair: str,
    params: dict[str, Any] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any]:
    """
    GET 요청 후 JSON 객체 본문 반환

    Args:
        client: 거래소 base_url이 설정된 httpx 비동기 클라이언트
        path: API 경로
        market: 거래소 ID (오류 메시지용)
        pair: 거래쌍 (오류 메시지용)
        params: 쿼리 파라미터
        timeout: 호출 전체 제한 시간 (초)

    Raises:
        PriceSourceTimeoutError: 제한 시간 초과
        InvalidPairError: 400/404 응답
        SourceUnavailableError: 연결 실패, 그 밖의 오류 응답, JSON 파싱 실패,
            본문이 JSON 객체가 아닌 경우
    """
    detail = {"market": market, "pair": pair, "path": path}

    try:
        async with asyncio.timeout(timeout):
            response = await client.get(path, params=params)
    except (TimeoutError, httpx.TimeoutException) as e:
        logger.warning("시세 조회 타임아웃: %s %s (%.1f초)", market, pair, timeout)
        raise PriceSourceTimeoutError(
            f"{market} 시세 조회 시간 초과 ({pair})",
            detail=detail,
        ) from e
    except httpx.HTTPError as e:
        logger.warning("시세 조회 연결 실패: %s %s (%s)", market, pair, e)
        raise SourceUnavailableError(
            f"{market} 연결 실패 ({pair})",
            detail={**detail, "error": str(e)},
        ) from e

    if response.status_code in (400, 404):
        raise InvalidPairError(
            f"{market}에서 지원하지 않는 거래쌍입니다: {pair}",
            detail={**detail, "status_code": response.status_code},
        )
    if response.status_code >= 400:
        raise SourceUnavailableError(
            f"{market} 오류 응답 (HTTP {response.status_code})",
            detail={**detail, "status_code": response.status_code},
        )

    try:
        body = response.json()
    except ValueError as e:
        raise SourceUnavailableError(
            f"{market} 응답 JSON 파싱 실패",
            detail=detail,
        ) from e
    return expect_object(body, market=market, pair=pair, field="body")


class PriceSourceRegistry:
    """거래소 ID → 어댑터 매핑"""

    def __init__(self, sources: Mapping[str, PriceSource] | None = None) -> None:
        self._sources: dict[str, PriceSource] = {}
        for market, source in (sources or {}).items():
            self.register(market, source)

    def register(self, market: str, source: PriceSource) -> None:
        self._sources[market.upper()] = source
        logger.info("시세 어댑터 등록: %s (%s)", market.upper(), type(source).__name__)

    def get(self, market: str) -> PriceSource | None:
        return self._sources.get(market.upper())

    @property
    def markets(self) -> list[str]:
        return sorted(self._sources)

    async def aclose(self) -> None:
        """모든 어댑터의 HTTP 연결 정리"""
        for source in self._sources.values():
            await source.aclose()
