"""
테스트 공통 Fixture 정의

pytest conftest.py - 모든 테스트에서 공유하는 fixture들을 정의합니다.
- 파일 기반 SQLite(aiosqlite) 알림 저장소
- 가짜 시세 어댑터 / 기록용 Notifier
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from src.alerts.models import (
    AlertDirection,
    AlertPayload,
    NewAlert,
    PriceAlert,
    PriceQuote,
)
from src.alerts.store import AlertStore
from src.exceptions import InvalidPairError, NotificationError
from src.models.schema import Base


# ─────────────────── Fakes ─────────────────────


class FakePriceSource:
    """고정 가격표로 응답하는 시세 어댑터

    prices 값이 예외 인스턴스면 해당 예외를 발생시킵니다.
    """

    def __init__(
        self,
        market: str,
        prices: dict[str, Decimal | Exception] | None = None,
        *,
        delay: float = 0.0,
    ) -> None:
        self.market = market
        self.prices = prices or {}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def fetch_price(self, market: str, pair: str) -> PriceQuote:
        self.calls.append(pair)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            value = self.prices.get(pair)
            if isinstance(value, Exception):
                raise value
            if value is None:
                raise InvalidPairError(detail={"pair": pair})
            return PriceQuote(
                market=market,
                pair=pair,
                price=value,
                observed_at=datetime(2026, 10, 17, 12, 0, tzinfo=UTC),
            )
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        self.closed = True


class RecordingNotifier:
    """전송 내역을 기록하는 Notifier"""

    def __init__(self, *, fail: bool = False, delay: float = 0.0) -> None:
        self.fail = fail
        self.delay = delay
        self.sent: list[tuple[str, AlertPayload]] = []

    async def notify(self, user_id: str, payload: AlertPayload) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise NotificationError(detail={"alert_id": payload.alert_id})
        self.sent.append((user_id, payload))


# ─────────────────── Fixtures ─────────────────────


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """파일 기반 SQLite 엔진 (동시 연결 테스트용)"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'alerts.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """테스트용 세션 팩토리"""
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
def store(session_factory) -> AlertStore:
    """AlertStore 인스턴스"""
    return AlertStore(session_factory)


@pytest.fixture
def seed_alert(store: AlertStore) -> Callable[..., Awaitable[PriceAlert]]:
    """알림 생성 헬퍼"""

    async def _seed(
        *,
        user_id: str = "user-1",
        market: str = "BITSO",
        pair: str = "BTC_MXN",
        direction: AlertDirection = AlertDirection.GREATER_THAN_OR_EQUAL,
        target_price: str = "100",
        reference_price: str | None = None,
    ) -> PriceAlert:
        return await store.create_alert(
            NewAlert(
                user_id=user_id,
                market=market,
                pair=pair,
                direction=direction,
                target_price=Decimal(target_price),
                reference_price=Decimal(reference_price) if reference_price else None,
            )
        )

    return _seed


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_source() -> Callable[..., FakePriceSource]:
    """FakePriceSource 생성 헬퍼"""

    def _make(
        market: str,
        prices: dict[str, Decimal | Exception] | None = None,
        *,
        delay: float = 0.0,
    ) -> FakePriceSource:
        return FakePriceSource(market, prices, delay=delay)

    return _make


@pytest.fixture
def make_notifier() -> Callable[..., RecordingNotifier]:
    def _make(*, fail: bool = False, delay: float = 0.0) -> RecordingNotifier:
        return RecordingNotifier(fail=fail, delay=delay)

    return _make
