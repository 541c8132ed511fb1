"""
알림 저장소

alerts / base_price_alerts 테이블을 감싸는 저장소로,
알림 엔진이 쓰는 조회 연산과 트리거 클레임(compare-and-set)을 제공합니다.

Usage::

    store = AlertStore(async_session_factory)

    keys = await store.list_distinct_active_keys()
    alerts = await store.list_active_alerts("BITSO", "BTC_MXN")

    if await store.try_claim(alert.id, datetime.now(UTC)) is ClaimResult.CLAIMED:
        ...  # 이 프로세스만 알림을 보낸다

try_claim은 "triggered_on IS NULL" 조건을 건 단일 UPDATE로 구현되어
여러 프로세스가 동시에 같은 알림을 평가해도 클레임은 한 번만 성공합니다.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.alerts.models import (
    AlertDirection,
    AlertType,
    BasePriceAlert,
    ClaimResult,
    MarketKey,
    NewAlert,
    PriceAlert,
)
from src.exceptions import AlertStoreError, NotFoundError
from src.models.schema import AlertRecord, BasePriceRecord
from src.utils.logger import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


@contextmanager
def _store_errors(operation: str, **detail: object) -> Iterator[None]:
    """SQLAlchemy 오류를 AlertStoreError로 변환"""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("알림 저장소 오류: %s (%s)", operation, e)
        raise AlertStoreError(
            f"알림 저장소 작업 실패: {operation}",
            detail={"operation": operation, **{k: str(v) for k, v in detail.items()}},
        ) from e


def _to_domain(record: AlertRecord, base_price: Decimal | None) -> PriceAlert:
    """DB 레코드 → 도메인 모델 변환"""
    fields = {
        "id": record.id,
        "user_id": record.user_id,
        "market": record.market,
        "pair": record.pair,
        "direction": (
            AlertDirection.GREATER_THAN_OR_EQUAL
            if record.is_greater_than
            else AlertDirection.LESS_THAN_OR_EQUAL
        ),
        "target_price": record.price,
        "created_at": record.created_on,
        "triggered_at": record.triggered_on,
    }
    if record.alert_type == AlertType.BASE_PRICE.value and base_price is not None:
        return BasePriceAlert(reference_price=base_price, **fields)
    return PriceAlert(**fields)


def _alert_query():  # type: ignore[no-untyped-def]
    return select(AlertRecord, BasePriceRecord.base_price).outerjoin(
        BasePriceRecord,
        BasePriceRecord.alert_id == AlertRecord.id,
    )


class AlertStore:
    """알림 저장소 (PostgreSQL / SQLite)

    트리거 상태(triggered_on)의 유일한 쓰기 주체는 try_claim입니다.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Args:
            session_factory: 비동기 DB 세션 팩토리
        """
        self._session_factory = session_factory

    # ───────────────────── Inbound (API) ─────────────────────

    async def create_alert(self, new_alert: NewAlert) -> PriceAlert:
        """알림 생성 (활성 상태로 저장)"""
        with _store_errors("create_alert", user_id=new_alert.user_id):
            async with self._session_factory() as session:
                record = AlertRecord(
                    alert_type=new_alert.alert_type.value,
                    user_id=new_alert.user_id,
                    market=new_alert.market,
                    pair=new_alert.pair,
                    is_greater_than=(
                        new_alert.direction == AlertDirection.GREATER_THAN_OR_EQUAL
                    ),
                    price=new_alert.target_price,
                    created_on=datetime.now(UTC),
                )
                session.add(record)
                await session.flush()

                if new_alert.reference_price is not None:
                    session.add(
                        BasePriceRecord(
                            alert_id=record.id,
                            base_price=new_alert.reference_price,
                        )
                    )
                    await session.flush()

                alert = _to_domain(record, new_alert.reference_price)
                await session.commit()

        logger.info(
            "알림 생성: ID=%s, 사용자=%s, %s:%s, 방향=%s, 목표가=%s",
            alert.id,
            alert.user_id,
            alert.market,
            alert.pair,
            alert.direction.value,
            alert.target_price,
        )
        return alert

    async def get_alert(self, alert_id: int) -> PriceAlert:
        """알림 단건 조회

        Raises:
            NotFoundError: 알림이 없는 경우
        """
        with _store_errors("get_alert", alert_id=alert_id):
            async with self._session_factory() as session:
                row = (
                    await session.execute(
                        _alert_query().where(AlertRecord.id == alert_id)
                    )
                ).one_or_none()

        if row is None:
            raise NotFoundError(
                f"알림 ID {alert_id}를 찾을 수 없습니다.",
                detail={"alert_id": alert_id},
            )
        return _to_domain(row[0], row[1])

    async def list_user_alerts(
        self,
        user_id: str,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[PriceAlert]:
        """사용자의 알림 목록 (최신순)"""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        with _store_errors("list_user_alerts", user_id=user_id):
            async with self._session_factory() as session:
                rows = (
                    await session.execute(
                        _alert_query()
                        .where(AlertRecord.user_id == user_id)
                        .order_by(AlertRecord.created_on.desc(), AlertRecord.id.desc())
                        .limit(limit)
                        .offset(max(0, offset))
                    )
                ).all()
        return [_to_domain(record, base_price) for record, base_price in rows]

    # ───────────────────── Engine ─────────────────────

    async def list_distinct_active_keys(self) -> set[MarketKey]:
        """활성 알림이 있는 (거래소, 거래쌍) 목록 — 이번 사이클에 조회할 시세 키"""
        with _store_errors("list_distinct_active_keys"):
            async with self._session_factory() as session:
                rows = (
                    await session.execute(
                        select(AlertRecord.market, AlertRecord.pair)
                        .where(AlertRecord.triggered_on.is_(None))
                        .distinct()
                    )
                ).all()

        keys = {MarketKey(market, pair) for market, pair in rows}
        logger.debug("활성 시세 키 %d개", len(keys))
        return keys

    async def list_active_alerts(self, market: str, pair: str) -> list[PriceAlert]:
        """특정 키의 활성 알림 전체 (단일 SELECT)"""
        with _store_errors("list_active_alerts", market=market, pair=pair):
            async with self._session_factory() as session:
                rows = (
                    await session.execute(
                        _alert_query()
                        .where(
                            AlertRecord.market == market,
                            AlertRecord.pair == pair,
                            AlertRecord.triggered_on.is_(None),
                        )
                        .order_by(AlertRecord.created_on, AlertRecord.id)
                    )
                ).all()
        return [_to_domain(record, base_price) for record, base_price in rows]

    async def try_claim(self, alert_id: int, triggered_at: datetime) -> ClaimResult:
        """
        알림 트리거 클레임 (compare-and-set)

        triggered_on이 비어 있을 때만 값을 기록합니다.
        영향받은 행 수가 1이면 CLAIMED, 0이면 이미 다른 사이클이 클레임한 것입니다.

        Args:
            alert_id: 알림 ID
            triggered_at: 트리거 시각

        Returns:
            ClaimResult.CLAIMED 또는 ClaimResult.ALREADY_TRIGGERED

        Raises:
            NotFoundError: 알림이 존재하지 않는 경우
            AlertStoreError: DB 오류
        """
        stmt = (
            update(AlertRecord)
            .where(
                AlertRecord.id == alert_id,
                AlertRecord.triggered_on.is_(None),
            )
            .values(triggered_on=triggered_at)
            .execution_options(synchronize_session=False)
        )

        with _store_errors("try_claim", alert_id=alert_id):
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)

                if result.rowcount == 1:
                    logger.info(
                        "알림 클레임 성공: ID=%s",
                        alert_id,
                        extra={"alert_id": alert_id},
                    )
                    return ClaimResult.CLAIMED

                exists = await session.scalar(
                    select(AlertRecord.id).where(AlertRecord.id == alert_id)
                )

        if exists is None:
            raise NotFoundError(
                f"알림 ID {alert_id}를 찾을 수 없습니다.",
                detail={"alert_id": alert_id},
            )

        logger.debug("이미 트리거된 알림: ID=%s", alert_id)
        return ClaimResult.ALREADY_TRIGGERED
