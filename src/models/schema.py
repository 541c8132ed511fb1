"""
SQLAlchemy 데이터베이스 모델

가격 알림과 기준가(base price) 알림 테이블을 정의합니다.
SQLAlchemy 2.0 Mapped Column 패턴을 사용합니다.

기준가 알림은 alerts 행에 base_price_alerts 행이 1:1로 붙는 구조입니다.
트리거 여부는 alerts.triggered_on 컬럼 하나로만 표현합니다.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)

# 정수부 14자리 + 소수부 10자리
PRICE_PRECISION = 24
PRICE_SCALE = 10
PRICE_TYPE = Numeric(PRICE_PRECISION, PRICE_SCALE, asdecimal=True)


def _utcnow() -> datetime:
    """UTC 기준 현재 시각을 반환합니다."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """모든 모델의 베이스 클래스"""


class AlertRecord(Base):
    """가격 알림 테이블"""

    __tablename__ = "alerts"
    __table_args__ = (
        CheckConstraint("alert_type <> ''", name="alerts_alert_type_is_not_empty"),
        CheckConstraint("price > 0", name="alerts_price_greater_than_0"),
        Index("alerts_user_id_index", "user_id"),
        Index("alerts_created_on_index", "created_on"),
        Index("alerts_triggered_on_index", "triggered_on"),
        Index("alerts_price_index", "price"),
    )

    id: Mapped[int] = mapped_column(
        "alert_id",
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    alert_type: Mapped[str] = mapped_column(String(20))  # default, base_price
    user_id: Mapped[str] = mapped_column(String(40))
    market: Mapped[str] = mapped_column(String(20))  # BITSO, BINANCE, ...
    pair: Mapped[str] = mapped_column("book", String(11))  # BTC_MXN, ETH_USDT, ...
    is_greater_than: Mapped[bool]  # False → 이하(<=) 조건
    price: Mapped[Decimal] = mapped_column(PRICE_TYPE)
    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
    )
    triggered_on: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        default=None,
    )

    # 관계
    base_price: Mapped[BasePriceRecord | None] = relationship(
        back_populates="alert",
        uselist=False,
        lazy="raise",
    )


class BasePriceRecord(Base):
    """기준가 알림 부가 테이블 (매입가 기반 메시지용)"""

    __tablename__ = "base_price_alerts"
    __table_args__ = (
        CheckConstraint(
            "base_price > 0",
            name="base_price_alerts_base_price_greater_than_0",
        ),
    )

    alert_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("alerts.alert_id"),
        primary_key=True,
    )
    base_price: Mapped[Decimal] = mapped_column(PRICE_TYPE)

    # 관계
    alert: Mapped[AlertRecord] = relationship(back_populates="base_price")
