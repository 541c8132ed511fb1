"""
알림 엔진 구성

설정값으로 저장소, 시세 어댑터, 알림 채널, 오케스트레이터, 스케줄러를 조립합니다.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import Settings
from src.alerts.store import AlertStore
from src.engine.orchestrator import CycleOrchestrator
from src.engine.scheduler import AlertScheduler
from src.markets import build_registry
from src.markets.base import PriceSourceRegistry
from src.notification.notifier import Notifier, build_notifier
from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AlertEngine:
    """조립된 알림 엔진 구성요소"""

    store: AlertStore
    sources: PriceSourceRegistry
    notifier: Notifier
    orchestrator: CycleOrchestrator
    scheduler: AlertScheduler

    async def aclose(self) -> None:
        """진행 중인 사이클을 마무리한 뒤 HTTP 연결 정리"""
        await self.scheduler.shutdown()
        await self.sources.aclose()
        logger.info("알림 엔진 종료")


def build_engine(
    config: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    *,
    event_loop: asyncio.AbstractEventLoop | None = None,
) -> AlertEngine:
    """설정으로 알림 엔진 조립"""
    store = AlertStore(session_factory)
    sources = build_registry(config)
    notifier = build_notifier(config)
    orchestrator = CycleOrchestrator(
        store,
        sources,
        notifier,
        market_concurrency=config.market_concurrency,
        cycle_timeout=config.cycle_timeout_seconds,
        notify_timeout=config.notify_timeout_seconds,
    )
    scheduler = AlertScheduler(
        orchestrator,
        interval_seconds=config.poll_interval_seconds,
        event_loop=event_loop,
    )
    logger.info(
        "알림 엔진 구성: 거래소=%s, 주기=%d초, 거래소별 동시성=%d",
        ",".join(sources.markets) or "-",
        config.poll_interval_seconds,
        config.market_concurrency,
    )
    return AlertEngine(
        store=store,
        sources=sources,
        notifier=notifier,
        orchestrator=orchestrator,
        scheduler=scheduler,
    )
