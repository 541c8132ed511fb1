"""
알림 평가 사이클 오케스트레이터

한 번의 사이클은 다음 순서로 진행됩니다.

1. 저장소에서 활성 알림이 있는 (거래소, 거래쌍) 키 조회
2. 거래소별로 묶어 시세 조회 (거래소마다 독립된 동시 실행 제한)
3. 시세를 얻은 키마다 활성 알림을 읽어 같은 시세로 평가
4. 조건을 충족한 알림은 try_claim → 성공한 경우에만 Notifier 호출
5. 알림 전송 실패는 로그만 남기고 클레임은 되돌리지 않음

시세 조회 실패는 해당 키만 이번 사이클에서 건너뛰고, 다음 사이클이 자연스럽게 재시도합니다.
사이클 전체에는 제한 시간이 있으며, 시간이 지나면 남은 조회/평가는 취소하되
이미 시작된 클레임-알림 쌍은 끝까지 실행합니다.
"""

from __future__ import annotations

import asyncio
import uuid
from collections import defaultdict
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

from src.alerts.evaluator import evaluate
from src.alerts.models import AlertPayload, ClaimResult, MarketKey, PriceAlert
from src.alerts.store import AlertStore
from src.exceptions import (
    AlertStoreError,
    NotFoundError,
    NotificationError,
    PriceSourceError,
)
from src.markets.base import PriceSource, PriceSourceRegistry
from src.notification.notifier import Notifier
from src.utils.logger import get_logger

logger = get_logger(__name__)

NO_SOURCE = "NO_PRICE_SOURCE"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class CycleReport:
    """사이클 실행 결과 요약"""

    cycle_id: str
    started_at: datetime
    finished_at: datetime | None = None
    keys_total: int = 0
    quotes_fetched: int = 0
    alerts_evaluated: int = 0
    alerts_satisfied: int = 0
    claimed: int = 0
    already_triggered: int = 0
    notified: int = 0
    notify_failures: int = 0
    store_errors: int = 0
    failed_keys: dict[str, str] = field(default_factory=dict)
    skipped_markets: list[str] = field(default_factory=list)
    aborted: bool = False
    timed_out: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["finished_at"] = self.finished_at.isoformat() if self.finished_at else None
        return data


@dataclass
class _CycleState:
    report: CycleReport
    handoffs: set[asyncio.Future[None]] = field(default_factory=set)


class CycleOrchestrator:
    """알림 평가 사이클 실행기

    Usage::

        orchestrator = CycleOrchestrator(store, registry, notifier)
        report = await orchestrator.run_cycle()
    """

    def __init__(
        self,
        store: AlertStore,
        sources: PriceSourceRegistry,
        notifier: Notifier,
        *,
        market_concurrency: int = 4,
        cycle_timeout: float = 50.0,
        notify_timeout: float = 10.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Args:
            store: 알림 저장소
            sources: 거래소 ID → 시세 어댑터 레지스트리
            notifier: 알림 전송 채널
            market_concurrency: 거래소별 동시 시세 조회 수
            cycle_timeout: 사이클 전체 제한 시간 (초)
            notify_timeout: 알림 전송 한 건의 제한 시간 (초)
            clock: 트리거 시각 공급 함수 (테스트용)
        """
        if market_concurrency < 1:
            raise ValueError("market_concurrency must be >= 1")
        self._store = store
        self._sources = sources
        self._notifier = notifier
        self._market_concurrency = market_concurrency
        self._cycle_timeout = cycle_timeout
        self._notify_timeout = notify_timeout
        self._clock = clock or _utcnow

    # ───────────────── 사이클 ─────────────────

    async def run_cycle(self) -> CycleReport:
        """사이클 1회 실행"""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._cycle_timeout
        state = _CycleState(
            report=CycleReport(cycle_id=uuid.uuid4().hex[:12], started_at=self._clock())
        )
        report = state.report
        logger.info("사이클 시작: %s", report.cycle_id, extra={"cycle_id": report.cycle_id})

        try:
            keys = await asyncio.wait_for(
                self._store.list_distinct_active_keys(),
                timeout=self._cycle_timeout,
            )
        except (AlertStoreError, TimeoutError) as e:
            logger.error("활성 키 조회 실패, 사이클 중단: %s", e)
            report.aborted = True
            return self._finish(report)

        report.keys_total = len(keys)
        pairs_by_market: dict[str, list[str]] = defaultdict(list)
        for key in sorted(keys):
            pairs_by_market[key.market].append(key.pair)

        tasks = [
            asyncio.create_task(
                self._run_market(market, pairs, state),
                name=f"alert-cycle-{report.cycle_id}-{market}",
            )
            for market, pairs in pairs_by_market.items()
        ]

        if tasks:
            done, pending = await asyncio.wait(
                tasks,
                timeout=max(0.0, deadline - loop.time()),
            )
            if pending:
                report.timed_out = True
                logger.warning(
                    "사이클 제한 시간 초과: %s (미완료 거래소 %d개 취소)",
                    report.cycle_id,
                    len(pending),
                )
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    logger.error(
                        "거래소 처리 중 예외: %s",
                        task.get_name(),
                        exc_info=task.exception(),
                    )

        # 시작된 클레임-알림 쌍은 제한 시간과 무관하게 끝까지 기다림
        if state.handoffs:
            await asyncio.gather(*state.handoffs, return_exceptions=True)

        return self._finish(report)

    def _finish(self, report: CycleReport) -> CycleReport:
        report.finished_at = self._clock()
        logger.info(
            "사이클 종료: %s (키 %d, 시세 %d, 평가 %d, 클레임 %d, 중복 %d, 알림 %d, 알림실패 %d, 실패키 %d)",
            report.cycle_id,
            report.keys_total,
            report.quotes_fetched,
            report.alerts_evaluated,
            report.claimed,
            report.already_triggered,
            report.notified,
            report.notify_failures,
            len(report.failed_keys),
            extra={"cycle_id": report.cycle_id},
        )
        return report

    # ───────────────── 거래소 / 키 ─────────────────

    async def _run_market(self, market: str, pairs: list[str], state: _CycleState) -> None:
        source = self._sources.get(market)
        if source is None:
            logger.warning("시세 어댑터가 없는 거래소: %s (%d개 키 건너뜀)", market, len(pairs))
            state.report.skipped_markets.append(market)
            for pair in pairs:
                state.report.failed_keys[str(MarketKey(market, pair))] = NO_SOURCE
            return

        # 거래소마다 별도 세마포어: 느린 거래소가 다른 거래소를 막지 않음
        semaphore = asyncio.Semaphore(self._market_concurrency)
        results = await asyncio.gather(
            *(
                self._run_key(source, MarketKey(market, pair), semaphore, state)
                for pair in pairs
            ),
            return_exceptions=True,
        )
        for pair, result in zip(pairs, results):
            if isinstance(result, Exception):
                logger.error(
                    "키 처리 중 예외: %s:%s",
                    market,
                    pair,
                    exc_info=result,
                    extra={"market": market, "pair": pair},
                )
                state.report.failed_keys[str(MarketKey(market, pair))] = type(result).__name__

    async def _run_key(
        self,
        source: PriceSource,
        key: MarketKey,
        semaphore: asyncio.Semaphore,
        state: _CycleState,
    ) -> None:
        report = state.report

        async with semaphore:
            try:
                quote = await source.fetch_price(key.market, key.pair)
            except PriceSourceError as e:
                logger.warning(
                    "시세 조회 실패, 이번 사이클 건너뜀: %s (%s)",
                    key,
                    e.code,
                    extra={"market": key.market, "pair": key.pair},
                )
                report.failed_keys[str(key)] = e.code
                return
        report.quotes_fetched += 1

        try:
            alerts = await self._store.list_active_alerts(key.market, key.pair)
        except AlertStoreError as e:
            logger.error("활성 알림 조회 실패: %s (%s)", key, e.message)
            report.store_errors += 1
            report.failed_keys[str(key)] = e.code
            return

        for alert in alerts:
            evaluation = evaluate(alert, quote)
            report.alerts_evaluated += 1
            if not evaluation.satisfied or evaluation.payload is None:
                continue

            report.alerts_satisfied += 1
            handoff = asyncio.ensure_future(
                self._claim_and_notify(alert, evaluation.payload, report)
            )
            state.handoffs.add(handoff)
            # 취소되더라도 클레임-알림 쌍은 계속 진행
            await asyncio.shield(handoff)

    # ───────────────── 클레임 / 알림 ─────────────────

    async def _claim_and_notify(
        self,
        alert: PriceAlert,
        payload: AlertPayload,
        report: CycleReport,
    ) -> None:
        try:
            result = await self._store.try_claim(alert.id, self._clock())
        except AlertStoreError as e:
            logger.error("클레임 실패: 알림 ID=%s (%s)", alert.id, e.message)
            report.store_errors += 1
            return
        except NotFoundError:
            logger.warning("클레임 대상 알림이 사라짐: ID=%s", alert.id)
            return

        if result is ClaimResult.ALREADY_TRIGGERED:
            report.already_triggered += 1
            return

        report.claimed += 1
        logger.info(
            "알림 트리거: ID=%s, %s:%s, 현재가=%s, 목표가=%s",
            alert.id,
            alert.market,
            alert.pair,
            payload.observed_price,
            payload.target_price,
            extra={"alert_id": alert.id, "user_id": alert.user_id},
        )

        try:
            await asyncio.wait_for(
                self._notifier.notify(alert.user_id, payload),
                timeout=self._notify_timeout,
            )
        except NotificationError as e:
            report.notify_failures += 1
            logger.error("알림 전송 실패: 알림 ID=%s (%s)", alert.id, e.message)
        except TimeoutError:
            report.notify_failures += 1
            logger.error("알림 전송 시간 초과: 알림 ID=%s", alert.id)
        except Exception:
            report.notify_failures += 1
            logger.exception("알림 전송 중 예상치 못한 오류: 알림 ID=%s", alert.id)
        else:
            report.notified += 1
