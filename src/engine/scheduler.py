"""
알림 엔진 스케줄러 — 고정 주기로 알림 평가 사이클 실행

APScheduler IntervalTrigger로 CycleOrchestrator.run_cycle()을 주기 실행합니다.
한 번에 하나의 사이클만 실행되며, 이전 사이클이 끝나지 않았을 때 도착한 틱은
대기열에 쌓지 않고 건너뜁니다.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.engine.orchestrator import CycleOrchestrator, CycleReport
from src.exceptions import EngineBusyError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class AlertScheduler:
    """알림 평가 스케줄러"""

    MAX_HISTORY = 100
    JOB_ID = "alert_evaluation_cycle"

    def __init__(
        self,
        orchestrator: CycleOrchestrator,
        *,
        interval_seconds: int = 60,
        event_loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """스케줄러 초기화

        Parameters
        ----------
        orchestrator:
            사이클 실행기
        interval_seconds:
            사이클 실행 주기 (초)
        event_loop:
            APScheduler가 붙을 asyncio 이벤트 루프. FastAPI lifespan에서
            메인 이벤트 루프를 주입하는 용도로 사용합니다.
        """
        self._orchestrator = orchestrator
        self._event_loop = event_loop
        self._scheduler = self._create_scheduler()
        self._is_running = False
        self._interval_seconds = interval_seconds
        self._current: asyncio.Future[CycleReport] | None = None
        self._cycle_history: list[dict[str, Any]] = []

    def _create_scheduler(self) -> AsyncIOScheduler:
        """AsyncIOScheduler 인스턴스를 생성합니다."""
        kwargs: dict[str, Any] = {"timezone": UTC}
        if self._event_loop is not None:
            kwargs["event_loop"] = self._event_loop
        return AsyncIOScheduler(**kwargs)

    # ───────────────── 시작 / 중지 ─────────────────

    def start(self, interval_seconds: int | None = None) -> None:
        """스케줄러 시작"""
        if self._is_running:
            logger.warning("스케줄러가 이미 실행 중입니다")
            return

        if interval_seconds is not None:
            self._interval_seconds = interval_seconds

        self._scheduler.add_job(
            self.run_scheduled_cycle,
            trigger=IntervalTrigger(seconds=self._interval_seconds, timezone=UTC),
            id=self.JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        self._is_running = True
        logger.info("알림 스케줄러 시작: %d초 간격", self._interval_seconds)

    def stop(self) -> None:
        """새 틱 발생 중지 (실행 중인 사이클은 계속 진행)"""
        if not self._is_running:
            logger.warning("스케줄러가 실행 중이 아닙니다")
            return

        self._scheduler.shutdown(wait=False)
        # 재시작 가능하도록 새 스케줄러 인스턴스 준비
        self._scheduler = self._create_scheduler()
        self._is_running = False
        logger.info("알림 스케줄러 중지")

    async def shutdown(self) -> None:
        """스케줄러 중지 후 진행 중인 사이클이 끝날 때까지 대기"""
        if self._is_running:
            self.stop()

        current = self._current
        if current is not None and not current.done():
            logger.info("진행 중인 사이클 완료 대기")
            await asyncio.wait([current])

    # ───────────────── 사이클 실행 ─────────────────

    @property
    def is_cycle_running(self) -> bool:
        return self._current is not None and not self._current.done()

    async def run_scheduled_cycle(self) -> dict[str, Any]:
        """스케줄된 사이클 실행 (이전 사이클이 진행 중이면 건너뜀)"""
        now = datetime.now(tz=UTC)

        if self.is_cycle_running:
            result: dict[str, Any] = {
                "timestamp": now.isoformat(),
                "status": "skipped",
                "reason": "이전 사이클 진행 중",
            }
            self._append_history(result)
            logger.warning("이전 사이클이 아직 실행 중 — 이번 틱 건너뜀")
            return result

        cycle = asyncio.ensure_future(self._orchestrator.run_cycle())
        self._current = cycle

        try:
            # 스케줄러 종료로 잡이 취소되어도 사이클 자체는 끝까지 실행
            report = await asyncio.shield(cycle)
            result = {
                "timestamp": now.isoformat(),
                "status": "timed_out" if report.timed_out else "completed",
                "cycle_result": report.to_dict(),
            }
            if report.aborted:
                result["status"] = "aborted"
        except asyncio.CancelledError:
            logger.warning("사이클 대기 취소 — 사이클은 백그라운드에서 계속 진행")
            raise
        except Exception:
            logger.exception("사이클 실행 실패")
            result = {
                "timestamp": now.isoformat(),
                "status": "error",
                "error": "사이클 실행 중 오류 발생",
            }

        self._append_history(result)
        return result

    async def run_once(self) -> dict[str, Any]:
        """수동 사이클 실행

        Raises:
            EngineBusyError: 이미 사이클이 실행 중인 경우
        """
        if self.is_cycle_running:
            raise EngineBusyError()
        return await self.run_scheduled_cycle()

    # ───────────────── 상태 조회 ─────────────────

    def get_status(self) -> dict[str, Any]:
        """스케줄러 상태 조회"""
        next_run_time = None
        if self._is_running:
            job = self._scheduler.get_job(self.JOB_ID)
            if job and job.next_run_time:
                next_run_time = job.next_run_time.isoformat()

        return {
            "is_running": self._is_running,
            "cycle_in_progress": self.is_cycle_running,
            "interval_seconds": self._interval_seconds,
            "next_run_time": next_run_time,
            "total_cycles": len(self._cycle_history),
            "last_cycle_result": self._cycle_history[-1] if self._cycle_history else None,
        }

    def get_cycle_history(self, limit: int = 10) -> list[dict[str, Any]]:
        """최근 사이클 히스토리 (최신순)"""
        return list(reversed(self._cycle_history[-limit:]))

    # ───────────────── 내부 ─────────────────

    def _append_history(self, result: dict[str, Any]) -> None:
        self._cycle_history.append(result)
        if len(self._cycle_history) > self.MAX_HISTORY:
            self._cycle_history = self._cycle_history[-self.MAX_HISTORY:]
