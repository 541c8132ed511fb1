"""
헬스체크 엔드포인트

단순 "ok" 응답이 아닌, 실제 의존 서비스 상태까지 점검합니다:
- DB 연결 상태 (SELECT 1)
- 알림 스케줄러 상태
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field
from sqlalchemy import text

from config.settings import settings
from src.api import dependencies
from src.db import engine
from src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["System"])

APP_VERSION = "0.1.0"

# 앱 시작 시각 (업타임 계산용)
_app_start_time: float = time.monotonic()
_app_start_datetime: datetime = datetime.now(UTC)


class ComponentStatus(str, Enum):
    """개별 컴포넌트 상태"""

    UP = "up"
    DOWN = "down"
    DEGRADED = "degraded"


class OverallStatus(str, Enum):
    """전체 서비스 상태"""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """개별 컴포넌트 상태 상세"""

    status: ComponentStatus
    latency_ms: float | None = Field(default=None, description="응답 시간 (ms)")
    message: str | None = Field(default=None, description="상태 메시지")
    details: dict[str, Any] | None = Field(default=None, description="추가 정보")


class HealthResponse(BaseModel):
    """헬스체크 응답"""

    status: OverallStatus = Field(description="전체 상태")
    version: str = Field(description="앱 버전")
    env: str = Field(description="실행 환경")
    uptime_seconds: float = Field(description="업타임 (초)")
    started_at: str = Field(description="시작 시각 (ISO 8601)")
    checked_at: str = Field(description="점검 시각 (ISO 8601)")
    components: dict[str, ComponentHealth] = Field(description="컴포넌트별 상태")


async def _check_database() -> ComponentHealth:
    """DB 연결 상태 확인"""
    start = time.monotonic()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("DB 헬스체크 실패: %s", e)
        return ComponentHealth(
            status=ComponentStatus.DOWN,
            latency_ms=round((time.monotonic() - start) * 1000, 2),
            message=f"DB 연결 실패: {type(e).__name__}",
        )

    return ComponentHealth(
        status=ComponentStatus.UP,
        latency_ms=round((time.monotonic() - start) * 1000, 2),
        message="DB 정상",
    )


def _check_scheduler() -> ComponentHealth:
    """스케줄러 상태 확인 (마지막 사이클이 중단/오류면 DEGRADED)"""
    try:
        alert_engine = dependencies.get_engine()
    except dependencies.EngineNotReadyError:
        return ComponentHealth(
            status=ComponentStatus.DOWN,
            message="알림 엔진이 초기화되지 않았습니다",
        )

    status = alert_engine.scheduler.get_status()
    last = status.get("last_cycle_result") or {}
    degraded = last.get("status") in ("aborted", "error")

    return ComponentHealth(
        status=ComponentStatus.DEGRADED if degraded else ComponentStatus.UP,
        message="최근 사이클 실패" if degraded else "정상",
        details={
            "is_running": status["is_running"],
            "cycle_in_progress": status["cycle_in_progress"],
            "last_cycle_status": last.get("status"),
        },
    )


def _determine_overall_status(
    components: dict[str, ComponentHealth],
) -> OverallStatus:
    """컴포넌트 상태를 종합하여 전체 상태를 결정

    - 필수 컴포넌트(database)가 DOWN → UNHEALTHY
    - 하나라도 DEGRADED/DOWN → DEGRADED
    """
    database = components.get("database")
    if database is not None and database.status == ComponentStatus.DOWN:
        return OverallStatus.UNHEALTHY

    statuses = [h.status for h in components.values()]
    if ComponentStatus.DEGRADED in statuses or ComponentStatus.DOWN in statuses:
        return OverallStatus.DEGRADED

    return OverallStatus.HEALTHY


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="헬스체크",
    description="DB 연결과 알림 스케줄러 상태를 포함한 헬스체크.",
)
async def health_check() -> HealthResponse:
    components = {
        "database": await _check_database(),
        "scheduler": _check_scheduler(),
    }

    return HealthResponse(
        status=_determine_overall_status(components),
        version=APP_VERSION,
        env=settings.app_env,
        uptime_seconds=round(time.monotonic() - _app_start_time, 2),
        started_at=_app_start_datetime.isoformat(),
        checked_at=datetime.now(UTC).isoformat(),
        components=components,
    )
