"""
알림 엔진 API 엔드포인트

스케줄러 상태, 사이클 히스토리 조회와 수동 사이클 실행을 제공합니다.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_engine
from src.api.schemas import CycleResultResponse, EngineStatusResponse
from src.engine.runtime import AlertEngine

router = APIRouter(
    prefix="/api/v1/engine",
    tags=["Engine"],
)


@router.get(
    "/status",
    response_model=EngineStatusResponse,
    summary="스케줄러 상태",
)
async def get_status(engine: AlertEngine = Depends(get_engine)) -> EngineStatusResponse:
    status: dict[str, Any] = engine.scheduler.get_status()
    return EngineStatusResponse(markets=engine.sources.markets, **status)


@router.get(
    "/history",
    response_model=list[CycleResultResponse],
    summary="사이클 히스토리 (최신순)",
)
async def get_history(
    limit: int = Query(default=10, ge=1, le=100),
    engine: AlertEngine = Depends(get_engine),
) -> list[CycleResultResponse]:
    return [
        CycleResultResponse(**entry)
        for entry in engine.scheduler.get_cycle_history(limit)
    ]


@router.post(
    "/run",
    response_model=CycleResultResponse,
    summary="수동 사이클 실행",
    description="알림 평가 사이클을 즉시 1회 실행합니다. 이미 실행 중이면 409.",
)
async def run_cycle(engine: AlertEngine = Depends(get_engine)) -> CycleResultResponse:
    result = await engine.scheduler.run_once()
    return CycleResultResponse(**result)
