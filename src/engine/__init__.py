"""
알림 엔진 패키지

평가 사이클 오케스트레이터, 주기 실행 스케줄러, 엔진 조립 함수를 제공합니다.
"""

from __future__ import annotations

__all__ = [
    "AlertEngine",
    "AlertScheduler",
    "CycleOrchestrator",
    "CycleReport",
    "build_engine",
]

from src.engine.orchestrator import CycleOrchestrator, CycleReport
from src.engine.runtime import AlertEngine, build_engine
from src.engine.scheduler import AlertScheduler
