"""
FastAPI 의존성 주입

알림 엔진(lifespan에서 조립)과 요청 사용자 ID를 API 핸들러에 주입합니다.
"""

from __future__ import annotations

from fastapi import Header

from src.alerts.store import AlertStore
from src.engine.runtime import AlertEngine
from src.exceptions import AppError, AuthenticationError

# 모듈 수준 엔진 인스턴스 (lifespan에서 주입)
_engine: AlertEngine | None = None


class EngineNotReadyError(AppError):
    """엔진 초기화 전 요청 (503)"""

    status_code = 503
    code = "ENGINE_NOT_READY"
    message = "알림 엔진이 아직 초기화되지 않았습니다."


def set_engine(engine: AlertEngine | None) -> None:
    """lifespan에서 조립한 엔진을 등록합니다."""
    global _engine
    _engine = engine


def get_engine() -> AlertEngine:
    """
    알림 엔진 의존성.

    Usage::

        @router.get("/engine/status")
        async def status(engine: AlertEngine = Depends(get_engine)):
            return engine.scheduler.get_status()
    """
    if _engine is None:
        raise EngineNotReadyError()
    return _engine


def get_store() -> AlertStore:
    """알림 저장소 의존성"""
    return get_engine().store


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """
    요청 사용자 ID.

    인증은 앞단 게이트웨이가 처리하고 X-User-Id 헤더로 전달한다고 가정합니다.
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError(
            "X-User-Id 헤더가 필요합니다.",
            detail={"header": "X-User-Id"},
        )
    return x_user_id.strip()
