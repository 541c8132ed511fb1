"""
FastAPI 애플리케이션 엔트리포인트

lifespan에서 알림 엔진을 조립하고, 설정에 따라 스케줄러를 자동 시작합니다.
종료 시 진행 중인 사이클이 끝날 때까지 기다린 뒤 연결을 정리합니다.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config.settings import settings
from src.api.alerts import router as alerts_router
from src.api.dependencies import set_engine
from src.api.engine import router as engine_router
from src.api.health import APP_VERSION
from src.api.health import router as health_router
from src.db import async_session_factory, engine
from src.engine.runtime import build_engine
from src.exceptions import register_exception_handlers
from src.utils.logger import get_logger

logger = get_logger(__name__)


OPENAPI_TAGS = [
    {
        "name": "System",
        "description": "시스템 상태 확인",
    },
    {
        "name": "Alerts",
        "description": "가격 알림 생성/조회 — 목표가 알림, 매입가 기준 알림",
    },
    {
        "name": "Engine",
        "description": "알림 평가 엔진 — 스케줄러 상태, 사이클 히스토리, 수동 실행",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """애플리케이션 시작/종료 시 실행되는 로직"""
    logger.info("🚀 Coin Alerts 시작 (환경: %s)", settings.app_env)
    db_host = settings.database_url.split("@")[-1] if "@" in settings.database_url else "unknown"
    logger.info("📊 데이터베이스: %s", db_host)

    # APScheduler가 메인 이벤트 루프에 붙도록 루프 객체를 주입
    alert_engine = build_engine(
        settings,
        async_session_factory,
        event_loop=asyncio.get_running_loop(),
    )
    set_engine(alert_engine)

    if settings.scheduler_autostart:
        alert_engine.scheduler.start()

    yield

    await alert_engine.aclose()
    set_engine(None)
    await engine.dispose()
    logger.info("👋 Coin Alerts 종료")


app = FastAPI(
    title="Coin Alerts",
    description=(
        "암호화폐 가격 알림 서비스\n\n"
        "거래소 시세를 주기적으로 조회해 사용자가 등록한 가격 알림을 "
        "정확히 한 번 트리거하고 알림을 전송합니다."
    ),
    version=APP_VERSION,
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
)

# 예외 핸들러 등록
register_exception_handlers(app)

# 라우터 등록
app.include_router(health_router)
app.include_router(alerts_router)
app.include_router(engine_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
