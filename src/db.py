"""
데이터베이스 연결 및 세션 관리

SQLAlchemy 비동기 엔진과 세션 팩토리를 설정하고,
알림 저장소(AlertStore)와 API가 같은 세션 팩토리를 사용합니다.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings


def _build_async_url(url: str) -> str:
    """동기 DB URL을 비동기 드라이버용으로 변환"""
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url.replace("postgresql://", "postgresql+asyncpg://", 1)


def create_engine_from_url(url: str) -> AsyncEngine:
    """DB URL로 비동기 엔진 생성 (SQLite는 풀 옵션 없이 생성)"""
    async_url = _build_async_url(url)
    if async_url.startswith("sqlite"):
        return create_async_engine(async_url)
    return create_async_engine(
        async_url,
        echo=(settings.app_env == "development"),
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        # 클레임 UPDATE가 사이클을 무한정 붙잡지 않도록 쿼리 단위 제한 시간
        connect_args={"command_timeout": settings.db_command_timeout_seconds},
    )


engine = create_engine_from_url(settings.database_url)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

