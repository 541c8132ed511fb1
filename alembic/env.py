"""
Alembic 마이그레이션 환경 설정

- 오프라인: SQL 스크립트만 생성 (DB 연결 불필요)
- 온라인: 실제 DB에 마이그레이션 적용 (동기 드라이버 사용)
"""

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import create_engine, pool

# 프로젝트 루트를 sys.path에 추가
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from config.settings import settings  # noqa: E402
from src.models.schema import Base  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# autogenerate 비교 대상
target_metadata = Base.metadata


def get_url() -> str:
    """설정의 DB URL을 동기 드라이버용으로 변환"""
    url = settings.database_url
    for async_driver, sync_driver in (
        ("postgresql+asyncpg://", "postgresql://"),
        ("sqlite+aiosqlite://", "sqlite://"),
    ):
        url = url.replace(async_driver, sync_driver, 1)
    return url


def run_migrations_offline() -> None:
    """사용법: alembic upgrade head --sql"""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(get_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
