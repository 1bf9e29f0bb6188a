"""
SQLAlchemy Base 모델 및 데이터베이스 세션 관리

이 모듈은 모든 데이터베이스 모델의 기본 클래스와 비동기 데이터베이스 세션을 제공합니다.
"""

from typing import AsyncGenerator
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from rise_local.config import get_settings


# 네이밍 컨벤션 정의 (Alembic 마이그레이션 시 일관된 제약 조건 이름 생성)
convention = {
    "ix": "ix_%(column_0_label)s",  # 인덱스
    "uq": "uq_%(table_name)s_%(column_0_name)s",  # UNIQUE 제약
    "ck": "ck_%(table_name)s_%(constraint_name)s",  # CHECK 제약
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",  # 외래 키
    "pk": "pk_%(table_name)s",  # 기본 키
}

metadata = MetaData(naming_convention=convention)


class Base(DeclarativeBase):
    """
    모든 데이터베이스 모델의 기본 클래스
    """

    metadata = metadata


settings = get_settings()


def _engine_options(url: str) -> dict:
    """드라이버별 엔진 옵션 (SQLite는 연결 풀 크기 옵션을 지원하지 않음)"""
    if url.startswith("sqlite"):
        return {"echo": settings.SQL_ECHO}
    return {
        "echo": settings.SQL_ECHO,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,  # 연결 끊김 방지
        "pool_recycle": settings.DB_POOL_RECYCLE,
    }


# 비동기 엔진 생성
engine = create_async_engine(
    settings.DATABASE_URL,
    **_engine_options(settings.DATABASE_URL),
)

# 비동기 세션 팩토리
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # 커밋 후 객체 만료 방지
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI 의존성 주입용 데이터베이스 세션 생성기

    서비스 계층이 명시적으로 commit하며, 예외 발생 시 롤백합니다.

    Yields:
        AsyncSession: 비동기 데이터베이스 세션
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def close_db() -> None:
    """
    데이터베이스 연결 종료

    애플리케이션 종료 시 호출하여 모든 연결을 정리합니다.
    """
    await engine.dispose()
