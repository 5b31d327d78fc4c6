from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from correspondence.core.config import get_settings

settings = get_settings()


def build_engine(database_url: str, **options: Any) -> AsyncEngine:
    """비동기 엔진 생성

    PostgreSQL은 커넥션 풀 설정과 pre-ping을 적용한다.
    SQLite(로컬 테스트)이거나 poolclass를 직접 지정한 경우에는 풀 크기 옵션을 넘기지 않는다.
    """
    engine_options: dict[str, Any] = {"echo": settings.debug, "future": True}
    if not database_url.startswith("sqlite") and "poolclass" not in options:
        engine_options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )
    engine_options.update(options)
    return create_async_engine(database_url, **engine_options)


engine = build_engine(settings.database_url)

# 세션 팩토리 (commit 후에도 응답 직렬화에 쓰도록 만료하지 않음)
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """공문/부서/사용자 모델의 기본 클래스"""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청 단위 DB 세션

    상태 전이와 문서 메타데이터가 한 트랜잭션에 묶인다.
    핸들러가 정상 종료하면 커밋, 예외(HTTPException 포함)가 나면 전체 롤백.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
