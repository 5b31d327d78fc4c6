"""pytest 설정 및 공유 fixture

테스트 인프라:
- 테스트 DB 세션 (기본 SQLite 임시 파일, TEST_DATABASE_URL로 PostgreSQL 지정 가능)
- FastAPI AsyncClient
- Mock 스토리지 (MinIO)
- 부서/사용자/공문 fixture
"""

import os
from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from correspondence.core.config import Settings
from correspondence.core.database import Base, build_engine, get_db
from correspondence.core.security import create_access_token, get_password_hash
from correspondence.core.storage import StorageService
from correspondence.main import app
from correspondence.models import Department, Letter, LetterStatus, User, UserRole, UserStatus
from correspondence.schemas.auth import CallerIdentity

TEST_PASSWORD = "password123"

# bcrypt 해시는 느리므로 한 번만 계산
_TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


# ===== 테스트 설정 =====


@pytest.fixture(scope="session")
def test_settings(tmp_path_factory) -> Settings:
    """테스트용 설정

    환경변수 TEST_DATABASE_URL이 있으면 사용, 없으면 SQLite 임시 파일 사용
    """
    default_url = f"sqlite+aiosqlite:///{tmp_path_factory.mktemp('db') / 'letters_test.db'}"
    test_db_url = os.getenv("TEST_DATABASE_URL", default_url)

    return Settings(
        app_env="test",
        debug=True,
        database_url=test_db_url,
        jwt_secret_key="test-secret-key",
        minio_endpoint="localhost:9000",
        minio_access_key="minioadmin",
        minio_secret_key="minioadmin",
        minio_secure=False,
    )


# ===== 데이터베이스 Fixture =====


@pytest.fixture
async def test_engine(test_settings: Settings):
    """테스트용 비동기 엔진

    각 테스트마다 테이블 생성/삭제 (테스트 격리)
    """
    engine = build_engine(
        test_settings.database_url,
        echo=False,
        poolclass=NullPool,  # 테스트에서는 pool 사용 안 함
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """테스트용 DB 세션 (function scope)"""
    session_maker = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def override_get_db(db_session: AsyncSession):
    """FastAPI 의존성 오버라이드용 DB fixture"""

    async def _override_get_db():
        yield db_session

    return _override_get_db


# ===== FastAPI Client Fixture =====


@pytest.fixture
async def async_client(override_get_db) -> AsyncGenerator[AsyncClient, None]:
    """비동기 FastAPI 테스트 클라이언트"""
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ===== Mock Services =====


@pytest.fixture
def mock_storage() -> MagicMock:
    """MinIO 스토리지 서비스 Mock"""
    storage = MagicMock(spec=StorageService)
    storage.upload_document.return_value = "letters/test-document.pdf"
    storage.check_document_exists.return_value = True
    storage.get_document.return_value = b"%PDF-1.4 test document"
    storage.delete_document.return_value = None
    return storage


# ===== 테스트 데이터 Fixture =====


@pytest.fixture
async def departments(db_session: AsyncSession) -> list[Department]:
    """테스트용 부서 3개"""
    items = [
        Department(name="Digital Transformation", code="digital-transformation"),
        Department(name="Cybersecurity", code="cybersecurity"),
        Department(name="Open Data", code="open-data"),
    ]
    db_session.add_all(items)
    await db_session.commit()
    return items


async def _create_user(
    db_session: AsyncSession,
    email: str,
    name: str,
    role: UserRole,
    department_id: int | None = None,
) -> User:
    user = User(
        email=email,
        name=name,
        hashed_password=_TEST_PASSWORD_HASH,
        role=role.value,
        department_id=department_id,
        status=UserStatus.ACTIVE.value,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def department_user(db_session: AsyncSession, departments: list[Department]) -> User:
    """첫 번째 부서 소속 사용자"""
    return await _create_user(
        db_session, "dit@ministry.gov", "Omar Ali", UserRole.DEPARTMENT, departments[0].id
    )


@pytest.fixture
async def other_department_user(db_session: AsyncSession, departments: list[Department]) -> User:
    """두 번째 부서 소속 사용자"""
    return await _create_user(
        db_session, "cyber@ministry.gov", "Cyber Officer", UserRole.DEPARTMENT, departments[1].id
    )


@pytest.fixture
async def record_office_user(db_session: AsyncSession) -> User:
    """레코드 오피스 사용자"""
    return await _create_user(
        db_session, "admin@ministry.gov", "Sarah Mohamed", UserRole.RECORD_OFFICE
    )


@pytest.fixture
async def minister_user(db_session: AsyncSession) -> User:
    """장관"""
    return await _create_user(
        db_session, "minister@ministry.gov", "Dr. Belete Molla", UserRole.MINISTER
    )


def caller_for(user: User) -> CallerIdentity:
    """사용자로부터 호출자 신원 생성"""
    return CallerIdentity(
        user_id=user.id,
        role=UserRole(user.role),
        department_id=user.department_id,
    )


@pytest.fixture
def department_caller(department_user: User) -> CallerIdentity:
    return caller_for(department_user)


@pytest.fixture
def other_department_caller(other_department_user: User) -> CallerIdentity:
    return caller_for(other_department_user)


@pytest.fixture
def record_office_caller(record_office_user: User) -> CallerIdentity:
    return caller_for(record_office_user)


@pytest.fixture
def minister_caller(minister_user: User) -> CallerIdentity:
    return caller_for(minister_user)


@pytest.fixture
async def pending_letter(
    db_session: AsyncSession, department_user: User
) -> Letter:
    """검토 대기 중인 공문 (첫 번째 부서 발신)"""
    letter = Letter(
        subject="Budget request",
        description="FY budget request",
        document_path="letters/existing.pdf",
        document_name="budget.pdf",
        document_type="application/pdf",
        document_size=2048,
        from_department_id=department_user.department_id,
        to_department_id=None,
        requires_minister=False,
        status=LetterStatus.PENDING_REVIEW.value,
        created_by_user_id=department_user.id,
    )
    db_session.add(letter)
    await db_session.commit()
    await db_session.refresh(letter)
    return letter


@pytest.fixture
def auth_headers_for():
    """사용자용 Bearer 인증 헤더 생성 함수"""

    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(str(user.id), user.role, user.department_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers
