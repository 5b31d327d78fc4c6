#!/usr/bin/env python3
"""
부서/사용자 디렉터리 시드 스크립트
- 24개 부서 생성 (code 기준 중복 생성 안 함)
- 장관, 레코드 오피스, 부서 사용자 계정 생성 (email 기준 갱신)

실행:
  python seeds/seed_directory.py                         # 기본 실행
  python seeds/seed_directory.py --with-department-users # 부서별 담당자 계정도 생성
"""
import argparse
import asyncio
import logging
import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from correspondence.core.database import async_session_maker, engine
from correspondence.core.security import get_password_hash
from correspondence.models import Department, User, UserRole, UserStatus

logger = logging.getLogger(__name__)

# ============================================
# 시드 데이터
# ============================================

DEPARTMENT_NAMES = [
    "Digital Transformation", "Cybersecurity", "Research & Innovation", "ICT Infrastructure",
    "Data & Analytics", "e-Government Services", "AI & Emerging Tech", "Standards & Compliance",
    "Policy & Regulation", "Grants & Funding", "International Cooperation", "Procurement & Logistics",
    "Public Engagement", "Training & Capacity", "Startup & Incubation", "Intellectual Property",
    "Open Data", "Cloud Services", "Enterprise Systems", "Telecommunications",
    "Rural Connectivity", "Smart Cities", "Sustainable Tech", "Project Management",
]

# (email, name, password, role, department code)
DIRECTORY_USERS = [
    ("minister@ministry.gov", "Dr. Belete Molla", "minister123", UserRole.MINISTER, None),
    ("admin@ministry.gov", "Sarah Mohamed", "admin123", UserRole.RECORD_OFFICE, None),
    ("dit@ministry.gov", "Omar Ali", "dept123", UserRole.DEPARTMENT, "digital-transformation"),
]

DEPARTMENT_USER_PASSWORD = "dept123"


def slugify(name: str) -> str:
    """부서명 -> 부서 코드 ("Research & Innovation" -> "research-innovation")"""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def parse_args() -> argparse.Namespace:
    """명령줄 인자 파싱"""
    parser = argparse.ArgumentParser(description="부서/사용자 디렉터리 시드")
    parser.add_argument(
        "--with-department-users",
        action="store_true",
        dest="with_department_users",
        help="부서마다 <code>@ministry.gov 담당자 계정 생성",
    )
    return parser.parse_args()


# ============================================
# 시드 함수
# ============================================


async def seed_departments(session: AsyncSession) -> dict[str, Department]:
    """부서 생성 (이미 있으면 건너뜀)"""
    result = await session.execute(select(Department))
    departments = {d.code: d for d in result.scalars().all()}

    created = 0
    for name in DEPARTMENT_NAMES:
        code = slugify(name)
        if code in departments:
            continue
        department = Department(name=name, code=code)
        session.add(department)
        departments[code] = department
        created += 1

    await session.flush()
    logger.info(f"Departments: {created} created, {len(departments)} total")
    return departments


async def upsert_user(
    session: AsyncSession,
    email: str,
    name: str,
    password: str,
    role: UserRole,
    department_id: int | None,
) -> User:
    """email 기준으로 사용자 생성 또는 갱신"""
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(email=email)
        session.add(user)

    user.name = name
    user.hashed_password = get_password_hash(password)
    user.role = role.value
    user.department_id = department_id
    user.status = UserStatus.ACTIVE.value
    return user


async def seed_users(
    session: AsyncSession,
    departments: dict[str, Department],
    with_department_users: bool = False,
) -> None:
    """기본 계정 생성"""
    for email, name, password, role, department_code in DIRECTORY_USERS:
        department_id = departments[department_code].id if department_code else None
        await upsert_user(session, email, name, password, role, department_id)
        logger.info(f"User: {email} ({role.value})")

    if with_department_users:
        for code, department in departments.items():
            await upsert_user(
                session,
                email=f"{code}@ministry.gov",
                name=f"{department.name} Officer",
                password=DEPARTMENT_USER_PASSWORD,
                role=UserRole.DEPARTMENT,
                department_id=department.id,
            )
        logger.info(f"Department officers: {len(departments)}")

    await session.flush()


async def main() -> None:
    args = parse_args()

    async with async_session_maker() as session:
        try:
            departments = await seed_departments(session)
            await seed_users(session, departments, args.with_department_users)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    await engine.dispose()
    logger.info("Seed completed")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(main())
