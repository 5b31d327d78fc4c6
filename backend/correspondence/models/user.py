from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from correspondence.core.database import Base


class UserRole(str, Enum):
    """사용자 역할"""

    DEPARTMENT = "department"
    RECORD_OFFICE = "record_office"
    MINISTER = "minister"


class UserStatus(str, Enum):
    """계정 상태"""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class User(Base):
    """사용자 모델"""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.DEPARTMENT.value,
        nullable=False,
    )
    department_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,  # department 역할만 부서를 가짐
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=UserStatus.ACTIVE.value,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # 관계
    department: Mapped["Department"] = relationship("Department")

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<User {self.email}>"


# 순환 import 방지
from correspondence.models.department import Department  # noqa: E402
