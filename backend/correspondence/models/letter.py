from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from correspondence.core.database import Base


class LetterStatus(str, Enum):
    """공문 처리 상태

    전이 규칙은 services.letter_workflow.TRANSITIONS 참조.
    """

    PENDING_REVIEW = "pending_review"
    NEEDS_MINISTER_APPROVAL = "needs_minister_approval"
    MINISTER_APPROVED = "minister_approved"
    MINISTER_REJECTED = "minister_rejected"
    FORWARDED = "forwarded"
    DELIVERED = "delivered"


class MinisterDecision(str, Enum):
    """장관 결정"""

    APPROVED = "approved"
    REJECTED = "rejected"


class Letter(Base):
    """공문 모델"""

    __tablename__ = "letters"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    subject: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    # 첨부 문서 (생성 후 변경 불가)
    document_path: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    document_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    document_type: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )
    document_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    from_department_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("departments.id", ondelete="SET NULL"),
        index=True,
        nullable=True,  # 장관이 작성한 공문은 발신 부서 없음
    )
    to_department_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("departments.id", ondelete="SET NULL"),
        index=True,
        nullable=True,  # 검토/전달 시 지정
    )
    requires_minister: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(30),
        default=LetterStatus.PENDING_REVIEW.value,
        index=True,
        nullable=False,
    )
    created_by_user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        index=True,
        nullable=False,
    )
    reviewed_by_admin_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    minister_decision: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    minister_decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
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
    from_department: Mapped["Department"] = relationship(
        "Department", foreign_keys=[from_department_id]
    )
    to_department: Mapped["Department"] = relationship(
        "Department", foreign_keys=[to_department_id]
    )
    creator: Mapped["User"] = relationship("User", foreign_keys=[created_by_user_id])
    admin_reviewer: Mapped["User"] = relationship(
        "User", foreign_keys=[reviewed_by_admin_id]
    )

    def __repr__(self) -> str:
        return f"<Letter {self.id} {self.status}>"


# 순환 import 방지
from correspondence.models.department import Department  # noqa: E402
from correspondence.models.user import User  # noqa: E402
