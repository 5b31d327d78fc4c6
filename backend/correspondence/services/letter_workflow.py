"""공문 라우팅 상태 머신 (순수 로직)

DB 접근 없이 다음을 담당:
- 역할 기반 액션 권한 판정 (authorize)
- 상태 전이 테이블 및 전이 계획 (plan_*)
- 액션별 파라미터 검증 (validate_*)

LetterService는 여기서 만든 TransitionPlan을 조건부 UPDATE 한 번으로 적용한다.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import PurePath
from typing import Any, assert_never

from correspondence.core.constants import (
    MAX_DOCUMENT_FILE_SIZE,
    MAX_SUBJECT_LENGTH,
    SUPPORTED_DOCUMENT_FORMATS,
)
from correspondence.models.letter import LetterStatus, MinisterDecision
from correspondence.models.user import UserRole
from correspondence.services.letter_errors import (
    AuthorizationError,
    InvalidStateError,
    LetterValidationError,
)


class LetterAction(str, Enum):
    """권한 판정 단위가 되는 액션"""

    CREATE = "create"
    ADMIN_REVIEW = "admin_review"
    FORWARD = "forward"
    MINISTER_DECISION = "minister_decision"
    VIEW_INBOX = "view_inbox"
    VIEW_SENT = "view_sent"
    VIEW_DOCUMENT = "view_document"


class AdminReviewAction(str, Enum):
    """레코드 오피스 검토 결과"""

    FORWARD = "forward"
    NEEDS_MINISTER = "needs_minister"


class TransitionKind(str, Enum):
    """상태 전이 종류"""

    ESCALATE_TO_MINISTER = "escalate_to_minister"
    ROUTE_TO_DEPARTMENT = "route_to_department"
    MINISTER_APPROVE = "minister_approve"
    MINISTER_REJECT = "minister_reject"
    DELIVER = "deliver"


ACTION_ROLES: dict[LetterAction, frozenset[UserRole]] = {
    LetterAction.CREATE: frozenset({UserRole.DEPARTMENT, UserRole.MINISTER}),
    LetterAction.ADMIN_REVIEW: frozenset({UserRole.RECORD_OFFICE}),
    LetterAction.FORWARD: frozenset({UserRole.RECORD_OFFICE}),
    LetterAction.MINISTER_DECISION: frozenset({UserRole.MINISTER}),
    LetterAction.VIEW_INBOX: frozenset(UserRole),
    LetterAction.VIEW_SENT: frozenset(UserRole),
    LetterAction.VIEW_DOCUMENT: frozenset(UserRole),
}


@dataclass(frozen=True)
class Transition:
    """전이 테이블 항목 (출발 상태 집합 -> 도착 상태)"""

    action: LetterAction
    sources: frozenset[LetterStatus]
    target: LetterStatus


TRANSITIONS: dict[TransitionKind, Transition] = {
    TransitionKind.ESCALATE_TO_MINISTER: Transition(
        action=LetterAction.ADMIN_REVIEW,
        sources=frozenset({LetterStatus.PENDING_REVIEW}),
        target=LetterStatus.NEEDS_MINISTER_APPROVAL,
    ),
    TransitionKind.ROUTE_TO_DEPARTMENT: Transition(
        action=LetterAction.ADMIN_REVIEW,
        sources=frozenset({LetterStatus.PENDING_REVIEW}),
        target=LetterStatus.FORWARDED,
    ),
    TransitionKind.MINISTER_APPROVE: Transition(
        action=LetterAction.MINISTER_DECISION,
        sources=frozenset({LetterStatus.NEEDS_MINISTER_APPROVAL}),
        target=LetterStatus.MINISTER_APPROVED,
    ),
    TransitionKind.MINISTER_REJECT: Transition(
        action=LetterAction.MINISTER_DECISION,
        sources=frozenset({LetterStatus.NEEDS_MINISTER_APPROVAL}),
        target=LetterStatus.MINISTER_REJECTED,
    ),
    TransitionKind.DELIVER: Transition(
        action=LetterAction.FORWARD,
        sources=frozenset({LetterStatus.MINISTER_APPROVED, LetterStatus.FORWARDED}),
        target=LetterStatus.DELIVERED,
    ),
}

INITIAL_STATUS = LetterStatus.PENDING_REVIEW

# 상태별 다음 상태 (모든 LetterStatus를 키로 가짐)
NEXT_STATUSES: dict[LetterStatus, frozenset[LetterStatus]] = {
    status: frozenset(t.target for t in TRANSITIONS.values() if status in t.sources)
    for status in LetterStatus
}

TERMINAL_STATUSES: frozenset[LetterStatus] = frozenset(
    status for status, targets in NEXT_STATUSES.items() if not targets
)


@dataclass(frozen=True)
class TransitionPlan:
    """검증을 통과한 전이 (아직 DB에 적용되지 않음)"""

    kind: TransitionKind
    sources: frozenset[LetterStatus]
    target: LetterStatus
    changes: dict[str, Any] = field(default_factory=dict)

    def values(self) -> dict[str, Any]:
        """UPDATE에 사용할 컬럼 값"""
        return {"status": self.target.value, **self.changes}


# ===== 권한 =====


def authorize(action: LetterAction, role: UserRole | str) -> None:
    """역할이 액션을 수행할 수 있는지 확인

    공문 상태를 읽기 전에 호출해야 한다.

    Raises:
        AuthorizationError: 허용되지 않은 역할
    """
    try:
        caller_role = UserRole(role)
    except ValueError:
        raise AuthorizationError(message=f"Unknown role: {role}")

    if caller_role not in ACTION_ROLES[action]:
        raise AuthorizationError(
            message=f"Role {caller_role.value} cannot perform {action.value}"
        )


# ===== 전이 =====


def plan_transition(
    kind: TransitionKind,
    current_status: LetterStatus | str,
    changes: dict[str, Any] | None = None,
) -> TransitionPlan:
    """현재 상태에서 전이가 가능한지 확인하고 전이 계획 반환

    Raises:
        InvalidStateError: 현재 상태가 출발 상태 집합에 없음
    """
    transition = TRANSITIONS[kind]
    status = LetterStatus(current_status)

    if status not in transition.sources:
        raise InvalidStateError(current_status=status.value, action=transition.action.value)

    return TransitionPlan(
        kind=kind,
        sources=transition.sources,
        target=transition.target,
        changes=dict(changes or {}),
    )


def admin_review_kind(action: AdminReviewAction) -> TransitionKind:
    """검토 결과에 대응하는 전이 종류"""
    match action:
        case AdminReviewAction.NEEDS_MINISTER:
            return TransitionKind.ESCALATE_TO_MINISTER
        case AdminReviewAction.FORWARD:
            return TransitionKind.ROUTE_TO_DEPARTMENT
        case _:
            assert_never(action)


def minister_decision_kind(decision: MinisterDecision) -> TransitionKind:
    """장관 결정에 대응하는 전이 종류"""
    match decision:
        case MinisterDecision.APPROVED:
            return TransitionKind.MINISTER_APPROVE
        case MinisterDecision.REJECTED:
            return TransitionKind.MINISTER_REJECT
        case _:
            assert_never(decision)


def plan_admin_review(
    current_status: LetterStatus | str,
    action: AdminReviewAction,
    reviewer_id: int,
    now: datetime,
    to_department_id: int | None = None,
) -> TransitionPlan:
    """레코드 오피스 검토 전이 계획"""
    changes: dict[str, Any] = {
        "reviewed_by_admin_id": reviewer_id,
        "reviewed_at": now,
    }
    if action is AdminReviewAction.NEEDS_MINISTER:
        changes["requires_minister"] = True
    else:
        changes["to_department_id"] = to_department_id

    return plan_transition(admin_review_kind(action), current_status, changes)


def plan_minister_decision(
    current_status: LetterStatus | str,
    decision: MinisterDecision,
    now: datetime,
) -> TransitionPlan:
    """장관 결정 전이 계획 (결정값과 결정 시각은 항상 함께 설정)"""
    return plan_transition(
        minister_decision_kind(decision),
        current_status,
        {"minister_decision": decision.value, "minister_decided_at": now},
    )


def plan_forward(current_status: LetterStatus | str, to_department_id: int) -> TransitionPlan:
    """부서 전달(최종 배송) 전이 계획"""
    return plan_transition(
        TransitionKind.DELIVER,
        current_status,
        {"to_department_id": to_department_id},
    )


# ===== 파라미터 검증 =====


def validate_admin_review(
    action: AdminReviewAction | str, to_department_id: int | None
) -> AdminReviewAction:
    """검토 파라미터 검증 (forward는 대상 부서 필수)"""
    try:
        review_action = AdminReviewAction(action)
    except ValueError:
        raise LetterValidationError("INVALID_REVIEW_ACTION", f"Unknown review action: {action}")

    if review_action is AdminReviewAction.FORWARD:
        validate_target_department(to_department_id)

    return review_action


def validate_minister_decision(decision: MinisterDecision | str) -> MinisterDecision:
    """장관 결정값 검증"""
    try:
        return MinisterDecision(decision)
    except ValueError:
        raise LetterValidationError("INVALID_DECISION", f"Unknown decision: {decision}")


def validate_target_department(to_department_id: int | None) -> int:
    """대상 부서 ID 형식 검증 (존재 여부는 서비스에서 확인)"""
    if to_department_id is None:
        raise LetterValidationError("TO_DEPARTMENT_REQUIRED", "toDepartmentId is required")
    if isinstance(to_department_id, bool) or not isinstance(to_department_id, int) or to_department_id <= 0:
        raise LetterValidationError("INVALID_DEPARTMENT_ID", "toDepartmentId must be a positive integer")
    return to_department_id


def validate_new_letter(
    role: UserRole | str,
    department_id: int | None,
    subject: str,
) -> int | None:
    """공문 생성 파라미터 검증

    Returns:
        발신 부서 ID (장관이면 None)
    """
    if not subject or not subject.strip():
        raise LetterValidationError("SUBJECT_REQUIRED", "subject is required")
    if len(subject) > MAX_SUBJECT_LENGTH:
        raise LetterValidationError("SUBJECT_TOO_LONG", "subject is too long")

    if UserRole(role) is UserRole.MINISTER:
        return None

    if department_id is None:
        raise LetterValidationError(
            "CREATOR_DEPARTMENT_REQUIRED", "Department users must belong to a department"
        )
    return department_id


def validate_document(filename: str | None, size: int, content_type: str | None) -> tuple[str, str]:
    """첨부 문서 검증 (pdf/doc/docx, 10MB 이하)

    Returns:
        (확장자, 콘텐츠 타입)
    """
    if not filename:
        raise LetterValidationError("DOCUMENT_REQUIRED", "document is required")

    extension = PurePath(filename).suffix.lower().lstrip(".")
    if extension not in SUPPORTED_DOCUMENT_FORMATS:
        raise LetterValidationError(
            "UNSUPPORTED_DOCUMENT_TYPE", "document must be a pdf, doc or docx file"
        )
    if size <= 0:
        raise LetterValidationError("DOCUMENT_EMPTY", "document is empty")
    if size > MAX_DOCUMENT_FILE_SIZE:
        raise LetterValidationError("DOCUMENT_TOO_LARGE", "document exceeds 10MB")

    return extension, content_type or SUPPORTED_DOCUMENT_FORMATS[extension]
