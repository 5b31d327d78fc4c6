"""공문 서비스 단위 테스트 (DB 사용, 스토리지는 Mock)

- create_letter: 부서/장관 작성, 권한, 검증, 업로드 정리
- 시나리오 A~D: 라우팅, 장관 결재, 반려, 존재하지 않는 부서
- 전이 규칙: 중복 결정, 권한 우선, 404, 경쟁 상태
- 수신함/발신함: 역할별 조회 범위
- get_document: 다운로드, 파일 없음
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select, update

from correspondence.models.letter import Letter, LetterStatus
from correspondence.models.user import UserRole
from correspondence.schemas.auth import CallerIdentity
from correspondence.schemas.letter import (
    AdminReviewRequest,
    CreateLetterRequest,
    DocumentUpload,
    ForwardRequest,
    MinisterDecisionRequest,
)
from correspondence.services.letter_errors import (
    AuthorizationError,
    InvalidStateError,
    LetterValidationError,
    NotFoundError,
)
from correspondence.services.letter_service import LetterService


@pytest.fixture
def letter_service(db_session, mock_storage) -> LetterService:
    return LetterService(db_session, storage=mock_storage)


@pytest.fixture
def pdf_upload() -> DocumentUpload:
    return DocumentUpload(
        filename="request.pdf",
        content_type="application/pdf",
        content=b"%PDF-1.4 letter body",
    )


def create_request(subject: str = "Network upgrade", requires_minister: bool = False):
    return CreateLetterRequest(
        subject=subject,
        description="Please review",
        requires_minister=requires_minister,
    )


async def get_status(db_session, letter_id: int) -> str:
    result = await db_session.execute(select(Letter.status).where(Letter.id == letter_id))
    return result.scalar_one()


# ===== create_letter =====


@pytest.mark.asyncio
async def test_create_letter_by_department(
    letter_service, department_caller, pdf_upload, mock_storage
):
    """부서 사용자 작성: 발신 부서 = 자기 부서, 검토 대기"""
    letter = await letter_service.create_letter(department_caller, create_request(), pdf_upload)

    assert letter.status == LetterStatus.PENDING_REVIEW.value
    assert letter.from_department_id == department_caller.department_id
    assert letter.to_department_id is None
    assert letter.created_by_user_id == department_caller.user_id
    assert letter.document_name == "request.pdf"
    assert letter.document_type == "application/pdf"
    assert letter.document_size == len(pdf_upload.content)
    assert letter.from_department.code == "digital-transformation"
    assert letter.creator.id == department_caller.user_id

    mock_storage.upload_document.assert_called_once_with(
        "pdf", pdf_upload.content, "application/pdf"
    )


@pytest.mark.asyncio
async def test_create_letter_by_minister(letter_service, minister_caller, pdf_upload):
    """장관 작성: 발신 부서 없음"""
    letter = await letter_service.create_letter(minister_caller, create_request(), pdf_upload)

    assert letter.from_department_id is None
    assert letter.from_department is None
    assert letter.status == LetterStatus.PENDING_REVIEW.value


@pytest.mark.asyncio
async def test_create_letter_record_office_denied(
    letter_service, record_office_caller, pdf_upload, mock_storage
):
    """레코드 오피스는 공문 작성 불가 (업로드도 하지 않음)"""
    with pytest.raises(AuthorizationError):
        await letter_service.create_letter(record_office_caller, create_request(), pdf_upload)

    mock_storage.upload_document.assert_not_called()


@pytest.mark.asyncio
async def test_create_letter_rejects_unsupported_document(
    letter_service, department_caller, mock_storage
):
    upload = DocumentUpload(filename="scan.png", content_type="image/png", content=b"png")

    with pytest.raises(LetterValidationError) as exc_info:
        await letter_service.create_letter(department_caller, create_request(), upload)

    assert str(exc_info.value) == "UNSUPPORTED_DOCUMENT_TYPE"
    mock_storage.upload_document.assert_not_called()


@pytest.mark.asyncio
async def test_create_letter_blank_subject(letter_service, department_caller, pdf_upload):
    with pytest.raises(LetterValidationError, match="SUBJECT_REQUIRED"):
        await letter_service.create_letter(department_caller, create_request("  "), pdf_upload)


@pytest.mark.asyncio
async def test_create_letter_discards_document_on_insert_failure(
    department_caller, pdf_upload, mock_storage
):
    """DB 저장 실패 시 업로드된 문서 삭제"""
    failing_db = MagicMock()
    failing_db.flush = AsyncMock(side_effect=RuntimeError("database unavailable"))
    service = LetterService(failing_db, storage=mock_storage)

    with pytest.raises(RuntimeError):
        await service.create_letter(department_caller, create_request(), pdf_upload)

    mock_storage.delete_document.assert_called_once_with("letters/test-document.pdf")


@pytest.mark.asyncio
async def test_creation_invariant(
    letter_service, department_caller, minister_caller, pdf_upload, db_session
):
    """fromDepartment가 None인 공문은 장관이 작성한 공문뿐"""
    await letter_service.create_letter(department_caller, create_request("A"), pdf_upload)
    await letter_service.create_letter(minister_caller, create_request("B"), pdf_upload)

    result = await db_session.execute(select(Letter))
    for letter in result.scalars().all():
        by_minister = letter.created_by_user_id == minister_caller.user_id
        assert (letter.from_department_id is None) == by_minister


# ===== 시나리오 =====


@pytest.mark.asyncio
async def test_scenario_a_direct_routing(
    letter_service, department_caller, record_office_caller, other_department_caller,
    departments, pdf_upload,
):
    """시나리오 A: 작성 -> 검토 후 부서 라우팅 -> 대상 부서 수신함"""
    created = await letter_service.create_letter(department_caller, create_request(), pdf_upload)
    target = departments[1]

    reviewed = await letter_service.admin_review(
        record_office_caller,
        created.id,
        AdminReviewRequest(action="forward", to_department_id=target.id),
    )

    assert reviewed.status == LetterStatus.FORWARDED.value
    assert reviewed.to_department_id == target.id
    assert reviewed.to_department.name == target.name
    assert reviewed.reviewed_by_admin_id == record_office_caller.user_id
    assert reviewed.reviewed_at is not None

    inbox = await letter_service.list_inbox(other_department_caller)
    assert [item.id for item in inbox.items] == [created.id]


@pytest.mark.asyncio
async def test_scenario_b_minister_approval_then_delivery(
    letter_service, pending_letter, record_office_caller, minister_caller, departments
):
    """시나리오 B: 장관 상신 -> 승인 -> 최종 전달"""
    escalated = await letter_service.admin_review(
        record_office_caller,
        pending_letter.id,
        AdminReviewRequest(action="needs_minister"),
    )
    assert escalated.status == LetterStatus.NEEDS_MINISTER_APPROVAL.value
    assert escalated.requires_minister is True

    approved = await letter_service.minister_decision(
        minister_caller, pending_letter.id, MinisterDecisionRequest(decision="approved")
    )
    assert approved.status == LetterStatus.MINISTER_APPROVED.value
    assert approved.minister_decision == "approved"
    assert approved.minister_decided_at is not None

    target = departments[2]
    delivered = await letter_service.forward(
        record_office_caller, pending_letter.id, ForwardRequest(to_department_id=target.id)
    )
    assert delivered.status == LetterStatus.DELIVERED.value
    assert delivered.to_department_id == target.id


@pytest.mark.asyncio
async def test_scenario_c_rejected_letter_not_deliverable(
    letter_service, pending_letter, record_office_caller, minister_caller, departments
):
    """시나리오 C: 반려된 공문은 전달 불가"""
    await letter_service.admin_review(
        record_office_caller, pending_letter.id, AdminReviewRequest(action="needs_minister")
    )
    rejected = await letter_service.minister_decision(
        minister_caller, pending_letter.id, MinisterDecisionRequest(decision="rejected")
    )
    assert rejected.status == LetterStatus.MINISTER_REJECTED.value

    with pytest.raises(InvalidStateError) as exc_info:
        await letter_service.forward(
            record_office_caller,
            pending_letter.id,
            ForwardRequest(to_department_id=departments[1].id),
        )

    assert exc_info.value.current_status == LetterStatus.MINISTER_REJECTED.value


@pytest.mark.asyncio
async def test_scenario_d_unknown_department(
    letter_service, pending_letter, record_office_caller, db_session
):
    """시나리오 D: 존재하지 않는 부서로 라우팅 -> 검증 에러, 상태 유지"""
    with pytest.raises(LetterValidationError) as exc_info:
        await letter_service.admin_review(
            record_office_caller,
            pending_letter.id,
            AdminReviewRequest(action="forward", to_department_id=9999),
        )

    assert str(exc_info.value) == "DEPARTMENT_NOT_FOUND"
    assert await get_status(db_session, pending_letter.id) == LetterStatus.PENDING_REVIEW.value


# ===== 전이 규칙 =====


@pytest.mark.asyncio
async def test_minister_decision_twice(
    letter_service, pending_letter, record_office_caller, minister_caller
):
    """두 번째 결정은 결정값과 무관하게 InvalidStateError"""
    await letter_service.admin_review(
        record_office_caller, pending_letter.id, AdminReviewRequest(action="needs_minister")
    )
    await letter_service.minister_decision(
        minister_caller, pending_letter.id, MinisterDecisionRequest(decision="approved")
    )

    with pytest.raises(InvalidStateError):
        await letter_service.minister_decision(
            minister_caller, pending_letter.id, MinisterDecisionRequest(decision="rejected")
        )


@pytest.mark.asyncio
async def test_authorization_precedes_not_found(letter_service, department_caller):
    """부서 사용자의 검토 요청은 존재하지 않는 공문이어도 AuthorizationError"""
    with pytest.raises(AuthorizationError):
        await letter_service.admin_review(
            department_caller, 424242, AdminReviewRequest(action="needs_minister")
        )


@pytest.mark.asyncio
async def test_admin_review_missing_letter(letter_service, record_office_caller):
    with pytest.raises(NotFoundError) as exc_info:
        await letter_service.admin_review(
            record_office_caller, 424242, AdminReviewRequest(action="needs_minister")
        )

    assert str(exc_info.value) == "LETTER_NOT_FOUND"


@pytest.mark.asyncio
async def test_forward_pending_letter_not_allowed(
    letter_service, pending_letter, record_office_caller, departments, db_session
):
    """검토 전 공문은 바로 배송 불가"""
    with pytest.raises(InvalidStateError):
        await letter_service.forward(
            record_office_caller,
            pending_letter.id,
            ForwardRequest(to_department_id=departments[1].id),
        )

    assert await get_status(db_session, pending_letter.id) == LetterStatus.PENDING_REVIEW.value


@pytest.mark.asyncio
async def test_forwarded_letter_can_be_delivered(
    letter_service, pending_letter, record_office_caller, departments
):
    """라우팅된 공문은 다른 부서로 재지정하며 배송 가능"""
    await letter_service.admin_review(
        record_office_caller,
        pending_letter.id,
        AdminReviewRequest(action="forward", to_department_id=departments[1].id),
    )

    delivered = await letter_service.forward(
        record_office_caller,
        pending_letter.id,
        ForwardRequest(to_department_id=departments[2].id),
    )

    assert delivered.status == LetterStatus.DELIVERED.value
    assert delivered.to_department_id == departments[2].id


@pytest.mark.asyncio
async def test_delivered_is_terminal(
    letter_service, pending_letter, record_office_caller, departments
):
    await letter_service.admin_review(
        record_office_caller,
        pending_letter.id,
        AdminReviewRequest(action="forward", to_department_id=departments[1].id),
    )
    await letter_service.forward(
        record_office_caller, pending_letter.id, ForwardRequest(to_department_id=departments[1].id)
    )

    with pytest.raises(InvalidStateError):
        await letter_service.forward(
            record_office_caller,
            pending_letter.id,
            ForwardRequest(to_department_id=departments[2].id),
        )


@pytest.mark.asyncio
async def test_lost_race_keeps_winner_fields(
    letter_service, pending_letter, record_office_caller, departments, db_session
):
    """다른 요청이 먼저 상태를 바꾼 경우 조건부 UPDATE가 실패하고 승자의 값 유지"""
    # 다른 검토자가 먼저 라우팅 (세션의 공문 객체는 pending_review로 남음)
    await db_session.execute(
        update(Letter)
        .where(Letter.id == pending_letter.id)
        .values(status=LetterStatus.FORWARDED.value, to_department_id=departments[1].id)
        .execution_options(synchronize_session=False)
    )
    assert pending_letter.status == LetterStatus.PENDING_REVIEW.value

    with pytest.raises(InvalidStateError) as exc_info:
        await letter_service.admin_review(
            record_office_caller, pending_letter.id, AdminReviewRequest(action="needs_minister")
        )

    assert exc_info.value.current_status == LetterStatus.FORWARDED.value

    result = await db_session.execute(select(Letter).where(Letter.id == pending_letter.id))
    letter = result.scalar_one()
    assert letter.status == LetterStatus.FORWARDED.value
    assert letter.to_department_id == departments[1].id
    assert letter.requires_minister is False


# ===== 수신함 / 발신함 =====


async def _letter_in_each_status(letter_service, department_caller, pdf_upload, db_session):
    """상태별 공문 하나씩 생성 후 {status: id} 반환"""
    ids = {}
    for status in LetterStatus:
        created = await letter_service.create_letter(
            department_caller, create_request(status.value), pdf_upload
        )
        await db_session.execute(
            update(Letter)
            .where(Letter.id == created.id)
            .values(status=status.value)
            .execution_options(synchronize_session=False)
        )
        ids[status] = created.id
    return ids


@pytest.mark.asyncio
async def test_record_office_inbox(
    letter_service, department_caller, record_office_caller, pdf_upload, db_session
):
    """레코드 오피스: 검토 대기, 장관 승인, 장관 반려"""
    ids = await _letter_in_each_status(letter_service, department_caller, pdf_upload, db_session)

    inbox = await letter_service.list_inbox(record_office_caller)

    assert {item.id for item in inbox.items} == {
        ids[LetterStatus.PENDING_REVIEW],
        ids[LetterStatus.MINISTER_APPROVED],
        ids[LetterStatus.MINISTER_REJECTED],
    }
    assert inbox.total == 3


@pytest.mark.asyncio
async def test_minister_inbox(
    letter_service, department_caller, minister_caller, pdf_upload, db_session
):
    """장관: 결재 대기만"""
    ids = await _letter_in_each_status(letter_service, department_caller, pdf_upload, db_session)

    inbox = await letter_service.list_inbox(minister_caller)

    assert [item.id for item in inbox.items] == [ids[LetterStatus.NEEDS_MINISTER_APPROVAL]]


@pytest.mark.asyncio
async def test_department_inbox_any_status(
    letter_service, pending_letter, record_office_caller, department_caller,
    other_department_caller, departments,
):
    """부서: 수신 부서가 자기 부서인 공문 (상태 무관)"""
    await letter_service.admin_review(
        record_office_caller,
        pending_letter.id,
        AdminReviewRequest(action="forward", to_department_id=departments[1].id),
    )
    await letter_service.forward(
        record_office_caller, pending_letter.id, ForwardRequest(to_department_id=departments[1].id)
    )

    other_inbox = await letter_service.list_inbox(other_department_caller)
    own_inbox = await letter_service.list_inbox(department_caller)

    assert [item.status for item in other_inbox.items] == [LetterStatus.DELIVERED.value]
    assert own_inbox.items == []


@pytest.mark.asyncio
async def test_sent_views(
    letter_service, department_caller, other_department_caller, minister_caller,
    record_office_caller, pdf_upload,
):
    """발신함: 부서는 자기 부서 발신, 장관은 본인 작성, 레코드 오피스는 전체"""
    dept_letter = await letter_service.create_letter(
        department_caller, create_request("from dept"), pdf_upload
    )
    minister_letter = await letter_service.create_letter(
        minister_caller, create_request("from minister"), pdf_upload
    )

    dept_sent = await letter_service.list_sent(department_caller)
    other_sent = await letter_service.list_sent(other_department_caller)
    minister_sent = await letter_service.list_sent(minister_caller)
    office_sent = await letter_service.list_sent(record_office_caller)

    assert [item.id for item in dept_sent.items] == [dept_letter.id]
    assert other_sent.total == 0
    assert [item.id for item in minister_sent.items] == [minister_letter.id]
    assert {item.id for item in office_sent.items} == {dept_letter.id, minister_letter.id}


@pytest.mark.asyncio
async def test_department_caller_without_department_sees_nothing(
    letter_service, minister_caller, pdf_upload
):
    """부서 미지정 부서 사용자는 장관 공문(발신 부서 없음)을 보지 않음"""
    await letter_service.create_letter(minister_caller, create_request(), pdf_upload)
    orphan = CallerIdentity(user_id=999, role=UserRole.DEPARTMENT, department_id=None)

    assert (await letter_service.list_sent(orphan)).total == 0
    assert (await letter_service.list_inbox(orphan)).total == 0


# ===== get_document =====


@pytest.mark.asyncio
async def test_get_document(letter_service, pending_letter, other_department_caller, mock_storage):
    """인증된 모든 역할이 첨부 문서 다운로드 가능"""
    meta, content = await letter_service.get_document(other_department_caller, pending_letter.id)

    assert meta.name == "budget.pdf"
    assert meta.type == "application/pdf"
    assert content == b"%PDF-1.4 test document"
    mock_storage.get_document.assert_called_once_with("letters/existing.pdf")


@pytest.mark.asyncio
async def test_get_document_missing_file(
    letter_service, pending_letter, department_caller, mock_storage
):
    mock_storage.check_document_exists.return_value = False

    with pytest.raises(NotFoundError) as exc_info:
        await letter_service.get_document(department_caller, pending_letter.id)

    assert str(exc_info.value) == "DOCUMENT_NOT_FOUND"
