"""공문 서비스

각 전이는 다음 순서로 처리된다:
1. 역할 권한 판정 (상태를 읽기 전)
2. 파라미터 검증 (순수 함수)
3. 대상 부서 존재 확인
4. 공문 조회 (404)
5. 상태 확인 및 조건부 UPDATE (status가 출발 상태일 때만 적용)
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from correspondence.core.config import get_settings
from correspondence.core.storage import StorageService, storage_service
from correspondence.models.letter import Letter, LetterStatus
from correspondence.models.user import UserRole
from correspondence.schemas.auth import CallerIdentity
from correspondence.schemas.letter import (
    AdminReviewRequest,
    CreateLetterRequest,
    DocumentMeta,
    DocumentUpload,
    ForwardRequest,
    LetterListResponse,
    LetterResponse,
    MinisterDecisionRequest,
)
from correspondence.services.department_service import DepartmentService
from correspondence.services.letter_errors import (
    InvalidStateError,
    LetterValidationError,
    NotFoundError,
)
from correspondence.services.letter_workflow import (
    INITIAL_STATUS,
    TRANSITIONS,
    AdminReviewAction,
    LetterAction,
    TransitionPlan,
    authorize,
    plan_admin_review,
    plan_forward,
    plan_minister_decision,
    validate_admin_review,
    validate_document,
    validate_minister_decision,
    validate_new_letter,
    validate_target_department,
)

logger = logging.getLogger(__name__)

RECORD_OFFICE_INBOX_STATUSES = (
    LetterStatus.PENDING_REVIEW.value,
    LetterStatus.MINISTER_APPROVED.value,
    LetterStatus.MINISTER_REJECTED.value,
)


class LetterService:
    """공문 라우팅 서비스"""

    def __init__(self, db: AsyncSession, storage: StorageService | None = None):
        self.db = db
        self.storage = storage or storage_service
        self.departments = DepartmentService(db)

    # =========================================================================
    # 생성
    # =========================================================================

    async def create_letter(
        self,
        caller: CallerIdentity,
        data: CreateLetterRequest,
        document: DocumentUpload,
    ) -> LetterResponse:
        """공문 생성 (부서 사용자 또는 장관)

        장관이 작성하면 발신 부서는 None, 수신 부서는 검토/전달 시 지정된다.
        """
        authorize(LetterAction.CREATE, caller.role)
        from_department_id = validate_new_letter(
            caller.role, caller.department_id, data.subject
        )
        extension, content_type = validate_document(
            document.filename, len(document.content), document.content_type
        )

        meta = self._store_document(extension, content_type, document)

        letter = Letter(
            subject=data.subject.strip(),
            description=data.description,
            document_path=meta.path,
            document_name=meta.name,
            document_type=meta.type,
            document_size=meta.size,
            from_department_id=from_department_id,
            to_department_id=None,
            requires_minister=data.requires_minister,
            status=INITIAL_STATUS.value,
            created_by_user_id=caller.user_id,
        )
        try:
            self.db.add(letter)
            await self.db.flush()
        except Exception:
            self._discard_document(meta.path)
            raise

        logger.info(
            f"Letter created: letter={letter.id}, user={caller.user_id}, "
            f"role={caller.role.value}, from_department={from_department_id}"
        )
        return await self._get_letter_response(letter.id)

    # =========================================================================
    # 전이
    # =========================================================================

    async def admin_review(
        self,
        caller: CallerIdentity,
        letter_id: int,
        data: AdminReviewRequest,
    ) -> LetterResponse:
        """레코드 오피스 검토 (pending_review -> forwarded | needs_minister_approval)"""
        authorize(LetterAction.ADMIN_REVIEW, caller.role)
        action = validate_admin_review(data.action, data.to_department_id)

        to_department_id = None
        if action is AdminReviewAction.FORWARD:
            to_department_id = data.to_department_id
            await self._ensure_department_exists(to_department_id)

        letter = await self._get_letter_or_404(letter_id)
        plan = plan_admin_review(
            letter.status,
            action,
            reviewer_id=caller.user_id,
            now=self._now(),
            to_department_id=to_department_id,
        )
        await self._apply_transition(letter, plan)

        logger.info(
            f"Letter reviewed: letter={letter_id}, reviewer={caller.user_id}, "
            f"action={action.value}, to_department={to_department_id}"
        )
        return await self._get_letter_response(letter_id)

    async def minister_decision(
        self,
        caller: CallerIdentity,
        letter_id: int,
        data: MinisterDecisionRequest,
    ) -> LetterResponse:
        """장관 결정 (needs_minister_approval -> minister_approved | minister_rejected)"""
        authorize(LetterAction.MINISTER_DECISION, caller.role)
        decision = validate_minister_decision(data.decision)

        letter = await self._get_letter_or_404(letter_id)
        plan = plan_minister_decision(letter.status, decision, now=self._now())
        await self._apply_transition(letter, plan)

        logger.info(
            f"Minister decided: letter={letter_id}, minister={caller.user_id}, "
            f"decision={decision.value}"
        )
        return await self._get_letter_response(letter_id)

    async def forward(
        self,
        caller: CallerIdentity,
        letter_id: int,
        data: ForwardRequest,
    ) -> LetterResponse:
        """부서 전달 (minister_approved | forwarded -> delivered)"""
        authorize(LetterAction.FORWARD, caller.role)
        to_department_id = validate_target_department(data.to_department_id)
        await self._ensure_department_exists(to_department_id)

        letter = await self._get_letter_or_404(letter_id)
        plan = plan_forward(letter.status, to_department_id)
        await self._apply_transition(letter, plan)

        logger.info(
            f"Letter delivered: letter={letter_id}, by={caller.user_id}, "
            f"to_department={to_department_id}"
        )
        return await self._get_letter_response(letter_id)

    # =========================================================================
    # 조회
    # =========================================================================

    async def list_inbox(self, caller: CallerIdentity) -> LetterListResponse:
        """역할별 수신함"""
        authorize(LetterAction.VIEW_INBOX, caller.role)
        query = self._letters_query()

        match caller.role:
            case UserRole.RECORD_OFFICE:
                query = query.where(Letter.status.in_(RECORD_OFFICE_INBOX_STATUSES))
            case UserRole.MINISTER:
                query = query.where(
                    Letter.status == LetterStatus.NEEDS_MINISTER_APPROVAL.value
                )
            case UserRole.DEPARTMENT:
                if caller.department_id is None:
                    return LetterListResponse(items=[], total=0)
                query = query.where(Letter.to_department_id == caller.department_id)

        return await self._list(query)

    async def list_sent(self, caller: CallerIdentity) -> LetterListResponse:
        """역할별 발신함 (레코드 오피스는 최근 공문 전체)"""
        authorize(LetterAction.VIEW_SENT, caller.role)
        query = self._letters_query()

        match caller.role:
            case UserRole.DEPARTMENT:
                if caller.department_id is None:
                    return LetterListResponse(items=[], total=0)
                query = query.where(Letter.from_department_id == caller.department_id)
            case UserRole.MINISTER:
                query = query.where(
                    Letter.from_department_id.is_(None),
                    Letter.created_by_user_id == caller.user_id,
                )
            case UserRole.RECORD_OFFICE:
                query = query.limit(get_settings().sent_fallback_limit)

        return await self._list(query)

    async def get_document(
        self, caller: CallerIdentity, letter_id: int
    ) -> tuple[DocumentMeta, bytes]:
        """첨부 문서 다운로드"""
        authorize(LetterAction.VIEW_DOCUMENT, caller.role)
        letter = await self._get_letter_or_404(letter_id)

        if not self.storage.check_document_exists(letter.document_path):
            raise NotFoundError("DOCUMENT_NOT_FOUND", "Document file not found")

        meta = DocumentMeta(
            path=letter.document_path,
            name=letter.document_name,
            type=letter.document_type,
            size=letter.document_size,
        )
        return meta, self.storage.get_document(letter.document_path)

    # =========================================================================
    # 내부 헬퍼
    # =========================================================================

    async def _apply_transition(self, letter: Letter, plan: TransitionPlan) -> None:
        """조건부 UPDATE로 전이 적용

        WHERE 절에 출발 상태를 포함하므로 동시 요청 중 하나만 성공한다.
        """
        stmt = (
            update(Letter)
            .where(
                Letter.id == letter.id,
                Letter.status.in_([status.value for status in plan.sources]),
            )
            .values(**plan.values(), updated_at=self._now())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)

        if result.rowcount != 1:
            await self.db.refresh(letter)
            logger.warning(
                f"Letter transition rejected by concurrent update: letter={letter.id}, "
                f"transition={plan.kind.value}, status={letter.status}"
            )
            raise InvalidStateError(
                current_status=letter.status,
                action=TRANSITIONS[plan.kind].action.value,
            )

    async def _ensure_department_exists(self, department_id: int) -> None:
        """대상 부서 존재 확인"""
        if not await self.departments.department_exists(department_id):
            raise LetterValidationError(
                "DEPARTMENT_NOT_FOUND", f"Department {department_id} does not exist"
            )

    async def _get_letter_or_404(self, letter_id: int) -> Letter:
        """공문 조회 (없으면 NotFoundError)"""
        letter = await self.db.get(Letter, letter_id)
        if not letter:
            raise NotFoundError()
        return letter

    async def _get_letter_response(self, letter_id: int) -> LetterResponse:
        """관계 포함 최신 상태로 공문 응답 생성"""
        query = (
            self._letters_query()
            .where(Letter.id == letter_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return LetterResponse.model_validate(result.scalar_one())

    async def _list(self, query: Select) -> LetterListResponse:
        result = await self.db.execute(query)
        letters = result.scalars().all()
        return LetterListResponse(
            items=[LetterResponse.model_validate(letter) for letter in letters],
            total=len(letters),
        )

    @staticmethod
    def _letters_query() -> Select:
        """관계를 미리 로드하는 공문 조회 쿼리 (최신순)"""
        return (
            select(Letter)
            .options(
                selectinload(Letter.from_department),
                selectinload(Letter.to_department),
                selectinload(Letter.creator),
            )
            .order_by(Letter.created_at.desc(), Letter.id.desc())
        )

    def _store_document(
        self, extension: str, content_type: str, document: DocumentUpload
    ) -> DocumentMeta:
        """문서 저장 후 메타데이터 반환"""
        path = self.storage.upload_document(extension, document.content, content_type)
        return DocumentMeta(
            path=path,
            name=document.filename,
            type=content_type,
            size=len(document.content),
        )

    def _discard_document(self, path: str) -> None:
        """공문 저장 실패 시 업로드된 문서 정리"""
        try:
            self.storage.delete_document(path)
        except Exception as e:
            logger.error(f"Failed to discard orphaned document {path}: {e}")

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)
