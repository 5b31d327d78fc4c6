"""공문 API 엔드포인트

상태 전이는 PATCH로 모델링:
- PATCH /letters/{id}/admin-review (레코드 오피스)
- PATCH /letters/{id}/minister-decision (장관)
- PATCH /letters/{id}/forward (레코드 오피스)
"""

import logging
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from minio.error import S3Error
from sqlalchemy.ext.asyncio import AsyncSession

from correspondence.api.dependencies import get_caller, handle_service_error
from correspondence.core.database import get_db
from correspondence.schemas import (
    AdminReviewRequest,
    CallerIdentity,
    CreateLetterRequest,
    DocumentUpload,
    ErrorResponse,
    ForwardRequest,
    LetterListResponse,
    LetterResponse,
    MinisterDecisionRequest,
)
from correspondence.services.letter_service import LetterService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/letters", tags=["Letters"])

TRANSITION_RESPONSES = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


def get_letter_service(db: Annotated[AsyncSession, Depends(get_db)]) -> LetterService:
    """LetterService 의존성"""
    return LetterService(db)


def content_disposition(filename: str) -> str:
    """다운로드용 Content-Disposition 헤더 값

    헤더는 latin-1로만 인코딩되므로 ASCII가 아닌 이름은 filename에 대체 이름을,
    filename*에 UTF-8 퍼센트 인코딩 원본을 담는다 (RFC 6266).
    """
    quoted = quote(filename, safe="")
    if quoted == filename:
        return f'attachment; filename="{filename}"'

    fallback = "".join(
        c if " " <= c < "\x7f" and c not in '"\\' else "_" for c in filename
    )
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quoted}"


def storage_error(action: str, e: S3Error) -> HTTPException:
    logger.error(f"Failed to {action} document: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "STORAGE_ERROR", "message": f"문서 저장소 오류가 발생했습니다: {e.code}"},
    )


# ===== 조회 =====


@router.get(
    "/inbox",
    response_model=LetterListResponse,
    responses={401: {"model": ErrorResponse}},
)
async def list_inbox(
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    service: Annotated[LetterService, Depends(get_letter_service)],
) -> LetterListResponse:
    """역할별 수신함"""
    try:
        return await service.list_inbox(caller)
    except ValueError as e:
        handle_service_error(e)


@router.get(
    "/sent",
    response_model=LetterListResponse,
    responses={401: {"model": ErrorResponse}},
)
async def list_sent(
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    service: Annotated[LetterService, Depends(get_letter_service)],
) -> LetterListResponse:
    """역할별 발신함"""
    try:
        return await service.list_sent(caller)
    except ValueError as e:
        handle_service_error(e)


@router.get(
    "/{letter_id}/document",
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def download_document(
    letter_id: int,
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    service: Annotated[LetterService, Depends(get_letter_service)],
) -> Response:
    """첨부 문서 다운로드"""
    try:
        meta, content = await service.get_document(caller, letter_id)
    except ValueError as e:
        handle_service_error(e)
    except S3Error as e:
        raise storage_error("download", e)

    return Response(
        content=content,
        media_type=meta.type,
        headers={
            "Content-Disposition": content_disposition(meta.name),
            "Content-Length": str(len(content)),
        },
    )


# ===== 생성 =====


@router.post(
    "",
    response_model=LetterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**TRANSITION_RESPONSES, 500: {"model": ErrorResponse}},
)
async def create_letter(
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    service: Annotated[LetterService, Depends(get_letter_service)],
    subject: str = Form(""),
    description: str | None = Form(None),
    requires_minister: bool = Form(False, alias="requiresMinister"),
    document: UploadFile | None = File(None),
) -> LetterResponse:
    """공문 작성 (부서 사용자 또는 장관)

    문서는 pdf/doc/docx, 10MB 이하만 허용됩니다.
    """
    upload = DocumentUpload(
        filename=document.filename if document and document.filename else "",
        content_type=document.content_type if document else None,
        content=await document.read() if document else b"",
    )
    data = CreateLetterRequest(
        subject=subject,
        description=description,
        requires_minister=requires_minister,
    )

    try:
        return await service.create_letter(caller, data, upload)
    except ValueError as e:
        handle_service_error(e)
    except S3Error as e:
        raise storage_error("upload", e)


# ===== 상태 전이 =====


@router.patch(
    "/{letter_id}/admin-review",
    response_model=LetterResponse,
    responses=TRANSITION_RESPONSES,
)
async def admin_review(
    letter_id: int,
    request: AdminReviewRequest,
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    service: Annotated[LetterService, Depends(get_letter_service)],
) -> LetterResponse:
    """레코드 오피스 검토 (forward 또는 needs_minister)"""
    try:
        return await service.admin_review(caller, letter_id, request)
    except ValueError as e:
        handle_service_error(e)


@router.patch(
    "/{letter_id}/minister-decision",
    response_model=LetterResponse,
    responses=TRANSITION_RESPONSES,
)
async def minister_decision(
    letter_id: int,
    request: MinisterDecisionRequest,
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    service: Annotated[LetterService, Depends(get_letter_service)],
) -> LetterResponse:
    """장관 결정 (approved 또는 rejected)"""
    try:
        return await service.minister_decision(caller, letter_id, request)
    except ValueError as e:
        handle_service_error(e)


@router.patch(
    "/{letter_id}/forward",
    response_model=LetterResponse,
    responses=TRANSITION_RESPONSES,
)
async def forward_letter(
    letter_id: int,
    request: ForwardRequest,
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    service: Annotated[LetterService, Depends(get_letter_service)],
) -> LetterResponse:
    """대상 부서로 최종 전달"""
    try:
        return await service.forward(caller, letter_id, request)
    except ValueError as e:
        handle_service_error(e)
