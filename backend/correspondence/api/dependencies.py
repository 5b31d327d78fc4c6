"""공유 API dependencies - 엔드포인트 간 중복 제거"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from correspondence.core.database import get_db
from correspondence.models.user import User
from correspondence.schemas.auth import CallerIdentity
from correspondence.services.auth_service import AuthService

security = HTTPBearer()


# ===== Auth Dependencies =====


def get_auth_service(db: Annotated[AsyncSession, Depends(get_db)]) -> AuthService:
    """AuthService 의존성"""
    return AuthService(db)


def _raise_auth_error(error: ValueError) -> None:
    """인증 실패를 HTTPException으로 변환 (정지 계정은 403)"""
    if str(error) == "USER_SUSPENDED":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "USER_SUSPENDED", "message": "User account is suspended"},
        )
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": "INVALID_TOKEN", "message": "Invalid or expired token"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """현재 사용자 조회"""
    try:
        return await auth_service.get_current_user(credentials.credentials)
    except ValueError as e:
        _raise_auth_error(e)


async def get_caller(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> CallerIdentity:
    """호출자 신원 (토큰의 역할/부서 클레임)"""
    try:
        return await auth_service.get_caller_identity(credentials.credentials)
    except ValueError as e:
        _raise_auth_error(e)


# ===== Service Error Handling =====

# 서비스 레이어에서 발생하는 에러 코드와 HTTP 응답 매핑
# (status_code, error_code, message)
SERVICE_ERROR_MAPPING: dict[str, tuple[int, str, str]] = {
    # 권한
    "PERMISSION_DENIED": (403, "FORBIDDEN", "Permission denied"),
    # 조회
    "LETTER_NOT_FOUND": (404, "NOT_FOUND", "Letter not found"),
    "DOCUMENT_NOT_FOUND": (404, "NOT_FOUND", "Document not found"),
    # 상태 전이
    "INVALID_STATE": (422, "INVALID_STATE", "Letter is not in a valid state for this action"),
    # 파라미터
    "DEPARTMENT_NOT_FOUND": (422, "VALIDATION_ERROR", "Department does not exist"),
    "TO_DEPARTMENT_REQUIRED": (422, "VALIDATION_ERROR", "toDepartmentId is required"),
    "INVALID_DEPARTMENT_ID": (422, "VALIDATION_ERROR", "toDepartmentId must be a positive integer"),
    "INVALID_DECISION": (422, "VALIDATION_ERROR", "Unknown minister decision"),
    "INVALID_REVIEW_ACTION": (422, "VALIDATION_ERROR", "Unknown review action"),
    "SUBJECT_REQUIRED": (422, "VALIDATION_ERROR", "subject is required"),
    "SUBJECT_TOO_LONG": (422, "VALIDATION_ERROR", "subject is too long"),
    "CREATOR_DEPARTMENT_REQUIRED": (
        422,
        "VALIDATION_ERROR",
        "Department users must belong to a department",
    ),
    "DOCUMENT_REQUIRED": (422, "VALIDATION_ERROR", "document is required"),
    "UNSUPPORTED_DOCUMENT_TYPE": (422, "VALIDATION_ERROR", "document must be a pdf, doc or docx file"),
    "DOCUMENT_EMPTY": (422, "VALIDATION_ERROR", "document is empty"),
    "DOCUMENT_TOO_LARGE": (422, "VALIDATION_ERROR", "document exceeds 10MB"),
}


def handle_service_error(error: ValueError, default_message: str = "Validation error") -> None:
    """서비스 레이어 에러를 HTTPException으로 변환

    Args:
        error: 서비스에서 발생한 ValueError (에러 코드가 str로 전달됨)
        default_message: 매핑되지 않은 에러의 기본 메시지

    Raises:
        HTTPException: 매핑된 HTTP 에러 응답
    """
    error_code = str(error)

    if error_code in SERVICE_ERROR_MAPPING:
        status_code, code, message = SERVICE_ERROR_MAPPING[error_code]
        detail = {"error": code, "message": getattr(error, "message", None) or message}
        if code == "VALIDATION_ERROR":
            detail["details"] = {"code": error_code}
        elif code == "INVALID_STATE":
            detail["details"] = {"currentStatus": getattr(error, "current_status", None)}
        raise HTTPException(status_code=status_code, detail=detail)

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "VALIDATION_ERROR", "message": default_message},
    )
