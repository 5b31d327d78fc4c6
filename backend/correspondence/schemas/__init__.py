from correspondence.schemas.auth import (
    AuthResponse,
    CallerIdentity,
    LoginRequest,
    RefreshTokenRequest,
    TokenResponse,
    UserResponse,
)
from correspondence.schemas.common import ErrorResponse
from correspondence.schemas.department import DepartmentListResponse, DepartmentResponse
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

__all__ = [
    "AdminReviewRequest",
    "AuthResponse",
    "CallerIdentity",
    "CreateLetterRequest",
    "DepartmentListResponse",
    "DepartmentResponse",
    "DocumentMeta",
    "DocumentUpload",
    "ErrorResponse",
    "ForwardRequest",
    "LetterListResponse",
    "LetterResponse",
    "LoginRequest",
    "MinisterDecisionRequest",
    "RefreshTokenRequest",
    "TokenResponse",
    "UserResponse",
]
