from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from correspondence.models.user import UserRole


class LoginRequest(BaseModel):
    """로그인 요청"""

    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    """토큰 갱신 요청"""

    refresh_token: str = Field(alias="refreshToken")

    class Config:
        populate_by_name = True


class TokenResponse(BaseModel):
    """토큰 응답"""

    access_token: str = Field(serialization_alias="accessToken")
    refresh_token: str = Field(serialization_alias="refreshToken")
    token_type: str = Field(default="Bearer", serialization_alias="tokenType")
    expires_in: int = Field(serialization_alias="expiresIn")

    class Config:
        populate_by_name = True


class UserResponse(BaseModel):
    """사용자 응답"""

    id: int
    email: str
    name: str
    role: str
    department_id: int | None = Field(serialization_alias="departmentId")
    status: str
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    class Config:
        populate_by_name = True
        from_attributes = True


class AuthResponse(BaseModel):
    """인증 응답 (토큰 + 사용자)"""

    user: UserResponse
    tokens: TokenResponse


class CallerIdentity(BaseModel):
    """검증된 토큰에서 복원한 호출자 신원

    모든 레터 서비스 연산에 명시적으로 전달된다.
    """

    model_config = ConfigDict(frozen=True)

    user_id: int
    role: UserRole
    department_id: int | None = None
