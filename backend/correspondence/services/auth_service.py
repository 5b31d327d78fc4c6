from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from correspondence.core.security import create_tokens, decode_token, verify_password
from correspondence.models.user import User
from correspondence.schemas.auth import (
    AuthResponse,
    CallerIdentity,
    LoginRequest,
    TokenResponse,
    UserResponse,
)


class AuthService:
    """인증 서비스 (JWT 발급 및 검증)"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> User | None:
        """이메일로 사용자 조회"""
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> User | None:
        """ID로 사용자 조회"""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def login(self, data: LoginRequest) -> AuthResponse:
        """로그인"""
        user = await self.get_user_by_email(data.email)
        if not user:
            raise ValueError("INVALID_CREDENTIALS")

        if not verify_password(data.password, user.hashed_password):
            raise ValueError("INVALID_CREDENTIALS")

        if not user.is_active:
            raise ValueError("USER_SUSPENDED")

        tokens = create_tokens(str(user.id), user.role, user.department_id)

        return AuthResponse(
            user=UserResponse.model_validate(user),
            tokens=TokenResponse(**tokens),
        )

    async def refresh_token(self, refresh_token: str) -> TokenResponse:
        """토큰 갱신 (역할/부서는 DB의 현재 값으로 재발급)"""
        payload = decode_token(refresh_token)
        if not payload or payload.get("type") != "refresh":
            raise ValueError("INVALID_TOKEN")

        user = await self._get_user_from_subject(payload.get("sub"))
        if not user.is_active:
            raise ValueError("USER_SUSPENDED")

        tokens = create_tokens(str(user.id), user.role, user.department_id)
        return TokenResponse(**tokens)

    async def get_current_user(self, access_token: str) -> User:
        """현재 사용자 조회"""
        _, user = await self._verify_access_token(access_token)
        return user

    async def get_caller_identity(self, access_token: str) -> CallerIdentity:
        """토큰 클레임으로 호출자 신원 구성

        역할과 부서는 검증된 토큰 값을 그대로 신뢰하고, 계정 활성 여부만 DB에서 확인한다.
        """
        payload, user = await self._verify_access_token(access_token)
        try:
            return CallerIdentity(
                user_id=user.id,
                role=payload.get("role"),
                department_id=payload.get("department_id"),
            )
        except ValueError:
            raise ValueError("INVALID_TOKEN")

    async def _verify_access_token(self, access_token: str) -> tuple[dict, User]:
        """access token 검증 후 (클레임, 활성 사용자) 반환"""
        payload = decode_token(access_token)
        if not payload or payload.get("type") != "access":
            raise ValueError("INVALID_TOKEN")

        user = await self._get_user_from_subject(payload.get("sub"))
        if not user.is_active:
            raise ValueError("USER_SUSPENDED")

        return payload, user

    async def _get_user_from_subject(self, subject: str | None) -> User:
        """sub 클레임으로 사용자 조회"""
        if not subject:
            raise ValueError("INVALID_TOKEN")
        try:
            user_id = int(subject)
        except ValueError:
            raise ValueError("INVALID_TOKEN")

        user = await self.get_user_by_id(user_id)
        if not user:
            raise ValueError("USER_NOT_FOUND")
        return user
