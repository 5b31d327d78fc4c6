from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from correspondence.api.dependencies import get_auth_service, get_current_user
from correspondence.models.user import User
from correspondence.schemas import (
    AuthResponse,
    ErrorResponse,
    LoginRequest,
    RefreshTokenRequest,
    TokenResponse,
    UserResponse,
)
from correspondence.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def login(
    data: LoginRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """로그인"""
    try:
        return await auth_service.login(data)
    except ValueError as e:
        if str(e) == "USER_SUSPENDED":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error": "USER_SUSPENDED", "message": "User account is suspended"},
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "INVALID_CREDENTIALS", "message": "Invalid email or password"},
        )


@router.post(
    "/refresh",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse}},
)
async def refresh_token(
    data: RefreshTokenRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """토큰 갱신"""
    try:
        return await auth_service.refresh_token(data.refresh_token)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "INVALID_TOKEN", "message": "Invalid or expired refresh token"},
        )


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}},
)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserResponse:
    """현재 사용자 정보"""
    return UserResponse.model_validate(current_user)
