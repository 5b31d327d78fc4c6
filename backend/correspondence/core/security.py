from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from correspondence.core.config import get_settings

settings = get_settings()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """비밀번호 검증"""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8")
    )


def get_password_hash(password: str) -> str:
    """비밀번호 해싱"""
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt()
    ).decode("utf-8")


def create_access_token(subject: str, role: str, department_id: int | None) -> str:
    """Access token 생성

    역할과 부서 정보를 클레임에 포함하여 요청마다 호출자 신원을 복원할 수 있게 한다.
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {
        "sub": subject,
        "role": role,
        "department_id": department_id,
        "iat": now,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_refresh_token(subject: str) -> str:
    """Refresh token 생성"""
    expire = datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days)
    to_encode = {"sub": subject, "exp": expire, "type": "refresh"}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict | None:
    """토큰 디코딩 (검증 포함)"""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except JWTError:
        return None


def create_tokens(user_id: str, role: str, department_id: int | None) -> dict:
    """Access token과 Refresh token 쌍 생성"""
    return {
        "access_token": create_access_token(user_id, role, department_id),
        "refresh_token": create_refresh_token(user_id),
        "token_type": "Bearer",
        "expires_in": settings.access_token_expire_minutes * 60,
    }
