"""
JWT 인증 미들웨어

FastAPI 의존성 주입을 활용한 JWT 인증을 제공합니다.
토큰 발급은 외부 인증 서비스가 담당하며, 여기서는 검증과 사용자 조회만 수행합니다.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.models.base import get_db
from rise_local.models.user import User, UserRole, UserStatus
from rise_local.models.vendor import Vendor
from rise_local.utils.security import JWTManager


# HTTP Bearer 토큰 스킴 (Authorization: Bearer <token>)
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


class AuthenticationError(HTTPException):
    """인증 실패 예외"""

    def __init__(self, detail: str = "Authentication failed."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(HTTPException):
    """권한 부족 예외"""

    def __init__(self, detail: str = "You do not have access to this resource."):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


def _user_id_from_token(token: str) -> UUID:
    """
    토큰 검증 후 사용자 ID 추출

    Raises:
        AuthenticationError: 토큰이 유효하지 않은 경우
    """
    try:
        payload = JWTManager.decode_token(token)
    except ValueError as e:
        raise AuthenticationError(detail=str(e))

    # access token만 허용
    if not JWTManager.verify_token_type(payload, "access"):
        raise AuthenticationError(detail="Invalid token type.")

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError(detail="Token has no subject.")

    try:
        return UUID(str(subject))
    except ValueError:
        raise AuthenticationError(detail="Invalid user id in token.")


async def _load_active_user(db: AsyncSession, user_id: UUID) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or user.status != UserStatus.ACTIVE.value:
        return None
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    현재 요청의 사용자 객체 조회

    Raises:
        AuthenticationError: 토큰이 유효하지 않거나 사용자가 없거나 비활성인 경우

    Example:
        ```python
        @router.get("/me")
        async def get_me(current_user: User = Depends(get_current_user)):
            return {"email": current_user.email}
        ```
    """
    user_id = _user_id_from_token(credentials.credentials)
    user = await _load_active_user(db, user_id)
    if user is None:
        raise AuthenticationError(detail="User not found or inactive.")
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    선택적 인증 (토큰이 있으면 사용자, 없거나 유효하지 않으면 None)

    can-redeem, 딜 카드처럼 비로그인 사용자도 호출하는 API에서 사용합니다.
    """
    if credentials is None:
        return None

    try:
        user_id = _user_id_from_token(credentials.credentials)
    except AuthenticationError:
        return None

    return await _load_active_user(db, user_id)


def require_role(*allowed_roles: str):
    """
    특정 역할을 가진 사용자만 접근 허용하는 의존성 팩토리

    Example:
        ```python
        @router.post("/admin/users/{user_id}/membership")
        async def set_membership(current_user: User = Depends(require_role("admin"))):
            ...
        ```
    """

    async def role_checker(
        current_user: User = Depends(get_current_user),
    ) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                detail=f"This action requires one of these roles: {', '.join(allowed_roles)}."
            )
        return current_user

    return role_checker


# 편의성을 위한 사전 정의된 역할 체커
require_admin = require_role(UserRole.ADMIN.value)


async def get_current_vendor(
    current_user: User = Depends(require_role(UserRole.VENDOR.value, UserRole.ADMIN.value)),
    db: AsyncSession = Depends(get_db),
) -> Vendor:
    """
    현재 사용자가 소유한 벤더 조회

    Raises:
        AuthorizationError: 벤더 프로필이 없는 경우
    """
    result = await db.execute(select(Vendor).where(Vendor.owner_id == current_user.id))
    vendor = result.scalar_one_or_none()
    if vendor is None:
        raise AuthorizationError(detail="A vendor profile is required.")
    return vendor
