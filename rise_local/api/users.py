"""
사용자 / 멤버십 API 엔드포인트

- GET /api/me: 내 프로필과 Rise Local Pass 보유 여부
- POST /api/admin/users/{user_id}/membership: 관리자 멤버십 부여/회수
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.api.schemas.user_schemas import MeResponse, MembershipRequest
from rise_local.config import get_settings
from rise_local.middleware.auth import get_current_user, require_admin
from rise_local.models.base import get_db
from rise_local.models.user import User
from rise_local.services.deal_access import MembershipService, has_rise_local_pass
from rise_local.utils.cache_manager import CacheManager, get_cache_manager

router = APIRouter(prefix="/api", tags=["users"])


def _to_me(user: User) -> MeResponse:
    return MeResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        is_pass_member=user.is_pass_member,
        pass_expires_at=user.pass_expires_at,
        has_rise_local_pass=has_rise_local_pass(user),
    )


@router.get("/me", response_model=MeResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """내 프로필"""
    return _to_me(current_user)


@router.post("/admin/users/{user_id}/membership", response_model=MeResponse)
async def set_membership(
    user_id: UUID,
    request: MembershipRequest,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache_manager),
    admin: User = Depends(require_admin),
):
    """
    Rise Local Pass 부여/회수 (관리자 전용)

    - `grantAccess: true`: `days` (기본 30일) 동안 유효한 멤버십 부여
    - `grantAccess: false`: 멤버십 회수
    """
    days = request.days or get_settings().PASS_DEFAULT_DAYS
    user = await MembershipService(db, cache).set_membership(
        user_id, request.grant_access, days, actor_id=admin.id
    )
    return _to_me(user)
