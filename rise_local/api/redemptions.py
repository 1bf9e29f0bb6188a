"""
리딤 이력 / 취소 API 엔드포인트
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.api.schemas.redemption_schemas import (
    RedeemResponse,
    RedemptionDetail,
    RedemptionHistoryResponse,
)
from rise_local.middleware.auth import get_current_user
from rise_local.models.base import get_db
from rise_local.models.user import User
from rise_local.services.redemption_service import RedemptionService, serialize_redemption
from rise_local.utils.cache_manager import CacheManager, get_cache_manager

router = APIRouter(prefix="/api", tags=["redemptions"])


@router.get("/me/redemptions", response_model=RedemptionHistoryResponse)
async def get_my_redemptions(
    limit: int = Query(20, ge=1, le=100, description="최대 건수"),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache_manager),
    current_user: User = Depends(get_current_user),
):
    """
    내 리딤 이력 (최신순)

    취소된 리딤도 status=voided 로 포함됩니다.
    """
    service = RedemptionService(db, cache)
    history = await service.get_history(current_user.id, limit=limit)
    return {"redemptions": history}


@router.get("/redemptions/{redemption_id}", response_model=RedemptionDetail)
async def get_redemption(
    redemption_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """리딤 상세 (본인 리딤만, 발급 코드 포함)"""
    service = RedemptionService(db)
    redemption = await service.get_for_user(current_user, redemption_id)
    return serialize_redemption(redemption, include_code=True)


@router.delete("/me/redemptions/{redemption_id}", response_model=RedeemResponse)
async def undo_redemption(
    redemption_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache_manager),
    current_user: User = Depends(get_current_user),
):
    """
    리딤 취소 (undo)

    **오류 케이스**:
    - `403`: 다른 사용자의 리딤
    - `404`: 리딤 없음
    - `409`: 이미 취소됨
    - `422`: 취소 가능 시간 경과
    """
    service = RedemptionService(db, cache)
    redemption = await service.void_by_customer(current_user, redemption_id)

    return RedeemResponse(
        message="Redemption undone.",
        redemption=serialize_redemption(redemption),
    )
