"""
딜 API 엔드포인트

딜 카드 조회와 소비자 리딤 흐름 (can-redeem, 코드 발급, 직접 리딤)을 제공합니다.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.api.schemas.deal_schemas import DealCard, DealListResponse
from rise_local.api.schemas.redemption_schemas import (
    CanRedeemResponse,
    CouponCodeResponse,
    RedeemRequest,
    RedeemResponse,
)
from rise_local.middleware.auth import get_current_user, get_current_user_optional
from rise_local.models.base import get_db
from rise_local.models.user import User
from rise_local.services.catalog_service import CatalogService
from rise_local.services.code_issuance_service import CodeIssuanceService
from rise_local.services.eligibility_service import EligibilityService
from rise_local.services.redemption_service import RedemptionService, serialize_redemption
from rise_local.utils.cache_manager import CacheManager, get_cache_manager

router = APIRouter(prefix="/api/deals", tags=["deals"])


@router.get("", response_model=DealListResponse)
async def list_deals(
    vendor_id: Optional[UUID] = Query(None, alias="vendorId"),
    category: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """
    게시 중인 딜 목록

    로그인한 사용자는 멤버십에 따라 잠금 상태가 계산됩니다.
    """
    service = CatalogService(db)
    deals = await service.list_deals(
        user=current_user, vendor_id=vendor_id, category=category, limit=limit
    )
    return {"deals": [deal.to_dict() for deal in deals]}


@router.get("/{deal_id}", response_model=DealCard)
async def get_deal(
    deal_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """딜 상세"""
    service = CatalogService(db)
    deal = await service.get_deal(deal_id, current_user)
    return deal.to_dict()


@router.get("/{deal_id}/can-redeem", response_model=CanRedeemResponse)
async def can_redeem(
    deal_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache_manager),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """
    리딤 가능 여부 확인

    부수 효과가 없으며 같은 상태에서는 항상 같은 결과를 반환합니다.

    **응답**:
    - `canRedeem`: 리딤 가능 여부
    - `reason`: 불가능한 경우 사유
    - `requiresPass`: Rise Local Pass 가 필요한 경우 true
    - `nextEligibleAt`: 빈도 제한에 걸린 경우 다음 리딤 가능 시각
    """
    service = EligibilityService(db, cache)
    result = await service.check(current_user, deal_id)

    return CanRedeemResponse(
        can_redeem=result.can_redeem,
        reason=result.reason,
        requires_pass=result.requires_pass,
        next_eligible_at=result.next_eligible_at,
    )


@router.post("/{deal_id}/coupon-code", response_model=CouponCodeResponse)
async def issue_coupon_code(
    deal_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    쿠폰 코드 발급

    - STATIC: 딜의 공유 코드 (만료 없음)
    - UNIQUE: 코드 풀에서 선점한 6자리 코드 (expiresAt 까지 유효)

    **오류 케이스**:
    - `403`: 리딤 자격 없음 (`requiresPass` 포함 가능)
    - `409`: 코드 풀 소진 (`poolEmpty: true`)
    - `422`: 쿠폰 코드를 사용하지 않는 딜
    """
    service = CodeIssuanceService(db)
    issued = await service.issue(current_user, deal_id)

    return CouponCodeResponse(
        type=issued.type,
        code=issued.code,
        code_id=issued.code_id,
        expires_at=issued.expires_at,
        message=issued.message,
    )


@router.post(
    "/{deal_id}/redeem",
    response_model=RedeemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def redeem_deal(
    deal_id: UUID,
    request: Optional[RedeemRequest] = None,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache_manager),
    current_user: User = Depends(get_current_user),
):
    """
    딜 직접 리딤 기록

    UNIQUE 코드 딜은 벤더 코드 확인으로만 리딤됩니다 (422).
    """
    service = RedemptionService(db, cache)
    source = request.source if request else "web"
    redemption = await service.redeem(current_user, deal_id, source=source)

    return RedeemResponse(
        message="Deal redeemed! Enjoy your savings.",
        redemption=serialize_redemption(redemption),
    )
