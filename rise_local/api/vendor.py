"""
벤더 대시보드 API 엔드포인트

프로필 수정, 딜 관리, UNIQUE 코드 풀 보충, 고객 코드 확인, 리딤 취소를 제공합니다.
모든 엔드포인트는 벤더 프로필을 가진 사용자만 호출할 수 있습니다.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.api.schemas.deal_schemas import (
    AddCodesRequest,
    AddCodesResponse,
    DealStatusRequest,
    VendorDealCreateRequest,
    VendorDealItem,
    VendorDealListResponse,
    VendorDealResponse,
    VendorDealUpdateRequest,
)
from rise_local.api.schemas.catalog_schemas import VendorProfileUpdateRequest, VendorResponse
from rise_local.api.schemas.redemption_schemas import (
    RedeemResponse,
    RedemptionHistoryResponse,
    VerifyCodeRequest,
)
from rise_local.middleware.auth import get_current_vendor
from rise_local.models.base import get_db
from rise_local.models.vendor import Vendor
from rise_local.services.redemption_service import RedemptionService, serialize_redemption
from rise_local.services.vendor_deal_service import VendorDealService
from rise_local.services.vendor_profile_service import VendorProfileService
from rise_local.services.vendor_verification_service import VendorVerificationService
from rise_local.utils.cache_manager import CacheManager, get_cache_manager

router = APIRouter(prefix="/api/vendor", tags=["vendor"])


@router.get("/profile", response_model=VendorResponse)
async def get_vendor_profile(vendor: Vendor = Depends(get_current_vendor)):
    """내 벤더 프로필"""
    return vendor


@router.patch("/profile", response_model=VendorResponse)
async def update_vendor_profile(
    request: VendorProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    vendor: Vendor = Depends(get_current_vendor),
):
    """벤더 프로필 수정 (텍스트와 URL 은 정제 후 저장)"""
    service = VendorProfileService(db)
    return await service.update_profile(vendor, request.model_dump(exclude_unset=True))


@router.get("/deals", response_model=VendorDealListResponse)
async def list_vendor_deals(
    db: AsyncSession = Depends(get_db),
    vendor: Vendor = Depends(get_current_vendor),
):
    """내 딜 목록 (리딤 수, 코드 풀 통계 포함)"""
    service = VendorDealService(db)
    items = await service.list_deals(vendor)

    deals = [
        VendorDealItem(
            **VendorDealResponse.model_validate(item["deal"]).model_dump(),
            redemption_count=item["redemption_count"],
            pool=item["pool"],
        )
        for item in items
    ]
    return VendorDealListResponse(deals=deals)


@router.post(
    "/deals",
    response_model=VendorDealResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_vendor_deal(
    request: VendorDealCreateRequest,
    db: AsyncSession = Depends(get_db),
    vendor: Vendor = Depends(get_current_vendor),
):
    """
    딜 생성

    새 딜은 draft 상태로 시작합니다. 게시하려면 status 엔드포인트를 사용하세요.
    """
    service = VendorDealService(db)
    return await service.create_deal(vendor, request.model_dump(exclude_unset=True))


@router.patch("/deals/{deal_id}", response_model=VendorDealResponse)
async def update_vendor_deal(
    deal_id: UUID,
    request: VendorDealUpdateRequest,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache_manager),
    vendor: Vendor = Depends(get_current_vendor),
):
    """딜 수정 (전달된 필드만 반영)"""
    service = VendorDealService(db, cache)
    return await service.update_deal(
        vendor, deal_id, request.model_dump(exclude_unset=True)
    )


@router.post("/deals/{deal_id}/status", response_model=VendorDealResponse)
async def change_vendor_deal_status(
    deal_id: UUID,
    request: DealStatusRequest,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache_manager),
    vendor: Vendor = Depends(get_current_vendor),
):
    """
    딜 상태 변경

    허용 전이: draft → published, published → paused | expired,
    paused → published | expired. 그 외는 409.
    """
    service = VendorDealService(db, cache)
    return await service.change_status(vendor, deal_id, request.status)


@router.post("/deals/{deal_id}/codes", response_model=AddCodesResponse)
async def add_deal_codes(
    deal_id: UUID,
    request: AddCodesRequest,
    db: AsyncSession = Depends(get_db),
    vendor: Vendor = Depends(get_current_vendor),
):
    """
    UNIQUE 코드 풀 보충

    - `codes`: 업로드할 6자리 코드 목록 (중복은 건너뜀)
    - `count`: 서버에서 생성할 코드 수
    """
    service = VendorDealService(db)
    return await service.add_codes(
        vendor, deal_id, codes=request.codes, count=request.count
    )


@router.get("/deals/{deal_id}/redemptions", response_model=RedemptionHistoryResponse)
async def list_deal_redemptions(
    deal_id: UUID,
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    vendor: Vendor = Depends(get_current_vendor),
):
    """딜별 리딤 목록"""
    deal = await VendorDealService(db).get_owned_deal(vendor, deal_id)
    redemptions = await RedemptionService(db).list_for_deal(deal.id, limit=limit)
    return {"redemptions": [serialize_redemption(r) for r in redemptions]}


@router.post("/deals/{deal_id}/redeem", response_model=RedeemResponse)
async def verify_customer_code(
    deal_id: UUID,
    request: VerifyCodeRequest,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache_manager),
    vendor: Vendor = Depends(get_current_vendor),
):
    """
    고객 코드 확인 및 사용 처리

    **오류 케이스**:
    - `400`: 6자리 숫자가 아님
    - `404`: 이 딜에서 발급된 적 없는 코드
    - `409`: 이미 사용된 코드
    - `410`: 만료된 코드
    - `403`: 코드 소유자가 이미 빈도 / 평생 한도에 도달
    """
    service = VendorVerificationService(db, cache)
    redemption = await service.verify(vendor, deal_id, request.code)

    return RedeemResponse(
        message="Code verified. Redemption recorded.",
        redemption=serialize_redemption(redemption),
    )


@router.post("/redemptions/{redemption_id}/void", response_model=RedeemResponse)
async def void_redemption(
    redemption_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache_manager),
    vendor: Vendor = Depends(get_current_vendor),
):
    """리딤 취소 (벤더, 시간 제한 없음)"""
    service = RedemptionService(db, cache)
    redemption = await service.void_by_vendor(vendor, redemption_id)

    return RedeemResponse(
        message="Redemption voided.",
        redemption=serialize_redemption(redemption),
    )
