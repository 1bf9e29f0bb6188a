"""
딜 API 요청/응답 스키마 (딜 카드, 벤더 딜 관리)
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field, model_validator

from .base import CamelModel


class DealCard(CamelModel):
    """딜 카드 뷰모델"""

    id: UUID
    vendor_id: UUID
    vendor_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    deal_type: str
    frequency_label: Optional[str] = None
    savings_label: Optional[str] = None
    is_member_only: bool
    is_locked: bool
    show_lock_overlay: bool
    show_member_badge: bool
    can_redeem: bool
    coupon_type: Optional[str] = None
    ends_at: Optional[datetime] = None


class DealListResponse(CamelModel):
    deals: List[DealCard]


class VendorDealFields(CamelModel):
    """딜 생성/수정 공통 필드"""

    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    deal_type: Optional[Literal["bogo", "percent", "addon"]] = None
    tier: Optional[str] = Field(None, description="레거시 등급 (free, premium, member)")
    is_pass_locked: Optional[bool] = None
    discount_type: Optional[Literal["PERCENT", "FIXED"]] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    original_price: Optional[Decimal] = Field(None, ge=0)
    redemption_frequency: Optional[
        Literal["once", "weekly", "monthly", "unlimited", "custom"]
    ] = None
    custom_redemption_days: Optional[int] = Field(None, ge=1)
    max_redemptions_per_user: Optional[int] = Field(None, ge=1)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    coupon_redemption_type: Optional[Literal["STATIC", "UNIQUE"]] = None
    static_code: Optional[str] = Field(None, max_length=50)
    code_reserve_minutes: Optional[int] = Field(None, ge=1, le=1440)


class VendorDealCreateRequest(VendorDealFields):
    """딜 생성 요청"""

    title: str = Field(..., min_length=1, max_length=200)


class VendorDealUpdateRequest(VendorDealFields):
    """딜 수정 요청 (전달된 필드만 반영)"""


class DealStatusRequest(CamelModel):
    status: Literal["draft", "published", "paused", "expired"]


class AddCodesRequest(CamelModel):
    """코드 풀 보충 요청 (codes 또는 count 중 하나)"""

    codes: Optional[List[str]] = None
    count: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_one_source(self):
        if not self.codes and not self.count:
            raise ValueError("Provide either codes or count")
        return self


class PoolStats(CamelModel):
    available: int = 0
    reserved: int = 0
    redeemed: int = 0
    expired: int = 0
    total: int = 0


class AddCodesResponse(CamelModel):
    added: int
    skipped: int
    pool: PoolStats


class VendorDealResponse(CamelModel):
    """벤더 대시보드 딜 상세"""

    id: UUID
    vendor_id: UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    deal_type: str
    tier: Optional[str] = None
    is_pass_locked: bool
    discount_type: Optional[str] = None
    discount_value: Optional[float] = None
    original_price: Optional[float] = None
    redemption_frequency: str
    custom_redemption_days: Optional[int] = None
    max_redemptions_per_user: Optional[int] = None
    status: str
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    coupon_redemption_type: Optional[str] = None
    static_code: Optional[str] = None
    code_reserve_minutes: Optional[int] = None
    created_at: datetime


class VendorDealItem(VendorDealResponse):
    redemption_count: int = 0
    pool: Optional[PoolStats] = None


class VendorDealListResponse(CamelModel):
    deals: List[VendorDealItem]
