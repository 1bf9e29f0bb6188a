"""
딜 리딤 API 요청/응답 스키마
"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field

from .base import CamelModel


class CanRedeemResponse(CamelModel):
    """can-redeem 응답"""

    can_redeem: bool = Field(..., description="리딤 가능 여부")
    reason: Optional[str] = Field(None, description="불가능한 경우 사유")
    requires_pass: bool = Field(False, description="Rise Local Pass 필요 여부")
    next_eligible_at: Optional[datetime] = Field(None, description="다음 리딤 가능 시각")


class CouponCodeResponse(CamelModel):
    """쿠폰 코드 발급 응답"""

    success: bool = True
    type: Literal["STATIC", "UNIQUE"]
    code: str
    code_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None
    message: str


class RedeemRequest(CamelModel):
    """리딤 요청 (사용자 직접 리딤은 web 경로만 허용)"""

    source: Literal["web"] = "web"


class RedemptionSummary(CamelModel):
    """리딤 요약"""

    id: UUID
    deal_id: UUID
    deal_title: Optional[str] = None
    vendor_id: UUID
    vendor_name: Optional[str] = None
    user_id: UUID
    source: str
    status: str
    redeemed_at: datetime
    voided_at: Optional[datetime] = None
    voided_by: Optional[str] = None


class RedemptionDetail(RedemptionSummary):
    """리딤 상세 (발급 코드 포함, 소유자 전용)"""

    code: Optional[str] = None
    code_expires_at: Optional[datetime] = None
    is_expired: Optional[bool] = None


class RedeemResponse(CamelModel):
    """리딤 기록 / 취소 / 코드 확인 응답"""

    success: bool = True
    message: str
    redemption: RedemptionSummary


class RedemptionHistoryResponse(CamelModel):
    """리딤 이력 응답"""

    redemptions: List[RedemptionSummary]


class VerifyCodeRequest(CamelModel):
    """벤더 코드 확인 요청"""

    code: str = Field(..., max_length=32, description="고객이 제시한 6자리 코드")
