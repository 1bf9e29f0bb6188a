"""
딜(Deal) 모델

목적: 벤더가 게시하는 기간 한정 혜택
리딤 빈도, 멤버십 잠금, 쿠폰 코드 방식(STATIC/UNIQUE)을 함께 보관합니다.
"""

from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column,
    String,
    Text,
    DECIMAL,
    Integer,
    DateTime,
    Boolean,
    ForeignKey,
    Index,
    CheckConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
import uuid

from .base import Base


class DealType(str, Enum):
    """딜 유형"""

    BOGO = "bogo"
    PERCENT = "percent"
    ADDON = "addon"


class DealTier(str, Enum):
    """레거시 딜 등급 (is_pass_locked 도입 이전)"""

    FREE = "free"
    PREMIUM = "premium"
    MEMBER = "member"


class DiscountType(str, Enum):
    """할인 유형"""

    FIXED = "FIXED"  # 정액 할인 (예: $5)
    PERCENT = "PERCENT"  # 정률 할인 (예: 20%)


class RedemptionFrequency(str, Enum):
    """사용자별 리딤 허용 빈도"""

    ONCE = "once"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    UNLIMITED = "unlimited"
    CUSTOM = "custom"  # custom_redemption_days 일 간격


class DealStatus(str, Enum):
    """딜 상태"""

    DRAFT = "draft"
    PUBLISHED = "published"
    PAUSED = "paused"
    EXPIRED = "expired"


class CouponRedemptionType(str, Enum):
    """쿠폰 코드 방식"""

    STATIC = "STATIC"  # 모든 사용자가 공유하는 코드
    UNIQUE = "UNIQUE"  # 코드 풀에서 1인 1코드 발급


class Deal(Base):
    """딜 모델"""

    __tablename__ = "deals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vendor_id = Column(
        Uuid,
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    deal_type = Column(String(20), nullable=False, default=DealType.PERCENT.value)

    # 멤버십 게이트
    tier = Column(String(20), nullable=True)  # 레거시
    is_pass_locked = Column(Boolean, nullable=False, default=False)

    # 할인
    discount_type = Column(String(20), nullable=True)
    discount_value = Column(DECIMAL(10, 2), nullable=True)
    original_price = Column(DECIMAL(10, 2), nullable=True)

    # 리딤 정책
    redemption_frequency = Column(
        String(20), nullable=False, default=RedemptionFrequency.ONCE.value
    )
    custom_redemption_days = Column(Integer, nullable=True)
    max_redemptions_per_user = Column(Integer, nullable=True)

    status = Column(
        String(20), nullable=False, default=DealStatus.DRAFT.value, index=True
    )
    starts_at = Column(DateTime, nullable=True)
    ends_at = Column(DateTime, nullable=True)

    # 쿠폰 코드
    coupon_redemption_type = Column(String(10), nullable=True)
    static_code = Column(String(50), nullable=True)
    code_reserve_minutes = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "deal_type IN ('bogo', 'percent', 'addon')", name="check_deal_type"
        ),
        CheckConstraint(
            "redemption_frequency IN ('once', 'weekly', 'monthly', 'unlimited', 'custom')",
            name="check_redemption_frequency",
        ),
        CheckConstraint(
            "status IN ('draft', 'published', 'paused', 'expired')",
            name="check_deal_status",
        ),
        CheckConstraint(
            "coupon_redemption_type IS NULL OR coupon_redemption_type IN ('STATIC', 'UNIQUE')",
            name="check_coupon_redemption_type",
        ),
        CheckConstraint(
            "custom_redemption_days IS NULL OR custom_redemption_days >= 1",
            name="check_custom_days_positive",
        ),
        CheckConstraint(
            "max_redemptions_per_user IS NULL OR max_redemptions_per_user >= 1",
            name="check_max_redemptions_positive",
        ),
        Index("idx_deals_vendor_status", "vendor_id", "status"),
    )

    # 딜 카드와 리딤 응답에 벤더 이름이 항상 필요하므로 함께 로드
    vendor = relationship("Vendor", lazy="joined")

    def __repr__(self):
        return f"<Deal(id={self.id}, title={self.title}, status={self.status})>"

    def has_started(self, now: datetime) -> bool:
        return self.starts_at is None or self.starts_at <= now

    def is_expired(self, now: datetime) -> bool:
        """종료 시각이 지났거나 만료 상태인지 확인 (종료 시각과 같으면 만료)"""
        if self.status == DealStatus.EXPIRED.value:
            return True
        return self.ends_at is not None and self.ends_at <= now

    @property
    def uses_unique_codes(self) -> bool:
        return self.coupon_redemption_type == CouponRedemptionType.UNIQUE.value
