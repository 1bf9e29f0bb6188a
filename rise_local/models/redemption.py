"""
리딤(Redemption) 모델

목적: 사용자가 딜을 사용한 기록
취소(void) 시 행을 삭제하지 않고 상태만 변경하여 이력을 보존합니다.
"""

from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column,
    String,
    Text,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
import uuid

from .base import Base


class RedemptionStatus(str, Enum):
    """리딤 상태"""

    REDEEMED = "redeemed"
    VOIDED = "voided"


class RedemptionSource(str, Enum):
    """리딤 경로"""

    WEB = "web"  # 사용자가 직접 사용 처리
    VENDOR_VERIFY = "vendor_verify"  # 벤더가 코드 확인


class VoidedBy(str, Enum):
    """취소 주체"""

    CUSTOMER = "customer"
    VENDOR = "vendor"


class Redemption(Base):
    """리딤 모델"""

    __tablename__ = "redemptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    deal_id = Column(
        Uuid,
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False,
    )
    vendor_id = Column(
        Uuid,
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    deal_code_id = Column(
        Uuid,
        ForeignKey("deal_codes.id", ondelete="SET NULL"),
        nullable=True,
    )
    source = Column(String(20), nullable=False, default=RedemptionSource.WEB.value)
    status = Column(
        String(20), nullable=False, default=RedemptionStatus.REDEEMED.value
    )
    redeemed_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    voided_at = Column(DateTime, nullable=True)
    voided_by = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('redeemed', 'voided')", name="check_redemption_status"
        ),
        CheckConstraint(
            "source IN ('web', 'vendor_verify')", name="check_redemption_source"
        ),
        CheckConstraint(
            "voided_by IS NULL OR voided_by IN ('customer', 'vendor')",
            name="check_redemption_voided_by",
        ),
        Index("idx_redemptions_user_deal", "user_id", "deal_id", "redeemed_at"),
    )

    deal = relationship("Deal", lazy="joined")
    deal_code = relationship("DealCode", lazy="joined")

    def __repr__(self):
        return (
            f"<Redemption(id={self.id}, user_id={self.user_id}, "
            f"deal_id={self.deal_id}, status={self.status})>"
        )

    @property
    def is_voided(self) -> bool:
        return self.status == RedemptionStatus.VOIDED.value
