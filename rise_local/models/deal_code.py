"""
딜 코드(DealCode) 모델

목적: UNIQUE 방식 딜의 일회용 6자리 코드 풀

상태 전이:
    AVAILABLE → RESERVED(expires_at) → REDEEMED | EXPIRED
    코드는 재활용하지 않습니다 (리딤 취소 후에도 REDEEMED 유지).
"""

from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
    CheckConstraint,
    Uuid,
    text,
)
import uuid

from .base import Base


class DealCodeStatus(str, Enum):
    """코드 상태"""

    AVAILABLE = "AVAILABLE"  # 미발급
    RESERVED = "RESERVED"  # 사용자에게 발급됨 (만료 시각 있음)
    REDEEMED = "REDEEMED"  # 벤더가 확인함
    EXPIRED = "EXPIRED"  # 확인 전에 만료됨


class DealCode(Base):
    """딜 코드 모델"""

    __tablename__ = "deal_codes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    deal_id = Column(
        Uuid,
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False,
    )
    code = Column(String(20), nullable=False)
    status = Column(
        String(20), nullable=False, default=DealCodeStatus.AVAILABLE.value
    )
    assigned_to_user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    reserved_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    redeemed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("deal_id", "code", name="uq_deal_codes_deal_code"),
        CheckConstraint(
            "status IN ('AVAILABLE', 'RESERVED', 'REDEEMED', 'EXPIRED')",
            name="check_deal_code_status",
        ),
        Index("idx_deal_codes_deal_status", "deal_id", "status"),
        # 사용자는 딜마다 RESERVED 코드를 하나만 보유
        Index(
            "uq_deal_codes_one_reserved_per_user",
            "deal_id",
            "assigned_to_user_id",
            unique=True,
            postgresql_where=text("status = 'RESERVED'"),
            sqlite_where=text("status = 'RESERVED'"),
        ),
    )

    def __repr__(self):
        return f"<DealCode(id={self.id}, deal_id={self.deal_id}, status={self.status})>"

    @property
    def consumed(self) -> bool:
        """풀에서 빠진 코드인지 (한 번이라도 발급된 코드)"""
        return self.status != DealCodeStatus.AVAILABLE.value

    def is_expired(self, now: datetime) -> bool:
        """
        만료 여부 확인

        만료 시각과 정확히 같은 시각도 만료로 취급합니다.
        """
        if self.status == DealCodeStatus.EXPIRED.value:
            return True
        return (
            self.status == DealCodeStatus.RESERVED.value
            and self.expires_at is not None
            and self.expires_at <= now
        )
