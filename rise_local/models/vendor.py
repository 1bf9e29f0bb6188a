"""
벤더(Vendor) 모델

목적: 지역 사업자 프로필. 딜과 상품을 소유합니다.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Text,
    DateTime,
    Boolean,
    ForeignKey,
    Index,
    JSON,
    Uuid,
)
import uuid

from .base import Base


class Vendor(Base):
    """벤더 모델"""

    __tablename__ = "vendors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    business_name = Column(String(200), nullable=False)
    bio = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    categories = Column(JSON, nullable=False, default=list)

    # 연락처
    contact_email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    website = Column(String(500), nullable=True)
    image_url = Column(String(500), nullable=True)

    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_vendors_city", "city"),
        Index("idx_vendors_verified", "is_verified"),
    )

    def __repr__(self):
        return f"<Vendor(id={self.id}, name={self.business_name})>"
