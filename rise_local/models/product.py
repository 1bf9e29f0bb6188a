"""
상품(Product) 모델

목적: 벤더가 판매하는 상품
"""

from datetime import datetime
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


class Product(Base):
    """상품 모델"""

    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vendor_id = Column(
        Uuid,
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    price = Column(DECIMAL(10, 2), nullable=False)
    inventory = Column(Integer, nullable=False, default=0)
    image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        CheckConstraint("inventory >= 0", name="check_inventory_non_negative"),
        Index("idx_products_vendor", "vendor_id"),
        Index("idx_products_category", "category"),
    )

    vendor = relationship("Vendor", lazy="joined")

    def __repr__(self):
        return f"<Product(id={self.id}, name={self.name}, price={self.price})>"

    def can_purchase(self, quantity: int) -> bool:
        """지정된 수량만큼 구매 가능한지 확인"""
        return self.is_active and self.inventory >= quantity
