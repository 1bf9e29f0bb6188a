"""
주문(Order) 및 주문 항목(OrderItem) 모델

목적: 장바구니 결제로 생성되는 구매 주문
결제는 외부 서비스가 처리하므로 주문은 pending 상태로 생성됩니다.
"""

from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column,
    String,
    DECIMAL,
    Integer,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    JSON,
    Uuid,
)
from sqlalchemy.orm import relationship
import uuid

from .base import Base


class OrderStatus(str, Enum):
    """주문 상태"""

    PENDING = "pending"  # 결제 대기
    PAID = "paid"
    CANCELLED = "cancelled"


class FulfillmentMethod(str, Enum):
    """수령 방식"""

    PICKUP = "pickup"
    DELIVERY = "delivery"
    SHIPPING = "shipping"


class Order(Base):
    """주문 모델"""

    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    buyer_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)
    fulfillment_method = Column(String(20), nullable=False)

    subtotal = Column(DECIMAL(10, 2), nullable=False)
    tax = Column(DECIMAL(10, 2), nullable=False)
    buyer_fee = Column(DECIMAL(10, 2), nullable=False)
    total = Column(DECIMAL(10, 2), nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'paid', 'cancelled')", name="check_order_status"
        ),
        CheckConstraint(
            "fulfillment_method IN ('pickup', 'delivery', 'shipping')",
            name="check_fulfillment_method",
        ),
        Index("idx_orders_buyer_created", "buyer_id", "created_at"),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, buyer_id={self.buyer_id}, status={self.status})>"


class OrderItem(Base):
    """주문 항목 모델 (주문 시점의 상품 정보 스냅샷)"""

    __tablename__ = "order_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False)
    vendor_id = Column(Uuid, ForeignKey("vendors.id"), nullable=False)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    price_at_purchase = Column(DECIMAL(10, 2), nullable=False)
    variant_id = Column(String(100), nullable=True)
    options = Column(JSON, nullable=True)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_order_item_quantity_positive"),
    )

    def __repr__(self):
        return f"<OrderItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
