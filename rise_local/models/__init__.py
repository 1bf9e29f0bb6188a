"""
데이터베이스 모델 패키지

새로운 모델을 추가할 때는 이 파일에서 import하여 Alembic이 자동으로 감지할 수 있도록 합니다.
"""

from .base import Base, get_db, close_db
from .user import User, UserRole, UserStatus
from .vendor import Vendor
from .deal import (
    Deal,
    DealType,
    DealTier,
    DealStatus,
    DiscountType,
    RedemptionFrequency,
    CouponRedemptionType,
)
from .deal_code import DealCode, DealCodeStatus
from .redemption import Redemption, RedemptionStatus, RedemptionSource, VoidedBy
from .product import Product
from .restaurant import Restaurant, MenuItem
from .event import Event
from .order import Order, OrderItem, OrderStatus, FulfillmentMethod
from .conversation import Conversation, ConversationMessage

__all__ = [
    "Base",
    "get_db",
    "close_db",
    "User",
    "UserRole",
    "UserStatus",
    "Vendor",
    "Deal",
    "DealType",
    "DealTier",
    "DealStatus",
    "DiscountType",
    "RedemptionFrequency",
    "CouponRedemptionType",
    "DealCode",
    "DealCodeStatus",
    "Redemption",
    "RedemptionStatus",
    "RedemptionSource",
    "VoidedBy",
    "Product",
    "Restaurant",
    "MenuItem",
    "Event",
    "Order",
    "OrderItem",
    "OrderStatus",
    "FulfillmentMethod",
    "Conversation",
    "ConversationMessage",
]
