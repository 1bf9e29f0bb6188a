"""
레스토랑(Restaurant) / 메뉴(MenuItem) 모델

목적: 식당 프로필과 메뉴 (조회 전용)
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
import uuid

from .base import Base


class Restaurant(Base):
    """레스토랑 모델"""

    __tablename__ = "restaurants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    restaurant_name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    cuisine_type = Column(String(100), nullable=True)
    price_range = Column(String(10), nullable=True)
    city = Column(String(100), nullable=True)
    address = Column(String(300), nullable=True)
    phone = Column(String(30), nullable=True)
    website = Column(String(500), nullable=True)
    image_url = Column(String(500), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_restaurants_owner", "owner_id"),
        Index("idx_restaurants_verified", "is_verified"),
    )

    def __repr__(self):
        return f"<Restaurant(id={self.id}, name={self.restaurant_name})>"


class MenuItem(Base):
    """메뉴 항목 모델"""

    __tablename__ = "menu_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(
        Uuid,
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False)
    price = Column(DECIMAL(10, 2), nullable=False)
    image_url = Column(String(500), nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_menu_price_non_negative"),
        Index("idx_menu_items_restaurant", "restaurant_id", "display_order"),
    )

    def __repr__(self):
        return f"<MenuItem(id={self.id}, name={self.name}, price={self.price})>"
