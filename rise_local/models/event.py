"""
이벤트(Event) 모델

목적: 벤더가 주최하는 지역 행사 (조회 전용)
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
import uuid

from .base import Base


class Event(Base):
    """이벤트 모델"""

    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organizer_id = Column(
        Uuid,
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
    )
    # 레스토랑에서 열리는 행사면 설정
    restaurant_id = Column(
        Uuid,
        ForeignKey("restaurants.id", ondelete="SET NULL"),
        nullable=True,
    )
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    starts_at = Column(DateTime, nullable=False)
    location = Column(String(300), nullable=False)
    category = Column(String(100), nullable=False)
    tickets_available = Column(Integer, nullable=False, default=0)
    rsvp_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("tickets_available >= 0", name="check_tickets_non_negative"),
        Index("idx_events_starts_at", "starts_at"),
        Index("idx_events_organizer", "organizer_id"),
        Index("idx_events_restaurant", "restaurant_id"),
    )

    organizer = relationship("Vendor", lazy="joined")

    def __repr__(self):
        return f"<Event(id={self.id}, title={self.title}, starts_at={self.starts_at})>"
