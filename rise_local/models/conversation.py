"""
대화(Conversation) 및 메시지(ConversationMessage) 모델

목적: 소비자와 벤더 간 1:1 메시지. (소비자, 벤더) 쌍마다 대화는 하나입니다.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    Text,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
    Uuid,
)
import uuid

from .base import Base


class Conversation(Base):
    """대화 모델"""

    __tablename__ = "conversations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    consumer_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    vendor_id = Column(
        Uuid,
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    last_message_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint(
            "consumer_id", "vendor_id", name="uq_conversations_consumer_vendor"
        ),
    )

    def __repr__(self):
        return f"<Conversation(id={self.id}, consumer_id={self.consumer_id}, vendor_id={self.vendor_id})>"


class ConversationMessage(Base):
    """메시지 모델"""

    __tablename__ = "conversation_messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    conversation_id = Column(
        Uuid,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    body = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_messages_conversation_created", "conversation_id", "created_at"),
    )

    def __repr__(self):
        return f"<ConversationMessage(id={self.id}, conversation_id={self.conversation_id})>"
