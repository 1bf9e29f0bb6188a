"""
메시지 API 요청/응답 스키마
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from .base import CamelModel


class ConversationCreateRequest(CamelModel):
    vendor_id: UUID


class ConversationResponse(CamelModel):
    id: UUID
    consumer_id: UUID
    vendor_id: UUID
    last_message_at: Optional[datetime] = None
    created_at: datetime
    unread_count: int = 0


class ConversationListResponse(CamelModel):
    conversations: List[ConversationResponse]


class MessageCreateRequest(CamelModel):
    # 길이 제한은 정제 후 서비스에서 검사
    body: str = Field(..., min_length=1, max_length=10000)


class MessageResponse(CamelModel):
    id: UUID
    conversation_id: UUID
    sender_id: UUID
    body: str
    is_read: bool
    created_at: datetime


class MessageListResponse(CamelModel):
    messages: List[MessageResponse]
