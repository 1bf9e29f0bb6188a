"""
메시지 API 엔드포인트

소비자와 벤더 간 1:1 대화를 제공합니다.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.api.schemas.message_schemas import (
    ConversationCreateRequest,
    ConversationListResponse,
    ConversationResponse,
    MessageCreateRequest,
    MessageListResponse,
    MessageResponse,
)
from rise_local.middleware.auth import get_current_user
from rise_local.models.base import get_db
from rise_local.models.user import User
from rise_local.services.message_service import MessageService

router = APIRouter(prefix="/api/conversations", tags=["messages"])


@router.post("", response_model=ConversationResponse)
async def start_conversation(
    request: ConversationCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """벤더와의 대화 조회 또는 생성 (소비자-벤더 쌍마다 하나)"""
    service = MessageService(db)
    return await service.get_or_create_conversation(current_user, request.vendor_id)


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """참여 중인 대화 목록 (최근 활동순)"""
    items = await MessageService(db).list_conversations(current_user)

    conversations = [
        ConversationResponse(
            **ConversationResponse.model_validate(item["conversation"]).model_dump(
                exclude={"unread_count"}
            ),
            unread_count=item["unread_count"],
        )
        for item in items
    ]
    return ConversationListResponse(conversations=conversations)


@router.get("/{conversation_id}/messages", response_model=MessageListResponse)
async def get_messages(
    conversation_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """대화 메시지 조회 (상대방 메시지는 읽음 처리)"""
    messages = await MessageService(db).get_messages(current_user, conversation_id)
    return {"messages": messages}


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: UUID,
    request: MessageCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = MessageService(db)
    return await service.send_message(current_user, conversation_id, request.body)
