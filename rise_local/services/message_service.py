"""
메시지 서비스

목적: 소비자와 벤더 간 1:1 대화
    - (소비자, 벤더) 쌍마다 대화 하나 (get-or-create)
    - 대화 참여자(소비자 본인, 벤더 소유자)만 조회/전송 가능
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.models.conversation import Conversation, ConversationMessage
from rise_local.models.user import User
from rise_local.models.vendor import Vendor
from rise_local.utils.clock import utcnow
from rise_local.utils.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from rise_local.utils.logging import get_logger
from rise_local.utils.security import sanitize_text

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 2000


class MessageService:
    """메시지 서비스"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_or_create_conversation(self, user: User, vendor_id: UUID) -> Conversation:
        """
        소비자-벤더 대화 조회 또는 생성

        Raises:
            NotFoundException: 벤더가 없는 경우
            ValidationException: 자기 자신의 벤더에게 대화 요청
        """
        vendor = await self.db.get(Vendor, vendor_id)
        if vendor is None:
            raise NotFoundException(resource="Vendor", resource_id=str(vendor_id))
        if vendor.owner_id == user.id:
            raise ValidationException(
                "You can't start a conversation with your own business.",
                field="vendorId",
            )

        existing = await self._find(user.id, vendor_id)
        if existing is not None:
            return existing

        conversation = Conversation(consumer_id=user.id, vendor_id=vendor_id)
        self.db.add(conversation)
        try:
            await self.db.commit()
        except IntegrityError:
            # 동시 요청이 먼저 생성한 경우
            await self.db.rollback()
            return await self._find(user.id, vendor_id)

        logger.info(f"대화 생성: conversation_id={conversation.id}")
        return conversation

    async def list_conversations(self, user: User) -> List[dict]:
        """
        참여 중인 대화 목록 (최근 활동순, 안 읽은 메시지 수 포함)
        """
        owned_vendor_ids = select(Vendor.id).where(Vendor.owner_id == user.id)
        result = await self.db.execute(
            select(Conversation)
            .where(
                or_(
                    Conversation.consumer_id == user.id,
                    Conversation.vendor_id.in_(owned_vendor_ids),
                )
            )
            .order_by(
                func.coalesce(Conversation.last_message_at, Conversation.created_at).desc()
            )
        )
        conversations = result.scalars().all()

        items = []
        for conversation in conversations:
            unread = await self.db.scalar(
                select(func.count(ConversationMessage.id)).where(
                    ConversationMessage.conversation_id == conversation.id,
                    ConversationMessage.sender_id != user.id,
                    ConversationMessage.is_read.is_(False),
                )
            )
            items.append({"conversation": conversation, "unread_count": unread or 0})
        return items

    async def get_messages(self, user: User, conversation_id: UUID) -> List[ConversationMessage]:
        """
        대화 메시지 조회 (상대방 메시지는 읽음 처리)

        Raises:
            NotFoundException: 대화가 없는 경우
            ForbiddenException: 참여자가 아닌 경우
        """
        conversation = await self._get_for_participant(user, conversation_id)

        await self.db.execute(
            update(ConversationMessage)
            .where(
                ConversationMessage.conversation_id == conversation.id,
                ConversationMessage.sender_id != user.id,
                ConversationMessage.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        result = await self.db.execute(
            select(ConversationMessage)
            .where(ConversationMessage.conversation_id == conversation.id)
            .order_by(ConversationMessage.created_at)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def send_message(
        self, user: User, conversation_id: UUID, body: Optional[str]
    ) -> ConversationMessage:
        """
        메시지 전송

        Raises:
            ValidationException: 빈 메시지 또는 길이 초과
        """
        conversation = await self._get_for_participant(user, conversation_id)

        cleaned = sanitize_text(body)
        if not cleaned:
            raise ValidationException("Message can't be empty.", field="body")
        if len(cleaned) > MAX_MESSAGE_LENGTH:
            raise ValidationException(
                f"Messages are limited to {MAX_MESSAGE_LENGTH} characters.", field="body"
            )

        now = utcnow()
        message = ConversationMessage(
            conversation_id=conversation.id,
            sender_id=user.id,
            body=cleaned,
            created_at=now,
        )
        conversation.last_message_at = now
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        return message

    async def _find(self, consumer_id: UUID, vendor_id: UUID) -> Optional[Conversation]:
        result = await self.db.execute(
            select(Conversation).where(
                Conversation.consumer_id == consumer_id,
                Conversation.vendor_id == vendor_id,
            )
        )
        return result.scalar_one_or_none()

    async def _get_for_participant(self, user: User, conversation_id: UUID) -> Conversation:
        conversation = await self.db.get(Conversation, conversation_id)
        if conversation is None:
            raise NotFoundException(resource="Conversation", resource_id=str(conversation_id))

        if conversation.consumer_id == user.id:
            return conversation

        vendor = await self.db.get(Vendor, conversation.vendor_id)
        if vendor is not None and vendor.owner_id == user.id:
            return conversation

        raise ForbiddenException("You are not part of this conversation.")
