"""
리딤 기록 / 이력 / 취소 서비스

목적:
    - 사용자 직접 리딤 기록 (STATIC 코드 딜, 코드 없는 딜)
    - 리딤 이력 및 상세 조회
    - 리딤 취소 (소비자: 제한 시간 내, 벤더: 자기 딜이면 제한 없음)

취소 시 행은 삭제하지 않고 status=voided 로 남깁니다.
연결된 UNIQUE 코드는 REDEEMED 상태를 유지합니다 (코드 재활용 없음).
"""

from datetime import datetime, timedelta
from typing import Optional, List
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.config import get_settings
from rise_local.models.deal import Deal
from rise_local.models.redemption import (
    Redemption,
    RedemptionSource,
    RedemptionStatus,
    VoidedBy,
)
from rise_local.models.user import User
from rise_local.models.vendor import Vendor
from rise_local.services.eligibility_service import EligibilityService
from rise_local.utils.cache_manager import CacheManager, CacheKeyBuilder
from rise_local.utils.clock import utcnow
from rise_local.utils.exceptions import (
    BusinessRuleException,
    ForbiddenException,
    RedemptionAlreadyVoidedException,
    RedemptionNotFoundException,
    UndoWindowExpiredException,
)
from rise_local.utils.logging import get_logger, audit_logger
from rise_local.utils.prometheus_metrics import record_redemption, record_redemption_void

logger = get_logger(__name__)


def serialize_redemption(
    redemption: Redemption,
    include_code: bool = False,
    now: Optional[datetime] = None,
) -> dict:
    """
    리딤 응답 딕셔너리 생성

    Args:
        redemption: 리딤
        include_code: 발급 코드 포함 여부 (코드 소유자에게만 True)
        now: 코드 만료 판정 기준 시각
    """
    deal = redemption.deal
    data = {
        "id": redemption.id,
        "deal_id": redemption.deal_id,
        "deal_title": deal.title if deal else None,
        "vendor_id": redemption.vendor_id,
        "vendor_name": deal.vendor.business_name if deal and deal.vendor else None,
        "user_id": redemption.user_id,
        "source": redemption.source,
        "status": redemption.status,
        "redeemed_at": redemption.redeemed_at,
        "voided_at": redemption.voided_at,
        "voided_by": redemption.voided_by,
    }

    if include_code and redemption.deal_code is not None:
        code = redemption.deal_code
        data["code"] = code.code
        data["code_expires_at"] = code.expires_at
        data["is_expired"] = code.is_expired(now or utcnow())

    return data


class RedemptionService:
    """리딤 서비스"""

    def __init__(self, db: AsyncSession, cache: Optional[CacheManager] = None):
        self.db = db
        self.cache = cache
        self.settings = get_settings()
        self.eligibility = EligibilityService(db)

    async def redeem(
        self,
        user: User,
        deal_id: UUID,
        source: str = RedemptionSource.WEB.value,
        now: Optional[datetime] = None,
    ) -> Redemption:
        """
        사용자 직접 리딤 기록

        Raises:
            DealNotFoundException: 딜이 없는 경우
            BusinessRuleException: UNIQUE 코드 딜 (벤더 확인으로만 리딤)
            NotEligibleException: 리딤 자격 없음
        """
        now = now or utcnow()
        deal = await self.eligibility.get_deal(deal_id)

        if deal.uses_unique_codes:
            raise BusinessRuleException(
                "This deal is redeemed when the vendor verifies your code.",
                rule="unique_code_required",
            )

        await self.eligibility.ensure_eligible(user, deal, now)

        redemption = await self.record(
            user_id=user.id,
            deal=deal,
            source=source,
            redeemed_at=now,
        )
        return redemption

    async def record(
        self,
        user_id: UUID,
        deal: Deal,
        source: str,
        redeemed_at: datetime,
        deal_code_id: Optional[UUID] = None,
    ) -> Redemption:
        """
        리딤 행 기록 후 커밋, 캐시 무효화, 감사 로그

        벤더 코드 확인 흐름에서도 사용합니다.
        """
        redemption = Redemption(
            user_id=user_id,
            deal_id=deal.id,
            vendor_id=deal.vendor_id,
            deal_code_id=deal_code_id,
            source=source,
            status=RedemptionStatus.REDEEMED.value,
            redeemed_at=redeemed_at,
        )
        self.db.add(redemption)
        await self.db.commit()
        redemption = await self._load(redemption.id)

        await self._invalidate(user_id, deal.id)

        record_redemption(source)
        audit_logger.log_event(
            event_type="deal.redeemed",
            user_id=str(user_id),
            resource_type="redemption",
            resource_id=str(redemption.id),
            action="create",
            details={"deal_id": str(deal.id), "source": source},
        )
        logger.info(
            f"리딤 기록: redemption_id={redemption.id}, deal_id={deal.id}, source={source}"
        )
        return redemption

    async def get_history(self, user_id: UUID, limit: int = 20) -> List[dict]:
        """
        리딤 이력 (최신순, 취소 건 포함)

        Args:
            user_id: 사용자 ID
            limit: 최대 건수
        """
        cache_key = CacheKeyBuilder.redemption_history(str(user_id), limit)
        if self.cache is not None:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return cached

        result = await self.db.execute(
            select(Redemption)
            .where(Redemption.user_id == user_id)
            .order_by(Redemption.redeemed_at.desc())
            .limit(limit)
        )
        history = jsonable_encoder(
            [serialize_redemption(r) for r in result.unique().scalars().all()]
        )

        if self.cache is not None:
            await self.cache.set(
                cache_key, history, ttl=self.settings.HISTORY_CACHE_TTL_SECONDS
            )
        return history

    async def get_for_user(self, user: User, redemption_id: UUID) -> Redemption:
        """
        본인 리딤 단건 조회

        Raises:
            RedemptionNotFoundException: 리딤이 없는 경우
            ForbiddenException: 다른 사용자의 리딤
        """
        redemption = await self._load(redemption_id)
        if redemption is None:
            raise RedemptionNotFoundException(str(redemption_id))
        if redemption.user_id != user.id:
            raise ForbiddenException("You can only view your own redemptions.")
        return redemption

    async def void_by_customer(
        self, user: User, redemption_id: UUID, now: Optional[datetime] = None
    ) -> Redemption:
        """
        소비자 리딤 취소 (undo)

        Raises:
            RedemptionNotFoundException: 리딤이 없는 경우
            ForbiddenException: 다른 사용자의 리딤
            RedemptionAlreadyVoidedException: 이미 취소됨
            UndoWindowExpiredException: 취소 가능 시간 경과
        """
        now = now or utcnow()
        redemption = await self.get_for_user(user, redemption_id)

        if redemption.is_voided:
            raise RedemptionAlreadyVoidedException()

        window = self.settings.REDEMPTION_UNDO_WINDOW_MINUTES
        if now - redemption.redeemed_at > timedelta(minutes=window):
            raise UndoWindowExpiredException(window)

        return await self._void(redemption, VoidedBy.CUSTOMER.value, user.id, now)

    async def void_by_vendor(
        self, vendor: Vendor, redemption_id: UUID, now: Optional[datetime] = None
    ) -> Redemption:
        """
        벤더 리딤 취소 (시간 제한 없음)

        Raises:
            RedemptionNotFoundException: 리딤이 없는 경우
            ForbiddenException: 다른 벤더의 딜 리딤
            RedemptionAlreadyVoidedException: 이미 취소됨
        """
        redemption = await self._load(redemption_id)
        if redemption is None:
            raise RedemptionNotFoundException(str(redemption_id))
        if redemption.vendor_id != vendor.id:
            raise ForbiddenException("You can only void redemptions of your own deals.")
        if redemption.is_voided:
            raise RedemptionAlreadyVoidedException()

        return await self._void(
            redemption, VoidedBy.VENDOR.value, vendor.owner_id, now or utcnow()
        )

    async def _void(
        self, redemption: Redemption, voided_by: str, actor_id: UUID, now: datetime
    ) -> Redemption:
        redemption.status = RedemptionStatus.VOIDED.value
        redemption.voided_at = now
        redemption.voided_by = voided_by
        await self.db.commit()

        await self._invalidate(redemption.user_id, redemption.deal_id)

        record_redemption_void(voided_by)
        audit_logger.log_event(
            event_type="redemption.voided",
            user_id=str(actor_id),
            resource_type="redemption",
            resource_id=str(redemption.id),
            action="void",
            details={"deal_id": str(redemption.deal_id), "voided_by": voided_by},
        )
        return redemption

    async def list_for_deal(self, deal_id: UUID, limit: int = 100) -> List[Redemption]:
        """딜별 리딤 목록 (벤더 대시보드용)"""
        result = await self.db.execute(
            select(Redemption)
            .where(Redemption.deal_id == deal_id)
            .order_by(Redemption.redeemed_at.desc())
            .limit(limit)
        )
        return list(result.unique().scalars().all())

    async def _load(self, redemption_id: UUID) -> Optional[Redemption]:
        return await self.db.get(Redemption, redemption_id, populate_existing=True)

    async def _invalidate(self, user_id: UUID, deal_id: UUID) -> None:
        if self.cache is not None:
            await self.cache.invalidate_redemption_cache(str(user_id), str(deal_id))
