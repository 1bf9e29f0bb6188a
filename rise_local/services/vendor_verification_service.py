"""
벤더 코드 확인 서비스

목적: 매장 직원이 입력한 6자리 코드를 발급된 UNIQUE 코드와 대조하여 사용 처리

검증 순서:
    1. 공백 제거 후 숫자 6자리인지 (아니면 400)
    2. 이 딜에 발급된 코드인지 (미발급/없음은 404)
    3. 이미 사용된 코드인지 (409)
    4. 만료되었는지 (expires_at <= now 는 만료, 410)
    5. 코드 소유자의 빈도 / 평생 한도 (초과 시 403)
    6. RESERVED → REDEEMED 조건부 UPDATE 후 vendor_verify 리딤 기록

오류 응답에는 다른 사용자의 코드 값을 포함하지 않습니다.
"""

import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.models.deal_code import DealCode, DealCodeStatus
from rise_local.models.redemption import Redemption, RedemptionSource
from rise_local.models.vendor import Vendor
from rise_local.services.eligibility_service import EligibilityService
from rise_local.services.redemption_service import RedemptionService
from rise_local.utils.cache_manager import CacheManager
from rise_local.utils.clock import utcnow
from rise_local.utils.exceptions import (
    CodeAlreadyUsedException,
    CodeExpiredException,
    ForbiddenException,
    InvalidCodeException,
    InvalidCodeFormatException,
    NotEligibleException,
)
from rise_local.utils.logging import get_logger, audit_logger
from rise_local.utils.prometheus_metrics import record_code_verification

logger = get_logger(__name__)

CODE_PATTERN = re.compile(r"^\d{6}$")
_WHITESPACE = re.compile(r"\s+")


def normalize_code(raw: Optional[str]) -> str:
    """입력 코드에서 모든 공백 제거"""
    return _WHITESPACE.sub("", raw or "")


class VendorVerificationService:
    """벤더 코드 확인 서비스"""

    def __init__(self, db: AsyncSession, cache: Optional[CacheManager] = None):
        self.db = db
        self.eligibility = EligibilityService(db)
        self.redemptions = RedemptionService(db, cache)

    async def verify(
        self,
        vendor: Vendor,
        deal_id: UUID,
        raw_code: Optional[str],
        now: Optional[datetime] = None,
    ) -> Redemption:
        """
        코드 확인 및 사용 처리

        Args:
            vendor: 현재 벤더
            deal_id: 딜 ID
            raw_code: 직원이 입력한 코드
            now: 기준 시각 (테스트용)

        Returns:
            생성된 vendor_verify 리딤

        Raises:
            DealNotFoundException, ForbiddenException, InvalidCodeFormatException,
            InvalidCodeException, CodeAlreadyUsedException, CodeExpiredException,
            NotEligibleException
        """
        now = now or utcnow()
        deal = await self.eligibility.get_deal(deal_id)
        if deal.vendor_id != vendor.id:
            raise ForbiddenException("You can only verify codes for your own deals.")

        code_value = normalize_code(raw_code)
        if not CODE_PATTERN.match(code_value):
            record_code_verification("invalid_format")
            raise InvalidCodeFormatException()

        deal_code = await self._find_code(deal.id, code_value)
        if deal_code is None or not deal_code.consumed:
            record_code_verification("invalid")
            raise InvalidCodeException()

        if deal_code.status == DealCodeStatus.REDEEMED.value:
            record_code_verification("already_used")
            raise CodeAlreadyUsedException()

        if deal_code.is_expired(now):
            await self._mark_expired(deal_code)
            record_code_verification("expired")
            raise CodeExpiredException()

        # 코드 소유자의 빈도 / 평생 한도 재확인
        limits = await self.eligibility.check_limits(
            deal_code.assigned_to_user_id, deal, now
        )
        if not limits.can_redeem:
            record_code_verification("not_eligible")
            logger.info(
                f"코드 소유자 한도 초과: code_id={deal_code.id}, reason={limits.reason}"
            )
            raise NotEligibleException(limits.reason)

        if not await self._try_redeem(deal_code.id, now):
            # 동시에 다른 요청이 처리했거나 그 사이 만료됨
            await self.db.refresh(deal_code)
            if deal_code.is_expired(now):
                record_code_verification("expired")
                raise CodeExpiredException()
            record_code_verification("already_used")
            raise CodeAlreadyUsedException()

        await self.db.refresh(deal_code)
        redemption = await self.redemptions.record(
            user_id=deal_code.assigned_to_user_id,
            deal=deal,
            source=RedemptionSource.VENDOR_VERIFY.value,
            redeemed_at=now,
            deal_code_id=deal_code.id,
        )

        record_code_verification("redeemed")
        audit_logger.log_event(
            event_type="redemption.verified",
            user_id=str(vendor.owner_id),
            resource_type="redemption",
            resource_id=str(redemption.id),
            action="verify",
            details={"deal_id": str(deal.id), "code_id": str(deal_code.id)},
        )
        return redemption

    async def _find_code(self, deal_id: UUID, code: str) -> Optional[DealCode]:
        result = await self.db.execute(
            select(DealCode).where(DealCode.deal_id == deal_id, DealCode.code == code)
        )
        return result.scalar_one_or_none()

    async def _mark_expired(self, deal_code: DealCode) -> None:
        """지연 만료 처리"""
        if deal_code.status != DealCodeStatus.EXPIRED.value:
            deal_code.status = DealCodeStatus.EXPIRED.value
            await self.db.commit()
            logger.info(f"코드 만료 처리: code_id={deal_code.id}")

    async def _try_redeem(self, code_id: UUID, now: datetime) -> bool:
        result = await self.db.execute(
            update(DealCode)
            .where(
                DealCode.id == code_id,
                DealCode.status == DealCodeStatus.RESERVED.value,
                or_(DealCode.expires_at.is_(None), DealCode.expires_at > now),
            )
            .values(status=DealCodeStatus.REDEEMED.value, redeemed_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
