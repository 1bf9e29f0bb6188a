"""
쿠폰 코드 발급 서비스

목적: 리딤 자격이 있는 사용자에게 딜 코드를 발급
    - STATIC: 딜에 저장된 공유 코드를 그대로 반환 (만료 없음, 상태 변경 없음)
    - UNIQUE: 코드 풀에서 AVAILABLE 코드 하나를 원자적으로 선점하여 RESERVED 처리

동시성:
    선점은 조건부 UPDATE (WHERE status = 'AVAILABLE') 의 영향 행 수로 판정합니다.
    다른 요청이 먼저 가져간 경우 새 후보로 제한 횟수만큼 재시도합니다.
    한 사용자는 딜마다 RESERVED 코드를 하나만 가질 수 있습니다. 같은 사용자의
    동시 요청은 먼저 선점된 코드를 함께 돌려받습니다.
    프로세스 간 메모리 공유를 가정하지 않습니다.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.config import get_settings
from rise_local.models.deal import Deal, CouponRedemptionType
from rise_local.models.deal_code import DealCode, DealCodeStatus
from rise_local.models.user import User
from rise_local.services.eligibility_service import EligibilityService
from rise_local.utils.clock import utcnow
from rise_local.utils.exceptions import (
    BusinessRuleException,
    NotEligibleException,
    PoolEmptyException,
)
from rise_local.utils.logging import get_logger, audit_logger
from rise_local.utils.prometheus_metrics import record_code_issuance

logger = get_logger(__name__)


@dataclass
class IssuedCode:
    """발급 결과"""

    type: str
    code: str
    message: str
    code_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None
    reissued: bool = False


class CodeIssuanceService:
    """쿠폰 코드 발급 서비스"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()
        self.eligibility = EligibilityService(db)

    async def issue(
        self, user: User, deal_id: UUID, now: Optional[datetime] = None
    ) -> IssuedCode:
        """
        딜 코드 발급

        Args:
            user: 현재 사용자
            deal_id: 딜 ID
            now: 기준 시각 (테스트용)

        Returns:
            IssuedCode

        Raises:
            DealNotFoundException: 딜이 없는 경우
            BusinessRuleException: 쿠폰 코드를 사용하지 않는 딜
            NotEligibleException: 리딤 자격 없음
            PoolEmptyException: UNIQUE 코드 풀 소진
        """
        now = now or utcnow()
        deal = await self.eligibility.get_deal(deal_id)
        coupon_type = deal.coupon_redemption_type

        if coupon_type not in (
            CouponRedemptionType.STATIC.value,
            CouponRedemptionType.UNIQUE.value,
        ):
            raise BusinessRuleException(
                "This deal doesn't use coupon codes.",
                rule="coupon_type_required",
            )

        try:
            await self.eligibility.ensure_eligible(user, deal, now)
        except NotEligibleException:
            record_code_issuance(coupon_type.lower(), "denied")
            raise

        if coupon_type == CouponRedemptionType.STATIC.value:
            return self._issue_static(user, deal)

        return await self._issue_unique(user, deal, now)

    def _issue_static(self, user: User, deal: Deal) -> IssuedCode:
        if not deal.static_code:
            raise BusinessRuleException(
                "This deal has no coupon code configured yet.",
                rule="static_code_required",
            )

        record_code_issuance("static", "issued")
        audit_logger.log_event(
            event_type="deal.code_issued",
            user_id=str(user.id),
            resource_type="deal",
            resource_id=str(deal.id),
            action="issue",
            details={"type": CouponRedemptionType.STATIC.value},
        )
        return IssuedCode(
            type=CouponRedemptionType.STATIC.value,
            code=deal.static_code,
            message="Show this code at checkout.",
        )

    async def _issue_unique(self, user: User, deal: Deal, now: datetime) -> IssuedCode:
        # 아직 유효한 코드를 이미 받았다면 그대로 반환 (모달 재오픈)
        held = await self._find_reserved_code(deal.id, user.id)
        if held is not None:
            if not held.is_expired(now):
                record_code_issuance("unique", "reissued")
                return self._to_issued(held, reissued=True)

            held.status = DealCodeStatus.EXPIRED.value
            await self.db.commit()
            logger.info(f"만료된 보유 코드 정리: code_id={held.id}")

        reserve_minutes = deal.code_reserve_minutes or self.settings.CODE_RESERVE_MINUTES
        expires_at = now + timedelta(minutes=reserve_minutes)

        for attempt in range(1, self.settings.CODE_CLAIM_MAX_ATTEMPTS + 1):
            candidate_id = await self._pick_candidate(deal.id)
            if candidate_id is None:
                break

            try:
                claimed_ok = await self.try_claim(candidate_id, user.id, now, expires_at)
                if claimed_ok:
                    await self.db.commit()
            except IntegrityError:
                # 사용자당 RESERVED 코드 1개 제약 위반 (같은 사용자의 동시 요청)
                await self.db.rollback()
                claimed_ok = False

            if claimed_ok:
                claimed = await self.db.get(DealCode, candidate_id, populate_existing=True)

                record_code_issuance("unique", "issued")
                audit_logger.log_event(
                    event_type="deal.code_issued",
                    user_id=str(user.id),
                    resource_type="deal",
                    resource_id=str(deal.id),
                    action="issue",
                    details={
                        "type": CouponRedemptionType.UNIQUE.value,
                        "code_id": str(claimed.id),
                        "expires_at": expires_at.isoformat(),
                    },
                )
                return self._to_issued(claimed)

            # 같은 사용자의 다른 요청이 먼저 코드를 받았으면 그 코드를 돌려줌
            held = await self._find_reserved_code(deal.id, user.id)
            if held is not None and not held.is_expired(now):
                record_code_issuance("unique", "reissued")
                return self._to_issued(held, reissued=True)

            logger.info(
                f"코드 선점 경합: deal_id={deal.id}, attempt={attempt}, candidate={candidate_id}"
            )

        record_code_issuance("unique", "pool_empty")
        logger.warning(f"코드 풀 소진: deal_id={deal.id}")
        raise PoolEmptyException(str(deal.id))

    async def try_claim(
        self,
        code_id: UUID,
        user_id: UUID,
        now: datetime,
        expires_at: datetime,
    ) -> bool:
        """
        AVAILABLE 코드 하나를 조건부 UPDATE 로 선점

        같은 딜에서 이미 RESERVED 코드를 가진 사용자는 선점할 수 없습니다.
        Postgres 에서는 부분 유니크 인덱스 uq_deal_codes_one_reserved_per_user 가
        동시 커밋까지 막습니다.

        Returns:
            선점 성공 여부 (다른 요청이 먼저 가져갔으면 False)
        """
        held = aliased(DealCode)
        held_by_user = (
            select(held.id)
            .where(
                held.deal_id == DealCode.deal_id,
                held.assigned_to_user_id == user_id,
                held.status == DealCodeStatus.RESERVED.value,
            )
            .correlate(DealCode)
            .exists()
        )
        result = await self.db.execute(
            update(DealCode)
            .where(
                DealCode.id == code_id,
                DealCode.status == DealCodeStatus.AVAILABLE.value,
                ~held_by_user,
            )
            .values(
                status=DealCodeStatus.RESERVED.value,
                assigned_to_user_id=user_id,
                reserved_at=now,
                expires_at=expires_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _pick_candidate(self, deal_id: UUID) -> Optional[UUID]:
        # 무작위 후보로 동시 요청 간 충돌을 줄임
        result = await self.db.execute(
            select(DealCode.id)
            .where(
                DealCode.deal_id == deal_id,
                DealCode.status == DealCodeStatus.AVAILABLE.value,
            )
            .order_by(func.random())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _find_reserved_code(
        self, deal_id: UUID, user_id: UUID
    ) -> Optional[DealCode]:
        result = await self.db.execute(
            select(DealCode)
            .where(
                DealCode.deal_id == deal_id,
                DealCode.assigned_to_user_id == user_id,
                DealCode.status == DealCodeStatus.RESERVED.value,
            )
            .order_by(DealCode.reserved_at.desc())
            .execution_options(populate_existing=True)
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_issued(code: DealCode, reissued: bool = False) -> IssuedCode:
        return IssuedCode(
            type=CouponRedemptionType.UNIQUE.value,
            code=code.code,
            code_id=code.id,
            expires_at=code.expires_at,
            message="Show this code to the vendor before it expires.",
            reissued=reissued,
        )
