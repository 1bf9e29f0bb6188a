"""
딜 리딤 자격 판정 서비스 (can-redeem)

목적: 사용자가 지금 딜을 리딤할 수 있는지 판정
    1. 딜이 게시 중이고 시작되었으며 만료되지 않았는가
    2. 멤버 전용 딜이면 활성 Rise Local Pass 가 있는가
    3. 현재 빈도 구간 / 평생 한도 내 리딤 횟수가 허용치 미만인가

부수 효과는 짧은 TTL 캐시 기록뿐입니다. 취소(voided)된 리딤은 집계하지 않습니다.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.config import get_settings
from rise_local.models.deal import Deal, DealStatus, RedemptionFrequency
from rise_local.models.redemption import Redemption, RedemptionStatus
from rise_local.models.user import User
from rise_local.services import redemption_policy
from rise_local.services.deal_access import get_deal_access_info
from rise_local.utils.cache_manager import CacheManager, CacheKeyBuilder
from rise_local.utils.clock import utcnow
from rise_local.utils.exceptions import DealNotFoundException, NotEligibleException
from rise_local.utils.logging import get_logger

logger = get_logger(__name__)

SIGN_IN_REASON = "Sign in to redeem this deal"
PASS_REQUIRED_REASON = "This deal is for Rise Local Pass members. Join to unlock it."

_WINDOW_NAMES = {
    RedemptionFrequency.WEEKLY.value: "this week",
    RedemptionFrequency.MONTHLY.value: "this month",
}


@dataclass
class EligibilityResult:
    """can-redeem 판정 결과"""

    can_redeem: bool
    reason: Optional[str] = None
    requires_pass: bool = False
    next_eligible_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "canRedeem": self.can_redeem,
            "reason": self.reason,
            "requiresPass": self.requires_pass,
            "nextEligibleAt": (
                self.next_eligible_at.isoformat() if self.next_eligible_at else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EligibilityResult":
        next_at = data.get("nextEligibleAt")
        return cls(
            can_redeem=bool(data.get("canRedeem")),
            reason=data.get("reason"),
            requires_pass=bool(data.get("requiresPass")),
            next_eligible_at=datetime.fromisoformat(next_at) if next_at else None,
        )

    @classmethod
    def denied(cls, reason: str, **kwargs) -> "EligibilityResult":
        return cls(can_redeem=False, reason=reason, **kwargs)


class EligibilityService:
    """리딤 자격 판정 서비스"""

    def __init__(self, db: AsyncSession, cache: Optional[CacheManager] = None):
        self.db = db
        self.cache = cache
        self.settings = get_settings()

    async def get_deal(self, deal_id: UUID) -> Deal:
        """
        딜 조회

        Raises:
            DealNotFoundException: 딜이 없는 경우
        """
        deal = await self.db.get(Deal, deal_id)
        if deal is None:
            raise DealNotFoundException(str(deal_id))
        return deal

    async def check(self, user: Optional[User], deal_id: UUID) -> EligibilityResult:
        """
        can-redeem 엔드포인트용 판정 (캐시 사용)

        Args:
            user: 현재 사용자 (비로그인이면 None)
            deal_id: 딜 ID
        """
        deal = await self.get_deal(deal_id)

        if user is None:
            return EligibilityResult.denied(SIGN_IN_REASON)

        cache_key = CacheKeyBuilder.deal_eligibility(str(user.id), str(deal.id))
        if self.cache is not None:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return EligibilityResult.from_dict(cached)

        result = await self.evaluate(user, deal)

        if self.cache is not None:
            await self.cache.set(
                cache_key,
                result.to_dict(),
                ttl=self.settings.ELIGIBILITY_CACHE_TTL_SECONDS,
            )

        return result

    async def ensure_eligible(
        self, user: User, deal: Deal, now: Optional[datetime] = None
    ) -> None:
        """
        자격이 없으면 예외 발생 (코드 발급 / 리딤 기록 전 재검증)

        Raises:
            NotEligibleException: 자격 조건 불충족
        """
        result = await self.evaluate(user, deal, now)
        if not result.can_redeem:
            logger.info(
                f"리딤 자격 없음: user_id={user.id}, deal_id={deal.id}, reason={result.reason}"
            )
            raise NotEligibleException(result.reason, requires_pass=result.requires_pass)

    async def evaluate(
        self, user: User, deal: Deal, now: Optional[datetime] = None
    ) -> EligibilityResult:
        """
        캐시 없이 DB 기준으로 판정

        Args:
            user: 사용자
            deal: 딜
            now: 기준 시각 (기본값: 현재 UTC)
        """
        now = now or utcnow()

        # 1. 딜 상태 / 기간
        if deal.status != DealStatus.PUBLISHED.value:
            return EligibilityResult.denied("This deal is not available right now")
        if not deal.has_started(now):
            return EligibilityResult.denied("This deal hasn't started yet")
        if deal.is_expired(now):
            return EligibilityResult.denied("This deal has expired")

        # 2. 멤버십 게이트
        access = get_deal_access_info(user, deal, now)
        if access.is_locked:
            return EligibilityResult.denied(PASS_REQUIRED_REASON, requires_pass=True)

        return await self.check_limits(user.id, deal, now)

    async def check_limits(
        self, user_id: UUID, deal: Deal, now: Optional[datetime] = None
    ) -> EligibilityResult:
        """
        평생 한도와 빈도 구간만 판정

        벤더 코드 확인 시 코드 소유자 기준으로 다시 호출합니다.
        """
        now = now or utcnow()

        # 3. 평생 한도
        if deal.max_redemptions_per_user:
            total, _ = await self._count_redemptions(user_id, deal.id)
            if total >= deal.max_redemptions_per_user:
                return EligibilityResult.denied(
                    "You've reached the redemption limit for this deal"
                )

        # 4. 빈도 구간
        frequency = (deal.redemption_frequency or "").lower()
        if redemption_policy.is_unlimited(frequency):
            return EligibilityResult(can_redeem=True)

        start = redemption_policy.window_start(
            frequency, now, deal.custom_redemption_days
        )
        count, last_redeemed_at = await self._count_redemptions(
            user_id,
            deal.id,
            since=start,
            inclusive=frequency != RedemptionFrequency.CUSTOM.value,
        )

        if count >= redemption_policy.REDEMPTIONS_PER_WINDOW:
            return EligibilityResult.denied(
                self._window_reason(deal),
                next_eligible_at=redemption_policy.next_eligible_at(
                    frequency, last_redeemed_at, deal.custom_redemption_days
                ),
            )

        return EligibilityResult(can_redeem=True)

    async def _count_redemptions(
        self,
        user_id: UUID,
        deal_id: UUID,
        since: Optional[datetime] = None,
        inclusive: bool = True,
    ) -> tuple[int, Optional[datetime]]:
        """취소되지 않은 리딤 수와 마지막 리딤 시각"""
        query = select(func.count(Redemption.id), func.max(Redemption.redeemed_at)).where(
            Redemption.user_id == user_id,
            Redemption.deal_id == deal_id,
            Redemption.status != RedemptionStatus.VOIDED.value,
        )
        if since is not None:
            if inclusive:
                query = query.where(Redemption.redeemed_at >= since)
            else:
                query = query.where(Redemption.redeemed_at > since)

        row = (await self.db.execute(query)).one()
        return int(row[0] or 0), row[1]

    @staticmethod
    def _window_reason(deal: Deal) -> str:
        frequency = (deal.redemption_frequency or "").lower()
        if frequency in _WINDOW_NAMES:
            return f"You've already redeemed this deal {_WINDOW_NAMES[frequency]}"
        if frequency == RedemptionFrequency.CUSTOM.value:
            days = deal.custom_redemption_days or 1
            return f"You've already redeemed this deal in the last {days} days"
        return "You've already redeemed this deal"
