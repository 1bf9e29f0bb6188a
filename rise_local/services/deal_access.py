"""
딜 접근 권한 / Rise Local Pass 멤버십 판정

목적: 멤버십 판정의 단일 진입점
    - 사용자 측: is_pass_member + pass_expires_at 만 사용
    - 딜 측: is_pass_locked, 레거시 tier 는 legacy_membership_fields() 에서만 해석

딜 카드, can-redeem, 코드 발급이 모두 이 모듈을 통해 판정합니다.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.models.deal import Deal, DealTier
from rise_local.models.user import User
from rise_local.utils.cache_manager import CacheManager
from rise_local.utils.clock import utcnow
from rise_local.utils.exceptions import NotFoundException
from rise_local.utils.logging import get_logger, audit_logger

logger = get_logger(__name__)

# 멤버 전용으로 취급하는 레거시 tier 값
MEMBER_ONLY_TIERS = frozenset({DealTier.PREMIUM.value, DealTier.MEMBER.value})


def has_rise_local_pass(user: Optional[User], now: Optional[datetime] = None) -> bool:
    """
    활성 Rise Local Pass 보유 여부

    is_pass_member 가 True 이고 만료 시각이 미래인 경우에만 True.
    만료 시각이 없는 멤버는 비활성으로 봅니다.
    """
    if user is None:
        return False
    if user.is_pass_member is not True:
        return False
    if user.pass_expires_at is None:
        return False
    return user.pass_expires_at > (now or utcnow())


def legacy_membership_fields(
    tier: Optional[str], is_pass_locked: Optional[bool] = None
) -> tuple[Optional[str], bool]:
    """
    레거시 tier 값을 is_pass_locked 로 정규화

    Args:
        tier: 레거시 딜 등급 (free, premium, member 또는 None)
        is_pass_locked: 명시적으로 지정된 잠금 값 (None이면 tier 로부터 유도)

    Returns:
        (정규화된 tier, is_pass_locked)
    """
    normalized = tier.strip().lower() if tier else None
    if normalized == "":
        normalized = None

    locked_by_tier = normalized in MEMBER_ONLY_TIERS
    if is_pass_locked is None:
        return normalized, locked_by_tier
    return normalized, bool(is_pass_locked) or locked_by_tier


def is_member_only_deal(deal: Deal) -> bool:
    """멤버 전용 딜 여부"""
    _, locked = legacy_membership_fields(deal.tier, deal.is_pass_locked)
    return locked


@dataclass(frozen=True)
class DealAccessInfo:
    """딜 잠금 판정 결과"""

    is_locked: bool
    requires_membership: bool
    user_has_membership: bool
    reason: str  # public, member_with_pass, locked_no_pass, locked_no_user


def get_deal_access_info(
    user: Optional[User], deal: Deal, now: Optional[datetime] = None
) -> DealAccessInfo:
    """
    사용자 기준 딜 잠금 상태 판정

    Args:
        user: 현재 사용자 (비로그인이면 None)
        deal: 대상 딜
        now: 기준 시각 (테스트용)
    """
    requires_membership = is_member_only_deal(deal)
    user_has_membership = has_rise_local_pass(user, now)

    if not requires_membership:
        reason = "public"
        is_locked = False
    elif user_has_membership:
        reason = "member_with_pass"
        is_locked = False
    elif user is None:
        reason = "locked_no_user"
        is_locked = True
    else:
        reason = "locked_no_pass"
        is_locked = True

    return DealAccessInfo(
        is_locked=is_locked,
        requires_membership=requires_membership,
        user_has_membership=user_has_membership,
        reason=reason,
    )


def get_deal_lock_status(
    user: Optional[User], deal: Deal, now: Optional[datetime] = None
) -> dict:
    """딜 카드 표시용 잠금 상태"""
    info = get_deal_access_info(user, deal, now)
    return {
        "isLocked": info.is_locked,
        "showLockOverlay": info.is_locked,
        "showMemberBadge": info.requires_membership,
        "canRedeem": not info.is_locked,
    }


class MembershipService:
    """Rise Local Pass 부여/회수 (관리자 전용)"""

    def __init__(self, db: AsyncSession, cache: Optional[CacheManager] = None):
        self.db = db
        self.cache = cache

    async def set_membership(
        self,
        user_id: UUID,
        grant: bool,
        days: int,
        actor_id: Optional[UUID] = None,
    ) -> User:
        """
        멤버십 부여 또는 회수

        Args:
            user_id: 대상 사용자 ID
            grant: True면 부여, False면 회수
            days: 부여 기간 (일)
            actor_id: 작업한 관리자 ID

        Raises:
            NotFoundException: 사용자가 없는 경우
        """
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundException(resource="User", resource_id=str(user_id))

        if grant:
            user.is_pass_member = True
            user.pass_expires_at = utcnow() + timedelta(days=days)
        else:
            user.is_pass_member = False
            user.pass_expires_at = None

        await self.db.commit()
        await self.db.refresh(user)

        # 이전 멤버십 기준의 can-redeem 캐시 제거
        if self.cache is not None:
            await self.cache.invalidate_redemption_cache(str(user_id))

        audit_logger.log_event(
            event_type="membership.changed",
            user_id=str(actor_id) if actor_id else None,
            resource_type="user",
            resource_id=str(user_id),
            action="grant" if grant else "revoke",
            details={
                "pass_expires_at": (
                    user.pass_expires_at.isoformat() if user.pass_expires_at else None
                )
            },
        )
        logger.info(f"멤버십 변경: user_id={user_id}, grant={grant}")

        return user
