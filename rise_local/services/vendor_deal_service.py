"""
벤더 딜 관리 서비스

목적: 벤더 대시보드의 딜 생성/수정, 상태 전이, UNIQUE 코드 풀 보충, 통계 조회
"""

from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.config import get_settings
from rise_local.models.deal import (
    Deal,
    DealStatus,
    DealType,
    DiscountType,
    RedemptionFrequency,
    CouponRedemptionType,
)
from rise_local.models.deal_code import DealCode, DealCodeStatus
from rise_local.models.redemption import Redemption, RedemptionStatus
from rise_local.models.vendor import Vendor
from rise_local.services.deal_access import legacy_membership_fields
from rise_local.services.vendor_verification_service import CODE_PATTERN, normalize_code
from rise_local.utils.cache_manager import CacheManager
from rise_local.utils.clock import to_naive_utc
from rise_local.utils.exceptions import (
    BusinessRuleException,
    ConflictException,
    DealNotFoundException,
    ForbiddenException,
    ValidationException,
)
from rise_local.utils.logging import get_logger, audit_logger
from rise_local.utils.security import SecurityUtils, sanitize_text

logger = get_logger(__name__)

# 허용되는 딜 상태 전이
ALLOWED_TRANSITIONS = {
    DealStatus.DRAFT.value: {DealStatus.PUBLISHED.value},
    DealStatus.PUBLISHED.value: {DealStatus.PAUSED.value, DealStatus.EXPIRED.value},
    DealStatus.PAUSED.value: {DealStatus.PUBLISHED.value, DealStatus.EXPIRED.value},
    DealStatus.EXPIRED.value: set(),
}

EDITABLE_FIELDS = (
    "title",
    "description",
    "category",
    "deal_type",
    "tier",
    "is_pass_locked",
    "discount_type",
    "discount_value",
    "original_price",
    "redemption_frequency",
    "custom_redemption_days",
    "max_redemptions_per_user",
    "starts_at",
    "ends_at",
    "coupon_redemption_type",
    "static_code",
    "code_reserve_minutes",
)


class VendorDealService:
    """벤더 딜 관리 서비스"""

    def __init__(self, db: AsyncSession, cache: Optional[CacheManager] = None):
        self.db = db
        self.cache = cache
        self.settings = get_settings()

    async def get_owned_deal(self, vendor: Vendor, deal_id: UUID) -> Deal:
        """
        벤더 소유 딜 조회

        Raises:
            DealNotFoundException: 딜이 없는 경우
            ForbiddenException: 다른 벤더의 딜
        """
        deal = await self.db.get(Deal, deal_id)
        if deal is None:
            raise DealNotFoundException(str(deal_id))
        if deal.vendor_id != vendor.id:
            raise ForbiddenException("You can only manage your own deals.")
        return deal

    async def list_deals(self, vendor: Vendor) -> List[dict]:
        """벤더 딜 목록 (리딤 수, 코드 풀 통계 포함)"""
        result = await self.db.execute(
            select(Deal)
            .where(Deal.vendor_id == vendor.id)
            .order_by(Deal.created_at.desc())
        )
        deals = result.unique().scalars().all()

        counts = await self._redemption_counts([deal.id for deal in deals])

        items = []
        for deal in deals:
            items.append(
                {
                    "deal": deal,
                    "redemption_count": counts.get(deal.id, 0),
                    "pool": (
                        await self.pool_stats(deal.id) if deal.uses_unique_codes else None
                    ),
                }
            )
        return items

    async def create_deal(self, vendor: Vendor, data: dict) -> Deal:
        """
        딜 생성 (draft 상태로 시작)

        Args:
            vendor: 현재 벤더
            data: 딜 필드 (snake_case)

        Raises:
            ValidationException: 필드 조합이 유효하지 않은 경우
        """
        deal = Deal(vendor_id=vendor.id, status=DealStatus.DRAFT.value)
        self._apply_fields(deal, data)
        self._validate(deal)

        self.db.add(deal)
        await self.db.commit()
        deal = await self.db.get(Deal, deal.id, populate_existing=True)

        audit_logger.log_event(
            event_type="deal.created",
            user_id=str(vendor.owner_id),
            resource_type="deal",
            resource_id=str(deal.id),
            action="create",
        )
        logger.info(f"딜 생성: deal_id={deal.id}, vendor_id={vendor.id}")
        return deal

    async def update_deal(self, vendor: Vendor, deal_id: UUID, data: dict) -> Deal:
        """딜 수정 (전달된 필드만 반영)"""
        deal = await self.get_owned_deal(vendor, deal_id)
        self._apply_fields(deal, data)
        self._validate(deal)

        await self.db.commit()
        await self.db.refresh(deal)
        await self._invalidate_eligibility(deal.id)
        return deal

    async def change_status(self, vendor: Vendor, deal_id: UUID, status: str) -> Deal:
        """
        딜 상태 전이

        Raises:
            ConflictException: 허용되지 않은 전이
        """
        deal = await self.get_owned_deal(vendor, deal_id)
        current = deal.status

        if status not in ALLOWED_TRANSITIONS.get(current, set()):
            raise ConflictException(
                f"Cannot change deal status from {current} to {status}.",
                details={"from": current, "to": status},
            )

        if status == DealStatus.PUBLISHED.value:
            self._validate(deal)

        deal.status = status
        await self.db.commit()
        await self.db.refresh(deal)
        await self._invalidate_eligibility(deal.id)

        audit_logger.log_event(
            event_type="deal.status_changed",
            user_id=str(vendor.owner_id),
            resource_type="deal",
            resource_id=str(deal.id),
            action="status_change",
            details={"from": current, "to": status},
        )
        return deal

    async def add_codes(
        self,
        vendor: Vendor,
        deal_id: UUID,
        codes: Optional[List[str]] = None,
        count: Optional[int] = None,
    ) -> dict:
        """
        UNIQUE 코드 풀 보충

        업로드한 코드 목록 또는 count 만큼 생성한 코드를 추가합니다.
        이미 풀에 있는 코드는 건너뜁니다.

        Returns:
            {"added": int, "skipped": int, "pool": {...}}

        Raises:
            BusinessRuleException: UNIQUE 딜이 아닌 경우
            ValidationException: 코드 형식 오류 또는 배치 크기 초과
        """
        deal = await self.get_owned_deal(vendor, deal_id)
        if not deal.uses_unique_codes:
            raise BusinessRuleException(
                "Codes can only be added to deals that use unique codes.",
                rule="unique_pool_required",
            )

        max_batch = self.settings.CODE_POOL_MAX_BATCH
        existing = await self._existing_codes(deal.id)

        if codes:
            if len(codes) > max_batch:
                raise ValidationException(
                    f"You can add at most {max_batch} codes at a time.", field="codes"
                )
            normalized = [normalize_code(code) for code in codes]
            invalid = [code for code in normalized if not CODE_PATTERN.match(code)]
            if invalid:
                raise ValidationException(
                    "Every code must be exactly 6 digits.",
                    field="codes",
                    details={"invalid_count": len(invalid)},
                )
            new_codes = []
            for code in normalized:
                if code not in existing:
                    existing.add(code)
                    new_codes.append(code)
            skipped = len(normalized) - len(new_codes)
        elif count:
            if count < 1 or count > max_batch:
                raise ValidationException(
                    f"Count must be between 1 and {max_batch}.", field="count"
                )
            new_codes = self._generate_codes(count, existing)
            skipped = 0
        else:
            raise ValidationException("Provide either codes or count.", field="codes")

        self.db.add_all(
            DealCode(deal_id=deal.id, code=code, status=DealCodeStatus.AVAILABLE.value)
            for code in new_codes
        )
        await self.db.commit()

        audit_logger.log_event(
            event_type="deal.codes_added",
            user_id=str(vendor.owner_id),
            resource_type="deal",
            resource_id=str(deal.id),
            action="add_codes",
            details={"added": len(new_codes), "skipped": skipped},
        )

        return {
            "added": len(new_codes),
            "skipped": skipped,
            "pool": await self.pool_stats(deal.id),
        }

    async def pool_stats(self, deal_id: UUID) -> dict:
        """코드 풀 상태별 개수"""
        result = await self.db.execute(
            select(DealCode.status, func.count(DealCode.id))
            .where(DealCode.deal_id == deal_id)
            .group_by(DealCode.status)
        )
        stats = {status.value.lower(): 0 for status in DealCodeStatus}
        for status, count in result.all():
            stats[status.lower()] = count
        stats["total"] = sum(stats.values())
        return stats

    async def _invalidate_eligibility(self, deal_id: UUID) -> None:
        """딜 조건이 바뀌면 모든 사용자의 can-redeem 캐시 제거"""
        if self.cache is not None:
            await self.cache.invalidate_deal_eligibility(str(deal_id))

    async def _redemption_counts(self, deal_ids: List[UUID]) -> dict:
        if not deal_ids:
            return {}
        result = await self.db.execute(
            select(Redemption.deal_id, func.count(Redemption.id))
            .where(
                Redemption.deal_id.in_(deal_ids),
                Redemption.status == RedemptionStatus.REDEEMED.value,
            )
            .group_by(Redemption.deal_id)
        )
        return {deal_id: count for deal_id, count in result.all()}

    async def _existing_codes(self, deal_id: UUID) -> set:
        result = await self.db.execute(
            select(DealCode.code).where(DealCode.deal_id == deal_id)
        )
        return set(result.scalars().all())

    @staticmethod
    def _generate_codes(count: int, existing: set) -> List[str]:
        """CSPRNG 6자리 코드 생성 (기존 코드와 중복 없이)"""
        generated = []
        # 100만 개 공간에서 충돌이 누적되면 중단
        attempts_left = count * 20
        while len(generated) < count and attempts_left > 0:
            attempts_left -= 1
            code = SecurityUtils.generate_redemption_code()
            if code in existing:
                continue
            existing.add(code)
            generated.append(code)
        return generated

    @staticmethod
    def _apply_fields(deal: Deal, data: dict) -> None:
        for field in EDITABLE_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field in ("title", "description", "category") and value is not None:
                value = sanitize_text(value)
            elif field in ("starts_at", "ends_at"):
                value = to_naive_utc(value)
            elif field in ("deal_type", "redemption_frequency") and value:
                value = value.lower()
            elif field in ("discount_type", "coupon_redemption_type") and value:
                value = value.upper()
            setattr(deal, field, value)

        if "tier" in data or "is_pass_locked" in data:
            explicit = data.get("is_pass_locked") if "is_pass_locked" in data else None
            deal.tier, deal.is_pass_locked = legacy_membership_fields(deal.tier, explicit)

    @staticmethod
    def _validate(deal: Deal) -> None:
        """필드 조합 검증"""
        if not deal.title:
            raise ValidationException("Title is required.", field="title")

        if deal.deal_type is not None and deal.deal_type not in {t.value for t in DealType}:
            raise ValidationException("Unknown deal type.", field="dealType")

        frequency = deal.redemption_frequency or RedemptionFrequency.ONCE.value
        if frequency not in {f.value for f in RedemptionFrequency}:
            raise ValidationException(
                "Unknown redemption frequency.", field="redemptionFrequency"
            )
        if frequency == RedemptionFrequency.CUSTOM.value and (
            not deal.custom_redemption_days or deal.custom_redemption_days < 1
        ):
            raise ValidationException(
                "Custom frequency needs at least 1 day between redemptions.",
                field="customRedemptionDays",
            )

        if deal.discount_type is not None:
            if deal.discount_type not in {t.value for t in DiscountType}:
                raise ValidationException("Unknown discount type.", field="discountType")
            if deal.discount_value is None or Decimal(str(deal.discount_value)) <= 0:
                raise ValidationException(
                    "Discount value must be greater than 0.", field="discountValue"
                )
            if deal.discount_type == DiscountType.PERCENT.value and Decimal(
                str(deal.discount_value)
            ) > Decimal("100"):
                raise ValidationException(
                    "Percent discounts must be between 0 and 100.",
                    field="discountValue",
                )

        if deal.starts_at and deal.ends_at and deal.ends_at <= deal.starts_at:
            raise ValidationException("End date must be after start date.", field="endsAt")

        if deal.coupon_redemption_type is not None:
            if deal.coupon_redemption_type not in {t.value for t in CouponRedemptionType}:
                raise ValidationException(
                    "Unknown coupon type.", field="couponRedemptionType"
                )
            if (
                deal.coupon_redemption_type == CouponRedemptionType.STATIC.value
                and not deal.static_code
            ):
                raise ValidationException(
                    "A static coupon needs a code.", field="staticCode"
                )

        if deal.code_reserve_minutes is not None and deal.code_reserve_minutes < 1:
            raise ValidationException(
                "Code reserve time must be at least 1 minute.",
                field="codeReserveMinutes",
            )
