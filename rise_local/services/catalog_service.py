"""
카탈로그 조회 서비스

목적: 벤더 / 상품 / 딜 / 레스토랑 / 이벤트 목록 및 상세 조회
딜은 DealPresentation 뷰모델 하나로 카드 표시 정보를 구성합니다.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, List
from uuid import UUID

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.models.deal import Deal, DealStatus
from rise_local.models.event import Event
from rise_local.models.product import Product
from rise_local.models.restaurant import MenuItem, Restaurant
from rise_local.models.user import User
from rise_local.models.vendor import Vendor
from rise_local.services.deal_access import get_deal_lock_status, is_member_only_deal
from rise_local.services.redemption_policy import frequency_label, savings_label
from rise_local.utils.clock import utcnow
from rise_local.utils.exceptions import DealNotFoundException, NotFoundException


@dataclass
class DealPresentation:
    """딜 카드 뷰모델"""

    id: UUID
    vendor_id: UUID
    vendor_name: Optional[str]
    title: str
    description: Optional[str]
    category: Optional[str]
    deal_type: str
    frequency_label: Optional[str]
    savings_label: Optional[str]
    is_member_only: bool
    is_locked: bool
    show_lock_overlay: bool
    show_member_badge: bool
    can_redeem: bool
    coupon_type: Optional[str]
    ends_at: Optional[datetime]

    @classmethod
    def build(
        cls, deal: Deal, user: Optional[User] = None, now: Optional[datetime] = None
    ) -> "DealPresentation":
        lock = get_deal_lock_status(user, deal, now)
        return cls(
            id=deal.id,
            vendor_id=deal.vendor_id,
            vendor_name=deal.vendor.business_name if deal.vendor else None,
            title=deal.title,
            description=deal.description,
            category=deal.category,
            deal_type=deal.deal_type,
            frequency_label=frequency_label(
                deal.redemption_frequency, deal.custom_redemption_days
            ),
            savings_label=savings_label(deal),
            is_member_only=is_member_only_deal(deal),
            is_locked=lock["isLocked"],
            show_lock_overlay=lock["showLockOverlay"],
            show_member_badge=lock["showMemberBadge"],
            can_redeem=lock["canRedeem"],
            coupon_type=deal.coupon_redemption_type,
            ends_at=deal.ends_at,
        )

    def to_dict(self) -> dict:
        return asdict(self)


class CatalogService:
    """카탈로그 조회 서비스"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_vendors(
        self,
        city: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 50,
    ) -> List[Vendor]:
        """벤더 목록 (인증된 벤더 우선)"""
        query = select(Vendor)
        if city:
            query = query.where(Vendor.city.ilike(city))
        query = query.order_by(Vendor.is_verified.desc(), Vendor.business_name)

        vendors = (await self.db.execute(query)).scalars().all()

        # categories 는 JSON 목록이므로 메모리에서 필터링
        if category:
            wanted = category.lower()
            vendors = [
                v for v in vendors
                if any(str(c).lower() == wanted for c in (v.categories or []))
            ]
        return list(vendors)[:limit]

    async def get_vendor(self, vendor_id: UUID) -> Vendor:
        vendor = await self.db.get(Vendor, vendor_id)
        if vendor is None:
            raise NotFoundException(resource="Vendor", resource_id=str(vendor_id))
        return vendor

    async def list_products(
        self,
        vendor_id: Optional[UUID] = None,
        category: Optional[str] = None,
        limit: int = 50,
    ) -> List[Product]:
        query = select(Product).where(Product.is_active.is_(True))
        if vendor_id:
            query = query.where(Product.vendor_id == vendor_id)
        if category:
            query = query.where(Product.category == category)
        query = query.order_by(Product.created_at.desc()).limit(limit)

        result = await self.db.execute(query)
        return list(result.unique().scalars().all())

    async def get_product(self, product_id: UUID) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise NotFoundException(resource="Product", resource_id=str(product_id))
        return product

    async def list_deals(
        self,
        user: Optional[User] = None,
        vendor_id: Optional[UUID] = None,
        category: Optional[str] = None,
        limit: int = 50,
    ) -> List[DealPresentation]:
        """
        게시 중이고 만료되지 않은 딜 목록

        Args:
            user: 잠금 상태 계산용 현재 사용자 (비로그인 None)
            vendor_id: 벤더 필터
            category: 카테고리 필터
        """
        now = utcnow()
        query = select(Deal).where(
            Deal.status == DealStatus.PUBLISHED.value,
            or_(Deal.ends_at.is_(None), Deal.ends_at > now),
            or_(Deal.starts_at.is_(None), Deal.starts_at <= now),
        )
        if vendor_id:
            query = query.where(Deal.vendor_id == vendor_id)
        if category:
            query = query.where(Deal.category == category)
        query = query.order_by(Deal.created_at.desc()).limit(limit)

        deals = (await self.db.execute(query)).unique().scalars().all()
        return [DealPresentation.build(deal, user, now) for deal in deals]

    async def get_deal(self, deal_id: UUID, user: Optional[User] = None) -> DealPresentation:
        """
        딜 상세

        Raises:
            DealNotFoundException: 없거나 게시되지 않은 딜
        """
        deal = await self.db.get(Deal, deal_id)
        if deal is None or deal.status != DealStatus.PUBLISHED.value:
            raise DealNotFoundException(str(deal_id))
        return DealPresentation.build(deal, user)

    async def list_restaurants(
        self, verified_only: bool = False, limit: int = 50
    ) -> List[Restaurant]:
        """레스토랑 목록 (인증된 레스토랑 우선)"""
        query = select(Restaurant)
        if verified_only:
            query = query.where(Restaurant.is_verified.is_(True))
        query = query.order_by(
            Restaurant.is_verified.desc(), Restaurant.restaurant_name
        ).limit(limit)
        return list((await self.db.execute(query)).scalars().all())

    async def get_restaurant(self, restaurant_id: UUID) -> Restaurant:
        restaurant = await self.db.get(Restaurant, restaurant_id)
        if restaurant is None:
            raise NotFoundException(resource="Restaurant", resource_id=str(restaurant_id))
        return restaurant

    async def list_menu_items(
        self, restaurant_id: UUID, category: Optional[str] = None
    ) -> List[MenuItem]:
        """
        레스토랑 메뉴 (display_order 순)

        Raises:
            NotFoundException: 레스토랑이 없을 때
        """
        await self.get_restaurant(restaurant_id)
        query = select(MenuItem).where(MenuItem.restaurant_id == restaurant_id)
        if category:
            query = query.where(MenuItem.category == category)
        query = query.order_by(MenuItem.display_order, MenuItem.name)
        return list((await self.db.execute(query)).scalars().all())

    async def list_events(
        self,
        upcoming_only: bool = False,
        category: Optional[str] = None,
        limit: int = 50,
    ) -> List[Event]:
        """
        이벤트 목록 (시작 시각 순)

        Args:
            upcoming_only: 아직 시작하지 않은 이벤트만
            category: 카테고리 필터
        """
        query = select(Event)
        if upcoming_only:
            query = query.where(Event.starts_at > utcnow())
        if category:
            query = query.where(Event.category == category)
        query = query.order_by(Event.starts_at).limit(limit)
        return list((await self.db.execute(query)).unique().scalars().all())

    async def get_event(self, event_id: UUID) -> Event:
        event = await self.db.get(Event, event_id)
        if event is None:
            raise NotFoundException(resource="Event", resource_id=str(event_id))
        return event

    async def list_restaurant_events(self, restaurant_id: UUID) -> List[Event]:
        await self.get_restaurant(restaurant_id)
        query = (
            select(Event)
            .where(Event.restaurant_id == restaurant_id)
            .order_by(Event.starts_at)
        )
        return list((await self.db.execute(query)).unique().scalars().all())
