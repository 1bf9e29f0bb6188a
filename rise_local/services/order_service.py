"""
주문 서비스

목적: 장바구니를 pending 주문으로 전환 (결제는 외부 서비스)
"""

from collections import defaultdict
from decimal import Decimal
from typing import List
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.config import get_settings
from rise_local.models.order import Order, OrderItem, OrderStatus, FulfillmentMethod
from rise_local.models.product import Product
from rise_local.models.user import User
from rise_local.services.cart_service import CartRepository, cart_totals
from rise_local.utils.exceptions import (
    BusinessRuleException,
    ForbiddenException,
    NotFoundException,
    OutOfStockException,
    ValidationException,
)
from rise_local.utils.logging import get_logger, audit_logger
from rise_local.utils.prometheus_metrics import record_order

logger = get_logger(__name__)


class OrderService:
    """주문 관련 비즈니스 로직"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    async def checkout(
        self,
        user: User,
        repository: CartRepository,
        fulfillment_method: str,
    ) -> Order:
        """
        장바구니로부터 주문 생성

        1. 카탈로그 기준으로 가격 재계산
        2. 재고 확인 및 조건부 차감
        3. pending 주문 생성 후 장바구니 비우기

        Raises:
            ValidationException: 알 수 없는 수령 방식
            BusinessRuleException: 빈 장바구니 / 판매 중지 상품
            OutOfStockException: 재고 부족
        """
        if fulfillment_method not in {m.value for m in FulfillmentMethod}:
            raise ValidationException(
                "Unknown fulfillment method.", field="fulfillmentMethod"
            )

        lines = await repository.load(str(user.id))
        if not lines:
            raise BusinessRuleException("Your cart is empty.", rule="cart_not_empty")

        # 1. 가격 재계산
        products: dict[str, Product] = {}
        for line in lines:
            product = await self.db.get(Product, UUID(line.product_id))
            if product is None or not product.is_active:
                raise BusinessRuleException(
                    f"'{line.name}' is no longer available.",
                    rule="product_available",
                )
            products[line.product_id] = product
            line.price = Decimal(str(product.price))
            line.name = product.name
            line.vendor_id = str(product.vendor_id)

        # 2. 재고 차감 (상품별 합산 수량)
        requested = defaultdict(int)
        for line in lines:
            requested[line.product_id] += line.quantity

        for product_id, quantity in requested.items():
            product = products[product_id]
            result = await self.db.execute(
                update(Product)
                .where(Product.id == product.id, Product.inventory >= quantity)
                .values(inventory=Product.inventory - quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await self.db.rollback()
                await self.db.refresh(product)
                raise OutOfStockException(product.name, product.inventory)

        # 3. 주문 생성
        totals = cart_totals(
            lines,
            Decimal(str(self.settings.SALES_TAX_RATE)),
            Decimal(str(self.settings.BUYER_FEE_RATE)),
        )
        order = Order(
            buyer_id=user.id,
            status=OrderStatus.PENDING.value,
            fulfillment_method=fulfillment_method,
            subtotal=totals.subtotal,
            tax=totals.tax,
            buyer_fee=totals.buyer_fee,
            total=totals.grand_total,
        )
        order.items = [
            OrderItem(
                product_id=UUID(line.product_id),
                vendor_id=UUID(line.vendor_id),
                name=line.name,
                quantity=line.quantity,
                price_at_purchase=line.price,
                variant_id=line.variant_id,
                options=line.options or None,
            )
            for line in lines
        ]
        self.db.add(order)
        await self.db.commit()

        await repository.clear(str(user.id))

        record_order(fulfillment_method)
        audit_logger.log_event(
            event_type="order.created",
            user_id=str(user.id),
            resource_type="order",
            resource_id=str(order.id),
            action="create",
            details={"total": str(totals.grand_total), "items": len(lines)},
        )
        logger.info(f"주문 생성: order_id={order.id}, total={totals.grand_total}")

        return await self.get_order(user, order.id)

    async def get_user_orders(self, user_id: UUID, limit: int = 50) -> List[Order]:
        """사용자 주문 목록 (최신순)"""
        result = await self.db.execute(
            select(Order)
            .where(Order.buyer_id == user_id)
            .order_by(Order.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_order(self, user: User, order_id: UUID) -> Order:
        """
        주문 상세 (본인 주문만)

        Raises:
            NotFoundException: 주문이 없는 경우
            ForbiddenException: 다른 사용자의 주문
        """
        order = await self.db.get(Order, order_id, populate_existing=True)
        if order is None:
            raise NotFoundException(resource="Order", resource_id=str(order_id))
        if order.buyer_id != user.id:
            raise ForbiddenException("You can only view your own orders.")
        return order
