"""
장바구니 서비스

목적: 서버 측 장바구니 관리
    - 저장소는 CartRepository 인터페이스(load/save/clear)로 분리 (Redis, 메모리)
    - 장바구니 계산(병합, 수량 변경, 합계)은 저장소에 접근하지 않는 순수 함수

라인 식별자: (product_id, variant_id, options)
가격/상품명/벤더는 항상 상품 카탈로그에서 읽습니다 (클라이언트 가격 불신).
"""

import json
from dataclasses import dataclass, field, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Protocol
from uuid import UUID

from fastapi import Depends
from redis import asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.config import get_settings
from rise_local.models.product import Product
from rise_local.utils.cache_manager import CacheKeyBuilder
from rise_local.utils.exceptions import (
    NotFoundException,
    OutOfStockException,
    ValidationException,
)
from rise_local.utils.logging import get_logger
from rise_local.utils.redis_client import get_redis

logger = get_logger(__name__)

CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class CartLine:
    """장바구니 라인"""

    product_id: str
    vendor_id: str
    name: str
    price: Decimal
    quantity: int
    variant_id: Optional[str] = None
    options: dict = field(default_factory=dict)
    image_url: Optional[str] = None

    @property
    def key(self) -> tuple:
        return line_key(self.product_id, self.variant_id, self.options)

    @property
    def line_total(self) -> Decimal:
        return _money(self.price * self.quantity)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["price"] = str(self.price)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        return cls(
            product_id=str(data["product_id"]),
            vendor_id=str(data["vendor_id"]),
            name=data["name"],
            price=Decimal(str(data["price"])),
            quantity=int(data["quantity"]),
            variant_id=data.get("variant_id"),
            options=data.get("options") or {},
            image_url=data.get("image_url"),
        )


@dataclass
class CartTotals:
    """장바구니 합계"""

    subtotal: Decimal
    tax: Decimal
    buyer_fee: Decimal
    grand_total: Decimal
    item_count: int


def line_key(product_id, variant_id: Optional[str], options: Optional[dict]) -> tuple:
    """라인 식별자 (옵션은 키 순서와 무관하게 비교)"""
    return (
        str(product_id),
        variant_id or None,
        json.dumps(options or {}, sort_keys=True),
    )


def add_line(lines: List[CartLine], new_line: CartLine) -> List[CartLine]:
    """같은 라인이 있으면 수량을 더하고, 없으면 추가"""
    result = []
    merged = False
    for line in lines:
        if line.key == new_line.key:
            line = CartLine(**{**asdict(line), "quantity": line.quantity + new_line.quantity})
            merged = True
        result.append(line)
    if not merged:
        result.append(new_line)
    return result


def set_quantity(lines: List[CartLine], key: tuple, quantity: int) -> List[CartLine]:
    """라인 수량 변경 (0 이하이면 라인 제거)"""
    if quantity <= 0:
        return remove_line(lines, key)
    return [
        CartLine(**{**asdict(line), "quantity": quantity}) if line.key == key else line
        for line in lines
    ]


def remove_line(lines: List[CartLine], key: tuple) -> List[CartLine]:
    return [line for line in lines if line.key != key]


def cart_totals(
    lines: List[CartLine],
    tax_rate: Decimal,
    fee_rate: Decimal,
) -> CartTotals:
    """
    합계 계산 (센트 단위 반올림, ROUND_HALF_UP)

    Example:
        소계 $10.00, 세율 7%, 수수료 3% → tax 0.70, fee 0.30, total 11.00
    """
    subtotal = _money(sum((line.price * line.quantity for line in lines), Decimal("0")))
    tax = _money(subtotal * Decimal(str(tax_rate)))
    buyer_fee = _money(subtotal * Decimal(str(fee_rate)))
    return CartTotals(
        subtotal=subtotal,
        tax=tax,
        buyer_fee=buyer_fee,
        grand_total=subtotal + tax + buyer_fee,
        item_count=sum(line.quantity for line in lines),
    )


class CartRepository(Protocol):
    """장바구니 저장소 인터페이스"""

    async def load(self, user_id: str) -> List[CartLine]: ...

    async def save(self, user_id: str, lines: List[CartLine]) -> None: ...

    async def clear(self, user_id: str) -> None: ...


class RedisCartRepository:
    """Redis JSON 저장소 (TTL 갱신)"""

    def __init__(self, redis: aioredis.Redis, ttl_seconds: int):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    async def load(self, user_id: str) -> List[CartLine]:
        raw = await self.redis.get(CacheKeyBuilder.user_cart(user_id))
        if not raw:
            return []
        return [CartLine.from_dict(item) for item in json.loads(raw)]

    async def save(self, user_id: str, lines: List[CartLine]) -> None:
        key = CacheKeyBuilder.user_cart(user_id)
        if not lines:
            await self.redis.delete(key)
            return
        payload = json.dumps([line.to_dict() for line in lines])
        await self.redis.set(key, payload, ex=self.ttl_seconds)

    async def clear(self, user_id: str) -> None:
        await self.redis.delete(CacheKeyBuilder.user_cart(user_id))


class InMemoryCartRepository:
    """프로세스 메모리 저장소 (테스트 / 단일 프로세스 개발용)"""

    def __init__(self):
        self._carts: dict[str, List[CartLine]] = {}

    async def load(self, user_id: str) -> List[CartLine]:
        return list(self._carts.get(user_id, []))

    async def save(self, user_id: str, lines: List[CartLine]) -> None:
        if lines:
            self._carts[user_id] = list(lines)
        else:
            self._carts.pop(user_id, None)

    async def clear(self, user_id: str) -> None:
        self._carts.pop(user_id, None)


async def get_cart_repository(
    redis: aioredis.Redis = Depends(get_redis),
) -> CartRepository:
    """CartRepository 의존성"""
    return RedisCartRepository(redis, get_settings().CART_TTL_SECONDS)


class CartService:
    """장바구니 서비스"""

    def __init__(self, db: AsyncSession, repository: CartRepository):
        self.db = db
        self.repository = repository
        self.settings = get_settings()

    async def get_cart(self, user_id: UUID) -> dict:
        """장바구니 라인과 합계"""
        lines = await self.repository.load(str(user_id))
        return self._summary(lines)

    async def add_item(
        self,
        user_id: UUID,
        product_id: UUID,
        quantity: int = 1,
        variant_id: Optional[str] = None,
        options: Optional[dict] = None,
    ) -> dict:
        """
        장바구니에 상품 추가

        Raises:
            ValidationException: 수량이 1 미만
            NotFoundException: 판매 중인 상품이 아님
            OutOfStockException: 재고 부족
        """
        if quantity < 1:
            raise ValidationException("Quantity must be at least 1.", field="quantity")

        product = await self._get_product(product_id)
        lines = await self.repository.load(str(user_id))

        new_line = CartLine(
            product_id=str(product.id),
            vendor_id=str(product.vendor_id),
            name=product.name,
            price=Decimal(str(product.price)),
            quantity=quantity,
            variant_id=variant_id,
            options=options or {},
            image_url=product.image_url,
        )
        lines = add_line(lines, new_line)

        in_cart = sum(line.quantity for line in lines if line.product_id == str(product.id))
        if not product.can_purchase(in_cart):
            raise OutOfStockException(product.name, product.inventory)

        await self.repository.save(str(user_id), lines)
        logger.info(f"장바구니 추가: user_id={user_id}, product_id={product_id}, quantity={quantity}")
        return self._summary(lines)

    async def update_item(
        self,
        user_id: UUID,
        product_id: UUID,
        quantity: int,
        variant_id: Optional[str] = None,
        options: Optional[dict] = None,
    ) -> dict:
        """라인 수량 변경 (0 이하이면 제거)"""
        key = line_key(product_id, variant_id, options)
        lines = await self.repository.load(str(user_id))

        if not any(line.key == key for line in lines):
            raise NotFoundException(resource="Cart item", resource_id=str(product_id))

        if quantity > 0:
            product = await self._get_product(product_id)
            others = sum(
                line.quantity
                for line in lines
                if line.product_id == str(product_id) and line.key != key
            )
            if not product.can_purchase(others + quantity):
                raise OutOfStockException(product.name, product.inventory)

        lines = set_quantity(lines, key, quantity)
        await self.repository.save(str(user_id), lines)
        return self._summary(lines)

    async def remove_item(
        self,
        user_id: UUID,
        product_id: UUID,
        variant_id: Optional[str] = None,
        options: Optional[dict] = None,
    ) -> dict:
        lines = await self.repository.load(str(user_id))
        lines = remove_line(lines, line_key(product_id, variant_id, options))
        await self.repository.save(str(user_id), lines)
        return self._summary(lines)

    async def clear(self, user_id: UUID) -> None:
        await self.repository.clear(str(user_id))

    async def _get_product(self, product_id: UUID) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None or not product.is_active:
            raise NotFoundException(resource="Product", resource_id=str(product_id))
        return product

    def _summary(self, lines: List[CartLine]) -> dict:
        totals = cart_totals(
            lines,
            Decimal(str(self.settings.SALES_TAX_RATE)),
            Decimal(str(self.settings.BUYER_FEE_RATE)),
        )
        return {
            "items": [
                {**line.to_dict(), "price": line.price, "line_total": line.line_total}
                for line in lines
            ],
            "totals": asdict(totals),
        }
