"""
장바구니 / 주문 API 요청/응답 스키마
"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field

from .base import CamelModel


class CartItemRequest(CamelModel):
    """장바구니 추가 요청"""

    product_id: UUID
    quantity: int = Field(1, ge=1, le=99)
    variant_id: Optional[str] = None
    options: Optional[dict] = None


class CartItemUpdateRequest(CamelModel):
    """수량 변경 요청 (0이면 제거)"""

    product_id: UUID
    quantity: int = Field(..., ge=0, le=99)
    variant_id: Optional[str] = None
    options: Optional[dict] = None


class CartItemRemoveRequest(CamelModel):
    product_id: UUID
    variant_id: Optional[str] = None
    options: Optional[dict] = None


class CartLineResponse(CamelModel):
    product_id: UUID
    vendor_id: UUID
    name: str
    price: float
    quantity: int
    variant_id: Optional[str] = None
    options: dict = {}
    image_url: Optional[str] = None
    line_total: float


class CartTotalsResponse(CamelModel):
    subtotal: float
    tax: float
    buyer_fee: float
    grand_total: float
    item_count: int


class CartResponse(CamelModel):
    items: List[CartLineResponse]
    totals: CartTotalsResponse


class CheckoutRequest(CamelModel):
    fulfillment_method: Literal["pickup", "delivery", "shipping"]


class OrderItemResponse(CamelModel):
    product_id: UUID
    vendor_id: UUID
    name: str
    quantity: int
    price_at_purchase: float
    variant_id: Optional[str] = None
    options: Optional[dict] = None


class OrderResponse(CamelModel):
    id: UUID
    status: str
    fulfillment_method: str
    subtotal: float
    tax: float
    buyer_fee: float
    total: float
    created_at: datetime
    items: List[OrderItemResponse]


class OrderListResponse(CamelModel):
    orders: List[OrderResponse]
