"""
주문 API 엔드포인트

장바구니 결제(주문 생성)와 주문 조회를 제공합니다.
결제 처리는 외부 결제 서비스가 담당하므로 주문은 pending 상태로 생성됩니다.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.api.schemas.cart_schemas import (
    CheckoutRequest,
    OrderListResponse,
    OrderResponse,
)
from rise_local.middleware.auth import get_current_user
from rise_local.models.base import get_db
from rise_local.models.user import User
from rise_local.services.cart_service import CartRepository, get_cart_repository
from rise_local.services.order_service import OrderService

router = APIRouter(prefix="/api", tags=["orders"])


@router.post(
    "/checkout",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
)
async def checkout(
    request: CheckoutRequest,
    db: AsyncSession = Depends(get_db),
    repository: CartRepository = Depends(get_cart_repository),
    current_user: User = Depends(get_current_user),
):
    """
    장바구니로 주문 생성

    **오류 케이스**:
    - `422`: 빈 장바구니, 판매 중지 상품, 재고 부족
    """
    service = OrderService(db)
    return await service.checkout(current_user, repository, request.fulfillment_method)


@router.get("/orders/me", response_model=OrderListResponse)
async def get_my_orders(
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """내 주문 목록 (최신순)"""
    orders = await OrderService(db).get_user_orders(current_user.id, limit=limit)
    return {"orders": orders}


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await OrderService(db).get_order(current_user, order_id)
