"""
장바구니 API 엔드포인트

장바구니 조회, 상품 추가/수량 변경/삭제 기능을 제공합니다.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.api.schemas.cart_schemas import (
    CartItemRemoveRequest,
    CartItemRequest,
    CartItemUpdateRequest,
    CartResponse,
)
from rise_local.middleware.auth import get_current_user
from rise_local.models.base import get_db
from rise_local.models.user import User
from rise_local.services.cart_service import (
    CartRepository,
    CartService,
    get_cart_repository,
)

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartResponse)
async def get_cart(
    db: AsyncSession = Depends(get_db),
    repository: CartRepository = Depends(get_cart_repository),
    current_user: User = Depends(get_current_user),
):
    """장바구니 조회 (라인과 합계)"""
    return await CartService(db, repository).get_cart(current_user.id)


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_cart_item(
    request: CartItemRequest,
    db: AsyncSession = Depends(get_db),
    repository: CartRepository = Depends(get_cart_repository),
    current_user: User = Depends(get_current_user),
):
    """
    장바구니에 상품 추가

    같은 상품/옵션이 이미 있으면 수량을 더합니다.
    가격과 상품명은 카탈로그에서 읽습니다.
    """
    service = CartService(db, repository)
    return await service.add_item(
        current_user.id,
        request.product_id,
        quantity=request.quantity,
        variant_id=request.variant_id,
        options=request.options,
    )


@router.patch("/items", response_model=CartResponse)
async def update_cart_item(
    request: CartItemUpdateRequest,
    db: AsyncSession = Depends(get_db),
    repository: CartRepository = Depends(get_cart_repository),
    current_user: User = Depends(get_current_user),
):
    """라인 수량 변경 (0이면 제거)"""
    service = CartService(db, repository)
    return await service.update_item(
        current_user.id,
        request.product_id,
        request.quantity,
        variant_id=request.variant_id,
        options=request.options,
    )


@router.delete("/items", response_model=CartResponse)
async def remove_cart_item(
    request: CartItemRemoveRequest,
    db: AsyncSession = Depends(get_db),
    repository: CartRepository = Depends(get_cart_repository),
    current_user: User = Depends(get_current_user),
):
    service = CartService(db, repository)
    return await service.remove_item(
        current_user.id,
        request.product_id,
        variant_id=request.variant_id,
        options=request.options,
    )


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(
    db: AsyncSession = Depends(get_db),
    repository: CartRepository = Depends(get_cart_repository),
    current_user: User = Depends(get_current_user),
):
    """장바구니 비우기"""
    await CartService(db, repository).clear(current_user.id)
