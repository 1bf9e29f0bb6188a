"""
카탈로그 API 엔드포인트

벤더, 상품, 레스토랑, 이벤트 조회 (비로그인 허용)
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.api.schemas.catalog_schemas import (
    EventListResponse,
    EventResponse,
    MenuItemListResponse,
    ProductListResponse,
    ProductResponse,
    RestaurantListResponse,
    RestaurantResponse,
    VendorListResponse,
    VendorResponse,
)
from rise_local.models.base import get_db
from rise_local.services.catalog_service import CatalogService

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/vendors", response_model=VendorListResponse)
async def list_vendors(
    city: Optional[str] = Query(None, description="도시 필터"),
    category: Optional[str] = Query(None, description="카테고리 필터"),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """벤더 목록 (인증된 벤더 우선)"""
    vendors = await CatalogService(db).list_vendors(
        city=city, category=category, limit=limit
    )
    return {"vendors": vendors}


@router.get("/vendors/{vendor_id}", response_model=VendorResponse)
async def get_vendor(vendor_id: UUID, db: AsyncSession = Depends(get_db)):
    return await CatalogService(db).get_vendor(vendor_id)


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    vendor_id: Optional[UUID] = Query(None, alias="vendorId"),
    category: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """판매 중인 상품 목록"""
    products = await CatalogService(db).list_products(
        vendor_id=vendor_id, category=category, limit=limit
    )
    return {"products": products}


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(product_id: UUID, db: AsyncSession = Depends(get_db)):
    return await CatalogService(db).get_product(product_id)


@router.get("/restaurants", response_model=RestaurantListResponse)
async def list_restaurants(
    verified: bool = Query(False, description="인증된 레스토랑만"),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    restaurants = await CatalogService(db).list_restaurants(
        verified_only=verified, limit=limit
    )
    return {"restaurants": restaurants}


@router.get("/restaurants/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(restaurant_id: UUID, db: AsyncSession = Depends(get_db)):
    return await CatalogService(db).get_restaurant(restaurant_id)


@router.get(
    "/restaurants/{restaurant_id}/menu-items", response_model=MenuItemListResponse
)
async def list_menu_items(
    restaurant_id: UUID,
    category: Optional[str] = Query(None, description="메뉴 카테고리 필터"),
    db: AsyncSession = Depends(get_db),
):
    """레스토랑 메뉴 (표시 순서대로)"""
    items = await CatalogService(db).list_menu_items(restaurant_id, category=category)
    return {"menu_items": items}


@router.get("/restaurants/{restaurant_id}/events", response_model=EventListResponse)
async def list_restaurant_events(
    restaurant_id: UUID, db: AsyncSession = Depends(get_db)
):
    events = await CatalogService(db).list_restaurant_events(restaurant_id)
    return {"events": events}


@router.get("/events", response_model=EventListResponse)
async def list_events(
    category: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """전체 이벤트 (시작 시각 순)"""
    events = await CatalogService(db).list_events(category=category, limit=limit)
    return {"events": events}


@router.get("/events/upcoming", response_model=EventListResponse)
async def list_upcoming_events(
    category: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """아직 시작하지 않은 이벤트"""
    events = await CatalogService(db).list_events(
        upcoming_only=True, category=category, limit=limit
    )
    return {"events": events}


@router.get("/events/{event_id}", response_model=EventResponse)
async def get_event(event_id: UUID, db: AsyncSession = Depends(get_db)):
    return await CatalogService(db).get_event(event_id)
