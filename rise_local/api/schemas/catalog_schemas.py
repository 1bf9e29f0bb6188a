"""
카탈로그 API 응답 스키마
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from .base import CamelModel


class VendorResponse(CamelModel):
    id: UUID
    business_name: str
    bio: Optional[str] = None
    city: Optional[str] = None
    categories: List[str] = []
    contact_email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    image_url: Optional[str] = None
    is_verified: bool = False


class VendorListResponse(CamelModel):
    vendors: List[VendorResponse]


class ProductResponse(CamelModel):
    id: UUID
    vendor_id: UUID
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    price: float
    inventory: int
    image_url: Optional[str] = None


class ProductListResponse(CamelModel):
    products: List[ProductResponse]


class RestaurantResponse(CamelModel):
    id: UUID
    restaurant_name: str
    description: Optional[str] = None
    cuisine_type: Optional[str] = None
    price_range: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    image_url: Optional[str] = None
    is_verified: bool = False


class RestaurantListResponse(CamelModel):
    restaurants: List[RestaurantResponse]


class MenuItemResponse(CamelModel):
    id: UUID
    restaurant_id: UUID
    name: str
    description: Optional[str] = None
    category: str
    price: float
    image_url: Optional[str] = None
    is_available: bool = True
    display_order: int = 0


class MenuItemListResponse(CamelModel):
    menu_items: List[MenuItemResponse]


class EventResponse(CamelModel):
    id: UUID
    organizer_id: UUID
    restaurant_id: Optional[UUID] = None
    title: str
    description: str
    starts_at: datetime
    location: str
    category: str
    tickets_available: int
    rsvp_count: int = 0


class EventListResponse(CamelModel):
    events: List[EventResponse]


class VendorProfileUpdateRequest(CamelModel):
    """벤더 프로필 수정 요청 (전달된 필드만 반영)"""

    business_name: Optional[str] = Field(None, max_length=200)
    bio: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    categories: Optional[List[str]] = None
    contact_email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    website: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = Field(None, max_length=500)
