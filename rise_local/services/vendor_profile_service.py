"""
벤더 프로필 수정 서비스

사용자 입력 텍스트와 URL 은 저장 전에 정제합니다.
"""

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.models.vendor import Vendor
from rise_local.utils.exceptions import ValidationException
from rise_local.utils.logging import get_logger
from rise_local.utils.security import sanitize_text, sanitize_url

logger = get_logger(__name__)

TEXT_FIELDS = ("business_name", "bio", "city", "contact_email", "phone")
URL_FIELDS = ("website", "image_url")
MAX_CATEGORIES = 10


def normalize_categories(categories: Optional[List[str]]) -> List[str]:
    """카테고리 정제 (소문자, 중복 제거, 순서 유지)"""
    result = []
    for category in categories or []:
        cleaned = sanitize_text(category).lower()
        if cleaned and cleaned not in result:
            result.append(cleaned)
    return result[:MAX_CATEGORIES]


class VendorProfileService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def update_profile(self, vendor: Vendor, data: dict) -> Vendor:
        """
        프로필 수정 (전달된 필드만 반영)

        Raises:
            ValidationException: 상호명이 비어 있는 경우
        """
        changes = {}
        for field in TEXT_FIELDS:
            if field in data:
                changes[field] = sanitize_text(data[field]) or None

        for field in URL_FIELDS:
            if field in data:
                changes[field] = sanitize_url(data[field]) or None

        if "categories" in data:
            changes["categories"] = normalize_categories(data["categories"])

        if "business_name" in changes and not changes["business_name"]:
            raise ValidationException("Business name is required.", field="businessName")

        for field, value in changes.items():
            setattr(vendor, field, value)

        await self.db.commit()
        await self.db.refresh(vendor)
        logger.info(f"벤더 프로필 수정: vendor_id={vendor.id}, fields={sorted(changes)}")
        return vendor
