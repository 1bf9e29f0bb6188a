"""
사용자 / 멤버십 API 스키마
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from .base import CamelModel


class MeResponse(CamelModel):
    id: UUID
    email: str
    name: str
    role: str
    is_pass_member: bool
    pass_expires_at: Optional[datetime] = None
    has_rise_local_pass: bool


class MembershipRequest(CamelModel):
    """멤버십 부여/회수 요청"""

    grant_access: bool
    days: Optional[int] = Field(None, ge=1, le=3650)
