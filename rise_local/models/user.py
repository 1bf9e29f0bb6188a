"""
사용자(User) 모델

목적: 소비자(buyer), 벤더 운영자(vendor), 관리자(admin) 계정
인증은 외부 서비스가 담당하며, 이 테이블은 프로필과 Rise Local Pass 상태를 보관합니다.
"""

from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, Boolean, Uuid, CheckConstraint
import uuid

from .base import Base


class UserRole(str, Enum):
    """사용자 역할"""

    BUYER = "buyer"
    VENDOR = "vendor"
    ADMIN = "admin"


class UserStatus(str, Enum):
    """계정 상태"""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class User(Base):
    """사용자 모델"""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.BUYER.value)
    status = Column(
        String(20),
        nullable=False,
        default=UserStatus.ACTIVE.value,
        index=True,
    )

    # Rise Local Pass (멤버십 판정의 유일한 기준)
    is_pass_member = Column(Boolean, nullable=False, default=False)
    pass_expires_at = Column(DateTime, nullable=True)

    # 레거시 멤버십 라벨 (호환용, 판정에는 사용하지 않음)
    tier = Column(String(20), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("role IN ('buyer', 'vendor', 'admin')", name="check_user_role"),
        CheckConstraint(
            "status IN ('active', 'suspended', 'deleted')", name="check_user_status"
        ),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
