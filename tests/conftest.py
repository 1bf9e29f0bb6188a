"""
Pytest configuration and shared fixtures
"""

import os

# 앱 모듈을 import 하기 전에 테스트 환경 변수를 설정해야 설정 캐시에 반영됨
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from contextlib import asynccontextmanager
from datetime import timedelta
from fnmatch import fnmatchcase
from typing import AsyncGenerator, Iterable, Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from rise_local.main import app
from rise_local.models import Base
from rise_local.models.base import get_db
from rise_local.models.deal import Deal
from rise_local.models.deal_code import DealCode
from rise_local.models.product import Product
from rise_local.models.user import User
from rise_local.models.vendor import Vendor
from rise_local.services.cart_service import InMemoryCartRepository, get_cart_repository
from rise_local.utils.cache_manager import CacheManager, get_cache_manager
from rise_local.utils.clock import utcnow
from rise_local.utils.security import JWTManager


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.

    Uses in-memory SQLite database for fast test execution.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def mock_redis():
    """Mock Redis client for testing (항상 캐시 미스)"""
    mock = AsyncMock()
    mock.get.return_value = None
    mock.set.return_value = True
    mock.delete.return_value = 1
    mock.expire.return_value = True

    scan = MagicMock()
    scan.return_value.__aiter__.return_value = []
    mock.scan_iter = scan

    return mock


class InMemoryRedis:
    """캐시 적중 / 무효화 검증용 dict 기반 Redis 대역"""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def scan_iter(self, match="*"):
        for key in list(self.store):
            if fnmatchcase(key, match):
                yield key


@pytest.fixture(scope="function")
def memory_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture(scope="function")
def cart_repository() -> InMemoryCartRepository:
    return InMemoryCartRepository()


@asynccontextmanager
async def _client_for(db_session: AsyncSession, redis, cart_repository):
    """Override the database, cache and cart dependencies"""

    async def override_get_db():
        yield db_session

    async def override_get_cache_manager():
        return CacheManager(redis)

    async def override_get_cart_repository():
        return cart_repository

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_manager] = override_get_cache_manager
    app.dependency_overrides[get_cart_repository] = override_get_cart_repository

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def async_client(
    db_session: AsyncSession, mock_redis, cart_repository
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing FastAPI endpoints (캐시 항상 미스)"""
    async with _client_for(db_session, mock_redis, cart_repository) as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def cached_client(
    db_session: AsyncSession, memory_redis: InMemoryRedis, cart_repository
) -> AsyncGenerator[AsyncClient, None]:
    """캐시가 실제로 저장/적중되는 HTTP 클라이언트"""
    async with _client_for(db_session, memory_redis, cart_repository) as client:
        yield client


def make_auth_headers(user: User) -> dict:
    """Create bearer headers with the same SECRET_KEY as the application"""
    token = JWTManager.create_access_token(
        {"sub": str(user.id), "role": user.role}, expires_delta=timedelta(hours=1)
    )
    return {"Authorization": f"Bearer {token}"}


async def create_user(
    db_session: AsyncSession,
    role: str = "buyer",
    pass_days: Optional[int] = None,
    name: str = "Test User",
) -> User:
    """pass_days 가 주어지면 그 기간만큼 유효한 Rise Local Pass 부여"""
    user = User(
        id=uuid4(),
        email=f"{uuid4().hex[:10]}@example.com",
        name=name,
        role=role,
        status="active",
        is_pass_member=pass_days is not None,
        pass_expires_at=utcnow() + timedelta(days=pass_days) if pass_days else None,
    )
    db_session.add(user)
    await db_session.commit()
    return user


async def create_deal(db_session: AsyncSession, vendor: Vendor, **overrides) -> Deal:
    values = {
        "id": uuid4(),
        "vendor_id": vendor.id,
        "title": "20% off coffee",
        "category": "food",
        "deal_type": "percent",
        "discount_type": "PERCENT",
        "discount_value": 20,
        "redemption_frequency": "once",
        "status": "published",
        "is_pass_locked": False,
    }
    values.update(overrides)
    deal = Deal(**values)
    db_session.add(deal)
    await db_session.commit()
    return await db_session.get(Deal, deal.id, populate_existing=True)


async def add_pool_codes(
    db_session: AsyncSession, deal: Deal, codes: Iterable[str]
) -> list:
    rows = [DealCode(id=uuid4(), deal_id=deal.id, code=code, status="AVAILABLE") for code in codes]
    db_session.add_all(rows)
    await db_session.commit()
    return rows


@pytest_asyncio.fixture(scope="function")
async def test_user(db_session: AsyncSession) -> User:
    """일반 구매자 (멤버십 없음)"""
    return await create_user(db_session, name="Buyer")


@pytest_asyncio.fixture(scope="function")
async def pass_member(db_session: AsyncSession) -> User:
    """활성 Rise Local Pass 보유 구매자"""
    return await create_user(db_session, pass_days=30, name="Member")


@pytest_asyncio.fixture(scope="function")
async def vendor_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, role="vendor", name="Vendor Owner")


@pytest_asyncio.fixture(scope="function")
async def test_vendor(db_session: AsyncSession, vendor_user: User) -> Vendor:
    vendor = Vendor(
        id=uuid4(),
        owner_id=vendor_user.id,
        business_name="Sunrise Coffee",
        city="Tampa",
        categories=["food", "coffee"],
        is_verified=True,
    )
    db_session.add(vendor)
    await db_session.commit()
    return vendor


@pytest_asyncio.fixture(scope="function")
async def test_product(db_session: AsyncSession, test_vendor: Vendor) -> Product:
    product = Product(
        id=uuid4(),
        vendor_id=test_vendor.id,
        name="House Blend 12oz",
        category="coffee",
        price=10,
        inventory=5,
        is_active=True,
    )
    db_session.add(product)
    await db_session.commit()
    return product


@pytest.fixture(scope="function")
def auth_headers(test_user: User) -> dict:
    return make_auth_headers(test_user)


@pytest.fixture(scope="function")
def member_headers(pass_member: User) -> dict:
    return make_auth_headers(pass_member)


@pytest.fixture(scope="function")
def vendor_headers(vendor_user: User, test_vendor: Vendor) -> dict:
    return make_auth_headers(vendor_user)


@pytest.fixture(scope="function")
def deal_factory(db_session: AsyncSession, test_vendor: Vendor):
    """딜 생성 팩토리 (기본 벤더: test_vendor)"""

    async def _create(vendor: Optional[Vendor] = None, **overrides) -> Deal:
        return await create_deal(db_session, vendor or test_vendor, **overrides)

    return _create


@pytest.fixture(scope="function")
def user_factory(db_session: AsyncSession):
    """사용자 생성 팩토리"""

    async def _create(**kwargs) -> User:
        return await create_user(db_session, **kwargs)

    return _create


@pytest.fixture(scope="function")
def code_factory(db_session: AsyncSession):
    """UNIQUE 코드 풀 적재 팩토리"""

    async def _create(deal: Deal, codes: Iterable[str]) -> list:
        return await add_pool_codes(db_session, deal, codes)

    return _create


@pytest.fixture(scope="function")
def headers_for():
    return make_auth_headers
