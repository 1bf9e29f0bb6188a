"""
Integration Tests: 동시 코드 발급

요청마다 별도 세션(별도 커넥션)을 쓰는 파일 기반 SQLite 에서
asyncio.gather 로 발급 요청을 동시에 실행합니다.
"""

import asyncio
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from rise_local.models import Base
from rise_local.models.deal import Deal
from rise_local.models.deal_code import DealCode
from rise_local.models.redemption import Redemption
from rise_local.models.user import User
from rise_local.models.vendor import Vendor
from rise_local.services.code_issuance_service import CodeIssuanceService
from rise_local.services.vendor_verification_service import VendorVerificationService
from rise_local.utils.exceptions import NotEligibleException, PoolEmptyException


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path):
    """커넥션을 공유하지 않는 파일 DB 세션 팩토리"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'issuance.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def _seed(factory, codes, buyers: int = 1):
    """벤더, 1회용 UNIQUE 딜, 코드 풀, 구매자 생성"""
    async with factory() as session:
        owner = User(
            id=uuid4(), email="owner@example.com", name="Owner", role="vendor", status="active"
        )
        vendor = Vendor(id=uuid4(), owner_id=owner.id, business_name="Sunrise Coffee")
        deal = Deal(
            id=uuid4(),
            vendor_id=vendor.id,
            title="Free pastry",
            category="food",
            deal_type="addon",
            redemption_frequency="once",
            status="published",
            is_pass_locked=False,
            coupon_redemption_type="UNIQUE",
        )
        users = [
            User(
                id=uuid4(),
                email=f"buyer{i}@example.com",
                name=f"Buyer {i}",
                role="buyer",
                status="active",
            )
            for i in range(buyers)
        ]
        session.add_all([owner, *users])
        await session.flush()
        session.add(vendor)
        await session.flush()
        session.add(deal)
        await session.flush()
        session.add_all(
            DealCode(id=uuid4(), deal_id=deal.id, code=code, status="AVAILABLE")
            for code in codes
        )
        await session.commit()
        return vendor, deal, users


async def _issue(factory, user: User, deal: Deal):
    async with factory() as session:
        return await CodeIssuanceService(session).issue(user, deal.id)


@pytest.mark.asyncio
class TestConcurrentIssuance:
    async def test_same_user_gets_one_code(self, session_factory):
        # Given: 1회용 딜, 코드 3개
        vendor, deal, [buyer] = await _seed(session_factory, ["111111", "222222", "333333"])

        # When: 같은 사용자가 동시에 두 번 요청
        first, second = await asyncio.gather(
            _issue(session_factory, buyer, deal),
            _issue(session_factory, buyer, deal),
        )

        # Then: 같은 코드, 풀에서는 하나만 빠짐
        assert first.code == second.code
        async with session_factory() as session:
            reserved = await session.scalar(
                select(func.count(DealCode.id)).where(
                    DealCode.deal_id == deal.id, DealCode.status == "RESERVED"
                )
            )
            assert reserved == 1

            # 벤더 확인 후 같은 딜을 다시 받을 수 없음
            await VendorVerificationService(session).verify(vendor, deal.id, first.code)

        with pytest.raises(NotEligibleException):
            await _issue(session_factory, buyer, deal)

        async with session_factory() as session:
            redemptions = await session.scalar(
                select(func.count(Redemption.id)).where(Redemption.deal_id == deal.id)
            )
            assert redemptions == 1

    async def test_pool_of_one_serves_one_user(self, session_factory):
        # Given: 코드 1개, 사용자 2명
        _, deal, [alice, bob] = await _seed(session_factory, ["555555"], buyers=2)

        # When
        results = await asyncio.gather(
            _issue(session_factory, alice, deal),
            _issue(session_factory, bob, deal),
            return_exceptions=True,
        )

        # Then: 한 명은 코드, 다른 한 명은 풀 소진
        issued = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]
        assert [r.code for r in issued] == ["555555"]
        assert len(failed) == 1
        assert isinstance(failed[0], PoolEmptyException)

        async with session_factory() as session:
            code = await session.scalar(select(DealCode).where(DealCode.deal_id == deal.id))
            assert code.status == "RESERVED"
            assert code.assigned_to_user_id in {alice.id, bob.id}
