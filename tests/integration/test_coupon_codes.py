"""
Integration Tests: 쿠폰 코드 발급 (STATIC / UNIQUE)
"""

from datetime import timedelta
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.models.deal_code import DealCode
from rise_local.models.user import User
from rise_local.services.code_issuance_service import CodeIssuanceService
from rise_local.services.eligibility_service import PASS_REQUIRED_REASON
from rise_local.utils.clock import utcnow


@pytest.mark.asyncio
class TestStaticCoupon:
    """STATIC 코드 딜"""

    async def test_static_code_is_returned(
        self, async_client: AsyncClient, deal_factory, auth_headers: dict
    ):
        # Given
        deal = await deal_factory(coupon_redemption_type="STATIC", static_code="SUNRISE20")

        # When
        response = await async_client.post(
            f"/api/deals/{deal.id}/coupon-code", headers=auth_headers
        )

        # Then: 만료 없는 공유 코드
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["type"] == "STATIC"
        assert data["code"] == "SUNRISE20"
        assert data["expiresAt"] is None
        assert data["message"] == "Show this code at checkout."

    async def test_deal_without_coupon_type(
        self, async_client: AsyncClient, deal_factory, auth_headers: dict
    ):
        deal = await deal_factory()

        response = await async_client.post(
            f"/api/deals/{deal.id}/coupon-code", headers=auth_headers
        )

        assert response.status_code == 422
        assert response.json()["details"]["rule"] == "coupon_type_required"

    async def test_requires_authentication(self, async_client: AsyncClient, deal_factory):
        deal = await deal_factory(coupon_redemption_type="STATIC", static_code="SUNRISE20")

        response = await async_client.post(f"/api/deals/{deal.id}/coupon-code")

        assert response.status_code in (401, 403)

    async def test_locked_deal_for_non_member(
        self, async_client: AsyncClient, deal_factory, auth_headers: dict
    ):
        deal = await deal_factory(
            is_pass_locked=True, coupon_redemption_type="STATIC", static_code="VIP10"
        )

        response = await async_client.post(
            f"/api/deals/{deal.id}/coupon-code", headers=auth_headers
        )

        # Then: 코드 값은 노출되지 않음
        assert response.status_code == 403
        data = response.json()
        assert data["success"] is False
        assert data["code"] == "not_eligible"
        assert data["requiresPass"] is True
        assert data["error"] == PASS_REQUIRED_REASON
        assert "VIP10" not in response.text


@pytest.mark.asyncio
class TestUniqueCoupon:
    """UNIQUE 코드 풀 발급"""

    async def test_claims_code_from_pool(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        deal_factory,
        code_factory,
        test_user: User,
        auth_headers: dict,
    ):
        # Given: 코드 2개짜리 풀
        deal = await deal_factory(coupon_redemption_type="UNIQUE")
        await code_factory(deal, ["111111", "222222"])

        # When
        response = await async_client.post(
            f"/api/deals/{deal.id}/coupon-code", headers=auth_headers
        )

        # Then: RESERVED 처리되고 만료 시각이 붙음
        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "UNIQUE"
        assert data["code"] in ("111111", "222222")
        assert data["expiresAt"] is not None
        assert data["message"] == "Show this code to the vendor before it expires."

        code = await db_session.get(DealCode, UUID(data["codeId"]), populate_existing=True)
        assert code.status == "RESERVED"
        assert code.assigned_to_user_id == test_user.id
        assert code.expires_at is not None

    async def test_reissue_returns_same_code(
        self, async_client: AsyncClient, deal_factory, code_factory, auth_headers: dict
    ):
        deal = await deal_factory(coupon_redemption_type="UNIQUE")
        await code_factory(deal, ["111111", "222222", "333333"])

        first = await async_client.post(
            f"/api/deals/{deal.id}/coupon-code", headers=auth_headers
        )
        second = await async_client.post(
            f"/api/deals/{deal.id}/coupon-code", headers=auth_headers
        )

        assert first.json()["code"] == second.json()["code"]
        assert first.json()["codeId"] == second.json()["codeId"]

    async def test_pool_empty_then_restocked(
        self,
        async_client: AsyncClient,
        deal_factory,
        code_factory,
        auth_headers: dict,
        member_headers: dict,
        vendor_headers: dict,
    ):
        # Given: 코드 1개짜리 풀을 첫 사용자가 가져감
        deal = await deal_factory(coupon_redemption_type="UNIQUE")
        await code_factory(deal, ["111111"])

        first = await async_client.post(
            f"/api/deals/{deal.id}/coupon-code", headers=auth_headers
        )
        assert first.status_code == 200

        # When: 두 번째 사용자 요청
        second = await async_client.post(
            f"/api/deals/{deal.id}/coupon-code", headers=member_headers
        )

        # Then: 풀 소진
        assert second.status_code == 409
        data = second.json()
        assert data["success"] is False
        assert data["code"] == "pool_empty"
        assert data["poolEmpty"] is True

        # When: 벤더가 코드 보충 후 재시도
        restock = await async_client.post(
            f"/api/vendor/deals/{deal.id}/codes",
            json={"codes": ["222222"]},
            headers=vendor_headers,
        )
        assert restock.status_code == 200
        assert restock.json()["added"] == 1

        retry = await async_client.post(
            f"/api/deals/{deal.id}/coupon-code", headers=member_headers
        )

        # Then
        assert retry.status_code == 200
        assert retry.json()["code"] == "222222"

    async def test_expired_held_code_is_replaced(
        self,
        db_session: AsyncSession,
        deal_factory,
        code_factory,
        test_user: User,
    ):
        # Given: 이미 받은 코드가 만료됨
        deal = await deal_factory(coupon_redemption_type="UNIQUE", code_reserve_minutes=5)
        await code_factory(deal, ["111111", "222222"])
        service = CodeIssuanceService(db_session)

        now = utcnow()
        first = await service.issue(test_user, deal.id, now=now)

        # When: 만료 시각에 다시 요청
        second = await service.issue(test_user, deal.id, now=first.expires_at)

        # Then: 이전 코드는 EXPIRED, 새 코드 발급
        assert second.code != first.code
        assert second.reissued is False
        old = await db_session.get(DealCode, first.code_id, populate_existing=True)
        assert old.status == "EXPIRED"

    async def test_claim_is_compare_and_set(
        self,
        db_session: AsyncSession,
        deal_factory,
        code_factory,
        test_user: User,
        pass_member: User,
    ):
        # Given: AVAILABLE 코드 하나
        deal = await deal_factory(coupon_redemption_type="UNIQUE")
        [code] = await code_factory(deal, ["555555"])
        service = CodeIssuanceService(db_session)
        now = utcnow()
        expires_at = now + timedelta(minutes=10)

        # When: 같은 코드를 두 사용자가 선점 시도
        first = await service.try_claim(code.id, test_user.id, now, expires_at)
        second = await service.try_claim(code.id, pass_member.id, now, expires_at)
        await db_session.commit()

        # Then: 한 명만 성공
        assert first is True
        assert second is False
        claimed = await db_session.get(DealCode, code.id, populate_existing=True)
        assert claimed.assigned_to_user_id == test_user.id

    async def test_unknown_deal(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post(
            f"/api/deals/{uuid4()}/coupon-code", headers=auth_headers
        )

        assert response.status_code == 404
