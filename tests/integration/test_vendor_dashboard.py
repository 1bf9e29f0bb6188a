"""
Integration Tests: 벤더 대시보드 (딜 관리, 코드 풀, 리딤 목록, 프로필)
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.models.vendor import Vendor


DEAL_PAYLOAD = {
    "title": "Half-off pastries",
    "description": "<b>Fresh</b> every morning",
    "category": "food",
    "dealType": "percent",
    "discountType": "PERCENT",
    "discountValue": 50,
    "redemptionFrequency": "weekly",
}


@pytest.mark.asyncio
class TestVendorDeals:
    """딜 생성 / 수정 / 상태 전이"""

    async def test_create_deal_starts_as_draft(
        self, async_client: AsyncClient, test_vendor: Vendor, vendor_headers: dict
    ):
        # When
        response = await async_client.post(
            "/api/vendor/deals", json=DEAL_PAYLOAD, headers=vendor_headers
        )

        # Then
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "draft"
        assert data["vendorId"] == str(test_vendor.id)
        assert data["description"] == "Fresh every morning"
        assert data["discountValue"] == 50.0
        assert data["isPassLocked"] is False

    async def test_legacy_tier_locks_deal(
        self, async_client: AsyncClient, vendor_headers: dict
    ):
        response = await async_client.post(
            "/api/vendor/deals",
            json={**DEAL_PAYLOAD, "tier": "Premium"},
            headers=vendor_headers,
        )

        data = response.json()
        assert data["tier"] == "premium"
        assert data["isPassLocked"] is True

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"redemptionFrequency": "custom"}, "customRedemptionDays"),
            ({"couponRedemptionType": "STATIC"}, "staticCode"),
            ({"discountValue": 150}, "discountValue"),
            (
                {"startsAt": "2030-01-02T00:00:00", "endsAt": "2030-01-01T00:00:00"},
                "endsAt",
            ),
        ],
    )
    async def test_invalid_combinations(
        self, async_client: AsyncClient, vendor_headers: dict, overrides, field
    ):
        response = await async_client.post(
            "/api/vendor/deals",
            json={**DEAL_PAYLOAD, **overrides},
            headers=vendor_headers,
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert data["details"]["field"] == field

    async def test_update_only_sent_fields(
        self, async_client: AsyncClient, vendor_headers: dict
    ):
        created = await async_client.post(
            "/api/vendor/deals", json=DEAL_PAYLOAD, headers=vendor_headers
        )
        deal_id = created.json()["id"]

        response = await async_client.patch(
            f"/api/vendor/deals/{deal_id}",
            json={"title": "Two-for-one croissants"},
            headers=vendor_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Two-for-one croissants"
        assert data["redemptionFrequency"] == "weekly"

    async def test_status_transitions(
        self, async_client: AsyncClient, vendor_headers: dict
    ):
        created = await async_client.post(
            "/api/vendor/deals", json=DEAL_PAYLOAD, headers=vendor_headers
        )
        deal_id = created.json()["id"]

        async def change(status: str):
            return await async_client.post(
                f"/api/vendor/deals/{deal_id}/status",
                json={"status": status},
                headers=vendor_headers,
            )

        # draft → published → paused → published → expired
        for status in ("published", "paused", "published", "expired"):
            response = await change(status)
            assert response.status_code == 200
            assert response.json()["status"] == status

        # expired 는 종착 상태
        response = await change("published")
        assert response.status_code == 409
        assert response.json()["details"] == {"from": "expired", "to": "published"}

    async def test_draft_cannot_be_paused(
        self, async_client: AsyncClient, vendor_headers: dict
    ):
        created = await async_client.post(
            "/api/vendor/deals", json=DEAL_PAYLOAD, headers=vendor_headers
        )

        response = await async_client.post(
            f"/api/vendor/deals/{created.json()['id']}/status",
            json={"status": "paused"},
            headers=vendor_headers,
        )

        assert response.status_code == 409

    async def test_buyer_has_no_dashboard(
        self, async_client: AsyncClient, auth_headers: dict
    ):
        response = await async_client.get("/api/vendor/deals", headers=auth_headers)

        assert response.status_code == 403

    async def test_vendor_role_without_profile(
        self, async_client: AsyncClient, vendor_user, headers_for
    ):
        # vendor_user 만 있고 test_vendor 는 없음
        response = await async_client.get(
            "/api/vendor/deals", headers=headers_for(vendor_user)
        )

        assert response.status_code == 403


@pytest.mark.asyncio
class TestCodePool:
    """UNIQUE 코드 풀 보충과 통계"""

    async def test_upload_codes_skips_duplicates(
        self, async_client: AsyncClient, deal_factory, vendor_headers: dict
    ):
        deal = await deal_factory(coupon_redemption_type="UNIQUE")

        response = await async_client.post(
            f"/api/vendor/deals/{deal.id}/codes",
            json={"codes": ["111111", "222 222", "111111"]},
            headers=vendor_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["added"] == 2
        assert data["skipped"] == 1
        assert data["pool"]["available"] == 2
        assert data["pool"]["total"] == 2

    async def test_generate_codes(
        self, async_client: AsyncClient, deal_factory, vendor_headers: dict
    ):
        deal = await deal_factory(coupon_redemption_type="UNIQUE")

        response = await async_client.post(
            f"/api/vendor/deals/{deal.id}/codes",
            json={"count": 25},
            headers=vendor_headers,
        )

        assert response.json()["added"] == 25
        assert response.json()["pool"]["available"] == 25

    async def test_rejects_malformed_codes(
        self, async_client: AsyncClient, deal_factory, vendor_headers: dict
    ):
        deal = await deal_factory(coupon_redemption_type="UNIQUE")

        response = await async_client.post(
            f"/api/vendor/deals/{deal.id}/codes",
            json={"codes": ["111111", "12ab56"]},
            headers=vendor_headers,
        )

        assert response.status_code == 400
        assert response.json()["details"]["invalid_count"] == 1

    async def test_static_deal_has_no_pool(
        self, async_client: AsyncClient, deal_factory, vendor_headers: dict
    ):
        deal = await deal_factory(coupon_redemption_type="STATIC", static_code="HELLO")

        response = await async_client.post(
            f"/api/vendor/deals/{deal.id}/codes",
            json={"count": 5},
            headers=vendor_headers,
        )

        assert response.status_code == 422
        assert response.json()["details"]["rule"] == "unique_pool_required"

    async def test_dashboard_lists_pool_and_redemptions(
        self,
        async_client: AsyncClient,
        deal_factory,
        code_factory,
        auth_headers: dict,
        vendor_headers: dict,
    ):
        # Given: 코드 3개 중 1개 발급 + 확인
        deal = await deal_factory(coupon_redemption_type="UNIQUE")
        await code_factory(deal, ["111111", "222222", "333333"])
        issued = await async_client.post(
            f"/api/deals/{deal.id}/coupon-code", headers=auth_headers
        )
        await async_client.post(
            f"/api/vendor/deals/{deal.id}/redeem",
            json={"code": issued.json()["code"]},
            headers=vendor_headers,
        )

        # When
        listing = await async_client.get("/api/vendor/deals", headers=vendor_headers)
        redemptions = await async_client.get(
            f"/api/vendor/deals/{deal.id}/redemptions", headers=vendor_headers
        )

        # Then
        [item] = listing.json()["deals"]
        assert item["redemptionCount"] == 1
        assert item["pool"] == {
            "available": 2,
            "reserved": 0,
            "redeemed": 1,
            "expired": 0,
            "total": 3,
        }
        assert len(redemptions.json()["redemptions"]) == 1


@pytest.mark.asyncio
class TestVendorVoid:
    """POST /api/vendor/redemptions/{id}/void"""

    async def test_vendor_voids_without_time_limit(
        self,
        async_client: AsyncClient,
        deal_factory,
        auth_headers: dict,
        vendor_headers: dict,
    ):
        deal = await deal_factory()
        created = await async_client.post(
            f"/api/deals/{deal.id}/redeem", headers=auth_headers
        )
        redemption_id = created.json()["redemption"]["id"]

        response = await async_client.post(
            f"/api/vendor/redemptions/{redemption_id}/void", headers=vendor_headers
        )
        again = await async_client.post(
            f"/api/vendor/redemptions/{redemption_id}/void", headers=vendor_headers
        )

        assert response.status_code == 200
        assert response.json()["redemption"]["voidedBy"] == "vendor"
        assert again.status_code == 409


@pytest.mark.asyncio
class TestVendorProfile:
    """GET / PATCH /api/vendor/profile"""

    async def test_get_profile(self, async_client: AsyncClient, vendor_headers: dict):
        response = await async_client.get("/api/vendor/profile", headers=vendor_headers)

        assert response.status_code == 200
        assert response.json()["businessName"] == "Sunrise Coffee"

    async def test_update_profile_sanitizes_input(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        test_vendor: Vendor,
        vendor_headers: dict,
    ):
        response = await async_client.patch(
            "/api/vendor/profile",
            json={
                "bio": "<script>alert(1)</script>Roasted in <i>Tampa</i>",
                "website": "sunrise.example.com",
                "imageUrl": "javascript:alert(1)",
                "categories": ["Coffee", "coffee", " Bakery "],
            },
            headers=vendor_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["bio"] == "Roasted in Tampa"
        assert data["website"] == "https://sunrise.example.com"
        assert data["imageUrl"] is None
        assert data["categories"] == ["coffee", "bakery"]
        assert data["businessName"] == "Sunrise Coffee"

    async def test_business_name_cannot_be_blank(
        self, async_client: AsyncClient, vendor_headers: dict
    ):
        response = await async_client.patch(
            "/api/vendor/profile",
            json={"businessName": "<b></b>"},
            headers=vendor_headers,
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "businessName"
