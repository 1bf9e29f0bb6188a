"""
Integration Tests: 장바구니 / 주문
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.models.product import Product


@pytest.mark.asyncio
class TestCart:
    """서버 측 장바구니"""

    async def test_empty_cart(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.get("/api/cart", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["items"] == []
        assert data["totals"]["grandTotal"] == 0

    async def test_add_merges_and_totals(
        self, async_client: AsyncClient, test_product: Product, auth_headers: dict
    ):
        # Given / When: 같은 상품 두 번 추가
        for quantity in (1, 2):
            response = await async_client.post(
                "/api/cart/items",
                json={"productId": str(test_product.id), "quantity": quantity},
                headers=auth_headers,
            )
            assert response.status_code == 201

        # Then: 라인 하나, 수량 3, 카탈로그 가격 기준 합계
        data = response.json()
        assert len(data["items"]) == 1
        assert data["items"][0]["quantity"] == 3
        assert data["items"][0]["lineTotal"] == 30.0
        assert data["totals"] == {
            "subtotal": 30.0,
            "tax": 2.1,
            "buyerFee": 0.9,
            "grandTotal": 33.0,
            "itemCount": 3,
        }

    async def test_options_make_separate_lines(
        self, async_client: AsyncClient, test_product: Product, auth_headers: dict
    ):
        for options in ({"grind": "whole"}, {"grind": "espresso"}):
            await async_client.post(
                "/api/cart/items",
                json={"productId": str(test_product.id), "options": options},
                headers=auth_headers,
            )

        response = await async_client.get("/api/cart", headers=auth_headers)

        assert len(response.json()["items"]) == 2

    async def test_add_beyond_inventory(
        self, async_client: AsyncClient, test_product: Product, auth_headers: dict
    ):
        response = await async_client.post(
            "/api/cart/items",
            json={"productId": str(test_product.id), "quantity": 6},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert response.json()["details"]["available_stock"] == 5

    async def test_add_unknown_product(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post(
            "/api/cart/items",
            json={"productId": str(uuid4()), "quantity": 1},
            headers=auth_headers,
        )

        assert response.status_code == 404

    async def test_update_to_zero_removes_line(
        self, async_client: AsyncClient, test_product: Product, auth_headers: dict
    ):
        await async_client.post(
            "/api/cart/items",
            json={"productId": str(test_product.id), "quantity": 2},
            headers=auth_headers,
        )

        updated = await async_client.patch(
            "/api/cart/items",
            json={"productId": str(test_product.id), "quantity": 4},
            headers=auth_headers,
        )
        removed = await async_client.patch(
            "/api/cart/items",
            json={"productId": str(test_product.id), "quantity": 0},
            headers=auth_headers,
        )

        assert updated.json()["items"][0]["quantity"] == 4
        assert removed.json()["items"] == []

    async def test_remove_and_clear(
        self, async_client: AsyncClient, test_product: Product, auth_headers: dict
    ):
        await async_client.post(
            "/api/cart/items",
            json={"productId": str(test_product.id)},
            headers=auth_headers,
        )

        removed = await async_client.request(
            "DELETE",
            "/api/cart/items",
            json={"productId": str(test_product.id)},
            headers=auth_headers,
        )
        assert removed.json()["items"] == []

        await async_client.post(
            "/api/cart/items",
            json={"productId": str(test_product.id)},
            headers=auth_headers,
        )
        cleared = await async_client.delete("/api/cart", headers=auth_headers)
        assert cleared.status_code == 204

        response = await async_client.get("/api/cart", headers=auth_headers)
        assert response.json()["items"] == []

    async def test_cart_requires_authentication(self, async_client: AsyncClient):
        response = await async_client.get("/api/cart")

        assert response.status_code in (401, 403)


@pytest.mark.asyncio
class TestCheckout:
    """POST /api/checkout"""

    async def test_checkout_creates_pending_order(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        test_product: Product,
        auth_headers: dict,
    ):
        # Given
        await async_client.post(
            "/api/cart/items",
            json={"productId": str(test_product.id), "quantity": 2},
            headers=auth_headers,
        )

        # When
        response = await async_client.post(
            "/api/checkout",
            json={"fulfillmentMethod": "pickup"},
            headers=auth_headers,
        )

        # Then: 주문 생성, 재고 차감, 장바구니 비움
        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "pending"
        assert order["fulfillmentMethod"] == "pickup"
        assert order["subtotal"] == 20.0
        assert order["total"] == 22.0
        assert order["items"][0]["priceAtPurchase"] == 10.0
        assert order["items"][0]["quantity"] == 2

        product = await db_session.get(Product, test_product.id, populate_existing=True)
        assert product.inventory == 3

        cart = await async_client.get("/api/cart", headers=auth_headers)
        assert cart.json()["items"] == []

        mine = await async_client.get("/api/orders/me", headers=auth_headers)
        assert [o["id"] for o in mine.json()["orders"]] == [order["id"]]

        detail = await async_client.get(f"/api/orders/{order['id']}", headers=auth_headers)
        assert detail.status_code == 200

    async def test_checkout_empty_cart(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post(
            "/api/checkout",
            json={"fulfillmentMethod": "delivery"},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert response.json()["details"]["rule"] == "cart_not_empty"

    async def test_checkout_stock_shortage(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        test_product: Product,
        auth_headers: dict,
    ):
        # Given: 장바구니에 담은 뒤 재고가 줄어듦
        await async_client.post(
            "/api/cart/items",
            json={"productId": str(test_product.id), "quantity": 4},
            headers=auth_headers,
        )
        test_product.inventory = 1
        await db_session.commit()

        # When
        response = await async_client.post(
            "/api/checkout",
            json={"fulfillmentMethod": "pickup"},
            headers=auth_headers,
        )

        # Then: 주문 없음, 재고 유지
        assert response.status_code == 422
        assert response.json()["details"]["rule"] == "stock_available"

        orders = await async_client.get("/api/orders/me", headers=auth_headers)
        assert orders.json()["orders"] == []

    async def test_other_users_order_is_forbidden(
        self,
        async_client: AsyncClient,
        test_product: Product,
        auth_headers: dict,
        member_headers: dict,
    ):
        await async_client.post(
            "/api/cart/items",
            json={"productId": str(test_product.id)},
            headers=auth_headers,
        )
        order = (
            await async_client.post(
                "/api/checkout",
                json={"fulfillmentMethod": "shipping"},
                headers=auth_headers,
            )
        ).json()

        response = await async_client.get(f"/api/orders/{order['id']}", headers=member_headers)

        assert response.status_code == 403
