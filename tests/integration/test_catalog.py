"""
Integration Tests: 카탈로그 (벤더, 상품, 딜 카드, 레스토랑, 이벤트)
"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from rise_local.models.event import Event
from rise_local.models.product import Product
from rise_local.models.restaurant import MenuItem, Restaurant
from rise_local.models.user import User
from rise_local.models.vendor import Vendor
from rise_local.utils.clock import utcnow


@pytest.mark.asyncio
class TestVendorsAndProducts:
    async def test_list_vendors(self, async_client: AsyncClient, test_vendor: Vendor):
        response = await async_client.get("/api/vendors")

        assert response.status_code == 200
        vendors = response.json()["vendors"]
        assert [v["businessName"] for v in vendors] == ["Sunrise Coffee"]
        assert vendors[0]["isVerified"] is True

    async def test_filter_vendors_by_category(
        self, async_client: AsyncClient, test_vendor: Vendor
    ):
        coffee = await async_client.get("/api/vendors", params={"category": "Coffee"})
        books = await async_client.get("/api/vendors", params={"category": "books"})

        assert len(coffee.json()["vendors"]) == 1
        assert books.json()["vendors"] == []

    async def test_vendor_detail_not_found(self, async_client: AsyncClient):
        response = await async_client.get(f"/api/vendors/{uuid4()}")

        assert response.status_code == 404

    async def test_list_products_by_vendor(
        self, async_client: AsyncClient, test_vendor: Vendor, test_product: Product
    ):
        response = await async_client.get(
            "/api/products", params={"vendorId": str(test_vendor.id)}
        )

        assert response.status_code == 200
        [product] = response.json()["products"]
        assert product["name"] == "House Blend 12oz"
        assert product["price"] == 10.0

    async def test_product_detail(self, async_client: AsyncClient, test_product: Product):
        response = await async_client.get(f"/api/products/{test_product.id}")

        assert response.status_code == 200
        assert response.json()["inventory"] == 5


@pytest.mark.asyncio
class TestDealCards:
    """딜 카드 표시 정보"""

    async def test_card_labels(self, async_client: AsyncClient, deal_factory):
        deal = await deal_factory(redemption_frequency="weekly")

        response = await async_client.get(f"/api/deals/{deal.id}")

        assert response.status_code == 200
        card = response.json()
        assert card["vendorName"] == "Sunrise Coffee"
        assert card["savingsLabel"] == "Save 20%"
        assert card["frequencyLabel"] == "1x/week"
        assert card["isLocked"] is False
        assert card["canRedeem"] is True

    async def test_locked_card_for_anonymous(self, async_client: AsyncClient, deal_factory):
        deal = await deal_factory(is_pass_locked=True)

        card = (await async_client.get(f"/api/deals/{deal.id}")).json()

        assert card["isMemberOnly"] is True
        assert card["isLocked"] is True
        assert card["showLockOverlay"] is True
        assert card["showMemberBadge"] is True
        assert card["canRedeem"] is False

    async def test_locked_card_unlocked_for_member(
        self, async_client: AsyncClient, deal_factory, member_headers: dict
    ):
        deal = await deal_factory(is_pass_locked=True)

        card = (
            await async_client.get(f"/api/deals/{deal.id}", headers=member_headers)
        ).json()

        assert card["isLocked"] is False
        assert card["showMemberBadge"] is True
        assert card["canRedeem"] is True

    async def test_listing_hides_unpublished_and_ended_deals(
        self, async_client: AsyncClient, deal_factory
    ):
        live = await deal_factory(title="Live deal")
        await deal_factory(title="Draft deal", status="draft")
        await deal_factory(title="Ended deal", ends_at=datetime(2000, 1, 1))

        response = await async_client.get("/api/deals")

        titles = [deal["title"] for deal in response.json()["deals"]]
        assert titles == [live.title]

    async def test_draft_deal_detail_is_hidden(
        self, async_client: AsyncClient, deal_factory
    ):
        deal = await deal_factory(status="draft")

        response = await async_client.get(f"/api/deals/{deal.id}")

        assert response.status_code == 404


@pytest.mark.asyncio
class TestServiceEndpoints:
    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    async def test_metrics(self, async_client: AsyncClient):
        response = await async_client.get("/metrics")

        assert response.status_code == 200
        assert "rise_local" in response.text


@pytest_asyncio.fixture
async def restaurant(db_session: AsyncSession, vendor_user: User) -> Restaurant:
    """메뉴 세 개가 있는 인증된 레스토랑"""
    restaurant = Restaurant(
        id=uuid4(),
        owner_id=vendor_user.id,
        restaurant_name="Harbor Tacos",
        cuisine_type="Mexican",
        price_range="$$",
        city="Tampa",
        is_verified=True,
    )
    db_session.add(restaurant)
    await db_session.flush()
    db_session.add_all(
        [
            MenuItem(restaurant_id=restaurant.id, name="Churros", category="dessert",
                     price=5, display_order=3),
            MenuItem(restaurant_id=restaurant.id, name="Fish Taco", category="main",
                     price=4.5, display_order=1),
            MenuItem(restaurant_id=restaurant.id, name="Carnitas", category="main",
                     price=5.5, display_order=2),
        ]
    )
    await db_session.commit()
    return restaurant


async def _add_event(db_session: AsyncSession, vendor: Vendor, starts_at: datetime, **kwargs):
    event = Event(
        id=uuid4(),
        organizer_id=vendor.id,
        title=kwargs.pop("title", "Live music"),
        description="Local bands on the patio",
        starts_at=starts_at,
        location="Tampa",
        category=kwargs.pop("category", "music"),
        tickets_available=50,
        **kwargs,
    )
    db_session.add(event)
    await db_session.commit()
    return event


@pytest.mark.asyncio
class TestRestaurants:
    async def test_list_restaurants_verified_first(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        restaurant: Restaurant,
        user_factory,
    ):
        # Given: 미인증 레스토랑 하나 추가
        owner = await user_factory(role="vendor", name="Other Owner")
        db_session.add(
            Restaurant(id=uuid4(), owner_id=owner.id, restaurant_name="Alley Noodles")
        )
        await db_session.commit()

        # When
        everything = await async_client.get("/api/restaurants")
        verified = await async_client.get("/api/restaurants", params={"verified": "true"})

        # Then
        assert [r["restaurantName"] for r in everything.json()["restaurants"]] == [
            "Harbor Tacos",
            "Alley Noodles",
        ]
        [only] = verified.json()["restaurants"]
        assert only["cuisineType"] == "Mexican"
        assert only["isVerified"] is True

    async def test_restaurant_detail_not_found(self, async_client: AsyncClient):
        response = await async_client.get(f"/api/restaurants/{uuid4()}")

        assert response.status_code == 404

    async def test_menu_in_display_order(
        self, async_client: AsyncClient, restaurant: Restaurant
    ):
        response = await async_client.get(f"/api/restaurants/{restaurant.id}/menu-items")

        assert response.status_code == 200
        items = response.json()["menuItems"]
        assert [item["name"] for item in items] == ["Fish Taco", "Carnitas", "Churros"]
        assert items[0]["price"] == 4.5

    async def test_menu_filtered_by_category(
        self, async_client: AsyncClient, restaurant: Restaurant
    ):
        response = await async_client.get(
            f"/api/restaurants/{restaurant.id}/menu-items", params={"category": "dessert"}
        )

        assert [item["name"] for item in response.json()["menuItems"]] == ["Churros"]

    async def test_menu_of_unknown_restaurant(self, async_client: AsyncClient):
        response = await async_client.get(f"/api/restaurants/{uuid4()}/menu-items")

        assert response.status_code == 404

    async def test_restaurant_events(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        restaurant: Restaurant,
        test_vendor: Vendor,
    ):
        # Given: 레스토랑 행사 둘, 다른 장소 행사 하나
        now = utcnow()
        await _add_event(db_session, test_vendor, now + timedelta(days=9),
                         title="Taco night", restaurant_id=restaurant.id)
        await _add_event(db_session, test_vendor, now + timedelta(days=2),
                         title="Mezcal tasting", restaurant_id=restaurant.id)
        await _add_event(db_session, test_vendor, now + timedelta(days=1), title="Market")

        # When
        response = await async_client.get(f"/api/restaurants/{restaurant.id}/events")

        # Then: 시작 시각 순
        assert [e["title"] for e in response.json()["events"]] == [
            "Mezcal tasting",
            "Taco night",
        ]


@pytest.mark.asyncio
class TestEvents:
    async def test_list_events_by_start_time(
        self, async_client: AsyncClient, db_session: AsyncSession, test_vendor: Vendor
    ):
        now = utcnow()
        await _add_event(db_session, test_vendor, now + timedelta(days=5), title="Later")
        await _add_event(db_session, test_vendor, now - timedelta(days=5), title="Past")
        await _add_event(db_session, test_vendor, now + timedelta(days=1), title="Soon")

        response = await async_client.get("/api/events")

        assert response.status_code == 200
        assert [e["title"] for e in response.json()["events"]] == ["Past", "Soon", "Later"]

    async def test_upcoming_excludes_started_events(
        self, async_client: AsyncClient, db_session: AsyncSession, test_vendor: Vendor
    ):
        # Given
        now = utcnow()
        await _add_event(db_session, test_vendor, now - timedelta(hours=1), title="Started")
        await _add_event(db_session, test_vendor, now + timedelta(days=3), title="Art walk",
                         category="art")
        await _add_event(db_session, test_vendor, now + timedelta(days=1), title="Jazz")

        # When
        upcoming = await async_client.get("/api/events/upcoming")
        art = await async_client.get("/api/events/upcoming", params={"category": "art"})

        # Then
        assert [e["title"] for e in upcoming.json()["events"]] == ["Jazz", "Art walk"]
        assert [e["title"] for e in art.json()["events"]] == ["Art walk"]

    async def test_event_detail(
        self, async_client: AsyncClient, db_session: AsyncSession, test_vendor: Vendor
    ):
        event = await _add_event(db_session, test_vendor, utcnow() + timedelta(days=1))

        response = await async_client.get(f"/api/events/{event.id}")

        assert response.status_code == 200
        body = response.json()
        assert body["organizerId"] == str(test_vendor.id)
        assert body["ticketsAvailable"] == 50
        assert body["rsvpCount"] == 0

    async def test_event_detail_not_found(self, async_client: AsyncClient):
        response = await async_client.get(f"/api/events/{uuid4()}")

        assert response.status_code == 404
