"""
Integration tests for all API endpoints.
Tests complete request/response cycles against an in-memory database.
"""

import pytest
import uuid
from datetime import datetime, timezone
from httpx import AsyncClient
from fastapi import status

from marketplace.config import settings
from marketplace.models.user import User
from marketplace.models.listing import Listing, ListingCategory
from marketplace.models.visit import Visit
from tests.conftest import ListingFactory, VisitFactory, auth_headers, TEST_PASSWORD

API = settings.api_v1_prefix


class TestAuthenticationEndpoints:
    """Integration tests for authentication endpoints."""

    @pytest.mark.asyncio
    async def test_signup_sets_session_cookie(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/auth/signup", json={
            "email": "New.User@Example.com",
            "password": "secret1",
            "name": "New User",
        })

        assert response.status_code == status.HTTP_201_CREATED
        user = response.json()["user"]
        assert user["email"] == "new.user@example.com"
        assert user["role"] == "BUYER"
        assert user["provider"] == "PASSWORD"
        assert "password_hash" not in user

        set_cookie = response.headers["set-cookie"]
        assert f"{settings.session_cookie_name}=" in set_cookie
        assert "HttpOnly" in set_cookie
        assert "samesite=lax" in set_cookie.lower()

        me = await async_client.get(f"{API}/auth/me")
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["user"]["email"] == "new.user@example.com"

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, async_client: AsyncClient, test_buyer: User):
        response = await async_client.post(f"{API}/auth/signup", json={
            "email": "BUYER@test.com",
            "password": "secret1",
        })

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"]["code"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_signup_short_password(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/auth/signup", json={
            "email": "short@example.com",
            "password": "12345",
        })

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert any("password" in detail["field"] for detail in error["details"])

    @pytest.mark.asyncio
    async def test_login_logout_cookie_flow(self, async_client: AsyncClient, test_seller: User):
        response = await async_client.post(f"{API}/auth/login", json={
            "email": test_seller.email,
            "password": TEST_PASSWORD,
        })
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["role"] == "SELLER"

        me = await async_client.get(f"{API}/auth/me")
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["user"]["id"] == str(test_seller.id)

        logout = await async_client.post(f"{API}/auth/logout")
        assert logout.status_code == status.HTTP_200_OK
        assert logout.json() == {"ok": True}

        me = await async_client.get(f"{API}/auth/me")
        assert me.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_login_invalid_credentials(self, async_client: AsyncClient, test_seller: User):
        response = await async_client.post(f"{API}/auth/login", json={
            "email": test_seller.email,
            "password": "wrong-password",
        })

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_me_without_session(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/auth/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_me_with_bearer_header(self, async_client: AsyncClient, test_buyer: User):
        response = await async_client.get(f"{API}/auth/me", headers=auth_headers(test_buyer))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["email"] == test_buyer.email

    @pytest.mark.asyncio
    async def test_me_with_invalid_token(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/auth/me", headers={"Authorization": "Bearer nope"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestListingEndpoints:
    """Integration tests for listing endpoints."""

    @pytest.mark.asyncio
    async def test_create_listing(self, async_client: AsyncClient, test_seller: User):
        payload = ListingFactory.create_request_payload(
            category="sale",
            property_type="condo",
            currency="eur",
            photos=[
                "https://img.example.com/1.jpg",
                {"url": "https://img.example.com/2.jpg", "caption": "Kitchen"},
            ],
            amenities=["Parking", "swimming pool"],
        )

        response = await async_client.post(f"{API}/listings", json=payload, headers=auth_headers(test_seller))

        assert response.status_code == status.HTTP_201_CREATED
        listing = response.json()["listing"]
        assert listing["category"] == "SALE"
        assert listing["currency"] == "EUR"
        assert listing["created_by_id"] == str(test_seller.id)
        assert listing["created_by"]["email"] == test_seller.email
        assert listing["created_by"]["phone"] == "555-0100"
        assert [p["order"] for p in listing["photos"]] == [0, 1]
        assert listing["photos"][1]["caption"] == "Kitchen"
        assert [a["code"] for a in listing["amenities"]] == ["PARKING", "SWIMMING_POOL"]

    @pytest.mark.asyncio
    async def test_create_listing_requires_session(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/listings", json=ListingFactory.create_request_payload())

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_create_listing_forbidden_for_buyer(self, async_client: AsyncClient, test_buyer: User):
        response = await async_client.post(
            f"{API}/listings", json=ListingFactory.create_request_payload(), headers=auth_headers(test_buyer)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"]["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_create_listing_owner_from_session(
        self, async_client: AsyncClient, test_agent: User, test_seller: User
    ):
        payload = ListingFactory.create_request_payload(created_by_id=str(test_seller.id))

        response = await async_client.post(f"{API}/listings", json=payload, headers=auth_headers(test_agent))

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["listing"]["created_by_id"] == str(test_agent.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"price": 0},
        {"price": -5},
        {"title": "ab"},
        {"category": "LEASE"},
        {"currency": "DOLLARS"},
        {"year_built": 1700},
        {"photos": ["not-a-url"]},
    ])
    async def test_create_listing_invalid_data(self, async_client: AsyncClient, test_seller: User, overrides):
        response = await async_client.post(
            f"{API}/listings",
            json=ListingFactory.create_request_payload(**overrides),
            headers=auth_headers(test_seller),
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.asyncio
    async def test_get_listing(self, async_client: AsyncClient, test_listing: Listing):
        response = await async_client.get(f"{API}/listings/{test_listing.id}")

        assert response.status_code == status.HTTP_200_OK
        listing = response.json()["listing"]
        assert listing["title"] == test_listing.title
        assert [p["url"] for p in listing["photos"]] == [
            "https://img.example.com/front.jpg",
            "https://img.example.com/kitchen.jpg",
        ]
        assert listing["created_by"]["name"] == "Test Seller"

    @pytest.mark.asyncio
    async def test_get_listing_not_found(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/listings/{uuid.uuid4()}")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_get_inactive_listing(
        self, async_client: AsyncClient, test_inactive_listing: Listing, test_seller: User
    ):
        anonymous = await async_client.get(f"{API}/listings/{test_inactive_listing.id}")
        assert anonymous.status_code == status.HTTP_404_NOT_FOUND

        owner = await async_client.get(
            f"{API}/listings/{test_inactive_listing.id}", headers=auth_headers(test_seller)
        )
        assert owner.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_search_listings(
        self, async_client: AsyncClient, listing_repository, test_seller: User, test_inactive_listing: Listing
    ):
        await ListingFactory.create_listing(listing_repository, test_seller.id, title="Cheap studio", price=900, bedrooms=0)
        await ListingFactory.create_listing(
            listing_repository, test_seller.id, title="Rental house", price=2500, bedrooms=3,
            category=ListingCategory.RENT, city="Denver", state="CO",
        )

        response = await async_client.get(f"{API}/listings")
        assert response.status_code == status.HTTP_200_OK
        results = response.json()["results"]
        assert [r["title"] for r in results] == ["Rental house", "Cheap studio"]
        assert set(results[0]) == {
            "id", "title", "price", "currency", "city", "state",
            "category", "property_type", "bedrooms", "bathrooms",
        }

        response = await async_client.get(f"{API}/listings", params={"category": "rent"})
        assert [r["title"] for r in response.json()["results"]] == ["Rental house"]

        response = await async_client.get(f"{API}/listings", params={"min_price": 1000, "max_price": 2500})
        assert [r["title"] for r in response.json()["results"]] == ["Rental house"]

        response = await async_client.get(f"{API}/listings", params={"bedrooms": 1, "city": "denv"})
        assert [r["title"] for r in response.json()["results"]] == ["Rental house"]

        response = await async_client.get(f"{API}/listings", params={"q": "STUDIO", "take": 1})
        assert [r["title"] for r in response.json()["results"]] == ["Cheap studio"]

    @pytest.mark.asyncio
    async def test_search_listings_invalid_enum(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/listings", params={"property_type": "castle"})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "property_type"

    @pytest.mark.asyncio
    async def test_search_listings_take_zero_uses_default(
        self, async_client: AsyncClient, listing_repository, test_seller: User
    ):
        for index in range(settings.default_page_size + 2):
            await ListingFactory.create_listing(listing_repository, test_seller.id, title=f"Listing {index}")

        response = await async_client.get(f"{API}/listings", params={"take": 0})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.json()["results"]) == settings.default_page_size

    @pytest.mark.asyncio
    async def test_search_listings_negative_take(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/listings", params={"take": -1})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.asyncio
    async def test_my_listings(
        self, async_client: AsyncClient, test_listing: Listing, test_inactive_listing: Listing,
        test_seller: User, test_agent: User
    ):
        response = await async_client.get(f"{API}/me/listings", headers=auth_headers(test_seller))
        assert response.status_code == status.HTTP_200_OK
        results = response.json()["results"]
        assert {r["id"] for r in results} == {str(test_listing.id), str(test_inactive_listing.id)}
        assert any(r["photos"] for r in results)

        response = await async_client.get(f"{API}/me/listings", headers=auth_headers(test_agent))
        assert response.json()["results"] == []

    @pytest.mark.asyncio
    async def test_my_listings_forbidden_for_buyer(self, async_client: AsyncClient, test_buyer: User):
        response = await async_client.get(f"{API}/me/listings", headers=auth_headers(test_buyer))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_update_listing_replaces_photos_and_amenities(
        self, async_client: AsyncClient, test_listing: Listing, test_seller: User
    ):
        response = await async_client.patch(
            f"{API}/listings/{test_listing.id}",
            json={
                "price": 275000,
                "address_line2": None,
                "latitude": None,
                "photos": [
                    "https://img.example.com/kitchen.jpg",
                    {"url": "https://img.example.com/yard.jpg", "caption": "Yard"},
                ],
                "amenities": ["garden"],
            },
            headers=auth_headers(test_seller),
        )

        assert response.status_code == status.HTTP_200_OK
        listing = response.json()["listing"]
        assert listing["price"] == 275000
        assert listing["latitude"] is None
        assert listing["title"] == test_listing.title
        assert [(p["url"], p["order"]) for p in listing["photos"]] == [
            ("https://img.example.com/kitchen.jpg", 0),
            ("https://img.example.com/yard.jpg", 1),
        ]
        assert [a["code"] for a in listing["amenities"]] == ["GARDEN"]

        detail = await async_client.get(f"{API}/listings/{test_listing.id}")
        assert len(detail.json()["listing"]["photos"]) == 2

    @pytest.mark.asyncio
    async def test_update_listing_keeps_sets_when_omitted(
        self, async_client: AsyncClient, test_listing: Listing, test_seller: User
    ):
        response = await async_client.patch(
            f"{API}/listings/{test_listing.id}",
            json={"is_active": False},
            headers=auth_headers(test_seller),
        )

        listing = response.json()["listing"]
        assert listing["is_active"] is False
        assert len(listing["photos"]) == 2
        assert len(listing["amenities"]) == 2

    @pytest.mark.asyncio
    async def test_update_listing_rejects_null_required_field(
        self, async_client: AsyncClient, test_listing: Listing, test_seller: User
    ):
        response = await async_client.patch(
            f"{API}/listings/{test_listing.id}", json={"title": None}, headers=auth_headers(test_seller)
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.asyncio
    async def test_update_listing_not_owner(self, async_client: AsyncClient, test_listing: Listing, test_agent: User):
        response = await async_client.patch(
            f"{API}/listings/{test_listing.id}", json={"price": 1}, headers=auth_headers(test_agent)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"]["message"] == "You don't own this listing"

    @pytest.mark.asyncio
    async def test_update_listing_not_found(self, async_client: AsyncClient, test_seller: User):
        response = await async_client.patch(
            f"{API}/listings/{uuid.uuid4()}", json={"price": 1}, headers=auth_headers(test_seller)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_delete_listing(
        self, async_client: AsyncClient, test_listing: Listing, test_visit: Visit, test_seller: User, test_buyer: User
    ):
        response = await async_client.delete(f"{API}/listings/{test_listing.id}", headers=auth_headers(test_seller))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"ok": True}

        detail = await async_client.get(f"{API}/listings/{test_listing.id}")
        assert detail.status_code == status.HTTP_404_NOT_FOUND

        visits = await async_client.get(f"{API}/visits", headers=auth_headers(test_buyer))
        assert visits.json()["visits"] == []

    @pytest.mark.asyncio
    async def test_delete_listing_not_owner(self, async_client: AsyncClient, test_listing: Listing, test_agent: User):
        response = await async_client.delete(f"{API}/listings/{test_listing.id}", headers=auth_headers(test_agent))

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestMapEndpoint:

    @pytest.mark.asyncio
    async def test_map_listings(self, async_client: AsyncClient, test_listing: Listing, listing_repository, test_seller):
        await ListingFactory.create_listing(
            listing_repository, test_seller.id, title="Seattle", latitude=47.6, longitude=-122.3,
        )

        response = await async_client.get(f"{API}/map/listings")
        assert response.status_code == status.HTTP_200_OK
        assert len(response.json()["points"]) == 2

        response = await async_client.get(
            f"{API}/map/listings",
            params={"swlat": 29, "swlng": -99, "nelat": 31, "nelng": -96},
        )
        points = response.json()["points"]
        assert points == [{
            "id": str(test_listing.id),
            "latitude": 30.2672,
            "longitude": -97.7431,
            "price": test_listing.price,
            "currency": "USD",
        }]

    @pytest.mark.asyncio
    async def test_map_partial_bbox_is_ignored(self, async_client: AsyncClient, test_listing: Listing):
        response = await async_client.get(f"{API}/map/listings", params={"swlat": 50, "swlng": 0})

        assert len(response.json()["points"]) == 1

    @pytest.mark.asyncio
    async def test_map_invalid_coordinates(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/map/listings", params={"swlat": 91})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestVisitEndpoints:
    """Integration tests for visit endpoints."""

    @pytest.mark.asyncio
    async def test_create_visit_signed_in(self, async_client: AsyncClient, test_listing: Listing, test_buyer: User):
        response = await async_client.post(
            f"{API}/visits",
            json={
                "listing_id": str(test_listing.id),
                "scheduled_at": VisitFactory.scheduled().isoformat(),
                "notes": "Can I bring my dog?",
            },
            headers=auth_headers(test_buyer),
        )

        assert response.status_code == status.HTTP_201_CREATED
        visit = response.json()["visit"]
        assert visit["status"] == "REQUESTED"
        assert visit["user"]["email"] == test_buyer.email
        assert visit["listing"] == {"id": str(test_listing.id), "title": test_listing.title, "city": "Austin"}

    @pytest.mark.asyncio
    async def test_create_visit_with_offset_returns_utc(
        self, async_client: AsyncClient, test_listing: Listing, test_buyer: User
    ):
        response = await async_client.post(
            f"{API}/visits",
            json={"listing_id": str(test_listing.id), "scheduled_at": "2030-01-01T10:00:00+05:00"},
            headers=auth_headers(test_buyer),
        )

        assert response.status_code == status.HTTP_201_CREATED
        scheduled = datetime.fromisoformat(response.json()["visit"]["scheduled_at"].replace("Z", "+00:00"))
        assert scheduled == datetime(2030, 1, 1, 5, 0, tzinfo=timezone.utc)

        listed = await async_client.get(
            f"{API}/visits",
            params={"from": "2030-01-01T04:30:00Z", "to": "2030-01-01T05:30:00Z"},
            headers=auth_headers(test_buyer),
        )
        assert len(listed.json()["visits"]) == 1

    @pytest.mark.asyncio
    async def test_create_visit_as_guest(self, async_client: AsyncClient, test_listing: Listing):
        response = await async_client.post(f"{API}/visits", json={
            "listing_id": str(test_listing.id),
            "scheduled_at": VisitFactory.scheduled().isoformat(),
            "user_email": "Walk.In@Example.com",
        })

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["visit"]["user"]["email"] == "walk.in@example.com"

        login = await async_client.post(f"{API}/auth/login", json={
            "email": "walk.in@example.com",
            "password": settings.guest_placeholder_password,
        })
        assert login.status_code == status.HTTP_200_OK
        assert login.json()["user"]["role"] == "BUYER"

    @pytest.mark.asyncio
    async def test_create_visit_anonymous_without_email(self, async_client: AsyncClient, test_listing: Listing):
        response = await async_client.post(f"{API}/visits", json={
            "listing_id": str(test_listing.id),
            "scheduled_at": VisitFactory.scheduled().isoformat(),
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_create_visit_unknown_listing(self, async_client: AsyncClient, test_buyer: User):
        response = await async_client.post(
            f"{API}/visits",
            json={"listing_id": str(uuid.uuid4()), "scheduled_at": VisitFactory.scheduled().isoformat()},
            headers=auth_headers(test_buyer),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_list_visits(self, async_client: AsyncClient, test_visit: Visit, test_seller: User, test_agent: User):
        response = await async_client.get(f"{API}/visits", headers=auth_headers(test_seller))
        assert response.status_code == status.HTTP_200_OK
        assert [v["id"] for v in response.json()["visits"]] == [str(test_visit.id)]

        response = await async_client.get(
            f"{API}/visits", params={"status": "confirmed"}, headers=auth_headers(test_seller)
        )
        assert response.json()["visits"] == []

        response = await async_client.get(f"{API}/visits", headers=auth_headers(test_agent))
        assert response.json()["visits"] == []

    @pytest.mark.asyncio
    async def test_list_visits_requires_session(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/visits")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_update_visit(self, async_client: AsyncClient, test_visit: Visit, test_seller: User):
        response = await async_client.patch(
            f"{API}/visits/{test_visit.id}",
            json={"status": "CONFIRMED", "notes": ""},
            headers=auth_headers(test_seller),
        )

        assert response.status_code == status.HTTP_200_OK
        visit = response.json()["visit"]
        assert visit["status"] == "CONFIRMED"
        assert visit["notes"] is None

    @pytest.mark.asyncio
    async def test_update_visit_invalid_status(self, async_client: AsyncClient, test_visit: Visit, test_buyer: User):
        response = await async_client.patch(
            f"{API}/visits/{test_visit.id}", json={"status": "LOST"}, headers=auth_headers(test_buyer)
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.asyncio
    async def test_update_visit_stranger(self, async_client: AsyncClient, test_visit: Visit, test_agent: User):
        response = await async_client.patch(
            f"{API}/visits/{test_visit.id}", json={"status": "CANCELED"}, headers=auth_headers(test_agent)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_update_visit_not_found(self, async_client: AsyncClient, test_buyer: User):
        response = await async_client.patch(
            f"{API}/visits/{uuid.uuid4()}", json={"status": "CANCELED"}, headers=auth_headers(test_buyer)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestHealthEndpoints:

    @pytest.mark.asyncio
    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["api_prefix"] == API

    @pytest.mark.asyncio
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["database"] == "connected"
