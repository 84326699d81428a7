"""
Test configuration and fixtures for the housing marketplace API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

# Must be set before marketplace.config is imported
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="marketplace-uploads-"))
os.environ.setdefault("PUBLIC_BASE_URL", "http://test")

import pytest
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from marketplace.main import app
from marketplace.database import Base, get_db
from marketplace.models.user import User, UserRole
from marketplace.models.listing import Listing, ListingCategory, PropertyType
from marketplace.models.visit import Visit
from marketplace.repositories.user import UserRepository
from marketplace.repositories.listing import ListingRepository
from marketplace.repositories.amenity import AmenityRepository
from marketplace.repositories.visit import VisitRepository
from marketplace.services.auth import AuthService
from marketplace.services.listing import ListingService
from marketplace.services.visit import VisitService
from marketplace.utils.auth import create_access_token

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "testpassword123"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session used by fixtures and direct repository/service tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async client where each request gets its own session on the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def listing_repository(db_session: AsyncSession) -> ListingRepository:
    return ListingRepository(db_session)


@pytest.fixture
def amenity_repository(db_session: AsyncSession) -> AmenityRepository:
    return AmenityRepository(db_session)


@pytest.fixture
def visit_repository(db_session: AsyncSession) -> VisitRepository:
    return VisitRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def listing_service(db_session: AsyncSession) -> ListingService:
    return ListingService(db_session)


@pytest.fixture
def visit_service(db_session: AsyncSession) -> VisitService:
    return VisitService(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        password: Optional[str] = TEST_PASSWORD,
        name: str = "Test User",
        role: UserRole = UserRole.BUYER,
        phone: Optional[str] = None,
    ) -> dict:
        data = {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "name": name,
            "role": role,
            "phone": phone,
        }
        if password is not None:
            data["password"] = password
        return data

    @staticmethod
    async def create_user(user_repo: UserRepository, **kwargs) -> User:
        return await user_repo.create_user(UserFactory.create_user_data(**kwargs))


class ListingFactory:
    """Factory for creating test listings."""

    @staticmethod
    def create_listing_data(
        created_by_id: uuid.UUID,
        title: str = "Sunny two bedroom condo",
        description: str = "Bright condo with balcony, close to transit.",
        price: int = 250000,
        category: ListingCategory = ListingCategory.SALE,
        property_type: PropertyType = PropertyType.CONDO,
        bedrooms: Optional[int] = 2,
        city: Optional[str] = "Austin",
        state: Optional[str] = "TX",
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        is_active: bool = True,
    ) -> dict:
        return {
            "title": title,
            "description": description,
            "price": price,
            "currency": "USD",
            "category": category,
            "property_type": property_type,
            "bedrooms": bedrooms,
            "bathrooms": 1,
            "city": city,
            "state": state,
            "latitude": latitude,
            "longitude": longitude,
            "is_active": is_active,
            "created_by_id": created_by_id,
        }

    @staticmethod
    async def create_listing(
        listing_repo: ListingRepository,
        created_by_id: uuid.UUID,
        photos: Optional[List[Dict]] = None,
        amenity_codes: Optional[List[str]] = None,
        **kwargs
    ) -> Listing:
        amenities = []
        if amenity_codes:
            amenities = await AmenityRepository(listing_repo.db).ensure_codes(amenity_codes)
        return await listing_repo.create_listing(
            ListingFactory.create_listing_data(created_by_id, **kwargs),
            photos=photos or [],
            amenities=amenities,
        )

    @staticmethod
    def create_request_payload(**overrides) -> dict:
        """JSON body for POST /listings."""
        payload = {
            "title": "Sunny two bedroom condo",
            "description": "Bright condo with balcony, close to transit.",
            "price": 250000,
            "category": "SALE",
            "property_type": "CONDO",
            "bedrooms": 2,
            "bathrooms": 1,
            "city": "Austin",
            "state": "TX",
            "latitude": 30.2672,
            "longitude": -97.7431,
            "photos": [],
            "amenities": [],
        }
        payload.update(overrides)
        return payload


class VisitFactory:
    """Factory for creating test visits."""

    @staticmethod
    def scheduled(days: int = 3) -> datetime:
        return datetime.now(timezone.utc) + timedelta(days=days)

    @staticmethod
    async def create_visit(
        visit_repo: VisitRepository,
        user_id: uuid.UUID,
        listing_id: uuid.UUID,
        scheduled_at: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Visit:
        return await visit_repo.create_visit(
            user_id=user_id,
            listing_id=listing_id,
            scheduled_at=scheduled_at or VisitFactory.scheduled(),
            notes=notes,
        )


# Common test fixtures
@pytest.fixture
async def test_seller(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="seller@test.com",
        name="Test Seller",
        role=UserRole.SELLER,
        phone="555-0100",
    )


@pytest.fixture
async def test_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="agent@test.com",
        name="Test Agent",
        role=UserRole.AGENT,
    )


@pytest.fixture
async def test_buyer(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="buyer@test.com",
        name="Test Buyer",
        role=UserRole.BUYER,
    )


@pytest.fixture
async def test_listing(listing_repository: ListingRepository, test_seller: User) -> Listing:
    return await ListingFactory.create_listing(
        listing_repository,
        test_seller.id,
        photos=[
            {"url": "https://img.example.com/front.jpg", "caption": "Front"},
            {"url": "https://img.example.com/kitchen.jpg"},
        ],
        amenity_codes=["PARKING", "POOL"],
        latitude=30.2672,
        longitude=-97.7431,
    )


@pytest.fixture
async def test_inactive_listing(listing_repository: ListingRepository, test_seller: User) -> Listing:
    return await ListingFactory.create_listing(
        listing_repository,
        test_seller.id,
        title="Hidden townhouse",
        property_type=PropertyType.TOWNHOUSE,
        is_active=False,
    )


@pytest.fixture
async def test_visit(visit_repository: VisitRepository, test_buyer: User, test_listing: Listing) -> Visit:
    return await VisitFactory.create_visit(
        visit_repository,
        user_id=test_buyer.id,
        listing_id=test_listing.id,
        notes="Evenings work best",
    )


# Utility functions for tests
def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header carrying a session token for the user."""
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}
