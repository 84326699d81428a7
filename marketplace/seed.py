"""
Database administration CLI: schema creation, demo data seeding, listing import and reset.

Usage:
    marketplace-admin create-tables
    marketplace-admin seed
    marketplace-admin import-listings path/to/listings.json
    marketplace-admin reset-listings --confirm
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import settings
from marketplace.database import AsyncSessionLocal, create_tables, drop_tables, close_db_connection
from marketplace.models.amenity import normalize_amenity_code
from marketplace.models.listing import Listing, ListingCategory, PropertyType
from marketplace.models.user import User, UserRole
from marketplace.repositories.amenity import AmenityRepository
from marketplace.repositories.listing import ListingRepository
from marketplace.repositories.user import UserRepository

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

PLACEHOLDER_SELLER_EMAIL = "placeholder-seller@example.com"
IMPORT_SELLER_EMAIL = "seed-seller@example.com"
DEFAULT_AMENITIES = ["PARKING", "POOL", "GYM", "GARDEN"]

DEMO_LISTINGS: List[Dict[str, Any]] = [
    {
        "title": "Bright 2BR Condo near Downtown",
        "description": "Sunny 2-bedroom condo with modern kitchen and balcony. Close to shops and transit.",
        "price": 325000,
        "currency": "USD",
        "category": ListingCategory.SALE,
        "property_type": PropertyType.CONDO,
        "bedrooms": 2,
        "bathrooms": 1,
        "area_sqft": 860,
        "year_built": 2012,
        "address_line1": "123 Maple St",
        "city": "Austin",
        "state": "TX",
        "postal_code": "78701",
        "country": "USA",
        "latitude": 30.266666,
        "longitude": -97.73333,
        "photos": [
            {"url": "https://images.unsplash.com/photo-1505692794403-34d4982f88aa", "caption": "Living room"},
            {"url": "https://images.unsplash.com/photo-1523217582562-09d0def993a6", "caption": "Kitchen"},
        ],
        "amenities": ["PARKING", "GYM"],
    },
    {
        "title": "Cozy Family House with Garden",
        "description": "3-bedroom single-family house with a large backyard and quiet street parking.",
        "price": 2200,  # monthly rent
        "currency": "USD",
        "category": ListingCategory.RENT,
        "property_type": PropertyType.HOUSE,
        "bedrooms": 3,
        "bathrooms": 2,
        "area_sqft": 1450,
        "year_built": 2004,
        "address_line1": "456 Oak Ave",
        "city": "San Jose",
        "state": "CA",
        "postal_code": "95112",
        "country": "USA",
        "latitude": 37.338207,
        "longitude": -121.88633,
        "photos": [
            {"url": "https://images.unsplash.com/photo-1572120360610-d971b9d7767c", "caption": "Front view"},
            {"url": "https://images.unsplash.com/photo-1560449204-e02f11c3d0e2", "caption": "Backyard"},
        ],
        "amenities": ["GARDEN", "PARKING", "POOL"],
    },
]


async def ensure_seller(
    session: AsyncSession,
    email: str,
    name: str,
    password: Optional[str] = None,
) -> User:
    """Return the seller with this e-mail, creating it if needed."""
    user_repo = UserRepository(session)
    user = await user_repo.get_by_email(email)
    if user:
        return user
    user_data = {"email": email, "name": name, "role": UserRole.SELLER}
    if password:
        user_data["password"] = password
    return await user_repo.create_user(user_data)


async def _listing_exists(session: AsyncSession, owner_id, title: str) -> bool:
    result = await session.execute(
        select(Listing.id).where(Listing.created_by_id == owner_id, Listing.title == title)
    )
    return result.first() is not None


async def seed_database(session: AsyncSession) -> int:
    """
    Ensure the placeholder seller, the common amenities and the demo listings.
    Safe to run repeatedly. Returns the number of listings created.
    """
    seller = await ensure_seller(
        session,
        PLACEHOLDER_SELLER_EMAIL,
        "Placeholder Seller",
        password=settings.guest_placeholder_password,
    )

    amenity_repo = AmenityRepository(session)
    amenities = {amenity.code: amenity for amenity in await amenity_repo.ensure_codes(DEFAULT_AMENITIES)}
    await session.commit()

    listing_repo = ListingRepository(session)
    created = 0
    for data in DEMO_LISTINGS:
        if await _listing_exists(session, seller.id, data["title"]):
            logger.info(f"Listing already seeded: {data['title']}")
            continue

        listing_data = {k: v for k, v in data.items() if k not in ("photos", "amenities")}
        listing_data["created_by_id"] = seller.id
        listing = await listing_repo.create_listing(
            listing_data,
            photos=data["photos"],
            amenities=[amenities[code] for code in data["amenities"]],
        )
        created += 1
        logger.info(f"Seeded listing {created}: {listing.title}")

    return created


def _coerce_enum(enum_cls, value: Optional[str], default):
    if not value:
        return default
    return enum_cls(str(value).upper())


def _optional_number(item: Dict[str, Any], key: str, kinds=(int,)):
    value = item.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, kinds):
        raise ValueError(f"{key} must be a number, got {value!r}")
    return value


def listing_from_import_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map one import record onto listing fields.

    Records carry ``priceCents``, ``geo: {lat, lng}``, ``beds``, ``baths``,
    ``sqft``, ``address``, a list of photo URLs and amenity names.

    Raises:
        ValueError: If the record is not an object, the price is not positive,
            a numeric field has the wrong type or an enum value is unknown
    """
    if not isinstance(item, dict):
        raise ValueError(f"record must be an object, got {type(item).__name__}")

    price = item.get("priceCents")
    if not isinstance(price, int) or isinstance(price, bool) or price <= 0:
        raise ValueError(f"price must be a positive integer, got {price!r}")

    geo = item.get("geo") or {}
    if not isinstance(geo, dict):
        raise ValueError(f"geo must be an object, got {geo!r}")
    photos = item.get("photos") if isinstance(item.get("photos"), list) else []
    amenities = item.get("amenities") if isinstance(item.get("amenities"), list) else []

    return {
        "title": str(item.get("title") or "Untitled"),
        "description": str(item.get("description") or ""),
        "price": price,
        "currency": str(item.get("currency") or "usd").upper(),
        "category": _coerce_enum(ListingCategory, item.get("category"), ListingCategory.SALE),
        "property_type": _coerce_enum(PropertyType, item.get("propertyType"), PropertyType.HOUSE),
        "bedrooms": _optional_number(item, "beds"),
        "bathrooms": _optional_number(item, "baths"),
        "area_sqft": _optional_number(item, "sqft"),
        "address_line1": item.get("address") or None,
        "city": item.get("city") or None,
        "state": item.get("state") or None,
        "postal_code": item.get("postalCode") or None,
        "country": item.get("country") or "USA",
        "latitude": _optional_number(geo, "lat", (int, float)),
        "longitude": _optional_number(geo, "lng", (int, float)),
        "is_active": True,
        "photos": [{"url": str(url), "caption": None} for url in photos],
        "amenities": [normalize_amenity_code(str(code)) for code in amenities if str(code).strip()],
    }


async def import_listings(session: AsyncSession, items: List[Dict[str, Any]]) -> int:
    """
    Create listings from import records, owned by the import seller.

    Records that cannot be mapped, or that the database rejects, are skipped
    with a warning; each record is committed on its own.
    Returns the number of listings created.
    """
    if not items:
        logger.info("No items to import")
        return 0

    seller = await ensure_seller(session, IMPORT_SELLER_EMAIL, "Seed Seller")
    seller_id = seller.id
    amenity_repo = AmenityRepository(session)
    listing_repo = ListingRepository(session)

    created = 0
    for index, item in enumerate(items):
        try:
            data = listing_from_import_item(item)
        except ValueError as e:
            logger.warning(f"Skipping item {index}: {e}")
            continue

        photos = data.pop("photos")
        codes = list(dict.fromkeys(data.pop("amenities")))
        data["created_by_id"] = seller_id

        try:
            amenities = await amenity_repo.ensure_codes(codes)
            listing = await listing_repo.create_listing(data, photos=photos, amenities=amenities)
        except SQLAlchemyError as e:
            await session.rollback()
            logger.warning(f"Skipping item {index}: database rejected it: {e}")
            continue

        created += 1
        logger.info(f"Imported: {listing.title} -> {listing.id}")

    logger.info(f"Imported {created} of {len(items)} listings")
    return created


def load_import_file(path: Path) -> List[Dict[str, Any]]:
    """
    Read a JSON array of import records.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a JSON array
    """
    if not path.exists():
        raise FileNotFoundError(f"Import file not found: {path}")
    try:
        items = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Could not parse JSON: {e}") from e
    if not isinstance(items, list):
        raise ValueError("Import file must contain a JSON array")
    return items


async def reset_listings(session: AsyncSession) -> int:
    """Delete every listing along with its photos, amenity links and visits."""
    return await ListingRepository(session).delete_all_listings()


async def _run_with_session(operation, *args):
    try:
        async with AsyncSessionLocal() as session:
            return await operation(session, *args)
    finally:
        await close_db_connection()


async def _run_schema(operation):
    try:
        await operation()
    finally:
        await close_db_connection()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marketplace-admin",
        description="Housing marketplace database administration",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create-tables", help="Create all tables")

    drop_parser = subparsers.add_parser("drop-tables", help="Drop all tables (not in production)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm dropping tables")

    subparsers.add_parser("seed", help="Seed demo seller, amenities and listings")

    import_parser = subparsers.add_parser("import-listings", help="Import listings from a JSON file")
    import_parser.add_argument("path", type=Path, help="JSON array of listing records")

    reset_parser = subparsers.add_parser("reset-listings", help="Delete all listings and their visits")
    reset_parser.add_argument("--confirm", action="store_true", help="Confirm deleting listings")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "create-tables":
            asyncio.run(_run_schema(create_tables))

        elif args.command == "drop-tables":
            if not args.confirm:
                print("drop-tables requires --confirm flag")
                return 1
            asyncio.run(_run_schema(drop_tables))

        elif args.command == "seed":
            created = asyncio.run(_run_with_session(seed_database))
            logger.info(f"Seed complete, {created} listings created")

        elif args.command == "import-listings":
            items = load_import_file(args.path)
            asyncio.run(_run_with_session(import_listings, items))

        elif args.command == "reset-listings":
            if not args.confirm:
                print("reset-listings requires --confirm flag")
                return 1
            deleted = asyncio.run(_run_with_session(reset_listings))
            logger.info(f"Reset complete, {deleted} listings deleted")

    except Exception as e:
        logger.error(f"Command failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
