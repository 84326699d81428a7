"""
Listing repository for listing persistence, search and the map view.
Photo and amenity sets are written together with the listing in one transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, delete, desc
from marketplace.repositories.base import BaseRepository
from marketplace.database import utcnow
from marketplace.models.listing import Listing, ListingPhoto, ListingCategory, PropertyType
from marketplace.models.amenity import Amenity, ListingAmenity
from marketplace.models.visit import Visit
from typing import Optional, List, Dict, Any, Sequence
import uuid
import logging

logger = logging.getLogger(__name__)

# Columns returned by the public search
SUMMARY_COLUMNS = (
    Listing.id,
    Listing.title,
    Listing.price,
    Listing.currency,
    Listing.city,
    Listing.state,
    Listing.category,
    Listing.property_type,
    Listing.bedrooms,
    Listing.bathrooms,
)

MAP_COLUMNS = (
    Listing.id,
    Listing.latitude,
    Listing.longitude,
    Listing.price,
    Listing.currency,
)


class ListingSearchFilters:
    """Data class for listing search filters."""

    def __init__(
        self,
        q: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        category: Optional[ListingCategory] = None,
        property_type: Optional[PropertyType] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
        bedrooms: Optional[int] = None,
        is_active: Optional[bool] = True,
    ):
        self.q = q
        self.city = city
        self.state = state
        self.category = category
        self.property_type = property_type
        self.min_price = min_price
        self.max_price = max_price
        self.bedrooms = bedrooms
        self.is_active = is_active


class BoundingBox:
    """South-west / north-east corners of a map viewport."""

    def __init__(self, swlat: float, swlng: float, nelat: float, nelng: float):
        self.swlat = swlat
        self.swlng = swlng
        self.nelat = nelat
        self.nelng = nelng


class ListingRepository(BaseRepository[Listing]):
    """
    Repository for listings and their photos and amenity links.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Listing, db)

    async def create_listing(
        self,
        listing_data: Dict[str, Any],
        photos: Sequence[Dict[str, Any]] = (),
        amenities: Sequence[Amenity] = (),
    ) -> Listing:
        """
        Create a listing with its photos and amenity links in one transaction.

        Args:
            listing_data: Scalar listing fields, including created_by_id
            photos: Dicts with url and optional caption, in display order
            amenities: Amenity rows to link

        Returns:
            The listing with relationships loaded
        """
        listing = Listing(**listing_data)
        async with self.committing("create listing"):
            self.db.add(listing)
            await self.db.flush()
            self._add_photos(listing.id, photos)
            self._add_amenity_links(listing.id, amenities)

        logger.info("Created listing %r (%s)", listing.title, listing.id)
        return await self.get_by_id(listing.id, refresh=True)

    async def update_listing(
        self,
        listing: Listing,
        changes: Dict[str, Any],
        photos: Optional[Sequence[Dict[str, Any]]] = None,
        amenities: Optional[Sequence[Amenity]] = None,
    ) -> Listing:
        """
        Patch scalar fields and optionally replace the photo and amenity sets.

        A ``None`` photos/amenities argument leaves that set untouched; a list
        (even an empty one) deletes every existing row and recreates the set
        in the given order.
        """
        listing_id = listing.id
        async with self.committing(f"update listing {listing_id}"):
            for field, value in changes.items():
                setattr(listing, field, value)
            listing.updated_at = utcnow()

            if photos is not None:
                await self._delete_where(ListingPhoto, ListingPhoto.listing_id == listing_id)
                self._add_photos(listing_id, photos)

            if amenities is not None:
                await self._delete_where(ListingAmenity, ListingAmenity.listing_id == listing_id)
                self._add_amenity_links(listing_id, amenities)

        logger.info("Updated listing %s", listing_id)
        return await self.get_by_id(listing_id, refresh=True)

    async def delete_listing(self, listing_id: uuid.UUID) -> bool:
        """
        Delete a listing after its photos, amenity links and visits.

        Returns:
            True if the listing was deleted, False if not found
        """
        async with self.committing(f"delete listing {listing_id}"):
            await self._delete_dependents(listing_id)
            result = await self._delete_where(Listing, Listing.id == listing_id)

        deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted listing %s with its photos, amenities and visits", listing_id)
        return deleted

    async def delete_all_listings(self) -> int:
        """Remove every listing and its dependent rows. Returns the number of listings removed."""
        async with self.committing("reset listings"):
            await self._delete_dependents()
            result = await self._delete_where(Listing)

        logger.info("Deleted %d listings", result.rowcount)
        return result.rowcount

    async def search_listings(
        self,
        filters: ListingSearchFilters,
        skip: int = 0,
        limit: int = 20,
    ) -> List[Any]:
        """
        Search listings, newest first.

        Returns:
            Rows holding the summary columns only
        """
        try:
            query = select(*SUMMARY_COLUMNS)

            conditions = self._build_filter_conditions(filters)
            if conditions:
                query = query.where(and_(*conditions))

            query = query.order_by(desc(Listing.created_at)).offset(skip).limit(limit)

            result = await self.db.execute(query)
            rows = result.all()

            logger.debug(f"Listing search returned {len(rows)} results")
            return list(rows)
        except Exception as e:
            logger.error(f"Failed to search listings: {e}")
            raise

    def _build_filter_conditions(self, filters: ListingSearchFilters) -> List:
        """
        Build SQLAlchemy filter conditions from search filters.
        """
        conditions = []

        if filters.is_active is not None:
            conditions.append(Listing.is_active == filters.is_active)

        # Case-insensitive substring matches; % and _ in the input are literal
        if filters.q:
            conditions.append(Listing.title.icontains(filters.q, autoescape=True))
        if filters.city:
            conditions.append(Listing.city.icontains(filters.city, autoescape=True))
        if filters.state:
            conditions.append(Listing.state.icontains(filters.state, autoescape=True))

        if filters.category:
            conditions.append(Listing.category == filters.category)
        if filters.property_type:
            conditions.append(Listing.property_type == filters.property_type)

        if filters.bedrooms is not None:
            conditions.append(Listing.bedrooms >= filters.bedrooms)

        if filters.min_price is not None:
            conditions.append(Listing.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Listing.price <= filters.max_price)

        return conditions

    async def get_listings_by_owner(self, owner_id: uuid.UUID) -> List[Listing]:
        """Get every listing owned by a user, active or not, most recently updated first."""
        try:
            query = (
                select(Listing)
                .where(Listing.created_by_id == owner_id)
                .order_by(desc(Listing.updated_at))
            )
            result = await self.db.execute(query)
            listings = result.scalars().all()

            logger.debug(f"Retrieved {len(listings)} listings for owner {owner_id}")
            return list(listings)
        except Exception as e:
            logger.error(f"Failed to get listings by owner {owner_id}: {e}")
            raise

    async def get_map_points(
        self,
        bbox: Optional[BoundingBox] = None,
        category: Optional[ListingCategory] = None,
        limit: int = 300,
    ) -> List[Any]:
        """
        Get coordinates and prices of active listings for the map view.
        """
        try:
            conditions = [
                Listing.is_active == True,  # noqa: E712
                Listing.latitude.isnot(None),
                Listing.longitude.isnot(None),
            ]
            if category:
                conditions.append(Listing.category == category)
            if bbox:
                conditions.extend([
                    Listing.latitude >= bbox.swlat,
                    Listing.latitude <= bbox.nelat,
                    Listing.longitude >= bbox.swlng,
                    Listing.longitude <= bbox.nelng,
                ])

            query = (
                select(*MAP_COLUMNS)
                .where(and_(*conditions))
                .order_by(desc(Listing.created_at))
                .limit(limit)
            )
            result = await self.db.execute(query)
            return list(result.all())
        except Exception as e:
            logger.error(f"Failed to get map points: {e}")
            raise

    def _add_photos(self, listing_id: uuid.UUID, photos: Sequence[Dict[str, Any]]) -> None:
        self.db.add_all([
            ListingPhoto(
                listing_id=listing_id,
                url=photo["url"],
                caption=photo.get("caption"),
                order=index,
            )
            for index, photo in enumerate(photos)
        ])

    def _add_amenity_links(self, listing_id: uuid.UUID, amenities: Sequence[Amenity]) -> None:
        self.db.add_all([
            ListingAmenity(listing_id=listing_id, amenity_id=amenity.id)
            for amenity in amenities
        ])

    async def _delete_where(self, model, *conditions):
        # Leaves objects already in the session untouched
        stmt = delete(model).where(*conditions).execution_options(synchronize_session=False)
        return await self.db.execute(stmt)

    async def _delete_dependents(self, listing_id: Optional[uuid.UUID] = None) -> None:
        """Delete photos, amenity links and visits of one listing, or of all listings."""
        for model in (ListingPhoto, ListingAmenity, Visit):
            if listing_id is None:
                await self._delete_where(model)
            else:
                await self._delete_where(model, model.listing_id == listing_id)
