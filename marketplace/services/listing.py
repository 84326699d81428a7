"""
Listing service: publishing, search, the map view and owner-only mutations.
"""

from typing import Optional, List, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from marketplace.models.listing import Listing, ListingCategory
from marketplace.models.user import User
from marketplace.repositories.listing import ListingRepository, ListingSearchFilters, BoundingBox
from marketplace.repositories.amenity import AmenityRepository
from marketplace.schemas.listing import ListingCreate, ListingUpdate
from marketplace.config import settings
from marketplace.utils.exceptions import (
    APIException,
    BadRequestError,
    ListingNotFoundError,
    ListingOwnershipError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class ListingService:
    """
    Business rules for listings.

    Only the creator of a listing may change or delete it, and the creator
    is always the signed-in user at creation time.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.listing_repo = ListingRepository(db_session)
        self.amenity_repo = AmenityRepository(db_session)

    async def create_listing(self, listing_data: ListingCreate, current_user: User) -> Listing:
        """
        Publish a listing owned by the current user.

        Args:
            listing_data: Validated listing payload
            current_user: SELLER or AGENT creating the listing

        Returns:
            The listing with photos, amenities and owner loaded
        """
        try:
            scalars = listing_data.model_dump(exclude={"photos", "amenities"})
            scalars["created_by_id"] = current_user.id

            amenities = await self.amenity_repo.ensure_codes(listing_data.amenities)
            photos = [photo.model_dump() for photo in listing_data.photos]

            listing = await self.listing_repo.create_listing(scalars, photos=photos, amenities=amenities)
            logger.info(f"User {current_user.id} published listing {listing.id}")
            return listing
        except APIException:
            raise
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        except Exception as e:
            logger.error(f"Failed to create listing: {e}")
            raise BadRequestError(f"Failed to create listing: {str(e)}")

    async def get_listing(self, listing_id: uuid.UUID, current_user: Optional[User] = None) -> Listing:
        """
        Get a listing by id. Inactive listings are only visible to their owner.

        Raises:
            ListingNotFoundError: If missing, or inactive and not owned by the caller
        """
        listing = await self.listing_repo.get_by_id(listing_id)
        if not listing:
            raise ListingNotFoundError(str(listing_id))

        if not listing.is_active and not (current_user and current_user.owns(listing)):
            raise ListingNotFoundError(str(listing_id))

        return listing

    async def search_listings(self, filters: ListingSearchFilters, skip: int = 0, take: Optional[int] = None) -> List[Any]:
        """Search active listings. ``take`` defaults to the page size and is capped at the max."""
        limit = min(take or settings.default_page_size, settings.max_page_size)
        filters.is_active = True
        return await self.listing_repo.search_listings(filters, skip=skip, limit=limit)

    async def get_my_listings(self, current_user: User) -> List[Listing]:
        return await self.listing_repo.get_listings_by_owner(current_user.id)

    async def get_map_points(
        self,
        bbox: Optional[BoundingBox] = None,
        category: Optional[ListingCategory] = None,
    ) -> List[Any]:
        return await self.listing_repo.get_map_points(bbox=bbox, category=category, limit=settings.max_map_points)

    async def update_listing(
        self,
        listing_id: uuid.UUID,
        update_data: ListingUpdate,
        current_user: User
    ) -> Listing:
        """
        Patch a listing the caller owns.

        Scalars are applied when present in the request. A photos or amenities
        list replaces the existing set wholesale, in one transaction with the
        scalar patch.

        Raises:
            ListingNotFoundError: If the listing does not exist
            ListingOwnershipError: If the caller is not the owner
        """
        try:
            listing = await self._get_owned_listing(listing_id, current_user)

            photos = None
            if update_data.photos is not None:
                photos = [photo.model_dump() for photo in update_data.photos]

            amenities = None
            if update_data.amenities is not None:
                amenities = await self.amenity_repo.ensure_codes(update_data.amenities)

            updated = await self.listing_repo.update_listing(
                listing,
                update_data.scalar_changes(),
                photos=photos,
                amenities=amenities,
            )
            logger.info(f"User {current_user.id} updated listing {listing_id}")
            return updated
        except APIException:
            raise
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        except Exception as e:
            logger.error(f"Failed to update listing {listing_id}: {e}")
            raise BadRequestError(f"Failed to update listing: {str(e)}")

    async def delete_listing(self, listing_id: uuid.UUID, current_user: User) -> bool:
        """
        Delete a listing the caller owns, together with its photos, amenity links and visits.

        Raises:
            ListingNotFoundError: If the listing does not exist
            ListingOwnershipError: If the caller is not the owner
        """
        await self._get_owned_listing(listing_id, current_user)
        deleted = await self.listing_repo.delete_listing(listing_id)
        if not deleted:
            raise ListingNotFoundError(str(listing_id))

        logger.info(f"User {current_user.id} deleted listing {listing_id}")
        return deleted

    async def _get_owned_listing(self, listing_id: uuid.UUID, current_user: User) -> Listing:
        listing = await self.listing_repo.get_by_id(listing_id)
        if not listing:
            raise ListingNotFoundError(str(listing_id))
        if not current_user.owns(listing):
            logger.warning(f"User {current_user.id} tried to modify listing {listing_id} owned by {listing.created_by_id}")
            raise ListingOwnershipError()
        return listing
