"""
Listing API endpoints: publish, search, detail, owner dashboard, patch and delete.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional
from uuid import UUID

from marketplace.models.user import User
from marketplace.models.listing import ListingCategory, PropertyType
from marketplace.repositories.listing import ListingSearchFilters
from marketplace.services.listing import ListingService
from marketplace.schemas.auth import OkResponse
from marketplace.schemas.listing import (
    ListingCreate,
    ListingUpdate,
    ListingResponse,
    ListingSummary,
    ListingEnvelope,
    ListingSummaryResults,
    ListingResults,
)
from marketplace.schemas.error import get_crud_error_responses, get_common_error_responses, get_error_responses
from marketplace.utils.dependencies import (
    get_listing_service,
    get_optional_current_user,
    require_publisher,
)
from marketplace.utils.validators import parse_enum_param
from marketplace.config import settings


router = APIRouter(tags=["Listings"])


@router.post(
    "/listings",
    response_model=ListingEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a listing",
    description="Create a listing with photos and amenities. Requires SELLER or AGENT role.",
    responses=get_crud_error_responses()
)
async def create_listing(
    listing_data: ListingCreate,
    current_user: User = Depends(require_publisher),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingEnvelope:
    """
    Publish a new listing owned by the caller.

    Photos may be plain URL strings or {url, caption} objects; their order
    in the request becomes their display order. Amenity names are
    normalised to codes and created on first use.
    """
    listing = await listing_service.create_listing(listing_data, current_user)
    return ListingEnvelope(listing=ListingResponse.model_validate(listing))


@router.get(
    "/listings",
    response_model=ListingSummaryResults,
    summary="Search listings",
    description="Search active listings, newest first",
    responses=get_error_responses(422)
)
async def search_listings(
    q: Optional[str] = Query(None, description="Case-insensitive match on the title"),
    city: Optional[str] = Query(None, description="Case-insensitive match on the city"),
    state: Optional[str] = Query(None, description="Case-insensitive match on the state"),
    category: Optional[str] = Query(None, description="SALE or RENT"),
    property_type: Optional[str] = Query(None, description="APARTMENT, HOUSE, ..."),
    min_price: Optional[int] = Query(None, ge=0),
    max_price: Optional[int] = Query(None, ge=0),
    bedrooms: Optional[int] = Query(None, ge=0, description="Minimum number of bedrooms"),
    take: Optional[int] = Query(None, ge=0, description=f"Page size, at most {settings.max_page_size}; 0 means the default"),
    skip: int = Query(0, ge=0),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingSummaryResults:
    filters = ListingSearchFilters(
        q=q,
        city=city,
        state=state,
        category=parse_enum_param(ListingCategory, category, "category"),
        property_type=parse_enum_param(PropertyType, property_type, "property_type"),
        min_price=min_price,
        max_price=max_price,
        bedrooms=bedrooms,
    )

    rows = await listing_service.search_listings(filters, skip=skip, take=take)
    return ListingSummaryResults(results=[ListingSummary.model_validate(row) for row in rows])


@router.get(
    "/me/listings",
    response_model=ListingResults,
    summary="My listings",
    description="Every listing owned by the caller, most recently updated first. Requires SELLER or AGENT role.",
    responses=get_error_responses(401, 403)
)
async def my_listings(
    current_user: User = Depends(require_publisher),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResults:
    listings = await listing_service.get_my_listings(current_user)
    return ListingResults(results=[ListingResponse.model_validate(listing) for listing in listings])


@router.get(
    "/listings/{listing_id}",
    response_model=ListingEnvelope,
    summary="Listing detail",
    responses=get_error_responses(404, 422)
)
async def get_listing(
    listing_id: UUID = Path(..., description="Listing ID"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingEnvelope:
    listing = await listing_service.get_listing(listing_id, current_user)
    return ListingEnvelope(listing=ListingResponse.model_validate(listing))


@router.patch(
    "/listings/{listing_id}",
    response_model=ListingEnvelope,
    summary="Update a listing",
    description="Patch fields of a listing you own. Sending photos or amenities replaces the whole set.",
    responses=get_crud_error_responses()
)
async def update_listing(
    update_data: ListingUpdate,
    listing_id: UUID = Path(..., description="Listing ID"),
    current_user: User = Depends(require_publisher),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingEnvelope:
    listing = await listing_service.update_listing(listing_id, update_data, current_user)
    return ListingEnvelope(listing=ListingResponse.model_validate(listing))


@router.delete(
    "/listings/{listing_id}",
    response_model=OkResponse,
    summary="Delete a listing",
    description="Delete a listing you own, with its photos, amenity links and visits.",
    responses=get_common_error_responses()
)
async def delete_listing(
    listing_id: UUID = Path(..., description="Listing ID"),
    current_user: User = Depends(require_publisher),
    listing_service: ListingService = Depends(get_listing_service)
) -> OkResponse:
    await listing_service.delete_listing(listing_id, current_user)
    return OkResponse(ok=True)
