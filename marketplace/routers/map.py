"""
Map view endpoint: listing coordinates inside a viewport.
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from marketplace.models.listing import ListingCategory
from marketplace.repositories.listing import BoundingBox
from marketplace.services.listing import ListingService
from marketplace.schemas.listing import MapPoint, MapPointsEnvelope
from marketplace.schemas.error import get_error_responses
from marketplace.utils.dependencies import get_listing_service
from marketplace.utils.validators import parse_enum_param


router = APIRouter(prefix="/map", tags=["Map"])


@router.get(
    "/listings",
    response_model=MapPointsEnvelope,
    summary="Listings on the map",
    description="Active listings with coordinates. The bounding box applies only when all four corners are given.",
    responses=get_error_responses(422)
)
async def map_listings(
    swlat: Optional[float] = Query(None, ge=-90, le=90, description="South-west latitude"),
    swlng: Optional[float] = Query(None, ge=-180, le=180, description="South-west longitude"),
    nelat: Optional[float] = Query(None, ge=-90, le=90, description="North-east latitude"),
    nelng: Optional[float] = Query(None, ge=-180, le=180, description="North-east longitude"),
    category: Optional[str] = Query(None, description="SALE or RENT"),
    listing_service: ListingService = Depends(get_listing_service)
) -> MapPointsEnvelope:
    bbox = None
    if None not in (swlat, swlng, nelat, nelng):
        bbox = BoundingBox(swlat=swlat, swlng=swlng, nelat=nelat, nelng=nelng)

    rows = await listing_service.get_map_points(
        bbox=bbox,
        category=parse_enum_param(ListingCategory, category, "category"),
    )
    return MapPointsEnvelope(points=[MapPoint.model_validate(row) for row in rows])
