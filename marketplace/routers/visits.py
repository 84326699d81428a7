"""
Visit API endpoints: book, list and update property visits.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional
from datetime import datetime
from uuid import UUID

from marketplace.models.user import User
from marketplace.models.visit import VisitStatus
from marketplace.repositories.visit import VisitFilters
from marketplace.services.visit import VisitService
from marketplace.schemas.visit import VisitCreate, VisitUpdate, VisitResponse, VisitEnvelope, VisitList
from marketplace.schemas.error import get_common_error_responses, get_error_responses
from marketplace.utils.dependencies import get_current_user, get_optional_current_user, get_visit_service
from marketplace.utils.validators import parse_enum_param


router = APIRouter(prefix="/visits", tags=["Visits"])


@router.post(
    "",
    response_model=VisitEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Book a visit",
    description=(
        "Request a viewing. Signed-in users book for themselves; "
        "anonymous callers pass user_email and get a guest BUYER account."
    ),
    responses=get_error_responses(400, 404, 422)
)
async def create_visit(
    visit_data: VisitCreate,
    current_user: Optional[User] = Depends(get_optional_current_user),
    visit_service: VisitService = Depends(get_visit_service)
) -> VisitEnvelope:
    visit = await visit_service.create_visit(visit_data, current_user)
    return VisitEnvelope(visit=VisitResponse.model_validate(visit))


@router.get(
    "",
    response_model=VisitList,
    summary="List visits",
    description="Visits you booked or that concern your listings, earliest first",
    responses=get_error_responses(401, 422)
)
async def list_visits(
    user_id: Optional[UUID] = Query(None),
    listing_id: Optional[UUID] = Query(None),
    visit_status: Optional[str] = Query(None, alias="status", description="REQUESTED, CONFIRMED, CANCELED or COMPLETED"),
    scheduled_from: Optional[datetime] = Query(None, alias="from"),
    scheduled_to: Optional[datetime] = Query(None, alias="to"),
    take: Optional[int] = Query(None, ge=0, description="Page size; 0 means the default"),
    skip: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    visit_service: VisitService = Depends(get_visit_service)
) -> VisitList:
    filters = VisitFilters(
        user_id=user_id,
        listing_id=listing_id,
        status=parse_enum_param(VisitStatus, visit_status, "status"),
        scheduled_from=scheduled_from,
        scheduled_to=scheduled_to,
    )
    visits = await visit_service.list_visits(filters, current_user, skip=skip, take=take)
    return VisitList(visits=[VisitResponse.model_validate(visit) for visit in visits])


@router.patch(
    "/{visit_id}",
    response_model=VisitEnvelope,
    summary="Update a visit",
    description="Change status, time or notes. Allowed for the visitor and the listing owner; empty notes clear them.",
    responses=get_common_error_responses()
)
async def update_visit(
    update_data: VisitUpdate,
    visit_id: UUID = Path(..., description="Visit ID"),
    current_user: User = Depends(get_current_user),
    visit_service: VisitService = Depends(get_visit_service)
) -> VisitEnvelope:
    visit = await visit_service.update_visit(visit_id, update_data, current_user)
    return VisitEnvelope(visit=VisitResponse.model_validate(visit))
