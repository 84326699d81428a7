"""
Visit service: booking, listing and updating property visits.
"""

from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.models.user import User
from marketplace.models.visit import Visit
from marketplace.repositories.listing import ListingRepository
from marketplace.repositories.user import UserRepository
from marketplace.repositories.visit import VisitRepository, VisitFilters
from marketplace.schemas.visit import VisitCreate, VisitUpdate
from marketplace.config import settings
from marketplace.utils.exceptions import (
    BadRequestError,
    InsufficientPermissionsError,
    ListingNotFoundError,
    VisitNotFoundError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class VisitService:
    """
    Business rules for visits.

    A visit is booked by the signed-in user, or by a guest identified by
    e-mail. It can be changed by the visitor or by the listing's owner.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.visit_repo = VisitRepository(db_session)
        self.listing_repo = ListingRepository(db_session)
        self.user_repo = UserRepository(db_session)

    async def create_visit(self, visit_data: VisitCreate, current_user: Optional[User] = None) -> Visit:
        """
        Book a visit in REQUESTED state.

        Raises:
            ListingNotFoundError: If the listing does not exist
            BadRequestError: If there is neither a session nor a user_email
        """
        listing = await self.listing_repo.get_by_id(visit_data.listing_id)
        if not listing:
            raise ListingNotFoundError(str(visit_data.listing_id))

        if current_user:
            visitor = current_user
        elif visit_data.user_email:
            visitor = await self.user_repo.get_or_create_guest(
                visit_data.user_email, settings.guest_placeholder_password
            )
        else:
            raise BadRequestError("user_email is required when not signed in")

        return await self.visit_repo.create_visit(
            user_id=visitor.id,
            listing_id=listing.id,
            scheduled_at=visit_data.scheduled_at,
            notes=visit_data.notes,
        )

    async def list_visits(
        self,
        filters: VisitFilters,
        current_user: User,
        skip: int = 0,
        take: Optional[int] = None,
    ) -> List[Visit]:
        """List visits the caller takes part in, as visitor or listing owner."""
        filters.participant_id = current_user.id
        limit = min(take or settings.default_visit_page_size, settings.max_page_size)
        return await self.visit_repo.list_visits(filters, skip=skip, limit=limit)

    async def update_visit(self, visit_id: uuid.UUID, update_data: VisitUpdate, current_user: User) -> Visit:
        """
        Change status, time or notes of a visit.

        Raises:
            VisitNotFoundError: If the visit does not exist
            InsufficientPermissionsError: If the caller is neither visitor nor listing owner
        """
        visit = await self.visit_repo.get_by_id(visit_id)
        if not visit:
            raise VisitNotFoundError(str(visit_id))

        if visit.user_id != current_user.id and not current_user.owns(visit.listing):
            raise InsufficientPermissionsError("update this visit")

        changes = {}
        if update_data.status is not None:
            changes["status"] = update_data.status
        if update_data.scheduled_at is not None:
            changes["scheduled_at"] = update_data.scheduled_at
        if "notes" in update_data.model_fields_set:
            changes["notes"] = update_data.notes or None

        return await self.visit_repo.update_visit(visit, changes)
