"""
Visit repository for booking and listing property visits.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, asc
from marketplace.repositories.base import BaseRepository
from marketplace.models.visit import Visit, VisitStatus
from marketplace.models.listing import Listing
from datetime import datetime
from typing import Optional, List
import uuid
import logging

logger = logging.getLogger(__name__)


class VisitFilters:
    """Data class for visit list filters."""

    def __init__(
        self,
        user_id: Optional[uuid.UUID] = None,
        listing_id: Optional[uuid.UUID] = None,
        status: Optional[VisitStatus] = None,
        scheduled_from: Optional[datetime] = None,
        scheduled_to: Optional[datetime] = None,
        participant_id: Optional[uuid.UUID] = None,
    ):
        self.user_id = user_id
        self.listing_id = listing_id
        self.status = status
        self.scheduled_from = scheduled_from
        self.scheduled_to = scheduled_to
        # Visitor or owner of the visited listing
        self.participant_id = participant_id


class VisitRepository(BaseRepository[Visit]):

    def __init__(self, db: AsyncSession):
        super().__init__(Visit, db)

    async def create_visit(
        self,
        user_id: uuid.UUID,
        listing_id: uuid.UUID,
        scheduled_at: datetime,
        notes: Optional[str] = None,
    ) -> Visit:
        """Book a visit in REQUESTED state. Empty notes are stored as NULL."""
        visit = await self.create({
            "user_id": user_id,
            "listing_id": listing_id,
            "scheduled_at": scheduled_at,
            "status": VisitStatus.REQUESTED,
            "notes": notes or None,
        })
        logger.info(f"Visit {visit.id} requested for listing {listing_id} by user {user_id}")
        return await self.get_by_id(visit.id, refresh=True)

    async def list_visits(self, filters: VisitFilters, skip: int = 0, limit: int = 50) -> List[Visit]:
        """
        List visits matching the filters, earliest scheduled first.

        Args:
            filters: VisitFilters instance
            skip: Number of records to skip
            limit: Maximum number of records to return
        """
        try:
            conditions = []
            if filters.user_id:
                conditions.append(Visit.user_id == filters.user_id)
            if filters.listing_id:
                conditions.append(Visit.listing_id == filters.listing_id)
            if filters.status:
                conditions.append(Visit.status == filters.status)
            if filters.scheduled_from:
                conditions.append(Visit.scheduled_at >= filters.scheduled_from)
            if filters.scheduled_to:
                conditions.append(Visit.scheduled_at <= filters.scheduled_to)
            if filters.participant_id:
                owned_listings = select(Listing.id).where(Listing.created_by_id == filters.participant_id)
                conditions.append(or_(
                    Visit.user_id == filters.participant_id,
                    Visit.listing_id.in_(owned_listings),
                ))

            query = select(Visit)
            if conditions:
                query = query.where(and_(*conditions))
            query = query.order_by(asc(Visit.scheduled_at)).offset(skip).limit(limit)

            result = await self.db.execute(query)
            visits = result.scalars().all()

            logger.debug(f"Retrieved {len(visits)} visits")
            return list(visits)
        except Exception as e:
            logger.error(f"Failed to list visits: {e}")
            raise

    async def update_visit(self, visit: Visit, changes: dict) -> Visit:
        updated = await self.update(visit, changes)
        logger.info(f"Updated visit {updated.id}: {', '.join(changes) or 'no changes'}")
        return await self.get_by_id(updated.id, refresh=True)
