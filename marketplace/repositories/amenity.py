"""
Amenity repository: lazy get-or-create of shared amenity tags.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from marketplace.repositories.base import BaseRepository
from marketplace.models.amenity import Amenity, amenity_label
from typing import List
import logging

logger = logging.getLogger(__name__)


class AmenityRepository(BaseRepository[Amenity]):

    def __init__(self, db: AsyncSession):
        super().__init__(Amenity, db)

    async def get_by_codes(self, codes: List[str]) -> List[Amenity]:
        if not codes:
            return []
        result = await self.db.execute(select(Amenity).where(Amenity.code.in_(codes)))
        return list(result.scalars().all())

    async def ensure_codes(self, codes: List[str]) -> List[Amenity]:
        """
        Return amenities for the given normalised codes, creating missing ones.

        New rows are flushed but not committed, so they land in the caller's
        transaction. Result order follows ``codes``.
        """
        existing = {amenity.code: amenity for amenity in await self.get_by_codes(codes)}

        missing = [code for code in codes if code not in existing]
        for code in missing:
            amenity = Amenity(code=code, label=amenity_label(code))
            self.db.add(amenity)
            existing[code] = amenity

        if missing:
            await self.db.flush()
            logger.info(f"Created amenities: {', '.join(missing)}")

        return [existing[code] for code in codes]
