"""
Visit model: a scheduled viewing tying a user to a listing.
"""

from sqlalchemy import Text, Enum as SQLEnum, ForeignKey, Uuid, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from marketplace.database import Base, UTCDateTime
from datetime import datetime
import enum
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from marketplace.models.user import User
    from marketplace.models.listing import Listing


class VisitStatus(str, enum.Enum):
    REQUESTED = "REQUESTED"
    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"
    COMPLETED = "COMPLETED"


class Visit(Base):
    """A visit request for a listing."""

    __tablename__ = "visits"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    scheduled_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        index=True,
    )

    status: Mapped[VisitStatus] = mapped_column(
        SQLEnum(VisitStatus, name="visit_status"),
        nullable=False,
        default=VisitStatus.REQUESTED,
        index=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship(
        "User",
        back_populates="visits",
        lazy="selectin"
    )

    listing: Mapped["Listing"] = relationship("Listing", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Visit(id={self.id}, listing_id={self.listing_id}, status={self.status})>"


listing_schedule_index = Index(
    "idx_visits_listing_scheduled",
    Visit.listing_id,
    Visit.scheduled_at
)
