"""
Amenity tags shared across listings, and the join rows linking them to listings.
"""

from sqlalchemy import String, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from marketplace.database import Base
import re
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from marketplace.models.listing import Listing


def normalize_amenity_code(raw: str) -> str:
    """
    Normalize a free-form amenity name into its code.

    "  swimming pool " -> "SWIMMING_POOL"
    """
    return re.sub(r"\s+", "_", raw.strip()).upper()


def amenity_label(code: str) -> str:
    return code.replace("_", " ")


class Amenity(Base):
    """A global amenity tag such as PARKING or POOL."""

    __tablename__ = "amenities"

    code: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
        comment="Upper-case code, whitespace replaced by underscores"
    )

    label: Mapped[str] = mapped_column(String(120), nullable=False)

    def __repr__(self) -> str:
        return f"<Amenity(code={self.code})>"


class ListingAmenity(Base):
    """Join row between a listing and an amenity."""

    __tablename__ = "listing_amenities"
    __table_args__ = (
        UniqueConstraint("listing_id", "amenity_id", name="uq_listing_amenity"),
    )

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amenity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("amenities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    listing: Mapped["Listing"] = relationship(
        "Listing",
        back_populates="amenity_links",
        lazy="noload"
    )

    amenity: Mapped[Amenity] = relationship(Amenity, lazy="selectin")
