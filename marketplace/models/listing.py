"""
Listing model for sale and rent listings, and the ordered photos that belong to them.
"""

from sqlalchemy import (
    String, Text, Integer, Float, Boolean, Enum as SQLEnum, Index, ForeignKey, Uuid, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from marketplace.database import Base
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from marketplace.models.user import User
    from marketplace.models.amenity import Amenity, ListingAmenity


class ListingCategory(str, enum.Enum):
    """Whether a listing is offered for sale or for rent."""
    SALE = "SALE"
    RENT = "RENT"


class PropertyType(str, enum.Enum):
    APARTMENT = "APARTMENT"
    HOUSE = "HOUSE"
    VILLA = "VILLA"
    CONDO = "CONDO"
    TOWNHOUSE = "TOWNHOUSE"
    LAND = "LAND"
    OTHER = "OTHER"


class Listing(Base):
    """
    A property published by a seller or agent.
    Price is stored as a positive integer in the smallest currency unit.
    """

    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_listings_price_positive"),
    )

    # Basic listing information
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed listing description"
    )

    price: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="Price in minor currency units"
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    category: Mapped[ListingCategory] = mapped_column(
        SQLEnum(ListingCategory, name="listing_category"),
        nullable=False,
        index=True,
    )

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, name="property_type"),
        nullable=False,
        index=True,
    )

    # Property specifications
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    area_sqft: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Address
    address_line1: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_line2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True, index=True)
    state: Mapped[Optional[str]] = mapped_column(String(120), nullable=True, index=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
        comment="Whether the listing shows up in search and on the map"
    )

    created_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owner of the listing; never changes after creation"
    )

    # Relationships
    created_by: Mapped["User"] = relationship(
        "User",
        back_populates="listings",
        lazy="selectin"
    )

    photos: Mapped[List["ListingPhoto"]] = relationship(
        "ListingPhoto",
        back_populates="listing",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ListingPhoto.order.asc()"
    )

    amenity_links: Mapped[List["ListingAmenity"]] = relationship(
        "ListingAmenity",
        back_populates="listing",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title={self.title[:30]}, price={self.price})>"

    @property
    def amenities(self) -> List["Amenity"]:
        """Amenities attached to this listing, sorted by code."""
        return sorted((link.amenity for link in self.amenity_links), key=lambda a: a.code)


class ListingPhoto(Base):
    """A photo URL attached to a listing at a given position."""

    __tablename__ = "listing_photos"

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    url: Mapped[str] = mapped_column(String(1000), nullable=False)

    caption: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Position in the most recently submitted photo list"
    )

    listing: Mapped["Listing"] = relationship(
        "Listing",
        back_populates="photos",
        lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<ListingPhoto(id={self.id}, listing_id={self.listing_id}, order={self.order})>"


# Indexes for the common search patterns

# Public search: active listings, newest first
active_created_index = Index(
    "idx_listings_active_created",
    Listing.is_active,
    Listing.created_at.desc()
)

# Owner dashboard: a user's listings, most recently updated first
owner_updated_index = Index(
    "idx_listings_owner_updated",
    Listing.created_by_id,
    Listing.updated_at.desc()
)

# Map view bounding box
coordinates_index = Index(
    "idx_listings_coordinates",
    Listing.latitude,
    Listing.longitude,
)

photo_order_index = Index(
    "idx_listing_photos_listing_order",
    ListingPhoto.listing_id,
    ListingPhoto.order
)
