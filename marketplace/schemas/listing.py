"""
Pydantic schemas for listing requests and responses.
Handles listing create/update validation, search summaries and map points.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, Dict, Optional, List
from datetime import datetime
from uuid import UUID
from marketplace.models.listing import ListingCategory, PropertyType
from marketplace.schemas.user import UserContact
from marketplace.utils.validators import validate_http_url, normalize_amenity_codes

# Fields that cannot be cleared once a listing exists
NON_NULLABLE_FIELDS = ("title", "description", "price", "currency", "category", "property_type", "is_active")


class PhotoIn(BaseModel):
    """A photo reference: an absolute http(s) URL with an optional caption."""

    url: str = Field(..., max_length=1000)
    caption: Optional[str] = Field(None, max_length=255)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        return validate_http_url(v)


class ListingFieldValidators(BaseModel):
    """Validators shared by the create and update schemas."""

    @field_validator("title", "description", check_fields=False)
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return v
        return v.strip()

    @field_validator(
        "address_line1", "address_line2", "city", "state", "postal_code", "country",
        check_fields=False,
    )
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return v
        return v.strip() or None

    @field_validator("currency", check_fields=False)
    @classmethod
    def validate_currency(cls, v):
        if v is None:
            return v
        code = v.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError("Currency must be a 3-letter code")
        return code

    @field_validator("category", "property_type", mode="before", check_fields=False)
    @classmethod
    def upper_enum(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("photos", mode="before", check_fields=False)
    @classmethod
    def coerce_photos(cls, v):
        """Accept plain URL strings alongside {url, caption} objects."""
        if v is None:
            return v
        if not isinstance(v, list):
            raise ValueError("Photos must be a list")
        return [{"url": item} if isinstance(item, str) else item for item in v]

    @field_validator("amenities", check_fields=False)
    @classmethod
    def normalize_amenities(cls, v):
        if v is None:
            return v
        return normalize_amenity_codes(v)


class ListingCreate(ListingFieldValidators):
    """Schema for publishing a new listing."""

    title: str = Field(..., min_length=3, max_length=255, examples=["Sunny 2BR condo near downtown"])
    description: str = Field(..., min_length=10, max_length=10000)
    price: int = Field(..., gt=0, description="Price in minor currency units", examples=[32500000])
    currency: str = Field("USD", description="ISO 4217 currency code")
    category: ListingCategory
    property_type: PropertyType

    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    area_sqft: Optional[int] = Field(None, ge=0)
    year_built: Optional[int] = Field(None, ge=1800, le=2100)

    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=120)
    state: Optional[str] = Field(None, max_length=120)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=120)

    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    is_active: bool = True

    photos: List[PhotoIn] = Field(default_factory=list, description="URL strings or {url, caption} objects, in display order")
    amenities: List[str] = Field(default_factory=list, examples=[["PARKING", "POOL"]])


class ListingUpdate(ListingFieldValidators):
    """
    Schema for patching a listing.

    Only fields present in the request are applied. Optional details may be
    cleared with null. Supplying photos or amenities replaces the whole set.
    """

    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = Field(None, min_length=10, max_length=10000)
    price: Optional[int] = Field(None, gt=0)
    currency: Optional[str] = None
    category: Optional[ListingCategory] = None
    property_type: Optional[PropertyType] = None

    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    area_sqft: Optional[int] = Field(None, ge=0)
    year_built: Optional[int] = Field(None, ge=1800, le=2100)

    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=120)
    state: Optional[str] = Field(None, max_length=120)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=120)

    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    is_active: Optional[bool] = None

    photos: Optional[List[PhotoIn]] = None
    amenities: Optional[List[str]] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        cleared = [
            name for name in NON_NULLABLE_FIELDS
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self

    def scalar_changes(self) -> Dict[str, Any]:
        """Fields explicitly sent in the request, excluding the photo and amenity sets."""
        return self.model_dump(exclude_unset=True, exclude={"photos", "amenities"})


class PhotoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    url: str
    caption: Optional[str] = None
    order: int


class AmenityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    label: str


class ListingResponse(BaseModel):
    """Full listing detail with photos, amenities and owner contact."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    price: int
    currency: str
    category: ListingCategory
    property_type: PropertyType

    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area_sqft: Optional[int] = None
    year_built: Optional[int] = None

    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None

    latitude: Optional[float] = None
    longitude: Optional[float] = None

    is_active: bool
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime

    photos: List[PhotoResponse] = []
    amenities: List[AmenityResponse] = []
    created_by: Optional[UserContact] = None


class ListingSummary(BaseModel):
    """Search result row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    price: int
    currency: str
    city: Optional[str] = None
    state: Optional[str] = None
    category: ListingCategory
    property_type: PropertyType
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None


class MapPoint(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    latitude: float
    longitude: float
    price: int
    currency: str


class ListingEnvelope(BaseModel):
    listing: ListingResponse


class ListingSummaryResults(BaseModel):
    results: List[ListingSummary]


class ListingResults(BaseModel):
    results: List[ListingResponse]


class MapPointsEnvelope(BaseModel):
    points: List[MapPoint]
