"""
Pydantic schemas for visit booking and updates.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID
from marketplace.models.visit import VisitStatus
from marketplace.schemas.user import UserSummary


class VisitCreate(BaseModel):
    """
    Schema for booking a visit.
    Signed-in callers book for themselves; anonymous callers must give user_email.
    """

    listing_id: UUID
    scheduled_at: datetime
    notes: Optional[str] = Field(None, max_length=2000)
    user_email: Optional[EmailStr] = None

    @field_validator("user_email")
    @classmethod
    def normalize_email(cls, v):
        if v is None:
            return v
        return v.lower().strip()


class VisitUpdate(BaseModel):
    """Patch for a visit. An empty notes string clears the notes."""

    status: Optional[VisitStatus] = None
    scheduled_at: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class VisitListingSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    city: Optional[str] = None


class VisitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    listing_id: UUID
    scheduled_at: datetime
    status: VisitStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    user: UserSummary
    listing: VisitListingSummary


class VisitEnvelope(BaseModel):
    visit: VisitResponse


class VisitList(BaseModel):
    visits: List[VisitResponse]
