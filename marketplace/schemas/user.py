"""
Pydantic schemas for user responses.
"""

from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from uuid import UUID
from marketplace.models.user import UserRole, AuthProvider


class UserResponse(BaseModel):
    """Public view of the signed-in user; never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    provider: AuthProvider
    created_at: datetime


class UserContact(BaseModel):
    """Owner contact details shown on a listing."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    role: UserRole


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: Optional[str] = None
