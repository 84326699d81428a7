"""
Pydantic schemas for signup, login and session responses.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from marketplace.models.user import UserRole, MIN_PASSWORD_LENGTH
from marketplace.schemas.user import UserResponse


class SignupRequest(BaseModel):
    """Schema for account registration."""

    email: EmailStr = Field(..., examples=["buyer@example.com"])

    password: str = Field(
        ...,
        min_length=MIN_PASSWORD_LENGTH,
        max_length=128,
        description=f"Password (minimum {MIN_PASSWORD_LENGTH} characters)",
    )

    name: Optional[str] = Field(None, max_length=255, examples=["Jane Doe"])

    role: UserRole = Field(UserRole.BUYER, description="Marketplace role, defaults to BUYER")

    phone: Optional[str] = Field(None, max_length=50)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()

    @field_validator("name", "phone")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        return v.strip() or None

    @field_validator("role", mode="before")
    @classmethod
    def upper_role(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()


class UserEnvelope(BaseModel):
    user: UserResponse


class OkResponse(BaseModel):
    ok: bool = True
