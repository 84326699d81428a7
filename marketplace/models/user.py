"""
User model with password authentication and marketplace roles.
Covers buyers, renters, sellers and agents, plus guest accounts created by visit booking.
"""

from sqlalchemy import String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from marketplace.database import Base
from passlib.context import CryptContext
import enum
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from marketplace.models.listing import Listing
    from marketplace.models.visit import Visit

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""
    BUYER = "BUYER"
    SELLER = "SELLER"
    RENTER = "RENTER"
    AGENT = "AGENT"


class AuthProvider(str, enum.Enum):
    PASSWORD = "PASSWORD"


# Roles allowed to publish and manage listings
PUBLISHER_ROLES = (UserRole.SELLER, UserRole.AGENT)


class User(Base):
    """
    User account.
    Seed and guest accounts may have no usable password hash.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address, stored lower-case"
    )

    password_hash: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Bcrypt hashed password"
    )

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.BUYER,
        index=True,
        comment="User role for access control"
    )

    provider: Mapped[AuthProvider] = mapped_column(
        SQLEnum(AuthProvider, name="auth_provider"),
        nullable=False,
        default=AuthProvider.PASSWORD,
    )

    # Relationships
    listings: Mapped[List["Listing"]] = relationship(
        "Listing",
        back_populates="created_by",
        lazy="noload",
    )

    visits: Mapped[List["Visit"]] = relationship(
        "Visit",
        back_populates="user",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @classmethod
    def hash_password(cls, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password string
        """
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        return pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        """
        Verify a password against the stored hash.
        Accounts without a hash never verify.
        """
        if not self.password_hash:
            return False
        return pwd_context.verify(password, self.password_hash)

    @property
    def can_publish(self) -> bool:
        """Check if the user may create and manage listings."""
        return self.role in PUBLISHER_ROLES

    def owns(self, listing: "Listing") -> bool:
        return listing.created_by_id == self.id
