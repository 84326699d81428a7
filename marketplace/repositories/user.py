"""
User repository for account lookup and creation.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.repositories.base import BaseRepository
from marketplace.models.user import User, UserRole, AuthProvider
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for user accounts. E-mail addresses are matched lower-case."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user, hashing the plain password when one is given.

        Args:
            user_data: Must include email; optional password, name, phone, role

        Raises:
            ValueError: If the e-mail is taken or the password is too short
        """
        email = user_data["email"].strip().lower()

        existing_user = await self.get_by_email(email)
        if existing_user:
            raise ValueError(f"User with email {email} already exists")

        password = user_data.pop("password", None)
        create_data = {
            **user_data,
            "email": email,
            "password_hash": User.hash_password(password) if password else None,
            "role": user_data.get("role") or UserRole.BUYER,
            "provider": AuthProvider.PASSWORD,
        }

        created_user = await self.create(create_data)
        logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
        return created_user

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.get_by_field("email", email.strip().lower())

    async def get_or_create_guest(self, email: str, placeholder_password: str) -> User:
        """
        Find a user by e-mail, or create a guest BUYER account for it.
        Guests get a hashed placeholder password.
        """
        user = await self.get_by_email(email)
        if user:
            return user

        guest = await self.create_user({
            "email": email,
            "password": placeholder_password,
            "role": UserRole.BUYER,
        })
        logger.info(f"Created guest account for {guest.email}")
        return guest
