"""
Authentication service for signup, login and session resolution.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from jose import JWTError
from marketplace.repositories.user import UserRepository
from marketplace.models.user import User
from marketplace.schemas.auth import SignupRequest
from marketplace.utils.auth import create_access_token, verify_token
from marketplace.utils.exceptions import (
    APIException,
    BadRequestError,
    DuplicateResourceError,
    InvalidCredentialsError,
    InvalidTokenError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Handles account creation, credential checks and session tokens.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def signup(self, signup_data: SignupRequest) -> User:
        """
        Register a new account.

        Raises:
            DuplicateResourceError: If the e-mail is already registered
            ValidationError: If the password is rejected
        """
        try:
            existing = await self.user_repo.get_by_email(signup_data.email)
            if existing:
                raise DuplicateResourceError("User", signup_data.email)

            user = await self.user_repo.create_user(signup_data.model_dump())
            logger.info(f"New {user.role.value} account: {user.email}")
            return user
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except SQLAlchemyError:
            raise
        except Exception as e:
            logger.error(f"Signup failed for {signup_data.email}: {e}")
            raise BadRequestError(f"Failed to create account: {str(e)}")

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Check an e-mail/password pair.

        Raises:
            InvalidCredentialsError: Unknown e-mail, account without password, or wrong password
        """
        user = await self.user_repo.get_by_email(email)
        if not user or not user.verify_password(password):
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        logger.info(f"User authenticated successfully: {user.email}")
        return user

    def create_session_token(self, user: User) -> str:
        return create_access_token(user_id=user.id, email=user.email, role=user.role)

    async def get_current_user(self, token: str) -> User:
        """
        Resolve a session token to its user.

        Raises:
            InvalidTokenError: If the token is invalid, expired or points at a missing user
        """
        try:
            payload = verify_token(token)
            user_id = uuid.UUID(payload.user_id)
        except (JWTError, ValueError, KeyError) as e:
            logger.debug(f"Rejected session token: {e}")
            raise InvalidTokenError()

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise InvalidTokenError("User no longer exists")
        return user

    async def get_optional_user(self, token: Optional[str]) -> Optional[User]:
        """Resolve a token if present; invalid tokens count as anonymous."""
        if not token:
            return None
        try:
            return await self.get_current_user(token)
        except InvalidTokenError:
            return None

