"""
FastAPI dependency injection utilities for authentication and services.
The session token is read from the Authorization header first, then from the session cookie.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.config import settings
from marketplace.database import get_db
from marketplace.models.user import User, PUBLISHER_ROLES
from marketplace.services.auth import AuthService
from marketplace.services.listing import ListingService
from marketplace.services.visit import VisitService
from marketplace.services.upload import UploadService
from marketplace.utils.exceptions import UnauthorizedError, InsufficientPermissionsError


# HTTP Bearer token security scheme; the cookie is checked when it is absent
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_listing_service(db: AsyncSession = Depends(get_db)) -> ListingService:
    return ListingService(db)


async def get_visit_service(db: AsyncSession = Depends(get_db)) -> VisitService:
    return VisitService(db)


async def get_upload_service() -> UploadService:
    return UploadService()


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    if credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


async def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from the session token.

    Raises:
        UnauthorizedError: If no token is provided
        InvalidTokenError: If the token is invalid or expired
    """
    if not token:
        raise UnauthorizedError("Authentication token required")

    return await auth_service.get_current_user(token)


async def require_publisher(current_user: User = Depends(get_current_user)) -> User:
    """
    Require a SELLER or AGENT account.
    Anonymous callers get 401, signed-in callers with another role get 403.
    """
    if not current_user.can_publish:
        allowed = "/".join(role.value for role in PUBLISHER_ROLES)
        raise InsufficientPermissionsError(f"access {allowed} resources")
    return current_user


async def get_optional_current_user(
    token: Optional[str] = Depends(get_session_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Get current user if a valid token is provided, otherwise None.
    """
    return await auth_service.get_optional_user(token)
