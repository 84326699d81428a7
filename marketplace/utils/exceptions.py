"""
Exception hierarchy for the marketplace API.

Every class carries its HTTP status, a stable machine-readable code and a
default message; ErrorHandlerService turns them into the JSON error envelope.
"""

from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base class for errors that map directly to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: Optional[str] = "API_ERROR"
    default_detail: str = "Request failed"

    def __init__(
        self,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status_code or type(self).status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )
        if error_code is not None:
            self.error_code = error_code


class BadRequestError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"
    default_detail = "Bad request"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail=detail)


class ValidationError(APIException):
    """Input rejected by a domain check; `field_errors` land in `details`."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "VALIDATION_ERROR"
    default_detail = "Validation failed"

    def __init__(self, detail: Optional[str] = None, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(detail=detail)
        self.field_errors = field_errors or []


class UnauthorizedError(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"
    default_detail = "Authentication required"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail=detail, headers={"WWW-Authenticate": "Bearer"})


class InvalidCredentialsError(UnauthorizedError):
    default_detail = "Invalid credentials"


class InvalidTokenError(UnauthorizedError):
    default_detail = "Invalid token"


class ForbiddenError(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_detail = "Access forbidden"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail=detail)


class InsufficientPermissionsError(ForbiddenError):

    def __init__(self, action: str):
        super().__init__(f"Insufficient permissions to {action}")


class ListingOwnershipError(ForbiddenError):
    default_detail = "You don't own this listing"


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail = f"{detail} with ID: {resource_id}"
        super().__init__(detail=detail)


class ListingNotFoundError(NotFoundError):

    def __init__(self, listing_id: str):
        super().__init__("Listing", listing_id)


class VisitNotFoundError(NotFoundError):

    def __init__(self, visit_id: str):
        super().__init__("Visit", visit_id)


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    default_detail = "Resource already exists"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail=detail)


class DuplicateResourceError(ConflictError):

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")


class PayloadTooLargeError(APIException):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    error_code = "PAYLOAD_TOO_LARGE"

    def __init__(self, size: int, max_size: int):
        super().__init__(detail=f"Request body of {size} bytes exceeds maximum allowed size {max_size} bytes")


# Upload rejections are 400s: the request was well-formed but the file is unusable
class UnsupportedFileTypeError(BadRequestError):

    def __init__(self, file_type: str, supported_types: List[str]):
        super().__init__(f"Unsupported file type '{file_type}'. Supported types: {', '.join(supported_types)}")


class FileSizeExceededError(BadRequestError):

    def __init__(self, size: int, max_size: int):
        super().__init__(f"File size {size} bytes exceeds maximum allowed size {max_size} bytes")
