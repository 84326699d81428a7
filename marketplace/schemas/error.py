"""
Error response schemas for API documentation and consistent error formatting.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["email"])
    message: str = Field(..., description="Human-readable error message")
    type: Optional[str] = Field(None, description="Error type identifier", examples=["value_error"])
    input: Optional[Any] = Field(None, description="Input value that caused the error")


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    code: str = Field(..., description="Error code identifier", examples=["NOT_FOUND"])
    message: str = Field(..., description="Human-readable error message")
    timestamp: str = Field(..., description="Error timestamp in ISO format")
    request_id: Optional[str] = Field(None, description="Request identifier for tracing")
    details: Optional[List[ErrorDetail]] = Field(None, description="Field-level errors for validation failures")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    error: ErrorResponse


# status code -> (description, error code, example message)
_ERROR_EXAMPLES = {
    400: ("Bad Request - Invalid request", "BAD_REQUEST", "user_email is required when not signed in"),
    401: ("Unauthorized - Authentication required", "UNAUTHORIZED", "Authentication required"),
    403: ("Forbidden - Access denied", "FORBIDDEN", "You don't own this listing"),
    404: ("Not Found - Resource not found", "NOT_FOUND", "Listing not found with ID: 123e4567-e89b-12d3-a456-426614174000"),
    409: ("Conflict - Resource conflict", "CONFLICT", "User with identifier 'user@example.com' already exists"),
    413: ("Payload Too Large", "PAYLOAD_TOO_LARGE", "Request body exceeds maximum allowed size"),
    422: ("Unprocessable Entity - Validation error", "VALIDATION_ERROR", "Request validation failed"),
    500: ("Internal Server Error - Unexpected error", "INTERNAL_SERVER_ERROR", "An unexpected error occurred. Please try again later."),
}

COMMON_ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    status_code: {
        "description": description,
        "model": APIErrorResponse,
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": code,
                        "message": message,
                        "timestamp": "2024-01-01T00:00:00Z",
                        "request_id": "abc12345",
                    }
                }
            }
        },
    }
    for status_code, (description, code, message) in _ERROR_EXAMPLES.items()
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Get error response schemas for specific status codes.

    Args:
        status_codes: HTTP status codes to include

    Returns:
        Dictionary of error response schemas
    """
    return {
        code: COMMON_ERROR_RESPONSES[code]
        for code in status_codes
        if code in COMMON_ERROR_RESPONSES
    }


def get_auth_error_responses() -> Dict[int, Dict[str, Any]]:
    return get_error_responses(401, 403)


def get_common_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get common error response schemas for most endpoints."""
    return get_error_responses(400, 401, 403, 404, 422, 500)


def get_crud_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get error response schemas for CRUD operations."""
    return get_error_responses(400, 401, 403, 404, 409, 422, 500)
