"""
Error handling service for consistent error response formatting and logging.
Every error leaves the API as {"error": {code, message, timestamp, request_id, details?}}.
"""

from typing import Dict, Any, Optional, List, Tuple
from datetime import datetime, timezone
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from marketplace.utils.exceptions import APIException, ValidationError
import logging
import uuid

logger = logging.getLogger(__name__)

# Driver message fragment -> message safe to show to clients
CONSTRAINT_MESSAGES: Tuple[Tuple[str, str], ...] = (
    ("unique", "Duplicate value for unique field"),
    ("foreign key", "Referenced record does not exist"),
    ("not null", "Required field cannot be empty"),
    ("check constraint", "Value does not meet validation requirements"),
)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class ErrorHandlerService:
    """
    Turns exceptions into envelope responses and logs them once, tagged
    with the request id assigned by SecurityMiddleware.
    """

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the error envelope.

        Args:
            error_code: Stable code such as NOT_FOUND or VALIDATION_ERROR
            message: Human-readable message
            details: Per-field problems, omitted from the body when empty
            request_id: Id used to correlate the response with server logs
        """
        body: Dict[str, Any] = {
            "code": error_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "request_id": request_id,
        }
        if details:
            body["details"] = details
        return jsonable_encoder({"error": body})

    @staticmethod
    def handle_api_exception(exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        details = exception.field_errors if isinstance(exception, ValidationError) else None
        return ErrorHandlerService._respond(
            request,
            status_code=exception.status_code,
            error_code=exception.error_code or "API_ERROR",
            message=exception.detail,
            details=details,
            headers=exception.headers,
        )

    @staticmethod
    def handle_validation_error(errors: List[Dict[str, Any]], request: Optional[Request] = None) -> JSONResponse:
        """Flatten pydantic/FastAPI error dicts into `field`, `message`, `type`, `input` entries."""
        details = [
            {
                "field": " -> ".join(str(part) for part in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
                "input": error.get("input"),
            }
            for error in errors
        ]
        return ErrorHandlerService._respond(
            request,
            status_code=422,
            error_code="VALIDATION_ERROR",
            message="Request validation failed",
            details=details,
        )

    @staticmethod
    def handle_database_error(exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        """Integrity violations become 409 with a sanitized reason; anything else is a 500."""
        if isinstance(exception, IntegrityError):
            reason = ErrorHandlerService._describe_constraint(exception)
            return ErrorHandlerService._respond(
                request,
                status_code=409,
                error_code="INTEGRITY_ERROR",
                message=f"Constraint violation: {reason}" if reason else "Data integrity constraint violation",
                log_exc=exception,
            )
        return ErrorHandlerService._respond(
            request,
            status_code=500,
            error_code="DATABASE_ERROR",
            message="Database operation failed",
            log_exc=exception,
        )

    @staticmethod
    def handle_http_exception(exception: StarletteHTTPException, request: Optional[Request] = None) -> JSONResponse:
        # Unknown routes, wrong methods and HTTPExceptions raised in route code
        return ErrorHandlerService._respond(
            request,
            status_code=exception.status_code,
            error_code=f"HTTP_{exception.status_code}",
            message=str(exception.detail),
            headers=getattr(exception, "headers", None),
        )

    @staticmethod
    def handle_unexpected_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        return ErrorHandlerService._respond(
            request,
            status_code=500,
            error_code="INTERNAL_SERVER_ERROR",
            message=UNEXPECTED_ERROR_MESSAGE,
            log_exc=exception,
        )

    @staticmethod
    def _respond(
        request: Optional[Request],
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
        log_exc: Optional[BaseException] = None,
    ) -> JSONResponse:
        request_id = ErrorHandlerService._get_request_id(request)
        path = request.url.path if request is not None else None
        extra = {"error_code": error_code, "status_code": status_code, "request_id": request_id, "path": path}

        if log_exc is not None:
            logger.error(
                "[%s] %s on %s: %s: %s",
                request_id, error_code, path, type(log_exc).__name__, log_exc,
                extra=extra, exc_info=log_exc,
            )
        else:
            logger.warning("[%s] %s on %s: %s", request_id, error_code, path, message, extra=extra)

        return JSONResponse(
            status_code=status_code,
            content=ErrorHandlerService.format_error_response(error_code, message, details, request_id),
            headers=headers,
        )

    @staticmethod
    def _get_request_id(request: Optional[Request]) -> str:
        if request is not None:
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                return request_id
        return str(uuid.uuid4())[:8]

    @staticmethod
    def _describe_constraint(exception: IntegrityError) -> Optional[str]:
        error_msg = str(exception.orig).lower()
        for fragment, description in CONSTRAINT_MESSAGES:
            if fragment in error_msg:
                return description
        return None
