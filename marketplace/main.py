"""
FastAPI application for the housing marketplace.
"""

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from marketplace.config import settings
from marketplace.database import test_database_connection, close_db_connection
from marketplace.routers import (
    auth_router,
    listings_router,
    map_router,
    visits_router,
    uploads_router,
)
from marketplace.utils.exceptions import APIException
from marketplace.services.error_handler import ErrorHandlerService
from marketplace.middleware.security import SecurityMiddleware

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

API_ROUTERS = (auth_router, listings_router, map_router, visits_router, uploads_router)

DESCRIPTION = """
A two-sided housing marketplace: sellers and agents publish listings, buyers
and renters search them, browse them on a map and book visits.

`POST /api/v1/auth/signup` and `POST /api/v1/auth/login` set an http-only
`auth_token` cookie. Clients that cannot use cookies may send the same JWT as
`Authorization: Bearer <token>`. Uploaded photos are served under `/uploads`.
"""

OPENAPI_TAGS = [
    {"name": "Authentication", "description": "Signup, login and cookie sessions"},
    {"name": "Listings", "description": "Publishing, editing and searching listings"},
    {"name": "Map", "description": "Listing points for map views"},
    {"name": "Visits", "description": "Property visit scheduling"},
    {"name": "Uploads", "description": "Listing photo uploads"},
    {"name": "Health", "description": "Service status"},
]

health_router = APIRouter(tags=["Health"])


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s v%s (%s)", settings.app_name, settings.app_version, settings.environment)
    if not await test_database_connection():
        logger.error("Database is unreachable at startup")

    yield

    await close_db_connection()
    logger.info("Shut down %s", settings.app_name)


@health_router.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "api_prefix": settings.api_v1_prefix,
        "docs": "/docs",
    }


@health_router.get("/health")
async def health_check():
    """Liveness plus a database round-trip; 503 when the database is down."""
    if not await test_database_connection():
        logger.error("Health check failed: database unreachable")
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "database": "connected",
    }


def _register_exception_handlers(app: FastAPI) -> None:
    async def on_api_exception(request: Request, exc: APIException):
        return ErrorHandlerService.handle_api_exception(exc, request)

    async def on_validation_error(request: Request, exc: RequestValidationError):
        return ErrorHandlerService.handle_validation_error(exc.errors(), request)

    async def on_database_error(request: Request, exc: SQLAlchemyError):
        return ErrorHandlerService.handle_database_error(exc, request)

    async def on_http_exception(request: Request, exc: StarletteHTTPException):
        return ErrorHandlerService.handle_http_exception(exc, request)

    async def on_unexpected_error(request: Request, exc: Exception):
        return ErrorHandlerService.handle_unexpected_error(exc, request)

    app.add_exception_handler(APIException, on_api_exception)
    app.add_exception_handler(RequestValidationError, on_validation_error)
    app.add_exception_handler(SQLAlchemyError, on_database_error)
    app.add_exception_handler(StarletteHTTPException, on_http_exception)
    app.add_exception_handler(Exception, on_unexpected_error)


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=DESCRIPTION,
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    application.add_middleware(
        SecurityMiddleware,
        max_request_size=settings.max_request_size,
        enable_request_logging=settings.debug,
    )
    # Outermost, so error responses carry CORS headers too
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    for router in API_ROUTERS:
        application.include_router(router, prefix=settings.api_v1_prefix)
    application.include_router(health_router)

    application.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

    _register_exception_handlers(application)
    return application


app = create_app()


def run():
    import uvicorn
    uvicorn.run("marketplace.main:app", host=settings.host, port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    run()
