"""
API routers for the Housing Marketplace API.
"""

from marketplace.routers.auth import router as auth_router
from marketplace.routers.listings import router as listings_router
from marketplace.routers.map import router as map_router
from marketplace.routers.visits import router as visits_router
from marketplace.routers.uploads import router as uploads_router

__all__ = [
    "auth_router",
    "listings_router",
    "map_router",
    "visits_router",
    "uploads_router",
]
