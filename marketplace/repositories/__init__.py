"""
Repository layer for database access.
"""

from marketplace.repositories.base import BaseRepository
from marketplace.repositories.user import UserRepository
from marketplace.repositories.amenity import AmenityRepository
from marketplace.repositories.listing import ListingRepository, ListingSearchFilters, BoundingBox
from marketplace.repositories.visit import VisitRepository, VisitFilters

__all__ = [
    "BaseRepository",
    "UserRepository",
    "AmenityRepository",
    "ListingRepository",
    "ListingSearchFilters",
    "BoundingBox",
    "VisitRepository",
    "VisitFilters",
]
