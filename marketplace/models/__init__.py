"""
Database models for the Housing Marketplace API.
"""

from marketplace.models.user import User, UserRole, AuthProvider, PUBLISHER_ROLES
from marketplace.models.listing import Listing, ListingPhoto, ListingCategory, PropertyType
from marketplace.models.amenity import Amenity, ListingAmenity, normalize_amenity_code, amenity_label
from marketplace.models.visit import Visit, VisitStatus

__all__ = [
    "User",
    "UserRole",
    "AuthProvider",
    "PUBLISHER_ROLES",
    "Listing",
    "ListingPhoto",
    "ListingCategory",
    "PropertyType",
    "Amenity",
    "ListingAmenity",
    "normalize_amenity_code",
    "amenity_label",
    "Visit",
    "VisitStatus",
]
