"""
Middleware package for the Housing Marketplace API.
"""

from .security import SecurityMiddleware

__all__ = ["SecurityMiddleware"]
