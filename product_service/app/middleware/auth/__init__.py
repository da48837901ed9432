"""
Authentication middleware package for Product Service.
"""

from .auth_middleware import (
    AuthenticatedUser,
    ProductServiceAuthMiddleware,
    admin_user,
    authenticated_user,
    setup_product_auth_middleware,
)

__all__ = [
    "AuthenticatedUser",
    "ProductServiceAuthMiddleware",
    "admin_user",
    "authenticated_user",
    "setup_product_auth_middleware",
]
