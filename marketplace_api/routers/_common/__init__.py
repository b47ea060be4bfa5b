"""
Common utilities shared across routers.
"""

from .deps import current_user, get_permission_context, require_admin
from .pagination import Pagination, get_pagination

__all__ = [
    # Caller identity
    "current_user",
    "get_permission_context",
    "require_admin",
    # Pagination
    "Pagination",
    "get_pagination",
]
