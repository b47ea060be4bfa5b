"""
CRUD infrastructure: repositories used by domain services.
"""

from .repository import (
    BaseRepository,
    RestaurantScopedRepository,
    UserScopedRepository,
)

__all__ = [
    "BaseRepository",
    "RestaurantScopedRepository",
    "UserScopedRepository",
]
