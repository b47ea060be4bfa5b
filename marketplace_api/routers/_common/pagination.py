"""
Standardized Pagination for list endpoints.

Usage:
    from marketplace_api.routers._common.pagination import Pagination, get_pagination

    @router.get("/restaurants")
    def list_restaurants(
        pagination: Pagination = Depends(get_pagination),
        db: Session = Depends(get_db),
    ):
        return service.list_public(limit=pagination.limit, offset=pagination.offset)
"""

from dataclasses import dataclass, field

from fastapi import Query

from marketplace_shared.config.settings import settings


@dataclass
class Pagination:
    """
    Pagination parameters with validation.

    Out-of-range values are clamped rather than rejected: limit to
    1..max_limit, offset to >= 0.
    """

    limit: int
    offset: int
    max_limit: int = field(default_factory=lambda: settings.max_page_size)

    def __post_init__(self):
        """Validate and normalize values."""
        self.limit = min(max(1, self.limit), self.max_limit)
        self.offset = max(0, self.offset)

    @property
    def page(self) -> int:
        """Current page number (1-indexed)."""
        return (self.offset // self.limit) + 1


def get_pagination(
    limit: int | None = Query(
        default=None,
        description="Maximum number of items to return (default 50, capped at 100)",
    ),
    offset: int = Query(
        default=0,
        description="Number of items to skip",
    ),
) -> Pagination:
    """
    FastAPI dependency for pagination.

    Usage:
        @router.get("/items")
        def list_items(pagination: Pagination = Depends(get_pagination)):
            ...
    """
    return Pagination(limit=settings.default_page_size if limit is None else limit, offset=offset)
