"""
Admin Service - platform-wide views and restaurant activation.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace_api.models import User
from marketplace_api.services.base_service import BaseService
from marketplace_api.services.domain.restaurant_service import RestaurantService, clamp_page
from marketplace_api.services.domain.review_service import ReviewService
from marketplace_api.services.permissions import PermissionContext
from marketplace_shared.utils.schemas import RestaurantOutput, ReviewOutput, UserOutput


class AdminService(BaseService[User]):
    """
    Administrative operations. Every method requires the admin role when a
    PermissionContext is given.
    """

    def __init__(self, db: Session):
        super().__init__(db, User)
        self._restaurants = RestaurantService(db)
        self._reviews = ReviewService(db)

    def list_users(
        self,
        ctx: PermissionContext | None = None,
        *,
        role: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[UserOutput]:
        """List accounts, optionally filtered by role."""
        if ctx is not None:
            ctx.require_admin()
        limit, offset = clamp_page(limit, offset)
        query = select(User)
        if role:
            query = query.where(User.role == role)
        query = query.order_by(User.id).limit(limit).offset(offset)
        return [UserOutput.model_validate(u) for u in self._repo.find_by_query(query)]

    def list_restaurants(
        self,
        ctx: PermissionContext | None = None,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[RestaurantOutput]:
        """List all restaurants, inactive ones included."""
        if ctx is not None:
            ctx.require_admin()
        return self._restaurants.list_including_inactive(limit=limit, offset=offset)

    def activate_restaurant(
        self,
        restaurant_id: int,
        ctx: PermissionContext | None = None,
    ) -> RestaurantOutput | None:
        """Make a restaurant visible again. None when it does not exist."""
        return self._restaurants.set_active(restaurant_id, True, ctx)

    def deactivate_restaurant(
        self,
        restaurant_id: int,
        ctx: PermissionContext | None = None,
    ) -> RestaurantOutput | None:
        """Hide a restaurant from public listings. None when it does not exist."""
        return self._restaurants.set_active(restaurant_id, False, ctx)

    def pending_reviews(self, ctx: PermissionContext | None = None) -> list[ReviewOutput]:
        """Reviews waiting for moderation."""
        return self._reviews.list_pending(ctx)
