"""
Restaurant Service - restaurant catalog management.

Usage:
    from marketplace_api.services.domain import RestaurantService

    service = RestaurantService(db)
    restaurants = service.list_public(search="pizza", limit=20)
    restaurant = service.create(data, ctx)
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from marketplace_api.models import Restaurant, User
from marketplace_api.services.base_service import BaseCRUDService
from marketplace_api.services.permissions import Action, PermissionContext
from marketplace_shared.config.logging import api_logger, audit_restaurant_status
from marketplace_shared.config.settings import settings
from marketplace_shared.utils.exceptions import (
    ForbiddenError,
    NotFoundError,
    RestaurantNotFoundError,
    ValidationError,
)
from marketplace_shared.utils.schemas import RestaurantOutput
from marketplace_shared.utils.validators import escape_like_pattern, sanitize_search_term


def clamp_page(limit: int | None, offset: int | None) -> tuple[int, int]:
    """Apply the configured default/maximum page size and a non-negative offset."""
    if limit is None or limit <= 0:
        limit = settings.default_page_size
    limit = min(limit, settings.max_page_size)
    offset = max(offset or 0, 0)
    return limit, offset


class RestaurantService(BaseCRUDService[Restaurant, RestaurantOutput]):
    """
    Service for restaurants.

    Business rules:
    - The owner must exist and hold the restaurant_owner or admin role
    - Non-admin callers can only create restaurants for themselves
    - Public listings show active restaurants only
    - Deletion is a soft delete; deleted restaurants are gone for good
    - rating/total_reviews are never written here
    """

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=Restaurant,
            output_schema=RestaurantOutput,
            entity_name="Restaurant",
            supports_soft_delete=True,
        )

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_public(
        self,
        *,
        search: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[RestaurantOutput]:
        """
        List active restaurants, optionally filtered by name.

        Args:
            search: Case-insensitive substring of the restaurant name.
            limit: Page size (default and maximum come from settings).
            offset: Rows to skip.
        """
        limit, offset = clamp_page(limit, offset)
        where = []
        term = sanitize_search_term(search)
        if term:
            where.append(Restaurant.name.ilike(f"%{escape_like_pattern(term)}%", escape="\\"))

        return self.list_all(
            where=where,
            order_by=(Restaurant.name, Restaurant.id),
            limit=limit,
            offset=offset,
        )

    def get_public(self, restaurant_id: int) -> RestaurantOutput | None:
        """Get a restaurant, including inactive ones. Deleted ones are None."""
        return self.find_by_id(restaurant_id, include_inactive=True)

    def list_by_owner(self, owner_id: int) -> list[RestaurantOutput]:
        """List an owner's restaurants, inactive included."""
        return self.list_all(
            where=[Restaurant.owner_id == owner_id],
            include_inactive=True,
            order_by=(Restaurant.created_at, Restaurant.id),
        )

    def list_including_inactive(
        self,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[RestaurantOutput]:
        """List every non-deleted restaurant (admin view)."""
        limit, offset = clamp_page(limit, offset)
        return self.list_all(
            include_inactive=True,
            order_by=Restaurant.id,
            limit=limit,
            offset=offset,
        )

    # =========================================================================
    # Command Methods
    # =========================================================================

    def set_active(
        self,
        restaurant_id: int,
        is_active: bool,
        ctx: PermissionContext | None = None,
    ) -> RestaurantOutput | None:
        """
        Activate or deactivate a restaurant.

        Returns:
            Updated restaurant, or None if it does not exist.
        """
        if ctx is not None:
            ctx.require_admin()

        restaurant = self.get_entity(restaurant_id, include_inactive=True)
        if restaurant is None:
            return None

        restaurant.is_active = is_active
        restaurant.touch()
        self._commit("change restaurant status", restaurant_id=restaurant_id)
        self._db.refresh(restaurant)

        audit_restaurant_status(
            restaurant_id=restaurant_id,
            is_active=is_active,
            actor_id=ctx.user_id if ctx is not None else None,
        )
        return self.to_output(restaurant)

    # =========================================================================
    # Validation Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any]) -> None:
        """The owner must exist and be allowed to own restaurants."""
        owner_id = data.get("owner_id")
        owner = self._db.get(User, owner_id) if owner_id is not None else None
        if owner is None:
            raise NotFoundError("Owner", owner_id)

        if not PermissionContext(owner).can_create("Restaurant"):
            raise ValidationError(
                "Owner must have restaurant_owner or admin role",
                field="owner_id",
                owner_id=owner_id,
                role=owner.role,
            )

        # The cached aggregate starts empty
        data.pop("rating", None)
        data.pop("total_reviews", None)

    def _authorize_create(self, data: dict[str, Any], ctx: PermissionContext) -> None:
        ctx.require(Action.CREATE, "Restaurant")
        if not ctx.is_admin and data.get("owner_id") != ctx.user_id:
            raise ForbiddenError(
                "create restaurants for another owner",
                user_id=ctx.user_id,
                owner_id=data.get("owner_id"),
            )

    def _validate_update(self, entity: Restaurant, data: dict[str, Any]) -> None:
        for field_name in ("rating", "total_reviews", "owner_id", "is_active", "deleted_at"):
            data.pop(field_name, None)

    # =========================================================================
    # Lifecycle Hooks
    # =========================================================================

    def _after_create(self, entity: Restaurant, ctx: PermissionContext | None) -> None:
        api_logger.info("Restaurant created", restaurant_id=entity.id, owner_id=entity.owner_id)

    def _after_delete(self, entity_info: dict[str, Any], ctx: PermissionContext | None) -> None:
        api_logger.info(
            "Restaurant deleted",
            restaurant_id=entity_info["id"],
            actor_id=ctx.user_id if ctx is not None else None,
        )

    def _not_found(self, entity_id: int | None) -> NotFoundError:
        return RestaurantNotFoundError(entity_id)
