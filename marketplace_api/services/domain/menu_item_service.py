"""
Menu Item Service - dishes, prices and availability.

Usage:
    from marketplace_api.services.domain import MenuItemService

    service = MenuItemService(db)
    items = service.list_for_restaurant(restaurant_id, category_id=3)
    service.update_availability(item_id, False, ctx)
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from marketplace_api.models import CartItem, MenuCategory, MenuItem, OrderItem
from marketplace_api.services.base_service import RestaurantScopedService
from marketplace_api.services.permissions import Action, PermissionContext
from marketplace_shared.config.logging import get_logger
from marketplace_shared.utils.exceptions import (
    MenuItemNotFoundError,
    NotFoundError,
    ValidationError,
)
from marketplace_shared.utils.schemas import MenuItemOutput

logger = get_logger(__name__)


class MenuItemService(RestaurantScopedService[MenuItem, MenuItemOutput]):
    """
    Service for menu items.

    Business rules:
    - Items belong to an existing restaurant and to one of its categories
    - Price is stored as a 2-place decimal and must be positive
    - Unavailable items stay listed; the cart refuses them
    - Items that appear on an order cannot be deleted; cart lines and
      options go with a deleted item
    """

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=MenuItem,
            output_schema=MenuItemOutput,
            entity_name="Menu item",
            money_fields={"price"},
        )

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_for_restaurant(
        self,
        restaurant_id: int,
        *,
        category_id: int | None = None,
    ) -> list[MenuItemOutput]:
        """List a restaurant's items (available or not) in display order."""
        where = []
        if category_id is not None:
            where.append(MenuItem.category_id == category_id)
        return self.list_by_restaurant(
            restaurant_id,
            where=where,
            order_by=(MenuItem.sort_order, MenuItem.name, MenuItem.id),
        )

    # =========================================================================
    # Command Methods
    # =========================================================================

    def update_availability(
        self,
        menu_item_id: int,
        is_available: bool,
        ctx: PermissionContext | None = None,
    ) -> MenuItemOutput | None:
        """
        Toggle whether an item can be ordered.

        Returns:
            Updated item, or None if it does not exist.
        """
        item = self.get_entity(menu_item_id)
        if item is None:
            return None

        if ctx is not None:
            ctx.require(Action.UPDATE, item)

        item.is_available = is_available
        item.touch()
        self._commit("update menu item availability", menu_item_id=menu_item_id)
        self._db.refresh(item)

        logger.info("Menu item availability changed", menu_item_id=menu_item_id, is_available=is_available)
        return self.to_output(item)

    # =========================================================================
    # Validation Hooks
    # =========================================================================

    def _check_category(self, category_id: int | None, restaurant_id: int) -> None:
        category = self._db.get(MenuCategory, category_id) if category_id is not None else None
        if category is None:
            raise NotFoundError("Menu category", category_id)
        if category.restaurant_id != restaurant_id:
            raise ValidationError(
                "Category does not belong to this restaurant",
                field="category_id",
                category_id=category_id,
                restaurant_id=restaurant_id,
            )

    def _validate_create(self, data: dict[str, Any]) -> None:
        super()._validate_create(data)
        self._check_category(data.get("category_id"), data["restaurant_id"])

    def _validate_update(self, entity: MenuItem, data: dict[str, Any]) -> None:
        super()._validate_update(entity, data)
        if "category_id" in data and data["category_id"] != entity.category_id:
            self._check_category(data["category_id"], entity.restaurant_id)

    def _validate_delete(self, entity: MenuItem) -> None:
        ordered = self._db.scalar(
            select(func.count()).select_from(OrderItem).where(OrderItem.menu_item_id == entity.id)
        )
        if ordered:
            raise ValidationError(
                "Menu item has been ordered and cannot be deleted; mark it unavailable instead",
                menu_item_id=entity.id,
            )

    # =========================================================================
    # Lifecycle Hooks
    # =========================================================================

    def _before_delete_commit(self, entity_info: dict[str, Any]) -> None:
        self._db.execute(delete(CartItem).where(CartItem.menu_item_id == entity_info["id"]))

    def _after_create(self, entity: MenuItem, ctx: PermissionContext | None) -> None:
        logger.info("Menu item created", menu_item_id=entity.id, restaurant_id=entity.restaurant_id)

    def _not_found(self, entity_id: int | None) -> NotFoundError:
        return MenuItemNotFoundError(entity_id)
