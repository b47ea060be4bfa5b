"""
Menu Item Option Service - add-ons and variants of a menu item.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from marketplace_api.models import MenuItem, MenuItemOption
from marketplace_api.services.base_service import BaseCRUDService
from marketplace_api.services.permissions import Action, PermissionContext
from marketplace_shared.utils.exceptions import MenuItemNotFoundError
from marketplace_shared.utils.schemas import MenuItemOptionOutput


class MenuItemOptionService(BaseCRUDService[MenuItemOption, MenuItemOptionOutput]):
    """
    Service for menu item options.

    Business rules:
    - Options belong to an existing menu item and never move to another
    - price_modifier may be negative
    - Deleting a missing option reports False instead of failing
    """

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=MenuItemOption,
            output_schema=MenuItemOptionOutput,
            entity_name="Menu item option",
            image_url_fields=set(),
            money_fields={"price_modifier"},
        )

    def list_for_menu_item(self, menu_item_id: int) -> list[MenuItemOptionOutput]:
        """List an item's options in display order."""
        return self.list_all(
            where=[MenuItemOption.menu_item_id == menu_item_id],
            order_by=(MenuItemOption.sort_order, MenuItemOption.name, MenuItemOption.id),
        )

    def delete(self, entity_id: int, ctx: PermissionContext | None = None) -> bool:
        """Delete an option. Returns False when it does not exist."""
        if not self.exists(entity_id):
            return False
        return super().delete(entity_id, ctx)

    def _get_menu_item(self, menu_item_id: int | None) -> MenuItem:
        menu_item = self._db.get(MenuItem, menu_item_id) if menu_item_id is not None else None
        if menu_item is None:
            raise MenuItemNotFoundError(menu_item_id)
        return menu_item

    def _authorize_create(self, data: dict[str, Any], ctx: PermissionContext) -> None:
        menu_item = self._get_menu_item(data.get("menu_item_id"))
        ctx.require(Action.CREATE, "MenuItemOption", restaurant=menu_item.restaurant)

    def _validate_create(self, data: dict[str, Any]) -> None:
        self._get_menu_item(data.get("menu_item_id"))

    def _validate_update(self, entity: MenuItemOption, data: dict[str, Any]) -> None:
        data.pop("menu_item_id", None)
