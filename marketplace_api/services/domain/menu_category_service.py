"""
Menu Category Service.

Usage:
    from marketplace_api.services.domain import MenuCategoryService

    service = MenuCategoryService(db)
    categories = service.list_for_restaurant(restaurant_id)
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from marketplace_api.models import MenuCategory, MenuItem
from marketplace_api.services.base_service import RestaurantScopedService
from marketplace_shared.utils.exceptions import ValidationError
from marketplace_shared.utils.schemas import MenuCategoryOutput


class MenuCategoryService(RestaurantScopedService[MenuCategory, MenuCategoryOutput]):
    """
    Service for menu categories.

    Business rules:
    - Categories belong to an existing restaurant
    - Public listings show active categories by sort_order, then name
    - A category that still holds menu items cannot be deleted
    """

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=MenuCategory,
            output_schema=MenuCategoryOutput,
            entity_name="Menu category",
            image_url_fields=set(),
        )

    def list_for_restaurant(
        self,
        restaurant_id: int,
        *,
        include_inactive: bool = False,
    ) -> list[MenuCategoryOutput]:
        """List a restaurant's categories in display order."""
        return self.list_by_restaurant(
            restaurant_id,
            include_inactive=include_inactive,
            order_by=(MenuCategory.sort_order, MenuCategory.name, MenuCategory.id),
        )

    def _validate_delete(self, entity: MenuCategory) -> None:
        item_count = self._db.scalar(
            select(func.count()).select_from(MenuItem).where(MenuItem.category_id == entity.id)
        )
        if item_count:
            raise ValidationError(
                f"Cannot delete category with {item_count} menu item(s)",
                category_id=entity.id,
            )

    def _get_entity_info(self, entity: MenuCategory) -> dict[str, Any]:
        return {"id": entity.id, "name": entity.name, "restaurant_id": entity.restaurant_id}
