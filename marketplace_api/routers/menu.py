"""
Menu endpoints: categories, menu items and their options.
Catalog reads are public; changes go through the capability policy.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from marketplace_api.routers._common import get_permission_context
from marketplace_api.services.domain import (
    MenuCategoryService,
    MenuItemOptionService,
    MenuItemService,
)
from marketplace_api.services.permissions import PermissionContext
from marketplace_shared.infrastructure.db import get_db
from marketplace_shared.utils.exceptions import MenuItemNotFoundError, NotFoundError
from marketplace_shared.utils.schemas import (
    MenuCategoryCreate,
    MenuCategoryOutput,
    MenuCategoryUpdate,
    MenuItemAvailabilityUpdate,
    MenuItemCreate,
    MenuItemOptionCreate,
    MenuItemOptionOutput,
    MenuItemOptionUpdate,
    MenuItemOutput,
    MenuItemUpdate,
)

router = APIRouter(prefix="/api", tags=["menu"])


# =============================================================================
# Categories
# =============================================================================


@router.get("/restaurants/{restaurant_id}/categories", response_model=list[MenuCategoryOutput])
def list_categories(
    restaurant_id: int,
    db: Session = Depends(get_db),
) -> list[MenuCategoryOutput]:
    """Active categories of a restaurant in display order. Public."""
    return MenuCategoryService(db).list_for_restaurant(restaurant_id)


@router.post(
    "/restaurants/{restaurant_id}/categories",
    response_model=MenuCategoryOutput,
    status_code=status.HTTP_201_CREATED,
)
def create_category(
    restaurant_id: int,
    body: MenuCategoryCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> MenuCategoryOutput:
    """Create a category. Restaurant owner or admin."""
    data = body.model_dump()
    data["restaurant_id"] = restaurant_id
    return MenuCategoryService(db).create(data, ctx)


@router.patch("/menu-categories/{category_id}", response_model=MenuCategoryOutput)
def update_category(
    category_id: int,
    body: MenuCategoryUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> MenuCategoryOutput:
    """Update a category. Restaurant owner or admin."""
    return MenuCategoryService(db).update(category_id, body.model_dump(exclude_unset=True), ctx)


@router.delete("/menu-categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> None:
    """Delete an empty category. Restaurant owner or admin."""
    MenuCategoryService(db).delete(category_id, ctx)


# =============================================================================
# Menu Items
# =============================================================================


@router.get("/restaurants/{restaurant_id}/menu-items", response_model=list[MenuItemOutput])
def list_menu_items(
    restaurant_id: int,
    category_id: int | None = None,
    db: Session = Depends(get_db),
) -> list[MenuItemOutput]:
    """Menu items of a restaurant, unavailable ones included. Public."""
    return MenuItemService(db).list_for_restaurant(restaurant_id, category_id=category_id)


@router.post(
    "/restaurants/{restaurant_id}/menu-items",
    response_model=MenuItemOutput,
    status_code=status.HTTP_201_CREATED,
)
def create_menu_item(
    restaurant_id: int,
    body: MenuItemCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> MenuItemOutput:
    """Create a menu item. Restaurant owner or admin."""
    data = body.model_dump()
    data["restaurant_id"] = restaurant_id
    return MenuItemService(db).create(data, ctx)


@router.get("/menu-items/{menu_item_id}", response_model=MenuItemOutput)
def get_menu_item(
    menu_item_id: int,
    db: Session = Depends(get_db),
) -> MenuItemOutput:
    """Get a menu item. Public."""
    item = MenuItemService(db).find_by_id(menu_item_id)
    if item is None:
        raise MenuItemNotFoundError(menu_item_id)
    return item


@router.patch("/menu-items/{menu_item_id}", response_model=MenuItemOutput)
def update_menu_item(
    menu_item_id: int,
    body: MenuItemUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> MenuItemOutput:
    """Update a menu item. Restaurant owner or admin."""
    return MenuItemService(db).update(menu_item_id, body.model_dump(exclude_unset=True), ctx)


@router.patch("/menu-items/{menu_item_id}/availability", response_model=MenuItemOutput)
def update_menu_item_availability(
    menu_item_id: int,
    body: MenuItemAvailabilityUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> MenuItemOutput:
    """Mark a menu item available or sold out. Restaurant owner or admin."""
    item = MenuItemService(db).update_availability(menu_item_id, body.is_available, ctx)
    if item is None:
        raise MenuItemNotFoundError(menu_item_id)
    return item


@router.delete("/menu-items/{menu_item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_item(
    menu_item_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> None:
    """Delete a menu item that was never ordered. Restaurant owner or admin."""
    MenuItemService(db).delete(menu_item_id, ctx)


# =============================================================================
# Menu Item Options
# =============================================================================


@router.get("/menu-items/{menu_item_id}/options", response_model=list[MenuItemOptionOutput])
def list_menu_item_options(
    menu_item_id: int,
    db: Session = Depends(get_db),
) -> list[MenuItemOptionOutput]:
    """Options of a menu item in display order. Public."""
    return MenuItemOptionService(db).list_for_menu_item(menu_item_id)


@router.post(
    "/menu-items/{menu_item_id}/options",
    response_model=MenuItemOptionOutput,
    status_code=status.HTTP_201_CREATED,
)
def create_menu_item_option(
    menu_item_id: int,
    body: MenuItemOptionCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> MenuItemOptionOutput:
    """Add an option to a menu item. Restaurant owner or admin."""
    data = body.model_dump()
    data["menu_item_id"] = menu_item_id
    return MenuItemOptionService(db).create(data, ctx)


@router.patch("/menu-item-options/{option_id}", response_model=MenuItemOptionOutput)
def update_menu_item_option(
    option_id: int,
    body: MenuItemOptionUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> MenuItemOptionOutput:
    """Update an option. Restaurant owner or admin."""
    return MenuItemOptionService(db).update(option_id, body.model_dump(exclude_unset=True), ctx)


@router.delete("/menu-item-options/{option_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_item_option(
    option_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> None:
    """Delete an option. Restaurant owner or admin."""
    if not MenuItemOptionService(db).delete(option_id, ctx):
        raise NotFoundError("Menu item option", option_id)
