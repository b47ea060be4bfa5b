"""
Cart endpoints. Every route acts on the caller's own cart.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from marketplace_api.routers._common import get_permission_context
from marketplace_api.services.domain import CartService
from marketplace_api.services.permissions import PermissionContext
from marketplace_shared.infrastructure.db import get_db
from marketplace_shared.utils.schemas import CartItemCreate, CartItemOutput, CartItemUpdate

router = APIRouter(prefix="/api/cart", tags=["cart"])


def _get_service(db: Session) -> CartService:
    return CartService(db)


@router.get("", response_model=list[CartItemOutput])
def list_cart(
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[CartItemOutput]:
    """The caller's cart lines, optionally only one restaurant's."""
    return _get_service(db).list_for_user(ctx.user_id, restaurant_id)


@router.post("", response_model=CartItemOutput, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    body: CartItemCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> CartItemOutput:
    """Add a menu item (with options) to the caller's cart."""
    return _get_service(db).add(
        ctx.user_id,
        body.menu_item_id,
        quantity=body.quantity,
        selected_options=body.selected_options,
        ctx=ctx,
    )


@router.patch("/{cart_item_id}", response_model=CartItemOutput)
def update_cart_item(
    cart_item_id: int,
    body: CartItemUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> CartItemOutput:
    """Change the quantity of a cart line."""
    return _get_service(db).update_quantity(cart_item_id, body.quantity, ctx)


@router.delete("/{cart_item_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_cart_item(
    cart_item_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> None:
    """Remove a cart line. Removing a missing line succeeds."""
    _get_service(db).remove(cart_item_id, ctx)


@router.delete("", response_model=dict[str, int])
def clear_cart(
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> dict[str, int]:
    """Empty the caller's cart, or only one restaurant's lines."""
    removed = _get_service(db).clear(ctx.user_id, restaurant_id)
    return {"removed": removed}
