"""
Cart Service - a customer's pending order lines.

A user has one cart spanning restaurants. Each line freezes its price at
the time it is added: (item price + selected option modifiers) * quantity.
Orders are built from the lines of one restaurant.

Usage:
    from marketplace_api.services.domain import CartService

    service = CartService(db)
    line = service.add(user_id, menu_item_id=4, quantity=2, selected_options=[7], ctx=ctx)
    service.list_for_user(user_id, restaurant_id=1)
"""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from marketplace_api.models import CartItem, MenuItem, MenuItemOption
from marketplace_api.services.base_service import BaseCRUDService
from marketplace_api.services.crud import UserScopedRepository
from marketplace_api.services.permissions import Action, PermissionContext
from marketplace_shared.config.logging import get_logger
from marketplace_shared.utils.exceptions import MenuItemNotFoundError, ValidationError
from marketplace_shared.utils.schemas import CartItemOutput
from marketplace_shared.utils.validators import to_decimal, validate_quantity

logger = get_logger(__name__)


def line_unit_price(menu_item: MenuItem, options: Sequence[MenuItemOption]) -> Decimal:
    """Item price plus the modifiers of the selected options."""
    total = to_decimal(menu_item.price)
    for option in options:
        total += to_decimal(option.price_modifier)
    return to_decimal(total)


class CartService(BaseCRUDService[CartItem, CartItemOutput]):
    """
    Service for cart lines.

    Business rules:
    - Only available items of active restaurants can be added
    - Selected options must belong to the item
    - Adding the same item with the same options again merges the lines
    - Removing a missing line is not an error
    """

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=CartItem,
            output_schema=CartItemOutput,
            entity_name="Cart item",
            image_url_fields=set(),
            money_fields={"total_price"},
        )
        self._user_repo: UserScopedRepository[CartItem] = UserScopedRepository(CartItem, db)

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_for_user(self, user_id: int, restaurant_id: int | None = None) -> list[CartItemOutput]:
        """List a user's cart lines, optionally only those of one restaurant."""
        return [self.to_output(line) for line in self.find_lines(user_id, restaurant_id)]

    def find_lines(self, user_id: int, restaurant_id: int | None = None) -> Sequence[CartItem]:
        """Raw cart lines of a user (for order placement)."""
        query = select(CartItem).where(CartItem.user_id == user_id)
        if restaurant_id is not None:
            query = query.join(MenuItem, CartItem.menu_item_id == MenuItem.id).where(
                MenuItem.restaurant_id == restaurant_id
            )
        query = query.order_by(CartItem.created_at, CartItem.id)
        return self._user_repo.find_by_query(query)

    # =========================================================================
    # Command Methods
    # =========================================================================

    def add(
        self,
        user_id: int,
        menu_item_id: int,
        quantity: int = 1,
        selected_options: list[int] | None = None,
        ctx: PermissionContext | None = None,
    ) -> CartItemOutput:
        """
        Add a menu item to the user's cart.

        Raises:
            MenuItemNotFoundError: If the item does not exist.
            ValidationError: If the item is unavailable, an option belongs to
                another item or the quantity is out of range.
        """
        if ctx is not None:
            ctx.require(Action.CREATE, "CartItem")

        quantity = self._check_quantity(quantity)

        menu_item = self._db.get(MenuItem, menu_item_id)
        if menu_item is None:
            raise MenuItemNotFoundError(menu_item_id)
        if not menu_item.is_available:
            raise ValidationError("Menu item is not available", menu_item_id=menu_item_id)
        if not menu_item.restaurant.is_active:
            raise ValidationError(
                "Restaurant is not accepting orders",
                restaurant_id=menu_item.restaurant_id,
            )

        option_ids = sorted(set(selected_options or []))
        options = self._load_options(menu_item, option_ids)
        unit_price = line_unit_price(menu_item, options)
        stored_options = option_ids or None

        line = self._find_matching_line(user_id, menu_item_id, stored_options)
        if line is not None:
            quantity = self._check_quantity(line.quantity + quantity)
            line.quantity = quantity
            line.total_price = to_decimal(unit_price * quantity)
            line.touch()
        else:
            line = CartItem(
                user_id=user_id,
                menu_item_id=menu_item_id,
                quantity=quantity,
                selected_options=stored_options,
                total_price=to_decimal(unit_price * quantity),
            )
            self._db.add(line)

        self._commit("add item to cart", user_id=user_id, menu_item_id=menu_item_id)
        self._db.refresh(line)

        logger.debug("Cart line saved", cart_item_id=line.id, user_id=user_id, quantity=line.quantity)
        return self.to_output(line)

    def update_quantity(
        self,
        cart_item_id: int,
        quantity: int,
        ctx: PermissionContext | None = None,
    ) -> CartItemOutput:
        """
        Change a line's quantity, keeping its unit price.

        Raises:
            NotFoundError: If the line does not exist.
        """
        line = self._require_entity(cart_item_id)
        if ctx is not None:
            ctx.require(Action.UPDATE, line)

        quantity = self._check_quantity(quantity)
        unit_price = line.total_price / line.quantity
        line.quantity = quantity
        line.total_price = to_decimal(unit_price * quantity)
        line.touch()

        self._commit("update cart item", cart_item_id=cart_item_id)
        self._db.refresh(line)
        return self.to_output(line)

    def remove(self, cart_item_id: int, ctx: PermissionContext | None = None) -> bool:
        """Remove a line. Always True; a missing line is already removed."""
        line = self.get_entity(cart_item_id)
        if line is None:
            return True
        if ctx is not None:
            ctx.require(Action.DELETE, line)

        self._repo.delete(line)
        self._commit("remove cart item", cart_item_id=cart_item_id)
        return True

    def clear(self, user_id: int, restaurant_id: int | None = None) -> int:
        """
        Empty the user's cart, or only the lines of one restaurant.

        Returns:
            Number of lines removed.
        """
        removed = self._delete_lines(user_id, restaurant_id)
        self._commit("clear cart", user_id=user_id, restaurant_id=restaurant_id)
        return removed

    def _delete_lines(self, user_id: int, restaurant_id: int | None = None) -> int:
        """Delete cart lines without committing."""
        stmt = delete(CartItem).where(CartItem.user_id == user_id)
        if restaurant_id is not None:
            stmt = stmt.where(
                CartItem.menu_item_id.in_(
                    select(MenuItem.id).where(MenuItem.restaurant_id == restaurant_id)
                )
            )
        result = self._db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    @staticmethod
    def _check_quantity(quantity: int) -> int:
        try:
            return validate_quantity(quantity)
        except ValueError as e:
            raise ValidationError(str(e), field="quantity", value=quantity)

    def _load_options(self, menu_item: MenuItem, option_ids: list[int]) -> list[MenuItemOption]:
        if not option_ids:
            return []
        options = self._db.scalars(
            select(MenuItemOption).where(MenuItemOption.id.in_(option_ids))
        ).all()
        found = {option.id: option for option in options}
        for option_id in option_ids:
            option = found.get(option_id)
            if option is None or option.menu_item_id != menu_item.id:
                raise ValidationError(
                    f"Option {option_id} does not belong to this menu item",
                    field="selected_options",
                    menu_item_id=menu_item.id,
                )
        return [found[option_id] for option_id in option_ids]

    def _find_matching_line(
        self,
        user_id: int,
        menu_item_id: int,
        selected_options: list[int] | None,
    ) -> CartItem | None:
        lines = self._user_repo.find_by_user(
            user_id,
            where=[CartItem.menu_item_id == menu_item_id],
        )
        for line in lines:
            if (line.selected_options or None) == selected_options:
                return line
        return None
