"""
Order Service - order placement and lifecycle.

Orders are built from the customer's cart lines of one restaurant. Totals
are fixed at placement:

    subtotal = sum(cart line totals)
    tax      = subtotal * order_tax_rate
    total    = subtotal + order_delivery_fee + tax

Usage:
    from marketplace_api.services.domain import OrderService

    service = OrderService(db)
    order = service.place(user_id, restaurant_id, address_id, ctx=ctx)
    service.update_status(order.id, "confirmed", ctx=owner_ctx)
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace_api.models import Address, Order, OrderItem, Restaurant, User
from marketplace_api.services.base_service import BaseCRUDService
from marketplace_api.services.crud import UserScopedRepository, RestaurantScopedRepository
from marketplace_api.services.domain.cart_service import CartService
from marketplace_api.services.domain.order_tracking import build_tracking
from marketplace_api.services.permissions import Action, PermissionContext
from marketplace_shared.config.constants import (
    OrderStatus,
    PaymentStatus,
    get_allowed_order_transitions,
    is_valid_order_transition,
)
from marketplace_shared.config.logging import orders_logger
from marketplace_shared.config.settings import settings
from marketplace_shared.utils.exceptions import (
    EmptyCartError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    OrderNotFoundError,
    RestaurantNotFoundError,
    ValidationError,
)
from marketplace_shared.utils.schemas import OrderItemOutput, OrderOutput, OrderTrackingOutput
from marketplace_shared.utils.validators import to_decimal


def calculate_order_totals(line_totals: list[Decimal]) -> dict[str, Decimal]:
    """
    Compute the money fields of an order from its line totals.

    All amounts are rounded to cents.
    """
    subtotal = to_decimal(sum(line_totals, Decimal("0")))
    tax_amount = to_decimal(subtotal * to_decimal_rate(settings.order_tax_rate))
    delivery_fee = to_decimal(settings.order_delivery_fee)
    return {
        "subtotal": subtotal,
        "delivery_fee": delivery_fee,
        "tax_amount": tax_amount,
        "total_amount": to_decimal(subtotal + delivery_fee + tax_amount),
    }


def to_decimal_rate(rate: float) -> Decimal:
    """Exact decimal form of a configured rate (0.08 -> Decimal('0.08'))."""
    return Decimal(str(rate))


class OrderService(BaseCRUDService[Order, OrderOutput]):
    """
    Service for orders.

    Business rules:
    - The user, the restaurant (active) and the user's delivery address
      must exist
    - Placement needs at least one cart line of that restaurant; those
      lines become order items and leave the cart in the same transaction
    - Status follows ORDER_TRANSITIONS; re-sending the current status of a
      non-terminal order only refreshes the ETA
    - Customers may only cancel their own orders while still created
    """

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=Order,
            output_schema=OrderOutput,
            entity_name="Order",
            image_url_fields=set(),
        )
        self._user_repo: UserScopedRepository[Order] = UserScopedRepository(Order, db)
        self._restaurant_orders: RestaurantScopedRepository[Order] = RestaurantScopedRepository(Order, db)
        self._cart = CartService(db)

    # =========================================================================
    # Query Methods
    # =========================================================================

    def get_visible(self, order_id: int, ctx: PermissionContext | None = None) -> OrderOutput | None:
        """
        Get an order, or None when it does not exist.

        Raises:
            ForbiddenError: If the caller may not see this order.
        """
        order = self.get_entity(order_id)
        if order is None:
            return None
        if ctx is not None:
            ctx.require(Action.READ, order)
        return self.to_output(order)

    def list_items(self, order_id: int, ctx: PermissionContext | None = None) -> list[OrderItemOutput]:
        """List an order's lines."""
        order = self._require_entity(order_id)
        if ctx is not None:
            ctx.require(Action.READ, order)
        items = self._db.scalars(
            select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        ).all()
        return [OrderItemOutput.model_validate(item) for item in items]

    def list_for_user(self, user_id: int) -> list[OrderOutput]:
        """List a customer's orders, newest first."""
        orders = self._user_repo.find_by_user(
            user_id,
            order_by=(Order.created_at.desc(), Order.id.desc()),
        )
        return [self.to_output(o) for o in orders]

    def list_for_restaurant(
        self,
        restaurant_id: int,
        ctx: PermissionContext | None = None,
        *,
        status: str | None = None,
    ) -> list[OrderOutput]:
        """
        List the orders of a restaurant, newest first.

        Raises:
            RestaurantNotFoundError: If the restaurant does not exist.
            ForbiddenError: If the caller does not manage the restaurant.
        """
        restaurant = self._db.get(Restaurant, restaurant_id)
        if restaurant is None or restaurant.is_deleted:
            raise RestaurantNotFoundError(restaurant_id)
        if ctx is not None:
            ctx.require(Action.UPDATE, restaurant)

        where = [Order.status == status] if status else None
        orders = self._restaurant_orders.find_by_restaurant(
            restaurant_id,
            where=where,
            order_by=(Order.created_at.desc(), Order.id.desc()),
        )
        return [self.to_output(o) for o in orders]

    def list_all_orders(self, ctx: PermissionContext | None = None) -> list[OrderOutput]:
        """List every order (admin)."""
        if ctx is not None:
            ctx.require_admin()
        return self.list_all(order_by=(Order.created_at.desc(), Order.id.desc()))

    def list_visible(self, ctx: PermissionContext) -> list[OrderOutput]:
        """List the orders the caller may see: own, owned restaurants', or all."""
        query = ctx.filter_query(select(Order), Order).order_by(Order.created_at.desc(), Order.id.desc())
        return [self.to_output(o) for o in self._repo.find_by_query(query)]

    def tracking(
        self,
        order_id: int,
        ctx: PermissionContext | None = None,
        now: datetime | None = None,
    ) -> OrderTrackingOutput:
        """
        Tracking view of an order.

        Raises:
            OrderNotFoundError: If the order does not exist.
        """
        order = self._require_entity(order_id)
        if ctx is not None:
            ctx.require(Action.READ, order)
        return build_tracking(order, now)

    # =========================================================================
    # Command Methods
    # =========================================================================

    def place(
        self,
        user_id: int,
        restaurant_id: int,
        delivery_address_id: int,
        notes: str | None = None,
        ctx: PermissionContext | None = None,
    ) -> OrderOutput:
        """
        Place an order from the user's cart lines of one restaurant.

        Raises:
            NotFoundError: If the user, restaurant or address does not exist.
            ValidationError: If the restaurant is inactive, the address is
                not the user's or there are no cart lines for the restaurant.
        """
        if ctx is not None:
            ctx.require(Action.CREATE, "Order")

        if self._db.get(User, user_id) is None:
            raise NotFoundError("User", user_id)

        restaurant = self._db.get(Restaurant, restaurant_id)
        if restaurant is None or restaurant.is_deleted:
            raise RestaurantNotFoundError(restaurant_id)
        if not restaurant.is_active:
            raise ValidationError("Restaurant is not accepting orders", restaurant_id=restaurant_id)

        address = self._db.get(Address, delivery_address_id)
        if address is None:
            raise NotFoundError("Address", delivery_address_id)
        if address.user_id != user_id:
            raise ValidationError(
                "Delivery address does not belong to this user",
                field="delivery_address_id",
                user_id=user_id,
            )

        lines = self._cart.find_lines(user_id, restaurant_id)
        if not lines:
            raise EmptyCartError(user_id=user_id, restaurant_id=restaurant_id)

        totals = calculate_order_totals([line.total_price for line in lines])

        order = Order(
            user_id=user_id,
            restaurant_id=restaurant_id,
            delivery_address_id=delivery_address_id,
            status=OrderStatus.CREATED,
            payment_status=PaymentStatus.PENDING,
            notes=notes,
            **totals,
        )
        for line in lines:
            order.items.append(
                OrderItem(
                    menu_item_id=line.menu_item_id,
                    quantity=line.quantity,
                    unit_price=to_decimal(line.total_price / line.quantity),
                    selected_options=line.selected_options,
                    total_price=to_decimal(line.total_price),
                )
            )
        self._db.add(order)

        for line in lines:
            self._db.delete(line)

        self._commit("place order", user_id=user_id, restaurant_id=restaurant_id)
        self._db.refresh(order)

        orders_logger.info(
            "Order placed",
            order_id=order.id,
            user_id=user_id,
            restaurant_id=restaurant_id,
            items=len(lines),
            total_amount=str(order.total_amount),
        )
        return self.to_output(order)

    def update_status(
        self,
        order_id: int,
        status: str,
        estimated_delivery_time: datetime | None = None,
        ctx: PermissionContext | None = None,
    ) -> OrderOutput:
        """
        Move an order along its lifecycle.

        Raises:
            OrderNotFoundError: If the order does not exist.
            ForbiddenError: If the caller may not change this order.
            InvalidTransitionError: If the move is not allowed.
        """
        order = self._require_entity(order_id)
        old_status = order.status

        if ctx is not None:
            ctx.require(Action.UPDATE, order)
            if self._acts_as_customer(order, ctx):
                self._check_customer_update(order, status, ctx)

        if status not in OrderStatus.ALL or not is_valid_order_transition(old_status, status):
            raise InvalidTransitionError(
                "order",
                old_status,
                status,
                order_id=order_id,
                allowed=get_allowed_order_transitions(old_status),
            )

        order.status = status
        if estimated_delivery_time is not None:
            order.estimated_delivery_time = estimated_delivery_time
        order.touch()

        self._commit("update order status", order_id=order_id)
        self._db.refresh(order)

        orders_logger.info(
            "Order status changed",
            order_id=order_id,
            from_status=old_status,
            to_status=status,
            actor_id=ctx.user_id if ctx is not None else None,
        )
        return self.to_output(order)

    def cancel(self, order_id: int, ctx: PermissionContext | None = None) -> OrderOutput:
        """Cancel an order (same rules as update_status)."""
        return self.update_status(order_id, OrderStatus.CANCELED, ctx=ctx)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    @staticmethod
    def _acts_as_customer(order: Order, ctx: PermissionContext) -> bool:
        """True when the caller only reaches the order as the customer who placed it."""
        return not ctx.is_admin and order.restaurant.owner_id != ctx.user_id

    @staticmethod
    def _check_customer_update(order: Order, status: str, ctx: PermissionContext) -> None:
        if status != OrderStatus.CANCELED:
            raise ForbiddenError("change the status of this order", user_id=ctx.user_id, order_id=order.id)
        if order.status not in OrderStatus.CUSTOMER_CANCELABLE:
            raise InvalidTransitionError(
                "order",
                order.status,
                status,
                order_id=order.id,
                reason="customers can only cancel orders that are not yet confirmed",
            )

    def _not_found(self, entity_id: int | None) -> NotFoundError:
        return OrderNotFoundError(entity_id)
