"""
Tests for OrderService: placement, totals and the status lifecycle.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from marketplace_api.models import Address, CartItem, Order
from marketplace_api.services.domain import CartService, OrderService, calculate_order_totals
from marketplace_shared.config.constants import OrderStatus
from marketplace_shared.utils.exceptions import (
    EmptyCartError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    OrderNotFoundError,
    RestaurantNotFoundError,
    ValidationError,
)


@pytest.fixture
def order_service(db_session):
    return OrderService(db_session)


@pytest.fixture
def filled_cart(db_session, seed_customer, seed_menu_item, seed_option):
    """Two margheritas with extra cheese: (12.50 + 1.50) * 2."""
    return CartService(db_session).add(
        seed_customer.id,
        seed_menu_item.id,
        quantity=2,
        selected_options=[seed_option.id],
    )


@pytest.fixture
def placed_order(order_service, filled_cart, seed_customer, seed_restaurant, seed_address, customer_ctx):
    return order_service.place(seed_customer.id, seed_restaurant.id, seed_address.id, ctx=customer_ctx)


class TestOrderTotals:
    """calculate_order_totals with the default tax rate and delivery fee."""

    def test_default_rates(self):
        totals = calculate_order_totals([Decimal("28.00")])
        assert totals == {
            "subtotal": Decimal("28.00"),
            "delivery_fee": Decimal("3.99"),
            "tax_amount": Decimal("2.24"),
            "total_amount": Decimal("34.23"),
        }

    def test_tax_rounds_half_up(self):
        """10.06 * 0.08 = 0.8048 -> 0.80; 10.07 * 0.08 = 0.8056 -> 0.81."""
        assert calculate_order_totals([Decimal("10.06")])["tax_amount"] == Decimal("0.80")
        assert calculate_order_totals([Decimal("10.07")])["tax_amount"] == Decimal("0.81")


class TestPlaceOrder:
    """Building orders from cart lines."""

    def test_place_order_from_cart(self, db_session, placed_order, seed_customer):
        assert placed_order.status == OrderStatus.CREATED
        assert placed_order.payment_status == "pending"
        assert placed_order.subtotal == 28.0
        assert placed_order.delivery_fee == 3.99
        assert placed_order.tax_amount == 2.24
        assert placed_order.total_amount == 34.23

        remaining = db_session.scalar(
            select(func.count()).select_from(CartItem).where(CartItem.user_id == seed_customer.id)
        )
        assert remaining == 0

    def test_order_items_copy_cart_prices(self, order_service, placed_order, seed_option, customer_ctx):
        """Unit price includes option modifiers."""
        items = order_service.list_items(placed_order.id, customer_ctx)

        assert len(items) == 1
        assert items[0].quantity == 2
        assert items[0].unit_price == 14.0
        assert items[0].total_price == 28.0
        assert items[0].selected_options == [seed_option.id]

    def test_only_that_restaurants_lines_are_used(
        self, db_session, order_service, filled_cart, seed_customer, seed_owner, seed_address
    ):
        """Lines of other restaurants stay in the cart."""
        from marketplace_api.models import MenuCategory, MenuItem, Restaurant

        other = Restaurant(owner_id=seed_owner.id, name="Sushi Place", address="2 Road", phone="2")
        db_session.add(other)
        db_session.flush()
        category = MenuCategory(restaurant_id=other.id, name="Rolls")
        db_session.add(category)
        db_session.flush()
        roll = MenuItem(restaurant_id=other.id, category_id=category.id, name="Roll", price=Decimal("8.00"))
        db_session.add(roll)
        db_session.commit()
        CartService(db_session).add(seed_customer.id, roll.id)

        order = order_service.place(seed_customer.id, other.id, seed_address.id)

        assert order.subtotal == 8.0
        assert len(CartService(db_session).list_for_user(seed_customer.id)) == 1

    def test_empty_cart(self, order_service, seed_customer, seed_restaurant, seed_address):
        with pytest.raises(EmptyCartError):
            order_service.place(seed_customer.id, seed_restaurant.id, seed_address.id)

    def test_unknown_restaurant(self, order_service, filled_cart, seed_customer, seed_address):
        with pytest.raises(RestaurantNotFoundError):
            order_service.place(seed_customer.id, 9999, seed_address.id)

    def test_unknown_address(self, order_service, filled_cart, seed_customer, seed_restaurant):
        with pytest.raises(NotFoundError):
            order_service.place(seed_customer.id, seed_restaurant.id, 9999)

    def test_address_of_another_user(
        self, db_session, order_service, filled_cart, seed_customer, seed_owner, seed_restaurant
    ):
        address = Address(
            user_id=seed_owner.id,
            street_address="9 Elsewhere",
            city="X",
            state="Y",
            postal_code="1",
            country="US",
        )
        db_session.add(address)
        db_session.commit()

        with pytest.raises(ValidationError):
            order_service.place(seed_customer.id, seed_restaurant.id, address.id)

    def test_inactive_restaurant(
        self, db_session, order_service, filled_cart, seed_customer, seed_restaurant, seed_address
    ):
        seed_restaurant.is_active = False
        db_session.commit()

        with pytest.raises(ValidationError):
            order_service.place(seed_customer.id, seed_restaurant.id, seed_address.id)

        # Failed placement keeps the cart intact
        assert len(CartService(db_session).list_for_user(seed_customer.id)) == 1


class TestOrderStatus:
    """Status transitions and who may request them."""

    def test_owner_moves_order_along(self, order_service, placed_order, owner_ctx):
        for status in (
            OrderStatus.CONFIRMED,
            OrderStatus.PREPARING,
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.DELIVERED,
        ):
            order = order_service.update_status(placed_order.id, status, ctx=owner_ctx)
            assert order.status == status

    def test_skipping_a_step_is_rejected(self, order_service, placed_order, owner_ctx):
        with pytest.raises(InvalidTransitionError):
            order_service.update_status(placed_order.id, OrderStatus.DELIVERED, ctx=owner_ctx)

    def test_terminal_status_is_final(self, order_service, placed_order, admin_ctx):
        order_service.cancel(placed_order.id, admin_ctx)
        with pytest.raises(InvalidTransitionError):
            order_service.update_status(placed_order.id, OrderStatus.CONFIRMED, ctx=admin_ctx)

    def test_unknown_status_is_rejected(self, order_service, placed_order, admin_ctx):
        with pytest.raises(InvalidTransitionError):
            order_service.update_status(placed_order.id, "teleported", ctx=admin_ctx)

    def test_same_status_refreshes_eta(self, db_session, order_service, placed_order, owner_ctx):
        eta = datetime.now(timezone.utc) + timedelta(minutes=30)
        order_service.update_status(placed_order.id, OrderStatus.CONFIRMED, ctx=owner_ctx)

        order = order_service.update_status(
            placed_order.id,
            OrderStatus.CONFIRMED,
            estimated_delivery_time=eta,
            ctx=owner_ctx,
        )

        assert order.status == OrderStatus.CONFIRMED
        assert order.estimated_delivery_time is not None

    def test_customer_cancels_created_order(self, order_service, placed_order, customer_ctx):
        order = order_service.cancel(placed_order.id, customer_ctx)
        assert order.status == OrderStatus.CANCELED

    def test_customer_cannot_cancel_confirmed_order(
        self, order_service, placed_order, owner_ctx, customer_ctx
    ):
        order_service.update_status(placed_order.id, OrderStatus.CONFIRMED, ctx=owner_ctx)
        with pytest.raises(InvalidTransitionError):
            order_service.cancel(placed_order.id, customer_ctx)

    def test_customer_cannot_confirm(self, order_service, placed_order, customer_ctx):
        with pytest.raises(ForbiddenError):
            order_service.update_status(placed_order.id, OrderStatus.CONFIRMED, ctx=customer_ctx)

    def test_other_owner_cannot_touch_order(self, order_service, placed_order, seed_other_owner):
        from marketplace_api.services.permissions import PermissionContext

        with pytest.raises(ForbiddenError):
            order_service.update_status(
                placed_order.id,
                OrderStatus.CONFIRMED,
                ctx=PermissionContext(seed_other_owner),
            )

    def test_missing_order(self, order_service, admin_ctx):
        with pytest.raises(OrderNotFoundError):
            order_service.update_status(9999, OrderStatus.CONFIRMED, ctx=admin_ctx)


class TestOrderQueries:
    """Visibility of orders."""

    def test_customer_sees_own_order(self, order_service, placed_order, customer_ctx):
        assert order_service.get_visible(placed_order.id, customer_ctx).id == placed_order.id

    def test_missing_order_is_none(self, order_service, customer_ctx):
        assert order_service.get_visible(9999, customer_ctx) is None

    def test_other_owner_cannot_read(self, order_service, placed_order, seed_other_owner):
        from marketplace_api.services.permissions import PermissionContext

        with pytest.raises(ForbiddenError):
            order_service.get_visible(placed_order.id, PermissionContext(seed_other_owner))

    def test_restaurant_listing_with_status_filter(self, order_service, placed_order, seed_restaurant, owner_ctx):
        assert len(order_service.list_for_restaurant(seed_restaurant.id, owner_ctx)) == 1
        assert order_service.list_for_restaurant(
            seed_restaurant.id, owner_ctx, status=OrderStatus.DELIVERED
        ) == []

    def test_restaurant_listing_forbidden_for_customers(
        self, order_service, placed_order, seed_restaurant, customer_ctx
    ):
        with pytest.raises(ForbiddenError):
            order_service.list_for_restaurant(seed_restaurant.id, customer_ctx)

    def test_list_visible(self, order_service, placed_order, customer_ctx, owner_ctx, seed_other_owner):
        from marketplace_api.services.permissions import PermissionContext

        assert [o.id for o in order_service.list_visible(customer_ctx)] == [placed_order.id]
        assert [o.id for o in order_service.list_visible(owner_ctx)] == [placed_order.id]
        assert order_service.list_visible(PermissionContext(seed_other_owner)) == []

    def test_tracking(self, order_service, placed_order, customer_ctx):
        tracking = order_service.tracking(placed_order.id, customer_ctx)
        assert tracking.step == 1
        assert tracking.estimated_delivery_text == "45-60 minutes"

    def test_order_rows_persisted(self, db_session, placed_order):
        assert db_session.scalar(select(func.count()).select_from(Order)) == 1
