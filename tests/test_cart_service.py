"""
Tests for CartService.
"""

from decimal import Decimal

import pytest

from marketplace_api.models import MenuItemOption
from marketplace_api.services.domain import CartService
from marketplace_api.services.domain.cart_service import line_unit_price
from marketplace_shared.utils.exceptions import (
    ForbiddenError,
    MenuItemNotFoundError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def cart_service(db_session):
    return CartService(db_session)


class TestAddToCart:
    """Adding lines."""

    def test_add_plain_item(self, cart_service, seed_customer, seed_menu_item, customer_ctx):
        line = cart_service.add(seed_customer.id, seed_menu_item.id, quantity=3, ctx=customer_ctx)

        assert line.quantity == 3
        assert line.total_price == 37.5
        assert line.selected_options is None

    def test_add_with_option(self, cart_service, seed_customer, seed_menu_item, seed_option):
        line = cart_service.add(seed_customer.id, seed_menu_item.id, selected_options=[seed_option.id])

        assert line.total_price == 14.0
        assert line.selected_options == [seed_option.id]

    def test_same_item_and_options_merge(self, cart_service, seed_customer, seed_menu_item, seed_option):
        first = cart_service.add(seed_customer.id, seed_menu_item.id, selected_options=[seed_option.id])
        second = cart_service.add(
            seed_customer.id, seed_menu_item.id, quantity=2, selected_options=[seed_option.id]
        )

        assert second.id == first.id
        assert second.quantity == 3
        assert second.total_price == 42.0
        assert len(cart_service.list_for_user(seed_customer.id)) == 1

    def test_different_options_make_new_line(self, cart_service, seed_customer, seed_menu_item, seed_option):
        cart_service.add(seed_customer.id, seed_menu_item.id)
        cart_service.add(seed_customer.id, seed_menu_item.id, selected_options=[seed_option.id])

        assert len(cart_service.list_for_user(seed_customer.id)) == 2

    def test_unknown_item(self, cart_service, seed_customer):
        with pytest.raises(MenuItemNotFoundError):
            cart_service.add(seed_customer.id, 9999)

    def test_unavailable_item(self, db_session, cart_service, seed_customer, seed_menu_item):
        seed_menu_item.is_available = False
        db_session.commit()

        with pytest.raises(ValidationError):
            cart_service.add(seed_customer.id, seed_menu_item.id)

    def test_inactive_restaurant(self, db_session, cart_service, seed_customer, seed_menu_item, seed_restaurant):
        seed_restaurant.is_active = False
        db_session.commit()

        with pytest.raises(ValidationError):
            cart_service.add(seed_customer.id, seed_menu_item.id)

    def test_option_of_another_item(self, db_session, cart_service, seed_customer, seed_menu_item, seed_restaurant, seed_category):
        from marketplace_api.models import MenuItem

        other = MenuItem(
            restaurant_id=seed_restaurant.id,
            category_id=seed_category.id,
            name="Marinara",
            price=Decimal("9.00"),
        )
        db_session.add(other)
        db_session.flush()
        foreign_option = MenuItemOption(menu_item_id=other.id, name="Garlic", price_modifier=Decimal("0.50"))
        db_session.add(foreign_option)
        db_session.commit()

        with pytest.raises(ValidationError):
            cart_service.add(seed_customer.id, seed_menu_item.id, selected_options=[foreign_option.id])

    @pytest.mark.parametrize("quantity", [0, -1, 100])
    def test_quantity_out_of_range(self, cart_service, seed_customer, seed_menu_item, quantity):
        with pytest.raises(ValidationError):
            cart_service.add(seed_customer.id, seed_menu_item.id, quantity=quantity)


class TestCartLines:
    """Updating, removing and clearing lines."""

    def test_update_quantity_keeps_unit_price(
        self, db_session, cart_service, seed_customer, seed_menu_item, customer_ctx
    ):
        """Later price changes do not reprice an existing line."""
        line = cart_service.add(seed_customer.id, seed_menu_item.id)
        seed_menu_item.price = Decimal("20.00")
        db_session.commit()

        updated = cart_service.update_quantity(line.id, 4, customer_ctx)

        assert updated.quantity == 4
        assert updated.total_price == 50.0

    def test_update_missing_line(self, cart_service, customer_ctx):
        with pytest.raises(NotFoundError):
            cart_service.update_quantity(9999, 2, customer_ctx)

    def test_update_someone_elses_line(self, cart_service, seed_owner, seed_menu_item, customer_ctx):
        line = cart_service.add(seed_owner.id, seed_menu_item.id)
        with pytest.raises(ForbiddenError):
            cart_service.update_quantity(line.id, 2, customer_ctx)

    def test_remove_is_idempotent(self, cart_service, seed_customer, seed_menu_item, customer_ctx):
        line = cart_service.add(seed_customer.id, seed_menu_item.id)

        assert cart_service.remove(line.id, customer_ctx) is True
        assert cart_service.remove(line.id, customer_ctx) is True
        assert cart_service.list_for_user(seed_customer.id) == []

    def test_clear_by_restaurant(
        self, db_session, cart_service, seed_customer, seed_menu_item, seed_owner, seed_restaurant
    ):
        from marketplace_api.models import MenuCategory, MenuItem, Restaurant

        other = Restaurant(owner_id=seed_owner.id, name="Tacos", address="3 Road", phone="3")
        db_session.add(other)
        db_session.flush()
        category = MenuCategory(restaurant_id=other.id, name="Tacos")
        db_session.add(category)
        db_session.flush()
        taco = MenuItem(restaurant_id=other.id, category_id=category.id, name="Taco", price=Decimal("3.00"))
        db_session.add(taco)
        db_session.commit()

        cart_service.add(seed_customer.id, seed_menu_item.id)
        cart_service.add(seed_customer.id, taco.id)

        assert cart_service.clear(seed_customer.id, seed_restaurant.id) == 1
        remaining = cart_service.list_for_user(seed_customer.id)
        assert [line.menu_item_id for line in remaining] == [taco.id]

        assert cart_service.clear(seed_customer.id) == 1
        assert cart_service.list_for_user(seed_customer.id) == []


class TestLineUnitPrice:
    def test_negative_modifier(self, seed_menu_item):
        small = MenuItemOption(name="Small", price_modifier=Decimal("-2.00"))
        assert line_unit_price(seed_menu_item, [small]) == Decimal("10.50")
