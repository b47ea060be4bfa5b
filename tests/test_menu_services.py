"""
Tests for the menu services: categories, items and options.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from marketplace_api.models import CartItem, MenuItemOption
from marketplace_api.services.domain import (
    CartService,
    MenuCategoryService,
    MenuItemOptionService,
    MenuItemService,
    OrderService,
)
from marketplace_api.services.permissions import PermissionContext
from marketplace_shared.utils.exceptions import (
    ForbiddenError,
    MenuItemNotFoundError,
    NotFoundError,
    RestaurantNotFoundError,
    ValidationError,
)


@pytest.fixture
def category_service(db_session):
    return MenuCategoryService(db_session)


@pytest.fixture
def item_service(db_session):
    return MenuItemService(db_session)


@pytest.fixture
def option_service(db_session):
    return MenuItemOptionService(db_session)


class TestMenuCategories:
    """Category CRUD."""

    def test_owner_creates_category(self, category_service, seed_restaurant, owner_ctx):
        category = category_service.create(
            {"restaurant_id": seed_restaurant.id, "name": "Desserts", "sort_order": 5},
            owner_ctx,
        )
        assert category.restaurant_id == seed_restaurant.id
        assert category.is_active is True

    def test_other_owner_cannot_create(self, category_service, seed_restaurant, seed_other_owner):
        with pytest.raises(ForbiddenError):
            category_service.create(
                {"restaurant_id": seed_restaurant.id, "name": "Desserts"},
                PermissionContext(seed_other_owner),
            )

    def test_customer_cannot_create(self, category_service, seed_restaurant, customer_ctx):
        with pytest.raises(ForbiddenError):
            category_service.create({"restaurant_id": seed_restaurant.id, "name": "Desserts"}, customer_ctx)

    def test_unknown_restaurant(self, category_service, admin_ctx):
        with pytest.raises(RestaurantNotFoundError):
            category_service.create({"restaurant_id": 9999, "name": "Desserts"}, admin_ctx)

    def test_display_order(self, category_service, seed_restaurant, seed_category):
        category_service.create({"restaurant_id": seed_restaurant.id, "name": "Starters", "sort_order": 0})
        category_service.create({"restaurant_id": seed_restaurant.id, "name": "Hidden", "is_active": False})

        names = [c.name for c in category_service.list_for_restaurant(seed_restaurant.id)]
        assert names == ["Starters", "Pizzas"]

    def test_category_with_items_cannot_be_deleted(self, category_service, seed_category, seed_menu_item, owner_ctx):
        with pytest.raises(ValidationError):
            category_service.delete(seed_category.id, owner_ctx)

    def test_delete_empty_category(self, category_service, seed_restaurant, owner_ctx):
        category = category_service.create({"restaurant_id": seed_restaurant.id, "name": "Drinks"})
        assert category_service.delete(category.id, owner_ctx) is True
        assert category_service.find_by_id(category.id) is None


class TestMenuItems:
    """Menu item CRUD."""

    def test_price_read_back_as_number(self, item_service, seed_restaurant, seed_category, owner_ctx):
        """12.50 is stored as a decimal and read back as 12.5."""
        item = item_service.create(
            {
                "restaurant_id": seed_restaurant.id,
                "category_id": seed_category.id,
                "name": "Diavola",
                "price": 12.50,
            },
            owner_ctx,
        )
        assert item.price == 12.5
        assert isinstance(item.price, float)
        assert item_service.get_by_id(item.id).price == 12.5

    def test_category_of_another_restaurant(
        self, db_session, item_service, seed_restaurant, seed_other_owner, admin_ctx
    ):
        from marketplace_api.models import MenuCategory, Restaurant

        other = Restaurant(owner_id=seed_other_owner.id, name="Other", address="4 Road", phone="4")
        db_session.add(other)
        db_session.flush()
        foreign = MenuCategory(restaurant_id=other.id, name="Foreign")
        db_session.add(foreign)
        db_session.commit()

        with pytest.raises(ValidationError):
            item_service.create(
                {
                    "restaurant_id": seed_restaurant.id,
                    "category_id": foreign.id,
                    "name": "Stray",
                    "price": 5,
                },
                admin_ctx,
            )

    def test_unknown_category(self, item_service, seed_restaurant, owner_ctx):
        with pytest.raises(NotFoundError):
            item_service.create(
                {"restaurant_id": seed_restaurant.id, "category_id": 9999, "name": "Ghost", "price": 5},
                owner_ctx,
            )

    def test_update_price(self, item_service, seed_menu_item, owner_ctx):
        item = item_service.update(seed_menu_item.id, {"price": 13.75}, owner_ctx)
        assert item.price == 13.75

    def test_update_rejects_null_name(self, item_service, seed_menu_item, owner_ctx):
        with pytest.raises(ValidationError):
            item_service.update(seed_menu_item.id, {"name": None}, owner_ctx)

    def test_restaurant_id_cannot_change(self, item_service, seed_menu_item, seed_restaurant, owner_ctx):
        item = item_service.update(seed_menu_item.id, {"restaurant_id": 9999, "name": "Margherita DOP"}, owner_ctx)
        assert item.restaurant_id == seed_restaurant.id
        assert item.name == "Margherita DOP"

    def test_availability_toggle(self, item_service, seed_menu_item, owner_ctx):
        item = item_service.update_availability(seed_menu_item.id, False, owner_ctx)
        assert item.is_available is False
        # Unavailable items stay listed
        assert len(item_service.list_for_restaurant(item.restaurant_id)) == 1

    def test_availability_missing_item(self, item_service, owner_ctx):
        assert item_service.update_availability(9999, False, owner_ctx) is None

    def test_customer_cannot_update(self, item_service, seed_menu_item, customer_ctx):
        with pytest.raises(ForbiddenError):
            item_service.update(seed_menu_item.id, {"price": 1}, customer_ctx)

    def test_delete_removes_cart_lines_and_options(
        self, db_session, item_service, seed_menu_item, seed_option, seed_customer, owner_ctx
    ):
        CartService(db_session).add(seed_customer.id, seed_menu_item.id)

        assert item_service.delete(seed_menu_item.id, owner_ctx) is True

        assert db_session.scalar(select(func.count()).select_from(CartItem)) == 0
        assert db_session.scalar(select(func.count()).select_from(MenuItemOption)) == 0
        with pytest.raises(MenuItemNotFoundError):
            item_service.get_by_id(seed_menu_item.id)

    def test_ordered_item_cannot_be_deleted(
        self, db_session, item_service, seed_menu_item, seed_customer, seed_restaurant, seed_address, owner_ctx
    ):
        CartService(db_session).add(seed_customer.id, seed_menu_item.id)
        OrderService(db_session).place(seed_customer.id, seed_restaurant.id, seed_address.id)

        with pytest.raises(ValidationError):
            item_service.delete(seed_menu_item.id, owner_ctx)


class TestMenuItemOptions:
    """Option CRUD."""

    def test_create_negative_modifier(self, option_service, seed_menu_item, owner_ctx):
        option = option_service.create(
            {"menu_item_id": seed_menu_item.id, "name": "Small", "price_modifier": -2.0},
            owner_ctx,
        )
        assert option.price_modifier == -2.0

    def test_create_for_missing_item(self, option_service, owner_ctx):
        with pytest.raises(MenuItemNotFoundError):
            option_service.create({"menu_item_id": 9999, "name": "Lost"}, owner_ctx)

    def test_other_owner_cannot_create(self, option_service, seed_menu_item, seed_other_owner):
        with pytest.raises(ForbiddenError):
            option_service.create(
                {"menu_item_id": seed_menu_item.id, "name": "Sneaky"},
                PermissionContext(seed_other_owner),
            )

    def test_list_in_display_order(self, option_service, seed_menu_item, seed_option):
        option_service.create({"menu_item_id": seed_menu_item.id, "name": "Basil", "sort_order": -1})
        names = [o.name for o in option_service.list_for_menu_item(seed_menu_item.id)]
        assert names == ["Basil", "Extra cheese"]

    def test_delete_missing_returns_false(self, option_service, owner_ctx):
        assert option_service.delete(9999, owner_ctx) is False

    def test_delete_existing(self, option_service, seed_menu_item, seed_option, owner_ctx):
        assert option_service.delete(seed_option.id, owner_ctx) is True
        assert option_service.list_for_menu_item(seed_menu_item.id) == []

    def test_modifier_stored_as_cents(self, db_session, option_service, seed_menu_item):
        option = option_service.create(
            {"menu_item_id": seed_menu_item.id, "name": "Truffle", "price_modifier": 2.005}
        )
        stored = db_session.get(MenuItemOption, option.id)
        assert stored.price_modifier == Decimal("2.01")
