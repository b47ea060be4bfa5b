"""
Tests for the capability policy (permission strategies).
"""

from types import SimpleNamespace

import pytest
from sqlalchemy import select

from marketplace_api.models import Order
from marketplace_api.services.permissions import (
    Action,
    AdminStrategy,
    CustomerStrategy,
    PermissionContext,
    RestaurantOwnerStrategy,
    get_highest_privilege_strategy,
    get_strategy_for_role,
)
from marketplace_shared.config.constants import Roles
from marketplace_shared.utils.exceptions import ForbiddenError, InsufficientRoleError


# Lightweight stand-ins; strategies only read ids and ownership attributes
def _user(user_id, role):
    return SimpleNamespace(id=user_id, role=role)


OWNER = _user(1, Roles.RESTAURANT_OWNER)
OTHER_OWNER = _user(2, Roles.RESTAURANT_OWNER)
CUSTOMER = _user(3, Roles.CUSTOMER)
ADMIN = _user(4, Roles.ADMIN)


class Restaurant(SimpleNamespace):
    pass


class MenuItem(SimpleNamespace):
    pass


class MenuItemOption(SimpleNamespace):
    pass


class CartItem(SimpleNamespace):
    pass


class Review(SimpleNamespace):
    pass


RESTAURANT = Restaurant(id=10, owner_id=OWNER.id)
ITEM = MenuItem(id=20, restaurant_id=10, restaurant=RESTAURANT)
OPTION = MenuItemOption(id=30, menu_item=ITEM)


class TestStrategySelection:
    def test_registry(self):
        assert isinstance(get_strategy_for_role(Roles.ADMIN), AdminStrategy)
        assert isinstance(get_strategy_for_role(Roles.RESTAURANT_OWNER), RestaurantOwnerStrategy)
        assert isinstance(get_strategy_for_role("unknown"), CustomerStrategy)

    def test_highest_privilege_wins(self):
        strategy = get_highest_privilege_strategy([Roles.CUSTOMER, Roles.ADMIN])
        assert strategy.role_name == Roles.ADMIN


class TestCatalogPermissions:
    """Restaurants and menu entities."""

    @pytest.mark.parametrize("user", [OWNER, OTHER_OWNER, CUSTOMER, ADMIN])
    def test_catalog_is_readable_by_everyone(self, user):
        ctx = PermissionContext(user)
        assert ctx.can_read(RESTAURANT)
        assert ctx.can_read(ITEM)
        assert ctx.can_read(OPTION)

    def test_owner_manages_own_menu(self):
        ctx = PermissionContext(OWNER)
        assert ctx.can_create("MenuItem", restaurant=RESTAURANT)
        assert ctx.can_update(ITEM)
        assert ctx.can_delete(OPTION)
        assert ctx.can_update(RESTAURANT)

    def test_other_owner_cannot_manage(self):
        ctx = PermissionContext(OTHER_OWNER)
        assert not ctx.can_create("MenuCategory", restaurant=RESTAURANT)
        assert not ctx.can_update(ITEM)
        assert not ctx.can_delete(RESTAURANT)

    def test_menu_create_needs_a_restaurant(self):
        assert not PermissionContext(OWNER).can_create("MenuItem")

    def test_customer_cannot_manage(self):
        ctx = PermissionContext(CUSTOMER)
        assert not ctx.can_create("Restaurant")
        assert not ctx.can_create("MenuItem", restaurant=RESTAURANT)
        assert not ctx.can_update(ITEM)

    def test_admin_manages_everything(self):
        ctx = PermissionContext(ADMIN)
        assert ctx.can_create("MenuItem", restaurant=RESTAURANT)
        assert ctx.can_delete(RESTAURANT)


class TestCustomerRows:
    """Cart lines, orders and reviews."""

    def test_customer_owns_own_cart_line(self):
        line = CartItem(id=1, user_id=CUSTOMER.id)
        ctx = PermissionContext(CUSTOMER)
        assert ctx.can_update(line)
        assert ctx.can_delete(line)
        assert not PermissionContext(OTHER_OWNER).can_delete(line)

    def test_review_moderation_is_not_an_update(self):
        """Authors may delete their review but never approve it."""
        review = Review(id=1, user_id=CUSTOMER.id, restaurant=RESTAURANT)
        ctx = PermissionContext(CUSTOMER)
        assert ctx.can_delete(review)
        assert not ctx.can_update(review)

    def test_owner_reads_reviews_of_own_restaurant(self):
        review = Review(id=1, user_id=CUSTOMER.id, restaurant=RESTAURANT)
        assert PermissionContext(OWNER).can_read(review)
        assert not PermissionContext(OTHER_OWNER).can_read(review)


class TestRequire:
    def test_require_raises_forbidden(self):
        with pytest.raises(ForbiddenError) as exc_info:
            PermissionContext(CUSTOMER).require(Action.DELETE, ITEM)
        assert exc_info.value.status_code == 403
        assert "MenuItem" in exc_info.value.detail

    def test_require_admin(self):
        PermissionContext(ADMIN).require_admin()
        with pytest.raises(InsufficientRoleError):
            PermissionContext(OWNER).require_admin()


class TestFilterQuery:
    """Listing filters compile to the expected predicates."""

    def test_admin_is_unfiltered(self):
        query = PermissionContext(ADMIN).filter_query(select(Order), Order)
        assert query.whereclause is None

    def test_customer_sees_own_rows(self):
        query = PermissionContext(CUSTOMER).filter_query(select(Order), Order)
        assert "user_id" in str(query.whereclause)

    def test_owner_also_sees_restaurant_rows(self):
        query = PermissionContext(OWNER).filter_query(select(Order), Order)
        compiled = str(query.whereclause)
        assert "user_id" in compiled
        assert "restaurant_id" in compiled
