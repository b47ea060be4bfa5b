"""
Permission Strategy Pattern implementation.

One capability policy shared by every mutating operation, instead of role
checks inlined per handler.

Usage:
    from marketplace_api.services.permissions import PermissionContext, Action

    ctx = PermissionContext(user)
    ctx.require(Action.UPDATE, menu_item)

    if ctx.can(Action.CREATE, "MenuItem", restaurant=restaurant):
        ...
"""

from .strategies import (
    PermissionStrategy,
    AdminStrategy,
    RestaurantOwnerStrategy,
    CustomerStrategy,
    get_strategy_for_role,
    get_highest_privilege_strategy,
)
from .context import PermissionContext, Action

__all__ = [
    # Strategies
    "PermissionStrategy",
    "AdminStrategy",
    "RestaurantOwnerStrategy",
    "CustomerStrategy",
    "get_strategy_for_role",
    "get_highest_privilege_strategy",
    # Context
    "PermissionContext",
    "Action",
]
