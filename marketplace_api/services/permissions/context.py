"""
Permission Context - Main entry point for permission checks.
"""

from enum import Enum, auto
from typing import Any

from sqlalchemy import Select

from marketplace_shared.config.constants import Roles
from marketplace_shared.utils.exceptions import ForbiddenError, InsufficientRoleError
from .strategies import (
    PermissionStrategy,
    entity_type_of,
    get_highest_privilege_strategy,
)


class Action(Enum):
    """Available actions for permission checks."""
    CREATE = auto()
    READ = auto()
    UPDATE = auto()
    DELETE = auto()
    LIST = auto()  # Alias for READ with filtering


# Verb used in ForbiddenError messages
_ACTION_VERBS = {
    Action.CREATE: "create",
    Action.READ: "read",
    Action.UPDATE: "update",
    Action.DELETE: "delete",
    Action.LIST: "list",
}


class PermissionContext:
    """
    Context for performing permission checks.

    Automatically selects the appropriate strategy based on the user's role.

    Usage:
        ctx = PermissionContext(user)

        # Check specific action
        if ctx.can(Action.CREATE, "MenuItem", restaurant=restaurant):
            ...

        # Raise ForbiddenError when not allowed
        ctx.require(Action.UPDATE, menu_item)

        # Filter query by permissions
        query = ctx.filter_query(select(Order), Order)
    """

    def __init__(self, user: Any):
        self._user = user
        self._roles = [user.role] if getattr(user, "role", None) else []
        self._strategy = get_highest_privilege_strategy(self._roles)

    @property
    def user(self) -> Any:
        """Get the acting User."""
        return self._user

    @property
    def user_id(self) -> int:
        """Get user ID."""
        return self._user.id

    @property
    def roles(self) -> list[str]:
        """Get user roles."""
        return self._roles

    @property
    def strategy(self) -> PermissionStrategy:
        """Get current permission strategy."""
        return self._strategy

    @property
    def is_admin(self) -> bool:
        """Check if user is admin."""
        return Roles.ADMIN in self._roles

    @property
    def is_restaurant_owner(self) -> bool:
        """Check if user is a restaurant owner."""
        return Roles.RESTAURANT_OWNER in self._roles

    def can(
        self,
        action: Action,
        entity_or_type: Any,
        restaurant: Any | None = None,
    ) -> bool:
        """
        Check if user can perform action.

        Args:
            action: The action to check (CREATE, READ, UPDATE, DELETE, LIST)
            entity_or_type: Either an entity instance or entity type name (str)
            restaurant: Target restaurant for CREATE of menu entities

        Returns:
            True if action is allowed
        """
        if action == Action.CREATE:
            return self._strategy.can_create(self._user, entity_type_of(entity_or_type), restaurant)

        elif action == Action.READ or action == Action.LIST:
            return self._strategy.can_read(self._user, entity_or_type)

        elif action == Action.UPDATE:
            return self._strategy.can_update(self._user, entity_or_type)

        elif action == Action.DELETE:
            return self._strategy.can_delete(self._user, entity_or_type)

        return False

    def can_create(self, entity_type: str, restaurant: Any | None = None) -> bool:
        """Shorthand for can(Action.CREATE, ...)."""
        return self.can(Action.CREATE, entity_type, restaurant)

    def can_read(self, entity: Any) -> bool:
        """Shorthand for can(Action.READ, ...)."""
        return self.can(Action.READ, entity)

    def can_update(self, entity: Any) -> bool:
        """Shorthand for can(Action.UPDATE, ...)."""
        return self.can(Action.UPDATE, entity)

    def can_delete(self, entity: Any) -> bool:
        """Shorthand for can(Action.DELETE, ...)."""
        return self.can(Action.DELETE, entity)

    def require(
        self,
        action: Action,
        entity_or_type: Any,
        restaurant: Any | None = None,
    ) -> None:
        """Raise ForbiddenError if the action is not allowed."""
        if not self.can(action, entity_or_type, restaurant):
            entity_type = entity_type_of(entity_or_type)
            raise ForbiddenError(
                f"{_ACTION_VERBS[action]} this {entity_type}",
                user_id=self.user_id,
                role=self._user.role,
                entity_id=getattr(entity_or_type, "id", None),
            )

    def filter_query(self, query: Select, model: Any) -> Select:
        """
        Apply permission filters to query.

        Args:
            query: SQLAlchemy Select query
            model: SQLAlchemy model class

        Returns:
            Filtered query
        """
        return self._strategy.filter_query(query, self._user, model)

    def require_admin(self) -> None:
        """Raise InsufficientRoleError if user is not admin."""
        if not self.is_admin:
            raise InsufficientRoleError([Roles.ADMIN], user_id=self.user_id)
