"""
Permission Strategy implementations.
Strategy Pattern for role-based access control.

Each strategy defines what actions a role can perform on entities.
Entities are identified by their model class name ("Restaurant",
"MenuItem", "Order", ...); ownership is resolved from the entity itself:
- customer-owned rows carry `user_id`
- restaurant-owned rows reach the restaurant owner through `restaurant`,
  `menu_item.restaurant` or `owner_id` directly
"""

from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy import Select, or_, select

from marketplace_shared.config.constants import Roles


# =============================================================================
# Entity Groups
# =============================================================================

# Public catalog, readable by anyone
CATALOG_ENTITIES = frozenset({"Restaurant", "MenuCategory", "MenuItem", "MenuItemOption"})

# Menu structure managed by the restaurant owner
MENU_ENTITIES = frozenset({"MenuCategory", "MenuItem", "MenuItemOption"})

# Rows owned by the customer who created them
CUSTOMER_ENTITIES = frozenset({"CartItem", "Order", "Review"})


def entity_type_of(entity_or_type: Any) -> str:
    """Resolve an entity instance or a type name to the type name."""
    if isinstance(entity_or_type, str):
        return entity_or_type
    return type(entity_or_type).__name__


# =============================================================================
# Ownership Helpers
# =============================================================================


class OwnershipMixin:
    """Mixin providing ownership helper methods."""

    def _owns_row(self, user: Any, entity: Any) -> bool:
        """Check if a customer-owned row belongs to the user."""
        return getattr(entity, "user_id", None) == user.id

    def _restaurant_owner_id(self, entity: Any) -> int | None:
        """Extract the owning restaurant's owner_id from a catalog or order row."""
        owner_id = getattr(entity, "owner_id", None)
        if owner_id is not None:
            return owner_id
        restaurant = getattr(entity, "restaurant", None)
        if restaurant is not None:
            return restaurant.owner_id
        menu_item = getattr(entity, "menu_item", None)
        if menu_item is not None and menu_item.restaurant is not None:
            return menu_item.restaurant.owner_id
        return None

    def _owns_restaurant_of(self, user: Any, entity: Any) -> bool:
        return self._restaurant_owner_id(entity) == user.id


# =============================================================================
# Base Permission Strategy
# =============================================================================


class PermissionStrategy(ABC, OwnershipMixin):
    """
    Abstract base for permission strategies.

    Each implementation defines access rules for a specific role.
    """

    @property
    @abstractmethod
    def role_name(self) -> str:
        """Return the role this strategy handles."""
        ...

    @abstractmethod
    def can_create(self, user: Any, entity_type: str, restaurant: Any | None = None) -> bool:
        """Check if user can create an entity of given type (under restaurant, if any)."""
        ...

    @abstractmethod
    def can_read(self, user: Any, entity: Any) -> bool:
        """Check if user can read entity."""
        ...

    @abstractmethod
    def can_update(self, user: Any, entity: Any) -> bool:
        """Check if user can update entity."""
        ...

    @abstractmethod
    def can_delete(self, user: Any, entity: Any) -> bool:
        """Check if user can delete entity."""
        ...

    @abstractmethod
    def filter_query(self, query: Select, user: Any, model: Any) -> Select:
        """Apply permission filters to a listing query."""
        ...


class AdminStrategy(PermissionStrategy):
    """Admin has full access to every resource, including moderation."""

    @property
    def role_name(self) -> str:
        return Roles.ADMIN

    def can_create(self, user: Any, entity_type: str, restaurant: Any | None = None) -> bool:
        return True

    def can_read(self, user: Any, entity: Any) -> bool:
        return True

    def can_update(self, user: Any, entity: Any) -> bool:
        return True

    def can_delete(self, user: Any, entity: Any) -> bool:
        return True

    def filter_query(self, query: Select, user: Any, model: Any) -> Select:
        return query


class CustomerStrategy(PermissionStrategy):
    """
    Customer access:
    - Read the public catalog
    - Create cart lines, orders and reviews
    - Read/update/delete own cart lines
    - Read own orders and update them (cancel; the order service limits
      which transitions a customer may request)
    - Read and delete own reviews; moderation is admin-only
    """

    CREATABLE_ENTITIES = CUSTOMER_ENTITIES
    UPDATABLE_OWN = frozenset({"CartItem", "Order"})
    DELETABLE_OWN = frozenset({"CartItem", "Review"})

    @property
    def role_name(self) -> str:
        return Roles.CUSTOMER

    def can_create(self, user: Any, entity_type: str, restaurant: Any | None = None) -> bool:
        return entity_type in self.CREATABLE_ENTITIES

    def can_read(self, user: Any, entity: Any) -> bool:
        entity_type = entity_type_of(entity)
        if entity_type in CATALOG_ENTITIES:
            return True
        if entity_type in CUSTOMER_ENTITIES:
            return self._owns_row(user, entity)
        if entity_type == "User":
            return entity.id == user.id
        return False

    def can_update(self, user: Any, entity: Any) -> bool:
        return entity_type_of(entity) in self.UPDATABLE_OWN and self._owns_row(user, entity)

    def can_delete(self, user: Any, entity: Any) -> bool:
        return entity_type_of(entity) in self.DELETABLE_OWN and self._owns_row(user, entity)

    def filter_query(self, query: Select, user: Any, model: Any) -> Select:
        if hasattr(model, "user_id"):
            query = query.where(model.user_id == user.id)
        return query


class RestaurantOwnerStrategy(CustomerStrategy):
    """
    Restaurant owner access: everything a customer can do, plus
    - Create restaurants
    - Manage restaurants, categories, items and options they own
    - Read and update orders placed at their restaurants
    - Read reviews of their restaurants
    """

    MANAGED_ENTITIES = frozenset({"Restaurant"}) | MENU_ENTITIES

    @property
    def role_name(self) -> str:
        return Roles.RESTAURANT_OWNER

    def can_create(self, user: Any, entity_type: str, restaurant: Any | None = None) -> bool:
        if super().can_create(user, entity_type, restaurant):
            return True
        if entity_type == "Restaurant":
            return True
        if entity_type in MENU_ENTITIES:
            return restaurant is not None and restaurant.owner_id == user.id
        return False

    def can_read(self, user: Any, entity: Any) -> bool:
        if super().can_read(user, entity):
            return True
        if entity_type_of(entity) in {"Order", "Review"}:
            return self._owns_restaurant_of(user, entity)
        return False

    def can_update(self, user: Any, entity: Any) -> bool:
        if super().can_update(user, entity):
            return True
        entity_type = entity_type_of(entity)
        if entity_type in self.MANAGED_ENTITIES or entity_type == "Order":
            return self._owns_restaurant_of(user, entity)
        return False

    def can_delete(self, user: Any, entity: Any) -> bool:
        if super().can_delete(user, entity):
            return True
        if entity_type_of(entity) in self.MANAGED_ENTITIES:
            return self._owns_restaurant_of(user, entity)
        return False

    def filter_query(self, query: Select, user: Any, model: Any) -> Select:
        if hasattr(model, "restaurant_id") and hasattr(model, "user_id"):
            # Own rows plus rows placed at owned restaurants
            from marketplace_api.models import Restaurant

            owned = select(Restaurant.id).where(Restaurant.owner_id == user.id)
            return query.where(or_(model.user_id == user.id, model.restaurant_id.in_(owned)))
        return super().filter_query(query, user, model)


# Strategy registry
STRATEGY_REGISTRY: dict[str, type[PermissionStrategy]] = {
    Roles.ADMIN: AdminStrategy,
    Roles.RESTAURANT_OWNER: RestaurantOwnerStrategy,
    Roles.CUSTOMER: CustomerStrategy,
}


def get_strategy_for_role(role: str) -> PermissionStrategy:
    """Get permission strategy for a role. Unknown roles get customer access."""
    strategy_class = STRATEGY_REGISTRY.get(role, CustomerStrategy)
    return strategy_class()


def get_highest_privilege_strategy(roles: list[str]) -> PermissionStrategy:
    """
    Get strategy for highest privilege role.
    Priority: ADMIN > RESTAURANT_OWNER > CUSTOMER
    """
    priority = [Roles.ADMIN, Roles.RESTAURANT_OWNER, Roles.CUSTOMER]

    for role in priority:
        if role in roles:
            return get_strategy_for_role(role)

    return CustomerStrategy()
