"""
Repository Pattern for database access.

Provides a clean abstraction layer between business logic and data access,
with built-in visibility rules (is_active, soft delete) and scoping by
restaurant or by user.

Usage:
    from marketplace_api.services.crud.repository import (
        BaseRepository,
        RestaurantScopedRepository,
        UserScopedRepository,
    )

    restaurant_repo = BaseRepository(Restaurant, db)
    restaurant = restaurant_repo.find_by_id(42, include_inactive=True)

    item_repo = RestaurantScopedRepository(MenuItem, db)
    items = item_repo.find_by_restaurant(7, order_by=(MenuItem.sort_order, MenuItem.name))

    cart_repo = UserScopedRepository(CartItem, db)
    lines = cart_repo.find_by_user(3)
"""

from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import select, exists as sql_exists
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from marketplace_api.models import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Base repository providing common database operations.

    Visibility rules applied automatically:
    - models with `is_active` hide inactive rows unless include_inactive=True
    - models with `deleted_at` never return deleted rows unless include_deleted=True
    """

    def __init__(self, model: type[ModelT], session: Session):
        self._model = model
        self._session = session

    @property
    def model(self) -> type[ModelT]:
        """The SQLAlchemy model class."""
        return self._model

    @property
    def session(self) -> Session:
        """The database session."""
        return self._session

    def _base_query(self) -> Select:
        """Create base select query."""
        return select(self._model)

    def _apply_visibility(
        self,
        query: Select,
        include_inactive: bool,
        include_deleted: bool = False,
    ) -> Select:
        """Apply is_active and soft-delete filters if the model has them."""
        if hasattr(self._model, "is_active") and not include_inactive:
            query = query.where(self._model.is_active.is_(True))
        if hasattr(self._model, "deleted_at") and not include_deleted:
            query = query.where(self._model.deleted_at.is_(None))
        return query

    def _apply_options(self, query: Select, options: list[Any] | None) -> Select:
        """Apply eager loading options."""
        if options:
            query = query.options(*options)
        return query

    @staticmethod
    def _apply_paging(
        query: Select,
        order_by: Any | None,
        limit: int | None,
        offset: int | None,
    ) -> Select:
        if order_by is not None:
            if isinstance(order_by, (list, tuple)):
                query = query.order_by(*order_by)
            else:
                query = query.order_by(order_by)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query

    def find_by_id(
        self,
        entity_id: int,
        *,
        options: list[Any] | None = None,
        include_inactive: bool = False,
        include_deleted: bool = False,
    ) -> ModelT | None:
        """
        Find entity by primary key.

        Args:
            entity_id: The primary key value.
            options: SQLAlchemy loader options (selectinload, joinedload).
            include_inactive: Include rows with is_active=False.
            include_deleted: Include soft-deleted rows.

        Returns:
            Entity or None if not found.
        """
        query = self._base_query().where(self._model.id == entity_id)
        query = self._apply_visibility(query, include_inactive, include_deleted)
        query = self._apply_options(query, options)
        return self._session.scalar(query)

    def find_all(
        self,
        *,
        where: Sequence[Any] | None = None,
        options: list[Any] | None = None,
        include_inactive: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        """
        Find all entities.

        Args:
            where: Extra filter expressions.
            options: SQLAlchemy loader options.
            include_inactive: Include rows with is_active=False.
            limit: Maximum number of results.
            offset: Number of results to skip.
            order_by: Column, expression, or tuple of them.

        Returns:
            Sequence of entities.
        """
        query = self._base_query()
        if where:
            query = query.where(*where)
        query = self._apply_visibility(query, include_inactive)
        query = self._apply_options(query, options)
        query = self._apply_paging(query, order_by, limit, offset)
        return self._session.scalars(query).all()

    def find_by_query(self, query: Select) -> Sequence[ModelT]:
        """Run a prepared select (e.g. one narrowed by a permission filter)."""
        return self._session.scalars(query).all()

    def exists(self, entity_id: int) -> bool:
        """Check if a row with this ID exists, regardless of visibility."""
        query = select(sql_exists().where(self._model.id == entity_id))
        return self._session.scalar(query) or False

    def delete(self, entity: ModelT) -> None:
        """Delete entity from session (not committed)."""
        self._session.delete(entity)


class RestaurantScopedRepository(BaseRepository[ModelT]):
    """
    Repository for entities that belong to a restaurant.
    The model must have a `restaurant_id` column.

    Usage:
        repo = RestaurantScopedRepository(MenuCategory, db)
        categories = repo.find_by_restaurant(restaurant_id=5)
    """

    def _restaurant_query(self, restaurant_id: int) -> Select:
        if not hasattr(self._model, "restaurant_id"):
            raise AttributeError(
                f"Model {self._model.__name__} does not have restaurant_id column. "
                "Use BaseRepository instead."
            )
        return self._base_query().where(self._model.restaurant_id == restaurant_id)

    def find_by_restaurant(
        self,
        restaurant_id: int,
        *,
        where: Sequence[Any] | None = None,
        options: list[Any] | None = None,
        include_inactive: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        """Find all entities of one restaurant."""
        query = self._restaurant_query(restaurant_id)
        if where:
            query = query.where(*where)
        query = self._apply_visibility(query, include_inactive)
        query = self._apply_options(query, options)
        query = self._apply_paging(query, order_by, limit, offset)
        return self._session.scalars(query).all()


class UserScopedRepository(BaseRepository[ModelT]):
    """
    Repository for entities owned by a user (cart lines, orders, reviews).
    The model must have a `user_id` column.
    """

    def find_by_user(
        self,
        user_id: int,
        *,
        where: Sequence[Any] | None = None,
        options: list[Any] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelT]:
        """Find all entities owned by one user."""
        query = self._base_query().where(self._model.user_id == user_id)
        if where:
            query = query.where(*where)
        query = self._apply_options(query, options)
        query = self._apply_paging(query, order_by, limit, offset)
        return self._session.scalars(query).all()
