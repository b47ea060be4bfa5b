"""
Base Service Classes.

Provides abstract base classes for application services that:
- Use Repository for data access (not direct queries)
- Use an output schema for DTO transformation
- Consult the capability policy before every mutation
- Handle business logic and orchestration

Architecture:
    Router (thin) → Service (business logic) → Repository (data access) → Model

Usage:
    from marketplace_api.services.base_service import BaseCRUDService

    class MenuCategoryService(BaseCRUDService[MenuCategory, MenuCategoryOutput]):
        def __init__(self, db: Session):
            super().__init__(
                db=db,
                model=MenuCategory,
                output_schema=MenuCategoryOutput,
                entity_name="Menu category",
            )
"""

from __future__ import annotations

from abc import ABC
from typing import Any, Generic, Sequence, TypeVar, Type

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace_api.models import Base, Restaurant
from marketplace_api.services.crud.repository import BaseRepository, RestaurantScopedRepository
from marketplace_api.services.permissions import Action, PermissionContext
from marketplace_shared.infrastructure.db import safe_commit
from marketplace_shared.config.logging import get_logger
from marketplace_shared.utils.exceptions import (
    DatabaseError,
    NotFoundError,
    RestaurantNotFoundError,
    ValidationError,
)
from marketplace_shared.utils.validators import to_decimal, validate_image_url

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
OutputT = TypeVar("OutputT", bound=BaseModel)


class BaseService(ABC, Generic[ModelT]):
    """
    Abstract base service for domain operations.

    Subclasses implement specific business logic while this class
    provides common infrastructure (repository access, commits, logging).
    """

    def __init__(self, db: Session, model: Type[ModelT]):
        self._db = db
        self._model = model
        self._repo: BaseRepository[ModelT] = BaseRepository(model, db)

    @property
    def db(self) -> Session:
        """Database session."""
        return self._db

    @property
    def repo(self) -> BaseRepository[ModelT]:
        """Repository for data access."""
        return self._repo

    def _commit(self, operation: str, **log_context: Any) -> None:
        """
        Commit the unit of work.

        Raises:
            DatabaseError: If the commit fails (the session is rolled back).
        """
        try:
            safe_commit(self._db)
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to {operation}",
                error=str(e),
                **log_context,
            )
            raise DatabaseError(operation, **log_context) from e


class BaseCRUDService(BaseService[ModelT], Generic[ModelT, OutputT]):
    """
    Base service for entities with CRUD operations.

    Provides standard CRUD methods that can be overridden for
    custom business logic. Uses Repository for all data access.

    Responsibilities:
    - Data access via Repository (not direct queries)
    - DTO transformation via output schema
    - Capability checks for mutations when a PermissionContext is given
    - Business rule validation
    - Decimal conversion of money fields
    """

    def __init__(
        self,
        db: Session,
        model: Type[ModelT],
        output_schema: Type[OutputT],
        entity_name: str,
        *,
        supports_soft_delete: bool = False,
        image_url_fields: set[str] | None = None,
        money_fields: set[str] | None = None,
    ):
        super().__init__(db, model)
        self._output_schema = output_schema
        self._entity_name = entity_name
        self._supports_soft_delete = supports_soft_delete
        self._image_url_fields = image_url_fields or {"image_url"}
        self._money_fields = money_fields or set()

    @property
    def entity_name(self) -> str:
        """Human-readable entity name for messages."""
        return self._entity_name

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_by_id(
        self,
        entity_id: int,
        *,
        options: list[Any] | None = None,
        include_inactive: bool = False,
    ) -> OutputT:
        """
        Get entity by ID.

        Args:
            entity_id: Entity primary key.
            options: SQLAlchemy loader options.
            include_inactive: Include entities with is_active=False.

        Returns:
            Output DTO.

        Raises:
            NotFoundError: If entity not found.
        """
        entity = self._repo.find_by_id(
            entity_id,
            options=options,
            include_inactive=include_inactive,
        )

        if entity is None:
            raise self._not_found(entity_id)

        return self.to_output(entity)

    def find_by_id(self, entity_id: int, *, include_inactive: bool = True) -> OutputT | None:
        """Get entity by ID, or None when it does not exist."""
        entity = self._repo.find_by_id(entity_id, include_inactive=include_inactive)
        return self.to_output(entity) if entity is not None else None

    def get_entity(
        self,
        entity_id: int,
        *,
        include_inactive: bool = False,
    ) -> ModelT | None:
        """Get raw entity (for internal use)."""
        return self._repo.find_by_id(entity_id, include_inactive=include_inactive)

    def list_all(
        self,
        *,
        where: Sequence[Any] | None = None,
        options: list[Any] | None = None,
        include_inactive: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> list[OutputT]:
        """
        List entities.

        Args:
            where: Extra filter expressions.
            options: SQLAlchemy loader options.
            include_inactive: Include entities with is_active=False.
            limit: Maximum results.
            offset: Skip count.
            order_by: Order expression or tuple of expressions.

        Returns:
            List of output DTOs.
        """
        entities = self._repo.find_all(
            where=where,
            options=options,
            include_inactive=include_inactive,
            limit=limit,
            offset=offset,
            order_by=order_by,
        )
        return [self.to_output(e) for e in entities]

    def exists(self, entity_id: int) -> bool:
        """Check if entity exists."""
        return self._repo.exists(entity_id)

    # =========================================================================
    # Write Operations
    # =========================================================================

    def create(
        self,
        data: dict[str, Any],
        ctx: PermissionContext | None = None,
    ) -> OutputT:
        """
        Create new entity.

        Args:
            data: Entity data dictionary.
            ctx: Acting user's permission context. None for trusted callers
                (CLI, seeding, internal orchestration).

        Returns:
            Output DTO for created entity.

        Raises:
            NotFoundError: If a referenced entity does not exist.
            ValidationError: If data is invalid.
            ForbiddenError: If the caller may not create this entity.
            DatabaseError: If creation fails.
        """
        if ctx is not None:
            self._authorize_create(data, ctx)

        self._validate_create(data)

        data = self._normalize(data)

        entity = self._model(**data)
        self._db.add(entity)

        self._commit(f"create {self._entity_name.lower()}")
        self._db.refresh(entity)

        self._after_create(entity, ctx)

        return self.to_output(entity)

    def update(
        self,
        entity_id: int,
        data: dict[str, Any],
        ctx: PermissionContext | None = None,
    ) -> OutputT:
        """
        Update existing entity.

        Args:
            entity_id: Entity ID.
            data: Fields to change (only the keys present are written).
            ctx: Acting user's permission context.

        Returns:
            Output DTO for updated entity.

        Raises:
            NotFoundError: If entity not found.
            ValidationError: If data is invalid.
            ForbiddenError: If the caller may not update this entity.
            DatabaseError: If update fails.
        """
        entity = self._require_entity(entity_id, include_inactive=True)

        if ctx is not None:
            ctx.require(Action.UPDATE, entity)

        self._reject_null_required(data)
        self._validate_update(entity, data)

        data = self._normalize(data)

        old_values = {k: getattr(entity, k) for k in data.keys() if hasattr(entity, k)}

        for field_name, value in data.items():
            if hasattr(entity, field_name):
                setattr(entity, field_name, value)

        if hasattr(entity, "touch"):
            entity.touch()

        self._commit(f"update {self._entity_name.lower()}", entity_id=entity_id)
        self._db.refresh(entity)

        self._after_update(entity, old_values, ctx)

        return self.to_output(entity)

    def delete(
        self,
        entity_id: int,
        ctx: PermissionContext | None = None,
    ) -> bool:
        """
        Delete entity (soft delete if supported).

        Args:
            entity_id: Entity ID.
            ctx: Acting user's permission context.

        Returns:
            True once the entity is deleted.

        Raises:
            NotFoundError: If entity not found (or already deleted).
            ForbiddenError: If the caller may not delete this entity.
        """
        entity = self._require_entity(entity_id, include_inactive=True)

        if ctx is not None:
            ctx.require(Action.DELETE, entity)

        self._validate_delete(entity)

        entity_info = self._get_entity_info(entity)

        if self._supports_soft_delete:
            entity.soft_delete()
        else:
            self._repo.delete(entity)
        self._before_delete_commit(entity_info)

        self._commit(f"delete {self._entity_name.lower()}", entity_id=entity_id)

        self._after_delete(entity_info, ctx)
        return True

    # =========================================================================
    # Transformation
    # =========================================================================

    def to_output(self, entity: ModelT) -> OutputT:
        """
        Convert entity to output DTO.

        Override this method for custom transformation logic.
        """
        return self._output_schema.model_validate(entity)

    # =========================================================================
    # Validation Hooks (override in subclasses)
    # =========================================================================

    def _validate_create(self, data: dict[str, Any]) -> None:
        """
        Validate data before create.

        Override to check referenced entities and business rules.

        Raises:
            NotFoundError: If a referenced entity is missing.
            ValidationError: If validation fails.
        """
        pass

    def _authorize_create(self, data: dict[str, Any], ctx: PermissionContext) -> None:
        """
        Check the caller may create this entity.

        Runs before _validate_create. Override to pass the target restaurant
        for restaurant-scoped entities.
        """
        ctx.require(Action.CREATE, self._model.__name__)

    def _validate_update(self, entity: ModelT, data: dict[str, Any]) -> None:
        """
        Validate data before update.

        Raises:
            ValidationError: If validation fails.
        """
        pass

    def _validate_delete(self, entity: ModelT) -> None:
        """
        Validate before delete.

        Override to check for dependent entities, etc.

        Raises:
            ValidationError: If deletion is not allowed.
        """
        pass

    # =========================================================================
    # Lifecycle Hooks (override in subclasses)
    # =========================================================================

    def _after_create(self, entity: ModelT, ctx: PermissionContext | None) -> None:
        """Hook called after entity creation. Override for side effects."""
        pass

    def _after_update(
        self,
        entity: ModelT,
        old_values: dict[str, Any],
        ctx: PermissionContext | None,
    ) -> None:
        """Hook called after entity update. Override for side effects."""
        pass

    def _before_delete_commit(self, entity_info: dict[str, Any]) -> None:
        """Hook called inside the delete transaction, before commit."""
        pass

    def _after_delete(self, entity_info: dict[str, Any], ctx: PermissionContext | None) -> None:
        """Hook called after entity deletion. Override for side effects."""
        pass

    def _get_entity_info(self, entity: ModelT) -> dict[str, Any]:
        """Get entity info to keep after deletion."""
        return {
            "id": entity.id,
            "name": getattr(entity, "name", None),
            "restaurant_id": getattr(entity, "restaurant_id", None),
        }

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _not_found(self, entity_id: int | None) -> NotFoundError:
        """Build the NotFoundError for this entity type."""
        return NotFoundError(self._entity_name, entity_id)

    def _require_entity(self, entity_id: int, *, include_inactive: bool = False) -> ModelT:
        """Load an entity or raise NotFoundError."""
        entity = self._repo.find_by_id(entity_id, include_inactive=include_inactive)
        if entity is None:
            raise self._not_found(entity_id)
        return entity

    def _reject_null_required(self, data: dict[str, Any]) -> None:
        """Reject explicit nulls for NOT NULL columns in partial updates."""
        columns = self._model.__table__.columns
        for field_name, value in data.items():
            if value is None and field_name in columns and not columns[field_name].nullable:
                raise ValidationError(f"{field_name} cannot be null", field=field_name)

    def _normalize(self, data: dict[str, Any]) -> dict[str, Any]:
        """Validate image URLs and convert money fields to Decimal."""
        data = dict(data)
        for field_name in self._image_url_fields:
            if field_name in data and data[field_name]:
                try:
                    data[field_name] = validate_image_url(data[field_name])
                except ValueError as e:
                    raise ValidationError(str(e), field=field_name)
        for field_name in self._money_fields:
            if field_name in data and data[field_name] is not None:
                try:
                    data[field_name] = to_decimal(data[field_name])
                except ValueError as e:
                    raise ValidationError(str(e), field=field_name)
        return data


class RestaurantScopedService(BaseCRUDService[ModelT, OutputT], Generic[ModelT, OutputT]):
    """
    Service for entities that belong to a restaurant (categories, menu items).

    Extends BaseCRUDService with restaurant filtering and checks the target
    restaurant on create: it must exist and the caller must manage it.
    """

    def __init__(
        self,
        db: Session,
        model: Type[ModelT],
        output_schema: Type[OutputT],
        entity_name: str,
        **kwargs: Any,
    ):
        super().__init__(
            db=db,
            model=model,
            output_schema=output_schema,
            entity_name=entity_name,
            **kwargs,
        )
        self._repo = RestaurantScopedRepository(model, db)
        self._restaurant_repo: BaseRepository[Restaurant] = BaseRepository(Restaurant, db)

    def list_by_restaurant(
        self,
        restaurant_id: int,
        *,
        where: Sequence[Any] | None = None,
        options: list[Any] | None = None,
        include_inactive: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any | None = None,
    ) -> list[OutputT]:
        """List entities of one restaurant."""
        repo: RestaurantScopedRepository = self._repo
        entities = repo.find_by_restaurant(
            restaurant_id,
            where=where,
            options=options,
            include_inactive=include_inactive,
            limit=limit,
            offset=offset,
            order_by=order_by,
        )
        return [self.to_output(e) for e in entities]

    def _get_restaurant(self, restaurant_id: int | None) -> Restaurant:
        """
        Load the parent restaurant (inactive ones included, deleted ones not).

        Raises:
            RestaurantNotFoundError: If the restaurant does not exist.
        """
        restaurant = (
            self._restaurant_repo.find_by_id(restaurant_id, include_inactive=True)
            if restaurant_id is not None
            else None
        )
        if restaurant is None:
            raise RestaurantNotFoundError(restaurant_id)
        return restaurant

    def _authorize_create(self, data: dict[str, Any], ctx: PermissionContext) -> None:
        restaurant = self._get_restaurant(data.get("restaurant_id"))
        ctx.require(Action.CREATE, self._model.__name__, restaurant=restaurant)

    def _validate_create(self, data: dict[str, Any]) -> None:
        self._get_restaurant(data.get("restaurant_id"))

    def _validate_update(self, entity: ModelT, data: dict[str, Any]) -> None:
        # Entities never move between restaurants
        data.pop("restaurant_id", None)
