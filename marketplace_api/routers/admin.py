"""
Admin endpoints. Every route requires the ADMIN role.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marketplace_api.routers._common import Pagination, get_pagination, require_admin
from marketplace_api.services.domain import AdminService, OrderService
from marketplace_api.services.permissions import PermissionContext
from marketplace_shared.infrastructure.db import get_db
from marketplace_shared.utils.exceptions import RestaurantNotFoundError
from marketplace_shared.utils.schemas import (
    OrderOutput,
    RestaurantOutput,
    ReviewOutput,
    Role,
    UserOutput,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _get_service(db: Session) -> AdminService:
    return AdminService(db)


@router.get("/users", response_model=list[UserOutput])
def list_users(
    role: Role | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_admin),
) -> list[UserOutput]:
    """List accounts, optionally by role."""
    return _get_service(db).list_users(
        ctx,
        role=role,
        limit=pagination.limit,
        offset=pagination.offset,
    )


@router.get("/restaurants", response_model=list[RestaurantOutput])
def list_all_restaurants(
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_admin),
) -> list[RestaurantOutput]:
    """List every restaurant, inactive ones included."""
    return _get_service(db).list_restaurants(ctx, limit=pagination.limit, offset=pagination.offset)


@router.post("/restaurants/{restaurant_id}/activate", response_model=RestaurantOutput)
def activate_restaurant(
    restaurant_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_admin),
) -> RestaurantOutput:
    """Show a restaurant in public listings again."""
    restaurant = _get_service(db).activate_restaurant(restaurant_id, ctx)
    if restaurant is None:
        raise RestaurantNotFoundError(restaurant_id)
    return restaurant


@router.post("/restaurants/{restaurant_id}/deactivate", response_model=RestaurantOutput)
def deactivate_restaurant(
    restaurant_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_admin),
) -> RestaurantOutput:
    """Hide a restaurant from public listings."""
    restaurant = _get_service(db).deactivate_restaurant(restaurant_id, ctx)
    if restaurant is None:
        raise RestaurantNotFoundError(restaurant_id)
    return restaurant


@router.get("/reviews/pending", response_model=list[ReviewOutput])
def list_pending_reviews(
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_admin),
) -> list[ReviewOutput]:
    """The review moderation queue."""
    return _get_service(db).pending_reviews(ctx)


@router.get("/orders", response_model=list[OrderOutput])
def list_all_orders(
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_admin),
) -> list[OrderOutput]:
    """Every order on the platform."""
    return OrderService(db).list_all_orders(ctx)
