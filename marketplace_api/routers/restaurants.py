"""
Restaurant endpoints.
Thin router delegating to RestaurantService, ReviewService and OrderService.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from marketplace_api.routers._common import Pagination, get_pagination, get_permission_context
from marketplace_api.services.domain import OrderService, RestaurantService, ReviewService
from marketplace_api.services.permissions import PermissionContext
from marketplace_shared.config.constants import OrderStatus
from marketplace_shared.infrastructure.db import get_db
from marketplace_shared.utils.exceptions import ForbiddenError, RestaurantNotFoundError, ValidationError
from marketplace_shared.utils.schemas import (
    OrderOutput,
    RestaurantCreate,
    RestaurantOutput,
    RestaurantUpdate,
    ReviewOutput,
)

router = APIRouter(prefix="/api/restaurants", tags=["restaurants"])


def _get_service(db: Session) -> RestaurantService:
    return RestaurantService(db)


@router.get("", response_model=list[RestaurantOutput])
def list_restaurants(
    search: str | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
) -> list[RestaurantOutput]:
    """List active restaurants. Public."""
    return _get_service(db).list_public(
        search=search,
        limit=pagination.limit,
        offset=pagination.offset,
    )


@router.get("/owner/{owner_id}", response_model=list[RestaurantOutput])
def list_owner_restaurants(
    owner_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[RestaurantOutput]:
    """List an owner's restaurants, inactive included. Owner themself or admin."""
    if not ctx.is_admin and ctx.user_id != owner_id:
        raise ForbiddenError("list restaurants of another owner", user_id=ctx.user_id)
    return _get_service(db).list_by_owner(owner_id)


@router.get("/{restaurant_id}", response_model=RestaurantOutput)
def get_restaurant(
    restaurant_id: int,
    db: Session = Depends(get_db),
) -> RestaurantOutput:
    """Get a restaurant. Public."""
    restaurant = _get_service(db).get_public(restaurant_id)
    if restaurant is None:
        raise RestaurantNotFoundError(restaurant_id)
    return restaurant


@router.post("", response_model=RestaurantOutput, status_code=status.HTTP_201_CREATED)
def create_restaurant(
    body: RestaurantCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> RestaurantOutput:
    """Create a restaurant. owner_id defaults to the caller."""
    data = body.model_dump()
    if data.get("owner_id") is None:
        data["owner_id"] = ctx.user_id
    return _get_service(db).create(data, ctx)


@router.patch("/{restaurant_id}", response_model=RestaurantOutput)
def update_restaurant(
    restaurant_id: int,
    body: RestaurantUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> RestaurantOutput:
    """Update a restaurant. Owner or admin."""
    return _get_service(db).update(restaurant_id, body.model_dump(exclude_unset=True), ctx)


@router.delete("/{restaurant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_restaurant(
    restaurant_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> None:
    """Soft delete a restaurant. Owner or admin."""
    _get_service(db).delete(restaurant_id, ctx)


@router.get("/{restaurant_id}/reviews", response_model=list[ReviewOutput])
def list_restaurant_reviews(
    restaurant_id: int,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
) -> list[ReviewOutput]:
    """Approved reviews of a restaurant. Public."""
    return ReviewService(db).list_for_restaurant(
        restaurant_id,
        limit=pagination.limit,
        offset=pagination.offset,
    )


@router.get("/{restaurant_id}/orders", response_model=list[OrderOutput])
def list_restaurant_orders(
    restaurant_id: int,
    order_status: str | None = None,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[OrderOutput]:
    """Orders placed at a restaurant. Owner or admin."""
    if order_status is not None and order_status not in OrderStatus.ALL:
        raise ValidationError(f"Unknown order status: {order_status}", field="order_status")
    return OrderService(db).list_for_restaurant(restaurant_id, ctx, status=order_status)
