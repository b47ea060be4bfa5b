"""
Order endpoints: placement, listing, status changes and tracking.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from marketplace_api.routers._common import get_permission_context
from marketplace_api.services.domain import OrderService
from marketplace_api.services.permissions import PermissionContext
from marketplace_shared.infrastructure.db import get_db
from marketplace_shared.utils.exceptions import OrderNotFoundError
from marketplace_shared.utils.schemas import (
    OrderCreate,
    OrderItemOutput,
    OrderOutput,
    OrderStatusUpdate,
    OrderTrackingOutput,
)

router = APIRouter(prefix="/api/orders", tags=["orders"])


def _get_service(db: Session) -> OrderService:
    return OrderService(db)


@router.post("", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
def place_order(
    body: OrderCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> OrderOutput:
    """Place an order from the caller's cart lines of one restaurant."""
    return _get_service(db).place(
        ctx.user_id,
        body.restaurant_id,
        body.delivery_address_id,
        notes=body.notes,
        ctx=ctx,
    )


@router.get("", response_model=list[OrderOutput])
def list_orders(
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[OrderOutput]:
    """
    Orders visible to the caller: customers see their own, restaurant owners
    also see their restaurants', admins see all.
    """
    return _get_service(db).list_visible(ctx)


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> OrderOutput:
    """Get an order."""
    order = _get_service(db).get_visible(order_id, ctx)
    if order is None:
        raise OrderNotFoundError(order_id)
    return order


@router.get("/{order_id}/items", response_model=list[OrderItemOutput])
def list_order_items(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[OrderItemOutput]:
    """Lines of an order."""
    return _get_service(db).list_items(order_id, ctx)


@router.get("/{order_id}/tracking", response_model=OrderTrackingOutput)
def track_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> OrderTrackingOutput:
    """Progress steps and delivery estimate of an order."""
    return _get_service(db).tracking(order_id, ctx)


@router.patch("/{order_id}/status", response_model=OrderOutput)
def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> OrderOutput:
    """Move an order along its lifecycle. Restaurant owner or admin."""
    return _get_service(db).update_status(
        order_id,
        body.status,
        estimated_delivery_time=body.estimated_delivery_time,
        ctx=ctx,
    )


@router.post("/{order_id}/cancel", response_model=OrderOutput)
def cancel_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> OrderOutput:
    """Cancel an order. Customers can cancel only before confirmation."""
    return _get_service(db).cancel(order_id, ctx)
