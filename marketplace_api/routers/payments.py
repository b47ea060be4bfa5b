"""
Payment endpoints: opening, processing and refunding payments of orders.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from marketplace_api.routers._common import (
    Pagination,
    get_pagination,
    get_permission_context,
    require_admin,
)
from marketplace_api.services.domain import PaymentService
from marketplace_api.services.permissions import PermissionContext
from marketplace_shared.infrastructure.db import get_db
from marketplace_shared.utils.schemas import PaymentCreate, PaymentOutput

router = APIRouter(prefix="/api/payments", tags=["payments"])


def _get_service(db: Session) -> PaymentService:
    return PaymentService(db)


@router.post("", response_model=PaymentOutput, status_code=status.HTTP_201_CREATED)
def create_payment(
    body: PaymentCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> PaymentOutput:
    """Open a pending payment for one of the caller's orders."""
    return _get_service(db).create(
        body.order_id,
        body.payment_method,
        amount=body.amount,
        ctx=ctx,
    )


@router.get("", response_model=list[PaymentOutput])
def list_payments(
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_admin),
) -> list[PaymentOutput]:
    """Every payment on the platform. Requires ADMIN role."""
    return _get_service(db).list_all(ctx, limit=pagination.limit, offset=pagination.offset)


@router.get("/order/{order_id}", response_model=list[PaymentOutput])
def list_order_payments(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[PaymentOutput]:
    """Payments of an order."""
    return _get_service(db).list_for_order(order_id, ctx)


@router.post("/{payment_id}/process", response_model=PaymentOutput)
def process_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> PaymentOutput:
    """Settle a pending payment."""
    return _get_service(db).process(payment_id, ctx)


@router.post("/{payment_id}/refund", response_model=PaymentOutput)
def refund_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_admin),
) -> PaymentOutput:
    """Refund a completed payment. Requires ADMIN role."""
    return _get_service(db).refund(payment_id, ctx)
