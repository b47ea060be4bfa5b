"""
Payment Service - payment attempts against orders.

Payments are simulated: processing a pending payment either completes it
with a generated transaction id, or fails it when the order was canceled
in the meantime. The order's `payment_status` follows the payment in the
same transaction.

Usage:
    from marketplace_api.services.domain import PaymentService

    service = PaymentService(db)
    payment = service.create(order_id=12, payment_method="card", ctx=ctx)
    service.process(payment.id, ctx)
    service.refund(payment.id, admin_ctx)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy.orm import Session

from marketplace_api.models import Order, Payment
from marketplace_api.services.base_service import BaseService
from marketplace_api.services.domain.restaurant_service import clamp_page
from marketplace_api.services.permissions import Action, PermissionContext
from marketplace_shared.config.constants import OrderStatus, PaymentStatus
from marketplace_shared.config.logging import audit_payment_refund, payments_logger
from marketplace_shared.utils.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    OrderNotFoundError,
    PaymentNotFoundError,
    ValidationError,
)
from marketplace_shared.utils.schemas import PaymentOutput
from marketplace_shared.utils.validators import to_decimal


def generate_transaction_id(prefix: str) -> str:
    """Opaque reference standing in for a payment provider's transaction id."""
    return f"{prefix}-{uuid.uuid4().hex}"


class PaymentService(BaseService[Payment]):
    """
    Service for payments.

    Business rules:
    - Payments are created pending, for an existing order that is neither
      canceled nor already paid; the amount defaults to the order total
    - Only the customer who placed the order (or an admin) pays for it
    - Only pending payments can be processed
    - Only completed payments can be refunded, by an admin
    """

    def __init__(self, db: Session):
        super().__init__(db, Payment)

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_for_order(self, order_id: int, ctx: PermissionContext | None = None) -> list[PaymentOutput]:
        """
        List the payments of an order, oldest first.

        Raises:
            OrderNotFoundError: If the order does not exist.
            ForbiddenError: If the caller may not see this order.
        """
        order = self._require_order(order_id)
        if ctx is not None:
            ctx.require(Action.READ, order)
        payments = self._repo.find_all(
            where=[Payment.order_id == order_id],
            order_by=Payment.id,
        )
        return [PaymentOutput.model_validate(p) for p in payments]

    def list_all(
        self,
        ctx: PermissionContext | None = None,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[PaymentOutput]:
        """List every payment on the platform, newest first. Admin only."""
        if ctx is not None:
            ctx.require_admin()
        limit, offset = clamp_page(limit, offset)
        payments = self._repo.find_all(
            order_by=Payment.id.desc(),
            limit=limit,
            offset=offset,
        )
        return [PaymentOutput.model_validate(p) for p in payments]

    # =========================================================================
    # Command Methods
    # =========================================================================

    def create(
        self,
        order_id: int,
        payment_method: str,
        amount: float | Decimal | None = None,
        ctx: PermissionContext | None = None,
    ) -> PaymentOutput:
        """
        Open a pending payment for an order.

        Raises:
            OrderNotFoundError: If the order does not exist.
            ForbiddenError: If the caller did not place the order.
            ValidationError: If the order is canceled or already paid, or
                the amount is not positive.
        """
        order = self._require_order(order_id)
        if ctx is not None:
            self._require_payer(order, ctx)

        if order.status == OrderStatus.CANCELED:
            raise ValidationError("Cannot pay for a canceled order", field="order_id", order_id=order_id)
        if order.payment_status == PaymentStatus.COMPLETED:
            raise ValidationError("Order is already paid", field="order_id", order_id=order_id)

        amount = to_decimal(amount) if amount is not None else to_decimal(order.total_amount)
        if amount <= 0:
            raise ValidationError("amount must be positive", field="amount", order_id=order_id)

        payment = Payment(
            order_id=order_id,
            amount=amount,
            payment_method=payment_method,
            status=PaymentStatus.PENDING,
        )
        self._db.add(payment)
        self._commit("create payment", order_id=order_id)
        self._db.refresh(payment)

        payments_logger.info(
            "Payment created",
            payment_id=payment.id,
            order_id=order_id,
            amount=str(payment.amount),
            payment_method=payment_method,
        )
        return PaymentOutput.model_validate(payment)

    def process(self, payment_id: int, ctx: PermissionContext | None = None) -> PaymentOutput:
        """
        Settle a pending payment.

        Completes the payment with a transaction id, or fails it when the
        order has been canceled since the payment was opened.

        Raises:
            PaymentNotFoundError: If the payment does not exist.
            ForbiddenError: If the caller did not place the order.
            InvalidTransitionError: If the payment is not pending.
        """
        payment = self._require_payment(payment_id)
        order = payment.order
        if ctx is not None:
            self._require_payer(order, ctx)

        if payment.status != PaymentStatus.PENDING:
            raise InvalidTransitionError(
                "payment",
                payment.status,
                PaymentStatus.COMPLETED,
                payment_id=payment_id,
            )

        if order.status == OrderStatus.CANCELED:
            payment.status = PaymentStatus.FAILED
        else:
            payment.status = PaymentStatus.COMPLETED
            payment.transaction_id = generate_transaction_id("txn")
        payment.touch()
        order.payment_status = payment.status
        order.touch()

        self._commit("process payment", payment_id=payment_id, order_id=order.id)
        self._db.refresh(payment)

        payments_logger.info(
            "Payment processed",
            payment_id=payment_id,
            order_id=order.id,
            status=payment.status,
        )
        return PaymentOutput.model_validate(payment)

    def refund(self, payment_id: int, ctx: PermissionContext | None = None) -> PaymentOutput:
        """
        Refund a completed payment. Admin only.

        Raises:
            InsufficientRoleError: If the caller is not an admin.
            PaymentNotFoundError: If the payment does not exist.
            InvalidTransitionError: If the payment is not completed.
        """
        if ctx is not None:
            ctx.require_admin()

        payment = self._require_payment(payment_id)
        if payment.status != PaymentStatus.COMPLETED:
            raise InvalidTransitionError(
                "payment",
                payment.status,
                PaymentStatus.REFUNDED,
                payment_id=payment_id,
            )

        payment.status = PaymentStatus.REFUNDED
        payment.transaction_id = generate_transaction_id("refund")
        payment.touch()
        payment.order.payment_status = PaymentStatus.REFUNDED
        payment.order.touch()

        self._commit("refund payment", payment_id=payment_id, order_id=payment.order_id)
        self._db.refresh(payment)

        audit_payment_refund(
            payment_id=payment.id,
            order_id=payment.order_id,
            amount=str(payment.amount),
            actor_id=ctx.user_id if ctx is not None else None,
        )
        return PaymentOutput.model_validate(payment)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _require_order(self, order_id: int) -> Order:
        order = self._db.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def _require_payment(self, payment_id: int) -> Payment:
        payment = self._repo.find_by_id(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        return payment

    @staticmethod
    def _require_payer(order: Order, ctx: PermissionContext) -> None:
        if not ctx.is_admin and order.user_id != ctx.user_id:
            raise ForbiddenError("pay for this order", user_id=ctx.user_id, order_id=order.id)
