"""
Payment Model: Payment.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace_shared.config.constants import PaymentStatus
from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .order import Order


class Payment(TimestampMixin, Base):
    """
    A payment attempt against an order.

    Status moves pending -> completed -> refunded, or pending -> failed.
    The order's payment_status mirrors the latest processed payment.
    """

    __tablename__ = "payment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customer_order.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), default=PaymentStatus.PENDING, nullable=False, index=True
    )
    transaction_id: Mapped[Optional[str]] = mapped_column(String(100))

    order: Mapped["Order"] = relationship()

    __table_args__ = (
        CheckConstraint("amount > 0", name="chk_payment_amount_positive"),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, order_id={self.order_id}, status='{self.status}')>"
