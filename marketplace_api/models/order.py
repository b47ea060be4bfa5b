"""
Order Models: Order, OrderItem.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace_shared.config.constants import OrderStatus, PaymentStatus
from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .user import User, Address
    from .restaurant import Restaurant
    from .menu import MenuItem


class Order(TimestampMixin, Base):
    """
    A placed delivery order.

    Status follows created -> confirmed -> preparing -> out_for_delivery ->
    delivered, with canceled reachable from any non-terminal status.
    Monetary fields are fixed at placement time.
    """

    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id"), nullable=False, index=True
    )
    restaurant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    delivery_address_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("address.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(32), default=OrderStatus.CREATED, nullable=False, index=True
    )
    payment_status: Mapped[str] = mapped_column(
        String(32), default=PaymentStatus.PENDING, nullable=False
    )
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    delivery_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    estimated_delivery_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    user: Mapped["User"] = relationship()
    restaurant: Mapped["Restaurant"] = relationship()
    delivery_address: Mapped["Address"] = relationship()
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_order_restaurant_status", "restaurant_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, status='{self.status}', restaurant_id={self.restaurant_id})>"


class OrderItem(TimestampMixin, Base):
    """A line of an order, with prices copied from the cart line."""

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customer_order.id"), nullable=False, index=True
    )
    menu_item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("menu_item.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    selected_options: Mapped[Optional[list[int]]] = mapped_column(JSON, nullable=True)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items")
    menu_item: Mapped["MenuItem"] = relationship()

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_item_quantity_positive"),
    )
