"""
Cart model.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .menu import MenuItem


class CartItem(TimestampMixin, Base):
    """
    One line of a customer's cart.

    A user has a single cart spanning restaurants; orders are built from the
    lines whose menu item belongs to the ordered restaurant.
    total_price is (item price + selected option modifiers) * quantity at the
    time the line was added.
    """

    __tablename__ = "cart_item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id"), nullable=False, index=True
    )
    menu_item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("menu_item.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    selected_options: Mapped[Optional[list[int]]] = mapped_column(JSON, nullable=True)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    menu_item: Mapped["MenuItem"] = relationship()

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_cart_item_quantity_positive"),
    )
