"""
Menu Models: MenuCategory, MenuItem, MenuItemOption.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .restaurant import Restaurant


class MenuCategory(TimestampMixin, Base):
    """A section of a restaurant menu (Starters, Mains, ...)."""

    __tablename__ = "menu_category"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    restaurant: Mapped["Restaurant"] = relationship(back_populates="categories")
    items: Mapped[list["MenuItem"]] = relationship(back_populates="category")


class MenuItem(TimestampMixin, Base):
    """
    A dish offered by a restaurant.
    Price is stored as NUMERIC(10, 2) and exposed as a number.
    """

    __tablename__ = "menu_item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("menu_category.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    restaurant: Mapped["Restaurant"] = relationship(back_populates="menu_items")
    category: Mapped["MenuCategory"] = relationship(back_populates="items")
    options: Mapped[list["MenuItemOption"]] = relationship(
        back_populates="menu_item",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("price > 0", name="chk_menu_item_price_positive"),
        Index("ix_menu_item_restaurant_category", "restaurant_id", "category_id"),
    )

    def __repr__(self) -> str:
        return f"<MenuItem(id={self.id}, name='{self.name}', price={self.price})>"


class MenuItemOption(TimestampMixin, Base):
    """
    An add-on or variant of a menu item (extra cheese, large size).
    price_modifier may be negative, zero or positive.
    """

    __tablename__ = "menu_item_option"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    menu_item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("menu_item.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price_modifier: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    menu_item: Mapped["MenuItem"] = relationship(back_populates="options")
