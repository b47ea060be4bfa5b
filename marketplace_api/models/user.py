"""
User and Address models.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace_shared.config.constants import Roles
from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .restaurant import Restaurant


class User(TimestampMixin, Base):
    """
    A marketplace account.
    Credentials live with the external identity provider; this row only
    carries profile data and the role used by the capability policy.
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(Text)
    role: Mapped[str] = mapped_column(
        String(32), default=Roles.CUSTOMER, nullable=False
    )  # customer, restaurant_owner, admin

    restaurants: Mapped[list["Restaurant"]] = relationship(back_populates="owner")
    addresses: Mapped[list["Address"]] = relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role='{self.role}')>"


class Address(TimestampMixin, Base):
    """Delivery address referenced by orders. Managed outside this service."""

    __tablename__ = "address"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id"), nullable=False, index=True
    )
    street_address: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(Text, nullable=False)
    state: Mapped[str] = mapped_column(Text, nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(Text, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user: Mapped["User"] = relationship(back_populates="addresses")
