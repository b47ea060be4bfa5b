"""
Review model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .restaurant import Restaurant


class Review(TimestampMixin, Base):
    """
    A customer review of a restaurant.

    Reviews start unapproved and only count towards the restaurant's cached
    rating once a moderator approves them.
    """

    __tablename__ = "review"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id"), nullable=False, index=True
    )
    restaurant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("restaurant.id"), nullable=False, index=True
    )
    order_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("customer_order.id"), nullable=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text)
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    restaurant: Mapped["Restaurant"] = relationship(back_populates="reviews")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="chk_review_rating_range"),
        # Aggregate recompute filters on both columns
        Index("ix_review_restaurant_approved", "restaurant_id", "is_approved"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, rating={self.rating}, approved={self.is_approved})>"
