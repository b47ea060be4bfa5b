"""
Review Service - moderation and restaurant rating aggregate.

Reviews start pending and only count towards the restaurant's cached
rating once approved. The cached `rating` / `total_reviews` pair on the
restaurant is recomputed inside the same transaction as the review
mutation that affects it.

Usage:
    from marketplace_api.services.domain import ReviewService

    service = ReviewService(db)
    review = service.create({"user_id": 3, "restaurant_id": 1, "rating": 5}, ctx)
    service.moderate(review.id, is_approved=True, ctx=admin_ctx)
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from marketplace_api.models import Order, Restaurant, Review
from marketplace_api.services.base_service import BaseCRUDService
from marketplace_api.services.crud import BaseRepository, UserScopedRepository
from marketplace_api.services.permissions import Action, PermissionContext
from marketplace_shared.config.constants import Limits
from marketplace_shared.config.logging import reviews_logger, audit_review_moderation
from marketplace_shared.utils.exceptions import (
    NotFoundError,
    OrderNotFoundError,
    RestaurantNotFoundError,
    ReviewNotFoundError,
    ValidationError,
)
from marketplace_shared.utils.schemas import ReviewOutput
from marketplace_shared.utils.validators import to_decimal


# =============================================================================
# Rating Aggregate
# =============================================================================


def recompute_restaurant_rating(db: Session, restaurant_id: int) -> Restaurant | None:
    """
    Recompute the cached rating of a restaurant from its approved reviews.

    Writes the mean rating (2 decimals) and the approved review count onto
    the restaurant row without committing. With no approved reviews the
    rating is cleared to None.

    Args:
        db: Session holding the pending review mutation.
        restaurant_id: Restaurant to recompute.

    Returns:
        The updated restaurant, or None if it does not exist.
    """
    # The aggregate must see the pending review change (autoflush is off)
    db.flush()

    avg_rating, total_reviews = db.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(
            Review.restaurant_id == restaurant_id,
            Review.is_approved.is_(True),
        )
    ).one()

    restaurant = db.get(Restaurant, restaurant_id)
    if restaurant is None:
        reviews_logger.warning("Rating recompute skipped, restaurant missing", restaurant_id=restaurant_id)
        return None

    restaurant.rating = to_decimal(avg_rating) if total_reviews else None
    restaurant.total_reviews = total_reviews or 0
    restaurant.touch()

    reviews_logger.info(
        "Restaurant rating recomputed",
        restaurant_id=restaurant_id,
        rating=str(restaurant.rating) if restaurant.rating is not None else None,
        total_reviews=restaurant.total_reviews,
    )
    return restaurant


# =============================================================================
# Review Service
# =============================================================================


class ReviewService(BaseCRUDService[Review, ReviewOutput]):
    """
    Service for reviews.

    Business rules:
    - The reviewed restaurant must exist (soft-deleted restaurants do not)
    - A referenced order must exist and belong to the same restaurant
    - New reviews are always pending
    - Approving, un-approving and deleting an approved review recompute
      the restaurant rating in the same transaction
    - Moderation is admin-only
    """

    def __init__(self, db: Session):
        super().__init__(
            db=db,
            model=Review,
            output_schema=ReviewOutput,
            entity_name="Review",
        )
        self._user_repo: UserScopedRepository[Review] = UserScopedRepository(Review, db)
        self._restaurant_repo: BaseRepository[Restaurant] = BaseRepository(Restaurant, db)

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_for_restaurant(
        self,
        restaurant_id: int,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[ReviewOutput]:
        """List approved reviews of a restaurant, newest first."""
        return self.list_all(
            where=[Review.restaurant_id == restaurant_id, Review.is_approved.is_(True)],
            order_by=(Review.created_at.desc(), Review.id.desc()),
            limit=limit,
            offset=offset,
        )

    def list_pending(self, ctx: PermissionContext | None = None) -> list[ReviewOutput]:
        """List the moderation queue, oldest first."""
        if ctx is not None:
            ctx.require_admin()
        return self.list_all(
            where=[Review.is_approved.is_(False)],
            order_by=(Review.created_at, Review.id),
        )

    def list_for_user(self, user_id: int) -> list[ReviewOutput]:
        """List every review written by a user, pending ones included."""
        reviews = self._user_repo.find_by_user(
            user_id,
            order_by=(Review.created_at.desc(), Review.id.desc()),
        )
        return [self.to_output(r) for r in reviews]

    # =========================================================================
    # Command Methods
    # =========================================================================

    def moderate(
        self,
        review_id: int,
        is_approved: bool,
        ctx: PermissionContext | None = None,
    ) -> ReviewOutput:
        """
        Approve or reject a review.

        Recomputes the restaurant rating when the review is approved, or
        when a previously approved review is rejected.

        Raises:
            ReviewNotFoundError: If the review does not exist.
            InsufficientRoleError: If the caller is not an admin.
        """
        if ctx is not None:
            ctx.require_admin()

        review = self._require_entity(review_id)
        was_approved = review.is_approved

        review.is_approved = is_approved
        review.touch()

        if is_approved or was_approved:
            recompute_restaurant_rating(self._db, review.restaurant_id)

        self._commit("moderate review", review_id=review_id)
        self._db.refresh(review)

        audit_review_moderation(
            review_id=review.id,
            restaurant_id=review.restaurant_id,
            is_approved=is_approved,
            was_approved=was_approved,
            moderator_id=ctx.user_id if ctx is not None else None,
        )

        return self.to_output(review)

    # =========================================================================
    # Validation Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any]) -> None:
        """Check the rating range, the reviewed restaurant and the optional order."""
        if not data.get("user_id"):
            raise ValidationError("user_id is required", field="user_id")

        rating = data.get("rating")
        if not isinstance(rating, int) or not (
            Limits.MIN_REVIEW_RATING <= rating <= Limits.MAX_REVIEW_RATING
        ):
            raise ValidationError(
                f"rating must be between {Limits.MIN_REVIEW_RATING} and {Limits.MAX_REVIEW_RATING}",
                field="rating",
                rating=rating,
            )

        restaurant_id = data.get("restaurant_id")
        restaurant = self._restaurant_repo.find_by_id(restaurant_id, include_inactive=True)
        if restaurant is None:
            raise RestaurantNotFoundError(restaurant_id)

        order_id = data.get("order_id")
        if order_id is not None:
            order = self._db.get(Order, order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order.restaurant_id != restaurant_id:
                raise ValidationError(
                    "Order does not belong to this restaurant",
                    field="order_id",
                    order_id=order_id,
                    restaurant_id=restaurant_id,
                )

        # Reviews always enter the moderation queue
        data["is_approved"] = False

    def _authorize_create(self, data: dict[str, Any], ctx: PermissionContext) -> None:
        ctx.require(Action.CREATE, "Review")

    # =========================================================================
    # Lifecycle Hooks
    # =========================================================================

    def _after_create(self, entity: Review, ctx: PermissionContext | None) -> None:
        reviews_logger.info(
            "Review submitted",
            review_id=entity.id,
            restaurant_id=entity.restaurant_id,
            user_id=entity.user_id,
            rating=entity.rating,
        )

    def _get_entity_info(self, entity: Review) -> dict[str, Any]:
        info = super()._get_entity_info(entity)
        info["is_approved"] = entity.is_approved
        return info

    def _before_delete_commit(self, entity_info: dict[str, Any]) -> None:
        if entity_info["is_approved"]:
            recompute_restaurant_rating(self._db, entity_info["restaurant_id"])

    def _after_delete(self, entity_info: dict[str, Any], ctx: PermissionContext | None) -> None:
        reviews_logger.info(
            "Review deleted",
            review_id=entity_info["id"],
            restaurant_id=entity_info["restaurant_id"],
            was_approved=entity_info["is_approved"],
        )

    def _not_found(self, entity_id: int | None) -> NotFoundError:
        return ReviewNotFoundError(entity_id)
