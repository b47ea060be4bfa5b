"""
Review endpoints. Approved reviews of a restaurant are listed under
/api/restaurants/{id}/reviews; moderation lives here and under /api/admin.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from marketplace_api.routers._common import get_permission_context, require_admin
from marketplace_api.services.domain import ReviewService
from marketplace_api.services.permissions import PermissionContext
from marketplace_shared.infrastructure.db import get_db
from marketplace_shared.utils.schemas import ReviewCreate, ReviewModerate, ReviewOutput

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


def _get_service(db: Session) -> ReviewService:
    return ReviewService(db)


@router.post("", response_model=ReviewOutput, status_code=status.HTTP_201_CREATED)
def create_review(
    body: ReviewCreate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> ReviewOutput:
    """Submit a review. It stays pending until an admin approves it."""
    data = body.model_dump()
    data["user_id"] = ctx.user_id
    return _get_service(db).create(data, ctx)


@router.get("/mine", response_model=list[ReviewOutput])
def list_my_reviews(
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> list[ReviewOutput]:
    """The caller's reviews, pending ones included."""
    return _get_service(db).list_for_user(ctx.user_id)


@router.patch("/{review_id}/moderation", response_model=ReviewOutput)
def moderate_review(
    review_id: int,
    body: ReviewModerate,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(require_admin),
) -> ReviewOutput:
    """Approve or reject a review. Requires ADMIN role."""
    return _get_service(db).moderate(review_id, body.is_approved, ctx)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: int,
    db: Session = Depends(get_db),
    ctx: PermissionContext = Depends(get_permission_context),
) -> None:
    """Delete a review. Its author or an admin."""
    _get_service(db).delete(review_id, ctx)
