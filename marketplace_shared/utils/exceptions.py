"""
Centralized HTTP exceptions for consistent error handling.

Usage:
    from marketplace_shared.utils.exceptions import NotFoundError, ForbiddenError, ValidationError

    raise NotFoundError("Menu item", menu_item_id)
    raise ForbiddenError("update this restaurant")
    raise ValidationError("Price must be positive")
"""

from typing import Any

from fastapi import HTTPException, status

from marketplace_shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Restaurant", 123)
        raise NotFoundError("Owner", owner_id)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{entity} not found",
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class RestaurantNotFoundError(NotFoundError):
    """Restaurant not found."""

    def __init__(self, restaurant_id: int | None = None, **log_context: Any):
        super().__init__("Restaurant", restaurant_id, **log_context)


class ReviewNotFoundError(NotFoundError):
    """Review not found."""

    def __init__(self, review_id: int | None = None, **log_context: Any):
        super().__init__("Review", review_id, **log_context)


class MenuItemNotFoundError(NotFoundError):
    """Menu item not found."""

    def __init__(self, menu_item_id: int | None = None, **log_context: Any):
        super().__init__("Menu item", menu_item_id, **log_context)


class OrderNotFoundError(NotFoundError):
    """Order not found."""

    def __init__(self, order_id: int | None = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


class PaymentNotFoundError(NotFoundError):
    """Payment not found."""

    def __init__(self, payment_id: int | None = None, **log_context: Any):
        super().__init__("Payment", payment_id, **log_context)


# =============================================================================
# 401 / 403 Access Errors
# =============================================================================


class AuthenticationError(AppException):
    """Caller identity missing or unknown (401)."""

    def __init__(self, detail: str = "Authentication required", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("delete menu items")
        raise ForbiddenError("manage this restaurant", user_id=user_id)
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        if action:
            detail = f"Not authorized to {action}"
        else:
            detail = "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            action=action,
            **log_context,
        )


class InsufficientRoleError(ForbiddenError):
    """User doesn't have the required role."""

    def __init__(self, required_roles: list[str], **log_context: Any):
        roles_str = ", ".join(required_roles)
        super().__init__(
            f"perform this action (requires role: {roles_str})",
            required_roles=required_roles,
            **log_context,
        )


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Price must be positive")
        raise ValidationError("Invalid quantity", field="quantity", value=-1)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InvalidTransitionError(ValidationError):
    """Invalid status transition."""

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        detail = f"Invalid transition from '{from_status}' to '{to_status}' for {entity}"
        super().__init__(detail, entity=entity, from_status=from_status, to_status=to_status, **log_context)


class EmptyCartError(ValidationError):
    """No cart lines to build an order from."""

    def __init__(self, **log_context: Any):
        super().__init__("No cart items found for this restaurant", **log_context)


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """
    Internal server error (500).

    Usage:
        raise InternalError("Failed to recompute rating", restaurant_id=12)
    """

    def __init__(self, detail: str = "Internal server error", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )


class DatabaseError(InternalError):
    """Database operation failed."""

    def __init__(self, operation: str, **log_context: Any):
        detail = f"Database error while trying to {operation}. Please try again."
        super().__init__(detail, operation=operation, **log_context)
