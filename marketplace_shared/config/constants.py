"""
Centralized constants for the marketplace backend.
Avoids magic strings for roles, statuses and tracking texts.

Usage:
    from marketplace_shared.config.constants import Roles, OrderStatus

    if user.role == Roles.ADMIN:
        ...

    if order.status == OrderStatus.DELIVERED:
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants."""

    CUSTOMER: Final[str] = "customer"
    RESTAURANT_OWNER: Final[str] = "restaurant_owner"
    ADMIN: Final[str] = "admin"

    ALL: Final[list[str]] = [CUSTOMER, RESTAURANT_OWNER, ADMIN]


# =============================================================================
# Entity Status Constants
# =============================================================================


class OrderStatus:
    """Order status constants."""

    CREATED: Final[str] = "created"
    CONFIRMED: Final[str] = "confirmed"
    PREPARING: Final[str] = "preparing"
    OUT_FOR_DELIVERY: Final[str] = "out_for_delivery"
    DELIVERED: Final[str] = "delivered"
    CANCELED: Final[str] = "canceled"

    ALL: Final[list[str]] = [CREATED, CONFIRMED, PREPARING, OUT_FOR_DELIVERY, DELIVERED, CANCELED]

    # Status groups
    ACTIVE: Final[list[str]] = [CREATED, CONFIRMED, PREPARING, OUT_FOR_DELIVERY]
    TERMINAL: Final[list[str]] = [DELIVERED, CANCELED]
    CUSTOMER_CANCELABLE: Final[list[str]] = [CREATED]


class PaymentStatus:
    """Payment status constants."""

    PENDING: Final[str] = "pending"
    COMPLETED: Final[str] = "completed"
    FAILED: Final[str] = "failed"
    REFUNDED: Final[str] = "refunded"

    ALL: Final[list[str]] = [PENDING, COMPLETED, FAILED, REFUNDED]


# =============================================================================
# Order Progression
# =============================================================================

# Fixed progression rendered by order tracking; canceled is out of band
ORDER_STATUS_SEQUENCE: Final[tuple[str, ...]] = (
    OrderStatus.CREATED,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
)

ORDER_TRANSITIONS: Final[dict[str, list[str]]] = {
    OrderStatus.CREATED: [OrderStatus.CONFIRMED, OrderStatus.CANCELED],
    OrderStatus.CONFIRMED: [OrderStatus.PREPARING, OrderStatus.CANCELED],
    OrderStatus.PREPARING: [OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELED],
    OrderStatus.OUT_FOR_DELIVERY: [OrderStatus.DELIVERED, OrderStatus.CANCELED],
    OrderStatus.DELIVERED: [],  # Terminal state
    OrderStatus.CANCELED: [],  # Terminal state
}


# =============================================================================
# Order Tracking Texts
# =============================================================================

# ETA text shown when the order carries no explicit estimated delivery time
ORDER_ETA_FALLBACK: Final[dict[str, str]] = {
    OrderStatus.CREATED: "45-60 minutes",
    OrderStatus.CONFIRMED: "40-50 minutes",
    OrderStatus.PREPARING: "25-35 minutes",
    OrderStatus.OUT_FOR_DELIVERY: "10-15 minutes",
    OrderStatus.DELIVERED: "Delivered",
}
ORDER_ETA_UNKNOWN: Final[str] = "Estimating..."
ORDER_ETA_PASSED: Final[str] = "Any moment now!"
ORDER_ETA_CANCELED: Final[str] = "Canceled"

# (label, description) per progression step
ORDER_STEP_TEXTS: Final[dict[str, tuple[str, str]]] = {
    OrderStatus.CREATED: ("Order Placed", "Your order has been placed successfully"),
    OrderStatus.CONFIRMED: ("Confirmed", "Restaurant has confirmed your order"),
    OrderStatus.PREPARING: ("Preparing", "Your delicious food is being prepared"),
    OrderStatus.OUT_FOR_DELIVERY: ("Out for Delivery", "Your order is on the way!"),
    OrderStatus.DELIVERED: ("Delivered", "Enjoy your meal!"),
}


# =============================================================================
# Validation Limits
# =============================================================================


class Limits:
    """Validation limits for input data."""

    MIN_REVIEW_RATING: Final[int] = 1
    MAX_REVIEW_RATING: Final[int] = 5
    MIN_QUANTITY: Final[int] = 1
    MAX_QUANTITY: Final[int] = 99
    MAX_PRICE: Final[float] = 99_999_999.99
    MAX_NAME_LENGTH: Final[int] = 200
    MAX_COMMENT_LENGTH: Final[int] = 2000
    MAX_NOTES_LENGTH: Final[int] = 500
    MAX_PAYMENT_METHOD_LENGTH: Final[int] = 50
    MAX_SEARCH_LENGTH: Final[int] = 100


# =============================================================================
# Transition Helpers
# =============================================================================


def is_valid_order_transition(current_status: str, new_status: str) -> bool:
    """
    Check if an order status transition is valid.

    Re-applying the current status is valid only for non-terminal orders;
    it is used to refresh the estimated delivery time.
    """
    if current_status == new_status:
        return current_status in OrderStatus.ACTIVE
    allowed = ORDER_TRANSITIONS.get(current_status, [])
    return new_status in allowed


def get_allowed_order_transitions(current_status: str) -> list[str]:
    """Get the statuses an order can move to from its current status."""
    return list(ORDER_TRANSITIONS.get(current_status, []))
