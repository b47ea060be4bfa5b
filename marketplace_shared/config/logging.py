"""
Centralized structured logging for the marketplace backend.
Uses Python's standard logging with JSON formatting for production.

Every record carries the request correlation ID when one is set.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from marketplace_shared.config.settings import settings


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs logs in a format easily parseable by log aggregation tools.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id and request_id != "-":
            log_data["request_id"] = request_id

        if hasattr(record, "extra_data") and record.extra_data:
            log_data["data"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Source location only in debug mode
        if settings.debug:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable, colored formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.now().strftime("%H:%M:%S")

        request_id = getattr(record, "request_id", None)
        if request_id and request_id != "-":
            request_id_str = f"{self.DIM}[{request_id[:8]}]{self.RESET} "
        else:
            request_id_str = ""

        message = (
            f"{color}[{timestamp}] {record.levelname:8}{self.RESET} "
            f"{request_id_str}{record.name}: {record.getMessage()}"
        )

        if hasattr(record, "extra_data") and record.extra_data:
            data_str = " | ".join(f"{k}={v}" for k, v in record.extra_data.items())
            message += f" ({data_str})"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


class StructuredLogger(logging.Logger):
    """
    Custom logger that accepts structured data as keyword arguments.

    Usage:
        logger.info("Order created", order_id=12, restaurant_id=3)
    """

    def _log_with_data(
        self,
        level: int,
        msg: str,
        args: tuple,
        exc_info: Any = None,
        extra: dict | None = None,
        **kwargs: Any,
    ) -> None:
        """Log with optional structured data."""
        if not self.isEnabledFor(level):
            return
        if extra is None:
            extra = {}
        extra["extra_data"] = kwargs if kwargs else None
        super()._log(level, msg, args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.DEBUG, msg, args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.INFO, msg, args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.WARNING, msg, args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        self._log_with_data(logging.ERROR, msg, args, exc_info=exc_info, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        self._log_with_data(logging.CRITICAL, msg, args, exc_info=exc_info, **kwargs)


# Set custom logger class
logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """
    Configure logging for the application.
    Call this once at application startup.
    """
    # Import here to avoid circular imports
    from marketplace_shared.infrastructure.correlation import CorrelationIdFilter

    log_level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(CorrelationIdFilter())

    if settings.environment == "production":
        formatter = StructuredFormatter()
    else:
        formatter = DevelopmentFormatter()

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a logger instance with the given name.

    Usage:
        from marketplace_shared.config.logging import get_logger
        logger = get_logger(__name__)

        logger.info("Restaurant created", restaurant_id=7, owner_id=3)
        logger.error("Failed to place order", user_id=4, exc_info=True)
    """
    return logging.getLogger(name)  # type: ignore


def mask_email(email: str | None) -> str:
    """
    Mask an email address for logging.

    Converts "user@example.com" to "us***@example.com".

    Args:
        email: The email address to mask.

    Returns:
        Masked email string safe for logging.
    """
    if not email:
        return "<no-email>"

    try:
        local, domain = email.split("@", 1)
        if len(local) <= 2:
            masked_local = local[0] + "***"
        else:
            masked_local = local[:2] + "***"
        return f"{masked_local}@{domain}"
    except (ValueError, IndexError):
        return "***@invalid"


# Pre-configured loggers for common modules
api_logger = get_logger("marketplace_api")
orders_logger = get_logger("marketplace_api.orders")
reviews_logger = get_logger("marketplace_api.reviews")
payments_logger = get_logger("marketplace_api.payments")

# Dedicated audit logger for moderation, refunds and administration changes
audit_logger = get_logger("marketplace.audit")


# =============================================================================
# Audit Logging Functions
# =============================================================================


def audit_review_moderation(
    review_id: int,
    restaurant_id: int,
    is_approved: bool,
    was_approved: bool,
    moderator_id: int | None = None,
    **extra: Any,
) -> None:
    """
    Log a review moderation decision.

    Args:
        review_id: Moderated review.
        restaurant_id: Restaurant the review belongs to.
        is_approved: New approval flag.
        was_approved: Approval flag before moderation.
        moderator_id: Acting user, when known.
        **extra: Additional context data
    """
    audit_logger.info(
        "REVIEW_MODERATION_AUDIT",
        review_id=review_id,
        restaurant_id=restaurant_id,
        is_approved=is_approved,
        was_approved=was_approved,
        moderator_id=moderator_id,
        **extra,
    )


def audit_restaurant_status(
    restaurant_id: int,
    is_active: bool,
    actor_id: int | None = None,
    **extra: Any,
) -> None:
    """
    Log an administrative activation change on a restaurant.

    Args:
        restaurant_id: Affected restaurant.
        is_active: New activation flag.
        actor_id: Acting administrator, when known.
        **extra: Additional context data
    """
    audit_logger.info(
        "RESTAURANT_STATUS_AUDIT",
        restaurant_id=restaurant_id,
        is_active=is_active,
        actor_id=actor_id,
        **extra,
    )


def audit_payment_refund(
    payment_id: int,
    order_id: int,
    amount: str,
    actor_id: int | None = None,
    **extra: Any,
) -> None:
    """
    Log a refunded payment.

    Args:
        payment_id: Refunded payment.
        order_id: Order the payment belongs to.
        amount: Refunded amount, as a decimal string.
        actor_id: Acting administrator, when known.
        **extra: Additional context data
    """
    audit_logger.info(
        "PAYMENT_REFUND_AUDIT",
        payment_id=payment_id,
        order_id=order_id,
        amount=amount,
        actor_id=actor_id,
        **extra,
    )
