"""
Configuration module: Settings, logging, constants.
"""

from marketplace_shared.config.settings import settings, DATABASE_URL
from marketplace_shared.config.logging import get_logger, setup_logging
from marketplace_shared.config.constants import (
    Roles,
    OrderStatus,
    PaymentStatus,
    ORDER_TRANSITIONS,
)

__all__ = [
    # settings
    "settings",
    "DATABASE_URL",
    # logging
    "get_logger",
    "setup_logging",
    # constants
    "Roles",
    "OrderStatus",
    "PaymentStatus",
    "ORDER_TRANSITIONS",
]
