"""
Utilities module: Exceptions, validators, schemas.
"""

from marketplace_shared.utils.exceptions import (
    NotFoundError,
    ForbiddenError,
    ValidationError,
    AuthenticationError,
)
from marketplace_shared.utils.validators import (
    validate_image_url,
    escape_like_pattern,
    to_decimal,
    to_float,
)

__all__ = [
    # exceptions
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "AuthenticationError",
    # validators
    "validate_image_url",
    "escape_like_pattern",
    "to_decimal",
    "to_float",
]
