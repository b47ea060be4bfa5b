"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class, TimestampMixin, SoftDeleteMixin
- user: User, Address
- restaurant: Restaurant
- menu: MenuCategory, MenuItem, MenuItemOption
- cart: CartItem
- order: Order, OrderItem
- payment: Payment
- review: Review
"""

# Base classes
from .base import Base, TimestampMixin, SoftDeleteMixin

# Accounts
from .user import User, Address

# Catalog
from .restaurant import Restaurant
from .menu import MenuCategory, MenuItem, MenuItemOption

# Ordering
from .cart import CartItem
from .order import Order, OrderItem
from .payment import Payment

# Feedback
from .review import Review

__all__ = [
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    "User",
    "Address",
    "Restaurant",
    "MenuCategory",
    "MenuItem",
    "MenuItemOption",
    "CartItem",
    "Order",
    "OrderItem",
    "Payment",
    "Review",
]
