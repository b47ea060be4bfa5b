"""
API routers. Each router is a thin controller over a domain service.
"""

from .health import router as health_router
from .restaurants import router as restaurants_router
from .menu import router as menu_router
from .cart import router as cart_router
from .orders import router as orders_router
from .payments import router as payments_router
from .reviews import router as reviews_router
from .admin import router as admin_router

__all__ = [
    "health_router",
    "restaurants_router",
    "menu_router",
    "cart_router",
    "orders_router",
    "payments_router",
    "reviews_router",
    "admin_router",
]
