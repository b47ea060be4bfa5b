"""
Domain Services - application layer.

Services contain business logic and orchestrate operations.
They use Repositories for data access and consult the capability policy
(PermissionContext) before mutating anything.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from marketplace_api.services.domain import MenuItemService

    # In router
    service = MenuItemService(db)
    items = service.list_for_restaurant(restaurant_id)
"""

from .restaurant_service import RestaurantService
from .menu_category_service import MenuCategoryService
from .menu_item_service import MenuItemService
from .menu_item_option_service import MenuItemOptionService
from .cart_service import CartService
from .order_service import OrderService, calculate_order_totals
from .payment_service import PaymentService
from .review_service import ReviewService, recompute_restaurant_rating
from .admin_service import AdminService

__all__ = [
    "RestaurantService",
    "MenuCategoryService",
    "MenuItemService",
    "MenuItemOptionService",
    "CartService",
    "OrderService",
    "calculate_order_totals",
    "PaymentService",
    "ReviewService",
    "recompute_restaurant_rating",
    "AdminService",
]
