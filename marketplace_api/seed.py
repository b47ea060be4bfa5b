"""
Seed data for development and demos.
Creates an admin, a restaurant owner with one restaurant and a small menu,
and a customer with a delivery address.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace_api.models import Address, Restaurant, User
from marketplace_api.services.domain import (
    MenuCategoryService,
    MenuItemOptionService,
    MenuItemService,
    RestaurantService,
)
from marketplace_shared.config.constants import Roles
from marketplace_shared.config.logging import get_logger, mask_email
from marketplace_shared.infrastructure.db import safe_commit

logger = get_logger(__name__)


# =============================================================================
# Seed Data
# =============================================================================

SEED_USERS = [
    {"email": "admin@marketplace.local", "name": "Platform Admin", "role": Roles.ADMIN},
    {"email": "owner@marketplace.local", "name": "Rosa Owner", "role": Roles.RESTAURANT_OWNER},
    {"email": "customer@marketplace.local", "name": "Sam Customer", "role": Roles.CUSTOMER},
]

SEED_MENU = {
    "Pizzas": [
        ("Margherita", "Tomato, mozzarella, basil", "12.50", [("Extra cheese", "1.50"), ("Gluten free base", "2.00")]),
        ("Diavola", "Spicy salami, chili oil", "14.00", [("Extra cheese", "1.50")]),
    ],
    "Drinks": [
        ("Lemonade", "Fresh squeezed", "3.50", [("Large", "1.00")]),
    ],
}


def _get_or_create_user(db: Session, email: str, name: str, role: str) -> User:
    user = db.scalar(select(User).where(User.email == email))
    if user is None:
        user = User(email=email, name=name, role=role)
        db.add(user)
        safe_commit(db)
        db.refresh(user)
        logger.info("Seeded user", user_id=user.id, email=mask_email(email), role=role)
    return user


def seed(db: Session) -> dict[str, int]:
    """
    Seed demo data.
    Idempotent: skips the restaurant and menu if the owner already has one.

    Returns:
        IDs of the seeded rows by name.
    """
    users = {u["role"]: _get_or_create_user(db, **u) for u in SEED_USERS}
    owner = users[Roles.RESTAURANT_OWNER]
    customer = users[Roles.CUSTOMER]

    if not customer.addresses:
        db.add(Address(
            user_id=customer.id,
            street_address="1 Demo Street",
            city="Springfield",
            state="IL",
            postal_code="62701",
            country="US",
            is_default=True,
        ))
        safe_commit(db)

    existing = db.scalar(select(Restaurant).where(Restaurant.owner_id == owner.id).limit(1))
    if existing is not None:
        logger.info("Restaurant already seeded, skipping", restaurant_id=existing.id)
        return {
            "admin_id": users[Roles.ADMIN].id,
            "owner_id": owner.id,
            "customer_id": customer.id,
            "restaurant_id": existing.id,
        }

    restaurant = RestaurantService(db).create({
        "owner_id": owner.id,
        "name": "Rosa's Pizzeria",
        "description": "Wood-fired pizza since 1998",
        "address": "42 Main Street",
        "phone": "+1-555-0100",
    })

    categories = MenuCategoryService(db)
    items = MenuItemService(db)
    options = MenuItemOptionService(db)

    for sort_order, (category_name, dishes) in enumerate(SEED_MENU.items(), start=1):
        category = categories.create({
            "restaurant_id": restaurant.id,
            "name": category_name,
            "sort_order": sort_order,
        })
        for item_order, (name, description, price, item_options) in enumerate(dishes, start=1):
            item = items.create({
                "restaurant_id": restaurant.id,
                "category_id": category.id,
                "name": name,
                "description": description,
                "price": price,
                "sort_order": item_order,
            })
            for option_order, (option_name, modifier) in enumerate(item_options, start=1):
                options.create({
                    "menu_item_id": item.id,
                    "name": option_name,
                    "price_modifier": modifier,
                    "sort_order": option_order,
                })

    logger.info("Seeded demo restaurant", restaurant_id=restaurant.id)
    return {
        "admin_id": users[Roles.ADMIN].id,
        "owner_id": owner.id,
        "customer_id": customer.id,
        "restaurant_id": restaurant.id,
    }
