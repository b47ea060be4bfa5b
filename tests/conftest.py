"""
Pytest configuration and fixtures for marketplace tests.
"""

import os

# The application engine is built at import time; point it at SQLite so the
# app lifespan never needs a PostgreSQL server.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace_api.main import app
from marketplace_api.models import (
    Address,
    Base,
    MenuCategory,
    MenuItem,
    MenuItemOption,
    Restaurant,
    User,
)
from marketplace_api.services.permissions import PermissionContext
from marketplace_shared.config.constants import Roles
from marketplace_shared.infrastructure.db import get_db


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _add(db_session, entity):
    db_session.add(entity)
    db_session.commit()
    db_session.refresh(entity)
    return entity


# =============================================================================
# Users
# =============================================================================


@pytest.fixture
def seed_admin(db_session):
    """Create an admin user."""
    return _add(db_session, User(email="admin@test.com", name="Test Admin", role=Roles.ADMIN))


@pytest.fixture
def seed_owner(db_session):
    """Create a restaurant owner."""
    return _add(db_session, User(email="owner@test.com", name="Test Owner", role=Roles.RESTAURANT_OWNER))


@pytest.fixture
def seed_other_owner(db_session):
    """Create a second restaurant owner who owns nothing of the fixtures."""
    return _add(db_session, User(email="other@test.com", name="Other Owner", role=Roles.RESTAURANT_OWNER))


@pytest.fixture
def seed_customer(db_session):
    """Create a customer."""
    return _add(db_session, User(email="customer@test.com", name="Test Customer", role=Roles.CUSTOMER))


@pytest.fixture
def admin_ctx(seed_admin):
    return PermissionContext(seed_admin)


@pytest.fixture
def owner_ctx(seed_owner):
    return PermissionContext(seed_owner)


@pytest.fixture
def customer_ctx(seed_customer):
    return PermissionContext(seed_customer)


@pytest.fixture
def headers_for():
    """Build request headers identifying a user."""
    def _headers(user):
        return {"X-User-Id": str(user.id)}
    return _headers


# =============================================================================
# Catalog
# =============================================================================


@pytest.fixture
def seed_restaurant(db_session, seed_owner):
    """Create an active restaurant owned by seed_owner."""
    return _add(db_session, Restaurant(
        owner_id=seed_owner.id,
        name="Test Pizzeria",
        description="Wood-fired pizza",
        address="123 Test St",
        phone="+1-555-0100",
    ))


@pytest.fixture
def seed_category(db_session, seed_restaurant):
    """Create a menu category of seed_restaurant."""
    return _add(db_session, MenuCategory(
        restaurant_id=seed_restaurant.id,
        name="Pizzas",
        sort_order=1,
    ))


@pytest.fixture
def seed_menu_item(db_session, seed_restaurant, seed_category):
    """Create a 12.50 menu item."""
    return _add(db_session, MenuItem(
        restaurant_id=seed_restaurant.id,
        category_id=seed_category.id,
        name="Margherita",
        price=Decimal("12.50"),
    ))


@pytest.fixture
def seed_option(db_session, seed_menu_item):
    """Create a +1.50 option of seed_menu_item."""
    return _add(db_session, MenuItemOption(
        menu_item_id=seed_menu_item.id,
        name="Extra cheese",
        price_modifier=Decimal("1.50"),
    ))


@pytest.fixture
def seed_address(db_session, seed_customer):
    """Create the customer's delivery address."""
    return _add(db_session, Address(
        user_id=seed_customer.id,
        street_address="1 Test Street",
        city="Springfield",
        state="IL",
        postal_code="62701",
        country="US",
        is_default=True,
    ))
