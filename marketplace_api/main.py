"""
REST API main application.
Entry point for the FastAPI REST server.
"""

from fastapi import FastAPI

from marketplace_api.core import configure_cors, lifespan, register_middlewares
from marketplace_api.routers import (
    admin_router,
    cart_router,
    health_router,
    menu_router,
    orders_router,
    payments_router,
    restaurants_router,
    reviews_router,
)
from marketplace_shared.config.settings import settings
from marketplace_shared.infrastructure.correlation import CorrelationIdMiddleware


# Create FastAPI application
app = FastAPI(
    title="Food Marketplace REST API",
    description="Restaurants, menus, carts, orders, payments and reviews",
    version="0.1.0",
    lifespan=lifespan,
)

# Middlewares run in reverse order of registration: correlation first
register_middlewares(app)
configure_cors(app)
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(restaurants_router)
app.include_router(menu_router)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(payments_router)
app.include_router(reviews_router)
app.include_router(admin_router)


# =============================================================================
# Development entry point
# =============================================================================

def run() -> None:
    """Run the development server."""
    import uvicorn

    uvicorn.run(
        "marketplace_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
