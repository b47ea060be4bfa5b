"""
Services module for business logic.

- domain/: Application services (business logic) - USE THESE
- crud/: Repository pattern for data access
- permissions/: Strategy pattern for role-based access control

Usage:
    from marketplace_api.services.domain import RestaurantService
    service = RestaurantService(db)
    restaurants = service.list_public(search="sushi")
"""
