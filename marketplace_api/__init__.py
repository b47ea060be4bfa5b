"""
Marketplace REST API: restaurants, menus, carts, orders and reviews.
"""
