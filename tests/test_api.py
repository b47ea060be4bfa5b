"""
HTTP tests for the marketplace routers.
"""

import pytest


class TestCallerIdentity:
    """X-User-Id resolution."""

    def test_missing_header_is_401(self, client):
        response = client.get("/api/cart")
        assert response.status_code == 401

    def test_malformed_header_is_401(self, client):
        response = client.get("/api/cart", headers={"X-User-Id": "abc"})
        assert response.status_code == 401

    def test_unknown_user_is_401(self, client):
        response = client.get("/api/cart", headers={"X-User-Id": "9999"})
        assert response.status_code == 401

    def test_catalog_is_public(self, client, seed_restaurant):
        response = client.get("/api/restaurants")
        assert response.status_code == 200
        assert [r["name"] for r in response.json()] == ["Test Pizzeria"]


class TestRestaurantEndpoints:
    def test_create_defaults_owner_to_caller(self, client, seed_owner, headers_for):
        response = client.post(
            "/api/restaurants",
            json={"name": "Ramen House", "address": "7 Road", "phone": "555"},
            headers=headers_for(seed_owner),
        )
        assert response.status_code == 201
        assert response.json()["owner_id"] == seed_owner.id

    def test_customer_create_is_403(self, client, seed_customer, headers_for):
        response = client.post(
            "/api/restaurants",
            json={"name": "Nope", "address": "7 Road", "phone": "555"},
            headers=headers_for(seed_customer),
        )
        assert response.status_code == 403

    def test_unknown_restaurant_is_404(self, client):
        assert client.get("/api/restaurants/9999").status_code == 404

    def test_delete_is_204_then_404(self, client, seed_restaurant, seed_owner, headers_for):
        url = f"/api/restaurants/{seed_restaurant.id}"
        assert client.delete(url, headers=headers_for(seed_owner)).status_code == 204
        assert client.get(url).status_code == 404

    def test_invalid_body_is_422(self, client, seed_owner, headers_for):
        response = client.post("/api/restaurants", json={"name": ""}, headers=headers_for(seed_owner))
        assert response.status_code == 422

    def test_non_json_body_is_415(self, client, seed_owner, headers_for):
        headers = {**headers_for(seed_owner), "Content-Type": "text/plain"}
        response = client.post("/api/restaurants", content="name=x", headers=headers)
        assert response.status_code == 415

    def test_owner_listing_of_another_owner_is_403(self, client, seed_owner, seed_other_owner, headers_for):
        response = client.get(f"/api/restaurants/owner/{seed_owner.id}", headers=headers_for(seed_other_owner))
        assert response.status_code == 403

    def test_unknown_order_status_filter_is_400(self, client, seed_restaurant, seed_owner, headers_for):
        response = client.get(
            f"/api/restaurants/{seed_restaurant.id}/orders",
            params={"order_status": "lost"},
            headers=headers_for(seed_owner),
        )
        assert response.status_code == 400


class TestMenuEndpoints:
    def test_menu_item_price_is_a_number(self, client, seed_menu_item):
        response = client.get(f"/api/menu-items/{seed_menu_item.id}")
        assert response.status_code == 200
        assert response.json()["price"] == 12.5

    def test_create_menu_item(self, client, seed_restaurant, seed_category, seed_owner, headers_for):
        response = client.post(
            f"/api/restaurants/{seed_restaurant.id}/menu-items",
            json={"category_id": seed_category.id, "name": "Quattro Formaggi", "price": 14.25},
            headers=headers_for(seed_owner),
        )
        assert response.status_code == 201
        assert response.json()["price"] == 14.25

    def test_non_positive_price_is_422(self, client, seed_restaurant, seed_category, seed_owner, headers_for):
        response = client.post(
            f"/api/restaurants/{seed_restaurant.id}/menu-items",
            json={"category_id": seed_category.id, "name": "Free", "price": 0},
            headers=headers_for(seed_owner),
        )
        assert response.status_code == 422

    def test_delete_missing_option_is_404(self, client, seed_owner, headers_for):
        response = client.delete("/api/menu-item-options/9999", headers=headers_for(seed_owner))
        assert response.status_code == 404

    def test_availability_of_missing_item_is_404(self, client, seed_owner, headers_for):
        response = client.patch(
            "/api/menu-items/9999/availability",
            json={"is_available": False},
            headers=headers_for(seed_owner),
        )
        assert response.status_code == 404

    def test_categories_listing(self, client, seed_restaurant, seed_category):
        response = client.get(f"/api/restaurants/{seed_restaurant.id}/categories")
        assert [c["name"] for c in response.json()] == ["Pizzas"]


class TestOrderFlow:
    """Cart to order to tracking over HTTP."""

    def test_full_flow(
        self, client, seed_customer, seed_owner, seed_restaurant, seed_menu_item, seed_option, seed_address, headers_for
    ):
        customer = headers_for(seed_customer)
        owner = headers_for(seed_owner)

        response = client.post(
            "/api/cart",
            json={"menu_item_id": seed_menu_item.id, "quantity": 2, "selected_options": [seed_option.id]},
            headers=customer,
        )
        assert response.status_code == 201
        assert response.json()["total_price"] == 28.0

        response = client.post(
            "/api/orders",
            json={"restaurant_id": seed_restaurant.id, "delivery_address_id": seed_address.id},
            headers=customer,
        )
        assert response.status_code == 201
        order = response.json()
        assert order["total_amount"] == 34.23
        assert client.get("/api/cart", headers=customer).json() == []

        response = client.patch(
            f"/api/orders/{order['id']}/status",
            json={"status": "confirmed"},
            headers=owner,
        )
        assert response.status_code == 200

        tracking = client.get(f"/api/orders/{order['id']}/tracking", headers=customer).json()
        assert tracking["step"] == 2
        assert tracking["estimated_delivery_text"] == "40-50 minutes"

        # Too late for the customer to cancel
        response = client.post(f"/api/orders/{order['id']}/cancel", headers=customer)
        assert response.status_code == 400

    def test_empty_cart_is_400(self, client, seed_customer, seed_restaurant, seed_address, headers_for):
        response = client.post(
            "/api/orders",
            json={"restaurant_id": seed_restaurant.id, "delivery_address_id": seed_address.id},
            headers=headers_for(seed_customer),
        )
        assert response.status_code == 400

    def test_unknown_order_is_404(self, client, seed_customer, headers_for):
        assert client.get("/api/orders/9999", headers=headers_for(seed_customer)).status_code == 404

    def test_remove_missing_cart_line_is_204(self, client, seed_customer, headers_for):
        response = client.delete("/api/cart/9999", headers=headers_for(seed_customer))
        assert response.status_code == 204

    def test_clear_cart_reports_count(self, client, seed_customer, seed_menu_item, headers_for):
        headers = headers_for(seed_customer)
        client.post("/api/cart", json={"menu_item_id": seed_menu_item.id}, headers=headers)

        response = client.delete("/api/cart", headers=headers)
        assert response.json() == {"removed": 1}

    @pytest.mark.parametrize("quantity", [0, 100])
    def test_quantity_bounds_are_422(self, client, seed_customer, seed_menu_item, headers_for, quantity):
        response = client.post(
            "/api/cart",
            json={"menu_item_id": seed_menu_item.id, "quantity": quantity},
            headers=headers_for(seed_customer),
        )
        assert response.status_code == 422


class TestReviewEndpoints:
    def test_submit_and_moderate(self, client, seed_customer, seed_admin, seed_restaurant, headers_for):
        response = client.post(
            "/api/reviews",
            json={"restaurant_id": seed_restaurant.id, "rating": 5, "comment": "Great crust"},
            headers=headers_for(seed_customer),
        )
        assert response.status_code == 201
        review = response.json()
        assert review["is_approved"] is False

        pending = client.get("/api/admin/reviews/pending", headers=headers_for(seed_admin)).json()
        assert [r["id"] for r in pending] == [review["id"]]

        response = client.patch(
            f"/api/reviews/{review['id']}/moderation",
            json={"is_approved": True},
            headers=headers_for(seed_admin),
        )
        assert response.status_code == 200

        restaurant = client.get(f"/api/restaurants/{seed_restaurant.id}").json()
        assert restaurant["rating"] == 5.0
        assert restaurant["total_reviews"] == 1

        listed = client.get(f"/api/restaurants/{seed_restaurant.id}/reviews").json()
        assert [r["id"] for r in listed] == [review["id"]]

    def test_owner_moderation_is_403(self, client, seed_customer, seed_owner, seed_restaurant, headers_for):
        review = client.post(
            "/api/reviews",
            json={"restaurant_id": seed_restaurant.id, "rating": 1},
            headers=headers_for(seed_customer),
        ).json()

        response = client.patch(
            f"/api/reviews/{review['id']}/moderation",
            json={"is_approved": True},
            headers=headers_for(seed_owner),
        )
        assert response.status_code == 403

    def test_rating_out_of_range_is_422(self, client, seed_customer, seed_restaurant, headers_for):
        response = client.post(
            "/api/reviews",
            json={"restaurant_id": seed_restaurant.id, "rating": 6},
            headers=headers_for(seed_customer),
        )
        assert response.status_code == 422

    def test_review_of_missing_restaurant_is_404(self, client, seed_customer, headers_for):
        response = client.post(
            "/api/reviews",
            json={"restaurant_id": 9999, "rating": 4},
            headers=headers_for(seed_customer),
        )
        assert response.status_code == 404


class TestAdminEndpoints:
    def test_non_admin_is_403(self, client, seed_owner, headers_for):
        assert client.get("/api/admin/users", headers=headers_for(seed_owner)).status_code == 403

    def test_deactivate_hides_from_public_list(self, client, seed_admin, seed_restaurant, headers_for):
        response = client.post(
            f"/api/admin/restaurants/{seed_restaurant.id}/deactivate",
            headers=headers_for(seed_admin),
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert client.get("/api/restaurants").json() == []

    def test_activate_missing_is_404(self, client, seed_admin, headers_for):
        response = client.post("/api/admin/restaurants/9999/activate", headers=headers_for(seed_admin))
        assert response.status_code == 404


class TestPaymentEndpoints:
    """Paying for an order over HTTP."""

    @pytest.fixture
    def order_id(self, client, seed_customer, seed_restaurant, seed_menu_item, seed_address, headers_for):
        customer = headers_for(seed_customer)
        client.post("/api/cart", json={"menu_item_id": seed_menu_item.id, "quantity": 1}, headers=customer)
        response = client.post(
            "/api/orders",
            json={"restaurant_id": seed_restaurant.id, "delivery_address_id": seed_address.id},
            headers=customer,
        )
        return response.json()["id"]

    def test_pay_and_refund(self, client, order_id, seed_customer, seed_admin, headers_for):
        customer = headers_for(seed_customer)
        admin = headers_for(seed_admin)

        response = client.post("/api/payments", json={"order_id": order_id, "payment_method": "card"}, headers=customer)
        assert response.status_code == 201
        payment = response.json()
        assert payment["status"] == "pending"
        # 12.50 + 1.00 tax + 3.99 delivery
        assert payment["amount"] == 17.49

        response = client.post(f"/api/payments/{payment['id']}/process", headers=customer)
        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert client.get(f"/api/orders/{order_id}", headers=customer).json()["payment_status"] == "completed"

        # Already settled
        response = client.post(f"/api/payments/{payment['id']}/process", headers=customer)
        assert response.status_code == 400

        assert client.post(f"/api/payments/{payment['id']}/refund", headers=customer).status_code == 403
        response = client.post(f"/api/payments/{payment['id']}/refund", headers=admin)
        assert response.status_code == 200
        assert response.json()["status"] == "refunded"

        listed = client.get(f"/api/payments/order/{order_id}", headers=customer).json()
        assert [p["status"] for p in listed] == ["refunded"]
        assert len(client.get("/api/payments", headers=admin).json()) == 1

    def test_missing_payment_is_404(self, client, seed_customer, headers_for):
        response = client.post("/api/payments/9999/process", headers=headers_for(seed_customer))
        assert response.status_code == 404

    def test_empty_payment_method_is_422(self, client, order_id, seed_customer, headers_for):
        response = client.post(
            "/api/payments",
            json={"order_id": order_id, "payment_method": ""},
            headers=headers_for(seed_customer),
        )
        assert response.status_code == 422
