"""Tests for the order endpoints."""

from decimal import Decimal

import pytest

from storefront.data.models.address import AddressModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.utils.security import create_access_token


def auth(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def customer(make_user):
    return make_user(email="bob@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", name="Admin", role="admin")


@pytest.fixture
def order(db, customer):
    address = AddressModel(type="billing", first_name="Bob", last_name="Smith", address_line_1="1 Main St", city="Springfield")
    db.add(address)
    db.flush()
    order = OrderModel(
        order_number="ORD-2026-000123",
        user_id=customer.id,
        billing_address_id=address.id,
        shipping_address_id=address.id,
        status="processing",
        subtotal=Decimal("20.00"),
        tax_amount=Decimal("0.00"),
        shipping_amount=Decimal("0.00"),
        total_amount=Decimal("20.00"),
        payment_status="succeeded",
    )
    order.items.append(OrderItemModel(product_name="Mug", quantity=2, price=Decimal("10.00"), total=Decimal("20.00")))
    db.add(order)
    db.commit()
    return order


class TestGetOrder:
    def test_owner_sees_order(self, client, order, customer):
        response = client.get(f"/orders/{order.order_number}", headers=auth(customer))

        assert response.status_code == 200
        data = response.json()
        assert data["order_number"] == "ORD-2026-000123"
        assert data["items"][0]["product_name"] == "Mug"
        assert Decimal(data["total_amount"]) == Decimal("20.00")
        assert data["billing_address"]["city"] == "Springfield"

    def test_admin_sees_order(self, client, order, admin):
        assert client.get(f"/orders/{order.order_number}", headers=auth(admin)).status_code == 200

    def test_other_customer_forbidden(self, client, order, make_user):
        stranger = make_user(email="eve@example.com")
        assert client.get(f"/orders/{order.order_number}", headers=auth(stranger)).status_code == 403

    def test_requires_token(self, client, order):
        assert client.get(f"/orders/{order.order_number}").status_code == 401
        assert client.get(f"/orders/{order.order_number}", headers={"Authorization": "Bearer junk"}).status_code == 401

    def test_unknown_order(self, client, customer):
        assert client.get("/orders/ORD-2026-000000", headers=auth(customer)).status_code == 404


class TestAdminOrderActions:
    def test_advance_status(self, client, order, admin):
        response = client.post(f"/orders/{order.id}/status", json={"status": "shipped"}, headers=auth(admin))
        assert response.status_code == 200
        assert response.json()["status"] == "shipped"

    def test_backward_status_conflict(self, client, order, admin):
        response = client.post(f"/orders/{order.id}/status", json={"status": "pending"}, headers=auth(admin))
        assert response.status_code == 409

    def test_unknown_status_value(self, client, order, admin):
        response = client.post(f"/orders/{order.id}/status", json={"status": "lost"}, headers=auth(admin))
        assert response.status_code == 422

    def test_cancel(self, client, order, admin):
        response = client.post(f"/orders/{order.id}/cancel", headers=auth(admin))
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        assert client.post(f"/orders/{order.id}/cancel", headers=auth(admin)).status_code == 409

    def test_customer_cannot_change_status(self, client, order, customer):
        response = client.post(f"/orders/{order.id}/cancel", headers=auth(customer))
        assert response.status_code == 403

    def test_unknown_order(self, client, admin):
        assert client.post("/orders/9999/cancel", headers=auth(admin)).status_code == 404
