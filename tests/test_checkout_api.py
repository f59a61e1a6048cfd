"""Checkout endpoint: idempotency, price snapshot, cart handling."""
from decimal import Decimal

from checkout.data.models import (
    AuditLogModel,
    CartItemModel,
    NotificationModel,
    OrderItemModel,
    OrderModel,
    ProductModel,
)
from checkout.repos.cart_repo import CartRepo
from checkout.repos.order_repo import OrderRepo
from helpers import checkout, count


class TestCheckout:
    def test_creates_order_from_cart(self, client, shop, db):
        customer = shop()

        response = checkout(client, customer)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "CREATED"
        assert data["user_id"] == customer.user_id
        assert Decimal(data["subtotal"]) == Decimal("59.97")
        assert Decimal(data["total"]) == Decimal("59.97")

        [item] = data["items"]
        assert item["product_name"] == "Servo"
        assert item["material_name"] == "PLA"
        assert Decimal(item["item_price"]) == Decimal("19.99")
        assert item["quantity"] == 3
        assert Decimal(item["line_total"]) == Decimal("59.97")

        assert data["address"]["city"] == "Bengaluru"
        assert data["address"]["full_name"].startswith("Customer")

    def test_clears_cart_in_same_transaction(self, client, shop, db):
        customer = shop()

        checkout(client, customer)

        assert count(db, CartItemModel, cart_id=customer.cart_id) == 0

    def test_records_audit_and_notification(self, client, shop, db):
        customer = shop()

        order_id = checkout(client, customer).json()["id"]

        assert count(db, AuditLogModel, action="ORDER_CREATED", entity_id=str(order_id)) == 1
        assert count(db, NotificationModel, order_id=order_id, event="order.created") == 1

    def test_total_holds_largest_line(self, client, shop):
        customer = shop(lines=[("Lathe", "99999999.99", "Steel", "0.00", 2)])

        data = checkout(client, customer).json()

        assert Decimal(data["total"]) == Decimal("199999999.98")
        assert Decimal(data["items"][0]["line_total"]) == Decimal(data["total"])

    def test_multiple_lines_are_summed(self, client, shop):
        customer = shop(
            lines=[
                ("Bracket", "2.50", "Steel", "0.25", 4),
                ("Gear", "10.00", "Nylon", "1.10", 1),
            ]
        )

        data = checkout(client, customer).json()

        assert Decimal(data["subtotal"]) == Decimal("22.10")
        assert [i["product_name"] for i in data["items"]] == ["Bracket", "Gear"]


class TestIdempotency:
    def test_same_key_returns_same_order(self, client, shop, db):
        customer = shop()

        first = checkout(client, customer, key="abc")
        second = checkout(client, customer, key="abc")

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert count(db, OrderModel, user_id=customer.user_id) == 1

    def test_repeated_requests_create_one_order(self, client, shop, db):
        customer = shop()

        ids = {checkout(client, customer, key="retry-storm").json()["id"] for _ in range(5)}

        assert len(ids) == 1
        assert count(db, OrderModel) == 1
        assert count(db, OrderItemModel) == 1

    def test_key_in_body_is_accepted(self, client, shop):
        customer = shop()

        response = client.post(
            "/orders/checkout",
            json={"address_id": customer.address_id, "idempotency_key": "body-key"},
            headers=customer.headers,
        )

        assert response.status_code == 201

    def test_missing_key_is_rejected(self, client, shop, db):
        customer = shop()

        response = client.post(
            "/orders/checkout",
            json={"address_id": customer.address_id},
            headers=customer.headers,
        )

        assert response.status_code == 400
        assert count(db, OrderModel) == 0

    def test_same_key_for_another_user_is_independent(self, client, shop, db):
        alice = shop()
        bob = shop()

        a = checkout(client, alice, key="shared")
        b = checkout(client, bob, key="shared")

        assert a.status_code == b.status_code == 201
        assert a.json()["id"] != b.json()["id"]

    def test_concurrent_duplicate_loses_to_committed_order(self, client, shop, db, monkeypatch):
        customer = shop()
        winner = checkout(client, customer, key="race").json()

        # the duplicate misses the pre-insert lookup, as if both requests arrived together
        original = OrderRepo.get_by_idempotency_key
        calls = {"n": 0}

        def racing_lookup(self, user_id, key):
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return original(self, user_id, key)

        monkeypatch.setattr(OrderRepo, "get_by_idempotency_key", racing_lookup)
        # refill the cart so the loser gets as far as the insert
        db.add(CartItemModel(cart_id=customer.cart_id, product_id=customer.product_ids[0],
                             material_id=customer.material_ids[0], quantity=3))
        db.commit()

        response = checkout(client, customer, key="race")

        assert response.status_code == 200
        assert response.json()["id"] == winner["id"]
        assert count(db, OrderModel) == 1
        # the losing transaction was rolled back, cart untouched
        assert count(db, CartItemModel, cart_id=customer.cart_id) == 1


class TestCartValidation:
    def test_empty_cart(self, client, shop, db):
        customer = shop(lines=[])

        response = checkout(client, customer)

        assert response.status_code == 400
        assert "empty" in response.json()["detail"].lower()
        assert count(db, OrderModel) == 0

    def test_inactive_product_keeps_cart(self, client, shop, db):
        customer = shop()
        product = db.get(ProductModel, customer.product_ids[0])
        product.is_active = False
        db.commit()

        response = checkout(client, customer)

        assert response.status_code == 400
        assert count(db, OrderModel) == 0
        assert count(db, CartItemModel, cart_id=customer.cart_id) == 1

    def test_unknown_address(self, client, shop, db):
        customer = shop()

        response = client.post(
            "/orders/checkout",
            json={"address_id": 9999},
            headers={**customer.headers, "Idempotency-Key": "k"},
        )

        assert response.status_code == 404
        assert count(db, CartItemModel, cart_id=customer.cart_id) == 1

    def test_someone_elses_address(self, client, shop):
        alice = shop()
        bob = shop()

        response = client.post(
            "/orders/checkout",
            json={"address_id": bob.address_id},
            headers={**alice.headers, "Idempotency-Key": "k"},
        )

        assert response.status_code == 404

    def test_requires_user(self, client, shop):
        customer = shop()

        response = client.post(
            "/orders/checkout",
            json={"address_id": customer.address_id},
            headers={"Idempotency-Key": "k"},
        )

        assert response.status_code == 401


class TestPriceSnapshot:
    def test_catalogue_change_does_not_touch_order(self, client, shop, db):
        customer = shop(lines=[("Widget", "25.99", "Plain", "0.00", 1)])
        order_id = checkout(client, customer).json()["id"]

        product = db.get(ProductModel, customer.product_ids[0])
        product.base_price = Decimal("29.99")
        db.commit()

        data = client.get(f"/orders/{order_id}", headers=customer.headers).json()

        assert Decimal(data["total"]) == Decimal("25.99")
        assert Decimal(data["items"][0]["base_price"]) == Decimal("25.99")


class TestReadOrders:
    def test_list_newest_first(self, client, shop, db):
        customer = shop()
        first = checkout(client, customer, key="one").json()["id"]

        # second order needs a cart again
        db.add(CartItemModel(cart_id=customer.cart_id, product_id=customer.product_ids[0],
                             material_id=customer.material_ids[0], quantity=1))
        db.commit()
        second = checkout(client, customer, key="two").json()["id"]

        data = client.get("/orders", headers=customer.headers).json()

        assert [o["id"] for o in data] == [second, first]

    def test_other_users_order_is_not_found(self, client, shop):
        alice = shop()
        bob = shop()
        order_id = checkout(client, alice).json()["id"]

        response = client.get(f"/orders/{order_id}", headers=bob.headers)

        assert response.status_code == 404


class TestCartChangedDuringCheckout:
    def test_rolls_back_order_and_keeps_cart(self, client, shop, db, monkeypatch):
        customer = shop()
        # another request removed a line between pricing and clearing
        monkeypatch.setattr(CartRepo, "clear_cart", lambda self, cart_id: 0)

        response = checkout(client, customer)

        assert response.status_code == 500
        assert "retry" in response.json()["detail"]
        assert count(db, OrderModel) == 0
        assert count(db, OrderItemModel) == 0
        assert count(db, CartItemModel, cart_id=customer.cart_id) == 1
        assert count(db, NotificationModel) == 0
