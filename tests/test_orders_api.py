"""End-to-end tests for the /api/v1/orders endpoints."""

from conftest import order_body

from lumbarong.models.user import RoleEnum


def create_order(client, customer, product_id, **kwargs):
    response = client.post("/api/v1/orders", json=order_body(product_id, **kwargs), headers=customer.headers)
    assert response.status_code == 201, response.text
    return response.json()


def set_status(client, actor, order_id, status):
    return client.put(f"/api/v1/orders/{order_id}/status", json={"status": status}, headers=actor.headers)


class TestCreateOrder:
    def test_reserves_stock_and_snapshots_total(self, client, customer, product, stock_of):
        order = create_order(client, customer, product, quantity=3, price=100)

        assert order["status"] == "Pending"
        assert order["totalAmount"] == 300
        assert order["customerId"] == customer.id
        assert order["isPaymentVerified"] is False
        assert len(order["items"]) == 1
        assert order["items"][0]["quantity"] == 3
        assert order["items"][0]["price"] == 100
        assert stock_of(product) == 7

    def test_client_price_is_trusted(self, client, customer, product):
        # Каталожная цена 100, клиент прислал 1 — сохраняется как есть
        order = create_order(client, customer, product, quantity=2, price=1)
        assert order["items"][0]["price"] == 1
        assert order["totalAmount"] == 2

    def test_insufficient_stock_names_product(self, client, customer, product, stock_of):
        response = client.post(
            "/api/v1/orders", json=order_body(product, quantity=11), headers=customer.headers
        )
        assert response.status_code == 400
        assert response.json() == {"message": "Insufficient stock for Classic Piña Barong"}
        assert stock_of(product) == 10

    def test_empty_items_rejected(self, client, customer):
        body = order_body(1)
        body["items"] = []
        response = client.post("/api/v1/orders", json=body, headers=customer.headers)
        assert response.status_code == 400
        assert response.json()["message"] == "No items in order"

    def test_missing_shipping_address_is_validation_fault(self, client, customer, product):
        body = order_body(product)
        del body["shippingAddress"]
        response = client.post("/api/v1/orders", json=body, headers=customer.headers)
        assert response.status_code == 400
        assert "shippingAddress" in response.json()["message"]

    def test_requires_customer_role(self, client, seller, product):
        response = client.post("/api/v1/orders", json=order_body(product), headers=seller.headers)
        assert response.status_code == 403

    def test_requires_token(self, client, product):
        response = client.post("/api/v1/orders", json=order_body(product))
        assert response.status_code == 401
        assert response.json()["message"] == "No token, authorization denied"

    def test_notifies_seller_and_customer_then_broadcasts(self, client, customer, seller, product, sink, broadcaster):
        create_order(client, customer, product)

        assert sink.messages_for(seller.id) == ["New order received for Classic Piña Barong"]
        assert sink.messages_for(customer.id) == ["Your order has been placed successfully. Mabuhay!"]
        assert broadcaster.events == ["dashboard_update"]

        response = client.get("/api/v1/notifications", headers=seller.headers)
        assert [n["message"] for n in response.json()] == ["New order received for Classic Piña Barong"]


class TestReadOrders:
    def test_customer_sees_only_own_orders(self, client, make_user, customer, product):
        other = make_user(RoleEnum.customer)
        mine = create_order(client, customer, product, quantity=1)
        create_order(client, other, product, quantity=1)

        response = client.get("/api/v1/orders", headers=customer.headers)
        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [mine["id"]]

    def test_seller_sees_orders_with_their_products(self, client, make_user, make_product, customer, seller, product):
        other_seller = make_user(RoleEnum.seller)
        other_product = make_product(other_seller, name="Capiz Shell Brooch")
        with_mine = create_order(client, customer, product, quantity=1)
        create_order(client, customer, other_product, quantity=1)

        response = client.get("/api/v1/orders", headers=seller.headers)
        assert [o["id"] for o in response.json()] == [with_mine["id"]]

    def test_admin_sees_all(self, client, make_user, admin, customer, product):
        other = make_user(RoleEnum.customer)
        create_order(client, customer, product, quantity=1)
        create_order(client, other, product, quantity=1)

        response = client.get("/api/v1/orders", headers=admin.headers)
        assert len(response.json()) == 2

    def test_detail_includes_items_product_and_customer(self, client, customer, product):
        order = create_order(client, customer, product)

        response = client.get(f"/api/v1/orders/{order['id']}", headers=customer.headers)
        assert response.status_code == 200
        data = response.json()
        assert data["items"][0]["product"]["name"] == "Classic Piña Barong"
        assert data["customer"]["name"] == "Juan Dela Cruz"
        assert data["returnRequest"] is None

    def test_unknown_order_is_404(self, client, customer):
        response = client.get("/api/v1/orders/999", headers=customer.headers)
        assert response.status_code == 404
        assert response.json() == {"message": "Order not found"}

    def test_foreign_order_is_403_for_customer(self, client, make_user, customer, product):
        order = create_order(client, customer, product)
        intruder = make_user(RoleEnum.customer)

        response = client.get(f"/api/v1/orders/{order['id']}", headers=intruder.headers)
        assert response.status_code == 403


class TestStatusUpdates:
    def test_customer_cannot_set_non_cancel_status(self, client, customer, product):
        order = create_order(client, customer, product)
        for status in ("Processing", "Shipped", "Completed", "Delivered"):
            response = set_status(client, customer, order["id"], status)
            assert response.status_code == 403, status

    def test_customer_can_cancel_own_pending_order(self, client, customer, product, stock_of):
        order = create_order(client, customer, product, quantity=4)

        response = set_status(client, customer, order["id"], "Cancelled")
        assert response.status_code == 200
        assert response.json()["status"] == "Cancelled"
        assert stock_of(product) == 10

    def test_cancel_after_shipping_is_rejected(self, client, customer, seller, product, stock_of):
        order = create_order(client, customer, product)
        for status in ("Processing", "To Ship", "Shipped"):
            assert set_status(client, seller, order["id"], status).status_code == 200

        response = set_status(client, seller, order["id"], "Cancelled")
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot cancel. Order is already on the way or completed."
        assert client.get(f"/api/v1/orders/{order['id']}", headers=seller.headers).json()["status"] == "Shipped"
        assert stock_of(product) == 7

    def test_skipping_states_is_rejected(self, client, customer, seller, product):
        order = create_order(client, customer, product)
        response = set_status(client, seller, order["id"], "Shipped")
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot change order status from Pending to Shipped"

    def test_unknown_status_is_validation_fault(self, client, customer, seller, product):
        order = create_order(client, customer, product)
        response = set_status(client, seller, order["id"], "Teleported")
        assert response.status_code == 400

    def test_status_change_notifies_customer(self, client, customer, seller, product, sink, broadcaster):
        order = create_order(client, customer, product)
        set_status(client, seller, order["id"], "Processing")

        assert sink.messages_for(customer.id)[-1] == "Your order status has been updated to: Processing"
        assert broadcaster.events == ["dashboard_update", "dashboard_update"]


class TestScenarios:
    def test_gcash_payment_verification(self, client, customer, seller, product, stock_of):
        order = create_order(client, customer, product, quantity=3, paymentMethod="GCash")
        assert stock_of(product) == 7

        response = client.put(
            f"/api/v1/orders/{order['id']}/verify-payment", json={"isVerified": True}, headers=seller.headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Payment verified successfully"
        assert body["order"]["isPaymentVerified"] is True
        assert body["order"]["status"] == "Processing"
        assert body["order"]["paymentVerifiedAt"] is not None

    def test_rejected_payment_keeps_status(self, client, customer, seller, product, sink):
        order = create_order(client, customer, product, paymentMethod="GCash")

        response = client.put(
            f"/api/v1/orders/{order['id']}/verify-payment", json={"isVerified": False}, headers=seller.headers
        )
        body = response.json()
        assert body["order"]["status"] == "Pending"
        assert body["order"]["paymentVerifiedAt"] is None
        assert sink.messages_for(customer.id)[-1] == "Your GCash payment has been rejected."

    def test_customer_cannot_verify_payment(self, client, customer, product):
        order = create_order(client, customer, product)
        response = client.put(
            f"/api/v1/orders/{order['id']}/verify-payment", json={"isVerified": True}, headers=customer.headers
        )
        assert response.status_code == 403

    def test_full_lifecycle_then_review(self, client, customer, seller, product, sink):
        order = create_order(client, customer, product)
        for status in ("Processing", "To Ship", "Shipped", "Delivered"):
            response = set_status(client, seller, order["id"], status)
            assert response.status_code == 200, response.text
            assert response.json()["status"] == status

        response = client.post(f"/api/v1/orders/{order['id']}/complete", headers=customer.headers)
        assert response.status_code == 200
        assert response.json()["order"]["status"] == "Completed"

        response = client.post(
            f"/api/v1/orders/{order['id']}/review",
            json={"rating": 5, "comment": "Napakaganda!", "images": ["r1.jpg", "r2.jpg"]},
            headers=customer.headers,
        )
        assert response.status_code == 200
        reviewed = response.json()["order"]
        assert reviewed["rating"] == 5
        assert reviewed["reviewComment"] == "Napakaganda!"
        assert reviewed["reviewImages"] == ["r1.jpg", "r2.jpg"]
        assert reviewed["reviewCreatedAt"] is not None
        assert sink.messages_for(seller.id)[-1] == "An order has been rated and completed!"

    def test_return_request_after_delivery(self, client, customer, seller, product):
        order = create_order(client, customer, product)
        for status in ("Processing", "To Ship", "Shipped", "Delivered"):
            set_status(client, seller, order["id"], status)

        response = client.post(
            f"/api/v1/orders/{order['id']}/return-request",
            json={"reason": "Wrong size", "proofImages": ["proof.jpg"]},
            headers=customer.headers,
        )
        assert response.status_code == 200
        returned = response.json()["order"]
        assert returned["status"] == "Return Requested"
        assert returned["returnRequest"]["status"] == "Pending"
        assert returned["returnRequest"]["proofImages"] == ["proof.jpg"]
        assert returned["returnRequest"]["reason"] == "Wrong size"


class TestCustomerSubFlows:
    def test_cancel_request_does_not_restore_stock(self, client, customer, seller, product, stock_of, sink):
        order = create_order(client, customer, product, quantity=2)

        response = client.post(f"/api/v1/orders/{order['id']}/cancel-request", headers=customer.headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Cancellation request sent"
        assert response.json()["order"]["status"] == "Cancellation Requested"
        assert stock_of(product) == 8
        assert sink.messages_for(seller.id)[-1] == "Cancellation requested for an order"

        # Продавец одобряет отмену — остаток возвращается
        assert set_status(client, seller, order["id"], "Cancelled").status_code == 200
        assert stock_of(product) == 10

    def test_cancel_request_by_non_owner(self, client, make_user, customer, product):
        order = create_order(client, customer, product)
        intruder = make_user(RoleEnum.customer)
        response = client.post(f"/api/v1/orders/{order['id']}/cancel-request", headers=intruder.headers)
        assert response.status_code == 403

    def test_payment_proof_resets_verification(self, client, customer, seller, product):
        order = create_order(client, customer, product, paymentMethod="GCash")
        client.put(f"/api/v1/orders/{order['id']}/verify-payment", json={"isVerified": True}, headers=seller.headers)

        response = client.post(
            f"/api/v1/orders/{order['id']}/payment-proof",
            json={"referenceNumber": "GC-12345", "receiptImage": "receipt.png"},
            headers=customer.headers,
        )
        assert response.status_code == 200
        updated = response.json()["order"]
        assert updated["referenceNumber"] == "GC-12345"
        assert updated["receiptImage"] == "receipt.png"
        assert updated["isPaymentVerified"] is False
        assert updated["status"] == "Processing"

    def test_review_before_completion_rejected(self, client, customer, product):
        order = create_order(client, customer, product)
        response = client.post(
            f"/api/v1/orders/{order['id']}/review", json={"rating": 4}, headers=customer.headers
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Order must be completed before rating"

    def test_complete_before_delivery_rejected(self, client, customer, product):
        order = create_order(client, customer, product)
        response = client.post(f"/api/v1/orders/{order['id']}/complete", headers=customer.headers)
        assert response.status_code == 400

    def test_return_before_delivery_rejected(self, client, customer, product):
        order = create_order(client, customer, product)
        response = client.post(
            f"/api/v1/orders/{order['id']}/return-request",
            json={"reason": "Changed my mind"},
            headers=customer.headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Return can only be requested for delivered items"
