"""Tests for the product catalog, notifications and health endpoints."""

from conftest import order_body

from lumbarong.models.user import RoleEnum


def product_body(**overrides):
    body = {"name": "Classic Piña Barong", "price": 8500, "stock": 5, "category": "Barong Tagalog"}
    body.update(overrides)
    return body


class TestProducts:
    def test_verified_seller_creates_product(self, client, seller):
        response = client.post("/api/v1/products", json=product_body(), headers=seller.headers)
        assert response.status_code == 201
        data = response.json()
        assert data["sellerId"] == seller.id
        assert data["stock"] == 5
        assert data["lowStockThreshold"] == 5

    def test_unverified_seller_is_refused(self, client, make_user):
        pending = make_user(RoleEnum.seller, verified=False)
        response = client.post("/api/v1/products", json=product_body(), headers=pending.headers)
        assert response.status_code == 403

    def test_customer_cannot_create(self, client, customer):
        response = client.post("/api/v1/products", json=product_body(), headers=customer.headers)
        assert response.status_code == 403

    def test_negative_stock_rejected(self, client, seller):
        response = client.post("/api/v1/products", json=product_body(stock=-1), headers=seller.headers)
        assert response.status_code == 400

    def test_list_and_filter(self, client, seller, make_user, make_product):
        other = make_user(RoleEnum.seller)
        make_product(seller, name="Jusi Barong")
        make_product(other, name="Capiz Shell Brooch")

        assert len(client.get("/api/v1/products").json()) == 2
        assert [p["name"] for p in client.get(f"/api/v1/products?seller={other.id}").json()] == ["Capiz Shell Brooch"]
        assert [p["name"] for p in client.get("/api/v1/products?search=Jusi").json()] == ["Jusi Barong"]

    def test_get_missing_product(self, client):
        response = client.get("/api/v1/products/404")
        assert response.status_code == 404
        assert response.json() == {"message": "Product not found"}

    def test_owner_updates_stock(self, client, seller, product, stock_of):
        response = client.patch(f"/api/v1/products/{product}/stock", json={"stock": 42}, headers=seller.headers)
        assert response.status_code == 200
        assert stock_of(product) == 42

    def test_other_seller_cannot_update_stock(self, client, make_user, product):
        other = make_user(RoleEnum.seller)
        response = client.patch(f"/api/v1/products/{product}/stock", json={"stock": 0}, headers=other.headers)
        assert response.status_code == 403

    def test_admin_updates_any_stock(self, client, admin, product, stock_of):
        response = client.patch(f"/api/v1/products/{product}/stock", json={"stock": 3}, headers=admin.headers)
        assert response.status_code == 200
        assert stock_of(product) == 3

    def test_owner_edits_selected_fields(self, client, seller, product):
        response = client.put(
            f"/api/v1/products/{product}", json={"price": 9200, "category": "Filipiniana"}, headers=seller.headers
        )
        assert response.status_code == 200
        data = response.json()
        assert (data["price"], data["category"]) == (9200, "Filipiniana")
        assert data["name"] == "Classic Piña Barong"

    def test_other_seller_cannot_edit(self, client, make_user, product):
        other = make_user(RoleEnum.seller)
        response = client.put(f"/api/v1/products/{product}", json={"price": 1}, headers=other.headers)
        assert response.status_code == 403

    def test_owner_deletes_product(self, client, seller, product):
        response = client.delete(f"/api/v1/products/{product}", headers=seller.headers)
        assert response.json() == {"message": "Product deleted"}
        assert client.get(f"/api/v1/products/{product}").status_code == 404

    def test_customer_cannot_delete(self, client, customer, product):
        assert client.delete(f"/api/v1/products/{product}", headers=customer.headers).status_code == 403

    def test_admin_removes_any_product(self, client, admin, seller, product):
        assert client.delete(f"/api/v1/admin/products/{product}", headers=seller.headers).status_code == 403

        response = client.delete(f"/api/v1/admin/products/{product}", headers=admin.headers)
        assert response.json() == {"message": "Product removed successfully"}
        assert client.delete(f"/api/v1/admin/products/{product}", headers=admin.headers).status_code == 404

    def test_deleted_product_keeps_order_history(self, client, customer, seller, admin, make_product, stock_of):
        kept = make_product(seller, stock=5, name="Jusi Barong")
        gone = make_product(seller, stock=5, name="Discontinued Sash")
        body = order_body(kept, quantity=1, price=4500)
        body["items"].append({"product": gone, "quantity": 2, "price": 350})
        body["totalAmount"] = 5200
        order = client.post("/api/v1/orders", json=body, headers=customer.headers).json()

        client.delete(f"/api/v1/admin/products/{gone}", headers=admin.headers)

        history = client.get(f"/api/v1/orders/{order['id']}", headers=customer.headers).json()
        assert history["totalAmount"] == 5200
        assert [(i["productId"], i["quantity"], i["price"]) for i in history["items"]] == [(kept, 1, 4500), (None, 2, 350)]

        cancelled = client.put(
            f"/api/v1/orders/{order['id']}/status", json={"status": "Cancelled"}, headers=customer.headers
        )
        assert cancelled.status_code == 200
        assert stock_of(kept) == 5


class TestWishlist:
    def test_add_list_remove(self, client, customer, product):
        added = client.post("/api/v1/wishlist", json={"productId": product}, headers=customer.headers)
        assert added.status_code == 201
        assert added.json()["message"] == "Added to wishlist"

        items = client.get("/api/v1/wishlist", headers=customer.headers).json()
        assert [(i["productId"], i["product"]["name"]) for i in items] == [(product, "Classic Piña Barong")]

        removed = client.delete(f"/api/v1/wishlist/{product}", headers=customer.headers)
        assert removed.json() == {"message": "Removed from wishlist"}
        assert client.get("/api/v1/wishlist", headers=customer.headers).json() == []

    def test_duplicate_add(self, client, customer, product):
        client.post("/api/v1/wishlist", json={"productId": product}, headers=customer.headers)
        response = client.post("/api/v1/wishlist", json={"productId": product}, headers=customer.headers)
        assert response.status_code == 400
        assert response.json() == {"message": "Product already in wishlist"}

    def test_unknown_product_and_missing_item(self, client, customer):
        assert client.post("/api/v1/wishlist", json={"productId": 404}, headers=customer.headers).status_code == 404
        response = client.delete("/api/v1/wishlist/404", headers=customer.headers)
        assert response.status_code == 404
        assert response.json() == {"message": "Item not found in wishlist"}

    def test_only_customers_modify(self, client, seller, product):
        assert client.post("/api/v1/wishlist", json={"productId": product}, headers=seller.headers).status_code == 403
        assert client.get("/api/v1/wishlist", headers=seller.headers).json() == []

    def test_deleting_product_clears_wishlist(self, client, customer, seller, product):
        client.post("/api/v1/wishlist", json={"productId": product}, headers=customer.headers)
        client.delete(f"/api/v1/products/{product}", headers=seller.headers)
        assert client.get("/api/v1/wishlist", headers=customer.headers).json() == []


class TestNotifications:
    def test_mark_read(self, client, customer, sink):
        sink.send(customer.id, "Welcome to LumBarong")
        notification = client.get("/api/v1/notifications", headers=customer.headers).json()[0]
        assert notification["isRead"] is False

        response = client.put(f"/api/v1/notifications/{notification['id']}/read", headers=customer.headers)
        assert response.status_code == 200
        assert response.json()["isRead"] is True

    def test_cannot_read_someone_elses(self, client, customer, seller, sink):
        sink.send(seller.id, "New order received for Jusi Barong")
        notification_id = client.get("/api/v1/notifications", headers=seller.headers).json()[0]["id"]

        response = client.put(f"/api/v1/notifications/{notification_id}/read", headers=customer.headers)
        assert response.status_code == 404

    def test_sink_swallows_storage_errors(self, customer):
        from lumbarong.services.notifications import DatabaseNotificationSink

        def broken_factory():
            raise RuntimeError("no database")

        # Не должно бросать
        DatabaseNotificationSink(broken_factory).send(customer.id, "hello")
