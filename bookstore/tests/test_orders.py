import re

import pytest

from bookstore.models import Cart, CartItem, Notification, Order, generate_order_number

pytestmark = pytest.mark.django_db


def test_order_number_format():
    number = generate_order_number()
    assert re.fullmatch(r"ORD\d{13}[0-9A-Z]{5}", number)
    assert number != generate_order_number()


def test_cod_order_takes_stock_and_clears_cart(checkout, user, book, second_book):
    cart = Cart.objects.create(user=user)
    CartItem.objects.create(cart=cart, publication=book, quantity=1, price=book.price)

    res = checkout([(book, 2), (second_book, 1)], payment_method="cod")
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["data"]["order"]["razorpayOrderId"] is None
    assert body["data"]["order"]["totalItems"] == 3
    assert body["data"]["order"]["totalAmount"] == 620.5

    book.refresh_from_db()
    second_book.refresh_from_db()
    assert book.stock == 8
    assert second_book.stock == 2
    assert not CartItem.objects.filter(cart=cart).exists()

    order = Order.objects.get()
    assert order.stock_reserved is True
    assert order.order_status == "pending"
    assert order.payment_status == "pending"
    assert [i.title for i in order.items.all()] == ["Gita Saar", "Upanishad Sangrah"]


def test_short_line_aborts_whole_order(checkout, book, second_book):
    res = checkout([(book, 2), (second_book, 4)], payment_method="cod")
    assert res.status_code == 400
    assert res.json()["error"] == "insufficient_stock"
    book.refresh_from_db()
    assert book.stock == 10
    assert not Order.objects.exists()


def test_repeated_lines_are_merged_for_stock_check(checkout, second_book):
    res = checkout([(second_book, 2), (second_book, 2)], payment_method="cod")
    assert res.status_code == 400
    second_book.refresh_from_db()
    assert second_book.stock == 3


def test_missing_publication_is_not_found(user_client, shipping_address):
    res = user_client.post("/api/v1/payments/create-order", {
        "items": [{"publicationId": 9999, "quantity": 1}],
        "shippingAddress": shipping_address,
        "paymentMethod": "cod",
    }, format="json")
    assert res.status_code == 404
    assert "Publication not found: 9999" in res.json()["message"]


def test_inactive_publication_is_unavailable(checkout, book):
    book.is_active = False
    book.save()
    res = checkout([(book, 1)])
    assert res.status_code == 400
    assert res.json()["error"] == "unavailable"


def test_invalid_shipping_address(user_client, book, shipping_address):
    shipping_address["pincode"] = "12345"
    res = user_client.post("/api/v1/payments/create-order", {
        "items": [{"publicationId": book.pk, "quantity": 1}],
        "shippingAddress": shipping_address,
        "paymentMethod": "cod",
    }, format="json")
    assert res.status_code == 400
    assert res.json()["message"].startswith("Validation failed")


def test_address_alias_is_accepted(user_client, book, shipping_address):
    shipping_address["address"] = shipping_address.pop("street")
    res = user_client.post("/api/v1/payments/create-order", {
        "items": [{"publicationId": book.pk, "quantity": 1}],
        "shippingAddress": shipping_address,
        "paymentMethod": "cod",
    }, format="json")
    assert res.status_code == 201
    assert Order.objects.get().shipping_address["street"] == "12 MG Road"


def test_checkout_requires_login(anon_client, book):
    res = anon_client.post("/api/v1/payments/create-order", {}, format="json")
    assert res.status_code == 401
    assert res.json()["success"] is False


# ---------- cancellation ----------

def test_cancel_cod_order_restores_stock(checkout, user_client, book):
    checkout([(book, 3)], payment_method="cod")
    order = Order.objects.get()

    res = user_client.post(f"/api/v1/orders/{order.pk}/cancel", {"reason": "Changed my mind"}, format="json")
    assert res.status_code == 200
    assert res.json()["data"]["orderStatus"] == "cancelled"

    order.refresh_from_db()
    book.refresh_from_db()
    assert order.cancelled_at is not None
    assert order.notes == "Changed my mind"
    assert order.stock_reserved is False
    assert book.stock == 10


def test_cancel_unpaid_online_order_leaves_stock_alone(checkout, user_client, book):
    checkout([(book, 3)])
    order = Order.objects.get()
    assert user_client.post(f"/api/v1/orders/{order.pk}/cancel", {}, format="json").status_code == 200
    book.refresh_from_db()
    assert book.stock == 10


def test_cannot_cancel_twice(checkout, user_client, book):
    checkout([(book, 1)], payment_method="cod")
    order = Order.objects.get()
    user_client.post(f"/api/v1/orders/{order.pk}/cancel", {}, format="json")
    res = user_client.post(f"/api/v1/orders/{order.pk}/cancel", {}, format="json")
    assert res.status_code == 400
    assert res.json()["error"] == "not_cancellable"
    book.refresh_from_db()
    assert book.stock == 10


@pytest.mark.parametrize("order_status", ["processing", "shipped", "delivered"])
def test_cannot_cancel_after_processing(checkout, user_client, book, order_status):
    checkout([(book, 1)], payment_method="cod")
    order = Order.objects.get()
    Order.objects.filter(pk=order.pk).update(order_status=order_status)
    assert user_client.post(f"/api/v1/orders/{order.pk}/cancel", {}, format="json").status_code == 400


def test_cannot_cancel_someone_elses_order(checkout, other_client, book):
    checkout([(book, 1)], payment_method="cod")
    order = Order.objects.get()
    assert other_client.post(f"/api/v1/orders/{order.pk}/cancel", {}, format="json").status_code == 404


# ---------- reads ----------

def test_my_orders_lists_only_own_orders(checkout, user_client, other_client, book):
    checkout([(book, 1)], payment_method="cod")
    checkout([(book, 1)], payment_method="cod", client=other_client)

    res = user_client.get("/api/v1/orders")
    data = res.json()["data"]
    assert data["pagination"]["total"] == 1
    assert data["orders"][0]["items"][0]["title"] == "Gita Saar"


def test_my_orders_limit_is_capped(user_client):
    res = user_client.get("/api/v1/orders?limit=500")
    assert res.json()["data"]["pagination"]["limit"] == 50


def test_order_detail_for_owner_and_admin(checkout, user_client, admin_client, other_client, book):
    checkout([(book, 1)], payment_method="cod")
    order = Order.objects.get()
    assert user_client.get(f"/api/v1/orders/{order.pk}").json()["data"]["orderNumber"] == order.order_number
    admin_view = admin_client.get(f"/api/v1/orders/{order.pk}").json()["data"]
    assert admin_view["user"]["email"] == "reader@example.com"
    assert other_client.get(f"/api/v1/orders/{order.pk}").status_code == 404


# ---------- admin ----------

def test_admin_endpoints_reject_customers(user_client):
    res = user_client.get("/api/v1/admin/orders")
    assert res.status_code == 403
    assert res.json()["message"] == "Admin access required"


def test_admin_lists_and_filters_orders(checkout, admin_client, book):
    checkout([(book, 1)], payment_method="cod")
    checkout([(book, 1)], payment_method="cod")
    Order.objects.filter(pk=Order.objects.first().pk).update(order_status="shipped")

    data = admin_client.get("/api/v1/admin/orders?status=shipped").json()["data"]
    assert data["pagination"]["total"] == 1
    assert data["orders"][0]["orderStatus"] == "shipped"
    assert admin_client.get("/api/v1/admin/orders?status=bogus").status_code == 400


def test_admin_status_update_with_tracking_ships(checkout, admin_client, book):
    checkout([(book, 1)], payment_method="cod")
    order = Order.objects.get()
    Order.objects.filter(pk=order.pk).update(order_status="processing")

    res = admin_client.patch(f"/api/v1/admin/orders/{order.pk}/status",
                             {"status": "processing", "trackingNumber": "TRK123"}, format="json")
    assert res.status_code == 200
    order.refresh_from_db()
    assert order.order_status == "shipped"
    assert order.tracking_number == "TRK123"


def test_admin_marks_delivered(checkout, admin_client, book):
    checkout([(book, 1)], payment_method="cod")
    order = Order.objects.get()
    admin_client.patch(f"/api/v1/admin/orders/{order.pk}/status", {"status": "delivered"}, format="json")
    order.refresh_from_db()
    assert order.order_status == "delivered"
    assert order.delivered_at is not None
    assert order.is_cancellable is False


def test_admin_status_update_rejects_unknown_status(checkout, admin_client, book):
    checkout([(book, 1)], payment_method="cod")
    order = Order.objects.get()
    res = admin_client.patch(f"/api/v1/admin/orders/{order.pk}/status", {"status": "lost"}, format="json")
    assert res.status_code == 400


def test_admin_refund_stamps_time(checkout, admin_client, book):
    checkout([(book, 1)], payment_method="cod")
    order = Order.objects.get()
    res = admin_client.patch(f"/api/v1/admin/orders/{order.pk}/payment-status",
                             {"paymentStatus": "refunded"}, format="json")
    assert res.status_code == 200
    order.refresh_from_db()
    assert order.payment_status == "refunded"
    assert order.refunded_at is not None


def test_admin_stats(checkout, admin_client, book):
    checkout([(book, 2)], payment_method="cod")
    checkout([(book, 1)], payment_method="cod")
    Order.objects.filter(pk=Order.objects.order_by("id").first().pk).update(order_status="cancelled")

    data = admin_client.get("/api/v1/admin/orders/stats").json()["data"]
    assert data["total"] == 2
    assert data["pending"] == 1
    assert data["cancelled"] == 1
    assert data["revenue"] == 250.0


def test_status_change_writes_notification(checkout, admin_client, book):
    checkout([(book, 1)], payment_method="cod")
    order = Order.objects.get()
    assert Notification.objects.filter(type="order", source_id=str(order.pk)).count() == 1

    admin_client.patch(f"/api/v1/admin/orders/{order.pk}/status", {"status": "confirmed"}, format="json")
    assert Notification.objects.filter(type="order_status", source_id=str(order.pk)).count() == 1


def test_admin_cancel_gives_back_taken_stock(checkout, admin_client, user_client, book):
    checkout([(book, 3)], payment_method="cod")
    order = Order.objects.get()

    res = admin_client.patch(f"/api/v1/admin/orders/{order.pk}/status", {"status": "cancelled"}, format="json")
    assert res.status_code == 200

    order.refresh_from_db()
    book.refresh_from_db()
    assert order.order_status == "cancelled"
    assert order.cancelled_at is not None
    assert order.stock_reserved is False
    assert book.stock == 10

    # a second cancel from either side must not restock again
    admin_client.patch(f"/api/v1/admin/orders/{order.pk}/status", {"status": "cancelled"}, format="json")
    assert user_client.post(f"/api/v1/orders/{order.pk}/cancel", {}, format="json").status_code == 400
    book.refresh_from_db()
    assert book.stock == 10


def test_admin_cancel_of_unpaid_online_order_leaves_stock_alone(checkout, admin_client, book):
    checkout([(book, 2)])
    order = Order.objects.get()
    admin_client.patch(f"/api/v1/admin/orders/{order.pk}/status", {"status": "cancelled"}, format="json")
    book.refresh_from_db()
    assert book.stock == 10
