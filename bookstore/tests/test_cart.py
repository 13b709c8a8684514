from decimal import Decimal

import pytest

from bookstore.models import CartItem

pytestmark = pytest.mark.django_db


def _add(client, pub, quantity=1):
    return client.post("/api/v1/cart/items", {"publicationId": pub.pk, "quantity": quantity}, format="json")


def test_add_then_merge(user_client, book):
    assert _add(user_client, book, 2).status_code == 201

    res = _add(user_client, book, 3)
    assert res.status_code == 200
    data = res.json()["data"]
    assert len(data["items"]) == 1
    assert data["items"][0]["quantity"] == 5
    assert data["totalItems"] == 5
    assert data["totalAmount"] == 1250.0


def test_merge_refreshes_price(user_client, book):
    _add(user_client, book)
    book.price = Decimal("300.00")
    book.save()
    _add(user_client, book)
    assert CartItem.objects.get().price == Decimal("300.00")


def test_add_beyond_stock_is_rejected(user_client, second_book):
    _add(user_client, second_book, 2)
    res = _add(user_client, second_book, 2)
    assert res.status_code == 400
    assert res.json()["error"] == "insufficient_stock"
    assert CartItem.objects.get().quantity == 2


def test_add_inactive_or_missing(user_client, book):
    book.is_active = False
    book.save()
    assert _add(user_client, book).status_code == 400
    res = user_client.post("/api/v1/cart/items", {"publicationId": 4242, "quantity": 1}, format="json")
    assert res.status_code == 404


def test_update_quantity_and_remove_with_zero(user_client, book):
    _add(user_client, book, 1)
    res = user_client.patch(f"/api/v1/cart/items/{book.pk}", {"quantity": 4}, format="json")
    assert res.json()["data"]["items"][0]["quantity"] == 4

    res = user_client.patch(f"/api/v1/cart/items/{book.pk}", {"quantity": 0}, format="json")
    assert res.status_code == 200
    assert res.json()["data"]["items"] == []
    assert not CartItem.objects.exists()


def test_update_unknown_item(user_client, book):
    res = user_client.patch(f"/api/v1/cart/items/{book.pk}", {"quantity": 1}, format="json")
    assert res.status_code == 404
    assert res.json()["message"] == "Item not found in cart"


def test_out_of_stock_lines_are_hidden(user_client, book, second_book):
    _add(user_client, book, 1)
    _add(user_client, second_book, 1)
    second_book.stock = 0
    second_book.save()

    data = user_client.get("/api/v1/cart").json()["data"]
    assert [i["publicationId"] for i in data["items"]] == [book.pk]
    assert user_client.get("/api/v1/cart/count").json()["data"]["count"] == 1


def test_clear_and_delete(user_client, book, second_book):
    _add(user_client, book)
    _add(user_client, second_book)
    assert user_client.delete(f"/api/v1/cart/items/{book.pk}").status_code == 200
    assert CartItem.objects.count() == 1
    assert user_client.delete("/api/v1/cart").json()["data"]["items"] == []


def test_cart_requires_login(anon_client):
    assert anon_client.get("/api/v1/cart").status_code == 401
