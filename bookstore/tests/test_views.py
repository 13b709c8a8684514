from unittest import mock

import pytest
from django.db import DatabaseError

from bookstore.models import Notification

pytestmark = pytest.mark.django_db


def test_health(anon_client):
    res = anon_client.get("/health")
    assert res.status_code == 200
    assert res.json()["data"]["database"] == "ok"


def test_health_reports_database_outage(anon_client):
    with mock.patch("bookstore.views.connection.cursor", side_effect=DatabaseError("gone")):
        res = anon_client.get("/health")
    assert res.status_code == 500
    assert res.json()["success"] is False


def test_publication_detail(anon_client, book):
    data = anon_client.get(f"/api/v1/publications/{book.pk}").json()["data"]
    assert data["price"] == 250.0
    assert data["stock"] == 10
    assert data["inStock"] is True
    assert anon_client.get("/api/v1/publications/999").status_code == 404


def test_notifications_list_and_mark_read(admin_client, user_client, anon_client):
    anon_client.post("/api/chat/start", {"message": "hello"}, format="json")
    note = Notification.objects.get()

    unread = admin_client.get("/api/admin/notifications?status=unread").json()["data"]
    assert [n["notification_id"] for n in unread] == [note.notification_id]

    res = admin_client.patch(f"/api/admin/notifications/{note.notification_id}", {"status": "read"}, format="json")
    assert res.status_code == 200
    note.refresh_from_db()
    assert note.status == "read"
    assert admin_client.get("/api/admin/notifications?status=unread").json()["data"] == []

    assert admin_client.patch(f"/api/admin/notifications/{note.notification_id}",
                              {"status": "archived"}, format="json").status_code == 400
    assert admin_client.patch("/api/admin/notifications/missing", {"status": "read"}, format="json").status_code == 404
    assert user_client.get("/api/admin/notifications").status_code == 403


def test_unhandled_error_becomes_envelope(admin_client, settings):
    settings.DEBUG = False
    with mock.patch("bookstore.orders.Order.objects.values", side_effect=RuntimeError("boom")):
        res = admin_client.get("/api/v1/admin/orders/stats")
    assert res.status_code == 500
    assert res.json() == {"success": False, "message": "Internal server error", "error": "internal_error"}
