from decimal import Decimal
from unittest import mock

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from bookstore.models import BlogPost, Publication, User


@pytest.fixture(autouse=True)
def razorpay_settings(settings):
    settings.RAZORPAY_KEY_ID = "rzp_test_key"
    settings.RAZORPAY_KEY_SECRET = "test_secret_key_1234567890"
    settings.RAZORPAY_WEBHOOK_SECRET = "test_webhook_secret"
    settings.RAZORPAY_ALLOW_MOCK = True
    return settings


@pytest.fixture(autouse=True)
def gateway_post():
    """Razorpay is never reached from tests; each order gets a fresh fake id."""
    counter = {"n": 0}

    def _fake(url, payload):
        counter["n"] += 1
        return {"id": f"order_test_{counter['n']}", "amount": payload["amount"], "currency": payload["currency"]}

    with mock.patch("bookstore.gateway._post_json", side_effect=_fake) as patched:
        yield patched


def _client_for(user=None):
    client = APIClient()
    if user is not None:
        token = RefreshToken.for_user(user).access_token
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.fixture
def user(db):
    return User.objects.create_user(email="reader@example.com", password="secret123", name="Reader")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(email="other@example.com", password="secret123", name="Other")


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(email="admin@example.com", password="secret123", name="Admin", role="admin")


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def client_for():
    return _client_for


@pytest.fixture
def user_client(user):
    return _client_for(user)


@pytest.fixture
def other_client(other_user):
    return _client_for(other_user)


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def book(db):
    return Publication.objects.create(title="Gita Saar", author="Vyasa", price=Decimal("250.00"), stock=10)


@pytest.fixture
def second_book(db):
    return Publication.objects.create(title="Upanishad Sangrah", author="Various", price=Decimal("120.50"), stock=3)


@pytest.fixture
def shipping_address():
    return {
        "street": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
        "phone": "9876543210",
    }


@pytest.fixture
def checkout(user_client, shipping_address):
    """POST a create-order request; returns the response."""
    def _checkout(lines, payment_method="online", client=None):
        payload = {
            "items": [{"publicationId": pub.pk, "quantity": qty} for pub, qty in lines],
            "shippingAddress": shipping_address,
            "paymentMethod": payment_method,
        }
        return (client or user_client).post("/api/v1/payments/create-order", payload, format="json")
    return _checkout


@pytest.fixture
def published_post(admin_user):
    return BlogPost.objects.create(title="Monthly Satsang", author=admin_user, status="published", content="...")
