# Razorpay REST calls and signature helpers
import base64
import hashlib
import hmac
import json
import logging
import time
from decimal import Decimal, ROUND_HALF_UP
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings

from .exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)


def amount_in_minor_units(amount) -> int:
    """Rupees -> paise. Decimal("250") -> 25000."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _hmac_hex(secret: str, payload: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def payment_signature(gateway_order_id: str, gateway_payment_id: str) -> str:
    body = f"{gateway_order_id}|{gateway_payment_id}"
    return _hmac_hex(settings.RAZORPAY_KEY_SECRET, body.encode("utf-8"))


def webhook_signature(raw_body: bytes) -> str:
    return _hmac_hex(settings.RAZORPAY_WEBHOOK_SECRET, raw_body)


def signatures_match(expected: str, supplied) -> bool:
    if not isinstance(supplied, str) or not supplied:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


def _post_json(url: str, payload: dict) -> dict:
    """
    POST JSON with basic auth and a timeout. Returns the decoded JSON body.
    Raises on HTTP or IO errors.
    """
    token = base64.b64encode(
        f"{settings.RAZORPAY_KEY_ID}:{settings.RAZORPAY_KEY_SECRET}".encode("utf-8")
    ).decode("ascii")
    req = Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={
            "Authorization": f"Basic {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        },
        method="POST",
    )
    with urlopen(req, timeout=settings.RAZORPAY_TIMEOUT) as resp:
        return json.loads(resp.read().decode("utf-8") or "{}")


def create_gateway_order(amount, receipt: str, notes: dict) -> str:
    """Create a Razorpay order for `amount` (major units). Returns its id."""
    payload = {
        "amount": amount_in_minor_units(amount),
        "currency": settings.ORDER_CURRENCY,
        "receipt": receipt[:40],
        "notes": notes,
    }
    try:
        data = _post_json(f"{settings.RAZORPAY_API_BASE.rstrip('/')}/orders", payload)
        gateway_order_id = data.get("id")
        if not gateway_order_id:
            raise ValueError("gateway response has no order id")
        return gateway_order_id
    except (HTTPError, URLError, TimeoutError, ValueError) as e:
        if settings.RAZORPAY_ALLOW_MOCK:
            mock_id = f"order_mock_{int(time.time() * 1000)}"
            logger.warning("Razorpay order creation failed (%s); using mock order %s", e, mock_id)
            return mock_id
        logger.error("Razorpay order creation failed for receipt %s: %s", receipt, e)
        raise PaymentGatewayError()
