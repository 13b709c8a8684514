# Standard Library
import json
import logging

# Django
from django.conf import settings
from django.db import transaction

# Django REST Framework
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

# Local Imports
from .exceptions import InvalidSignature
from .gateway import create_gateway_order, payment_signature, signatures_match, webhook_signature
from .models import Order
from .orders import _get_order_for, confirm_payment, place_order
from .serializers import CheckoutSerializer, VerifyPaymentSerializer
from .utilities import _parse_payload, api_response, money

logger = logging.getLogger(__name__)


class CreatePaymentOrderAPIView(APIView):
    """
    POST /api/v1/payments/create-order
      { items: [{publicationId, quantity}], shippingAddress, paymentMethod, notes? }
    Online orders also get a Razorpay order; its id goes back to the client
    together with the public key id so checkout can open.
    """
    permission_classes = [IsAuthenticated]

    @transaction.atomic
    def post(self, request):
        ser = CheckoutSerializer(data=_parse_payload(request))
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        order = place_order(
            request.user,
            data["items"],
            data["shippingAddress"],
            data["paymentMethod"],
            notes=data.get("notes", ""),
        )

        if order.payment_method == "online":
            order.razorpay_order_id = create_gateway_order(
                order.total_amount,
                receipt=order.order_number,
                notes={"order_id": str(order.pk), "order_number": order.order_number},
            )
            order.save(update_fields=["razorpay_order_id", "updated_at"])

        return api_response({
            "order": {
                "id": order.pk,
                "orderNumber": order.order_number,
                "totalAmount": money(order.total_amount),
                "totalItems": order.total_items,
                "paymentMethod": order.payment_method,
                "razorpayOrderId": order.razorpay_order_id or None,
                "razorpayKeyId": settings.RAZORPAY_KEY_ID if order.payment_method == "online" else None,
            }
        }, message="Order created successfully", status_code=status.HTTP_201_CREATED)


class VerifyPaymentAPIView(APIView):
    """
    POST /api/v1/payments/verify
      { razorpay_order_id, razorpay_payment_id, razorpay_signature, order_id }
    """
    permission_classes = [IsAuthenticated]

    @transaction.atomic
    def post(self, request):
        ser = VerifyPaymentSerializer(data=_parse_payload(request))
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        expected = payment_signature(data["razorpay_order_id"], data["razorpay_payment_id"])
        if not signatures_match(expected, data["razorpay_signature"]):
            logger.warning("Invalid payment signature for order %s", data["order_id"])
            raise InvalidSignature()

        order = _get_order_for(request, data["order_id"], lock=True)
        if order.razorpay_order_id and order.razorpay_order_id != data["razorpay_order_id"]:
            logger.warning("Gateway order mismatch for order %s", order.order_number)
            raise InvalidSignature("Payment does not belong to this order")

        if not order.razorpay_order_id:
            order.razorpay_order_id = data["razorpay_order_id"]
        confirm_payment(order, data["razorpay_payment_id"], data["razorpay_signature"])

        return api_response({
            "order": {
                "id": order.pk,
                "orderNumber": order.order_number,
                "paymentStatus": order.payment_status,
                "orderStatus": order.order_status,
            }
        }, message="Payment verified successfully")


def _webhook_order(payment):
    notes = payment.get("notes") or {}
    order_id = notes.get("order_id") if isinstance(notes, dict) else None
    qs = Order.objects.select_for_update()
    if order_id and str(order_id).isdigit():
        order = qs.filter(pk=int(order_id)).first()
        if order:
            return order
    if payment.get("order_id"):
        return qs.filter(razorpay_order_id=payment["order_id"]).first()
    return None


class PaymentWebhookAPIView(APIView):
    """
    POST /api/v1/payments/webhook  (header: x-razorpay-signature)
    The signature covers the raw body, so it is read before any parsing.
    """
    authentication_classes = ()
    permission_classes = [AllowAny]

    @transaction.atomic
    def post(self, request):
        raw = request.body or b""
        supplied = request.headers.get("X-Razorpay-Signature", "")
        if not signatures_match(webhook_signature(raw), supplied):
            logger.warning("Invalid webhook signature")
            raise InvalidSignature("Invalid webhook signature")

        try:
            body = json.loads(raw.decode("utf-8") or "{}")
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise ValidationError("Invalid JSON payload.")
        if not isinstance(body, dict):
            raise ValidationError("Invalid JSON payload.")

        event = body.get("event") or ""
        payment = (((body.get("payload") or {}).get("payment") or {}).get("entity")) or {}

        if event == "payment.captured":
            order = _webhook_order(payment)
            if not order:
                raise NotFound("Order not found")
            if confirm_payment(order, payment.get("id", "")):
                logger.info("Webhook confirmed order %s", order.order_number)
        elif event == "payment.failed":
            order = _webhook_order(payment)
            if order and order.payment_status == "pending":
                order.payment_status = "failed"
                order.save(update_fields=["payment_status", "updated_at"])
                logger.info("Webhook marked payment failed for order %s", order.order_number)
        else:
            logger.info("Ignoring webhook event %s", event or "<none>")

        return Response({"success": True}, status=status.HTTP_200_OK)
