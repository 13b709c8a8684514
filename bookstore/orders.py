# Standard Library
import logging
from decimal import Decimal

# Django
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

# Django REST Framework
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

# Local Imports
from .exceptions import NotCancellable
from .inventory import check_available, get_publication, merge_lines, reserve_stock, restore_stock
from .models import ORDER_STATUSES, CartItem, Order, OrderItem
from .permissions import IsAdminRole, is_admin_user
from .serializers import OrderStatusSerializer, PaymentStatusSerializer
from .utilities import _iso, _parse_payload, api_response, money, page_params, pagination_meta

logger = logging.getLogger(__name__)


def serialize_order(order, include_user=False):
    items = [{
        "publicationId": it.publication_id,
        "title": it.title,
        "author": it.author,
        "price": money(it.price),
        "quantity": it.quantity,
        "image": it.image,
        "lineTotal": money(it.line_total),
    } for it in order.items.all()]

    data = {
        "id": order.pk,
        "orderNumber": order.order_number,
        "items": items,
        "totalAmount": money(order.total_amount),
        "totalItems": order.total_items,
        "shippingAddress": order.shipping_address,
        "paymentMethod": order.payment_method,
        "paymentStatus": order.payment_status,
        "orderStatus": order.order_status,
        "razorpayOrderId": order.razorpay_order_id or None,
        "trackingNumber": order.tracking_number or None,
        "notes": order.notes,
        "isCancellable": order.is_cancellable,
        "deliveredAt": _iso(order.delivered_at),
        "cancelledAt": _iso(order.cancelled_at),
        "refundedAt": _iso(order.refunded_at),
        "createdAt": _iso(order.created_at),
        "updatedAt": _iso(order.updated_at),
    }
    if include_user:
        data["user"] = {"id": order.user_id, "name": order.user.name, "email": order.user.email}
    return data


# --------------------------
# Order lifecycle
# --------------------------

@transaction.atomic
def place_order(user, items, shipping_address, payment_method, notes=""):
    """
    Validate every line against the catalog, persist the order with item
    snapshots and clear the user's cart.

    COD orders take their stock here; online orders take it when the
    payment is confirmed. A short line aborts the whole order.
    """
    lines = merge_lines((item["publicationId"], item["quantity"]) for item in items)

    total_amount = Decimal("0.00")
    total_items = 0
    snapshots = []
    for publication_id, quantity in lines:
        publication = get_publication(publication_id)
        check_available(publication, quantity)

        total_amount += publication.price * quantity
        total_items += quantity
        snapshots.append(OrderItem(
            publication=publication,
            title=publication.title,
            author=publication.author,
            price=publication.price,
            quantity=quantity,
            image=publication.image,
        ))

    order = Order.objects.create(
        user=user,
        total_amount=total_amount,
        total_items=total_items,
        shipping_address=dict(shipping_address),
        payment_method=payment_method,
        notes=notes or "",
    )
    for snap in snapshots:
        snap.order = order
    OrderItem.objects.bulk_create(snapshots)

    if payment_method == "cod":
        reserve_stock(lines)
        order.stock_reserved = True
        order.save(update_fields=["stock_reserved", "updated_at"])

    CartItem.objects.filter(cart__user=user).delete()

    logger.info("New order created: %s for user: %s (%s, total %s)",
                order.order_number, user.email, payment_method, total_amount)
    return order


def confirm_payment(order, payment_id, signature=""):
    """
    Mark a locked order paid + confirmed and take its stock if that has not
    happened yet. Returns False when the order was already paid.
    """
    if order.payment_status == "paid":
        return False
    if order.is_cancelled:
        raise ValidationError("Order has been cancelled")

    if not order.stock_reserved:
        reserve_stock(order.stock_lines())
        order.stock_reserved = True

    order.payment_status = "paid"
    order.order_status = "confirmed"
    order.razorpay_payment_id = payment_id or order.razorpay_payment_id
    if signature:
        order.razorpay_signature = signature
    order.save()
    logger.info("Payment confirmed for order %s (payment %s)", order.order_number, payment_id)
    return True


def cancel_order(order, reason=""):
    if not order.is_cancellable:
        raise NotCancellable()

    order.order_status = "cancelled"
    order.cancelled_at = timezone.now()
    if reason:
        order.notes = reason[:500]

    if order.stock_reserved:
        restore_stock(order.stock_lines())
        order.stock_reserved = False

    order.save()
    return order


def apply_status_update(order, new_status, notes=None, tracking_number=None):
    """
    Admin override: any of the six statuses may follow any other. Moving an
    order to cancelled gives back the stock it holds; no other transition
    touches stock.
    """
    previous = order.order_status
    if previous in ("delivered", "cancelled") and new_status != previous:
        logger.warning("Order %s moved out of terminal status %s to %s by admin",
                       order.order_number, previous, new_status)

    order.order_status = new_status
    if notes:
        order.notes = notes
    if new_status == "delivered":
        order.delivered_at = timezone.now()
    elif new_status == "cancelled":
        order.cancelled_at = timezone.now()
        if order.stock_reserved:
            restore_stock(order.stock_lines())
            order.stock_reserved = False
            logger.info("Stock restored for order %s on admin cancel", order.order_number)

    if tracking_number:
        order.tracking_number = tracking_number
        if order.order_status == "processing":
            order.order_status = "shipped"

    order.save()
    return order


def apply_payment_status(order, payment_status):
    order.payment_status = payment_status
    if payment_status == "refunded":
        order.refunded_at = timezone.now()
    order.save()
    return order


def _get_order_for(request, order_id, lock=False):
    qs = Order.objects.all()
    if lock:
        qs = qs.select_for_update()
    if not is_admin_user(request.user):
        qs = qs.filter(user=request.user)
    order = qs.filter(pk=order_id).first()
    if not order:
        raise NotFound("Order not found")
    return order


# --------------------------
# Customer endpoints
# --------------------------

class MyOrdersAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        page, limit, offset = page_params(request, default_limit=10, max_limit=50)
        qs = Order.objects.filter(user=request.user).prefetch_related("items")
        total = qs.count()
        orders = [serialize_order(o) for o in qs[offset:offset + limit]]
        return api_response({"orders": orders, "pagination": pagination_meta(page, limit, total)})


class OrderDetailAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, order_id):
        order = _get_order_for(request, order_id)
        return api_response(serialize_order(order, include_user=is_admin_user(request.user)))


class CancelOrderAPIView(APIView):
    permission_classes = [IsAuthenticated]

    @transaction.atomic
    def post(self, request, order_id):
        data = _parse_payload(request)
        order = _get_order_for(request, order_id, lock=True)
        cancel_order(order, reason=(data.get("reason") or "").strip())
        logger.info("Order cancelled: %s by user: %s", order.order_number, request.user.email)
        return api_response(serialize_order(order), message="Order cancelled successfully")


# --------------------------
# Admin endpoints
# --------------------------

class AdminOrdersAPIView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        page, limit, offset = page_params(request, default_limit=20, max_limit=100)
        qs = Order.objects.select_related("user").prefetch_related("items")

        status_filter = (request.query_params.get("status") or "").strip()
        if status_filter:
            if status_filter not in ORDER_STATUSES:
                raise ValidationError(f"Invalid status: {status_filter}")
            qs = qs.filter(order_status=status_filter)

        total = qs.count()
        orders = [serialize_order(o, include_user=True) for o in qs[offset:offset + limit]]
        return api_response({"orders": orders, "pagination": pagination_meta(page, limit, total)})


class AdminOrderStatsAPIView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        counts = {s: 0 for s in ORDER_STATUSES}
        for row in Order.objects.values("order_status").annotate(n=Count("id")):
            counts[row["order_status"]] = row["n"]

        revenue = (Order.objects.exclude(order_status="cancelled")
                   .aggregate(total=Sum("total_amount"))["total"]) or Decimal("0")

        return api_response({
            "total": sum(counts.values()),
            **counts,
            "revenue": money(revenue),
        })


class AdminOrderStatusAPIView(APIView):
    permission_classes = [IsAdminRole]

    @transaction.atomic
    def patch(self, request, order_id):
        ser = OrderStatusSerializer(data=_parse_payload(request))
        ser.is_valid(raise_exception=True)
        order = _get_order_for(request, order_id, lock=True)

        apply_status_update(
            order,
            ser.validated_data["status"],
            notes=ser.validated_data.get("notes"),
            tracking_number=ser.validated_data.get("trackingNumber"),
        )
        logger.info("Order status updated: %s to %s by admin: %s",
                    order.order_number, order.order_status, request.user.email)
        return api_response(serialize_order(order, include_user=True),
                            message="Order status updated successfully")


class AdminPaymentStatusAPIView(APIView):
    permission_classes = [IsAdminRole]

    @transaction.atomic
    def patch(self, request, order_id):
        ser = PaymentStatusSerializer(data=_parse_payload(request))
        ser.is_valid(raise_exception=True)
        order = _get_order_for(request, order_id, lock=True)

        apply_payment_status(order, ser.validated_data["paymentStatus"])
        logger.info("Payment status updated: %s to %s by admin: %s",
                    order.order_number, order.payment_status, request.user.email)
        return api_response(serialize_order(order, include_user=True),
                            message="Payment status updated successfully",
                            status_code=status.HTTP_200_OK)
