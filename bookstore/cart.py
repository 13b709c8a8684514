# Standard Library
import logging
from decimal import Decimal

# Django
from django.db import transaction

# Django REST Framework
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

# Local Imports
from .inventory import check_available, get_publication
from .models import Cart, CartItem
from .serializers import CartItemSerializer
from .utilities import _parse_payload, _to_int, api_response, money

logger = logging.getLogger(__name__)


def _get_or_create_cart(user) -> Cart:
    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


def serialize_cart(cart):
    """Only lines for publications that can still be bought are shown."""
    items = []
    total_amount = Decimal("0.00")
    total_items = 0
    for item in cart.items.select_related("publication"):
        pub = item.publication
        if not pub.is_active or pub.stock <= 0:
            continue
        total_amount += item.line_total
        total_items += item.quantity
        items.append({
            "publicationId": pub.pk,
            "title": pub.title,
            "author": pub.author,
            "image": pub.image,
            "price": money(item.price),
            "currentPrice": money(pub.price),
            "quantity": item.quantity,
            "stock": pub.stock,
            "lineTotal": money(item.line_total),
        })
    return {"items": items, "totalItems": total_items, "totalAmount": money(total_amount)}


class CartAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return api_response(serialize_cart(_get_or_create_cart(request.user)))

    def delete(self, request):
        cart = _get_or_create_cart(request.user)
        cart.items.all().delete()
        logger.info("Cart cleared for user: %s", request.user.email)
        return api_response(serialize_cart(cart), message="Cart cleared successfully")


class CartItemsAPIView(APIView):
    permission_classes = [IsAuthenticated]

    @transaction.atomic
    def post(self, request):
        ser = CartItemSerializer(data=_parse_payload(request))
        ser.is_valid(raise_exception=True)
        publication = get_publication(ser.validated_data["publicationId"])
        quantity = ser.validated_data["quantity"]

        cart = _get_or_create_cart(request.user)
        item = CartItem.objects.select_for_update().filter(cart=cart, publication=publication).first()
        new_quantity = quantity + (item.quantity if item else 0)
        check_available(publication, new_quantity)

        if item:
            item.quantity = new_quantity
            item.price = publication.price  # keep latest pricing
            item.save(update_fields=["quantity", "price"])
        else:
            CartItem.objects.create(cart=cart, publication=publication, quantity=quantity, price=publication.price)

        return api_response(serialize_cart(cart), message="Item added to cart",
                            status_code=status.HTTP_201_CREATED if not item else status.HTTP_200_OK)


class CartItemDetailAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def _item(self, request, publication_id, lock=False):
        qs = CartItem.objects.select_related("publication")
        if lock:
            qs = qs.select_for_update()
        item = qs.filter(cart__user=request.user, publication_id=publication_id).first()
        if not item:
            raise NotFound("Item not found in cart")
        return item

    @transaction.atomic
    def patch(self, request, publication_id):
        data = _parse_payload(request)
        if "quantity" not in data:
            raise ValidationError("quantity is required")
        quantity = _to_int(data.get("quantity"), None)
        if quantity is None:
            raise ValidationError("Invalid quantity.")

        item = self._item(request, publication_id, lock=True)
        cart = item.cart
        if quantity <= 0:
            item.delete()
            return api_response(serialize_cart(cart), message="Item removed from cart")

        check_available(item.publication, quantity)
        item.quantity = quantity
        item.save(update_fields=["quantity"])
        return api_response(serialize_cart(cart), message="Cart updated successfully")

    def delete(self, request, publication_id):
        item = self._item(request, publication_id)
        cart = item.cart
        item.delete()
        return api_response(serialize_cart(cart), message="Item removed from cart")


class CartCountAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        cart = _get_or_create_cart(request.user)
        return api_response({"count": serialize_cart(cart)["totalItems"]})
