# Standard Library
import logging

# Django
from django.db import DatabaseError, connection

# Django REST Framework
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

# Local Imports
from .inventory import get_publication
from .models import Notification
from .permissions import IsAdminRole
from .serializers import NotificationSerializer
from .utilities import _iso, _parse_payload, api_response, money

logger = logging.getLogger(__name__)


class PublicationDetailAPIView(APIView):
    """Price and stock for cart/checkout screens."""
    permission_classes = [AllowAny]

    def get(self, request, publication_id):
        pub = get_publication(publication_id)
        return api_response({
            "id": pub.pk,
            "title": pub.title,
            "author": pub.author,
            "description": pub.description,
            "price": money(pub.price),
            "category": pub.category,
            "image": pub.image,
            "stock": pub.stock,
            "isActive": pub.is_active,
            "inStock": pub.is_active and pub.stock > 0,
            "updatedAt": _iso(pub.updated_at),
        })


@api_view(['GET'])
@permission_classes([IsAdminRole])
def get_notifications(request):
    notifications = Notification.objects.order_by('-created_at')
    status_filter = (request.query_params.get("status") or "").strip()
    if status_filter:
        if status_filter not in ("read", "unread"):
            raise ValidationError("Invalid status. Must be read or unread")
        notifications = notifications.filter(status=status_filter)
    serializer = NotificationSerializer(notifications[:500], many=True)
    return api_response(serializer.data)


@api_view(['PATCH'])
@permission_classes([IsAdminRole])
def update_notification_status(request, notification_id):
    new_status = _parse_payload(request).get("status")
    if new_status not in ("read", "unread"):
        raise ValidationError("Invalid status. Must be read or unread")
    updated = Notification.objects.filter(notification_id=notification_id).update(status=new_status)
    if not updated:
        raise NotFound("Notification not found")
    return api_response({"notification_id": notification_id, "status": new_status}, message="Status updated")


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError:
        logger.exception("Health check failed")
        return Response(
            {"success": False, "message": "Database unavailable", "error": "database_unavailable"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return api_response({"status": "ok", "database": "ok"})
