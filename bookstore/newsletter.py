# Standard Library
import logging

# Django
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.utils import timezone

# Django REST Framework
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

# Local Imports
from .models import NewsletterSubscriber
from .permissions import IsAdminRole
from .utilities import _iso, _parse_payload, api_response, page_params, pagination_meta

logger = logging.getLogger(__name__)


def _clean_email(raw):
    email = (raw or "").strip().lower() if isinstance(raw, str) else ""
    if not email:
        raise ValidationError("Email is required")
    try:
        validate_email(email)
    except DjangoValidationError:
        raise ValidationError("Please enter a valid email")
    return email


class SubscribeAPIView(APIView):
    """POST /api/newsletter/subscribe  { email, source? }"""
    permission_classes = [AllowAny]

    @transaction.atomic
    def post(self, request):
        data = _parse_payload(request)
        email = _clean_email(data.get("email"))
        source = (data.get("source") or "website").strip()[:50]

        sub = NewsletterSubscriber.objects.select_for_update().filter(email=email).first()
        if sub and sub.is_active:
            raise ValidationError("Email is already subscribed")

        if sub:
            sub.is_active = True
            sub.subscribed_at = timezone.now()
            sub.unsubscribed_at = None
            sub.source = source
            sub.save()
            message = "Subscription reactivated"
        else:
            sub = NewsletterSubscriber.objects.create(email=email, source=source)
            message = "Subscribed successfully"

        logger.info("Newsletter subscription: %s (%s)", email, source)
        return api_response({"email": sub.email}, message=message, status_code=status.HTTP_201_CREATED)


class UnsubscribeAPIView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        email = _clean_email(_parse_payload(request).get("email"))
        updated = (NewsletterSubscriber.objects
                   .filter(email=email, is_active=True)
                   .update(is_active=False, unsubscribed_at=timezone.now()))
        if not updated:
            raise NotFound("Subscription not found")
        return api_response({"email": email}, message="Unsubscribed successfully")


class AdminSubscribersAPIView(APIView):
    """GET /api/admin/newsletter-subscribers?page&limit&all=1"""
    permission_classes = [IsAdminRole]

    def get(self, request):
        page, limit, offset = page_params(request, default_limit=50, max_limit=100)
        qs = NewsletterSubscriber.objects.all()
        if str(request.query_params.get("all", "")).lower() not in ("1", "true", "yes"):
            qs = qs.filter(is_active=True)
        total = qs.count()
        subscribers = [{
            "email": s.email,
            "isActive": s.is_active,
            "source": s.source,
            "subscribedAt": _iso(s.subscribed_at),
            "unsubscribedAt": _iso(s.unsubscribed_at),
        } for s in qs[offset:offset + limit]]
        return api_response({"subscribers": subscribers, "pagination": pagination_meta(page, limit, total)})
