import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InsufficientStock(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Insufficient stock"
    default_code = "insufficient_stock"


class Unavailable(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Publication is not available"
    default_code = "unavailable"


class InvalidSignature(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid payment signature"
    default_code = "invalid_signature"


class NotCancellable(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Order cannot be cancelled"
    default_code = "not_cancellable"


class PaymentGatewayError(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment gateway request failed"
    default_code = "payment_gateway_error"


def _flatten(detail):
    """Collapse DRF error detail (str / list / dict, nested) into flat messages."""
    if isinstance(detail, dict):
        out = []
        for field, value in detail.items():
            for msg in _flatten(value):
                out.append(msg if field == "non_field_errors" else f"{field}: {msg}")
        return out
    if isinstance(detail, (list, tuple)):
        out = []
        for value in detail:
            out.extend(_flatten(value))
        return out
    return [str(detail)]


def api_exception_handler(exc, context):
    """
    Render every error as {success: false, message, error}.

    Known API errors keep their status code. Anything else is logged and
    turned into a 500 that only carries the exception text in DEBUG.
    """
    response = exception_handler(exc, context)

    if response is not None:
        messages = _flatten(response.data if isinstance(exc, ValidationError) else getattr(exc, "detail", response.data))
        message = "; ".join(messages) or "Request failed"
        if isinstance(exc, ValidationError):
            message = f"Validation failed: {message}"
        code = exc.get_codes() if isinstance(exc, APIException) and not isinstance(exc, ValidationError) else "invalid"
        response.data = {
            "success": False,
            "message": message,
            "error": code if isinstance(code, str) else "error",
        }
        return response

    view = context.get("view")
    logger.exception("Unhandled error in %s", view.__class__.__name__ if view else "view")
    return Response(
        {
            "success": False,
            "message": "Internal server error",
            "error": str(exc) if settings.DEBUG else "internal_error",
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
