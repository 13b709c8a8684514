# Standard Library
import json
import math
from decimal import Decimal, InvalidOperation

# Django REST Framework
from rest_framework import status
from rest_framework.response import Response


def api_response(data=None, message=None, status_code=status.HTTP_200_OK):
    """The one response shape every endpoint uses: {success, message?, data?}."""
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return Response(body, status=status_code)


def _parse_payload(request):
    """Consistent, tolerant request payload parsing."""
    if isinstance(request.data, dict):
        return request.data
    try:
        body = request.body.decode("utf-8") if request.body else "{}"
        return json.loads(body or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError):
        return {}


def _to_int(val, default):
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


def _to_decimal(val, default="0"):
    try:
        return Decimal(str(val))
    except (InvalidOperation, TypeError, ValueError):
        return Decimal(default)


def page_params(request, default_limit=10, max_limit=50):
    """?page=&limit= clamped to sane bounds. Returns (page, limit, offset)."""
    page = max(1, _to_int(request.query_params.get("page"), 1))
    limit = _to_int(request.query_params.get("limit"), default_limit)
    limit = min(max_limit, max(1, limit))
    return page, limit, (page - 1) * limit


def pagination_meta(page, limit, total):
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def _iso(dt):
    return dt.isoformat() if dt else None


def money(val):
    """Decimal -> float for JSON payloads (two decimal places)."""
    return float(_to_decimal(val).quantize(Decimal("0.01")))

