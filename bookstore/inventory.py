"""
Stock bookkeeping for publications.

Every decrement is a single conditional UPDATE (`stock >= qty`), so two
checkouts racing for the last copies cannot both succeed. Callers wrap
reserve_stock() in transaction.atomic(); one short line raises
InsufficientStock and rolls back every line already taken.
"""
import logging
from collections import OrderedDict

from django.db.models import F
from rest_framework.exceptions import NotFound

from .exceptions import InsufficientStock, Unavailable
from .models import Publication

logger = logging.getLogger(__name__)


def merge_lines(lines):
    """[(publication_id, qty), ...] with repeated ids summed, first-seen order kept."""
    merged = OrderedDict()
    for publication_id, quantity in lines:
        merged[publication_id] = merged.get(publication_id, 0) + int(quantity)
    return list(merged.items())


def get_publication(publication_id):
    try:
        return Publication.objects.get(pk=publication_id)
    except (Publication.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Publication not found: {publication_id}")


def check_available(publication, quantity):
    if not publication.is_active:
        raise Unavailable(f"Publication is not available: {publication.title}")
    if not publication.is_in_stock(quantity):
        raise InsufficientStock(f"Insufficient stock for: {publication.title}")


def reserve_stock(lines):
    for publication_id, quantity in merge_lines(lines):
        updated = (Publication.objects
                   .filter(pk=publication_id, stock__gte=quantity)
                   .update(stock=F("stock") - quantity))
        if not updated:
            title = (Publication.objects.filter(pk=publication_id)
                     .values_list("title", flat=True).first()) or publication_id
            logger.info("Stock reservation failed for publication %s (qty %s)", publication_id, quantity)
            raise InsufficientStock(f"Insufficient stock for: {title}")


def restore_stock(lines):
    for publication_id, quantity in merge_lines(lines):
        Publication.objects.filter(pk=publication_id).update(stock=F("stock") + quantity)
