# Django
from django.db import IntegrityError, transaction

# Django REST Framework
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

# Local Imports
from .inventory import get_publication
from .models import Bookmark
from .utilities import _iso, api_response, money, page_params, pagination_meta


def serialize_bookmark(b):
    pub = b.publication
    return {
        "id": b.pk,
        "publication": {
            "id": pub.pk,
            "title": pub.title,
            "author": pub.author,
            "price": money(pub.price),
            "image": pub.image,
            "inStock": pub.is_active and pub.stock > 0,
        },
        "createdAt": _iso(b.created_at),
    }


def add_bookmark(user, publication):
    try:
        with transaction.atomic():
            return Bookmark.objects.create(user=user, publication=publication)
    except IntegrityError:
        raise ValidationError("Publication already bookmarked")


class BookmarksAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        page, limit, offset = page_params(request, default_limit=20, max_limit=50)
        qs = Bookmark.objects.filter(user=request.user).select_related("publication")
        total = qs.count()
        return api_response({
            "bookmarks": [serialize_bookmark(b) for b in qs[offset:offset + limit]],
            "pagination": pagination_meta(page, limit, total),
        })


class BookmarkDetailAPIView(APIView):
    """POST adds, DELETE removes the bookmark for one publication."""
    permission_classes = [IsAuthenticated]

    def post(self, request, publication_id):
        bookmark = add_bookmark(request.user, get_publication(publication_id))
        return api_response(serialize_bookmark(bookmark), message="Bookmark added",
                            status_code=status.HTTP_201_CREATED)

    def delete(self, request, publication_id):
        deleted, _ = Bookmark.objects.filter(user=request.user, publication_id=publication_id).delete()
        if not deleted:
            raise NotFound("Bookmark not found")
        return api_response(message="Bookmark removed")


class BookmarkToggleAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, publication_id):
        publication = get_publication(publication_id)
        deleted, _ = Bookmark.objects.filter(user=request.user, publication=publication).delete()
        if deleted:
            return api_response({"bookmarked": False}, message="Bookmark removed")
        add_bookmark(request.user, publication)
        return api_response({"bookmarked": True}, message="Bookmark added")


class BookmarkCheckAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, publication_id):
        exists = Bookmark.objects.filter(user=request.user, publication_id=publication_id).exists()
        return api_response({"bookmarked": exists})
