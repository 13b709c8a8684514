# Standard Library
import logging

# Django
from django.db import transaction
from django.db.models import F, IntegerField, Prefetch, Q
from django.db.models.functions import Greatest

# Django REST Framework
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

# Local Imports
from .models import BlogComment, BlogPost
from .permissions import IsAdminRole, is_admin_user
from .serializers import CommentSerializer
from .utilities import _iso, _parse_payload, api_response, page_params, pagination_meta

logger = logging.getLogger(__name__)


def _get_post(post_id):
    post = BlogPost.objects.filter(pk=post_id).first()
    if not post:
        raise NotFound("Blog post not found")
    return post


def _get_comment(comment_id, lock=False):
    qs = BlogComment.objects.all()
    if lock:
        qs = qs.select_for_update()
    comment = qs.filter(pk=comment_id).first()
    if not comment:
        raise NotFound("Comment not found")
    return comment


def _bump_count(post_id, delta):
    # comment_count tracks approved comments only
    if delta:
        BlogPost.objects.filter(pk=post_id).update(
            comment_count=Greatest(F("comment_count") + delta, 0, output_field=IntegerField())
        )


def serialize_comment(c, replies=None):
    data = {
        "id": c.pk,
        "postId": c.post_id,
        "parentComment": c.parent_id,
        "name": c.name,
        "text": c.text,
        "isApproved": c.is_approved,
        "userId": c.user_id,
        "createdAt": _iso(c.created_at),
    }
    if replies is not None:
        data["replies"] = [serialize_comment(r) for r in replies]
    return data


@transaction.atomic
def create_comment(post, user, name, text, email="", parent_id=None):
    is_admin = is_admin_user(user)
    if not post.is_published and not is_admin:
        raise NotFound("Blog post not found")
    if not post.allow_comments:
        raise ValidationError("Comments are disabled for this post")

    parent = None
    if parent_id:
        parent = BlogComment.objects.filter(pk=parent_id, post=post).select_related("parent").first()
        if not parent:
            raise NotFound("Parent comment not found")
        if parent.parent_id:
            parent = parent.parent

    signed_in = bool(user and user.is_authenticated)
    comment = BlogComment.objects.create(
        post=post,
        parent=parent,
        user=user if signed_in else None,
        name=name.strip(),
        email=(email or (user.email if signed_in else "")).strip().lower(),
        text=text.strip(),
        is_approved=signed_in,
    )
    if comment.is_approved:
        _bump_count(post.pk, 1)
    logger.info("Comment %s created on post %s (approved=%s)", comment.pk, post.pk, comment.is_approved)
    return comment


class BlogCommentsAPIView(APIView):
    """
    GET  /api/blogs/<post_id>/comments?page&limit
      top-level comments newest first, each with its replies oldest first
    POST /api/blogs/<post_id>/comments  { name, email?, text, parentComment? }
    """
    permission_classes = [AllowAny]

    def get(self, request, post_id):
        post = _get_post(post_id)
        show_all = is_admin_user(request.user)
        if not post.is_published and not show_all:
            raise NotFound("Blog post not found")

        page, limit, offset = page_params(request, default_limit=10, max_limit=50)
        visible = Q() if show_all else Q(is_approved=True)
        replies = BlogComment.objects.filter(visible).order_by("created_at", "id")
        qs = (BlogComment.objects
              .filter(visible, post=post, parent__isnull=True)
              .order_by("-created_at", "-id")
              .prefetch_related(Prefetch("replies", queryset=replies, to_attr="visible_replies")))

        total = qs.count()
        comments = [serialize_comment(c, c.visible_replies) for c in qs[offset:offset + limit]]
        return api_response({"comments": comments, "pagination": pagination_meta(page, limit, total)})

    def post(self, request, post_id):
        ser = CommentSerializer(data=_parse_payload(request))
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        comment = create_comment(
            _get_post(post_id),
            request.user,
            data["name"],
            data["text"],
            email=data.get("email", ""),
            parent_id=data.get("parentComment"),
        )
        message = "Comment posted successfully" if comment.is_approved else "Comment submitted for moderation"
        return api_response(serialize_comment(comment), message=message, status_code=status.HTTP_201_CREATED)


class ApproveCommentAPIView(APIView):
    permission_classes = [IsAdminRole]

    @transaction.atomic
    def patch(self, request, comment_id):
        comment = _get_comment(comment_id, lock=True)
        if comment.is_approved:
            raise ValidationError("Comment is already approved")
        comment.is_approved = True
        comment.save(update_fields=["is_approved", "updated_at"])
        _bump_count(comment.post_id, 1)
        return api_response(serialize_comment(comment), message="Comment approved successfully")


class DeleteCommentAPIView(APIView):
    permission_classes = [IsAdminRole]

    @transaction.atomic
    def delete(self, request, comment_id):
        comment = _get_comment(comment_id, lock=True)
        doomed = BlogComment.objects.filter(Q(pk=comment.pk) | Q(parent_id=comment.pk))
        approved = doomed.filter(is_approved=True).count()
        post_id = comment.post_id
        deleted = doomed.count()
        doomed.delete()
        _bump_count(post_id, -approved)
        logger.info("Comment %s deleted by %s (%d rows)", comment_id, request.user.email, deleted)
        return api_response({"deleted": deleted}, message="Comment deleted successfully")
