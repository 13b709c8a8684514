# bookstore/chat.py
"""
Support chat: a visitor (signed in or not) opens a conversation, admins
answer from an inbox. Each side has an unread counter that only the other
side's messages increase.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

from .models import ChatConversation, ChatMessage, User
from .permissions import IsAdminRole, is_admin_user
from .utilities import _iso, _parse_payload, api_response, page_params, pagination_meta

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000
MAX_SUBJECT_LENGTH = 200
CONVERSATION_STATUSES = ("active", "pending", "closed")
MESSAGE_TYPES = ("text", "image", "file")


# ---------- Who is talking ----------

@dataclass(frozen=True)
class Anonymous:
    sender_type: str = "user"

    @property
    def user(self) -> Optional[User]:
        return None


@dataclass(frozen=True)
class Authenticated:
    account: User

    @property
    def user(self) -> Optional[User]:
        return self.account

    @property
    def sender_type(self) -> str:
        return "admin" if is_admin_user(self.account) else "user"


Participant = Union[Anonymous, Authenticated]


def participant_for(request) -> Participant:
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return Authenticated(user)
    return Anonymous()


def _clean_message(raw) -> str:
    text = (raw or "").strip() if isinstance(raw, str) else ""
    if not text:
        raise ValidationError("Message is required")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message cannot exceed {MAX_MESSAGE_LENGTH} characters")
    return text


def _get_conversation(conversation_id, lock=False) -> ChatConversation:
    qs = ChatConversation.objects.all()
    if lock:
        qs = qs.select_for_update()
    conversation = qs.filter(conversation_id=conversation_id).first()
    if not conversation:
        raise NotFound("Conversation not found")
    return conversation


# ---------- Operations ----------

@transaction.atomic
def start_conversation(sender: Participant, message, subject=None):
    text = _clean_message(message)
    subject = ((subject or "").strip() if isinstance(subject, str) else "") or "General Inquiry"

    conversation = ChatConversation.objects.create(
        user=sender.user,
        subject=subject[:MAX_SUBJECT_LENGTH],
        status="active",
        last_message_at=timezone.now(),
        last_message_by="user",
        unread_admin=1,
        unread_user=0,
    )
    first = ChatMessage.objects.create(
        conversation=conversation,
        sender=sender.user,
        sender_type="user",
        message=text,
    )
    logger.info("Chat started: %s (%s)", conversation.conversation_id,
                "anonymous" if sender.user is None else sender.user.email)
    return conversation, first


@transaction.atomic
def post_message(conversation_id, sender: Participant, message, message_type="text"):
    text = _clean_message(message)
    if message_type not in MESSAGE_TYPES:
        raise ValidationError(f"Invalid messageType. Must be one of: {', '.join(MESSAGE_TYPES)}")

    conversation = _get_conversation(conversation_id, lock=True)
    sender_type = sender.sender_type

    chat_message = ChatMessage.objects.create(
        conversation=conversation,
        sender=sender.user,
        sender_type=sender_type,
        message=text,
        message_type=message_type,
    )

    updates = {
        "last_message_at": chat_message.created_at,
        "last_message_by": sender_type,
        "updated_at": timezone.now(),
    }
    if sender_type == "user":
        updates["unread_admin"] = F("unread_admin") + 1
    else:
        updates["unread_user"] = F("unread_user") + 1
        if conversation.admin_id is None:
            updates["admin"] = sender.user
    ChatConversation.objects.filter(pk=conversation.pk).update(**updates)

    return chat_message


def list_messages(conversation_id, offset, limit):
    conversation = _get_conversation(conversation_id)
    qs = ChatMessage.objects.filter(conversation=conversation).select_related("sender")
    total = qs.count()
    newest_first = list(qs.order_by("-created_at", "-id")[offset:offset + limit])
    newest_first.reverse()
    return newest_first, total


@transaction.atomic
def mark_read(conversation_id, sender: Participant):
    """The caller's side acknowledges everything the other side has sent."""
    conversation = _get_conversation(conversation_id, lock=True)
    reader = sender.sender_type
    other = "admin" if reader == "user" else "user"

    marked = (ChatMessage.objects
              .filter(conversation=conversation, sender_type=other, is_read=False)
              .update(is_read=True, read_at=timezone.now()))
    counter = "unread_user" if reader == "user" else "unread_admin"
    setattr(conversation, counter, 0)
    conversation.save(update_fields=[counter, "updated_at"])
    return marked


def update_conversation_status(conversation_id, new_status):
    if new_status not in CONVERSATION_STATUSES:
        raise ValidationError("Invalid status. Must be active, closed, or pending")
    conversation = _get_conversation(conversation_id)
    conversation.status = new_status
    conversation.save(update_fields=["status", "updated_at"])
    return conversation


# ---------- Serialization ----------

def _person(user):
    if user is None:
        return None
    return {"id": user.pk, "name": user.name, "email": user.email, "role": user.role}


def serialize_message(m: ChatMessage) -> dict:
    return {
        "id": m.pk,
        "conversationId": m.conversation_id,
        "senderType": m.sender_type,
        "sender": _person(m.sender),
        "message": m.message,
        "messageType": m.message_type,
        "isRead": m.is_read,
        "readAt": _iso(m.read_at),
        "isEdited": m.is_edited,
        "createdAt": _iso(m.created_at),
    }


def serialize_conversation(c: ChatConversation) -> dict:
    return {
        "conversationId": c.conversation_id,
        "user": _person(c.user),
        "admin": _person(c.admin),
        "subject": c.subject,
        "status": c.status,
        "priority": c.priority,
        "lastMessageAt": _iso(c.last_message_at),
        "lastMessageBy": c.last_message_by or None,
        "unreadCount": c.unread_count,
        "tags": c.tags or [],
        "createdAt": _iso(c.created_at),
    }


# ---------- Public API ----------

class StartChatAPIView(APIView):
    """
    POST /api/chat/start  { subject?, message }
    Anonymous visitors are allowed.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        data = _parse_payload(request)
        conversation, first = start_conversation(participant_for(request), data.get("message"), data.get("subject"))
        return api_response(
            {"conversationId": conversation.conversation_id, "messageId": first.pk},
            message="Chat started successfully",
        )


class ChatMessageAPIView(APIView):
    """POST /api/chat/<conversation_id>/message  { message, messageType? }"""
    permission_classes = [AllowAny]

    def post(self, request, conversation_id):
        data = _parse_payload(request)
        chat_message = post_message(
            conversation_id,
            participant_for(request),
            data.get("message"),
            message_type=data.get("messageType") or "text",
        )
        return api_response(
            {"messageId": chat_message.pk, "timestamp": _iso(chat_message.created_at)},
            message="Message sent successfully",
        )


class ChatMessagesAPIView(APIView):
    """GET /api/chat/<conversation_id>/messages?page&limit  (oldest first)"""
    permission_classes = [AllowAny]

    def get(self, request, conversation_id):
        page, limit, offset = page_params(request, default_limit=50, max_limit=100)
        messages, total = list_messages(conversation_id, offset, limit)
        return api_response({
            "messages": [serialize_message(m) for m in messages],
            "pagination": pagination_meta(page, limit, total),
        })


class ChatReadAPIView(APIView):
    permission_classes = [AllowAny]

    def post(self, request, conversation_id):
        marked = mark_read(conversation_id, participant_for(request))
        return api_response({"conversationId": conversation_id, "marked": marked})


# ---------- Admin inbox ----------

class AdminChatsAPIView(APIView):
    """GET /api/admin/chats?status&page&limit  (most recent activity first)"""
    permission_classes = [IsAdminRole]

    def get(self, request):
        page, limit, offset = page_params(request, default_limit=20, max_limit=100)
        qs = ChatConversation.objects.select_related("user", "admin").order_by("-last_message_at", "-id")
        status_filter = (request.query_params.get("status") or "").strip()
        if status_filter:
            qs = qs.filter(status=status_filter)
        total = qs.count()
        return api_response({
            "conversations": [serialize_conversation(c) for c in qs[offset:offset + limit]],
            "pagination": pagination_meta(page, limit, total),
        })


class AdminChatStatusAPIView(APIView):
    """PATCH /api/admin/chats/<conversation_id>/status  { status }"""
    permission_classes = [IsAdminRole]

    def patch(self, request, conversation_id):
        data = _parse_payload(request)
        conversation = update_conversation_status(conversation_id, data.get("status"))
        logger.info("Chat %s status set to %s by %s", conversation_id, conversation.status, request.user.email)
        return api_response(
            {"conversationId": conversation.conversation_id, "status": conversation.status},
            message="Conversation status updated successfully",
            status_code=status.HTTP_200_OK,
        )
