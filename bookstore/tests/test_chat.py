import re

import pytest

from bookstore.chat import Anonymous, Authenticated
from bookstore.models import ChatConversation, ChatMessage, Notification

pytestmark = pytest.mark.django_db


def _start(client, message="Where is my order?", subject=None):
    payload = {"message": message}
    if subject is not None:
        payload["subject"] = subject
    return client.post("/api/chat/start", payload, format="json")


def _send(client, conversation_id, message):
    return client.post(f"/api/chat/{conversation_id}/message", {"message": message}, format="json")


def test_sender_variants(user, admin_user):
    assert Anonymous().user is None
    assert Anonymous().sender_type == "user"
    assert Authenticated(user).sender_type == "user"
    assert Authenticated(admin_user).sender_type == "admin"


def test_anonymous_visitor_can_start_chat(anon_client):
    res = _start(anon_client)
    assert res.status_code == 200
    conversation_id = res.json()["data"]["conversationId"]
    assert re.fullmatch(r"chat_\d+_[0-9a-z]{9}", conversation_id)

    conversation = ChatConversation.objects.get(conversation_id=conversation_id)
    assert conversation.user is None
    assert conversation.subject == "General Inquiry"
    assert conversation.unread_admin == 1
    assert conversation.unread_user == 0
    assert conversation.last_message_by == "user"
    assert ChatMessage.objects.get().sender_type == "user"
    assert Notification.objects.filter(type="chat", source_id=conversation_id).exists()


def test_start_requires_message(user_client):
    res = _start(user_client, message="   ")
    assert res.status_code == 400
    assert "Message is required" in res.json()["message"]
    assert not ChatConversation.objects.exists()
    assert not ChatMessage.objects.exists()


def test_message_length_limit(user_client):
    assert _start(user_client, message="x" * 1001).status_code == 400
    assert _start(user_client, message="x" * 1000).status_code == 200


def test_admin_reply_assigns_and_counts(user_client, admin_client, admin_user):
    conversation_id = _start(user_client, subject="Refund").json()["data"]["conversationId"]

    assert _send(admin_client, conversation_id, "Looking into it").status_code == 200
    assert _send(admin_client, conversation_id, "Refund issued").status_code == 200
    assert _send(user_client, conversation_id, "Thanks").status_code == 200

    conversation = ChatConversation.objects.get(conversation_id=conversation_id)
    assert conversation.admin == admin_user
    assert conversation.unread_user == 2
    assert conversation.unread_admin == 2
    assert conversation.last_message_by == "user"
    assert conversation.subject == "Refund"


def test_message_to_unknown_conversation(user_client):
    assert _send(user_client, "chat_0_missing", "hello").status_code == 404


def test_messages_are_chronological(user_client, admin_client):
    conversation_id = _start(user_client, message="first").json()["data"]["conversationId"]
    _send(admin_client, conversation_id, "second")
    _send(user_client, conversation_id, "third")

    data = user_client.get(f"/api/chat/{conversation_id}/messages").json()["data"]
    assert [m["message"] for m in data["messages"]] == ["first", "second", "third"]
    assert [m["senderType"] for m in data["messages"]] == ["user", "admin", "user"]
    assert data["pagination"]["limit"] == 50

    capped = user_client.get(f"/api/chat/{conversation_id}/messages?limit=1000").json()["data"]
    assert capped["pagination"]["limit"] == 100


def test_mark_read_resets_callers_counter(user_client, admin_client):
    conversation_id = _start(user_client).json()["data"]["conversationId"]
    _send(admin_client, conversation_id, "Hi")
    _send(admin_client, conversation_id, "Anyone there?")

    res = user_client.post(f"/api/chat/{conversation_id}/read", {}, format="json")
    assert res.json()["data"]["marked"] == 2

    conversation = ChatConversation.objects.get(conversation_id=conversation_id)
    assert conversation.unread_user == 0
    assert conversation.unread_admin == 1
    assert ChatMessage.objects.filter(sender_type="admin", is_read=False).count() == 0
    assert ChatMessage.objects.filter(sender_type="user", is_read=False).count() == 1


def test_admin_inbox_sorted_and_filtered(user_client, other_client, admin_client):
    first = _start(user_client).json()["data"]["conversationId"]
    second = _start(other_client).json()["data"]["conversationId"]
    _send(user_client, first, "bump")

    data = admin_client.get("/api/admin/chats").json()["data"]
    assert [c["conversationId"] for c in data["conversations"]] == [first, second]
    assert data["pagination"]["limit"] == 20

    admin_client.patch(f"/api/admin/chats/{second}/status", {"status": "closed"}, format="json")
    closed = admin_client.get("/api/admin/chats?status=closed").json()["data"]["conversations"]
    assert [c["conversationId"] for c in closed] == [second]


def test_admin_status_validation(user_client, admin_client):
    conversation_id = _start(user_client).json()["data"]["conversationId"]
    assert admin_client.patch(f"/api/admin/chats/{conversation_id}/status",
                              {"status": "archived"}, format="json").status_code == 400
    assert admin_client.patch("/api/admin/chats/chat_0_missing/status",
                              {"status": "closed"}, format="json").status_code == 404


def test_inbox_is_admin_only(user_client):
    assert user_client.get("/api/admin/chats").status_code == 403


def test_billing_conversation_starts_active(user_client):
    conversation_id = _start(user_client, message="Hello", subject="Billing").json()["data"]["conversationId"]
    data = user_client.get(f"/api/chat/{conversation_id}/messages").json()["data"]
    assert len(data["messages"]) == 1
    assert data["messages"][0]["senderType"] == "user"

    conversation = ChatConversation.objects.get(conversation_id=conversation_id)
    assert conversation.status == "active"
    assert conversation.unread_count == {"user": 0, "admin": 1}
