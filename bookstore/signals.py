import logging

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from .models import BlogComment, ChatConversation, HealingForm, Notification, Order, QuestionForm

logger = logging.getLogger(__name__)


def create_admin_notification(type, title, message, source_table, source_id):
    return Notification.objects.create(
        type=type,
        title=title,
        message=message,
        source_table=source_table,
        source_id=str(source_id),
        status="unread",
    )


# ==== SIGNALS ====
@receiver(pre_save, sender=Order)
def remember_order_status(sender, instance, **kwargs):
    if instance.pk:
        instance._previous_status = (
            Order.objects.filter(pk=instance.pk).values_list("order_status", flat=True).first()
        )
    else:
        instance._previous_status = None


@receiver(post_save, sender=Order)
def notify_order_created_or_updated(sender, instance, created, **kwargs):
    if created:
        create_admin_notification(
            "order",
            "New Order",
            f"New order '{instance.order_number}' was placed ({instance.payment_method}, {instance.total_amount}).",
            "Order",
            instance.pk,
        )
        return

    previous = getattr(instance, "_previous_status", None)
    if previous and previous != instance.order_status:
        create_admin_notification(
            "order_status",
            "Order Status Changed",
            f"Order '{instance.order_number}' status changed from '{previous}' to '{instance.order_status}'.",
            "Order",
            instance.pk,
        )


@receiver(post_save, sender=ChatConversation)
def notify_chat_started(sender, instance, created, **kwargs):
    if not created:
        return
    who = instance.user.email if instance.user_id else "an anonymous visitor"
    create_admin_notification(
        "chat",
        "New Chat",
        f"New conversation from {who}: {instance.subject}",
        "ChatConversation",
        instance.conversation_id,
    )


@receiver(post_save, sender=BlogComment)
def notify_comment_awaiting_moderation(sender, instance, created, **kwargs):
    if not created or instance.is_approved:
        return
    create_admin_notification(
        "comment",
        "Comment Awaiting Moderation",
        f"{instance.name} has commented on '{instance.post.title}'\nComment: {instance.text}",
        "BlogComment",
        instance.pk,
    )
    logger.debug("Moderation notification queued for comment %s", instance.pk)


@receiver(post_save, sender=HealingForm)
def notify_healing_form(sender, instance, created, **kwargs):
    if not created:
        return
    create_admin_notification(
        "healing_form",
        "New Healing Request",
        f"{instance.name} is seeking healing for: {instance.seeking_for}",
        "HealingForm",
        instance.pk,
    )


@receiver(post_save, sender=QuestionForm)
def notify_question_awaiting_answer(sender, instance, created, **kwargs):
    if not created:
        return
    create_admin_notification(
        "question",
        "Question Awaiting Answer",
        f"{instance.name} asked in '{instance.category}'\nQuestion: {instance.question}",
        "QuestionForm",
        instance.pk,
    )
