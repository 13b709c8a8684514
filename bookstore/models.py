import random
import string
import time
import uuid
from decimal import Decimal

from django.db import models
from django.contrib.auth.models import AbstractUser, UserManager
from django.conf import settings # for AUTH_USER_MODEL-safe FKs
from django.utils import timezone
from django.utils.text import slugify
from django.core.validators import MinValueValidator


def _base36_suffix(length):
    alphabet = string.digits + string.ascii_lowercase
    return "".join(random.choice(alphabet) for _ in range(length))


def _now_ms():
    return int(time.time() * 1000)


def _new_notification_id():
    return str(uuid.uuid4())


class AccountManager(UserManager):
    """Email is the login; username mirrors it when not given."""

    def _create_user(self, username, email, password, **extra_fields):
        email = self.normalize_email(email)
        username = username or email
        return super()._create_user(username, email, password, **extra_fields)

    def create_user(self, email=None, password=None, username=None, **extra_fields):
        return super().create_user(username, email, password, **extra_fields)

    def create_superuser(self, email=None, password=None, username=None, **extra_fields):
        extra_fields.setdefault("role", "admin")
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    ROLE_CHOICES = [("user", "User"), ("admin", "Admin")]

    email = models.EmailField(unique=True, db_index=True)
    name = models.CharField(max_length=100, blank=True, default="")
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default="user", db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    objects = AccountManager()

    def __str__(self):
        return self.email or self.username

    @property
    def is_admin(self):
        return self.role == "admin"


# === CATALOG ===
class Publication(models.Model):
    title = models.CharField(max_length=255, db_index=True)
    author = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0.00"))])
    category = models.CharField(max_length=100, blank=True, default="", db_index=True)
    image = models.CharField(max_length=500, blank=True, default="")
    stock = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["title"]

    def __str__(self):
        return self.title

    def is_in_stock(self, quantity=1):
        return self.stock >= quantity


# === CART ===
class Cart(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="cart")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Cart of {self.user}"


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    publication = models.ForeignKey(Publication, on_delete=models.CASCADE)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=10, decimal_places=2)
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["added_at", "id"]
        unique_together = ("cart", "publication")

    @property
    def line_total(self):
        return self.price * self.quantity


# === ORDERS ===
ORDER_STATUSES = ["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]
PAYMENT_STATUSES = ["pending", "paid", "failed", "refunded"]
PAYMENT_METHODS = ["cod", "online"]


def generate_order_number():
    return f"ORD{_now_ms()}{_base36_suffix(5).upper()}"


class Order(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="orders")
    order_number = models.CharField(max_length=40, unique=True, editable=False)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0.00"))])
    total_items = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    shipping_address = models.JSONField(default=dict)
    payment_method = models.CharField(max_length=10, choices=[(m, m.upper()) for m in PAYMENT_METHODS])
    payment_status = models.CharField(
        max_length=20, choices=[(s, s.title()) for s in PAYMENT_STATUSES], default="pending", db_index=True,
    )
    order_status = models.CharField(
        max_length=20, choices=[(s, s.title()) for s in ORDER_STATUSES], default="pending", db_index=True,
    )
    razorpay_order_id = models.CharField(max_length=100, blank=True, default="", db_index=True)
    razorpay_payment_id = models.CharField(max_length=100, blank=True, default="")
    razorpay_signature = models.CharField(max_length=255, blank=True, default="")
    stock_reserved = models.BooleanField(default=False)
    tracking_number = models.CharField(max_length=100, blank=True, default="")
    notes = models.CharField(max_length=500, blank=True, default="")
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "-created_at"]),
        ]

    def __str__(self):
        return self.order_number

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = generate_order_number()
        super().save(*args, **kwargs)

    @property
    def is_cancellable(self):
        return self.order_status in ("pending", "confirmed")

    @property
    def is_cancelled(self):
        return self.order_status == "cancelled"

    def stock_lines(self):
        return [(item.publication_id, item.quantity) for item in self.items.all()]


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    publication = models.ForeignKey(Publication, on_delete=models.PROTECT)
    title = models.CharField(max_length=255)
    author = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    image = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ["id"]

    @property
    def line_total(self):
        return self.price * self.quantity


# === SUPPORT CHAT ===
def generate_conversation_id():
    return f"chat_{_now_ms()}_{_base36_suffix(9)}"


class ChatConversation(models.Model):
    conversation_id = models.CharField(max_length=64, unique=True, default=generate_conversation_id)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="chat_conversations",
    )
    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="assigned_chats",
    )
    subject = models.CharField(max_length=200, blank=True, default="General Inquiry")
    status = models.CharField(
        max_length=10,
        choices=[("active", "Active"), ("pending", "Pending"), ("closed", "Closed")],
        default="active",
        db_index=True,
    )
    priority = models.CharField(
        max_length=10,
        choices=[("low", "Low"), ("medium", "Medium"), ("high", "High"), ("urgent", "Urgent")],
        default="medium",
    )
    last_message_at = models.DateTimeField(default=timezone.now, db_index=True)
    last_message_by = models.CharField(max_length=10, choices=[("user", "User"), ("admin", "Admin")], blank=True, default="")
    unread_user = models.PositiveIntegerField(default=0)
    unread_admin = models.PositiveIntegerField(default=0)
    tags = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-last_message_at"]

    def __str__(self):
        return self.conversation_id

    @property
    def unread_count(self):
        return {"user": self.unread_user, "admin": self.unread_admin}


class ChatMessage(models.Model):
    conversation = models.ForeignKey(
        ChatConversation,
        on_delete=models.CASCADE,
        related_name="messages",
        db_column="conversation_id",
        to_field="conversation_id",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="chat_messages",
    )
    sender_type = models.CharField(max_length=10, choices=[("user", "User"), ("admin", "Admin")])
    message = models.TextField(max_length=1000)
    message_type = models.CharField(
        max_length=10, choices=[("text", "Text"), ("image", "Image"), ("file", "File")], default="text",
    )
    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    is_edited = models.BooleanField(default=False)
    edited_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["conversation", "created_at"]),
        ]


# === BLOG ===
class BlogPost(models.Model):
    title = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=255, unique=True)
    content = models.TextField(blank=True, default="")
    excerpt = models.CharField(max_length=500, blank=True, default="")
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=[("draft", "Draft"), ("published", "Published"), ("archived", "Archived")],
        default="draft",
        db_index=True,
    )
    published_at = models.DateTimeField(null=True, blank=True)
    allow_comments = models.BooleanField(default=True)
    comment_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.title)[:255] or uuid.uuid4().hex[:8]
        if self.status == "published" and not self.published_at:
            self.published_at = timezone.now()
        super().save(*args, **kwargs)

    @property
    def is_published(self):
        return self.status == "published"


class BlogComment(models.Model):
    """
    One level of replies: a reply always points at a top-level comment.
    """
    post = models.ForeignKey(BlogPost, on_delete=models.CASCADE, related_name="comments")
    parent = models.ForeignKey("self", on_delete=models.CASCADE, null=True, blank=True, related_name="replies")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    name = models.CharField(max_length=100)
    email = models.EmailField(blank=True, default="")
    text = models.TextField(max_length=1000)
    is_approved = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["post", "is_approved", "-created_at"]),
        ]

    def __str__(self):
        return f"Comment {self.pk} on {self.post_id}"


# === BOOKMARKS / NEWSLETTER ===
class Bookmark(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bookmarks")
    publication = models.ForeignKey(Publication, on_delete=models.CASCADE, related_name="bookmarks")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        unique_together = ("user", "publication")


class NewsletterSubscriber(models.Model):
    email = models.EmailField(unique=True)
    is_active = models.BooleanField(default=True, db_index=True)
    source = models.CharField(max_length=50, blank=True, default="website")
    subscribed_at = models.DateTimeField(default=timezone.now)
    unsubscribed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-subscribed_at"]

    def __str__(self):
        return self.email


# === VISITOR FORMS ===
HEALING_STATUSES = ["pending", "in_progress", "completed", "cancelled"]
QUESTION_STATUSES = ["pending", "answered", "published"]


class HealingForm(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="healing_forms",
    )
    name = models.CharField(max_length=100)
    seeking_for = models.CharField(max_length=200)
    description = models.TextField(max_length=2000)
    photo = models.CharField(max_length=500, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=20, blank=True, default="")
    status = models.CharField(
        max_length=20, choices=[(s, s.replace("_", " ").title()) for s in HEALING_STATUSES],
        default="pending", db_index=True,
    )
    admin_notes = models.TextField(blank=True, default="")
    is_confidential = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.name}: {self.seeking_for}"


class QuestionForm(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="questions",
    )
    name = models.CharField(max_length=100)
    email = models.EmailField(blank=True, default="")
    category = models.CharField(max_length=100)
    question = models.TextField(max_length=2000)
    status = models.CharField(
        max_length=20, choices=[(s, s.title()) for s in QUESTION_STATUSES], default="pending", db_index=True,
    )
    admin_response = models.TextField(blank=True, default="")
    # public Q&A shows only approved questions
    is_public = models.BooleanField(default=False)
    is_approved = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.category}: {self.question[:50]}"


# === ADMIN NOTIFICATIONS ===
class Notification(models.Model):
    notification_id = models.CharField(primary_key=True, max_length=100, default=_new_notification_id)
    type = models.CharField(max_length=100, db_index=True)
    title = models.CharField(max_length=255)
    message = models.TextField()
    source_table = models.CharField(max_length=100)
    source_id = models.CharField(max_length=100)
    status = models.CharField(max_length=20, choices=[("unread", "Unread"), ("read", "Read")], default="unread", db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

