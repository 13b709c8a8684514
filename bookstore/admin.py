from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import (
    User, Publication, Cart, CartItem, Order, OrderItem,
    ChatConversation, ChatMessage, BlogPost, BlogComment,
    Bookmark, NewsletterSubscriber, Notification, HealingForm, QuestionForm,
)


@admin.register(User)
class AccountAdmin(UserAdmin):
    list_display = ("email", "name", "role", "is_active", "date_joined")
    list_filter = ("role", "is_active")
    search_fields = ("email", "name")
    ordering = ("email",)
    fieldsets = UserAdmin.fieldsets + (("Bookstore", {"fields": ("name", "role")}),)


@admin.register(Publication)
class PublicationAdmin(admin.ModelAdmin):
    list_display = ("title", "author", "price", "stock", "is_active")
    list_filter = ("is_active", "category")
    search_fields = ("title", "author")


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("publication", "title", "author", "price", "quantity")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "user", "total_amount", "payment_method", "payment_status", "order_status", "created_at")
    list_filter = ("order_status", "payment_status", "payment_method")
    search_fields = ("order_number", "user__email", "razorpay_order_id")
    readonly_fields = ("order_number", "stock_reserved", "razorpay_payment_id", "razorpay_signature")
    inlines = [OrderItemInline]


@admin.register(BlogPost)
class BlogPostAdmin(admin.ModelAdmin):
    list_display = ("title", "status", "allow_comments", "comment_count", "published_at")
    prepopulated_fields = {"slug": ("title",)}


@admin.register(BlogComment)
class BlogCommentAdmin(admin.ModelAdmin):
    list_display = ("post", "name", "is_approved", "created_at")
    list_filter = ("is_approved",)


@admin.register(HealingForm)
class HealingFormAdmin(admin.ModelAdmin):
    list_display = ("name", "seeking_for", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("name", "email")


@admin.register(QuestionForm)
class QuestionFormAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "status", "is_public", "created_at")
    list_filter = ("status", "is_public")
    search_fields = ("name", "question")


admin.site.register(Cart)
admin.site.register(CartItem)
admin.site.register(ChatConversation)
admin.site.register(ChatMessage)
admin.site.register(Bookmark)
admin.site.register(NewsletterSubscriber)
admin.site.register(Notification)
