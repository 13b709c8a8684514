from django.urls import path

from .bookmarks import BookmarkCheckAPIView, BookmarkDetailAPIView, BookmarksAPIView, BookmarkToggleAPIView
from .cart import CartAPIView, CartCountAPIView, CartItemDetailAPIView, CartItemsAPIView
from .chat import (
    AdminChatsAPIView, AdminChatStatusAPIView, ChatMessageAPIView,
    ChatMessagesAPIView, ChatReadAPIView, StartChatAPIView,
)
from .comments import ApproveCommentAPIView, BlogCommentsAPIView, DeleteCommentAPIView
from .forms_api import (
    AdminAnswerQuestionAPIView, AdminHealingFormsAPIView, AdminHealingFormStatusAPIView,
    AdminQuestionsAPIView, SubmitHealingFormAPIView, SubmitQuestionAPIView,
)
from .newsletter import AdminSubscribersAPIView, SubscribeAPIView, UnsubscribeAPIView
from .orders import (
    AdminOrdersAPIView, AdminOrderStatsAPIView, AdminOrderStatusAPIView,
    AdminPaymentStatusAPIView, CancelOrderAPIView, MyOrdersAPIView, OrderDetailAPIView,
)
from .payments import CreatePaymentOrderAPIView, PaymentWebhookAPIView, VerifyPaymentAPIView
from .views import PublicationDetailAPIView, get_notifications, health, update_notification_status

urlpatterns = [
    path('health', health, name='health'),

    # Catalog / cart
    path('api/v1/publications/<int:publication_id>', PublicationDetailAPIView.as_view(), name='publication-detail'),
    path('api/v1/cart', CartAPIView.as_view(), name='cart'),
    path('api/v1/cart/items', CartItemsAPIView.as_view(), name='cart-items'),
    path('api/v1/cart/items/<int:publication_id>', CartItemDetailAPIView.as_view(), name='cart-item'),
    path('api/v1/cart/count', CartCountAPIView.as_view(), name='cart-count'),

    # Payments
    path('api/v1/payments/create-order', CreatePaymentOrderAPIView.as_view(), name='payment-create-order'),
    path('api/v1/payments/verify', VerifyPaymentAPIView.as_view(), name='payment-verify'),
    path('api/v1/payments/webhook', PaymentWebhookAPIView.as_view(), name='payment-webhook'),

    # Orders
    path('api/v1/orders', MyOrdersAPIView.as_view(), name='my-orders'),
    path('api/v1/orders/<int:order_id>', OrderDetailAPIView.as_view(), name='order-detail'),
    path('api/v1/orders/<int:order_id>/cancel', CancelOrderAPIView.as_view(), name='order-cancel'),
    path('api/v1/admin/orders', AdminOrdersAPIView.as_view(), name='admin-orders'),
    path('api/v1/admin/orders/stats', AdminOrderStatsAPIView.as_view(), name='admin-order-stats'),
    path('api/v1/admin/orders/<int:order_id>/status', AdminOrderStatusAPIView.as_view(), name='admin-order-status'),
    path('api/v1/admin/orders/<int:order_id>/payment-status', AdminPaymentStatusAPIView.as_view(),
         name='admin-payment-status'),

    # Bookmarks
    path('api/v1/bookmarks', BookmarksAPIView.as_view(), name='bookmarks'),
    path('api/v1/bookmarks/<int:publication_id>', BookmarkDetailAPIView.as_view(), name='bookmark'),
    path('api/v1/bookmarks/<int:publication_id>/toggle', BookmarkToggleAPIView.as_view(), name='bookmark-toggle'),
    path('api/v1/bookmarks/<int:publication_id>/check', BookmarkCheckAPIView.as_view(), name='bookmark-check'),

    # Support chat
    path('api/chat/start', StartChatAPIView.as_view(), name='chat-start'),
    path('api/chat/<str:conversation_id>/message', ChatMessageAPIView.as_view(), name='chat-message'),
    path('api/chat/<str:conversation_id>/messages', ChatMessagesAPIView.as_view(), name='chat-messages'),
    path('api/chat/<str:conversation_id>/read', ChatReadAPIView.as_view(), name='chat-read'),
    path('api/admin/chats', AdminChatsAPIView.as_view(), name='admin-chats'),
    path('api/admin/chats/<str:conversation_id>/status', AdminChatStatusAPIView.as_view(), name='admin-chat-status'),

    # Blog comments
    path('api/blogs/<int:post_id>/comments', BlogCommentsAPIView.as_view(), name='blog-comments'),
    path('api/admin/comments/<int:comment_id>/approve', ApproveCommentAPIView.as_view(), name='comment-approve'),
    path('api/admin/comments/<int:comment_id>', DeleteCommentAPIView.as_view(), name='comment-delete'),

    # Newsletter
    path('api/newsletter/subscribe', SubscribeAPIView.as_view(), name='newsletter-subscribe'),
    path('api/newsletter/unsubscribe', UnsubscribeAPIView.as_view(), name='newsletter-unsubscribe'),
    path('api/admin/newsletter-subscribers', AdminSubscribersAPIView.as_view(), name='newsletter-subscribers'),

    # Healing and question forms
    path('api/forms/healing', SubmitHealingFormAPIView.as_view(), name='healing-form'),
    path('api/forms/questions', SubmitQuestionAPIView.as_view(), name='question-form'),
    path('api/admin/healing-forms', AdminHealingFormsAPIView.as_view(), name='admin-healing-forms'),
    path('api/admin/healing-forms/<int:form_id>/status', AdminHealingFormStatusAPIView.as_view(),
         name='admin-healing-form-status'),
    path('api/admin/questions', AdminQuestionsAPIView.as_view(), name='admin-questions'),
    path('api/admin/questions/<int:question_id>/answer', AdminAnswerQuestionAPIView.as_view(),
         name='admin-question-answer'),

    # Admin notifications
    path('api/admin/notifications', get_notifications, name='notifications'),
    path('api/admin/notifications/<str:notification_id>', update_notification_status, name='notification-status'),
]
