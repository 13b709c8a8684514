from rest_framework import serializers

from .models import HEALING_STATUSES, ORDER_STATUSES, PAYMENT_METHODS, PAYMENT_STATUSES, Notification


class ShippingAddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=200, trim_whitespace=True)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    pincode = serializers.RegexField(r"^\d{6}$", error_messages={"invalid": "Invalid pincode format"})
    country = serializers.CharField(max_length=100, required=False, default="India")
    phone = serializers.RegexField(r"^[6-9]\d{9}$", error_messages={"invalid": "Invalid phone number format"})

    def to_internal_value(self, data):
        # storefront sends `address` where the model says `street`
        if isinstance(data, dict) and "street" not in data and "address" in data:
            data = {**data, "street": data["address"]}
        return super().to_internal_value(data)


class CheckoutItemSerializer(serializers.Serializer):
    publicationId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, max_value=100)


class CheckoutSerializer(serializers.Serializer):
    items = CheckoutItemSerializer(many=True, allow_empty=False)
    shippingAddress = ShippingAddressSerializer()
    paymentMethod = serializers.ChoiceField(choices=PAYMENT_METHODS)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class VerifyPaymentSerializer(serializers.Serializer):
    razorpay_order_id = serializers.CharField(max_length=100)
    razorpay_payment_id = serializers.CharField(max_length=100)
    razorpay_signature = serializers.CharField(max_length=255)
    order_id = serializers.IntegerField(min_value=1)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ORDER_STATUSES)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)
    trackingNumber = serializers.CharField(max_length=100, required=False, allow_blank=True)


class PaymentStatusSerializer(serializers.Serializer):
    paymentStatus = serializers.ChoiceField(choices=PAYMENT_STATUSES)


class CartItemSerializer(serializers.Serializer):
    publicationId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, max_value=100, required=False, default=1)


class CommentSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    text = serializers.CharField(max_length=1000)
    parentComment = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class HealingFormSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    seekingFor = serializers.CharField(max_length=200)
    description = serializers.CharField(max_length=2000)
    photo = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")


class QuestionFormSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    category = serializers.CharField(max_length=100)
    question = serializers.CharField(max_length=2000)


class HealingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=HEALING_STATUSES)
    adminNotes = serializers.CharField(required=False, allow_blank=True)


class QuestionAnswerSerializer(serializers.Serializer):
    adminResponse = serializers.CharField(max_length=5000)
    status = serializers.ChoiceField(choices=["answered", "published"], required=False, default="answered")
    isPublic = serializers.BooleanField(required=False, default=False)


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, max_length=128, write_only=True)


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["notification_id", "type", "title", "message", "source_table", "source_id", "status", "created_at"]
