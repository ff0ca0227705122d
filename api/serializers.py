"""
API Serializers for Request/Response handling

Request fields use the camelCase names clients send (userEmail, orderValue,
postalCode, ...); responses use the model field names.
"""
from decimal import Decimal

from rest_framework import serializers

from apps.addressbook.models import Address
from apps.core.utils import (
    cutoff_time_validator,
    image_url_validator,
    phone_validator,
    postal_code_validator,
)
from apps.payguard.models import PaymentMethod
from apps.shipstream.models import ShippingMethod
from apps.shopcore.models import Product, Review


# === Addresses ===

class AddressSerializer(serializers.ModelSerializer):
    """
    Response serializer for an address.
    """
    full_name = serializers.CharField(read_only=True)
    formatted_address = serializers.CharField(read_only=True)

    class Meta:
        model = Address
        fields = [
            'id', 'type', 'title', 'first_name', 'last_name', 'full_name', 'company',
            'phone', 'address_line1', 'address_line2', 'city', 'state', 'postal_code',
            'country', 'formatted_address', 'is_default', 'is_active',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class AddressWriteSerializer(serializers.Serializer):
    """
    Request serializer for creating or (partially) updating an address.
    """
    userEmail = serializers.EmailField(required=False)
    type = serializers.ChoiceField(choices=Address.TYPE_CHOICES, required=False)
    title = serializers.CharField(max_length=50)
    firstName = serializers.CharField(max_length=50, source='first_name')
    lastName = serializers.CharField(max_length=50, source='last_name')
    company = serializers.CharField(max_length=100, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=15, validators=[phone_validator])
    addressLine1 = serializers.CharField(max_length=200, source='address_line1')
    addressLine2 = serializers.CharField(max_length=200, required=False, allow_blank=True, source='address_line2')
    city = serializers.CharField(max_length=50)
    state = serializers.CharField(max_length=50)
    postalCode = serializers.CharField(max_length=5, validators=[postal_code_validator], source='postal_code')
    country = serializers.CharField(max_length=50, required=False)
    isDefault = serializers.BooleanField(required=False, source='is_default')


# === Catalog ===

class ProductSerializer(serializers.ModelSerializer):

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'description', 'price', 'image', 'category',
            'stock', 'rating', 'num_reviews', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'rating', 'num_reviews', 'created_at', 'updated_at']


class ProductRatingSerializer(serializers.Serializer):
    average_rating = serializers.DecimalField(max_digits=2, decimal_places=1)
    total_reviews = serializers.IntegerField()
    rating_breakdown = serializers.DictField(child=serializers.IntegerField())


# === Reviews ===

class ReviewAuthorSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    image = serializers.CharField(allow_null=True)


class ReviewSerializer(serializers.ModelSerializer):
    """
    Response serializer for a review, with a minimal author block.
    """
    user = ReviewAuthorSerializer(read_only=True)
    product_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Review
        fields = [
            'id', 'user', 'product_id', 'rating', 'title', 'comment', 'pros', 'cons',
            'images', 'verified', 'helpful', 'not_helpful', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ReviewCreateSerializer(serializers.Serializer):
    """
    Request serializer for submitting a review.
    """
    userEmail = serializers.EmailField(required=False)
    productId = serializers.UUIDField(source='product_id')
    rating = serializers.IntegerField(min_value=1, max_value=5)
    title = serializers.CharField(max_length=100)
    comment = serializers.CharField(max_length=1000)
    pros = serializers.ListField(child=serializers.CharField(max_length=200), required=False, default=list)
    cons = serializers.ListField(child=serializers.CharField(max_length=200), required=False, default=list)
    images = serializers.ListField(
        child=serializers.CharField(max_length=500, validators=[image_url_validator]),
        required=False,
        default=list,
    )


class ReviewVoteSerializer(serializers.Serializer):
    userEmail = serializers.EmailField(required=False)
    vote = serializers.ChoiceField(choices=[Review.VOTE_HELPFUL, Review.VOTE_NOT_HELPFUL])


class ReviewVoteResultSerializer(serializers.Serializer):
    helpful = serializers.IntegerField()
    not_helpful = serializers.IntegerField()


# === Shipping ===

class RegionalPricingRuleSerializer(serializers.Serializer):
    region = serializers.CharField(max_length=50)
    cities = serializers.ListField(child=serializers.CharField(max_length=50), required=False, default=list)
    price_multiplier = serializers.FloatField(min_value=0, default=1)
    additional_days = serializers.IntegerField(min_value=0, default=0)


class WeightRuleSerializer(serializers.Serializer):
    max_weight = serializers.FloatField(min_value=0)
    additional_price = serializers.FloatField(min_value=0, default=0)


class ShippingMethodSerializer(serializers.ModelSerializer):
    """
    Full shipping method definition, used to create catalog entries.
    Rule lists are validated item by item and stored as plain JSON.
    """
    regional_pricing = RegionalPricingRuleSerializer(many=True, required=False)
    weight_rules = WeightRuleSerializer(many=True, required=False)
    available_days = serializers.ListField(
        child=serializers.ChoiceField(choices=ShippingMethod.DAY_CHOICES), required=False
    )
    cutoff_time = serializers.CharField(max_length=5, required=False, validators=[cutoff_time_validator])

    class Meta:
        model = ShippingMethod
        fields = [
            'id', 'name', 'description', 'type', 'base_price', 'free_shipping_threshold',
            'estimated_days_min', 'estimated_days_max', 'regional_pricing', 'weight_rules',
            'icon', 'color', 'is_active', 'is_popular', 'features', 'restrictions',
            'available_days', 'cutoff_time', 'min_order_value', 'max_order_value',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate(self, attrs):
        if attrs.get('estimated_days_min', 0) > attrs.get('estimated_days_max', 0):
            raise serializers.ValidationError("estimated_days_min cannot exceed estimated_days_max")
        maximum = attrs.get('max_order_value')
        if maximum is not None and maximum < attrs.get('min_order_value', Decimal('0')):
            raise serializers.ValidationError("max_order_value cannot be below min_order_value")
        return attrs

    def create(self, validated_data):
        for name in ('regional_pricing', 'weight_rules'):
            if name in validated_data:
                validated_data[name] = [dict(rule) for rule in validated_data[name]]
        return ShippingMethod.objects.create(**validated_data)


class ShippingCalculateSerializer(serializers.Serializer):
    methodId = serializers.UUIDField(source='method_id')
    orderValue = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.01'), source='order_value'
    )
    weight = serializers.DecimalField(max_digits=8, decimal_places=3, min_value=Decimal('0'), required=False)
    region = serializers.CharField(max_length=50, required=False)


class SeedRequestSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=['seed'])


# === Payment ===

class PaymentMethodSerializer(serializers.ModelSerializer):

    class Meta:
        model = PaymentMethod
        fields = [
            'id', 'name', 'description', 'type', 'icon', 'color', 'is_active', 'is_popular',
            'processing_fee', 'processing_fee_percent', 'min_amount', 'max_amount',
            'supported_cards', 'features', 'restrictions', 'processing_time',
            'security_level', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_supported_cards(self, value):
        unknown = [card for card in value if card not in PaymentMethod.CARD_CHOICES]
        if unknown:
            raise serializers.ValidationError(f"Unsupported card type: {unknown[0]}")
        return value

    def validate(self, attrs):
        maximum = attrs.get('max_amount')
        if maximum is not None and maximum < attrs.get('min_amount', Decimal('0')):
            raise serializers.ValidationError("max_amount cannot be below min_amount")
        return attrs


# === Cart ===

class CartItemSerializer(serializers.Serializer):
    product_id = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    category = serializers.CharField()
    image = serializers.CharField()
    quantity = serializers.IntegerField()
    stock = serializers.IntegerField(allow_null=True)


class CartSerializer(serializers.Serializer):
    """
    Response serializer for the cart. Totals are derived from the items.
    """
    items = CartItemSerializer(many=True)
    is_open = serializers.BooleanField()
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    item_count = serializers.IntegerField()


class CartAddSerializer(serializers.Serializer):
    userEmail = serializers.EmailField(required=False)
    productId = serializers.UUIDField(source='product_id')
    returnPath = serializers.CharField(max_length=500, required=False, default='/', source='return_path')


class CartQuantitySerializer(serializers.Serializer):
    userEmail = serializers.EmailField(required=False)
    quantity = serializers.IntegerField()


class CartOpenSerializer(serializers.Serializer):
    userEmail = serializers.EmailField(required=False)
    isOpen = serializers.BooleanField(source='is_open')


# === Checkout ===

class CheckoutAddressSerializer(serializers.Serializer):
    userEmail = serializers.EmailField(required=False)
    addressId = serializers.UUIDField(source='address_id')


class CheckoutShippingSerializer(serializers.Serializer):
    userEmail = serializers.EmailField(required=False)
    methodId = serializers.UUIDField(source='method_id')
    weight = serializers.DecimalField(max_digits=8, decimal_places=3, min_value=Decimal('0'), required=False)


class CheckoutPaymentSerializer(serializers.Serializer):
    userEmail = serializers.EmailField(required=False)
    methodId = serializers.UUIDField(source='method_id')


# === Health ===

class HealthCheckSerializer(serializers.Serializer):
    """
    Response serializer for health check.
    """
    status = serializers.CharField()
    version = serializers.CharField()
    database = serializers.CharField()
    cache = serializers.CharField()
    timestamp = serializers.DateTimeField()
