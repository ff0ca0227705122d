"""
API Views for the Storefront backend

This module provides REST API endpoints for:
- Addresses: per-user address book with default handling
- Shipping & Payment: method catalogs priced for a given order
- Products & Reviews: catalog search, review listing, submission and voting
- Cart & Checkout: per-user cart state and the checkout wizard
- Health Check: database and cache status

The acting user is identified by the `userEmail` query/body parameter.
"""
import logging
from datetime import datetime, timezone

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiParameter

from django.conf import settings
from django.core.cache import caches
from django.db import connection

from .serializers import (
    AddressSerializer,
    AddressWriteSerializer,
    CartAddSerializer,
    CartOpenSerializer,
    CartQuantitySerializer,
    CartSerializer,
    CheckoutAddressSerializer,
    CheckoutPaymentSerializer,
    CheckoutShippingSerializer,
    HealthCheckSerializer,
    PaymentMethodSerializer,
    ProductRatingSerializer,
    ProductSerializer,
    ReviewCreateSerializer,
    ReviewSerializer,
    ReviewVoteResultSerializer,
    ReviewVoteSerializer,
    ShippingCalculateSerializer,
    ShippingMethodSerializer,
)
from apps.addressbook import services as addressbook
from apps.checkout.cart import CartItem, CartStore, clear_cart, remove_item, require_authenticated, \
    set_cart_open, toggle_cart, update_quantity
from apps.checkout.services import CheckoutService
from apps.core.exceptions import ValidationException
from apps.core.utils import get_or_not_found, parse_decimal_param, parse_int_param, parse_uuid_param
from apps.payguard.defaults import seed_payment_methods
from apps.payguard.fees import get_available_payment_methods
from apps.shipstream.defaults import seed_shipping_methods
from apps.shipstream.models import ShippingMethod
from apps.shipstream.pricing import describe_shipping_cost, get_available_shipping_methods
from apps.shopcore import services as shopcore
from apps.shopcore.models import Review

logger = logging.getLogger(__name__)

USER_EMAIL_PARAM = OpenApiParameter('userEmail', str, description="Email of the acting user")


def _user_email(request):
    email = request.query_params.get('userEmail')
    if not email and isinstance(request.data, dict):
        email = request.data.get('userEmail')
    return email


def _acting_user(request):
    """Resolve the acting user; 401 without an email, 404 for an unknown one."""
    return shopcore.resolve_user(_user_email(request))


def _positive_amount(raw, name: str, message: str):
    amount = parse_decimal_param(raw, name)
    if amount is None or amount <= 0:
        raise ValidationException(message, field=name)
    return amount


# === Addresses ===

class AddressListView(APIView):
    """
    List or create addresses for the acting user.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[
            USER_EMAIL_PARAM,
            OpenApiParameter('type', str, enum=['shipping', 'billing', 'both', 'all']),
        ],
        responses={200: AddressSerializer(many=True)},
        description="Active addresses, default first then newest first"
    )
    def get(self, request):
        user = _acting_user(request)
        addresses = addressbook.list_addresses(user, request.query_params.get('type'))
        return Response(AddressSerializer(addresses, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        request=AddressWriteSerializer,
        responses={201: AddressSerializer},
        description="Create an address; the first one becomes the default",
        examples=[
            OpenApiExample(
                "New Address",
                value={
                    "userEmail": "ayse@example.com",
                    "type": "both",
                    "title": "Home",
                    "firstName": "Ayse",
                    "lastName": "Yilmaz",
                    "phone": "+90 532 123 4567",
                    "addressLine1": "Bagdat Caddesi 12",
                    "city": "Istanbul",
                    "state": "Kadikoy",
                    "postalCode": "34710",
                    "isDefault": True
                },
                request_only=True
            ),
        ]
    )
    def post(self, request):
        serializer = AddressWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = _acting_user(request)

        address = addressbook.create_address(user, serializer.validated_data)
        return Response(AddressSerializer(address).data, status=status.HTTP_201_CREATED)


class AddressDetailView(APIView):
    """
    Read, partially update or soft-delete one address.
    """
    permission_classes = [AllowAny]

    @extend_schema(parameters=[USER_EMAIL_PARAM], responses={200: AddressSerializer})
    def get(self, request, address_id):
        user = _acting_user(request)
        address = addressbook.get_address(user, address_id)
        return Response(AddressSerializer(address).data, status=status.HTTP_200_OK)

    @extend_schema(
        request=AddressWriteSerializer,
        responses={200: AddressSerializer},
        description="Partial update: omitted fields keep their value"
    )
    def put(self, request, address_id):
        serializer = AddressWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = _acting_user(request)

        address = addressbook.update_address(user, address_id, serializer.validated_data)
        return Response(AddressSerializer(address).data, status=status.HTTP_200_OK)

    patch = put

    @extend_schema(parameters=[USER_EMAIL_PARAM], description="Soft delete; the newest remaining address may become default")
    def delete(self, request, address_id):
        user = _acting_user(request)
        address = addressbook.soft_delete_address(user, address_id)
        return Response(
            {"message": "Address deleted successfully", "id": address.pk},
            status=status.HTTP_200_OK
        )


# === Shipping ===

class ShippingMethodListView(APIView):
    """
    Shipping methods available for an order, or catalog maintenance.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[
            OpenApiParameter('orderValue', float, required=True),
            OpenApiParameter('weight', float),
            OpenApiParameter('region', str),
        ],
        description="Active methods able to carry the order, cheapest first"
    )
    def get(self, request):
        params = request.query_params
        order_value = _positive_amount(params.get('orderValue'), 'orderValue', "Valid order value is required")
        weight = parse_decimal_param(params.get('weight'), 'weight')
        region = params.get('region') or None

        methods = get_available_shipping_methods(order_value, weight, region)
        logger.info(f"{len(methods)} shipping methods offered for order value {order_value}")

        return Response({
            "shipping_methods": methods,
            "order_value": order_value,
            "weight": weight if weight is not None else settings.STOREFRONT['DEFAULT_WEIGHT'],
            "region": region or settings.STOREFRONT['DEFAULT_REGION'],
        }, status=status.HTTP_200_OK)

    @extend_schema(
        request=ShippingMethodSerializer,
        responses={201: ShippingMethodSerializer},
        description="Create a shipping method, or send {\"action\": \"seed\"} to load the default catalog"
    )
    def post(self, request):
        if isinstance(request.data, dict) and request.data.get('action') == 'seed':
            methods = seed_shipping_methods()
            logger.info(f"Shipping catalog seeded with {len(methods)} methods")
            return Response(
                {"message": "Shipping methods seeded successfully", "count": len(methods)},
                status=status.HTTP_201_CREATED
            )

        serializer = ShippingMethodSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        method = serializer.save()
        logger.info(f"Shipping method {method.name} created")
        return Response(ShippingMethodSerializer(method).data, status=status.HTTP_201_CREATED)


class ShippingCalculateView(APIView):
    """
    Cost breakdown for one shipping method.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        request=ShippingCalculateSerializer,
        description="Price a single method and list the rules that applied",
        examples=[
            OpenApiExample(
                "Heavy parcel",
                value={"methodId": "6f1c2b1e-3c1d-4d7a-9a59-0b6f0a8f1e11", "orderValue": 250, "weight": 10},
                request_only=True
            ),
        ]
    )
    def post(self, request):
        serializer = ShippingCalculateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        method = get_or_not_found(ShippingMethod, data['method_id'], "Shipping method")
        breakdown = describe_shipping_cost(
            method, data['order_value'], data.get('weight'), data.get('region')
        )
        return Response(breakdown, status=status.HTTP_200_OK)


# === Payment ===

class PaymentMethodListView(APIView):
    """
    Payment methods accepting an order amount, or catalog maintenance.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[OpenApiParameter('orderAmount', float, required=True)],
        description="Active methods accepting the amount, popular first"
    )
    def get(self, request):
        order_amount = _positive_amount(
            request.query_params.get('orderAmount'), 'orderAmount', "Valid order amount is required"
        )
        methods = get_available_payment_methods(order_amount)
        return Response({
            "payment_methods": methods,
            "order_amount": order_amount,
        }, status=status.HTTP_200_OK)

    @extend_schema(
        request=PaymentMethodSerializer,
        responses={201: PaymentMethodSerializer},
        description="Create a payment method, or send {\"action\": \"seed\"} to load the default catalog"
    )
    def post(self, request):
        if isinstance(request.data, dict) and request.data.get('action') == 'seed':
            methods = seed_payment_methods()
            logger.info(f"Payment catalog seeded with {len(methods)} methods")
            return Response(
                {"message": "Payment methods seeded successfully", "count": len(methods)},
                status=status.HTTP_201_CREATED
            )

        serializer = PaymentMethodSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        method = serializer.save()
        logger.info(f"Payment method {method.name} created")
        return Response(PaymentMethodSerializer(method).data, status=status.HTTP_201_CREATED)


# === Products ===

class ProductListView(APIView):
    """
    Catalog search and product creation.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[
            OpenApiParameter('search', str),
            OpenApiParameter('category', str),
            OpenApiParameter('minPrice', float),
            OpenApiParameter('maxPrice', float),
            OpenApiParameter('sortBy', str, enum=list(shopcore.PRODUCT_SORTS)),
        ],
        responses={200: ProductSerializer(many=True)}
    )
    def get(self, request):
        params = request.query_params
        products = shopcore.search_products(
            search=params.get('search'),
            category=params.get('category'),
            min_price=parse_decimal_param(params.get('minPrice'), 'minPrice'),
            max_price=parse_decimal_param(params.get('maxPrice'), 'maxPrice'),
            sort_by=params.get('sortBy') or 'newest',
        )
        return Response(ProductSerializer(products, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(request=ProductSerializer, responses={201: ProductSerializer})
    def post(self, request):
        serializer = ProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = serializer.save()
        logger.info(f"Product {product.pk} created: {product.name}")
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


class ProductDetailView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(responses={200: ProductSerializer})
    def get(self, request, product_id):
        product = shopcore.get_product(product_id)
        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)


class ProductRatingView(APIView):
    """
    Average rating and per-star breakdown over approved reviews.
    """
    permission_classes = [AllowAny]

    @extend_schema(responses={200: ProductRatingSerializer})
    def get(self, request, product_id):
        product = shopcore.get_product(product_id)
        summary = Review.objects.product_rating(product.pk)
        return Response(ProductRatingSerializer(summary).data, status=status.HTTP_200_OK)


# === Reviews ===

class ReviewListView(APIView):
    """
    Paginated approved reviews, and review submission.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[
            OpenApiParameter('productId', str),
            OpenApiParameter('userId', str),
            OpenApiParameter('rating', int),
            OpenApiParameter('sort', str, enum=list(shopcore.REVIEW_SORTS)),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ]
    )
    def get(self, request):
        params = request.query_params
        rating = parse_int_param(params.get('rating'), None)
        result = shopcore.list_reviews(
            product_id=parse_uuid_param(params.get('productId'), 'productId'),
            user_id=parse_uuid_param(params.get('userId'), 'userId'),
            rating=rating,
            sort=params.get('sort') or 'newest',
            page=parse_int_param(params.get('page'), 1),
            limit=parse_int_param(params.get('limit'), settings.STOREFRONT['REVIEWS_PAGE_SIZE']),
        )
        return Response({
            "reviews": ReviewSerializer(result['reviews'], many=True).data,
            "pagination": result['pagination'],
        }, status=status.HTTP_200_OK)

    @extend_schema(
        request=ReviewCreateSerializer,
        responses={201: ReviewSerializer},
        examples=[
            OpenApiExample(
                "New Review",
                value={
                    "userEmail": "ayse@example.com",
                    "productId": "2d8e7f3a-5b4c-4f0e-8a1d-9c7b6e5f4a3b",
                    "rating": 5,
                    "title": "Great headphones",
                    "comment": "Comfortable and the battery lasts for days.",
                    "pros": ["Battery life"],
                    "cons": []
                },
                request_only=True
            ),
        ]
    )
    def post(self, request):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = _acting_user(request)

        review = shopcore.create_review(user, serializer.validated_data)
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)


class ReviewVoteView(APIView):
    """
    Helpful / not-helpful vote; repeating a vote withdraws it.
    """
    permission_classes = [AllowAny]

    @extend_schema(request=ReviewVoteSerializer, responses={200: ReviewVoteResultSerializer})
    def post(self, request, review_id):
        serializer = ReviewVoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = _acting_user(request)

        review = shopcore.vote_on_review(user, review_id, serializer.validated_data['vote'])
        return Response(ReviewVoteResultSerializer(review).data, status=status.HTTP_200_OK)


# === Cart ===

def _cart_response(cart: CartStore, code=status.HTTP_200_OK) -> Response:
    return Response(CartSerializer(cart.state.to_dict()).data, status=code)


def _cart_for(request) -> CartStore:
    user = _acting_user(request)
    return CartStore.for_user(user.pk)


class CartView(APIView):
    """
    The acting user's cart. DELETE empties it without closing it.
    """
    permission_classes = [AllowAny]

    @extend_schema(parameters=[USER_EMAIL_PARAM], responses={200: CartSerializer})
    def get(self, request):
        return _cart_response(_cart_for(request))

    @extend_schema(parameters=[USER_EMAIL_PARAM], responses={200: CartSerializer})
    def delete(self, request):
        cart = _cart_for(request)
        cart.dispatch(clear_cart())
        return _cart_response(cart)


class CartItemsView(APIView):
    """
    Add a product to the cart. Anonymous callers get a 401 carrying the
    sign-in URL to come back to.
    """
    permission_classes = [AllowAny]

    @extend_schema(request=CartAddSerializer, responses={200: CartSerializer})
    def post(self, request):
        serializer = CartAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        email = _user_email(request)
        require_authenticated(email, data['return_path'])
        user = shopcore.resolve_user(email)

        product = shopcore.get_product(data['product_id'])
        cart = CartStore.for_user(user.pk)
        cart.add(CartItem.from_product(product), data['return_path'])
        return _cart_response(cart)


class CartItemDetailView(APIView):
    """
    Set the quantity of a cart line (0 or less removes it), or remove it.
    """
    permission_classes = [AllowAny]

    @extend_schema(request=CartQuantitySerializer, responses={200: CartSerializer})
    def patch(self, request, product_id):
        serializer = CartQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart = _cart_for(request)
        cart.dispatch(update_quantity(product_id, serializer.validated_data['quantity']))
        return _cart_response(cart)

    @extend_schema(parameters=[USER_EMAIL_PARAM], responses={200: CartSerializer})
    def delete(self, request, product_id):
        cart = _cart_for(request)
        cart.dispatch(remove_item(product_id))
        return _cart_response(cart)


class CartToggleView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(parameters=[USER_EMAIL_PARAM], responses={200: CartSerializer})
    def post(self, request):
        cart = _cart_for(request)
        cart.dispatch(toggle_cart())
        return _cart_response(cart)


class CartOpenView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(request=CartOpenSerializer, responses={200: CartSerializer})
    def post(self, request):
        serializer = CartOpenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart = _cart_for(request)
        cart.dispatch(set_cart_open(serializer.validated_data['is_open']))
        return _cart_response(cart)


# === Checkout ===

class CheckoutView(APIView):
    """
    Current checkout wizard position and order totals.
    """
    permission_classes = [AllowAny]

    @extend_schema(parameters=[USER_EMAIL_PARAM])
    def get(self, request):
        service = CheckoutService(_acting_user(request))
        return Response(service.summary(), status=status.HTTP_200_OK)


class CheckoutActionView(APIView):
    """
    Base for the wizard's POST endpoints. Subclasses name a request
    serializer (optional) and implement perform().
    """
    permission_classes = [AllowAny]
    serializer_class = None
    success_status = status.HTTP_200_OK

    def perform(self, service: CheckoutService, data):
        raise NotImplementedError

    def post(self, request):
        data = {}
        if self.serializer_class is not None:
            serializer = self.serializer_class(data=request.data)
            serializer.is_valid(raise_exception=True)
            data = serializer.validated_data

        service = CheckoutService(_acting_user(request))
        return Response(self.perform(service, data), status=self.success_status)


class CheckoutStartView(CheckoutActionView):
    success_status = status.HTTP_201_CREATED

    @extend_schema(parameters=[USER_EMAIL_PARAM], description="Begin checkout; refused for an empty cart")
    def post(self, request):
        return super().post(request)

    def perform(self, service, data):
        return service.start()


class CheckoutAddressView(CheckoutActionView):
    serializer_class = CheckoutAddressSerializer

    @extend_schema(request=CheckoutAddressSerializer)
    def post(self, request):
        return super().post(request)

    def perform(self, service, data):
        return service.choose_address(data['address_id'])


class CheckoutShippingView(CheckoutActionView):
    serializer_class = CheckoutShippingSerializer

    @extend_schema(request=CheckoutShippingSerializer, description="Price a method for the cart and delivery city")
    def post(self, request):
        return super().post(request)

    def perform(self, service, data):
        return service.choose_shipping(data['method_id'], data.get('weight'))


class CheckoutPaymentView(CheckoutActionView):
    serializer_class = CheckoutPaymentSerializer

    @extend_schema(request=CheckoutPaymentSerializer, description="Price the fee for subtotal plus shipping")
    def post(self, request):
        return super().post(request)

    def perform(self, service, data):
        return service.choose_payment(data['method_id'])


class CheckoutNextView(CheckoutActionView):

    @extend_schema(parameters=[USER_EMAIL_PARAM], description="Advance one step once the current one is complete")
    def post(self, request):
        return super().post(request)

    def perform(self, service, data):
        return service.next()


class CheckoutBackView(CheckoutActionView):

    @extend_schema(parameters=[USER_EMAIL_PARAM], description="Go back one step")
    def post(self, request):
        return super().post(request)

    def perform(self, service, data):
        return service.back()


class CheckoutCompleteView(CheckoutActionView):

    @extend_schema(parameters=[USER_EMAIL_PARAM], description="Place the order: empties the cart, returns a confirmation")
    def post(self, request):
        return super().post(request)

    def perform(self, service, data):
        return service.complete()


# === Health ===

class HealthCheckView(APIView):
    """
    System health check endpoint.

    Returns the status of the API, database connectivity
    and the cart/checkout cache.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        responses={200: HealthCheckSerializer},
        description="Check system health status"
    )
    def get(self, request):
        """
        Check system health.
        """
        # Check database connectivity
        db_status = "healthy"
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            db_status = "unhealthy"

        # Check cache round trip
        cache_status = "healthy"
        try:
            cache = caches[settings.STOREFRONT.get('CART_CACHE_ALIAS', 'default')]
            cache.set('health:ping', 'pong', timeout=5)
            if cache.get('health:ping') != 'pong':
                cache_status = "unhealthy"
        except Exception as e:
            logger.error(f"Cache health check failed: {e}")
            cache_status = "unhealthy"

        healthy = db_status == "healthy" and cache_status == "healthy"
        response_data = {
            "status": "healthy" if healthy else "degraded",
            "version": "1.0.0",
            "database": db_status,
            "cache": cache_status,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        return Response(response_data, status=status.HTTP_200_OK)
