"""
API URL Configuration
"""
from django.urls import path
from .views import (
    AddressDetailView,
    AddressListView,
    CartItemDetailView,
    CartItemsView,
    CartOpenView,
    CartToggleView,
    CartView,
    CheckoutAddressView,
    CheckoutBackView,
    CheckoutCompleteView,
    CheckoutNextView,
    CheckoutPaymentView,
    CheckoutShippingView,
    CheckoutStartView,
    CheckoutView,
    HealthCheckView,
    PaymentMethodListView,
    ProductDetailView,
    ProductListView,
    ProductRatingView,
    ReviewListView,
    ReviewVoteView,
    ShippingCalculateView,
    ShippingMethodListView,
)

app_name = 'api'

urlpatterns = [
    # Address book
    path('addresses/', AddressListView.as_view(), name='address-list'),
    path('addresses/<str:address_id>/', AddressDetailView.as_view(), name='address-detail'),

    # Shipping & payment catalogs
    path('shipping/', ShippingMethodListView.as_view(), name='shipping-list'),
    path('shipping/calculate/', ShippingCalculateView.as_view(), name='shipping-calculate'),
    path('payment/methods/', PaymentMethodListView.as_view(), name='payment-methods'),

    # Catalog & reviews
    path('products/', ProductListView.as_view(), name='product-list'),
    path('products/<str:product_id>/', ProductDetailView.as_view(), name='product-detail'),
    path('products/<str:product_id>/rating/', ProductRatingView.as_view(), name='product-rating'),
    path('reviews/', ReviewListView.as_view(), name='review-list'),
    path('reviews/<str:review_id>/vote/', ReviewVoteView.as_view(), name='review-vote'),

    # Cart
    path('cart/', CartView.as_view(), name='cart'),
    path('cart/items/', CartItemsView.as_view(), name='cart-items'),
    path('cart/items/<str:product_id>/', CartItemDetailView.as_view(), name='cart-item-detail'),
    path('cart/toggle/', CartToggleView.as_view(), name='cart-toggle'),
    path('cart/open/', CartOpenView.as_view(), name='cart-open'),

    # Checkout wizard
    path('checkout/', CheckoutView.as_view(), name='checkout'),
    path('checkout/start/', CheckoutStartView.as_view(), name='checkout-start'),
    path('checkout/address/', CheckoutAddressView.as_view(), name='checkout-address'),
    path('checkout/shipping/', CheckoutShippingView.as_view(), name='checkout-shipping'),
    path('checkout/payment/', CheckoutPaymentView.as_view(), name='checkout-payment'),
    path('checkout/next/', CheckoutNextView.as_view(), name='checkout-next'),
    path('checkout/back/', CheckoutBackView.as_view(), name='checkout-back'),
    path('checkout/complete/', CheckoutCompleteView.as_view(), name='checkout-complete'),

    # Health check
    path('health/', HealthCheckView.as_view(), name='health'),
]
