"""
Shared fixtures for the Storefront test suite.
"""
from decimal import Decimal

import pytest
from django.core.cache import caches
from rest_framework.test import APIClient

from apps.addressbook.services import create_address
from apps.shopcore.models import Product, User
from .factories import address_fields, make_payment_method, make_shipping_method


@pytest.fixture(autouse=True)
def clear_cache():
    """Cart and checkout state live in the cache; start every test empty."""
    caches['default'].clear()
    yield
    caches['default'].clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create(name="Ayse Yilmaz", email="ayse@example.com")


@pytest.fixture
def other_user(db):
    return User.objects.create(name="Mehmet Demir", email="mehmet@example.com")


@pytest.fixture
def product(db):
    return Product.objects.create(
        name="Wireless Headphones",
        description="Over-ear, noise cancelling",
        price=Decimal('100.00'),
        image="https://example.com/headphones.jpg",
        category="electronics",
        stock=20,
    )


@pytest.fixture
def cheap_product(db):
    return Product.objects.create(
        name="USB-C Cable",
        description="1m braided cable",
        price=Decimal('50.00'),
        image="https://example.com/cable.jpg",
        category="electronics",
        stock=100,
    )


@pytest.fixture
def address(user):
    return create_address(user, address_fields())


@pytest.fixture
def shipping_method(db):
    method = make_shipping_method()
    method.save()
    return method


@pytest.fixture
def card_method(db):
    method = make_payment_method(is_popular=True)
    method.save()
    return method
