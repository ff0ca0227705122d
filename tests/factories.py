"""
Builders for unsaved model instances and request payloads.
"""
from decimal import Decimal

from apps.payguard.models import PaymentMethod
from apps.shipstream.models import ShippingMethod


def address_fields(**overrides):
    fields = {
        'type': 'both',
        'title': 'Home',
        'first_name': 'Ayse',
        'last_name': 'Yilmaz',
        'phone': '0532 123 4567',
        'address_line1': 'Bagdat Caddesi 12',
        'city': 'Istanbul',
        'state': 'Kadikoy',
        'postal_code': '34710',
    }
    fields.update(overrides)
    return fields


def make_shipping_method(**overrides):
    """Unsaved standard method matching the documented pricing example."""
    fields = {
        'name': 'Standard Delivery',
        'description': 'Regular delivery',
        'type': 'standard',
        'base_price': Decimal('29.99'),
        'free_shipping_threshold': Decimal('300'),
        'estimated_days_min': 3,
        'estimated_days_max': 7,
        'weight_rules': [
            {'max_weight': 5, 'additional_price': 0},
            {'max_weight': 15, 'additional_price': 15},
        ],
        'regional_pricing': [],
        'available_days': [],
        'cutoff_time': '15:00',
    }
    fields.update(overrides)
    return ShippingMethod(**fields)


def make_payment_method(**overrides):
    fields = {
        'name': 'Credit/Debit Card',
        'description': 'Pay by card',
        'type': 'credit-card',
        'processing_fee': Decimal('0'),
        'processing_fee_percent': Decimal('2.5'),
    }
    fields.update(overrides)
    return PaymentMethod(**fields)
