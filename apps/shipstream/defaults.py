"""
Default shipping catalog used to seed an empty store.
"""
from decimal import Decimal

from django.db import transaction

from .models import ShippingMethod

WEEKDAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday']

DEFAULT_SHIPPING_METHODS = [
    {
        "name": "Standard Delivery",
        "description": "Free shipping on orders of 300 TL and above. Regular delivery time.",
        "type": "standard",
        "base_price": Decimal('29.99'),
        "free_shipping_threshold": Decimal('300'),
        "estimated_days_min": 3,
        "estimated_days_max": 7,
        "icon": "📦",
        "color": "#10b981",
        "features": [
            "Free shipping over 300 TL",
            "Secure packaging",
            "SMS notifications",
        ],
        "regional_pricing": [
            {"region": "Istanbul", "cities": ["Istanbul", "Ankara", "Izmir"],
             "price_multiplier": 1, "additional_days": 0},
            {"region": "Anadolu", "cities": ["Konya", "Kayseri", "Sivas", "Erzurum"],
             "price_multiplier": 1.2, "additional_days": 1},
        ],
        "weight_rules": [
            {"max_weight": 5, "additional_price": 0},
            {"max_weight": 15, "additional_price": 15},
            {"max_weight": 30, "additional_price": 35},
        ],
        "cutoff_time": "15:00",
        "available_days": WEEKDAYS,
    },
    {
        "name": "Fast Delivery",
        "description": "Arrives faster, at your door within 1-3 business days.",
        "type": "fast",
        "base_price": Decimal('49.99'),
        "free_shipping_threshold": Decimal('500'),
        "estimated_days_min": 1,
        "estimated_days_max": 3,
        "icon": "⚡",
        "color": "#f59e0b",
        "is_popular": True,
        "features": [
            "Priority handling",
            "Fast courier",
            "Live tracking",
            "Free over 500 TL",
        ],
        "regional_pricing": [
            {"region": "Istanbul", "cities": ["Istanbul", "Ankara", "Izmir"],
             "price_multiplier": 1, "additional_days": 0},
            {"region": "Anadolu", "cities": ["Konya", "Kayseri", "Sivas"],
             "price_multiplier": 1.3, "additional_days": 1},
        ],
        "weight_rules": [
            {"max_weight": 5, "additional_price": 0},
            {"max_weight": 15, "additional_price": 20},
            {"max_weight": 30, "additional_price": 45},
        ],
        "cutoff_time": "14:00",
        "available_days": WEEKDAYS,
    },
    {
        "name": "Express Delivery",
        "description": "Super fast, at your door the next day.",
        "type": "express",
        "base_price": Decimal('79.99'),
        "free_shipping_threshold": Decimal('1000'),
        "estimated_days_min": 1,
        "estimated_days_max": 1,
        "icon": "🚀",
        "color": "#ef4444",
        "features": [
            "Next-day delivery",
            "Same-day dispatch",
            "Priority handling",
            "Free over 1000 TL",
        ],
        "restrictions": [
            "Istanbul, Ankara and Izmir only",
            "Order before 12:00 on weekdays",
        ],
        "regional_pricing": [
            {"region": "Istanbul", "cities": ["Istanbul", "Ankara", "Izmir"],
             "price_multiplier": 1, "additional_days": 0},
        ],
        "weight_rules": [
            {"max_weight": 5, "additional_price": 0},
            {"max_weight": 15, "additional_price": 25},
        ],
        "cutoff_time": "12:00",
        "max_order_value": Decimal('5000'),
        "available_days": WEEKDAYS,
    },
    {
        "name": "Same-Day Delivery",
        "description": "Order today, have it today. Selected areas only.",
        "type": "same-day",
        "base_price": Decimal('119.99'),
        "free_shipping_threshold": Decimal('2000'),
        "estimated_days_min": 0,
        "estimated_days_max": 0,
        "icon": "⚡",
        "color": "#8b5cf6",
        "features": [
            "Same-day delivery",
            "At your door within 4 hours",
            "Dedicated courier",
            "Live tracking",
        ],
        "restrictions": [
            "Istanbul European side only",
            "Orders between 09:00 and 15:00",
            "Maximum 2 kg",
        ],
        "regional_pricing": [
            {"region": "Istanbul", "cities": ["Istanbul"],
             "price_multiplier": 1, "additional_days": 0},
        ],
        "weight_rules": [
            {"max_weight": 2, "additional_price": 0},
        ],
        "cutoff_time": "15:00",
        "max_order_value": Decimal('3000'),
        "available_days": WEEKDAYS + ['saturday'],
    },
]


def seed_shipping_methods():
    """Replace the whole shipping catalog with the defaults."""
    with transaction.atomic():
        ShippingMethod.objects.all().delete()
        return ShippingMethod.objects.bulk_create(
            [ShippingMethod(**fields) for fields in DEFAULT_SHIPPING_METHODS]
        )
