"""
Default payment catalog used to seed an empty store.
"""
from decimal import Decimal

from django.db import transaction

from .models import PaymentMethod

DEFAULT_PAYMENT_METHODS = [
    {
        "name": "Credit/Debit Card",
        "description": "Pay securely with Visa, Mastercard or Troy. Protected by 3D Secure.",
        "type": "credit-card",
        "icon": "💳",
        "color": "#3b82f6",
        "is_popular": True,
        "processing_fee": Decimal('0'),
        "processing_fee_percent": Decimal('2.5'),
        "supported_cards": ["visa", "mastercard", "troy", "american-express"],
        "features": [
            "3D Secure",
            "Instant approval",
            "All cards accepted",
            "Installment options",
        ],
        "processing_time": "Instant",
        "security_level": "high",
    },
    {
        "name": "Cash on Delivery",
        "description": "Pay in cash or by card when your order arrives.",
        "type": "cash-on-delivery",
        "icon": "💵",
        "color": "#10b981",
        "is_popular": True,
        "processing_fee": Decimal('5.00'),
        "processing_fee_percent": Decimal('0'),
        "max_amount": Decimal('2000'),
        "features": [
            "Cash or card",
            "See it before you pay",
            "No risk",
            "Easy returns",
        ],
        "restrictions": [
            "Maximum 2000 TL",
            "Not available for same-day delivery",
        ],
        "processing_time": "On delivery",
        "security_level": "medium",
    },
    {
        "name": "Bank Transfer",
        "description": "Pay by wire transfer and get a 3% discount.",
        "type": "bank-transfer",
        "icon": "🏦",
        "color": "#8b5cf6",
        "processing_fee": Decimal('0'),
        "processing_fee_percent": Decimal('-3'),
        "min_amount": Decimal('100'),
        "features": [
            "3% discount",
            "No commission",
            "Secure transfer",
            "All banks",
        ],
        "restrictions": [
            "Minimum 100 TL",
            "24-48 hours for approval",
        ],
        "processing_time": "24-48 hours",
        "security_level": "high",
    },
    {
        "name": "Digital Wallet",
        "description": "Fast checkout with PayPal, Apple Pay or Google Pay.",
        "type": "digital-wallet",
        "icon": "📱",
        "color": "#f59e0b",
        "processing_fee": Decimal('0'),
        "processing_fee_percent": Decimal('1.5'),
        "features": [
            "One-tap payment",
            "Biometric security",
            "Accepted internationally",
            "Instant approval",
        ],
        "processing_time": "Instant",
        "security_level": "high",
    },
]


def seed_payment_methods():
    """Replace the whole payment catalog with the defaults."""
    with transaction.atomic():
        PaymentMethod.objects.all().delete()
        return PaymentMethod.objects.bulk_create(
            [PaymentMethod(**fields) for fields in DEFAULT_PAYMENT_METHODS]
        )
