"""
Payment processing fee rules
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from apps.core.utils import round_money, to_decimal

logger = logging.getLogger(__name__)


def calculate_payment_fee(method, order_amount) -> Decimal:
    """
    Flat fee plus a percentage of the order amount, rounded half-up to the
    cent. Inactive methods cost nothing. A negative percentage yields a
    discount, so the result can be below zero.
    """
    if not method.is_active:
        return round_money(0)

    order_amount = to_decimal(order_amount, Decimal('0'))
    fee = to_decimal(method.processing_fee, Decimal('0'))

    percent = to_decimal(method.processing_fee_percent, Decimal('0'))
    if percent:
        fee += order_amount * percent / Decimal('100')

    return round_money(fee)


def is_available_for_amount(method, amount) -> bool:
    if not method.is_active:
        return False

    amount = to_decimal(amount, Decimal('0'))

    minimum = to_decimal(method.min_amount)
    if minimum and amount < minimum:
        return False

    maximum = to_decimal(method.max_amount)
    if maximum and amount > maximum:
        return False

    return True


def quote_method(method, order_amount) -> Dict[str, Any]:
    """Offer entry for one payment method, as listed to the shopper."""
    return {
        "id": method.pk,
        "name": method.name,
        "description": method.description,
        "type": method.type,
        "icon": method.icon,
        "color": method.color,
        "is_popular": method.is_popular,
        "processing_fee": calculate_payment_fee(method, order_amount),
        "features": method.features,
        "restrictions": method.restrictions,
        "processing_time": method.processing_time,
        "security_level": method.security_level,
        "supported_cards": method.supported_cards,
    }


def get_available_payment_methods(order_amount, methods: Optional[Iterable] = None) -> List[Dict[str, Any]]:
    """
    Active methods accepting the order amount, popular ones first, then by name.
    """
    if methods is None:
        from .models import PaymentMethod
        methods = PaymentMethod.objects.active().order_by('-is_popular', 'name')

    offers = [
        quote_method(method, order_amount)
        for method in methods
        if is_available_for_amount(method, order_amount)
    ]
    logger.debug(f"{len(offers)} payment methods available for {order_amount}")
    return offers
