"""
Shipping pricing rules

Pure functions over a shipping method's static rule set:
1. Order value bounds and the free-shipping threshold
2. Regional price multipliers and extra delivery days
3. Weight tiers
4. Delivery date estimation with the order cutoff time

The functions only read attributes, so unsaved ShippingMethod instances
work as well as rows loaded from the database.
"""
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.utils import timezone

from apps.core.exceptions import InactiveMethodError, OrderValueOutOfRangeError, PricingException
from apps.core.utils import format_delivery_date, round_money, to_decimal

logger = logging.getLogger(__name__)


def default_region() -> str:
    return settings.STOREFRONT.get('DEFAULT_REGION', 'Istanbul')


def default_weight() -> Decimal:
    return to_decimal(settings.STOREFRONT.get('DEFAULT_WEIGHT', 1))


def find_regional_rule(method, region: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    First regional rule whose region name or one of whose cities equals
    the given region, ignoring case.
    """
    if not region:
        return None
    wanted = region.strip().lower()
    for rule in method.regional_pricing or []:
        if str(rule.get('region', '')).strip().lower() == wanted:
            return rule
        if any(str(city).strip().lower() == wanted for city in rule.get('cities', [])):
            return rule
    return None


def find_weight_rule(method, weight) -> Optional[Dict[str, Any]]:
    """Weight tier with the smallest max weight that still covers the parcel."""
    weight = to_decimal(weight, default_weight())
    tiers = sorted(method.weight_rules or [], key=lambda rule: to_decimal(rule.get('max_weight'), Decimal('0')))
    for rule in tiers:
        if weight <= to_decimal(rule.get('max_weight'), Decimal('0')):
            return rule
    return None


def check_order_value(method, order_value: Decimal):
    if not method.is_active:
        raise InactiveMethodError(method.name)

    minimum = to_decimal(method.min_order_value)
    if minimum and order_value < minimum:
        raise OrderValueOutOfRangeError(f"Minimum order value is {minimum} TL", bound=minimum)

    maximum = to_decimal(method.max_order_value)
    if maximum and order_value > maximum:
        raise OrderValueOutOfRangeError(f"Maximum order value is {maximum} TL", bound=maximum)


def qualifies_for_free_shipping(method, order_value: Decimal) -> bool:
    threshold = to_decimal(method.free_shipping_threshold, Decimal('0'))
    return threshold > 0 and order_value >= threshold


def calculate_shipping_cost(method, order_value, weight=None, region=None) -> Decimal:
    """
    Cost of shipping an order with the given method.

    Raises InactiveMethodError or OrderValueOutOfRangeError when the
    method cannot carry the order at all.
    """
    order_value = to_decimal(order_value, Decimal('0'))
    weight = to_decimal(weight, default_weight())
    region = region or default_region()

    check_order_value(method, order_value)

    if qualifies_for_free_shipping(method, order_value):
        return round_money(0)

    cost = to_decimal(method.base_price, Decimal('0'))

    regional_rule = find_regional_rule(method, region)
    if regional_rule:
        cost *= to_decimal(regional_rule.get('price_multiplier'), Decimal('1'))

    weight_rule = find_weight_rule(method, weight)
    if weight_rule:
        cost += to_decimal(weight_rule.get('additional_price'), Decimal('0'))

    return round_money(cost)


def _parse_cutoff(cutoff_time: str):
    hours, minutes = (cutoff_time or '15:00').split(':')
    return int(hours), int(minutes)


def get_estimated_delivery(method, region=None, now=None) -> Dict[str, Any]:
    """
    Estimated delivery date for an order placed now.

    Starts from the method's maximum transit days, adds the region's extra
    days, and one more day when the cutoff time has passed or the method
    declares available days.
    """
    region = region or default_region()
    now = timezone.localtime(now or timezone.now())

    days = int(method.estimated_days_max)

    regional_rule = find_regional_rule(method, region)
    if regional_rule:
        days += int(regional_rule.get('additional_days', 0) or 0)

    hours, minutes = _parse_cutoff(method.cutoff_time)
    cutoff = now.replace(hour=hours, minute=minutes, second=0, microsecond=0)

    # Any available_days list adds the day, whether or not today is listed
    if now > cutoff or method.available_days:
        days += 1

    delivery_date = now.date() + timedelta(days=days)

    return {
        "date": delivery_date,
        "formatted": format_delivery_date(delivery_date),
        "business_days": days,
    }


def describe_shipping_cost(method, order_value, weight=None, region=None, now=None) -> Dict[str, Any]:
    """
    Single-method quote with the list of rules that shaped the price.
    """
    order_value = to_decimal(order_value, Decimal('0'))
    weight = to_decimal(weight, default_weight())
    region = region or default_region()

    cost = calculate_shipping_cost(method, order_value, weight, region)
    base_price = round_money(method.base_price)
    applied_rules = []

    if cost == 0 and to_decimal(method.free_shipping_threshold, Decimal('0')) > 0:
        applied_rules.append({
            "type": "free_shipping",
            "description": f"Free shipping for orders over {method.free_shipping_threshold} TL",
            "discount": base_price,
        })

    regional_rule = find_regional_rule(method, region)
    multiplier = to_decimal(regional_rule.get('price_multiplier'), Decimal('1')) if regional_rule else None
    if multiplier is not None and multiplier != 1:
        applied_rules.append({
            "type": "regional_pricing",
            "description": f"Regional pricing for {region}",
            "multiplier": multiplier,
        })

    weight_rule = find_weight_rule(method, weight)
    surcharge = to_decimal(weight_rule.get('additional_price'), Decimal('0')) if weight_rule else Decimal('0')
    if surcharge > 0:
        applied_rules.append({
            "type": "weight_surcharge",
            "description": f"Additional charge for {weight}kg",
            "surcharge": round_money(surcharge),
        })

    return {
        "method_id": method.pk,
        "name": method.name,
        "type": method.type,
        "cost": cost,
        "original_price": base_price,
        "is_free": cost == 0,
        "savings": base_price if cost == 0 else round_money(0),
        "estimated_delivery": get_estimated_delivery(method, region, now=now),
        "calculation": {
            "order_value": order_value,
            "weight": weight,
            "region": region,
            "base_price": base_price,
            "free_shipping_threshold": round_money(method.free_shipping_threshold),
            "applied_rules": applied_rules,
        },
    }


def quote_method(method, order_value, weight=None, region=None, now=None) -> Dict[str, Any]:
    """Offer entry for one method, as listed to the shopper."""
    cost = calculate_shipping_cost(method, order_value, weight, region)
    base_price = round_money(method.base_price)
    return {
        "id": method.pk,
        "name": method.name,
        "description": method.description,
        "type": method.type,
        "cost": cost,
        "original_price": base_price,
        "is_free": cost == 0,
        "estimated_delivery": get_estimated_delivery(method, region, now=now),
        "icon": method.icon,
        "color": method.color,
        "is_popular": method.is_popular,
        "features": method.features,
        "savings": base_price if cost == 0 else round_money(0),
    }


def get_available_shipping_methods(
    order_value,
    weight=None,
    region=None,
    methods: Optional[Iterable] = None,
    now=None,
) -> List[Dict[str, Any]]:
    """
    Active methods able to carry the order, cheapest base price first.

    A method whose pricing fails for this order is left out of the list
    rather than reported as an error.
    """
    if methods is None:
        from .models import ShippingMethod
        methods = ShippingMethod.objects.active().order_by('base_price', 'name')

    offers = []
    for method in methods:
        if not method.is_active:
            continue
        try:
            offers.append(quote_method(method, order_value, weight, region, now=now))
        except PricingException as e:
            logger.debug(f"Shipping method {method.name} not offered: {e.message}")
        except (ValueError, TypeError) as e:
            logger.warning(f"Shipping method {method.name} has unusable rules: {e}")
    return offers
