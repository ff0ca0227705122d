"""
Utility functions for the Storefront backend
"""
import uuid
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import RegexValidator

from .exceptions import NotFoundError, ValidationException

CENT = Decimal('0.01')
TENTH = Decimal('0.1')

phone_validator = RegexValidator(
    regex=r'^[0-9+\-\s()]{10,15}$',
    message='Invalid phone number format',
)

postal_code_validator = RegexValidator(
    regex=r'^[0-9]{5}$',
    message='Postal code must be 5 digits',
)

image_url_validator = RegexValidator(
    regex=r'(?i)^https?://.+\.(jpg|jpeg|png|gif|webp)$',
    message='Invalid image URL',
)

cutoff_time_validator = RegexValidator(
    regex=r'^([01][0-9]|2[0-3]):[0-5][0-9]$',
    message='Cutoff time must be HH:MM',
)


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    Convert numbers coming from JSON documents or query strings to Decimal.
    Floats go through str() so 29.99 stays 29.99.
    """
    if value is None or value == '':
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def round_money(value: Any) -> Decimal:
    """Round half-up at the cent."""
    return to_decimal(value, Decimal('0')).quantize(CENT, rounding=ROUND_HALF_UP)


def round_rating(value: Any) -> Decimal:
    """Round an average rating half-up to one decimal place."""
    return to_decimal(value, Decimal('0')).quantize(TENTH, rounding=ROUND_HALF_UP)


def parse_decimal_param(raw: Optional[str], name: str, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    Parse a numeric query/body parameter, raising a validation error
    when something was supplied but is not a number.
    """
    if raw is None or raw == '':
        return default
    value = to_decimal(raw)
    if value is None or not value.is_finite():
        raise ValidationException(f"Invalid {name}", field=name)
    return value


def parse_int_param(raw: Optional[str], default: int) -> int:
    """Parse a paging-style integer, falling back to the default on junk input."""
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def parse_uuid_param(raw: Optional[str], name: str) -> Optional[uuid.UUID]:
    """Parse an id filter; anything that is not a UUID is a validation error."""
    if raw is None or raw == '':
        return None
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise ValidationException(f"Invalid {name}", field=name)


def get_or_not_found(model, pk, resource: str):
    """Fetch a row by primary key, turning a missing or malformed id into NotFoundError."""
    try:
        return model.objects.get(pk=pk)
    except (model.DoesNotExist, DjangoValidationError, ValueError, TypeError):
        raise NotFoundError(resource, str(pk))


def format_delivery_date(value: date) -> str:
    """Long human-readable date, e.g. 'Monday, March 3, 2025'."""
    return f"{value.strftime('%A')}, {value.strftime('%B')} {value.day}, {value.year}"

