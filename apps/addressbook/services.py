"""
Address directory service

Writes for one user are serialized by locking that user's row for the
duration of the transaction, so two concurrent "make default" requests
cannot both leave a default behind. On databases without row locks
(SQLite) the transaction still serializes writers; the outcome is
last-writer-wins.
"""
import logging
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from apps.core.exceptions import NotFoundError, ValidationException
from apps.shopcore.models import User
from .models import Address

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = [
    'type', 'title', 'first_name', 'last_name', 'company', 'phone',
    'address_line1', 'address_line2', 'city', 'state', 'postal_code', 'country',
]


def _lock_user(user: User) -> User:
    return User.objects.select_for_update().get(pk=user.pk)


def _clean(address: Address):
    """Run model-level validation and surface the first problem as a 400."""
    try:
        address.full_clean(exclude=['user'])
    except DjangoValidationError as e:
        field, messages = next(iter(e.message_dict.items()))
        message = messages[0] if field == '__all__' else f"{field}: {messages[0]}"
        raise ValidationException(message, field=field)


def _apply(address: Address, fields: Dict[str, Any]):
    for name in EDITABLE_FIELDS:
        if name not in fields or fields[name] is None:
            continue
        value = fields[name]
        setattr(address, name, value.strip() if isinstance(value, str) else value)


def list_addresses(user: User, address_type: Optional[str] = None):
    """Active addresses, default first, newest first."""
    return (
        Address.objects.active()
        .filter(user=user)
        .for_type(address_type)
        .order_by('-is_default', '-created_at')
    )


def get_address(user: User, address_id) -> Address:
    try:
        return Address.objects.active().get(pk=address_id, user=user)
    except (Address.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Address", str(address_id))


def create_address(user: User, fields: Dict[str, Any]) -> Address:
    """
    Create an address. The user's first active address always becomes the
    default, whatever was requested.
    """
    with transaction.atomic():
        _lock_user(user)

        has_active = Address.objects.active().filter(user=user).exists()

        address = Address(user=user)
        _apply(address, fields)
        address.is_default = bool(fields.get('is_default')) or not has_active
        _clean(address)
        address.save()

    logger.info(f"Address {address.pk} created for user {user.pk} (default={address.is_default})")
    return address


def update_address(user: User, address_id, fields: Dict[str, Any]) -> Address:
    """
    Partial update: fields left out keep their previous value.
    """
    with transaction.atomic():
        _lock_user(user)

        address = get_address(user, address_id)
        _apply(address, fields)
        if fields.get('is_default') is not None:
            address.is_default = bool(fields['is_default'])
        _clean(address)
        address.save()

    logger.info(f"Address {address.pk} updated for user {user.pk} (default={address.is_default})")
    return address


def soft_delete_address(user: User, address_id) -> Address:
    """
    Mark an address inactive. If it was the default, the newest remaining
    active address takes over as default.
    """
    with transaction.atomic():
        _lock_user(user)

        address = get_address(user, address_id)
        was_default = address.is_default

        address.is_active = False
        address.is_default = False
        address.save(update_fields=['is_active', 'is_default', 'updated_at'])

        promoted = None
        if was_default:
            promoted = (
                Address.objects.active()
                .filter(user=user)
                .order_by('-created_at')
                .first()
            )
            if promoted:
                promoted.is_default = True
                promoted.save(update_fields=['is_default', 'updated_at'])

    if promoted:
        logger.info(f"Address {address.pk} deleted; {promoted.pk} promoted to default for user {user.pk}")
    else:
        logger.info(f"Address {address.pk} deleted for user {user.pk}")
    return address
