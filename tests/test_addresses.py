"""
Address directory: validation, default uniqueness and soft delete.
"""
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.addressbook.models import Address
from apps.addressbook.services import (
    create_address,
    get_address,
    list_addresses,
    soft_delete_address,
    update_address,
)
from apps.core.exceptions import NotFoundError, ValidationException
from .factories import address_fields

pytestmark = pytest.mark.django_db


def defaults_for(user):
    return list(Address.objects.active().filter(user=user, is_default=True))


def age(address, minutes):
    """Backdate an address so creation order is unambiguous."""
    Address.objects.filter(pk=address.pk).update(created_at=timezone.now() - timedelta(minutes=minutes))


class TestCreateAddress:

    def test_first_address_is_forced_default(self, user):
        address = create_address(user, address_fields(is_default=False))
        assert address.is_default is True

    def test_second_address_not_default_unless_asked(self, user, address):
        second = create_address(user, address_fields(title='Work'))
        assert second.is_default is False
        assert defaults_for(user) == [address]

    def test_new_default_replaces_old(self, user, address):
        second = create_address(user, address_fields(title='Work', is_default=True))
        address.refresh_from_db()

        assert address.is_default is False
        assert defaults_for(user) == [second]

    def test_separate_scopes_keep_their_own_defaults(self, user):
        shipping = create_address(user, address_fields(type='shipping'))
        billing = create_address(user, address_fields(type='billing', title='Office', is_default=True))

        assert {a.pk for a in defaults_for(user)} == {shipping.pk, billing.pk}

    def test_both_default_clears_every_scope(self, user):
        create_address(user, address_fields(type='shipping'))
        create_address(user, address_fields(type='billing', is_default=True))
        both = create_address(user, address_fields(type='both', title='Main', is_default=True))

        assert defaults_for(user) == [both]

    def test_other_users_defaults_untouched(self, user, other_user, address):
        create_address(other_user, address_fields(is_default=True))
        address.refresh_from_db()
        assert address.is_default is True

    def test_country_defaults_to_turkey(self, address):
        assert address.country == 'Turkey'
        assert address.full_name == 'Ayse Yilmaz'
        assert address.formatted_address == 'Bagdat Caddesi 12, Istanbul, Kadikoy, 34710, Turkey'

    @pytest.mark.parametrize('field,value', [
        ('postal_code', '3471'),
        ('postal_code', '34a10'),
        ('phone', '12345'),
        ('phone', '0532-123-4567-890'),
        ('phone', '0532 123 45x7'),
        ('title', ''),
        ('city', ''),
    ])
    def test_invalid_fields_rejected(self, user, field, value):
        with pytest.raises(ValidationException) as exc:
            create_address(user, address_fields(**{field: value}))
        assert exc.value.field == field
        assert not Address.objects.filter(user=user).exists()


class TestUpdateAddress:

    def test_partial_update_keeps_other_fields(self, user, address):
        updated = update_address(user, address.pk, {'city': 'Ankara'})
        assert updated.city == 'Ankara'
        assert updated.postal_code == '34710'
        assert updated.is_default is True

    def test_update_validates_provided_fields(self, user, address):
        with pytest.raises(ValidationException):
            update_address(user, address.pk, {'postal_code': '123'})
        address.refresh_from_db()
        assert address.postal_code == '34710'

    def test_setting_default_leaves_exactly_one(self, user, address):
        second = create_address(user, address_fields(title='Work'))
        update_address(user, second.pk, {'is_default': True})
        assert defaults_for(user) == [second]

    def test_other_users_address_not_found(self, other_user, address):
        with pytest.raises(NotFoundError):
            update_address(other_user, address.pk, {'city': 'Ankara'})


class TestSoftDelete:

    def test_deleting_default_promotes_newest_remaining(self, user, address):
        older = create_address(user, address_fields(title='Work'))
        newer = create_address(user, address_fields(title='Parents'))
        age(address, 30)
        age(older, 20)
        age(newer, 10)

        soft_delete_address(user, address.pk)

        address.refresh_from_db()
        newer.refresh_from_db()
        older.refresh_from_db()
        assert address.is_active is False and address.is_default is False
        assert newer.is_default is True
        assert older.is_default is False

    def test_deleting_non_default_keeps_default(self, user, address):
        other = create_address(user, address_fields(title='Work'))
        soft_delete_address(user, other.pk)
        assert defaults_for(user) == [address]

    def test_deleting_only_address(self, user, address):
        soft_delete_address(user, address.pk)
        assert defaults_for(user) == []
        assert list(list_addresses(user)) == []

    def test_deleted_address_is_not_found(self, user, address):
        soft_delete_address(user, address.pk)
        with pytest.raises(NotFoundError):
            soft_delete_address(user, address.pk)
        with pytest.raises(NotFoundError):
            get_address(user, address.pk)

    def test_unknown_id_not_found(self, user):
        with pytest.raises(NotFoundError):
            soft_delete_address(user, 'not-a-uuid')


class TestListAddresses:

    def test_default_first_then_newest(self, user, address):
        older = create_address(user, address_fields(title='Work'))
        newer = create_address(user, address_fields(title='Parents'))
        age(address, 30)
        age(older, 20)
        age(newer, 10)

        assert list(list_addresses(user)) == [address, newer, older]

    def test_type_filter_includes_both(self, user, address):
        billing = create_address(user, address_fields(type='billing', title='Office'))
        shipping_only = list(list_addresses(user, 'shipping'))

        assert address in shipping_only
        assert billing not in shipping_only
        assert len(list(list_addresses(user, 'all'))) == 2
