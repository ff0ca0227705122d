"""
Payment processing fees and amount limits.
"""
from decimal import Decimal

import pytest

from apps.payguard.defaults import seed_payment_methods
from apps.payguard.fees import calculate_payment_fee, get_available_payment_methods, is_available_for_amount
from .factories import make_payment_method


class TestCalculatePaymentFee:

    def test_percentage_fee(self):
        method = make_payment_method(processing_fee_percent=Decimal('2.5'))
        assert calculate_payment_fee(method, Decimal('1000')) == Decimal('25.00')

    def test_flat_fee(self):
        method = make_payment_method(processing_fee=Decimal('5.00'), processing_fee_percent=Decimal('0'))
        assert calculate_payment_fee(method, Decimal('750')) == Decimal('5.00')

    def test_flat_plus_percentage(self):
        method = make_payment_method(processing_fee=Decimal('1.00'), processing_fee_percent=Decimal('1.5'))
        assert calculate_payment_fee(method, Decimal('200')) == Decimal('4.00')

    def test_negative_percentage_is_a_discount(self):
        method = make_payment_method(processing_fee_percent=Decimal('-3'))
        assert calculate_payment_fee(method, Decimal('1000')) == Decimal('-30.00')

    def test_rounds_half_up_to_the_cent(self):
        method = make_payment_method(processing_fee_percent=Decimal('2.5'))
        # 0.025 rounds up, not to even
        assert calculate_payment_fee(method, Decimal('1.00')) == Decimal('0.03')

    def test_inactive_method_costs_nothing(self):
        method = make_payment_method(is_active=False, processing_fee=Decimal('5.00'))
        assert calculate_payment_fee(method, Decimal('1000')) == Decimal('0.00')


class TestIsAvailableForAmount:

    def test_within_limits(self):
        method = make_payment_method(min_amount=Decimal('100'), max_amount=Decimal('2000'))
        assert is_available_for_amount(method, Decimal('100'))
        assert is_available_for_amount(method, Decimal('2000'))

    def test_below_minimum(self):
        method = make_payment_method(min_amount=Decimal('100'))
        assert not is_available_for_amount(method, Decimal('99.99'))

    def test_above_maximum(self):
        method = make_payment_method(max_amount=Decimal('2000'))
        assert not is_available_for_amount(method, Decimal('2000.01'))

    def test_no_maximum_means_unbounded(self):
        method = make_payment_method(max_amount=None)
        assert is_available_for_amount(method, Decimal('1000000'))

    def test_inactive_never_available(self):
        assert not is_available_for_amount(make_payment_method(is_active=False), Decimal('50'))


@pytest.mark.django_db
class TestAvailablePaymentMethods:

    def test_default_catalog_small_order(self):
        seed_payment_methods()
        offers = get_available_payment_methods(Decimal('50'))

        # Bank transfer needs 100 TL; popular methods come first
        assert [offer['type'] for offer in offers] == ['cash-on-delivery', 'credit-card', 'digital-wallet']

    def test_default_catalog_large_order(self):
        seed_payment_methods()
        offers = {offer['type']: offer for offer in get_available_payment_methods(Decimal('2500'))}

        assert 'cash-on-delivery' not in offers
        assert offers['bank-transfer']['processing_fee'] == Decimal('-75.00')
        assert offers['credit-card']['processing_fee'] == Decimal('62.50')
