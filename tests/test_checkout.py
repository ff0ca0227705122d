"""
Checkout wizard: step gates, navigation and the orchestrated flow.
"""
from decimal import Decimal

import pytest

from apps.addressbook.services import create_address, soft_delete_address
from apps.checkout.cart import CartItem, CartStore, update_quantity
from apps.checkout.services import CheckoutService
from apps.checkout.state import (
    CheckoutState,
    CheckoutStep,
    can_proceed,
    create_initial_state,
    rewind_to,
    select_address,
    select_payment,
    select_shipping,
    transition_to_next,
    transition_to_previous,
)
from apps.core.exceptions import CheckoutTransitionError, NotFoundError, ValidationException
from apps.payguard.defaults import seed_payment_methods
from apps.payguard.models import PaymentMethod
from apps.shipstream.defaults import seed_shipping_methods
from apps.shipstream.models import ShippingMethod
from .factories import address_fields


class TestWizardState:

    def test_starts_on_address_step(self):
        state = create_initial_state()
        assert state.current_step == CheckoutStep.ADDRESS
        assert state.step_number == 1
        assert state.state_history[0]['trigger'] == 'checkout_start'

    def test_cannot_go_back_from_first_step(self):
        with pytest.raises(CheckoutTransitionError):
            transition_to_previous(create_initial_state())

    def test_each_step_is_gated(self):
        state = create_initial_state()
        with pytest.raises(CheckoutTransitionError):
            transition_to_next(state)

        select_address(state, 'addr-1')
        transition_to_next(state)
        assert state.current_step == CheckoutStep.SHIPPING
        assert not can_proceed(state)

        select_shipping(state, 'ship-1', Decimal('29.99'))
        transition_to_next(state)
        assert state.current_step == CheckoutStep.SUMMARY
        assert can_proceed(state)

        transition_to_next(state)
        assert state.current_step == CheckoutStep.PAYMENT
        with pytest.raises(CheckoutTransitionError):
            transition_to_next(state)

        select_payment(state, 'pay-1', Decimal('0.75'))
        transition_to_next(state)
        assert state.current_step == CheckoutStep.COMPLETE

    def test_no_moves_after_complete(self):
        state = CheckoutState(current_step=CheckoutStep.COMPLETE)
        with pytest.raises(CheckoutTransitionError):
            transition_to_next(state)
        with pytest.raises(CheckoutTransitionError):
            transition_to_previous(state)

    def test_no_skip_ahead(self):
        state = create_initial_state()
        with pytest.raises(CheckoutTransitionError):
            select_shipping(state, 'ship-1', Decimal('10'))

    def test_back_keeps_selections(self):
        state = create_initial_state()
        select_address(state, 'addr-1')
        transition_to_next(state)
        select_shipping(state, 'ship-1', Decimal('10'))
        transition_to_previous(state)

        assert state.current_step == CheckoutStep.ADDRESS
        assert state.shipping_method_id == 'ship-1'
        assert [entry['trigger'] for entry in state.state_history] == ['checkout_start', 'next', 'back']

    def test_changing_address_resets_later_choices(self):
        state = create_initial_state()
        select_address(state, 'addr-1')
        transition_to_next(state)
        select_shipping(state, 'ship-1', Decimal('10'))
        transition_to_previous(state)

        select_address(state, 'addr-2')
        assert state.shipping_method_id is None
        assert state.shipping_cost is None

    def test_rewind_clears_from_the_given_step(self):
        state = create_initial_state()
        select_address(state, 'addr-1')
        transition_to_next(state)
        select_shipping(state, 'ship-1', Decimal('0'), Decimal('10'))
        transition_to_next(state)

        rewind_to(state, CheckoutStep.SHIPPING, "Shipping cost has changed")

        assert state.current_step == CheckoutStep.SHIPPING
        assert state.address_id == 'addr-1'
        assert (state.shipping_method_id, state.shipping_cost, state.shipping_weight) == (None, None, None)
        assert state.state_history[-1]['trigger'] == 'selection_invalidated'
        assert state.state_history[-1]['reason'] == "Shipping cost has changed"

    def test_rewind_on_current_step_only_clears(self):
        state = create_initial_state()
        select_address(state, 'addr-1')
        rewind_to(state, CheckoutStep.ADDRESS, "gone")

        assert state.address_id is None
        assert len(state.state_history) == 1

    def test_round_trips_through_dict(self):
        state = create_initial_state()
        select_address(state, 'addr-1')
        transition_to_next(state)
        select_shipping(state, 'ship-1', Decimal('44.99'), Decimal('10'))

        restored = CheckoutState.from_dict(state.to_dict())
        assert restored.current_step == CheckoutStep.SHIPPING
        assert restored.shipping_cost == Decimal('44.99')
        assert restored.shipping_weight == Decimal('10')
        assert len(restored.state_history) == 2


@pytest.mark.django_db
class TestCheckoutService:

    @pytest.fixture(autouse=True)
    def catalogs(self):
        seed_shipping_methods()
        seed_payment_methods()

    @pytest.fixture
    def cart(self, user, product, cheap_product):
        cart = CartStore.for_user(user.pk)
        cart.add(CartItem.from_product(product))
        cart.add(CartItem.from_product(product))
        cart.add(CartItem.from_product(cheap_product))
        return cart

    @pytest.fixture
    def standard(self):
        return ShippingMethod.objects.get(type='standard')

    @pytest.fixture
    def card(self):
        return PaymentMethod.objects.get(type='credit-card')

    def test_empty_cart_cannot_start(self, user):
        with pytest.raises(CheckoutTransitionError) as exc:
            CheckoutService(user).start()
        assert exc.value.message == "Your cart is empty"

    def test_not_started(self, user):
        with pytest.raises(CheckoutTransitionError):
            CheckoutService(user).summary()

    def test_start_preselects_default_address(self, user, address, cart):
        summary = CheckoutService(user).start()

        assert summary['current_step'] == 'address'
        assert summary['address_id'] == str(address.pk)
        assert summary['can_proceed'] is True
        assert summary['subtotal'] == Decimal('250.00')
        assert summary['item_count'] == 3

    def test_billing_address_refused(self, user, address, cart):
        billing = create_address(user, address_fields(type='billing', title='Office'))
        service = CheckoutService(user)
        service.start()
        with pytest.raises(ValidationException):
            service.choose_address(billing.pk)

    def test_someone_elses_address_not_found(self, user, other_user, cart):
        foreign = create_address(other_user, address_fields())
        service = CheckoutService(user)
        service.start()
        with pytest.raises(NotFoundError):
            service.choose_address(foreign.pk)

    def test_full_flow(self, user, address, cart, standard, card):
        service = CheckoutService(user)
        service.start()
        service.next()

        summary = service.choose_shipping(standard.pk, weight=Decimal('10'))
        # 250 is under the 300 TL threshold: 29.99 + 15 for 10 kg
        assert summary['shipping_cost'] == Decimal('44.99')

        service.next()
        summary = service.next()
        assert summary['current_step'] == 'payment'
        assert summary['can_go_back'] is True

        summary = service.choose_payment(card.pk)
        # 2.5% of 294.99
        assert summary['payment_fee'] == Decimal('7.37')
        assert summary['total'] == Decimal('302.36')

        result = service.complete()
        assert result['current_step'] == 'complete'
        assert result['confirmation'].startswith('ORD-')
        assert result['total'] == Decimal('302.36')
        assert CartStore.for_user(user.pk).state.items == ()

    def test_state_survives_between_requests(self, user, address, cart, standard):
        CheckoutService(user).start()
        CheckoutService(user).next()
        summary = CheckoutService(user).choose_shipping(standard.pk)

        assert summary['current_step'] == 'shipping'
        assert summary['shipping_method_id'] == str(standard.pk)

    def test_shipping_priced_for_address_city(self, user, cart, standard):
        create_address(user, address_fields(city='Konya'))
        service = CheckoutService(user)
        service.start()
        service.next()

        summary = service.choose_shipping(standard.pk)
        # Anadolu multiplier 1.2 on 29.99
        assert summary['shipping_cost'] == Decimal('35.99')

    def test_payment_limits_checked_against_order_total(self, user, address, standard):
        expensive = CartItem(product_id='tv', name='Television', price=Decimal('2500'))
        cart = CartStore.for_user(user.pk)
        cart.add(expensive)

        service = CheckoutService(user, cart=cart)
        service.start()
        service.next()
        service.choose_shipping(standard.pk)
        service.next()
        service.next()

        cash = PaymentMethod.objects.get(type='cash-on-delivery')
        with pytest.raises(ValidationException):
            service.choose_payment(cash.pk)

    def test_next_from_payment_completes(self, user, address, cart, standard, card):
        service = CheckoutService(user)
        service.start()
        service.next()
        service.choose_shipping(standard.pk)
        service.next()
        service.next()
        service.choose_payment(card.pk)

        result = service.next()
        assert result['current_step'] == 'complete'
        assert result['items'] == []


@pytest.mark.django_db
class TestCheckoutRevalidation:
    """Stored selections are re-checked when the cart or address book changes."""

    @pytest.fixture(autouse=True)
    def catalogs(self):
        seed_shipping_methods()
        seed_payment_methods()

    @pytest.fixture
    def standard(self):
        return ShippingMethod.objects.get(type='standard')

    @pytest.fixture
    def four_headphones(self, user, product):
        cart = CartStore.for_user(user.pk)
        for _ in range(4):
            cart.add(CartItem.from_product(product))
        return cart

    def reach_payment(self, user, standard):
        service = CheckoutService(user)
        service.start()
        service.next()
        service.choose_shipping(standard.pk)
        service.next()
        service.next()
        return service

    def set_quantity(self, user, product, quantity):
        CartStore.for_user(user.pk).dispatch(update_quantity(str(product.pk), quantity))

    def test_shrunk_cart_loses_free_shipping(self, user, address, product, four_headphones, standard):
        service = self.reach_payment(user, standard)
        assert service.summary()['shipping_cost'] == Decimal('0')
        service.choose_payment(PaymentMethod.objects.get(type='credit-card').pk)

        # 100 TL is under the 300 TL threshold
        self.set_quantity(user, product, 1)

        service = CheckoutService(user)
        with pytest.raises(CheckoutTransitionError) as exc:
            service.complete()
        assert exc.value.message == "Shipping cost has changed, choose a shipping method again"

        summary = service.summary()
        assert summary['current_step'] == 'shipping'
        assert summary['shipping_method_id'] is None
        assert summary['payment_method_id'] is None
        assert summary['item_count'] == 1

        assert service.choose_shipping(standard.pk)['shipping_cost'] == Decimal('29.99')

    def test_grown_cart_over_payment_limit(self, user, address, product, four_headphones, standard):
        cash = PaymentMethod.objects.get(type='cash-on-delivery')
        service = self.reach_payment(user, standard)
        service.choose_payment(cash.pk)

        # 2500 TL is over the 2000 TL cash on delivery limit; shipping stays free
        self.set_quantity(user, product, 25)

        service = CheckoutService(user)
        with pytest.raises(CheckoutTransitionError) as exc:
            service.complete()
        assert exc.value.message == "Payment method is not available for this order amount"

        summary = service.summary()
        assert summary['current_step'] == 'payment'
        assert summary['shipping_cost'] == Decimal('0')
        assert summary['payment_method_id'] is None
        assert CartStore.for_user(user.pk).state.item_count == 25

    def test_payment_refused_after_stale_shipping(self, user, address, product, four_headphones, standard):
        service = self.reach_payment(user, standard)
        self.set_quantity(user, product, 1)

        service = CheckoutService(user)
        with pytest.raises(CheckoutTransitionError):
            service.choose_payment(PaymentMethod.objects.get(type='credit-card').pk)
        assert service.summary()['current_step'] == 'shipping'

    def test_unchanged_cart_completes(self, user, address, four_headphones, standard):
        service = self.reach_payment(user, standard)
        service.choose_payment(PaymentMethod.objects.get(type='credit-card').pk)

        result = CheckoutService(user).complete()
        # 2.5% of 400
        assert result['total'] == Decimal('410.00')
        assert result['current_step'] == 'complete'

    def test_heavy_parcel_price_survives_revalidation(self, user, address, product, standard):
        CartStore.for_user(user.pk).add(CartItem.from_product(product))
        service = CheckoutService(user)
        service.start()
        service.next()
        service.choose_shipping(standard.pk, weight=Decimal('10'))

        summary = CheckoutService(user).summary()
        assert summary['shipping_cost'] == Decimal('44.99')
        assert 'notice' not in summary

    def test_deleted_address_sends_wizard_back(self, user, address, four_headphones, standard):
        service = CheckoutService(user)
        service.start()
        service.next()
        service.choose_shipping(standard.pk)

        soft_delete_address(user, address.pk)

        summary = CheckoutService(user).summary()
        assert summary['current_step'] == 'address'
        assert summary['address_id'] is None
        assert summary['shipping_method_id'] is None
        assert summary['can_proceed'] is False
        assert summary['notice'] == "The selected address is no longer available"

    def test_shipping_refused_after_address_deleted(self, user, address, four_headphones, standard):
        service = CheckoutService(user)
        service.start()
        service.next()
        soft_delete_address(user, address.pk)

        with pytest.raises(CheckoutTransitionError):
            CheckoutService(user).choose_shipping(standard.pk)
