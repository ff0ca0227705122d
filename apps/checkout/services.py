"""
Checkout Orchestrator

Drives the wizard for one signed-in user, pulling in the cart, the address
book and the shipping/payment catalogs as each step needs them. No order
record is written; completing checkout empties the cart and hands back a
confirmation reference.
"""
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from apps.addressbook.models import Address
from apps.addressbook.services import get_address
from apps.core.exceptions import (
    CheckoutTransitionError,
    NotFoundError,
    PricingException,
    ValidationException,
)
from apps.core.utils import get_or_not_found, round_money, to_decimal
from apps.payguard.fees import calculate_payment_fee, is_available_for_amount
from apps.payguard.models import PaymentMethod
from apps.shipstream.models import ShippingMethod
from apps.shipstream.pricing import calculate_shipping_cost, get_estimated_delivery
from .cart import CartStore, clear_cart
from .state import (
    CheckoutState,
    CheckoutStep,
    can_go_back,
    can_proceed,
    create_initial_state,
    rewind_to,
    select_address,
    select_payment,
    select_shipping,
    transition_to_complete,
    transition_to_next,
    transition_to_previous,
)
from .storage import CheckoutStorage

logger = logging.getLogger(__name__)


def generate_confirmation() -> str:
    return f"ORD-{uuid.uuid4().hex[:10].upper()}"


class CheckoutService:
    """
    Checkout wizard for a single user.

    Usage:
        service = CheckoutService(user)
        service.start()
        service.choose_address(address_id)
        service.next()
        ...
    """

    def __init__(self, user, cart: CartStore = None, storage: CheckoutStorage = None):
        self.user = user
        self.user_id = str(user.pk)
        self.cart = cart or CartStore.for_user(self.user_id)
        self.storage = storage or CheckoutStorage()
        self._state: Optional[CheckoutState] = None

    # === State access ===

    @property
    def state(self) -> CheckoutState:
        if self._state is None:
            self._state = self.storage.load(self.user_id)
        if self._state is None:
            raise CheckoutTransitionError("Checkout has not been started", step="none")
        return self._state

    def _save(self) -> Dict[str, Any]:
        self.storage.save(self.user_id, self._state)
        return self.summary()

    @property
    def subtotal(self) -> Decimal:
        return self.cart.state.total

    def _selected_address(self) -> Optional[Address]:
        if not self.state.address_id:
            return None
        try:
            return get_address(self.user, self.state.address_id)
        except NotFoundError:
            return None

    def _stale_selection(self) -> Optional[Tuple[CheckoutStep, str]]:
        """
        First stored selection that no longer holds for the current cart and
        address book, as (step, reason). Prices are recomputed and compared
        with what was quoted when the selection was made.
        """
        state = self.state
        address = None
        if state.address_id:
            address = self._selected_address()
            if address is None or address.type == Address.TYPE_BILLING:
                return CheckoutStep.ADDRESS, "The selected address is no longer available"

        if state.shipping_method_id:
            method = ShippingMethod.objects.filter(pk=state.shipping_method_id).first()
            if method is None:
                return CheckoutStep.SHIPPING, "The selected shipping method is no longer available"
            try:
                cost = calculate_shipping_cost(
                    method, self.subtotal, state.shipping_weight, address.city if address else None
                )
            except PricingException as e:
                return CheckoutStep.SHIPPING, e.message
            if cost != state.shipping_cost:
                return CheckoutStep.SHIPPING, "Shipping cost has changed, choose a shipping method again"

        if state.payment_method_id:
            method = PaymentMethod.objects.filter(pk=state.payment_method_id).first()
            amount = self.subtotal + (state.shipping_cost or Decimal('0'))
            if method is None or not is_available_for_amount(method, amount):
                return CheckoutStep.PAYMENT, "Payment method is not available for this order amount"
            if calculate_payment_fee(method, amount) != state.payment_fee:
                return CheckoutStep.PAYMENT, "Payment fee has changed, choose a payment method again"
        return None

    def _revalidate(self) -> Optional[str]:
        """
        Clear a stale selection and rewind the wizard to its step. Returns the
        reason, or None when every selection still holds.
        """
        if self.state.is_complete:
            return None
        stale = self._stale_selection()
        if stale is None:
            return None

        step, reason = stale
        rewind_to(self.state, step, reason)
        self.storage.save(self.user_id, self._state)
        logger.warning(f"Checkout for user {self.user_id} sent back to {step.value}: {reason}")
        return reason

    # === Wizard operations ===

    def start(self) -> Dict[str, Any]:
        """Begin (or restart) checkout on the address step."""
        if not self.cart.state.items:
            logger.warning(f"Checkout refused for user {self.user_id}: cart is empty")
            raise CheckoutTransitionError("Your cart is empty", step=CheckoutStep.ADDRESS.value)

        self._state = create_initial_state()

        default = (
            Address.objects.active()
            .filter(user=self.user, is_default=True)
            .for_type(Address.TYPE_SHIPPING)
            .first()
        )
        if default:
            select_address(self._state, str(default.pk))

        logger.info(f"Checkout started for user {self.user_id} with {self.cart.state.item_count} items")
        return self._save()

    def choose_address(self, address_id) -> Dict[str, Any]:
        address = get_address(self.user, address_id)
        if address.type == Address.TYPE_BILLING:
            raise ValidationException("Address cannot be used for shipping", field="address_id")
        select_address(self.state, str(address.pk))
        return self._save()

    def choose_shipping(self, method_id, weight=None) -> Dict[str, Any]:
        """Price the method for the cart subtotal and the delivery city."""
        self._revalidate()
        method = get_or_not_found(ShippingMethod, method_id, "Shipping method")
        address = self._selected_address()
        region = address.city if address else None

        weight = to_decimal(weight)
        cost = calculate_shipping_cost(method, self.subtotal, weight, region)
        select_shipping(self.state, str(method.pk), cost, weight)
        logger.info(f"User {self.user_id} chose shipping {method.name} at {cost}")
        return self._save()

    def choose_payment(self, method_id) -> Dict[str, Any]:
        """Price the fee for subtotal plus shipping."""
        self._revalidate()
        method = get_or_not_found(PaymentMethod, method_id, "Payment method")
        amount = self.subtotal + (self.state.shipping_cost or Decimal('0'))

        if not is_available_for_amount(method, amount):
            raise ValidationException(
                "Payment method is not available for this order amount", field="payment_method_id"
            )

        fee = calculate_payment_fee(method, amount)
        select_payment(self.state, str(method.pk), fee)
        logger.info(f"User {self.user_id} chose payment {method.name} with fee {fee}")
        return self._save()

    def next(self) -> Dict[str, Any]:
        self._revalidate()
        if self.state.current_step == CheckoutStep.PAYMENT:
            return self.complete()
        transition_to_next(self.state)
        return self._save()

    def back(self) -> Dict[str, Any]:
        transition_to_previous(self.state)
        return self._save()

    def complete(self) -> Dict[str, Any]:
        """
        Place the order: empties the cart and returns the confirmation.
        Nothing is persisted beyond the wizard state itself.
        """
        if not self.cart.state.items:
            raise CheckoutTransitionError("Your cart is empty", step=self.state.current_step.value)

        reason = self._revalidate()
        if reason:
            raise CheckoutTransitionError(reason, step=self.state.current_step.value)

        summary = self.summary()
        transition_to_complete(self.state, generate_confirmation())
        self.cart.dispatch(clear_cart())
        self.storage.save(self.user_id, self._state)

        logger.info(f"Checkout {self._state.confirmation} completed for user {self.user_id}: {summary['total']}")
        summary.update(self._state_fields())
        summary["items"] = []
        summary["item_count"] = 0
        return summary

    # === Reporting ===

    def _state_fields(self) -> Dict[str, Any]:
        state = self.state
        return {
            "current_step": state.current_step.value,
            "step_number": state.step_number,
            "can_proceed": can_proceed(state),
            "can_go_back": can_go_back(state),
            "address_id": state.address_id,
            "shipping_method_id": state.shipping_method_id,
            "payment_method_id": state.payment_method_id,
            "confirmation": state.confirmation,
            "state_history": state.to_dict()["state_history"],
        }

    def summary(self) -> Dict[str, Any]:
        """Wizard position plus the order totals as they stand."""
        notice = self._revalidate()
        state = self.state
        subtotal = self.subtotal
        shipping_cost = state.shipping_cost or Decimal('0')
        payment_fee = state.payment_fee or Decimal('0')

        result = self._state_fields()
        result.update({
            "items": [item.to_dict() for item in self.cart.state.items],
            "item_count": self.cart.state.item_count,
            "subtotal": round_money(subtotal),
            "shipping_cost": round_money(shipping_cost),
            "payment_fee": round_money(payment_fee),
            "total": round_money(subtotal + shipping_cost + payment_fee),
        })
        if notice:
            result["notice"] = notice

        if state.shipping_method_id and not state.is_complete:
            method = ShippingMethod.objects.filter(pk=state.shipping_method_id).first()
            address = self._selected_address()
            if method:
                result["estimated_delivery"] = get_estimated_delivery(method, address.city if address else None)
        return result
