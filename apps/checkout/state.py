"""
Checkout Wizard State Machine

Strictly linear flow:
    ADDRESS → SHIPPING → SUMMARY → PAYMENT → COMPLETE

1. Forward moves are gated by a per-step completeness check
2. Backward moves are allowed from every step except the first
3. No skipping ahead; COMPLETE is terminal
4. Every transition is appended to state_history as an audit trail
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from apps.core.exceptions import CheckoutTransitionError
from apps.core.utils import to_decimal


class CheckoutStep(str, Enum):
    """Checkout wizard steps"""
    ADDRESS = "address"      # Pick a delivery address
    SHIPPING = "shipping"    # Pick a shipping method
    SUMMARY = "summary"      # Review the order
    PAYMENT = "payment"      # Pick a payment method
    COMPLETE = "complete"    # Terminal state


STEP_ORDER = [
    CheckoutStep.ADDRESS,
    CheckoutStep.SHIPPING,
    CheckoutStep.SUMMARY,
    CheckoutStep.PAYMENT,
    CheckoutStep.COMPLETE,
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _money(value) -> Optional[str]:
    return str(value) if value is not None else None


@dataclass
class CheckoutState:
    """
    Wizard progress for one user.

    Selections further down the flow depend on earlier ones (shipping is
    priced for the address city, the payment fee for subtotal + shipping),
    so changing a selection clears everything after it.
    """
    current_step: CheckoutStep = CheckoutStep.ADDRESS
    address_id: Optional[str] = None
    shipping_method_id: Optional[str] = None
    shipping_cost: Optional[Decimal] = None
    shipping_weight: Optional[Decimal] = None
    payment_method_id: Optional[str] = None
    payment_fee: Optional[Decimal] = None
    confirmation: Optional[str] = None
    state_history: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def step_number(self) -> int:
        return STEP_ORDER.index(self.current_step) + 1

    @property
    def is_complete(self) -> bool:
        return self.current_step == CheckoutStep.COMPLETE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_step": self.current_step.value,
            "address_id": self.address_id,
            "shipping_method_id": self.shipping_method_id,
            "shipping_cost": _money(self.shipping_cost),
            "shipping_weight": _money(self.shipping_weight),
            "payment_method_id": self.payment_method_id,
            "payment_fee": _money(self.payment_fee),
            "confirmation": self.confirmation,
            "state_history": [
                {key: (value.value if isinstance(value, Enum) else value) for key, value in entry.items()}
                for entry in self.state_history
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckoutState":
        return cls(
            current_step=CheckoutStep(data["current_step"]),
            address_id=data.get("address_id"),
            shipping_method_id=data.get("shipping_method_id"),
            shipping_cost=to_decimal(data.get("shipping_cost")),
            shipping_weight=to_decimal(data.get("shipping_weight")),
            payment_method_id=data.get("payment_method_id"),
            payment_fee=to_decimal(data.get("payment_fee")),
            confirmation=data.get("confirmation"),
            state_history=list(data.get("state_history", [])),
        )


# === Step gates ===

def can_proceed(state: CheckoutState) -> bool:
    """Whether the current step is complete enough to move forward."""
    step = state.current_step
    if step == CheckoutStep.ADDRESS:
        return state.address_id is not None
    if step == CheckoutStep.SHIPPING:
        return state.shipping_method_id is not None
    if step == CheckoutStep.SUMMARY:
        return True
    if step == CheckoutStep.PAYMENT:
        return state.payment_method_id is not None
    return False


def can_go_back(state: CheckoutState) -> bool:
    return state.current_step not in (CheckoutStep.ADDRESS, CheckoutStep.COMPLETE)


def _record(state: CheckoutState, previous: Optional[CheckoutStep], trigger: str, **details):
    entry = {"to": state.current_step.value, "trigger": trigger, "timestamp": _now()}
    entry.update(details)
    if previous is not None:
        entry["from"] = previous.value
    state.state_history.append(entry)


# === State Transition Functions ===

def transition_to_next(state: CheckoutState) -> CheckoutState:
    """Advance one step; refused when the current step is incomplete."""
    if state.is_complete:
        raise CheckoutTransitionError("Checkout is already complete", step=state.current_step.value)
    if not can_proceed(state):
        raise CheckoutTransitionError(
            f"Complete the {state.current_step.value} step before continuing",
            step=state.current_step.value,
        )
    previous = state.current_step
    state.current_step = STEP_ORDER[STEP_ORDER.index(previous) + 1]
    _record(state, previous, "next")
    return state


def transition_to_previous(state: CheckoutState) -> CheckoutState:
    """Go back one step; refused on the first step and after completion."""
    if not can_go_back(state):
        raise CheckoutTransitionError(
            f"Cannot go back from the {state.current_step.value} step",
            step=state.current_step.value,
        )
    previous = state.current_step
    state.current_step = STEP_ORDER[STEP_ORDER.index(previous) - 1]
    _record(state, previous, "back")
    return state


def transition_to_complete(state: CheckoutState, confirmation: str) -> CheckoutState:
    """Transition from PAYMENT to the terminal COMPLETE state"""
    if state.current_step != CheckoutStep.PAYMENT or not can_proceed(state):
        raise CheckoutTransitionError(
            "Select a payment method before placing the order",
            step=state.current_step.value,
        )
    state.current_step = CheckoutStep.COMPLETE
    state.confirmation = confirmation
    _record(state, CheckoutStep.PAYMENT, "order_placed")
    return state


# === Selections ===

def _require_step(state: CheckoutState, step: CheckoutStep):
    if state.current_step != step:
        raise CheckoutTransitionError(
            f"Cannot change the {step.value} selection during the {state.current_step.value} step",
            step=state.current_step.value,
        )


def select_address(state: CheckoutState, address_id: str) -> CheckoutState:
    _require_step(state, CheckoutStep.ADDRESS)
    if state.address_id != address_id:
        state.shipping_method_id = None
        state.shipping_cost = None
        state.shipping_weight = None
        state.payment_method_id = None
        state.payment_fee = None
    state.address_id = address_id
    return state


def select_shipping(state: CheckoutState, method_id: str, cost: Decimal, weight: Optional[Decimal] = None) -> CheckoutState:
    _require_step(state, CheckoutStep.SHIPPING)
    if state.shipping_method_id != method_id:
        state.payment_method_id = None
        state.payment_fee = None
    state.shipping_method_id = method_id
    state.shipping_cost = cost
    state.shipping_weight = weight
    return state


def select_payment(state: CheckoutState, method_id: str, fee: Decimal) -> CheckoutState:
    _require_step(state, CheckoutStep.PAYMENT)
    state.payment_method_id = method_id
    state.payment_fee = fee
    return state


# === State Initialization ===

def create_initial_state() -> CheckoutState:
    """Create initial state on the ADDRESS step"""
    state = CheckoutState()
    _record(state, None, "checkout_start")
    return state


def rewind_to(state: CheckoutState, step: CheckoutStep, reason: str) -> CheckoutState:
    """
    Drop the selection made on ``step`` and every selection after it, and
    move the wizard back to ``step`` if it has already passed it.
    """
    index = STEP_ORDER.index(step)
    if index <= STEP_ORDER.index(CheckoutStep.ADDRESS):
        state.address_id = None
    if index <= STEP_ORDER.index(CheckoutStep.SHIPPING):
        state.shipping_method_id = None
        state.shipping_cost = None
        state.shipping_weight = None
    if index <= STEP_ORDER.index(CheckoutStep.PAYMENT):
        state.payment_method_id = None
        state.payment_fee = None

    previous = state.current_step
    if STEP_ORDER.index(previous) > index:
        state.current_step = step
        _record(state, previous, "selection_invalidated", reason=reason)
    return state
