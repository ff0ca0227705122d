"""
Cart State Store

A pure reducer over an immutable cart state, plus a small store object that
binds the state to one signed-in user and persists it after every change.

State machine actions:
    ADD_ITEM, REMOVE_ITEM, UPDATE_QUANTITY, CLEAR_CART,
    TOGGLE_CART, SET_CART_OPEN, LOAD_CART

Totals are always derived from the items, never stored.

The sign-in requirement for adding items is a separate guard
(require_authenticated) that callers run before dispatching, so the
reducer itself has no side effects.
"""
import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple
from urllib.parse import urlencode

from django.conf import settings

from apps.core.exceptions import AuthenticationRequired
from apps.core.utils import round_money, to_decimal

logger = logging.getLogger(__name__)


class CartActionType(str, Enum):
    """Cart reducer actions"""
    ADD_ITEM = "ADD_ITEM"
    REMOVE_ITEM = "REMOVE_ITEM"
    UPDATE_QUANTITY = "UPDATE_QUANTITY"
    CLEAR_CART = "CLEAR_CART"
    TOGGLE_CART = "TOGGLE_CART"
    SET_CART_OPEN = "SET_CART_OPEN"
    LOAD_CART = "LOAD_CART"


@dataclass(frozen=True)
class CartItem:
    """One product line in the cart"""
    product_id: str
    name: str
    price: Decimal
    category: str = ""
    image: str = ""
    description: str = ""
    quantity: int = 1
    stock: Optional[int] = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "category": self.category,
            "image": self.image,
            "description": self.description,
            "quantity": self.quantity,
            "stock": self.stock,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        stock = data.get("stock")
        return cls(
            product_id=str(data["product_id"]),
            name=data["name"],
            price=to_decimal(data["price"]),
            category=data.get("category", ""),
            image=data.get("image", ""),
            description=data.get("description", ""),
            quantity=int(data.get("quantity", 1)),
            stock=int(stock) if stock is not None else None,
        )

    @classmethod
    def from_product(cls, product) -> "CartItem":
        return cls(
            product_id=str(product.pk),
            name=product.name,
            price=to_decimal(product.price),
            category=product.category,
            image=product.image,
            description=product.description,
            stock=product.stock,
        )


@dataclass(frozen=True)
class CartState:
    """
    Cart contents in display (insertion) order and the slide-over flag.
    """
    items: Tuple[CartItem, ...] = ()
    is_open: bool = False

    @property
    def total(self) -> Decimal:
        return round_money(sum((item.line_total for item in self.items), Decimal('0')))

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def find(self, product_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "is_open": self.is_open,
            "total": str(self.total),
            "item_count": self.item_count,
        }


@dataclass(frozen=True)
class CartAction:
    type: CartActionType
    payload: Any = None


INITIAL_CART_STATE = CartState()


# === Action creators ===

def add_item(item: CartItem) -> CartAction:
    return CartAction(CartActionType.ADD_ITEM, item)


def remove_item(product_id: str) -> CartAction:
    return CartAction(CartActionType.REMOVE_ITEM, str(product_id))


def update_quantity(product_id: str, quantity: int) -> CartAction:
    return CartAction(CartActionType.UPDATE_QUANTITY, {"id": str(product_id), "quantity": quantity})


def clear_cart() -> CartAction:
    return CartAction(CartActionType.CLEAR_CART)


def toggle_cart() -> CartAction:
    return CartAction(CartActionType.TOGGLE_CART)


def set_cart_open(is_open: bool) -> CartAction:
    return CartAction(CartActionType.SET_CART_OPEN, bool(is_open))


def load_cart(items: Iterable[CartItem]) -> CartAction:
    return CartAction(CartActionType.LOAD_CART, tuple(items))


# === Reducer ===

def cart_reducer(state: CartState, action: CartAction) -> CartState:
    """Return the state that follows `action`. Never mutates `state`."""
    if action.type == CartActionType.ADD_ITEM:
        incoming: CartItem = action.payload
        if state.find(incoming.product_id):
            items = tuple(
                replace(item, quantity=item.quantity + 1) if item.product_id == incoming.product_id else item
                for item in state.items
            )
        else:
            items = state.items + (replace(incoming, quantity=1),)
        # Adding always reveals the cart
        return replace(state, items=items, is_open=True)

    if action.type == CartActionType.REMOVE_ITEM:
        return replace(state, items=tuple(item for item in state.items if item.product_id != action.payload))

    if action.type == CartActionType.UPDATE_QUANTITY:
        product_id = action.payload["id"]
        quantity = int(action.payload["quantity"])
        if quantity <= 0:
            return cart_reducer(state, remove_item(product_id))
        return replace(state, items=tuple(
            replace(item, quantity=quantity) if item.product_id == product_id else item
            for item in state.items
        ))

    if action.type == CartActionType.CLEAR_CART:
        return replace(state, items=())

    if action.type == CartActionType.TOGGLE_CART:
        return replace(state, is_open=not state.is_open)

    if action.type == CartActionType.SET_CART_OPEN:
        return replace(state, is_open=bool(action.payload))

    if action.type == CartActionType.LOAD_CART:
        return replace(state, items=tuple(action.payload))

    return state


# === Guard ===

def build_login_url(return_path: str = "/") -> str:
    storefront = settings.STOREFRONT
    query = urlencode({
        "message": storefront.get("LOGIN_MESSAGE", "You must sign in to add items to your cart"),
        "callbackUrl": return_path or "/",
    })
    return f"{storefront.get('LOGIN_URL', '/login')}?{query}"


def require_authenticated(user_id: Optional[str], return_path: str = "/"):
    """
    Refuse cart additions from anonymous visitors, pointing them at the
    sign-in page with a way back to where they were.
    """
    if not user_id:
        raise AuthenticationRequired(
            "You must sign in to add items to your cart",
            login_url=build_login_url(return_path),
        )


# === Store ===

@dataclass
class CartStore:
    """
    Cart state bound to one user. Every dispatch persists the new state
    under that user's key; an anonymous store never persists.
    """
    user_id: Optional[str] = None
    storage: Any = None
    state: CartState = field(default=INITIAL_CART_STATE)

    def __post_init__(self):
        if self.storage is None:
            from .storage import CartStorage
            self.storage = CartStorage()

    @classmethod
    def for_user(cls, user_id: Optional[str], storage=None) -> "CartStore":
        store = cls(user_id=str(user_id) if user_id else None, storage=storage)
        store.restore()
        return store

    def restore(self) -> CartState:
        """Reload this user's persisted cart, replacing the in-memory state."""
        self.state = INITIAL_CART_STATE
        if not self.user_id:
            return self.state
        saved = self.storage.load(self.user_id)
        if saved:
            self.state = cart_reducer(self.state, load_cart(saved["items"]))
            self.state = cart_reducer(self.state, set_cart_open(saved.get("is_open", False)))
        return self.state

    def dispatch(self, action: CartAction) -> CartState:
        self.state = cart_reducer(self.state, action)
        if self.user_id:
            self.storage.save(self.user_id, self.state)
        logger.debug(f"Cart {action.type.value} for user {self.user_id}: {self.state.item_count} items")
        return self.state

    def add(self, item: CartItem, return_path: str = "/") -> CartState:
        require_authenticated(self.user_id, return_path)
        return self.dispatch(add_item(item))

    def sign_out(self) -> CartState:
        """
        Forget the in-memory cart. The persisted copy stays under the
        user's own key and is read again at the next sign-in.
        """
        logger.info(f"Cart session closed for user {self.user_id}")
        self.user_id = None
        self.state = INITIAL_CART_STATE
        return self.state

    def switch_user(self, user_id: Optional[str]) -> CartState:
        self.sign_out()
        self.user_id = str(user_id) if user_id else None
        return self.restore()
