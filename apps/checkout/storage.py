"""
Per-user persistence for cart and checkout state, backed by the Django cache
(Redis when REDIS_URL is configured, local memory otherwise).

Keys are always scoped by user id, e.g. ``cart:<user_id>``.
"""
import logging
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)


class UserScopedStorage:
    """Stores one JSON-compatible document per user under a key prefix."""
    setting_name = None
    default_prefix = None

    def __init__(self, alias: str = None, prefix: str = None, timeout: Optional[int] = None):
        storefront = settings.STOREFRONT
        self.alias = alias or storefront.get('CART_CACHE_ALIAS', 'default')
        self.prefix = prefix or storefront.get(self.setting_name, self.default_prefix)
        # None keeps entries until they are overwritten or evicted
        self.timeout = timeout

    @property
    def cache(self):
        return caches[self.alias]

    def key(self, user_id) -> str:
        return f"{self.prefix}:{user_id}"

    def read(self, user_id) -> Optional[Dict[str, Any]]:
        return self.cache.get(self.key(user_id))

    def write(self, user_id, document: Dict[str, Any]):
        self.cache.set(self.key(user_id), document, timeout=self.timeout)


class CartStorage(UserScopedStorage):
    setting_name = 'CART_KEY_PREFIX'
    default_prefix = 'cart'

    def load(self, user_id) -> Optional[Dict[str, Any]]:
        """
        Persisted cart as ``{"items": [CartItem, ...], "is_open": bool}``.
        A corrupt document is logged and ignored, leaving an empty cart.
        """
        from .cart import CartItem

        document = self.read(user_id)
        if not document:
            return None
        try:
            items = [CartItem.from_dict(item) for item in document.get('items', [])]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"Discarding unreadable cart for user {user_id}: {e}")
            return None
        return {"items": items, "is_open": bool(document.get('is_open', False))}

    def save(self, user_id, state):
        self.write(user_id, {
            "items": [item.to_dict() for item in state.items],
            "is_open": state.is_open,
        })


class CheckoutStorage(UserScopedStorage):
    setting_name = 'CHECKOUT_KEY_PREFIX'
    default_prefix = 'checkout'

    def load(self, user_id):
        from .state import CheckoutState

        document = self.read(user_id)
        if not document:
            return None
        try:
            return CheckoutState.from_dict(document)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Discarding unreadable checkout for user {user_id}: {e}")
            return None

    def save(self, user_id, state):
        self.write(user_id, state.to_dict())
