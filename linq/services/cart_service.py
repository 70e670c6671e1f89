"""
Cart Service - In-progress carts kept in Redis.

Two entities live in the cache:

- ``cart:{saleId}``      JSON list of product UUIDs added to that cart
- ``usercarts:{userId}`` JSON list of Sale stubs, the user's open carts

Both are written through CacheService.update (compare-and-swap), so
concurrent adds for the same key never drop an item.
"""
import logging
import uuid
from typing import List, Optional, Union

from linq.exceptions import BadRequestError, CacheError, CacheKeyNotFound
from linq.models import Sale
from linq.services.cache_service import CacheService, get_cache
from linq.utils.serialization import parse_uuid

logger = logging.getLogger(__name__)

CART_KEY = 'cart:{}'
USER_CARTS_KEY = 'usercarts:{}'


def cart_key(sale_uid) -> str:
    return CART_KEY.format(sale_uid)


def user_carts_key(user_id) -> str:
    return USER_CARTS_KEY.format(user_id)


def _product_ids(key: str, value) -> List[uuid.UUID]:
    """Decode a cart value; anything but a list of UUID strings is corrupt."""
    if not isinstance(value, list):
        raise CacheError(f"corrupt value at {key}: expected a list of product ids")
    try:
        return [uuid.UUID(p) for p in value]
    except (TypeError, ValueError, AttributeError) as e:
        raise CacheError(f"corrupt value at {key}: {e}") from e


def _cart_stubs(key: str, value) -> List[Sale]:
    """Decode a user cart list; every entry must be an object with a UUID ``uid``."""
    if not isinstance(value, list) or not all(isinstance(c, dict) and c.get("uid") for c in value):
        raise CacheError(f"corrupt value at {key}: expected a list of carts")
    try:
        return [Sale.from_dict(c) for c in value]
    except BadRequestError as e:
        raise CacheError(f"corrupt value at {key}: {e.message}") from e


class CartStore:
    """Cart and user cart list operations over a CacheService."""

    def __init__(self, cache: Optional[CacheService] = None):
        self.cache = cache or get_cache()

    def add_cart_item(self, cart: Sale, product_id: Union[uuid.UUID, str]) -> List[uuid.UUID]:
        """
        Append ``product_id`` to the cart's item list.

        The list is created on the first add. Returns the stored items.
        """
        product = str(parse_uuid(product_id, 'product'))
        key = cart_key(cart.uid)

        def append(read):
            try:
                items = read()
                _product_ids(key, items)
                items = list(items)
            except CacheKeyNotFound:
                items = []
            items.append(product)
            return items

        stored = self.cache.update(key, append)
        logger.debug(f"[CART] {cart.uid} += {product} ({len(stored)} items)")
        return [uuid.UUID(p) for p in stored]

    def get_cart_items(self, cart: Sale) -> List[uuid.UUID]:
        """Product UUIDs of the cart, in insertion order. Raises CacheKeyNotFound for an unknown cart."""
        key = cart_key(cart.uid)
        return _product_ids(key, self.cache.get(key))

    def create_user_cart(self, user_id: Union[uuid.UUID, str]) -> Sale:
        """
        Open a new cart for ``user_id`` and return its Sale stub.

        A missing list means this is the user's first cart; any other
        cache failure aborts without creating a stub.
        """
        user = parse_uuid(user_id, 'user')
        cart = Sale.stub(uuid.uuid4())
        key = user_carts_key(user)

        def append(read):
            try:
                carts = read()
                _cart_stubs(key, carts)
                carts = list(carts)
            except CacheKeyNotFound:
                logger.info(f"[CART] First cart for user {user}")
                carts = []
            carts.append(cart.to_dict())
            return carts

        self.cache.update(key, append)
        return cart

    def get_user_carts(self, user_id: Union[uuid.UUID, str]) -> List[Sale]:
        """Stubs of the user's open carts. Raises CacheKeyNotFound when the user has none."""
        user = parse_uuid(user_id, 'user')
        key = user_carts_key(user)
        return _cart_stubs(key, self.cache.get(key))
