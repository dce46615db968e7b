"""
In-memory cart state manager with derived totals and change listeners.
"""
import logging
import re
import threading
import time
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from storefront.config import Config
from storefront.models import CartItem

logger = logging.getLogger(__name__)

_LEADING_CURRENCY = re.compile(r"^\s*\$\s*")
_TRAILING_CURRENCY = re.compile(r"\s*[A-Z]{3}\s*$", re.IGNORECASE)


def parse_price(price: str) -> Decimal:
    """
    Parse a display price into a Decimal.

    A leading "$" and a trailing currency code ("90 USD", "90 usd") are stripped.
    Anything else must already be a plain decimal string; unparseable
    prices count as 0.
    """
    cleaned = _TRAILING_CURRENCY.sub("", _LEADING_CURRENCY.sub("", price or ""))
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        logger.warning(f"Unparseable cart price {price!r}, counting as 0")
        return Decimal("0")
    if not value.is_finite():
        logger.warning(f"Non-finite cart price {price!r}, counting as 0")
        return Decimal("0")
    return value


@dataclass(frozen=True)
class CartSnapshot:
    """Cart state delivered to listeners after each mutation"""
    items: List[CartItem]
    total: Decimal
    item_count: int


CartListener = Callable[[CartSnapshot], None]


class CartService:
    """
    Holds the line items of one shopping session.

    At most one item exists per (product_id, size) pair. Mutations are
    serialized with a lock; listeners are notified after the lock is released.
    """

    def __init__(self):
        self._items: List[CartItem] = []
        self._lock = threading.RLock()
        self._listeners: List[CartListener] = []

    def _new_item_id(self, product_id: str, size: Optional[str]) -> str:
        return f"{product_id}-{size or 'default'}-{uuid.uuid4().hex[:12]}"

    def _find(self, item_id: str) -> Optional[CartItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def get_items(self) -> List[CartItem]:
        """Return copies of the current items"""
        with self._lock:
            return [item.model_copy() for item in self._items]

    def add_item(
        self,
        product_id: str,
        name: str,
        price: str,
        image: str,
        size: Optional[str] = None,
        variant_id: Optional[str] = None
    ) -> CartItem:
        """
        Add one unit of a product in the given size.

        If the (product_id, size) pair is already in the cart its quantity is
        incremented and the stored name, price, image and variant are kept.
        A missing size never matches a concrete size.

        Returns:
            Copy of the added or updated item
        """
        with self._lock:
            for item in self._items:
                if item.product_id == product_id and item.size == size:
                    item.quantity += 1
                    break
            else:
                item = CartItem(
                    id=self._new_item_id(product_id, size),
                    product_id=product_id,
                    variant_id=variant_id,
                    name=name,
                    price=price,
                    image=image,
                    size=size,
                    quantity=1
                )
                self._items.append(item)
            result = item.model_copy()
            snapshot = self._listener_snapshot()
        self._notify(snapshot)
        return result

    def remove_item(self, item_id: str) -> bool:
        """Remove an item; unknown ids are a no-op"""
        with self._lock:
            item = self._find(item_id)
            if item is None:
                return False
            self._items.remove(item)
            snapshot = self._listener_snapshot()
        self._notify(snapshot)
        return True

    def remove_items(self, checked_out: Sequence[CartItem]) -> None:
        """
        Take checked-out quantities off the cart.

        Each item's quantity drops by the checked-out quantity and the item
        is removed once nothing is left. Items added or incremented since the
        checkout was built stay in the cart.
        """
        with self._lock:
            changed = False
            for sent in checked_out:
                item = self._find(sent.id)
                if item is None:
                    continue
                changed = True
                remaining = item.quantity - sent.quantity
                if remaining > 0:
                    item.quantity = remaining
                else:
                    self._items.remove(item)
            if not changed:
                return
            snapshot = self._listener_snapshot()
        self._notify(snapshot)

    def update_quantity(self, item_id: str, quantity: int) -> Optional[CartItem]:
        """
        Set an item's quantity. A quantity of zero or less removes the item.

        Returns:
            Copy of the updated item, or None if it was removed or never existed
        """
        with self._lock:
            item = self._find(item_id)
            if item is None:
                return None
            if quantity <= 0:
                self._items.remove(item)
                result = None
            else:
                item.quantity = quantity
                result = item.model_copy()
            snapshot = self._listener_snapshot()
        self._notify(snapshot)
        return result

    def get_total(self) -> Decimal:
        with self._lock:
            return self._total()

    def get_item_count(self) -> int:
        with self._lock:
            return self._item_count()

    def clear(self) -> None:
        with self._lock:
            self._items = []
            snapshot = self._listener_snapshot()
        self._notify(snapshot)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._items

    def snapshot(self) -> CartSnapshot:
        with self._lock:
            return CartSnapshot(
                items=[item.model_copy() for item in self._items],
                total=self._total(),
                item_count=self._item_count()
            )

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """
        Register a listener called with a CartSnapshot after every mutation.

        Returns:
            Callable that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _total(self) -> Decimal:
        return sum(
            (parse_price(item.price) * item.quantity for item in self._items),
            Decimal("0")
        )

    def _item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def _listener_snapshot(self) -> Optional[Tuple[CartSnapshot, List[CartListener]]]:
        """Capture state and listeners; caller holds the lock"""
        if not self._listeners:
            return None
        return self.snapshot(), list(self._listeners)

    def _notify(self, captured: Optional[Tuple[CartSnapshot, List[CartListener]]]) -> None:
        # Runs outside the lock so slow listeners do not block the cart
        if captured is None:
            return
        snapshot, listeners = captured
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Cart listener {listener!r} failed: {type(e).__name__}: {e}", exc_info=True)


class CartRegistry:
    """
    Process-local carts keyed by cart id.

    Carts idle for longer than ttl_seconds are evicted on the next lookup.
    """

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = Config.CART_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._carts: Dict[str, CartService] = {}
        self._last_seen: Dict[str, float] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired(self._clock())
            return len(self._carts)

    def get(self, cart_id: str) -> Optional[CartService]:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            cart = self._carts.get(cart_id)
            if cart is not None:
                self._last_seen[cart_id] = now
            return cart

    def get_or_create(self, cart_id: str) -> CartService:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            cart = self._carts.get(cart_id)
            if cart is None:
                cart = CartService()
                self._carts[cart_id] = cart
            self._last_seen[cart_id] = now
            return cart

    def discard_if_empty(self, cart_id: str) -> bool:
        """Drop a cart that holds no items, e.g. after checkout"""
        with self._lock:
            cart = self._carts.get(cart_id)
            if cart is None or not cart.is_empty():
                return False
            del self._carts[cart_id]
            self._last_seen.pop(cart_id, None)
            return True

    def _evict_expired(self, now: float) -> None:
        expired = [
            cart_id for cart_id, seen in self._last_seen.items()
            if now - seen > self.ttl_seconds
        ]
        for cart_id in expired:
            del self._carts[cart_id]
            del self._last_seen[cart_id]
        if expired:
            logger.info(f"Evicted {len(expired)} idle carts")
