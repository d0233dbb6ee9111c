"""Session-scoped shopping cart storage.

A cart is an insertion-ordered mapping of product id -> quantity. Storage is
behind ``CartStorage`` so that every read-modify-write happens under a
per-session lock; ``CartStore`` holds the quantity rules on top of it.
"""

import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from storefront.core.config import settings
from storefront.core.logging_config import get_logger
from storefront.models.cart import Cart, CartLine

logger = get_logger(__name__)

MAX_LINE_QUANTITY = 99


def _snapshot(cart_map: Dict[int, int]) -> Cart:
    return Cart(lines=tuple(CartLine(pid, qty) for pid, qty in cart_map.items()))


class CartStorage(ABC):
    """Per-session keyed storage for raw cart maps."""

    @abstractmethod
    def get(self, session_id: str) -> Cart:
        """Snapshot of the session's cart (empty if none exists yet)."""
        ...

    @abstractmethod
    def mutate(self, session_id: str):
        """Context manager yielding the session's mutable map under its lock."""
        ...

    @abstractmethod
    def clear(self, session_id: str) -> Cart:
        ...

    @abstractmethod
    def drop(self, session_id: str) -> None:
        """Forget the session entirely (session teardown)."""
        ...


class InMemoryCartStorage(CartStorage):
    """Process-local storage; one lock per session id.

    A session is only registered once it is mutated. Sessions idle for longer
    than ``idle_seconds`` are swept on later access, at most once per
    ``sweep_interval`` seconds.
    """

    def __init__(
        self,
        idle_seconds: Optional[float] = None,
        sweep_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._carts: Dict[str, Dict[int, int]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._last_seen: Dict[str, float] = {}
        self._registry_lock = threading.Lock()
        self._clock = clock
        self.idle_seconds = settings.CART_SESSION_IDLE_MINUTES * 60 if idle_seconds is None else idle_seconds
        self.sweep_interval = min(self.idle_seconds, 60.0) if sweep_interval is None else sweep_interval
        self._last_sweep = clock()

    def _sweep(self, now: float):
        # Caller holds the registry lock
        if now - self._last_sweep < self.sweep_interval:
            return
        self._last_sweep = now
        expired = [sid for sid, seen in self._last_seen.items() if now - seen > self.idle_seconds]
        for sid in expired:
            self._forget(sid)
        if expired:
            logger.info("Expired %d idle cart session(s)", len(expired))

    def _forget(self, session_id: str):
        self._carts.pop(session_id, None)
        self._locks.pop(session_id, None)
        self._last_seen.pop(session_id, None)

    def _lock_for(self, session_id: str, create: bool = True) -> Optional[threading.Lock]:
        with self._registry_lock:
            now = self._clock()
            self._sweep(now)
            lock = self._locks.get(session_id)
            if lock is None:
                if not create:
                    return None
                lock = self._locks[session_id] = threading.Lock()
            self._last_seen[session_id] = now
            return lock

    def get(self, session_id: str) -> Cart:
        lock = self._lock_for(session_id, create=False)
        if lock is None:
            return Cart()
        with lock:
            return _snapshot(self._carts.get(session_id, {}))

    @contextmanager
    def mutate(self, session_id: str) -> Iterator[Dict[int, int]]:
        with self._lock_for(session_id):
            cart_map = self._carts.setdefault(session_id, {})
            yield cart_map

    def clear(self, session_id: str) -> Cart:
        lock = self._lock_for(session_id, create=False)
        if lock is not None:
            with lock:
                self._carts[session_id] = {}
        return Cart()

    def drop(self, session_id: str) -> None:
        with self._registry_lock:
            self._forget(session_id)

    def __len__(self) -> int:
        """Number of registered sessions."""
        return len(self._locks)


class CartStore:
    """Cart operations with the quantity rules applied."""

    def __init__(self, storage: Optional[CartStorage] = None, max_quantity: int = MAX_LINE_QUANTITY):
        self.storage = storage or InMemoryCartStorage()
        self.max_quantity = max_quantity

    def get(self, session_id: str) -> Cart:
        return self.storage.get(session_id)

    def add(self, session_id: str, product_id: int, delta_qty: int) -> Cart:
        """Add (or with a negative delta, subtract) quantity for a product.

        A resulting quantity <= 0 removes the line; anything above the cap is
        truncated to it.
        """
        if delta_qty == 0:
            return self.get(session_id)

        with self.storage.mutate(session_id) as cart_map:
            new_qty = cart_map.get(product_id, 0) + delta_qty
            if new_qty <= 0:
                cart_map.pop(product_id, None)
            else:
                cart_map[product_id] = min(new_qty, self.max_quantity)
            snapshot = _snapshot(cart_map)

        logger.debug("Cart %s: product %s %+d -> %s", session_id, product_id, delta_qty, snapshot.quantity_of(product_id))
        return snapshot

    def set_quantity(self, session_id: str, product_id: int, qty: int) -> Cart:
        """Set the exact quantity for a product (idempotent)."""
        with self.storage.mutate(session_id) as cart_map:
            if qty <= 0:
                cart_map.pop(product_id, None)
            else:
                # Existing keys keep their position in the dict
                cart_map[product_id] = min(qty, self.max_quantity)
            return _snapshot(cart_map)

    def remove(self, session_id: str, product_id: int) -> Cart:
        with self.storage.mutate(session_id) as cart_map:
            cart_map.pop(product_id, None)
            return _snapshot(cart_map)

    def clear(self, session_id: str) -> Cart:
        return self.storage.clear(session_id)

    def end_session(self, session_id: str) -> None:
        self.storage.drop(session_id)


# Singleton instance
cart_store = CartStore()


def get_cart_store() -> CartStore:
    return cart_store
