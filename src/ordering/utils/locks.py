"""Per-entity serialization of command processing.

Commands that mutate the same order (or redeem the same coupon) must not
interleave their read-modify-write cycles. Each key gets its own re-entrant
lock; the lock is held across `current_domain.process(...)` so that it also
covers the unit-of-work commit.
"""

import threading
from contextlib import ExitStack, contextmanager

from protean.utils.globals import current_domain


class KeyedLocks:
    """A registry of re-entrant locks, one per key.

    A key's lock lives only while some thread holds it or waits for it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}
        self._claims: dict[str, int] = {}

    def _claim(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            self._claims[key] = self._claims.get(key, 0) + 1
            return lock

    def _release(self, key: str) -> None:
        with self._guard:
            remaining = self._claims.get(key, 0) - 1
            if remaining > 0:
                self._claims[key] = remaining
            else:
                self._claims.pop(key, None)
                self._locks.pop(key, None)

    @contextmanager
    def _held(self, key: str):
        lock = self._claim(key)
        try:
            with lock:
                yield
        finally:
            self._release(key)

    @contextmanager
    def hold(self, *keys: str):
        """Acquire the locks for all keys, in sorted order to avoid deadlocks."""
        with ExitStack() as stack:
            for key in sorted({k for k in keys if k}):
                stack.enter_context(self._held(key))
            yield

    def held_keys(self) -> set[str]:
        with self._guard:
            return set(self._locks)

    def reset(self) -> None:
        with self._guard:
            self._locks.clear()
            self._claims.clear()


entity_locks = KeyedLocks()


def order_key(order_id) -> str:
    return f"order:{order_id}"


def coupon_key(code) -> str:
    return f"coupon:{str(code).strip().upper()}"


def process_serialized(command, *keys: str):
    """Process a command synchronously while holding the locks for `keys`."""
    with entity_locks.hold(*keys):
        return current_domain.process(command, asynchronous=False)
