"""Per-basket mutual exclusion.

Checkout steps for the same basket must not interleave: two concurrent
intent reconciliations could otherwise both create a gateway intent, or an
order could be assembled while the intent amount is being changed. The lock
is a cache key written with ``add`` (``SET NX EX`` on Redis), so it works
across gunicorn workers and expires on its own if a worker dies.
"""

import logging
import time
import uuid
from contextlib import contextmanager

from django.conf import settings
from django.core.cache import cache

from apps.orders.domain import BasketLock
from apps.orders.errors import CheckoutInProgress

logger = logging.getLogger(__name__)


class CacheBasketLock(BasketLock):
    """Lock keyed by basket id, held in the default cache.

    Args:
        timeout: Seconds after which a held lock expires.
        wait: Seconds to wait for a busy lock before giving up.
        poll: Seconds between acquisition attempts.
    """

    def __init__(self, timeout: int = 30, wait: float = 5.0, poll: float = 0.05, backend=None):
        self.timeout = timeout
        self.wait = wait
        self.poll = poll
        self.cache = backend or cache

    @contextmanager
    def hold(self, basket_id: str):
        key = f"lock:basket:{basket_id}"
        token = uuid.uuid4().hex
        deadline = time.monotonic() + self.wait
        while not self.cache.add(key, token, timeout=self.timeout):
            if time.monotonic() >= deadline:
                logger.warning("basket lock busy", extra={"basket_id": basket_id})
                raise CheckoutInProgress(basket_id)
            time.sleep(self.poll)
        try:
            yield
        finally:
            # Only the owner releases; an expired lock may belong to someone else now.
            if self.cache.get(key) == token:
                self.cache.delete(key)


def get_basket_lock() -> CacheBasketLock:
    return CacheBasketLock(
        timeout=int(settings.BASKET_LOCK_TIMEOUT),
        wait=float(settings.BASKET_LOCK_WAIT),
    )
