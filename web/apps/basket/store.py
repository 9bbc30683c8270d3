"""Basket storage on top of the Django cache.

In production the cache is Redis (``django.core.cache.backends.redis``), so
baskets live in Redis as JSON documents with a time-to-live. Tests and local
runs use the in-memory cache with the same code.
"""

import json
import logging
from typing import Optional

from django.conf import settings
from django.core.cache import cache

from apps.orders.domain import Basket, BasketStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "basket:"


def basket_key(basket_id: str) -> str:
    return f"{KEY_PREFIX}{basket_id}"


class CacheBasketStore(BasketStore):
    """``BasketStore`` persisting baskets as JSON in the default cache."""

    def __init__(self, backend=None, default_ttl: Optional[int] = None):
        self.cache = backend or cache
        self.default_ttl = default_ttl or settings.BASKET_TTL_SECONDS

    def get(self, basket_id: str) -> Optional[Basket]:
        raw = self.cache.get(basket_key(basket_id))
        if raw is None:
            return None
        return Basket.from_dict(json.loads(raw))

    def put(self, basket: Basket, ttl: Optional[int] = None) -> Optional[Basket]:
        """Store ``basket`` and read it back.

        Args:
            basket: Basket to store, replacing any previous version.
            ttl: Seconds to keep it; defaults to ``BASKET_TTL_SECONDS``.

        Returns:
            Optional[Basket]: The basket as stored, or None if it could not
            be read back.
        """
        self.cache.set(basket_key(basket.id), json.dumps(basket.to_dict()), timeout=ttl or self.default_ttl)
        stored = self.get(basket.id)
        if stored is None:
            logger.warning("basket not readable after write", extra={"basket_id": basket.id})
        return stored

    def delete(self, basket_id: str) -> bool:
        return bool(self.cache.delete(basket_key(basket_id)))
