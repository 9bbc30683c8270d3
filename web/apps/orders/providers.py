"""Service provider helpers for wiring the order services with ports.

``get_order_assembler`` returns an ``OrderAssembler`` backed by the cache
basket store, the ORM catalogs and the ORM order store. Views go through
this function so tests can replace the wiring with a single monkeypatch.
"""

from apps.basket.locks import get_basket_lock
from apps.basket.store import CacheBasketStore
from apps.catalog.repository import DjangoDeliveryCatalog, DjangoProductCatalog

from .assembler import OrderAssembler
from .repository import DjangoOrderStore


def get_order_store() -> DjangoOrderStore:
    return DjangoOrderStore()


def get_order_assembler() -> OrderAssembler:
    return OrderAssembler(
        baskets=CacheBasketStore(),
        products=DjangoProductCatalog(),
        delivery_methods=DjangoDeliveryCatalog(),
        orders=get_order_store(),
        lock=get_basket_lock(),
    )
