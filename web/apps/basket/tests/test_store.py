import json
from decimal import Decimal

import pytest
from django.core.cache import cache

from apps.basket.locks import CacheBasketLock
from apps.basket.store import CacheBasketStore, basket_key
from apps.orders.domain import Basket, BasketItem
from apps.orders.errors import CheckoutInProgress


def _basket():
    return Basket(
        id="b1",
        items=[BasketItem(product_id=7, quantity=2, price=Decimal("19.99"), product_name="Mug", picture_url="m.png")],
        delivery_method_id=1,
        payment_intent_id="pi_1",
        client_secret="pi_1_secret",
        shipping_price=Decimal("5.00"),
    )


def test_put_then_get_returns_same_basket():
    store = CacheBasketStore()
    stored = store.put(_basket())
    assert stored == _basket()
    assert store.get("b1") == _basket()


def test_get_missing_basket():
    assert CacheBasketStore().get("nope") is None


def test_delete():
    store = CacheBasketStore()
    store.put(_basket())
    assert store.delete("b1") is True
    assert store.get("b1") is None
    assert store.delete("b1") is False


def test_put_uses_ttl(monkeypatch, settings):
    settings.BASKET_TTL_SECONDS = 120
    seen = {}
    real_set = cache.set

    def spy(key, value, timeout=None, **kwargs):
        seen[key] = timeout
        return real_set(key, value, timeout=timeout, **kwargs)

    monkeypatch.setattr(cache, "set", spy)
    store = CacheBasketStore(backend=cache)
    store.put(_basket())
    store.put(Basket(id="b2"), ttl=30)

    assert seen == {basket_key("b1"): 120, basket_key("b2"): 30}


def test_lock_is_exclusive_and_released():
    lock = CacheBasketLock(timeout=30, wait=0.0)
    with lock.hold("b1"):
        with pytest.raises(CheckoutInProgress):
            with lock.hold("b1"):
                pass
        # other baskets are independent
        with lock.hold("b2"):
            pass
    with lock.hold("b1"):
        pass


def test_lock_released_on_error():
    lock = CacheBasketLock(timeout=30, wait=0.0)
    with pytest.raises(RuntimeError):
        with lock.hold("b1"):
            raise RuntimeError("boom")
    with lock.hold("b1"):
        pass


def test_lock_does_not_release_a_foreign_holder():
    lock = CacheBasketLock(timeout=30, wait=0.0)
    with lock.hold("b1"):
        # our lock expired and someone else took it
        cache.set("lock:basket:b1", "other-token", timeout=30)
    assert cache.get("lock:basket:b1") == "other-token"


def test_blank_intent_fields_are_read_back_as_none():
    data = Basket(id="b1").to_dict()
    data.update(payment_intent_id="", client_secret="")
    cache.set(basket_key("b1"), json.dumps(data))

    basket = CacheBasketStore().get("b1")
    assert (basket.payment_intent_id, basket.client_secret) == (None, None)
