"""Unit tests for PaymentIntentCoordinator using in-memory ports."""

from decimal import Decimal

import pytest

from apps.orders.domain import Basket, BasketItem, DeliveryMethod, Order, OrderLine, Product, ShippingAddress
from apps.orders.errors import (
    BasketNotFound,
    CheckoutInProgress,
    EmptyBasket,
    PaymentGatewayError,
    ProductNotFound,
)
from apps.orders.tests.fakes import (
    BusyLock,
    FailingGateway,
    InMemoryBasketStore,
    InMemoryCatalog,
    InMemoryOrderStore,
    NullLock,
)
from apps.payments.adapters import PaymentGatewayStub
from apps.payments.coordinator import PaymentIntentCoordinator

MUG = Product(id=1, name="Mug", price=Decimal("19.99"))
UPS = DeliveryMethod(id=1, short_name="UPS1", cost=Decimal("5.00"))
FREE = DeliveryMethod(id=2, short_name="FREE", cost=Decimal("0.00"))
ADDRESS = ShippingAddress(first_name="Ada", last_name="Lovelace", street="1 Main St", city="London", country="UK")


def _coordinator(baskets, orders=None, gateway=None, lock=None, **kwargs):
    return PaymentIntentCoordinator(
        baskets=baskets,
        products=InMemoryCatalog(MUG),
        delivery_methods=InMemoryCatalog(UPS, FREE),
        orders=orders or InMemoryOrderStore(),
        gateway=gateway or PaymentGatewayStub(),
        lock=lock or NullLock(),
        **kwargs,
    )


def _existing_order(payment_intent_id):
    return Order.create(
        buyer_email="ada@example.com",
        ship_to_address=ADDRESS,
        delivery_method=UPS,
        items=[OrderLine(product_id=1, product_name="Mug", price=Decimal("19.99"), quantity=2)],
        payment_intent_id=payment_intent_id,
    )


def test_new_intent_amount_uses_catalog_prices():
    baskets = InMemoryBasketStore(
        Basket(id="b1", items=[BasketItem(product_id=1, quantity=2, price=Decimal("1.00"))], delivery_method_id=1)
    )
    gateway = PaymentGatewayStub()

    result = _coordinator(baskets, gateway=gateway, basket_ttl=3600).reconcile_intent("b1")

    assert len(gateway.calls) == 1
    op, intent_id, amount = gateway.calls[0]
    assert (op, amount) == ("create", 4498)
    assert result.payment_intent_id == intent_id
    assert result.client_secret.startswith(f"{intent_id}_secret_")
    assert result.items[0].price == Decimal("19.99")
    assert result.shipping_price == Decimal("5.00")
    assert baskets.get("b1") == result
    assert baskets.puts == [("b1", 3600)]


def test_reused_intent_deletes_bound_order_and_updates_amount():
    orders = InMemoryOrderStore()
    stale = orders.create(_existing_order("pi_123"))
    baskets = InMemoryBasketStore(
        Basket(
            id="b1",
            items=[BasketItem(product_id=1, quantity=2, price=Decimal("19.99"))],
            delivery_method_id=2,
            payment_intent_id="pi_123",
            client_secret="pi_123_secret_abc",
            shipping_price=Decimal("5.00"),
        )
    )
    gateway = PaymentGatewayStub()

    result = _coordinator(baskets, orders=orders, gateway=gateway).reconcile_intent("b1")

    assert orders.get(stale.id) is None
    assert gateway.calls == [("update", "pi_123", 3998)]
    assert result.payment_intent_id == "pi_123"
    assert result.client_secret == "pi_123_secret_abc"
    assert result.shipping_price == Decimal("0.00")


def test_existing_intent_without_order_is_updated():
    baskets = InMemoryBasketStore(
        Basket(
            id="b1",
            items=[BasketItem(product_id=1, quantity=1)],
            delivery_method_id=1,
            payment_intent_id="pi_9",
            client_secret="pi_9_secret",
        )
    )
    gateway = PaymentGatewayStub()
    _coordinator(baskets, gateway=gateway).reconcile_intent("b1")
    assert gateway.calls == [("update", "pi_9", 2499)]


def test_blank_intent_reference_gets_a_new_intent():
    baskets = InMemoryBasketStore(
        Basket(id="b1", items=[BasketItem(product_id=1, quantity=1)], delivery_method_id=1, payment_intent_id="")
    )
    gateway = PaymentGatewayStub()

    result = _coordinator(baskets, gateway=gateway).reconcile_intent("b1")

    assert [op for op, _, _ in gateway.calls] == ["create"]
    assert result.payment_intent_id.startswith("pi_")


def test_missing_basket():
    with pytest.raises(BasketNotFound):
        _coordinator(InMemoryBasketStore()).reconcile_intent("nope")


def test_empty_basket_creates_no_intent():
    gateway = PaymentGatewayStub()
    baskets = InMemoryBasketStore(Basket(id="b1", items=[], delivery_method_id=1))
    with pytest.raises(EmptyBasket):
        _coordinator(baskets, gateway=gateway).reconcile_intent("b1")
    assert gateway.calls == []


def test_catalog_failure_changes_nothing():
    orders = InMemoryOrderStore()
    stale = orders.create(_existing_order("pi_123"))
    basket = Basket(
        id="b1",
        items=[BasketItem(product_id=404, quantity=1)],
        delivery_method_id=1,
        payment_intent_id="pi_123",
    )
    baskets = InMemoryBasketStore(basket)
    gateway = PaymentGatewayStub()

    with pytest.raises(ProductNotFound):
        _coordinator(baskets, orders=orders, gateway=gateway).reconcile_intent("b1")

    assert gateway.calls == []
    assert orders.get(stale.id) is not None
    assert baskets.get("b1") == basket
    assert baskets.puts == []


def test_gateway_failure_leaves_basket_unchanged():
    basket = Basket(id="b1", items=[BasketItem(product_id=1, quantity=1)], delivery_method_id=1)
    baskets = InMemoryBasketStore(basket)
    gateway = FailingGateway()

    with pytest.raises(PaymentGatewayError):
        _coordinator(baskets, gateway=gateway).reconcile_intent("b1")

    assert len(gateway.calls) == 1  # no retry
    assert baskets.get("b1") == basket
    assert baskets.puts == []


def test_busy_basket_is_rejected():
    gateway = PaymentGatewayStub()
    baskets = InMemoryBasketStore(Basket(id="b1", items=[BasketItem(product_id=1, quantity=1)], delivery_method_id=1))
    with pytest.raises(CheckoutInProgress):
        _coordinator(baskets, gateway=gateway, lock=BusyLock()).reconcile_intent("b1")
    assert gateway.calls == []


def test_repeated_calls_keep_one_intent():
    baskets = InMemoryBasketStore(Basket(id="b1", items=[BasketItem(product_id=1, quantity=3)], delivery_method_id=1))
    gateway = PaymentGatewayStub()
    coordinator = _coordinator(baskets, gateway=gateway)

    first = coordinator.reconcile_intent("b1")
    second = coordinator.reconcile_intent("b1")

    assert first.payment_intent_id == second.payment_intent_id
    assert [c[0] for c in gateway.calls] == ["create", "update"]
    assert gateway.intents[first.payment_intent_id] == 6497
