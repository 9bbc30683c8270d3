"""Unit tests for WebhookEventProcessor.

Payloads are signed with the Stripe scheme and verified by the real
``stripe`` library through the stub gateway.
"""

from decimal import Decimal

import pytest

from apps.orders.domain import DeliveryMethod, Order, OrderLine, OrderStatus, ShippingAddress
from apps.orders.errors import InvalidSignature
from apps.orders.tests.fakes import InMemoryOrderStore
from apps.payments.adapters import PaymentGatewayStub
from apps.payments.webhooks import PAYMENT_FAILED, PAYMENT_SUCCEEDED, WebhookEventProcessor, WebhookOutcome

UPS = DeliveryMethod(id=1, short_name="UPS1", cost=Decimal("5.00"))
ADDRESS = ShippingAddress(first_name="Ada", last_name="Lovelace", street="1 Main St", city="London", country="UK")


@pytest.fixture
def orders():
    store = InMemoryOrderStore()
    store.create(
        Order.create(
            buyer_email="ada@example.com",
            ship_to_address=ADDRESS,
            delivery_method=UPS,
            items=[OrderLine(product_id=1, product_name="Mug", price=Decimal("19.99"), quantity=1)],
            payment_intent_id="pi_1",
        )
    )
    return store


@pytest.fixture
def processor(orders, settings):
    return WebhookEventProcessor(
        orders=orders, gateway=PaymentGatewayStub(), webhook_secret=settings.STRIPE_WEBHOOK_SECRET
    )


@pytest.fixture
def deliver(processor, sign_webhook):
    def _deliver(payload):
        return processor.handle_event(payload.encode("utf-8"), sign_webhook(payload))

    return _deliver


def _status(orders):
    return orders.find_by_payment_intent("pi_1").status


def test_succeeded_event_marks_payment_received(orders, deliver, make_event):
    assert deliver(make_event(PAYMENT_SUCCEEDED, "pi_1")) == WebhookOutcome.APPLIED
    assert _status(orders) == OrderStatus.PAYMENT_RECEIVED


def test_failed_event_marks_payment_failed(orders, deliver, make_event):
    assert deliver(make_event(PAYMENT_FAILED, "pi_1")) == WebhookOutcome.APPLIED
    assert _status(orders) == OrderStatus.PAYMENT_FAILED


def test_redelivery_is_a_noop(orders, deliver, make_event):
    payload = make_event(PAYMENT_SUCCEEDED, "pi_1", event_id="evt_1")
    deliver(payload)
    history = list(orders.history)

    assert deliver(payload) == WebhookOutcome.DUPLICATE
    assert deliver(make_event(PAYMENT_SUCCEEDED, "pi_1", event_id="evt_2")) == WebhookOutcome.UNCHANGED
    assert orders.history == history
    assert _status(orders) == OrderStatus.PAYMENT_RECEIVED


def test_later_outcome_overwrites(orders, deliver, make_event):
    deliver(make_event(PAYMENT_FAILED, "pi_1", event_id="evt_1"))
    assert deliver(make_event(PAYMENT_SUCCEEDED, "pi_1", event_id="evt_2")) == WebhookOutcome.APPLIED
    assert _status(orders) == OrderStatus.PAYMENT_RECEIVED
    assert [h[2] for h in orders.history] == [OrderStatus.PAYMENT_FAILED, OrderStatus.PAYMENT_RECEIVED]


def test_replayed_older_event_does_not_flip_status(orders, deliver, make_event):
    failed = make_event(PAYMENT_FAILED, "pi_1", event_id="evt_1")
    deliver(failed)
    deliver(make_event(PAYMENT_SUCCEEDED, "pi_1", event_id="evt_2"))

    assert deliver(failed) == WebhookOutcome.DUPLICATE
    assert _status(orders) == OrderStatus.PAYMENT_RECEIVED


def test_event_for_superseded_order_is_dropped(orders, deliver, make_event):
    assert deliver(make_event(PAYMENT_SUCCEEDED, "pi_gone")) == WebhookOutcome.DROPPED
    assert _status(orders) == OrderStatus.PENDING


def test_other_event_types_are_ignored(orders, deliver, make_event):
    assert deliver(make_event("payment_intent.created", "pi_1")) == WebhookOutcome.IGNORED
    assert deliver(make_event("charge.refunded", "pi_1")) == WebhookOutcome.IGNORED
    assert orders.history == []


def test_invalid_signature_changes_nothing(orders, processor, sign_webhook, make_event):
    payload = make_event(PAYMENT_SUCCEEDED, "pi_1")
    with pytest.raises(InvalidSignature):
        processor.handle_event(payload.encode(), sign_webhook(payload, secret="whsec_wrong"))
    with pytest.raises(InvalidSignature):
        processor.handle_event(payload.encode(), None)
    assert _status(orders) == OrderStatus.PENDING


def test_tampered_payload_is_rejected(orders, processor, sign_webhook, make_event):
    payload = make_event(PAYMENT_FAILED, "pi_1")
    header = sign_webhook(payload)
    tampered = payload.replace(PAYMENT_FAILED, PAYMENT_SUCCEEDED)
    with pytest.raises(InvalidSignature):
        processor.handle_event(tampered.encode(), header)
    assert _status(orders) == OrderStatus.PENDING


def test_concurrent_duplicate_is_reported(orders, deliver, make_event, monkeypatch):
    # Another delivery recorded the event between the check and the write.
    monkeypatch.setattr(orders, "is_event_applied", lambda event_id: False)
    monkeypatch.setattr(orders, "update_status", lambda order, status, event_id=None: False)
    assert deliver(make_event(PAYMENT_SUCCEEDED, "pi_1")) == WebhookOutcome.DUPLICATE
    assert _status(orders) == OrderStatus.PENDING
