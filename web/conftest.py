import hashlib
import hmac
import json
import time
import uuid
from decimal import Decimal

import pytest
from django.core.cache import cache

WEBHOOK_SECRET = "whsec_test_secret"


@pytest.fixture(autouse=True)
def use_stub_gateway(settings):
    settings.USE_STRIPE_GATEWAY = False
    settings.STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET
    settings.PICTURE_BASE_URL = "https://cdn.example.com"
    settings.BASKET_LOCK_WAIT = 0.2


@pytest.fixture(autouse=True)
def clear_cache():
    # baskets, basket locks and throttle counters all live here
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def sign_webhook():
    """Build a ``Stripe-Signature`` header the way Stripe does."""

    def _sign(payload: str, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
        ts = int(time.time() if timestamp is None else timestamp)
        mac = hmac.new(secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256)
        return f"t={ts},v1={mac.hexdigest()}"

    return _sign


@pytest.fixture
def make_event():
    def _make(event_type: str, payment_intent_id: str, event_id: str = None) -> str:
        return json.dumps(
            {
                "id": event_id or f"evt_{uuid.uuid4().hex[:16]}",
                "object": "event",
                "type": event_type,
                "data": {"object": {"id": payment_intent_id, "object": "payment_intent"}},
            }
        )

    return _make


@pytest.fixture
def catalog(db):
    from apps.catalog.models import DeliveryMethodModel, ProductModel

    return {
        "mug": ProductModel.objects.create(
            name="Mug", price=Decimal("19.99"), picture_url="images/products/mug.png"
        ),
        "tee": ProductModel.objects.create(name="Tee", price=Decimal("12.50")),
        "ups": DeliveryMethodModel.objects.create(
            short_name="UPS1", description="Fastest delivery", delivery_time="1-2 Days", cost=Decimal("5.00")
        ),
        "free": DeliveryMethodModel.objects.create(
            short_name="FREE", description="Free delivery", delivery_time="5-10 Days", cost=Decimal("0.00")
        ),
    }
