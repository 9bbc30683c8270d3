"""Provider helpers wiring the payment services with their ports.

Views call these factories instead of building services themselves, so
tests can swap implementations by patching a single symbol, and so that
configuration is read from Django settings in one place and passed into
constructors explicitly.

By default the Stripe adapter is used (``settings.USE_STRIPE_GATEWAY``).
When the flag is off, the in-process ``PaymentGatewayStub`` is used, which
is what tests and offline development want.
"""

from django.conf import settings

from apps.basket.locks import get_basket_lock
from apps.basket.store import CacheBasketStore
from apps.catalog.repository import DjangoDeliveryCatalog, DjangoProductCatalog
from apps.orders.domain import PaymentGateway
from apps.orders.repository import DjangoOrderStore

from .adapters import PaymentGatewayStub
from .coordinator import PaymentIntentCoordinator
from .gateway import CircuitBreaker, StripePaymentGateway
from .webhooks import WebhookEventProcessor

# One breaker per process, shared by every gateway instance.
_stripe_cb = CircuitBreaker(
    "stripe",
    fail_threshold=int(getattr(settings, "GATEWAY_CIRCUIT_FAIL_THRESHOLD", 5)),
    reset_timeout=float(getattr(settings, "GATEWAY_CIRCUIT_RESET_TIMEOUT", 30.0)),
)


def get_payment_gateway() -> PaymentGateway:
    """Return the configured payment gateway adapter."""
    if getattr(settings, "USE_STRIPE_GATEWAY", True):
        return StripePaymentGateway(api_key=settings.STRIPE_SECRET_KEY, breaker=_stripe_cb)
    return PaymentGatewayStub()


def get_intent_coordinator() -> PaymentIntentCoordinator:
    return PaymentIntentCoordinator(
        baskets=CacheBasketStore(),
        products=DjangoProductCatalog(),
        delivery_methods=DjangoDeliveryCatalog(),
        orders=DjangoOrderStore(),
        gateway=get_payment_gateway(),
        lock=get_basket_lock(),
        currency=settings.PAYMENT_CURRENCY,
        basket_ttl=settings.BASKET_TTL_SECONDS,
    )


def get_webhook_processor() -> WebhookEventProcessor:
    return WebhookEventProcessor(
        orders=DjangoOrderStore(),
        gateway=get_payment_gateway(),
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
    )
