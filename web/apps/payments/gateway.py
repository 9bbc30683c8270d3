"""Stripe adapter for the ``PaymentGateway`` port, with a circuit breaker.

This module implements the payment gateway port on top of the ``stripe``
SDK. It adds:

- Explicit credentials: the API key is passed per request instead of being
  set on the ``stripe`` module, so nothing here depends on global state.
- A circuit breaker per process to avoid hammering an unhealthy gateway,
  admitting one trial call once the reset timeout has passed.
- No retries. A failed call surfaces as ``PaymentGatewayError``; retrying
  intent creation blindly could create duplicate intents, so the decision
  is left to the caller.

Webhook verification is local (HMAC over the raw body) and needs no
network access, so ``parse_event`` is shared with the in-process stub.
"""

import json
import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Optional

import stripe

from apps.orders.domain import PaymentEvent, PaymentGateway, PaymentIntent
from apps.orders.errors import InvalidSignature, PaymentGatewayError

logger = logging.getLogger(__name__)

# Stripe rejects events older than this many seconds.
SIGNATURE_TOLERANCE = 300

# Errors that say the gateway itself is unhealthy. Other Stripe errors are
# answers about the request and do not count against the circuit.
_CIRCUIT_ERRORS = (stripe.APIConnectionError, stripe.APIError, stripe.RateLimitError)


# ---------------- Circuit Breaker ---------------- #

class CircuitBreaker:
    """Per-process breaker around gateway calls.

    The circuit opens after ``fail_threshold`` consecutive outages and
    refuses calls for ``reset_timeout`` seconds. After that a single trial
    call is admitted (HALF_OPEN). Only the errors in ``_CIRCUIT_ERRORS``
    count as outages; any other exit from a guarded call closes the circuit.
    """

    def __init__(self, name: str, fail_threshold: int, reset_timeout: float):
        self.name = name
        self.fail_threshold = fail_threshold
        self.reset_timeout = reset_timeout
        self._lock = threading.Lock()
        self._outages = 0
        self._opened_at: Optional[float] = None
        self._trial_running = False

    @property
    def state(self) -> str:
        with self._lock:
            return self._current_state()

    def _current_state(self) -> str:
        if self._opened_at is None:
            return "CLOSED"
        if time.monotonic() - self._opened_at < self.reset_timeout:
            return "OPEN"
        return "HALF_OPEN"

    @contextmanager
    def guard(self):
        """Admit one call, then record how it ended.

        Raises:
            PaymentGatewayError: If the circuit is OPEN or the HALF_OPEN
                trial call is still running.
        """
        with self._lock:
            state = self._current_state()
            if state == "OPEN":
                raise PaymentGatewayError(f"{self.name}: CIRCUIT_OPEN")
            if state == "HALF_OPEN":
                if self._trial_running:
                    raise PaymentGatewayError(f"{self.name}: CIRCUIT_HALF_OPEN_BUSY")
                self._trial_running = True

        outage = False
        try:
            yield
        except _CIRCUIT_ERRORS:
            outage = True
            raise
        finally:
            self._settle(outage)

    def _settle(self, outage: bool):
        with self._lock:
            self._trial_running = False
            if not outage:
                self._outages = 0
                self._opened_at = None
                return
            self._outages += 1
            if self._outages >= self.fail_threshold:
                self._opened_at = time.monotonic()


# ---------------- Webhooks ---------------- #

def parse_event(payload: bytes, signature: str, secret: str) -> PaymentEvent:
    """Verify a Stripe webhook signature and parse the event.

    Args:
        payload: Raw request body.
        signature: ``Stripe-Signature`` header (``t=...,v1=...``).
        secret: Endpoint signing secret (``whsec_...``).

    Returns:
        PaymentEvent: Event id, type and the payment intent id when the
        event's object is a payment intent.

    Raises:
        InvalidSignature: If the header is missing, malformed, stale or
            does not match, or if the verified body is not an event.
    """
    try:
        body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        stripe.WebhookSignature.verify_header(body, signature, secret, SIGNATURE_TOLERANCE)
        data = json.loads(body)
        obj = data["data"]["object"]
        return PaymentEvent(
            id=data["id"],
            type=data["type"],
            payment_intent_id=obj.get("id") if obj.get("object") == "payment_intent" else None,
        )
    except stripe.SignatureVerificationError as e:
        logger.warning("webhook signature rejected", extra={"reason": str(e)})
        raise InvalidSignature() from e
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        logger.warning("webhook payload rejected", extra={"reason": type(e).__name__})
        raise InvalidSignature() from e


# ---------------- Stripe Adapter ---------------- #

class StripePaymentGateway(PaymentGateway):
    """``PaymentGateway`` backed by Stripe PaymentIntents."""

    def __init__(self, api_key: str, breaker: CircuitBreaker, payment_method_types=("card",)):
        self.api_key = api_key
        self.breaker = breaker
        self.payment_method_types = list(payment_method_types)

    def create_intent(self, amount: int, currency: str) -> PaymentIntent:
        intent = self._call(
            stripe.PaymentIntent.create,
            amount=amount,
            currency=currency,
            payment_method_types=self.payment_method_types,
            api_key=self.api_key,
        )
        return PaymentIntent(id=intent.id, client_secret=intent.client_secret)

    def update_intent(self, payment_intent_id: str, amount: int) -> None:
        self._call(stripe.PaymentIntent.modify, payment_intent_id, amount=amount, api_key=self.api_key)

    def verify_and_parse_event(self, payload: bytes, signature: str, secret: str) -> PaymentEvent:
        return parse_event(payload, signature, secret)

    def _call(self, fn: Callable, *args, **kwargs):
        """Run a Stripe call behind the circuit breaker.

        Raises:
            PaymentGatewayError: For any Stripe error or an open circuit.
        """
        try:
            with self.breaker.guard():
                return fn(*args, **kwargs)
        except _CIRCUIT_ERRORS as e:
            logger.error("payment gateway unavailable", extra={"error": type(e).__name__})
            raise PaymentGatewayError(str(e) or type(e).__name__) from e
        except stripe.StripeError as e:
            logger.warning("payment gateway rejected request", extra={"error": type(e).__name__})
            raise PaymentGatewayError(str(e) or type(e).__name__) from e
