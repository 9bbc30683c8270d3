"""In-process stub adapter for the ``PaymentGateway`` port.

The stub never touches the network. Intent ids and client secrets are
generated locally in the same shape Stripe uses, and every call is recorded
so tests can assert on what the gateway was asked to do. Webhook
verification is the real one: it checks the Stripe signature scheme over
the raw body, which is a local HMAC computation.
"""

import uuid
from typing import Dict, List, Tuple

from apps.orders.domain import PaymentEvent, PaymentGateway, PaymentIntent
from apps.orders.errors import PaymentGatewayError

from .gateway import parse_event


class PaymentGatewayStub(PaymentGateway):
    """Stub implementation of ``PaymentGateway``.

    Attributes:
        intents: Known intents, id -> amount in minor units.
        calls: Ordered log of ``(operation, intent_id, amount)`` tuples.
    """

    def __init__(self):
        self.intents: Dict[str, int] = {}
        self.calls: List[Tuple[str, str, int]] = []

    def create_intent(self, amount: int, currency: str) -> PaymentIntent:
        intent_id = f"pi_{uuid.uuid4().hex[:24]}"
        self.intents[intent_id] = amount
        self.calls.append(("create", intent_id, amount))
        return PaymentIntent(id=intent_id, client_secret=f"{intent_id}_secret_{uuid.uuid4().hex[:24]}")

    def update_intent(self, payment_intent_id: str, amount: int) -> None:
        if not payment_intent_id.startswith("pi_"):
            raise PaymentGatewayError(f"No such payment_intent: '{payment_intent_id}'")
        self.intents[payment_intent_id] = amount
        self.calls.append(("update", payment_intent_id, amount))

    def verify_and_parse_event(self, payload: bytes, signature: str, secret: str) -> PaymentEvent:
        return parse_event(payload, signature, secret)
