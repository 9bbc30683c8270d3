"""Inbound payment webhook processing.

The gateway delivers events at least once and in no guaranteed order. The
processor verifies the signature, maps the two payment outcome events onto
order statuses, and treats everything it cannot or need not apply as an
acknowledged no-op so the gateway stops redelivering.
"""

import logging
from enum import Enum

from apps.orders.domain import OrderStatus, OrderStore, PaymentEvent, PaymentGateway
from apps.orders.errors import OrderNotFound

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"


class WebhookOutcome(str, Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    DROPPED = "dropped"


class WebhookEventProcessor:
    """Apply verified payment events to orders.

    A later event of the other outcome overwrites an earlier one
    (last-write-wins); every applied change is kept in the order status
    history together with the event id.
    """

    STATUS_BY_EVENT = {
        PAYMENT_SUCCEEDED: OrderStatus.PAYMENT_RECEIVED,
        PAYMENT_FAILED: OrderStatus.PAYMENT_FAILED,
    }

    def __init__(self, orders: OrderStore, gateway: PaymentGateway, webhook_secret: str):
        self.orders = orders
        self.gateway = gateway
        self.webhook_secret = webhook_secret

    def handle_event(self, payload: bytes, signature: str) -> WebhookOutcome:
        """Verify and apply one webhook delivery.

        Args:
            payload: Raw request body, exactly as received.
            signature: Value of the gateway signature header.

        Returns:
            WebhookOutcome: What happened. Every outcome is a success from
            the gateway's point of view.

        Raises:
            InvalidSignature: If the signature does not verify. Nothing is
                read or written in that case.
        """
        event = self.gateway.verify_and_parse_event(payload, signature or "", self.webhook_secret)

        target = self.STATUS_BY_EVENT.get(event.type)
        if target is None or not event.payment_intent_id:
            logger.info("unhandled webhook event type", extra={"event_id": event.id, "event_type": event.type})
            return WebhookOutcome.IGNORED

        if self.orders.is_event_applied(event.id):
            logger.info("webhook event already applied", extra={"event_id": event.id})
            return WebhookOutcome.DUPLICATE

        try:
            return self._apply(event, target)
        except OrderNotFound:
            # The order was superseded by a later checkout of the same basket.
            logger.warning(
                "dropping webhook event for unknown order",
                extra={"event_id": event.id, "payment_intent_id": event.payment_intent_id},
            )
            return WebhookOutcome.DROPPED

    def _apply(self, event: PaymentEvent, target: OrderStatus) -> WebhookOutcome:
        order = self.orders.find_by_payment_intent(event.payment_intent_id)
        if order is None:
            raise OrderNotFound(event.payment_intent_id)

        if order.status == target:
            return WebhookOutcome.UNCHANGED

        if order.status.is_terminal:
            logger.warning(
                "overwriting terminal order status",
                extra={
                    "order_id": str(order.id),
                    "event_id": event.id,
                    "from_status": order.status.value,
                    "to_status": target.value,
                },
            )

        if not self.orders.update_status(order, target, event_id=event.id):
            return WebhookOutcome.DUPLICATE
        order.status = target
        logger.info(
            "order status updated from webhook",
            extra={"order_id": str(order.id), "event_id": event.id, "status": target.value},
        )
        return WebhookOutcome.APPLIED
