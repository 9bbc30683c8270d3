"""Repository layer for persisting orders.

``DjangoOrderStore`` implements the ``OrderStore`` port on the Django ORM.
It maps between the ``Order`` aggregate and the ``OrderModel`` /
``OrderItemModel`` rows, so domain code never sees ORM types. Each method
runs in its own transaction.
"""

import logging
import uuid
from typing import List, Optional

from django.db import IntegrityError, transaction

from .domain import Order, OrderLine, OrderStatus, OrderStore, ShippingAddress
from .errors import OrderNotFound, PaymentIntentAlreadyUsed
from .models import OrderItemModel, OrderModel, OrderStatusChange

logger = logging.getLogger(__name__)


def _to_domain(obj: OrderModel) -> Order:
    return Order(
        id=obj.id,
        buyer_email=obj.buyer_email,
        ship_to_address=ShippingAddress(
            first_name=obj.ship_first_name,
            last_name=obj.ship_last_name,
            street=obj.ship_street,
            city=obj.ship_city,
            country=obj.ship_country,
        ),
        delivery_method_id=obj.delivery_method_id,
        delivery_method_name=obj.delivery_method_name,
        delivery_cost=obj.delivery_cost,
        items=[
            OrderLine(
                product_id=it.product_id,
                product_name=it.product_name,
                picture_url=it.picture_url,
                price=it.price,
                quantity=it.quantity,
            )
            for it in obj.items.all()
        ],
        subtotal=obj.subtotal,
        payment_intent_id=obj.payment_intent_id,
        status=OrderStatus(obj.status),
        order_date=obj.order_date,
    )


class DjangoOrderStore(OrderStore):
    """``OrderStore`` backed by the ``orders``, ``order_items`` and
    ``order_status_changes`` tables."""

    def _query(self):
        return OrderModel.objects.prefetch_related("items")

    def create(self, order: Order) -> Order:
        """Insert the order, its lines and the initial history row.

        Raises:
            PaymentIntentAlreadyUsed: If another order holds the same
                payment intent (unique constraint).
        """
        addr = order.ship_to_address
        try:
            with transaction.atomic():
                obj = OrderModel.objects.create(
                    id=order.id,
                    buyer_email=order.buyer_email,
                    ship_first_name=addr.first_name,
                    ship_last_name=addr.last_name,
                    ship_street=addr.street,
                    ship_city=addr.city,
                    ship_country=addr.country,
                    delivery_method_id=order.delivery_method_id,
                    delivery_method_name=order.delivery_method_name,
                    delivery_cost=order.delivery_cost,
                    subtotal=order.subtotal,
                    status=order.status.value,
                    payment_intent_id=order.payment_intent_id,
                    order_date=order.order_date,
                )
                OrderItemModel.objects.bulk_create(
                    [
                        OrderItemModel(
                            order=obj,
                            product_id=line.product_id,
                            product_name=line.product_name,
                            picture_url=line.picture_url,
                            price=line.price,
                            quantity=line.quantity,
                        )
                        for line in order.items
                    ]
                )
                OrderStatusChange.objects.create(
                    order=obj,
                    payment_intent_id=order.payment_intent_id,
                    to_status=order.status.value,
                )
        except IntegrityError as e:
            if OrderModel.objects.filter(payment_intent_id=order.payment_intent_id).exists():
                raise PaymentIntentAlreadyUsed(order.payment_intent_id) from e
            raise
        return order

    def get(self, order_id: uuid.UUID) -> Optional[Order]:
        obj = self._query().filter(pk=order_id).first()
        return _to_domain(obj) if obj else None

    def list_for_buyer(self, buyer_email: str) -> List[Order]:
        qs = self._query().filter(buyer_email__iexact=buyer_email).order_by("-order_date")
        return [_to_domain(o) for o in qs]

    def find_by_payment_intent(self, payment_intent_id: str) -> Optional[Order]:
        obj = self._query().filter(payment_intent_id=payment_intent_id).first()
        return _to_domain(obj) if obj else None

    def delete(self, order: Order) -> None:
        with transaction.atomic():
            OrderModel.objects.filter(pk=order.id).delete()

    @transaction.atomic
    def update_status(self, order: Order, status: OrderStatus, event_id: Optional[str] = None) -> bool:
        """Persist a new status together with its history row.

        The history insert runs in a nested savepoint: if ``event_id`` is
        already recorded, IntegrityError only rolls back that block and the
        status stays untouched.

        Returns:
            bool: True if the status was written, False if ``event_id`` was
            already recorded.

        Raises:
            OrderNotFound: If the order was deleted in the meantime.
        """
        obj = OrderModel.objects.select_for_update().filter(pk=order.id).first()
        if obj is None:
            raise OrderNotFound(order.payment_intent_id)

        try:
            with transaction.atomic():
                OrderStatusChange.objects.create(
                    order=obj,
                    payment_intent_id=obj.payment_intent_id,
                    from_status=obj.status,
                    to_status=status.value,
                    event_id=event_id,
                )
        except IntegrityError:
            logger.info("status change already recorded", extra={"event_id": event_id})
            return False

        obj.status = status.value
        obj.save(update_fields=["status"])
        return True

    def is_event_applied(self, event_id: str) -> bool:
        return OrderStatusChange.objects.filter(event_id=event_id).exists()
