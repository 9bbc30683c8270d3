"""Payment intent coordination for baskets.

``PaymentIntentCoordinator.reconcile_intent`` is called every time the
client (re)starts checkout. It reprices the basket, makes sure the gateway
intent charges exactly that amount, and keeps a payment intent bound to at
most one live order by removing any order left over from an earlier
checkout attempt with the same intent.
"""

import logging
from dataclasses import replace
from typing import Optional

from apps.orders.domain import (
    Basket,
    BasketLock,
    BasketStore,
    DeliveryCatalog,
    OrderStore,
    PaymentGateway,
    ProductCatalog,
    to_minor_units,
)
from apps.orders.errors import BasketNotFound, EmptyBasket
from apps.orders.pricing import PriceReconciler

logger = logging.getLogger(__name__)


class PaymentIntentCoordinator:
    """Create or refresh the gateway payment intent of a basket.

    Configuration (currency, basket TTL) is passed in by the provider.
    """

    def __init__(
        self,
        baskets: BasketStore,
        products: ProductCatalog,
        delivery_methods: DeliveryCatalog,
        orders: OrderStore,
        gateway: PaymentGateway,
        lock: BasketLock,
        currency: str = "usd",
        basket_ttl: Optional[int] = None,
    ):
        self.baskets = baskets
        self.orders = orders
        self.gateway = gateway
        self.lock = lock
        self.currency = currency.lower()
        self.basket_ttl = basket_ttl
        self.pricing = PriceReconciler(products, delivery_methods)

    def reconcile_intent(self, basket_id: str) -> Basket:
        """Reprice a basket and sync its payment intent with the gateway.

        Steps, all under the basket lock:

        1. Load the basket.
        2. Find any order already bound to the basket's payment intent.
        3. Reprice from the catalogs and compute the amount in minor units.
        4. Delete the stale order found in step 2.
        5. Create a new intent, or update the amount of the existing one.
        6. Store the basket with intent id, client secret and shipping price.

        Catalog failures happen in step 3, before anything is written.
        A gateway failure in step 5 leaves the stored basket unchanged.

        Args:
            basket_id: Client basket identifier.

        Returns:
            Basket: The repriced basket, including payment intent id and
            client secret.

        Raises:
            BasketNotFound: If the basket does not exist.
            EmptyBasket: If the basket has no items.
            ProductNotFound: If a line references a missing product.
            DeliveryMethodNotFound: If the delivery method does not resolve.
            PaymentGatewayError: If the gateway call fails.
            CheckoutInProgress: If the basket is locked by another request.
        """
        with self.lock.hold(basket_id):
            basket = self.baskets.get(basket_id)
            if basket is None:
                raise BasketNotFound(basket_id)
            if not basket.items:
                raise EmptyBasket(basket_id)

            stale_order = None
            if basket.payment_intent_id:
                stale_order = self.orders.find_by_payment_intent(basket.payment_intent_id)

            priced = self.pricing.reconcile(basket)
            amount = to_minor_units(priced.total, self.currency)

            if stale_order is not None:
                logger.info(
                    "deleting order bound to reused payment intent",
                    extra={
                        "basket_id": basket_id,
                        "order_id": str(stale_order.id),
                        "payment_intent_id": basket.payment_intent_id,
                    },
                )
                self.orders.delete(stale_order)

            if not priced.payment_intent_id:
                intent = self.gateway.create_intent(amount, self.currency)
                priced = replace(priced, payment_intent_id=intent.id, client_secret=intent.client_secret)
                logger.info(
                    "payment intent created",
                    extra={"basket_id": basket_id, "payment_intent_id": intent.id, "amount": amount},
                )
            else:
                self.gateway.update_intent(priced.payment_intent_id, amount)
                logger.info(
                    "payment intent amount updated",
                    extra={"basket_id": basket_id, "payment_intent_id": priced.payment_intent_id, "amount": amount},
                )

            stored = self.baskets.put(priced, ttl=self.basket_ttl)
            return stored or priced
