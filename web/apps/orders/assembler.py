"""Order assembly at checkout submission.

``OrderAssembler`` turns a basket that already has a payment intent into a
persisted ``Order``. Prices, names and images are snapshotted from the
catalog at this point and never follow later catalog changes.
"""

import logging

from .domain import BasketLock, BasketStore, DeliveryCatalog, Order, OrderLine, OrderStore, ProductCatalog, ShippingAddress
from .errors import (
    BasketNotFound,
    DeliveryMethodMismatch,
    EmptyBasket,
    PaymentIntentAlreadyUsed,
    PaymentNotInitialized,
)
from .pricing import PriceReconciler

logger = logging.getLogger(__name__)


class OrderAssembler:
    """Domain service that materializes orders from baskets.

    It does not delete the basket; that is left to the caller once the
    checkout is complete.
    """

    def __init__(
        self,
        baskets: BasketStore,
        products: ProductCatalog,
        delivery_methods: DeliveryCatalog,
        orders: OrderStore,
        lock: BasketLock,
    ):
        self.baskets = baskets
        self.orders = orders
        self.lock = lock
        self.pricing = PriceReconciler(products, delivery_methods)

    def create_order(
        self,
        basket_id: str,
        ship_to_address: ShippingAddress,
        delivery_method_id: int,
        buyer_email: str,
    ) -> Order:
        """Create a pending order from a basket.

        Checks run before any write, so a failure leaves the order store as
        it was. When a pending order already uses the basket's payment
        intent (a retried or repeated submission) it is replaced by the new
        one, keeping a single order per payment intent.

        Args:
            basket_id: Client basket identifier.
            ship_to_address: Where to ship the order.
            delivery_method_id: Delivery method chosen at submission.
            buyer_email: Email of the buyer.

        Returns:
            Order: The persisted order with status ``Pending``.

        Raises:
            BasketNotFound: If the basket does not exist.
            EmptyBasket: If the basket has no items.
            ProductNotFound: On the first line whose product is missing.
            DeliveryMethodNotFound: If the delivery method is unknown.
            PaymentNotInitialized: If no payment intent is bound to the basket.
            DeliveryMethodMismatch: If the basket was priced with another
                delivery method.
            PaymentIntentAlreadyUsed: If the intent already settled another order.
            CheckoutInProgress: If the basket is locked by another request.
        """
        with self.lock.hold(basket_id):
            basket = self.baskets.get(basket_id)
            if basket is None:
                raise BasketNotFound(basket_id)
            if not basket.items:
                raise EmptyBasket(basket_id)

            resolved = self.pricing.resolve_products(basket.items)
            delivery_method = self.pricing.resolve_delivery_method(delivery_method_id)

            if not basket.payment_intent_id:
                raise PaymentNotInitialized(basket_id)

            if basket.delivery_method_id is not None and basket.delivery_method_id != delivery_method.id:
                raise DeliveryMethodMismatch(basket_id, basket.delivery_method_id, delivery_method.id)

            lines = [
                OrderLine(
                    product_id=product.id,
                    product_name=product.name,
                    picture_url=product.picture_url,
                    price=product.price,
                    quantity=item.quantity,
                )
                for item, product in resolved
            ]
            order = Order.create(
                buyer_email=buyer_email,
                ship_to_address=ship_to_address,
                delivery_method=delivery_method,
                items=lines,
                payment_intent_id=basket.payment_intent_id,
            )

            existing = self.orders.find_by_payment_intent(basket.payment_intent_id)
            if existing is not None:
                if existing.status.is_terminal:
                    raise PaymentIntentAlreadyUsed(basket.payment_intent_id)
                logger.info(
                    "replacing pending order for resubmitted basket",
                    extra={"basket_id": basket_id, "order_id": str(existing.id)},
                )
                self.orders.delete(existing)

            created = self.orders.create(order)
            logger.info(
                "order created",
                extra={
                    "basket_id": basket_id,
                    "order_id": str(created.id),
                    "payment_intent_id": created.payment_intent_id,
                },
            )
            return created
