"""Server-side price reconciliation.

Client baskets carry prices, but those are display hints only. The
reconciler looks every line up in the product catalog and the selected
delivery method in the delivery catalog, and returns a copy of the basket
priced from those sources.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from .domain import Basket, BasketItem, DeliveryCatalog, DeliveryMethod, Product, ProductCatalog
from .errors import DeliveryMethodNotFound, ProductNotFound

logger = logging.getLogger(__name__)


class PriceReconciler:
    """Reprice baskets from the catalogs. Performs no writes."""

    def __init__(self, products: ProductCatalog, delivery_methods: DeliveryCatalog):
        self.products = products
        self.delivery_methods = delivery_methods

    def resolve_products(self, items: List[BasketItem]) -> List[Tuple[BasketItem, Product]]:
        """Look up the catalog product for every basket line.

        Stops at the first unknown product id.

        Raises:
            ProductNotFound: If a line references a missing product.
        """
        resolved = []
        for item in items:
            product = self.products.get_by_id(item.product_id)
            if product is None:
                raise ProductNotFound(item.product_id)
            resolved.append((item, product))
        return resolved

    def resolve_delivery_method(self, delivery_method_id: Optional[int]) -> DeliveryMethod:
        """Raises DeliveryMethodNotFound for a missing or unknown id."""
        if delivery_method_id is None:
            raise DeliveryMethodNotFound(None)
        method = self.delivery_methods.get_by_id(delivery_method_id)
        if method is None:
            raise DeliveryMethodNotFound(delivery_method_id)
        return method

    def reconcile(self, basket: Basket) -> Basket:
        """Return ``basket`` with catalog unit prices and delivery cost.

        Args:
            basket: Basket as currently stored.

        Returns:
            Basket: A new basket; the input is left untouched.

        Raises:
            ProductNotFound: If any line references a missing product.
            DeliveryMethodNotFound: If the delivery method does not resolve.
        """
        items = []
        for item, product in self.resolve_products(basket.items):
            if item.price != product.price:
                logger.info(
                    "client price replaced by catalog price",
                    extra={"basket_id": basket.id, "product_id": product.id},
                )
            items.append(replace(item, price=product.price))
        method = self.resolve_delivery_method(basket.delivery_method_id)
        return replace(basket, items=items, shipping_price=method.cost)
