"""Read-only catalog lookups backed by the Django ORM.

The checkout core only ever asks "what does this cost right now", so the
catalog adapters expose single-id lookups returning domain dataclasses and
never hand ORM instances to callers.
"""

from typing import List, Optional

from apps.orders.domain import DeliveryCatalog, DeliveryMethod, Product, ProductCatalog

from .models import DeliveryMethodModel, ProductModel


class DjangoProductCatalog(ProductCatalog):
    def get_by_id(self, product_id: int) -> Optional[Product]:
        obj = ProductModel.objects.filter(pk=product_id).first()
        return obj.to_domain() if obj else None


class DjangoDeliveryCatalog(DeliveryCatalog):
    def get_by_id(self, delivery_method_id: int) -> Optional[DeliveryMethod]:
        obj = DeliveryMethodModel.objects.filter(pk=delivery_method_id).first()
        return obj.to_domain() if obj else None

    def list_all(self) -> List[DeliveryMethod]:
        return [m.to_domain() for m in DeliveryMethodModel.objects.order_by("id")]
