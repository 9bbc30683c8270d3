from decimal import Decimal

import pytest

from apps.catalog.repository import DjangoDeliveryCatalog, DjangoProductCatalog


@pytest.mark.django_db
def test_product_lookup(catalog):
    product = DjangoProductCatalog().get_by_id(catalog["mug"].id)
    assert (product.name, product.price, product.picture_url) == ("Mug", Decimal("19.99"), "images/products/mug.png")
    assert DjangoProductCatalog().get_by_id(999_999) is None


@pytest.mark.django_db
def test_delivery_method_lookup(catalog):
    method = DjangoDeliveryCatalog().get_by_id(catalog["ups"].id)
    assert (method.short_name, method.cost, method.delivery_time) == ("UPS1", Decimal("5.00"), "1-2 Days")
    assert DjangoDeliveryCatalog().get_by_id(999_999) is None


@pytest.mark.django_db
def test_list_delivery_methods(client, catalog):
    r = client.get("/api/catalog/delivery-methods/")
    assert r.status_code == 200
    assert [(m["short_name"], m["cost"]) for m in r.json()] == [("UPS1", "5.00"), ("FREE", "0.00")]
