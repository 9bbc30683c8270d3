from django.db import models

from apps.orders.domain import DeliveryMethod, Product


class ProductModel(models.Model):
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    # Relative image path; the API resolves it against PICTURE_BASE_URL.
    picture_url = models.CharField(max_length=500, blank=True, default="")
    price = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "products"
        ordering = ["id"]

    def to_domain(self) -> Product:
        return Product(id=self.id, name=self.name, price=self.price, picture_url=self.picture_url)


class DeliveryMethodModel(models.Model):
    short_name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    delivery_time = models.CharField(max_length=100, blank=True, default="")
    cost = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "delivery_methods"
        ordering = ["id"]

    def to_domain(self) -> DeliveryMethod:
        return DeliveryMethod(
            id=self.id,
            short_name=self.short_name,
            cost=self.cost,
            description=self.description,
            delivery_time=self.delivery_time,
        )
