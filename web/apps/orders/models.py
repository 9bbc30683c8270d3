import uuid

from django.db import models
from django.utils import timezone

from .domain import OrderStatus


class OrderModel(models.Model):
    # UUID PK exposed in the API
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Status(models.TextChoices):
        PENDING = OrderStatus.PENDING.value
        PAYMENT_RECEIVED = OrderStatus.PAYMENT_RECEIVED.value
        PAYMENT_FAILED = OrderStatus.PAYMENT_FAILED.value

    buyer_email = models.EmailField(db_index=True)

    # Embedded shipping address
    ship_first_name = models.CharField(max_length=100)
    ship_last_name = models.CharField(max_length=100)
    ship_street = models.CharField(max_length=200)
    ship_city = models.CharField(max_length=100)
    ship_country = models.CharField(max_length=100)

    # Reference plus a snapshot, so the order survives catalog edits
    delivery_method = models.ForeignKey(
        "catalog.DeliveryMethodModel", null=True, on_delete=models.SET_NULL, related_name="+"
    )
    delivery_method_name = models.CharField(max_length=100)
    delivery_cost = models.DecimalField(max_digits=12, decimal_places=2)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=32, choices=Status.choices, default=Status.PENDING)
    # One live order per payment intent
    payment_intent_id = models.CharField(max_length=255, unique=True)
    order_date = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "orders"
        ordering = ["-order_date"]


class OrderItemModel(models.Model):
    order = models.ForeignKey(OrderModel, on_delete=models.CASCADE, related_name="items")
    product_id = models.IntegerField()
    product_name = models.CharField(max_length=200)
    picture_url = models.CharField(max_length=500, blank=True, default="")
    price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()

    class Meta:
        db_table = "order_items"
        ordering = ["id"]


class OrderStatusChange(models.Model):
    """Append-only history of order status transitions.

    Rows outlive the order they describe (``order`` becomes NULL), and the
    unique ``event_id`` makes each gateway event apply at most once.
    """

    order = models.ForeignKey(
        OrderModel, null=True, on_delete=models.SET_NULL, related_name="status_changes"
    )
    payment_intent_id = models.CharField(max_length=255, db_index=True)
    from_status = models.CharField(max_length=32, blank=True, default="")
    to_status = models.CharField(max_length=32)
    event_id = models.CharField(max_length=255, unique=True, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "order_status_changes"
        ordering = ["id"]
