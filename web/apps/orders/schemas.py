"""Pydantic schemas for orders.

This module exposes the request schema used to submit an order and the
read schema used by the order endpoints.
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .domain import Order, ShippingAddress


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def resolve_picture_url(path: Optional[str], base_url: str) -> str:
    """Prefix a stored image path with the public base URL.

    Returns an empty string when there is no image.
    """
    if not path:
        return ""
    if path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}" if base_url else path


class ShippingAddressIn(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    street: str = Field(min_length=1, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    country: str = Field(min_length=1, max_length=100)

    def to_domain(self) -> ShippingAddress:
        return ShippingAddress(**self.model_dump())


class CreateOrderDTO(BaseModel):
    """Schema for submitting an order.

    Attributes:
        basket_id: Basket whose payment intent the order binds to.
        delivery_method_id: Delivery method chosen by the buyer.
        ship_to_address: Where to ship.
        buyer_email: Normalized to lowercase.
    """

    basket_id: str = Field(min_length=1, max_length=128)
    delivery_method_id: int = Field(gt=0)
    ship_to_address: ShippingAddressIn
    buyer_email: str = Field(min_length=3, max_length=254)

    @field_validator("buyer_email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate and normalize the buyer email.

        Raises:
            ValueError: When the value does not look like an email address.
        """
        v2 = v.strip().lower()
        if not EMAIL_RE.match(v2):
            raise ValueError("Invalid email address")
        return v2


class OrderLineOut(BaseModel):
    product_id: int
    product_name: str
    picture_url: str
    price: Decimal
    quantity: int


class ShippingAddressOut(BaseModel):
    first_name: str
    last_name: str
    street: str
    city: str
    country: str


class OrderReadDTO(BaseModel):
    id: UUID
    buyer_email: str
    order_date: datetime
    status: str
    ship_to_address: ShippingAddressOut
    delivery_method_id: Optional[int] = None
    delivery_method: str
    delivery_cost: Decimal
    items: list[OrderLineOut]
    subtotal: Decimal
    total: Decimal
    payment_intent_id: str

    @classmethod
    def from_domain(cls, order: Order, picture_base_url: str = "") -> "OrderReadDTO":
        addr = order.ship_to_address
        return cls(
            id=order.id,
            buyer_email=order.buyer_email,
            order_date=order.order_date,
            status=order.status.value,
            ship_to_address=ShippingAddressOut(
                first_name=addr.first_name,
                last_name=addr.last_name,
                street=addr.street,
                city=addr.city,
                country=addr.country,
            ),
            delivery_method_id=order.delivery_method_id,
            delivery_method=order.delivery_method_name,
            delivery_cost=order.delivery_cost,
            items=[
                OrderLineOut(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    picture_url=resolve_picture_url(line.picture_url, picture_base_url),
                    price=line.price,
                    quantity=line.quantity,
                )
                for line in order.items
            ],
            subtotal=order.subtotal,
            total=order.total,
            payment_intent_id=order.payment_intent_id,
        )
