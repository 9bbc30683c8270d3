"""Pydantic schemas for the basket API.

The client owns the basket lines and the chosen delivery method. The payment
intent reference, its client secret and the shipping price are written only
by checkout (``apps.payments``), so they appear on output and are ignored on
input.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from apps.orders.domain import Basket, BasketItem


class BasketItemDTO(BaseModel):
    """A basket line as exchanged with the client.

    ``price`` is whatever the client displays; it is never trusted for
    charging.
    """

    product_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    price: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    product_name: str = Field(default="", max_length=200)
    picture_url: Optional[str] = Field(default=None, max_length=500)


class BasketInDTO(BaseModel):
    id: str = Field(min_length=1, max_length=128)
    items: list[BasketItemDTO] = Field(default_factory=list)
    delivery_method_id: Optional[int] = Field(default=None, gt=0)

    def to_domain(self, current: Optional[Basket] = None) -> Basket:
        """Build the basket to store, keeping checkout fields from ``current``."""
        return Basket(
            id=self.id,
            items=[
                BasketItem(
                    product_id=it.product_id,
                    quantity=it.quantity,
                    price=it.price,
                    product_name=it.product_name,
                    picture_url=it.picture_url,
                )
                for it in self.items
            ],
            delivery_method_id=self.delivery_method_id,
            payment_intent_id=current.payment_intent_id if current else None,
            client_secret=current.client_secret if current else None,
            shipping_price=current.shipping_price if current else None,
        )


class BasketDTO(BasketInDTO):
    payment_intent_id: Optional[str] = None
    client_secret: Optional[str] = None
    shipping_price: Optional[Decimal] = None

    @classmethod
    def from_domain(cls, basket: Basket) -> "BasketDTO":
        return cls(
            id=basket.id,
            items=[
                BasketItemDTO(
                    product_id=it.product_id,
                    quantity=it.quantity,
                    price=it.price,
                    product_name=it.product_name,
                    picture_url=it.picture_url,
                )
                for it in basket.items
            ],
            delivery_method_id=basket.delivery_method_id,
            payment_intent_id=basket.payment_intent_id,
            client_secret=basket.client_secret,
            shipping_price=basket.shipping_price,
        )
