"""Domain types and ports for checkout.

This module contains the dataclasses that flow through the checkout core
(baskets, catalog entries, orders), the order status enum, and the protocol
definitions (ports) for the collaborators the core depends on: basket
storage, product and delivery catalogs, order storage and the payment
gateway. Nothing here talks to Django, the cache or Stripe directly.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, Optional, Protocol


# ---- Enums ----
class OrderStatus(str, Enum):
    """Lifecycle of an order with respect to its payment.

    ``PENDING`` is set at creation. Both payment outcomes are terminal.
    """

    PENDING = "Pending"
    PAYMENT_RECEIVED = "PaymentReceived"
    PAYMENT_FAILED = "PaymentFailed"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


# Minor units per currency; anything not listed uses two decimals.
CURRENCY_EXPONENTS = {
    "bif": 0,
    "clp": 0,
    "jpy": 0,
    "krw": 0,
    "vnd": 0,
    "bhd": 3,
    "kwd": 3,
    "omr": 3,
}


def to_minor_units(amount: Decimal, currency: str) -> int:
    """Convert a decimal amount into integer minor units of ``currency``.

    Rounds half up, so ``Decimal("44.985")`` in USD becomes ``4499``.

    Args:
        amount: Amount in major units.
        currency: ISO currency code, any case.

    Returns:
        int: The amount the payment gateway should charge.
    """
    exponent = CURRENCY_EXPONENTS.get(currency.lower(), 2)
    scaled = (Decimal(amount) * (Decimal(10) ** exponent)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(scaled)


# ---- Basket ----
@dataclass(frozen=True)
class BasketItem:
    """A basket line as the client sent it.

    Attributes:
        product_id: Catalog id of the product.
        quantity: Units requested.
        price: Client-claimed unit price. Advisory only; it is always
            replaced with the catalog price before it is used for money.
        product_name: Display name cached by the client.
        picture_url: Display image path cached by the client.
    """

    product_id: int
    quantity: int
    price: Decimal = Decimal("0")
    product_name: str = ""
    picture_url: Optional[str] = None

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class Basket:
    """Ephemeral checkout state keyed by a client-generated id.

    Attributes:
        id: Opaque identifier generated by the client.
        items: Ordered basket lines.
        delivery_method_id: Selected delivery method, if any.
        payment_intent_id: Gateway payment reference, once one was created.
        client_secret: Gateway client secret paired with the reference.
        shipping_price: Delivery cost written back by reconciliation.
    """

    id: str
    items: List[BasketItem] = field(default_factory=list)
    delivery_method_id: Optional[int] = None
    payment_intent_id: Optional[str] = None
    client_secret: Optional[str] = None
    shipping_price: Optional[Decimal] = None

    @property
    def subtotal(self) -> Decimal:
        return sum((item.total for item in self.items), Decimal("0"))

    @property
    def total(self) -> Decimal:
        return self.subtotal + (self.shipping_price or Decimal("0"))

    def to_dict(self) -> dict:
        """Return a JSON-friendly representation (decimals as strings)."""
        return {
            "id": self.id,
            "items": [
                {
                    "product_id": it.product_id,
                    "quantity": it.quantity,
                    "price": str(it.price),
                    "product_name": it.product_name,
                    "picture_url": it.picture_url,
                }
                for it in self.items
            ],
            "delivery_method_id": self.delivery_method_id,
            "payment_intent_id": self.payment_intent_id,
            "client_secret": self.client_secret,
            "shipping_price": None if self.shipping_price is None else str(self.shipping_price),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Basket":
        """Rebuild a basket from :meth:`to_dict` output."""
        shipping = data.get("shipping_price")
        return cls(
            id=data["id"],
            items=[
                BasketItem(
                    product_id=int(it["product_id"]),
                    quantity=int(it["quantity"]),
                    price=Decimal(str(it.get("price", "0"))),
                    product_name=it.get("product_name") or "",
                    picture_url=it.get("picture_url"),
                )
                for it in data.get("items", [])
            ],
            delivery_method_id=data.get("delivery_method_id"),
            payment_intent_id=data.get("payment_intent_id") or None,
            client_secret=data.get("client_secret") or None,
            shipping_price=None if shipping is None else Decimal(str(shipping)),
        )


# ---- Catalog ----
@dataclass(frozen=True)
class Product:
    """Authoritative catalog entry for a product."""

    id: int
    name: str
    price: Decimal
    picture_url: str = ""


@dataclass(frozen=True)
class DeliveryMethod:
    """Authoritative catalog entry for a delivery option."""

    id: int
    short_name: str
    cost: Decimal
    description: str = ""
    delivery_time: str = ""


# ---- Orders ----
@dataclass(frozen=True)
class ShippingAddress:
    first_name: str
    last_name: str
    street: str
    city: str
    country: str


@dataclass(frozen=True)
class OrderLine:
    """A product snapshot captured into an order at creation time.

    The dataclass is frozen because lines never follow later catalog
    changes.
    """

    product_id: int
    product_name: str
    price: Decimal
    quantity: int
    picture_url: str = ""

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Order:
    """Order aggregate.

    Attributes:
        id: Server-generated identifier.
        buyer_email: Email of the buyer placing the order.
        ship_to_address: Embedded shipping address.
        delivery_method_id: Reference to the chosen delivery method.
        delivery_method_name: Delivery method name at order time.
        delivery_cost: Delivery cost at order time.
        items: Captured order lines.
        subtotal: Sum of line totals, frozen at creation.
        payment_intent_id: Gateway payment reference bound to this order.
        status: Current OrderStatus. The only mutable field.
        order_date: Creation timestamp (UTC).
    """

    id: uuid.UUID
    buyer_email: str
    ship_to_address: ShippingAddress
    delivery_method_id: int
    delivery_method_name: str
    delivery_cost: Decimal
    items: List[OrderLine]
    subtotal: Decimal
    payment_intent_id: str
    status: OrderStatus = OrderStatus.PENDING
    order_date: datetime = field(default_factory=_utcnow)

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.delivery_cost

    @classmethod
    def create(
        cls,
        buyer_email: str,
        ship_to_address: ShippingAddress,
        delivery_method: DeliveryMethod,
        items: List[OrderLine],
        payment_intent_id: str,
    ) -> "Order":
        """Build a new pending order and freeze its subtotal."""
        return cls(
            id=uuid.uuid4(),
            buyer_email=buyer_email,
            ship_to_address=ship_to_address,
            delivery_method_id=delivery_method.id,
            delivery_method_name=delivery_method.short_name,
            delivery_cost=delivery_method.cost,
            items=list(items),
            subtotal=sum((line.total for line in items), Decimal("0")),
            payment_intent_id=payment_intent_id,
        )


# ---- Payments ----
@dataclass(frozen=True)
class PaymentIntent:
    """Gateway payment intent handle returned to the client."""

    id: str
    client_secret: str


@dataclass(frozen=True)
class PaymentEvent:
    """A verified gateway event.

    Attributes:
        id: Gateway event id, unique per event (not per delivery).
        type: Gateway event type, e.g. ``payment_intent.succeeded``.
        payment_intent_id: Payment reference the event is about, when the
            event carries a payment intent.
    """

    id: str
    type: str
    payment_intent_id: Optional[str] = None


# ---- Ports (DIP) ----
class BasketStore(Protocol):
    """Ephemeral basket storage with a time-to-live."""

    def get(self, basket_id: str) -> Optional[Basket]:
        raise NotImplementedError()

    def put(self, basket: Basket, ttl: Optional[int] = None) -> Optional[Basket]:
        raise NotImplementedError()

    def delete(self, basket_id: str) -> bool:
        raise NotImplementedError()


class ProductCatalog(Protocol):
    def get_by_id(self, product_id: int) -> Optional[Product]:
        raise NotImplementedError()


class DeliveryCatalog(Protocol):
    def get_by_id(self, delivery_method_id: int) -> Optional[DeliveryMethod]:
        raise NotImplementedError()


class OrderStore(Protocol):
    """Durable order storage.

    Every method is its own unit of work: when it returns, the change is
    committed.
    """

    def create(self, order: Order) -> Order:
        raise NotImplementedError()

    def get(self, order_id: uuid.UUID) -> Optional[Order]:
        raise NotImplementedError()

    def list_for_buyer(self, buyer_email: str) -> List[Order]:
        raise NotImplementedError()

    def find_by_payment_intent(self, payment_intent_id: str) -> Optional[Order]:
        raise NotImplementedError()

    def delete(self, order: Order) -> None:
        raise NotImplementedError()

    def update_status(self, order: Order, status: OrderStatus, event_id: Optional[str] = None) -> bool:
        """Persist a new status and record it in the status history.

        Returns:
            bool: False when ``event_id`` was already recorded by a
            concurrent delivery, in which case nothing was written.

        Raises:
            OrderNotFound: If the order no longer exists.
        """
        raise NotImplementedError()

    def is_event_applied(self, event_id: str) -> bool:
        raise NotImplementedError()


class PaymentGateway(Protocol):
    """Port describing the payment gateway operations used by checkout."""

    def create_intent(self, amount: int, currency: str) -> PaymentIntent:
        """Create a payment intent for ``amount`` minor units.

        Raises:
            PaymentGatewayError: If the gateway call fails.
        """
        raise NotImplementedError()

    def update_intent(self, payment_intent_id: str, amount: int) -> None:
        """Change the amount of an existing intent.

        Raises:
            PaymentGatewayError: If the gateway call fails.
        """
        raise NotImplementedError()

    def verify_and_parse_event(self, payload: bytes, signature: str, secret: str) -> PaymentEvent:
        """Verify a webhook signature and parse the event.

        Raises:
            InvalidSignature: If the signature does not verify.
        """
        raise NotImplementedError()


class BasketLock(Protocol):
    """Mutual exclusion keyed by basket id.

    ``hold(basket_id)`` returns a context manager.

    Raises:
        CheckoutInProgress: If the lock could not be acquired in time.
    """

    def hold(self, basket_id: str):
        raise NotImplementedError()
