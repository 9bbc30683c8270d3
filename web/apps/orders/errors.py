"""Checkout error taxonomy.

Every failure the checkout core reports derives from ``CheckoutError`` and
carries a stable ``code`` that the API layer returns as ``detail``. The
HTTP status mapping lives in ``storefront.exceptions``.
"""


class CheckoutError(Exception):
    code = "CHECKOUT_ERROR"


class NotFoundError(CheckoutError):
    """A referenced resource does not exist. Never retried internally."""

    code = "NOT_FOUND"


class BasketNotFound(NotFoundError):
    code = "BASKET_NOT_FOUND"

    def __init__(self, basket_id: str):
        super().__init__(f"Basket {basket_id} is not found")
        self.basket_id = basket_id


class ProductNotFound(NotFoundError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: int):
        super().__init__(f"The product with ID {product_id} is not found.")
        self.product_id = product_id


class DeliveryMethodNotFound(NotFoundError):
    code = "DELIVERY_METHOD_NOT_FOUND"

    def __init__(self, delivery_method_id):
        if delivery_method_id is None:
            message = "No delivery method was selected."
        else:
            message = f"Delivery method with ID '{delivery_method_id}' was not found."
        super().__init__(message)
        self.delivery_method_id = delivery_method_id


class OrderNotFound(NotFoundError):
    code = "ORDER_NOT_FOUND"

    def __init__(self, reference):
        super().__init__(f"Order for '{reference}' was not found.")
        self.reference = reference


class EmptyBasket(CheckoutError):
    code = "EMPTY_BASKET"

    def __init__(self, basket_id: str):
        super().__init__(f"Basket {basket_id} has no items.")
        self.basket_id = basket_id


class PaymentNotInitialized(CheckoutError):
    """An order was requested before a payment intent was bound to the basket."""

    code = "PAYMENT_NOT_INITIALIZED"

    def __init__(self, basket_id: str):
        super().__init__(f"Cannot create order for basket {basket_id}: payment intent is missing.")
        self.basket_id = basket_id


class PaymentIntentAlreadyUsed(CheckoutError):
    code = "PAYMENT_INTENT_ALREADY_USED"

    def __init__(self, payment_intent_id: str):
        super().__init__(f"PaymentIntentId '{payment_intent_id}' has already been used for another order.")
        self.payment_intent_id = payment_intent_id


class DeliveryMethodMismatch(CheckoutError):
    """The order asks for a delivery method other than the one the intent was priced with."""

    code = "DELIVERY_METHOD_MISMATCH"

    def __init__(self, basket_id: str, priced_id, requested_id):
        super().__init__(
            f"Basket {basket_id} was priced with delivery method {priced_id}, not {requested_id}; restart checkout."
        )
        self.basket_id = basket_id


class CheckoutInProgress(CheckoutError):
    code = "CHECKOUT_IN_PROGRESS"

    def __init__(self, basket_id: str):
        super().__init__(f"Another checkout step is running for basket {basket_id}.")
        self.basket_id = basket_id


class InvalidSignature(CheckoutError):
    """Webhook signature verification failed. The message stays generic."""

    code = "SIGNATURE_REJECTED"

    def __init__(self):
        super().__init__("rejected")


class PaymentGatewayError(CheckoutError):
    """The payment gateway failed. Not retried here; callers decide."""

    code = "PAYMENT_GATEWAY_ERROR"
