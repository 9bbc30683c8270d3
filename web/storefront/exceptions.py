"""DRF exception handler for checkout errors.

Domain services raise ``CheckoutError`` subclasses and views let them
propagate. This handler turns them into ``{"detail": <code>, "message":
<text>}`` responses with the status below. Anything else goes to DRF's
default handler.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.orders.errors import (
    CheckoutError,
    CheckoutInProgress,
    DeliveryMethodMismatch,
    EmptyBasket,
    InvalidSignature,
    NotFoundError,
    PaymentGatewayError,
    PaymentIntentAlreadyUsed,
    PaymentNotInitialized,
)

logger = logging.getLogger(__name__)

# First match wins.
STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidSignature, status.HTTP_403_FORBIDDEN),
    (PaymentNotInitialized, status.HTTP_409_CONFLICT),
    (PaymentIntentAlreadyUsed, status.HTTP_409_CONFLICT),
    (CheckoutInProgress, status.HTTP_409_CONFLICT),
    (DeliveryMethodMismatch, status.HTTP_409_CONFLICT),
    (EmptyBasket, status.HTTP_400_BAD_REQUEST),
    (PaymentGatewayError, status.HTTP_502_BAD_GATEWAY),
)


def status_for(exc: CheckoutError) -> int:
    for error_type, code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def checkout_exception_handler(exc, context):
    if not isinstance(exc, CheckoutError):
        return exception_handler(exc, context)

    code = status_for(exc)
    view = context.get("view")
    logger.warning(
        "checkout request failed",
        extra={"error": exc.code, "status": code, "view": type(view).__name__ if view else None},
    )
    if isinstance(exc, InvalidSignature):
        # Never tell the sender why verification failed.
        return Response({"detail": exc.code}, status=code)
    return Response({"detail": exc.code, "message": str(exc)}, status=code)
