"""HTTP views for the payments app.

``PaymentIntentView`` (re)starts checkout for a basket: it reprices the
basket and creates or updates the gateway payment intent, returning the
basket with ``payment_intent_id`` and ``client_secret`` for the client to
confirm the payment.

``StripeWebhookView`` receives gateway events. It is unauthenticated: the
signature over the raw body is the authentication, so the body must be
read untouched (``request.body``, never ``request.data``).
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.basket.schemas import BasketDTO

from . import providers

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Stripe-Signature"


class PaymentIntentView(APIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "payments_intent"

    def post(self, request, basket_id: str):
        basket = providers.get_intent_coordinator().reconcile_intent(basket_id)
        return Response(BasketDTO.from_domain(basket).model_dump(mode="json"), status=status.HTTP_200_OK)


class StripeWebhookView(APIView):
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        payload = request.body
        outcome = providers.get_webhook_processor().handle_event(payload, request.headers.get(SIGNATURE_HEADER))
        return Response({"received": True, "outcome": outcome.value}, status=status.HTTP_200_OK)
