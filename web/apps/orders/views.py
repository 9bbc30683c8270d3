"""HTTP views for the orders app.

Views are kept intentionally small: they validate requests (via Pydantic),
delegate to the domain service obtained from ``providers``, and map the
result to a response. Domain errors are not caught here; the project
exception handler (``storefront.exceptions``) turns them into responses.

Order submission does not delete the basket. The client clears it once
checkout completes.
"""

from typing import Optional

from django.conf import settings
from django.core.paginator import Paginator
from pydantic import ValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from . import providers
from .errors import OrderNotFound
from .schemas import CreateOrderDTO, OrderReadDTO


def _positive_int(raw, default: int, upper: Optional[int] = None) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if value < 1:
        return default
    return min(value, upper) if upper is not None else value


def _render(order) -> dict:
    return OrderReadDTO.from_domain(order, settings.PICTURE_BASE_URL).model_dump(mode="json")


class OrdersCollectionView(APIView):
    """List a buyer's orders or submit a new order.

    POST responses:
        - 201 with the order when it is created.
        - 400 for payload validation errors or an empty basket.
        - 404 when the basket, a product or the delivery method is missing.
        - 409 when the basket has no payment intent yet, the intent already
          settled another order, or another checkout step holds the basket.
    """

    throttle_classes = [ScopedRateThrottle]

    def get_throttles(self):
        # DRF evaluates throttles in initial(), before get/post
        self.throttle_scope = "orders_list" if self.request.method == "GET" else "orders_create"
        return [throttle() for throttle in self.throttle_classes]

    def get(self, request):
        buyer_email = (request.GET.get("buyer_email") or "").strip().lower()
        if not buyer_email:
            return Response({"detail": "buyer_email is required"}, status=status.HTTP_400_BAD_REQUEST)

        page = _positive_int(request.GET.get("page"), 1)
        page_size = _positive_int(request.GET.get("page_size"), 20, upper=100)
        p = Paginator(providers.get_order_store().list_for_buyer(buyer_email), page_size)
        page_obj = p.get_page(page)

        return Response(
            {
                "count": p.count,
                "page": page_obj.number,
                "page_size": page_size,
                "results": [_render(o) for o in page_obj.object_list],
            },
            status=status.HTTP_200_OK,
        )

    def post(self, request):
        try:
            dto = CreateOrderDTO.model_validate(request.data)
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        order = providers.get_order_assembler().create_order(
            basket_id=dto.basket_id,
            ship_to_address=dto.ship_to_address.to_domain(),
            delivery_method_id=dto.delivery_method_id,
            buyer_email=dto.buyer_email,
        )
        return Response(_render(order), status=status.HTTP_201_CREATED)


class RetrieveOrderView(APIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def get(self, request, oid):
        order = providers.get_order_store().get(oid)
        if order is None:
            raise OrderNotFound(oid)
        return Response(_render(order), status=status.HTTP_200_OK)
