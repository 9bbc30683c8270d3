"""HTTP views for client baskets.

Baskets are created and edited freely by the client; the server stores them
as-is. Prices in a basket are display values only and are recomputed from
the catalog whenever money is involved (see ``apps.payments``). The payment
intent fields are owned by checkout and cannot be set through these views.
"""

from pydantic import ValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.orders.errors import BasketNotFound

from .schemas import BasketDTO, BasketInDTO
from .store import CacheBasketStore


def _save(store: CacheBasketStore, dto: BasketInDTO):
    # The payment intent fields always come from the stored basket.
    basket = dto.to_domain(current=store.get(dto.id))
    stored = store.put(basket)
    return BasketDTO.from_domain(stored or basket).model_dump(mode="json")


class BasketCollectionView(APIView):
    """Create or replace a basket identified by the ``id`` in the body."""

    def post(self, request):
        try:
            dto = BasketInDTO.model_validate(request.data)
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(_save(CacheBasketStore(), dto), status=status.HTTP_200_OK)


class BasketDetailView(APIView):
    def get(self, request, basket_id: str):
        basket = CacheBasketStore().get(basket_id)
        if basket is None:
            raise BasketNotFound(basket_id)
        return Response(BasketDTO.from_domain(basket).model_dump(mode="json"))

    def post(self, request, basket_id: str):
        if not isinstance(request.data, dict):
            return Response({"detail": "Basket must be a JSON object"}, status=status.HTTP_400_BAD_REQUEST)
        data = {**request.data, "id": basket_id}
        try:
            dto = BasketInDTO.model_validate(data)
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(_save(CacheBasketStore(), dto), status=status.HTTP_200_OK)

    def delete(self, request, basket_id: str):
        if not CacheBasketStore().delete(basket_id):
            raise BasketNotFound(basket_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
