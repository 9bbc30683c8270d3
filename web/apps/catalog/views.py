from rest_framework.response import Response
from rest_framework.views import APIView

from .repository import DjangoDeliveryCatalog


class DeliveryMethodsView(APIView):
    """List the delivery methods a client can choose at checkout."""

    def get(self, request):
        methods = DjangoDeliveryCatalog().list_all()
        return Response(
            [
                {
                    "id": m.id,
                    "short_name": m.short_name,
                    "description": m.description,
                    "delivery_time": m.delivery_time,
                    "cost": str(m.cost),
                }
                for m in methods
            ]
        )
