from django.urls import path

from .views import DeliveryMethodsView

app_name = "catalog"

urlpatterns = [
    path("delivery-methods/", DeliveryMethodsView.as_view(), name="delivery-methods"),
]
