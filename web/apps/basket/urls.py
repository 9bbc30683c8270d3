from django.urls import path

from .views import BasketCollectionView, BasketDetailView

app_name = "basket"

urlpatterns = [
    path("", BasketCollectionView.as_view(), name="basket-collection"),
    path("<str:basket_id>/", BasketDetailView.as_view(), name="basket-detail"),
]
