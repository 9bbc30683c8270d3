from django.urls import include, path

urlpatterns = [
    path("", include("apps.monitoring.urls")),
    path("api/basket/", include("apps.basket.urls")),
    path("api/catalog/", include("apps.catalog.urls")),
    path("api/orders/", include("apps.orders.urls")),
    path("api/payments/", include("apps.payments.urls")),
]
