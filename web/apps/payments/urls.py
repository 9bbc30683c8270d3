from django.urls import path

from .views import PaymentIntentView, StripeWebhookView

app_name = "payments"

urlpatterns = [
    # Must come before the basket route, which would otherwise match "webhook".
    path("webhook/", StripeWebhookView.as_view(), name="webhook"),
    path("<str:basket_id>/", PaymentIntentView.as_view(), name="payment-intent"),
]
