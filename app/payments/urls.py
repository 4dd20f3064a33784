# payments/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import AppointmentPaymentViewSet, StripeWebhookView

router = DefaultRouter()
router.register('', AppointmentPaymentViewSet, basename='payments')

urlpatterns = [
    path('webhooks/stripe/', StripeWebhookView.as_view(), name='stripe-webhook'),
    path('', include(router.urls)),
]

# - POST /api/payments/checkout/           -> open a checkout session for an appointment
# - POST /api/payments/verify/             -> confirm payment after returning from checkout
# - POST /api/payments/webhooks/stripe/    -> Stripe webhook
