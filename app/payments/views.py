# payments/views.py
from rest_framework import status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet
from rest_framework.views import APIView
from django.utils.decorators import method_decorator
from django.utils.translation import gettext_lazy as _
from django.views.decorators.csrf import csrf_exempt
from drf_spectacular.utils import extend_schema
import logging

from appointments.serializers import AppointmentSerializer
from users.permissions import IsApprovedPatient
from .providers import PaymentProviderError, PaymentProviderConfigError, WebhookVerificationError
from .serializers import PaymentSessionSerializer, CreateCheckoutSerializer, VerifyCheckoutSerializer
from .services import (
    AppointmentPaymentService,
    WebhookService,
    PaymentAppointmentNotFoundError,
    PaymentSessionNotFoundError,
    PaymentAccessDeniedError,
    PaymentNotAllowedError,
)

logger = logging.getLogger(__name__)


@extend_schema(tags=['Payments'])
class AppointmentPaymentViewSet(GenericViewSet):
    """
    Online payment of appointment fees
    """
    serializer_class = PaymentSessionSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_permissions(self):
        if self.action == 'checkout':
            permission_classes = [permissions.IsAuthenticated, IsApprovedPatient]
        else:
            permission_classes = self.permission_classes
        return [permission() for permission in permission_classes]

    @extend_schema(
        request=CreateCheckoutSerializer,
        responses={
            201: {
                'description': 'Checkout session opened',
                'example': {'payment_url': 'https://checkout.stripe.com/...', 'session': {}}
            },
            400: {'description': 'Appointment cancelled or already paid'},
            403: {'description': 'Not your appointment'},
            404: {'description': 'Appointment not found'},
            502: {'description': 'Payment provider unavailable'}
        },
        description="Open a hosted checkout for an appointment fee"
    )
    @action(detail=False, methods=['post'])
    def checkout(self, request):
        """
        POST /api/payments/checkout/
        """
        serializer = CreateCheckoutSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = AppointmentPaymentService.create_checkout(
                serializer.validated_data['appointment_id'],
                request.user,
                currency=serializer.validated_data.get('currency'),
            )
        except PaymentAppointmentNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except PaymentAccessDeniedError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except PaymentNotAllowedError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except PaymentProviderError as e:
            logger.error(f"Checkout creation failed: {str(e)}")
            return Response({'error': _('Payment provider unavailable')}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({
            'payment_url': result['payment_url'],
            'session': PaymentSessionSerializer(result['session']).data
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=VerifyCheckoutSerializer,
        responses={
            200: {
                'description': 'Verification result',
                'example': {'status': 'paid', 'message': 'Payment Successful'}
            },
            403: {'description': 'Not your payment'},
            404: {'description': 'Unknown session'},
            502: {'description': 'Payment provider unavailable'}
        },
        description="Confirm a checkout after returning from the payment page"
    )
    @action(detail=False, methods=['post'])
    def verify(self, request):
        """
        POST /api/payments/verify/
        """
        serializer = VerifyCheckoutSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = AppointmentPaymentService.verify_checkout(
                serializer.validated_data['session_ref'],
                user=request.user,
            )
        except PaymentSessionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except PaymentAccessDeniedError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except PaymentProviderError as e:
            logger.error(f"Checkout verification failed: {str(e)}")
            return Response({'error': _('Payment provider unavailable')}, status=status.HTTP_502_BAD_GATEWAY)

        message = _('Payment Successful') if result['status'] == 'paid' else _('Payment Failed')
        return Response({
            'status': result['status'],
            'message': message,
            'appointment': AppointmentSerializer(result['appointment']).data
        }, status=status.HTTP_200_OK)


@method_decorator(csrf_exempt, name='dispatch')
class StripeWebhookView(APIView):
    """
    Stripe webhook endpoint
    """
    permission_classes = [permissions.AllowAny]
    authentication_classes = []  # No authentication for webhooks

    @extend_schema(
        request={
            'type': 'object',
            'description': 'Stripe webhook payload'
        },
        responses={
            200: {
                'description': 'Webhook processed successfully',
                'example': {
                    'status': 'success',
                    'event_type': 'checkout.session.completed',
                    'processed': True
                }
            },
            400: {'description': 'Webhook verification failed'}
        },
        description="Handle Stripe webhook events",
        tags=['Webhooks']
    )
    def post(self, request):
        """
        POST /api/payments/webhooks/stripe/
        """
        signature = request.META.get('HTTP_STRIPE_SIGNATURE', '')

        try:
            result = WebhookService.process_webhook_event('stripe', request.body, signature)
        except WebhookVerificationError as e:
            logger.warning(f"Rejected Stripe webhook: {str(e)}")
            return Response({'status': 'error', 'error': str(e), 'processed': False},
                            status=status.HTTP_400_BAD_REQUEST)
        except PaymentProviderConfigError as e:
            logger.error(f"Stripe webhook received but provider is not configured: {str(e)}")
            return Response({'status': 'error', 'error': 'Provider not configured', 'processed': False},
                            status=status.HTTP_503_SERVICE_UNAVAILABLE)
        except PaymentProviderError as e:
            logger.error(f"Stripe webhook processing failed: {str(e)}")
            return Response({'status': 'error', 'error': str(e), 'processed': False},
                            status=status.HTTP_502_BAD_GATEWAY)

        return Response(result, status=status.HTTP_200_OK)
