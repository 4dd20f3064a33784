# payments/services.py
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from decimal import Decimal
from typing import Any, Dict, Optional
import logging

from appointments.models import Appointment
from users.models import User
from .models import PaymentSession
from .providers import (
    BasePaymentProvider,
    get_default_payment_provider,
    get_payment_provider,
    PAYMENT_PAID,
)

logger = logging.getLogger(__name__)


class PaymentServiceError(Exception):
    """Base exception for payment service errors"""
    pass


class PaymentAppointmentNotFoundError(PaymentServiceError):
    """Raised when the appointment to pay for does not exist"""
    pass


class PaymentSessionNotFoundError(PaymentServiceError):
    """Raised when a session reference is unknown"""
    pass


class PaymentAccessDeniedError(PaymentServiceError):
    """Raised when a patient tries to pay for or verify someone else's appointment"""
    pass


class PaymentNotAllowedError(PaymentServiceError):
    """Raised when the appointment is cancelled or already paid"""
    pass


class AppointmentPaymentService:
    """
    Collects appointment fees through a hosted checkout.
    Provider errors (PaymentProviderError) propagate to the caller.
    """

    @staticmethod
    def _build_return_urls(appointment_id) -> Dict[str, str]:
        verify_url = settings.PAYMENT_FRONTEND_URLS['VERIFY']
        return {
            'success_url': f"{verify_url}?success=true&appointmentId={appointment_id}",
            'cancel_url': f"{verify_url}?success=false&appointmentId={appointment_id}",
        }

    @staticmethod
    def create_checkout(appointment_id, user: User, currency: Optional[str] = None,
                        provider: Optional[BasePaymentProvider] = None) -> Dict[str, Any]:
        """
        Open a checkout session for the appointment fee.

        Returns:
            dict: session (PaymentSession) and payment_url

        Raises:
            PaymentAppointmentNotFoundError, PaymentAccessDeniedError,
            PaymentNotAllowedError, PaymentProviderError
        """
        try:
            appointment = Appointment.objects.get(id=appointment_id)
        except (Appointment.DoesNotExist, ValidationError, ValueError):
            raise PaymentAppointmentNotFoundError(f"Appointment {appointment_id} not found")

        if appointment.user_id != user.id:
            raise PaymentAccessDeniedError("You can only pay for your own appointments")
        if appointment.cancelled:
            raise PaymentNotAllowedError("Appointment Cancelled or not found")
        if appointment.payment:
            raise PaymentNotAllowedError("Appointment is already paid")

        provider = provider or get_default_payment_provider()
        currency = (currency or settings.PAYMENT_SETTINGS['DEFAULT_CURRENCY']).upper()
        amount = Decimal(appointment.amount)

        charge = provider.create_charge(
            appointment_id=str(appointment.id),
            amount=amount,
            currency=currency,
            customer_email=user.email,
            **AppointmentPaymentService._build_return_urls(appointment.id)
        )

        session = PaymentSession.objects.create(
            appointment=appointment,
            provider=provider.provider_name,
            session_ref=charge['session_ref'],
            payment_url=charge.get('payment_url') or '',
            amount=amount,
            currency=currency,
        )

        logger.info(f"Checkout session {session.session_ref} opened for appointment {appointment.id}")
        return {'session': session, 'payment_url': session.payment_url}

    @staticmethod
    def verify_checkout(session_ref: str, user: Optional[User] = None,
                        provider: Optional[BasePaymentProvider] = None) -> Dict[str, Any]:
        """
        Ask the provider whether a session was paid and record the result.
        Marking an appointment paid is idempotent.

        Returns:
            dict: status ('paid' | 'unpaid'), appointment, already_paid
        """
        try:
            session = PaymentSession.objects.select_related('appointment').get(session_ref=session_ref)
        except PaymentSession.DoesNotExist:
            raise PaymentSessionNotFoundError(f"Payment session {session_ref} not found")

        if user is not None and not (user.is_admin or user.is_staff) \
                and session.appointment.user_id != user.id:
            raise PaymentAccessDeniedError("You can only verify your own payments")

        provider = provider or get_payment_provider(session.provider)
        result = provider.verify(session_ref)

        with transaction.atomic():
            session = PaymentSession.objects.select_for_update().get(id=session.id)
            appointment = Appointment.objects.select_for_update().get(id=session.appointment_id)
            already_paid = appointment.payment

            if result == PAYMENT_PAID:
                if not session.is_paid:
                    session.status = PaymentSession.STATUS_PAID
                    session.paid_at = timezone.now()
                    session.save(update_fields=['status', 'paid_at', 'updated_at'])
                if not already_paid:
                    appointment.payment = True
                    appointment.save(update_fields=['payment', 'updated_at'])
            elif not session.is_paid:
                session.status = PaymentSession.STATUS_UNPAID
                session.save(update_fields=['status', 'updated_at'])

        logger.info(f"Checkout session {session_ref} verified as {result}")
        return {'status': result, 'appointment': appointment, 'already_paid': already_paid}


class WebhookService:
    """
    Service for handling webhook events from payment providers
    """

    HANDLED_EVENTS = ('checkout.session.completed', 'checkout.session.async_payment_succeeded')

    @staticmethod
    def process_webhook_event(provider_name: str, payload: bytes, signature: str) -> Dict[str, Any]:
        """
        Verify a webhook delivery and, for completed checkouts, run the same
        verification path as the patient's return from checkout.

        Raises:
            WebhookVerificationError: invalid signature or payload
        """
        provider = get_payment_provider(provider_name)
        event_data = provider.parse_webhook_event(payload, signature)
        event_type = event_data['event_type']

        if event_type not in WebhookService.HANDLED_EVENTS or not event_data.get('session_ref'):
            logger.info(f"Ignoring webhook event {event_type} from {provider_name}")
            return {'status': 'success', 'event_type': event_type, 'processed': False}

        try:
            result = AppointmentPaymentService.verify_checkout(event_data['session_ref'], provider=provider)
        except PaymentSessionNotFoundError:
            logger.warning(f"Webhook for unknown session {event_data['session_ref']}")
            return {'status': 'success', 'event_type': event_type, 'processed': False}

        logger.info(f"Processed webhook event: {event_type} from {provider_name}")
        return {
            'status': 'success',
            'event_type': event_type,
            'event_id': event_data.get('event_id'),
            'processed': True,
            'payment_status': result['status'],
        }
