# payments/providers/stripe_provider.py
import stripe
from typing import Dict, Any
from decimal import Decimal
from django.conf import settings
import logging

from .base_provider import (
    BasePaymentProvider,
    PaymentProviderConfigError,
    PaymentCreateError,
    PaymentVerificationError,
    WebhookVerificationError,
    PAYMENT_PAID,
    PAYMENT_UNPAID,
)

logger = logging.getLogger(__name__)


class StripePaymentProvider(BasePaymentProvider):
    """
    Stripe Checkout implementation. The checkout session id is the session_ref.
    """

    def __init__(self):
        super().__init__()
        stripe.api_key = self.config['SECRET_KEY']
        stripe.api_version = "2023-10-16"  # Pin to specific API version for consistency

    def _get_provider_name(self) -> str:
        return 'stripe'

    def _get_provider_config(self) -> Dict[str, Any]:
        """Get Stripe configuration from Django settings"""
        return settings.PAYMENT_PROVIDERS.get('STRIPE', {})

    def _validate_config(self) -> None:
        """Validate Stripe configuration"""
        for key in ('SECRET_KEY', 'PUBLISHABLE_KEY', 'WEBHOOK_SECRET'):
            if not self.config.get(key):
                raise PaymentProviderConfigError(f"Stripe {key} is required but not configured")

        secret_key = self.config['SECRET_KEY']
        if not secret_key.startswith(('sk_test_', 'sk_live_')):
            raise PaymentProviderConfigError("Invalid Stripe secret key format")

        publishable_key = self.config['PUBLISHABLE_KEY']
        if not publishable_key.startswith(('pk_test_', 'pk_live_')):
            raise PaymentProviderConfigError("Invalid Stripe publishable key format")

        if secret_key.startswith('sk_test_') != publishable_key.startswith('pk_test_'):
            raise PaymentProviderConfigError("Stripe secret and publishable keys must both be test or live keys")

    def create_charge(
        self,
        appointment_id: str,
        amount: Decimal,
        currency: str,
        success_url: str,
        cancel_url: str,
        **kwargs
    ) -> Dict[str, Any]:
        """Create a Stripe Checkout Session for one appointment fee"""
        if not self.validate_currency_support(currency):
            raise PaymentCreateError(f"Currency {currency} not supported by Stripe")

        if not self.validate_amount_limits(amount, currency):
            raise PaymentCreateError(f"Amount {amount} {currency} is invalid")

        stripe_amount = self.format_amount_for_provider(amount, currency)

        try:
            session_params = {
                'mode': 'payment',
                'line_items': [{
                    'price_data': {
                        'currency': currency.lower(),
                        'product_data': {
                            'name': kwargs.get('description') or 'Appointment Fees',
                        },
                        'unit_amount': stripe_amount,
                    },
                    'quantity': 1,
                }],
                'metadata': {'appointment_id': str(appointment_id)},
                'success_url': success_url,
                'cancel_url': cancel_url,
            }
            if kwargs.get('customer_email'):
                session_params['customer_email'] = kwargs['customer_email']

            session = stripe.checkout.Session.create(**session_params)

        except stripe.StripeError as e:
            self.log_provider_interaction('create_charge', {
                'error': str(e),
                'error_type': type(e).__name__
            }, success=False)
            raise PaymentCreateError(f"Stripe error: {str(e)}")

        self.log_provider_interaction('create_charge', {
            'session_ref': session.id,
            'amount': stripe_amount,
            'currency': currency,
        })

        return {
            'session_ref': session.id,
            'payment_url': session.url,
            'status': getattr(session, 'payment_status', None) or PAYMENT_UNPAID,
            'provider_data': {
                'stripe_session_id': session.id,
                'stripe_amount': stripe_amount,
                'stripe_currency': currency.lower(),
            }
        }

    def verify(self, session_ref: str) -> str:
        """Retrieve the Checkout Session and report whether it was paid"""
        try:
            session = stripe.checkout.Session.retrieve(session_ref)
        except stripe.StripeError as e:
            self.log_provider_interaction('verify', {
                'session_ref': session_ref,
                'error': str(e)
            }, success=False)
            raise PaymentVerificationError(f"Stripe error: {str(e)}")

        result = PAYMENT_PAID if session.payment_status == 'paid' else PAYMENT_UNPAID
        self.log_provider_interaction('verify', {'session_ref': session_ref, 'status': result})
        return result

    def parse_webhook_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """Parse and validate Stripe webhook event"""
        try:
            event = stripe.Webhook.construct_event(
                payload=payload,
                sig_header=signature,
                secret=self.config['WEBHOOK_SECRET']
            )
        except stripe.SignatureVerificationError as e:
            self.log_provider_interaction('parse_webhook_event', {
                'error': 'Invalid signature',
                'error_type': 'SignatureVerificationError'
            }, success=False)
            raise WebhookVerificationError(f"Invalid webhook signature: {str(e)}")
        except ValueError as e:
            raise WebhookVerificationError(f"Invalid webhook payload: {str(e)}")

        self.log_provider_interaction('parse_webhook_event', {
            'event_type': event['type'],
            'event_id': event['id']
        })

        event_data = {
            'event_type': event['type'],
            'event_id': event['id'],
            'session_ref': None,
            'appointment_id': None,
        }

        obj = event['data']['object']
        if obj['object'] == 'checkout.session':
            event_data['session_ref'] = obj['id']
            metadata = obj['metadata'] if 'metadata' in obj else None
            if metadata and 'appointment_id' in metadata:
                event_data['appointment_id'] = metadata['appointment_id']

        return event_data
