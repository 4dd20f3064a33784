from decimal import Decimal
from unittest.mock import patch, MagicMock

import stripe
from django.test import TestCase, override_settings

from payments.providers import (
    PaymentProviderFactory,
    PaymentProviderConfigError,
    PaymentCreateError,
    PaymentVerificationError,
    WebhookVerificationError,
    PAYMENT_PAID,
    PAYMENT_UNPAID,
)
from payments.providers.stripe_provider import StripePaymentProvider


STRIPE_TEST_SETTINGS = {
    'STRIPE': {
        'ENABLED': True,
        'PUBLISHABLE_KEY': 'pk_test_123',
        'SECRET_KEY': 'sk_test_123',
        'WEBHOOK_SECRET': 'whsec_test',
    }
}


@override_settings(PAYMENT_PROVIDERS=STRIPE_TEST_SETTINGS)
class StripePaymentProviderTestCase(TestCase):
    """Test cases for the Stripe Checkout provider"""

    def setUp(self):
        self.provider = StripePaymentProvider()

    @patch('payments.providers.stripe_provider.stripe.checkout.Session.create')
    def test_create_charge(self, mock_create):
        mock_create.return_value = MagicMock(
            id='cs_test_1', url='https://checkout.stripe.com/c/cs_test_1', payment_status='unpaid'
        )

        charge = self.provider.create_charge(
            appointment_id='appt-1',
            amount=Decimal('45.50'),
            currency='USD',
            success_url='https://app.example.com/verify?success=true',
            cancel_url='https://app.example.com/verify?success=false',
            customer_email='ana@example.com',
        )

        self.assertEqual(charge['session_ref'], 'cs_test_1')
        self.assertEqual(charge['payment_url'], 'https://checkout.stripe.com/c/cs_test_1')
        params = mock_create.call_args[1]
        self.assertEqual(params['mode'], 'payment')
        self.assertEqual(params['line_items'][0]['price_data']['unit_amount'], 4550)
        self.assertEqual(params['line_items'][0]['price_data']['currency'], 'usd')
        self.assertEqual(params['metadata'], {'appointment_id': 'appt-1'})
        self.assertEqual(params['customer_email'], 'ana@example.com')

    @patch('payments.providers.stripe_provider.stripe.checkout.Session.create')
    def test_create_charge_stripe_error(self, mock_create):
        mock_create.side_effect = stripe.StripeError('card network down')

        with self.assertRaises(PaymentCreateError):
            self.provider.create_charge('appt-1', Decimal('10.00'), 'USD', 'https://s', 'https://c')

    def test_create_charge_rejects_unsupported_currency(self):
        with self.assertRaises(PaymentCreateError):
            self.provider.create_charge('appt-1', Decimal('10.00'), 'XYZ', 'https://s', 'https://c')

    def test_create_charge_rejects_zero_amount(self):
        with self.assertRaises(PaymentCreateError):
            self.provider.create_charge('appt-1', Decimal('0.00'), 'USD', 'https://s', 'https://c')

    @patch('payments.providers.stripe_provider.stripe.checkout.Session.retrieve')
    def test_verify(self, mock_retrieve):
        mock_retrieve.return_value = MagicMock(payment_status='paid')
        self.assertEqual(self.provider.verify('cs_test_1'), PAYMENT_PAID)

        mock_retrieve.return_value = MagicMock(payment_status='unpaid')
        self.assertEqual(self.provider.verify('cs_test_1'), PAYMENT_UNPAID)

    @patch('payments.providers.stripe_provider.stripe.checkout.Session.retrieve')
    def test_verify_stripe_error(self, mock_retrieve):
        mock_retrieve.side_effect = stripe.StripeError('no such session')

        with self.assertRaises(PaymentVerificationError):
            self.provider.verify('cs_missing')

    @patch('payments.providers.stripe_provider.stripe.Webhook.construct_event')
    def test_parse_checkout_webhook(self, mock_construct):
        mock_construct.return_value = {
            'id': 'evt_1',
            'type': 'checkout.session.completed',
            'data': {'object': {
                'object': 'checkout.session',
                'id': 'cs_test_1',
                'metadata': {'appointment_id': 'appt-1'},
            }},
        }

        event = self.provider.parse_webhook_event(b'{}', 'sig')

        self.assertEqual(event['event_type'], 'checkout.session.completed')
        self.assertEqual(event['session_ref'], 'cs_test_1')
        self.assertEqual(event['appointment_id'], 'appt-1')
        self.assertEqual(mock_construct.call_args[1]['secret'], 'whsec_test')

    @patch('payments.providers.stripe_provider.stripe.Webhook.construct_event')
    def test_parse_other_webhook(self, mock_construct):
        mock_construct.return_value = {
            'id': 'evt_2',
            'type': 'charge.refunded',
            'data': {'object': {'object': 'charge', 'id': 'ch_1'}},
        }

        event = self.provider.parse_webhook_event(b'{}', 'sig')

        self.assertIsNone(event['session_ref'])

    @patch('payments.providers.stripe_provider.stripe.Webhook.construct_event')
    def test_parse_webhook_bad_signature(self, mock_construct):
        mock_construct.side_effect = stripe.SignatureVerificationError('bad signature', 'sig')

        with self.assertRaises(WebhookVerificationError):
            self.provider.parse_webhook_event(b'{}', 'sig')

    @patch('payments.providers.stripe_provider.stripe.Webhook.construct_event')
    def test_parse_webhook_bad_payload(self, mock_construct):
        mock_construct.side_effect = ValueError('not json')

        with self.assertRaises(WebhookVerificationError):
            self.provider.parse_webhook_event(b'nope', 'sig')

    def test_amount_conversion(self):
        self.assertEqual(self.provider.format_amount_for_provider(Decimal('19.999'), 'USD'), 2000)
        self.assertEqual(self.provider.format_amount_for_provider(Decimal('500'), 'JPY'), 500)
        self.assertEqual(self.provider.format_amount_from_provider(4550, 'USD'), Decimal('45.50'))


class StripeConfigTestCase(TestCase):

    def test_missing_secret(self):
        config = {'STRIPE': {**STRIPE_TEST_SETTINGS['STRIPE'], 'SECRET_KEY': ''}}
        with override_settings(PAYMENT_PROVIDERS=config):
            with self.assertRaises(PaymentProviderConfigError):
                StripePaymentProvider()

    def test_mixed_test_and_live_keys(self):
        config = {'STRIPE': {**STRIPE_TEST_SETTINGS['STRIPE'], 'PUBLISHABLE_KEY': 'pk_live_123'}}
        with override_settings(PAYMENT_PROVIDERS=config):
            with self.assertRaises(PaymentProviderConfigError):
                StripePaymentProvider()


class PaymentProviderFactoryTestCase(TestCase):

    def setUp(self):
        PaymentProviderFactory.clear_cache()
        self.addCleanup(PaymentProviderFactory.clear_cache)

    @override_settings(PAYMENT_PROVIDERS=STRIPE_TEST_SETTINGS)
    def test_get_default_provider(self):
        provider = PaymentProviderFactory.get_default_provider()

        self.assertIsInstance(provider, StripePaymentProvider)
        self.assertIs(PaymentProviderFactory.get_provider('STRIPE'), provider)

    def test_unknown_provider(self):
        with self.assertRaises(PaymentProviderConfigError):
            PaymentProviderFactory.get_provider('razorpay')

    def test_disabled_provider(self):
        config = {'STRIPE': {**STRIPE_TEST_SETTINGS['STRIPE'], 'ENABLED': False}}
        with override_settings(PAYMENT_PROVIDERS=config):
            with self.assertRaises(PaymentProviderConfigError):
                PaymentProviderFactory.get_provider('stripe')

    def test_register_rejects_non_provider(self):
        with self.assertRaises(ValueError):
            PaymentProviderFactory.register_provider('fake', object)
