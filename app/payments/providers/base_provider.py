from abc import ABC, abstractmethod
from typing import Dict, Any, List
from decimal import Decimal, ROUND_HALF_UP
from django.conf import settings
import logging

logger = logging.getLogger(__name__)


class PaymentProviderError(Exception):
    """Base exception for payment provider errors"""
    pass


class PaymentProviderConfigError(PaymentProviderError):
    """Raised when provider configuration is invalid"""
    pass


class PaymentCreateError(PaymentProviderError):
    """Raised when a checkout session cannot be created"""
    pass


class PaymentVerificationError(PaymentProviderError):
    """Raised when the provider cannot report a session's status"""
    pass


class WebhookVerificationError(PaymentProviderError):
    """Raised when webhook verification fails"""
    pass


PAYMENT_PAID = 'paid'
PAYMENT_UNPAID = 'unpaid'

ZERO_DECIMAL_CURRENCIES = ('JPY', 'KRW')


class BasePaymentProvider(ABC):
    """
    Abstract base class for payment providers.

    A provider turns an appointment fee into a hosted checkout session and later
    answers whether that session was paid.
    """

    def __init__(self):
        self.provider_name = self._get_provider_name()
        self.config = self._get_provider_config()
        self._validate_config()

    @abstractmethod
    def _get_provider_name(self) -> str:
        """Return the provider name (e.g., 'stripe')"""
        pass

    @abstractmethod
    def _get_provider_config(self) -> Dict[str, Any]:
        """Return provider-specific configuration from settings"""
        pass

    @abstractmethod
    def _validate_config(self) -> None:
        """Validate provider configuration, raise PaymentProviderConfigError if invalid"""
        pass

    @abstractmethod
    def create_charge(
        self,
        appointment_id: str,
        amount: Decimal,
        currency: str,
        success_url: str,
        cancel_url: str,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Open a checkout session for an appointment fee

        Returns:
            Dict containing:
                - session_ref: Provider's session identifier
                - payment_url: Hosted page the patient is sent to
                - status: Provider's initial session status
                - provider_data: Raw provider response data

        Raises:
            PaymentCreateError: If the session cannot be created
        """
        pass

    @abstractmethod
    def verify(self, session_ref: str) -> str:
        """
        Ask the provider whether a session has been paid

        Returns:
            PAYMENT_PAID or PAYMENT_UNPAID

        Raises:
            PaymentVerificationError: If the provider cannot be reached or the session is unknown
        """
        pass

    @abstractmethod
    def parse_webhook_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """
        Verify and parse a webhook delivery

        Returns:
            Dict containing:
                - event_type: Type of webhook event
                - event_id: Unique event ID
                - session_ref: Checkout session the event refers to (if any)
                - appointment_id: Appointment from the session metadata (if any)

        Raises:
            WebhookVerificationError: If the signature or payload is invalid
        """
        pass

    def is_enabled(self) -> bool:
        """Check if provider is enabled"""
        return self.config.get('ENABLED', False)

    def get_supported_currencies(self) -> List[str]:
        return settings.PAYMENT_SETTINGS.get('SUPPORTED_CURRENCIES', ['USD'])

    def validate_currency_support(self, currency: str) -> bool:
        """Check if currency is supported by this provider"""
        supported = self.get_supported_currencies()
        return currency.upper() in [c.upper() for c in supported]

    def validate_amount_limits(self, amount: Decimal, currency: str) -> bool:
        """Amount must be positive"""
        return amount > Decimal('0.00')

    def format_amount_for_provider(self, amount: Decimal, currency: str) -> int:
        """
        Convert to the smallest currency unit (cents for USD, whole yen for JPY)
        """
        amount = Decimal(amount)
        if currency.upper() in ZERO_DECIMAL_CURRENCIES:
            return int(amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
        return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))

    def format_amount_from_provider(self, amount: int, currency: str) -> Decimal:
        if currency.upper() in ZERO_DECIMAL_CURRENCIES:
            return Decimal(amount)
        return Decimal(amount) / 100

    def log_provider_interaction(self, action: str, data: Dict[str, Any], success: bool = True):
        """Log provider interactions for debugging and audit"""
        log_data = {
            'provider': self.provider_name,
            'action': action,
            'success': success,
            'data_keys': list(data.keys()) if isinstance(data, dict) else 'non-dict'
        }

        if success:
            logger.info(f"Payment provider interaction: {log_data}")
        else:
            logger.error(f"Payment provider interaction failed: {log_data}")
