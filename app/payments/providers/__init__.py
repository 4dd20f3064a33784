from typing import Dict, Type, List
from django.conf import settings
import logging

from .base_provider import (
    BasePaymentProvider,
    PaymentProviderError,
    PaymentProviderConfigError,
    PaymentCreateError,
    PaymentVerificationError,
    WebhookVerificationError,
    PAYMENT_PAID,
    PAYMENT_UNPAID,
)
from .stripe_provider import StripePaymentProvider

logger = logging.getLogger(__name__)


class PaymentProviderFactory:
    """
    Factory class for creating payment provider instances
    Manages provider registration and instantiation
    """

    # Registry of available providers
    _providers: Dict[str, Type[BasePaymentProvider]] = {
        'stripe': StripePaymentProvider,
    }

    # Cache for provider instances
    _instances: Dict[str, BasePaymentProvider] = {}

    @classmethod
    def register_provider(cls, name: str, provider_class: Type[BasePaymentProvider]) -> None:
        if not issubclass(provider_class, BasePaymentProvider):
            raise ValueError("Provider class must extend BasePaymentProvider")

        cls._providers[name.lower()] = provider_class
        cls._instances.pop(name.lower(), None)
        logger.info(f"Registered payment provider: {name}")

    @classmethod
    def get_provider(cls, name: str) -> BasePaymentProvider:
        """
        Get payment provider instance by name

        Raises:
            PaymentProviderConfigError: If provider not found, misconfigured or disabled
        """
        name = name.lower()

        if name in cls._instances:
            return cls._instances[name]

        if name not in cls._providers:
            available = ', '.join(cls._providers.keys())
            raise PaymentProviderConfigError(
                f"Payment provider '{name}' not found. Available providers: {available}"
            )

        instance = cls._providers[name]()
        if not instance.is_enabled():
            raise PaymentProviderConfigError(f"Payment provider '{name}' is disabled")

        cls._instances[name] = instance
        logger.info(f"Created payment provider instance: {name}")
        return instance

    @classmethod
    def get_default_provider(cls) -> BasePaymentProvider:
        return cls.get_provider(settings.PAYMENT_SETTINGS.get('DEFAULT_PROVIDER', 'stripe'))

    @classmethod
    def get_provider_names(cls) -> List[str]:
        return list(cls._providers.keys())

    @classmethod
    def clear_cache(cls) -> None:
        """Clear all cached provider instances"""
        cls._instances.clear()
        logger.info("Cleared payment provider cache")


def get_payment_provider(name: str) -> BasePaymentProvider:
    """Get payment provider by name"""
    return PaymentProviderFactory.get_provider(name)


def get_default_payment_provider() -> BasePaymentProvider:
    """Get default payment provider"""
    return PaymentProviderFactory.get_default_provider()
