# core/notifications.py
from django.core.mail import EmailMultiAlternatives
from django.conf import settings
from django.template.loader import render_to_string
import logging
import time
from functools import wraps
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class NotificationDeliveryError(Exception):
    """Raised internally when an email cannot be delivered"""
    pass


# Notification events and their email subjects. Templates live at emails/<event>.html|.txt
ADMIN_NEW_REGISTRATION = 'admin_new_registration'
REGISTRATION_APPROVED = 'registration_approved'
REGISTRATION_DECLINED = 'registration_declined'
DOCTOR_NEW_APPOINTMENT = 'doctor_new_appointment'
APPOINTMENT_CANCELLED = 'appointment_cancelled'

EVENT_SUBJECTS = {
    ADMIN_NEW_REGISTRATION: 'New patient registration awaiting approval',
    REGISTRATION_APPROVED: 'Your registration has been approved',
    REGISTRATION_DECLINED: 'Your registration has been declined',
    DOCTOR_NEW_APPOINTMENT: 'New appointment booked',
    APPOINTMENT_CANCELLED: 'Appointment cancelled',
}


def retry_on_email_failure(func):
    """Retry email sending with linear backoff using the gateway's attempt settings"""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        last_exception = None
        for attempt in range(self.max_attempts):
            try:
                return func(self, *args, **kwargs)
            except Exception as e:
                last_exception = e
                logger.warning(
                    f"Email sending attempt {attempt + 1} failed: {str(e)}"
                )
                if attempt < self.max_attempts - 1 and self.retry_delay:
                    time.sleep(self.retry_delay * (attempt + 1))

        raise NotificationDeliveryError(
            f"Failed to send email after {self.max_attempts} attempts: {str(last_exception)}"
        )
    return wrapper


class NotificationGateway:
    """
    Best-effort email notifications.

    notify() never raises: delivery problems are logged and reported as False so
    that a failed email can never undo a booking, cancellation or approval.
    """

    def __init__(self, from_email: Optional[str] = None, admin_email: Optional[str] = None,
                 enabled: bool = True, max_attempts: int = 3, retry_delay: float = 1):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self.admin_email = admin_email
        self.enabled = enabled
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay

    def notify(self, event: str, payload: Dict[str, Any]) -> bool:
        """
        Send the email for an event.

        Args:
            event: One of the EVENT_SUBJECTS keys
            payload: Template context; 'recipient' selects the addressee
                     (admin events default to the configured admin address)

        Returns:
            bool: True if the email was handed to the mail backend
        """
        if not self.enabled:
            logger.debug(f"Notifications disabled, skipping '{event}'")
            return False

        if event not in EVENT_SUBJECTS:
            logger.error(f"Unknown notification event '{event}'")
            return False

        try:
            recipient = self._resolve_recipient(event, payload)
            self._send(EVENT_SUBJECTS[event], event, payload, recipient)
            logger.info(f"Notification '{event}' sent to {recipient}")
            return True
        except Exception as e:
            logger.error(f"Notification '{event}' failed: {str(e)}")
            return False

    def close(self) -> None:
        """Release mail connections held by this gateway"""
        logger.debug("Notification gateway closed")

    def _resolve_recipient(self, event: str, payload: Dict[str, Any]) -> str:
        recipient = payload.get('recipient')
        if not recipient and event == ADMIN_NEW_REGISTRATION:
            recipient = self.admin_email
        if not recipient:
            raise NotificationDeliveryError(f"No recipient configured for '{event}'")
        return recipient

    def _base_context(self) -> Dict[str, Any]:
        return {
            'site_name': getattr(settings, 'SITE_NAME', 'Clinic Booking'),
            'site_url': settings.FRONTEND_URL,
            'support_email': getattr(settings, 'SUPPORT_EMAIL', ''),
        }

    @retry_on_email_failure
    def _send(self, subject: str, template_name: str, context: Dict[str, Any], recipient: str) -> None:
        full_context = {**self._base_context(), **context}

        html_content = render_to_string(f'emails/{template_name}.html', full_context)
        text_content = render_to_string(f'emails/{template_name}.txt', full_context)

        email = EmailMultiAlternatives(
            subject=subject,
            body=text_content,
            from_email=self.from_email,
            to=[recipient],
        )
        email.attach_alternative(html_content, "text/html")
        email.send(fail_silently=False)


_notification_gateway: Optional[NotificationGateway] = None


def get_notification_gateway() -> NotificationGateway:
    """Return the process-wide gateway, building it from settings on first use"""
    global _notification_gateway
    if _notification_gateway is None:
        config = getattr(settings, 'NOTIFICATIONS', {})
        _notification_gateway = NotificationGateway(
            admin_email=config.get('ADMIN_EMAIL') or None,
            enabled=config.get('ENABLED', True),
            max_attempts=config.get('MAX_ATTEMPTS', 3),
            retry_delay=config.get('RETRY_DELAY_SECONDS', 1),
        )
        logger.info("Created notification gateway")
    return _notification_gateway


def reset_notification_gateway() -> None:
    """Tear down the cached gateway (settings changes, tests)"""
    global _notification_gateway
    if _notification_gateway is not None:
        _notification_gateway.close()
    _notification_gateway = None
