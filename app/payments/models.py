# payments/models.py
import uuid
from django.db import models
from django.utils.translation import gettext_lazy as _
from django.core.validators import MinValueValidator
from decimal import Decimal

from appointments.models import Appointment


class PaymentSession(models.Model):
    """
    One hosted checkout session opened for an appointment fee.
    Paying only flips Appointment.payment; it never changes the lifecycle.
    """

    STATUS_PENDING = 'pending'
    STATUS_PAID = 'paid'
    STATUS_UNPAID = 'unpaid'

    STATUS_CHOICES = [
        (STATUS_PENDING, _('Pending')),
        (STATUS_PAID, _('Paid')),
        (STATUS_UNPAID, _('Unpaid')),
    ]

    PROVIDER_CHOICES = [
        ('stripe', _('Stripe')),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    appointment = models.ForeignKey(
        Appointment,
        on_delete=models.CASCADE,
        related_name='payment_sessions',
        help_text=_("Appointment whose fee this session collects")
    )
    provider = models.CharField(
        _('payment provider'),
        max_length=20,
        choices=PROVIDER_CHOICES,
        default='stripe'
    )
    session_ref = models.CharField(
        _('session reference'),
        max_length=255,
        unique=True,
        help_text=_("Provider's checkout session id")
    )
    payment_url = models.URLField(_('payment URL'), max_length=1024, blank=True)
    amount = models.DecimalField(
        _('amount'),
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    currency = models.CharField(_('currency'), max_length=3, default='USD')
    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING
    )
    paid_at = models.DateTimeField(_('paid at'), null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Payment Session')
        verbose_name_plural = _('Payment Sessions')
        db_table = 'payment_sessions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['appointment', 'status'], name='payment_ses_appoint_2d7e41_idx'),
        ]

    def __str__(self):
        return f"{self.provider} {self.session_ref} ({self.status})"

    @property
    def is_paid(self):
        return self.status == self.STATUS_PAID
