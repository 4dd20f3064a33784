# appointments/models.py
import uuid
from decimal import Decimal
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from doctors.models import Doctor
from .date_keys import parse_date_key, InvalidDateKeyError


class Appointment(models.Model):
    """
    A patient's booking of one time label on one date-key with one doctor.

    Lifecycle is derived from two flags:
        ACTIVE    cancelled=False, is_completed=False
        APPROVED  cancelled=False, is_completed=True
        CANCELLED cancelled=True  (terminal)
    Records are never deleted; user_data and doc_data keep the state of the
    patient and doctor at booking time.
    """

    STATUS_ACTIVE = 'active'
    STATUS_APPROVED = 'approved'
    STATUS_CANCELLED = 'cancelled'

    CANCELLED_BY_PATIENT = 'patient'
    CANCELLED_BY_ADMIN = 'admin'
    CANCELLED_BY_SYSTEM = 'system'

    CANCELLED_BY_CHOICES = [
        (CANCELLED_BY_PATIENT, _('Patient')),
        (CANCELLED_BY_ADMIN, _('Admin')),
        (CANCELLED_BY_SYSTEM, _('System')),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='appointments',
        help_text=_("Patient who booked; cleared if the account is deleted")
    )
    doctor = models.ForeignKey(
        Doctor,
        on_delete=models.SET_NULL,
        null=True,
        related_name='appointments',
        help_text=_("Doctor booked; cleared if the doctor is deleted")
    )

    # Snapshots taken at booking time
    user_data = models.JSONField(_('patient snapshot'), default=dict)
    doc_data = models.JSONField(_('doctor snapshot'), default=dict)

    slot_date = models.CharField(
        _('slot date'),
        max_length=20,
        help_text=_("Date-key in day_month_year form, e.g. 7_3_2026")
    )
    slot_time = models.CharField(
        _('slot time'),
        max_length=20,
        help_text=_("Opaque time label, e.g. 10:30 AM")
    )
    amount = models.DecimalField(
        _('amount'),
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text=_("Doctor fee at booking time")
    )
    booked_at = models.DateTimeField(_('booked at'), default=timezone.now)

    # Lifecycle flags
    cancelled = models.BooleanField(_('cancelled'), default=False)
    cancelled_by = models.CharField(
        _('cancelled by'),
        max_length=10,
        choices=CANCELLED_BY_CHOICES,
        blank=True
    )
    cancellation_reason = models.CharField(_('cancellation reason'), max_length=255, blank=True)
    cancelled_at = models.DateTimeField(_('cancelled at'), null=True, blank=True)
    is_completed = models.BooleanField(
        _('approved'),
        default=False,
        help_text=_("Set when an admin approves the appointment")
    )
    approved_at = models.DateTimeField(_('approved at'), null=True, blank=True)

    # Overlays, independent of the lifecycle
    payment = models.BooleanField(_('paid'), default=False)
    is_read = models.BooleanField(_('read by patient'), default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Appointment')
        verbose_name_plural = _('Appointments')
        db_table = 'appointments'
        ordering = ['-booked_at']
        indexes = [
            models.Index(fields=['doctor', 'slot_date'], name='appointmen_doctor__3f9a1c_idx'),
            models.Index(fields=['cancelled', 'is_completed'], name='appointmen_cancell_8e2b7d_idx'),
            models.Index(fields=['user', 'booked_at'], name='appointmen_user_id_5c4d2a_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(cancelled=True, is_completed=True),
                name='appointment_not_cancelled_and_approved'
            ),
            models.UniqueConstraint(
                fields=['doctor', 'slot_date', 'slot_time'],
                condition=Q(cancelled=False),
                name='unique_live_appointment_per_slot'
            ),
        ]

    def __str__(self):
        return f"{self.doc_data.get('name', 'Doctor')} {self.slot_date} {self.slot_time} ({self.status})"

    @property
    def status(self):
        if self.cancelled:
            return self.STATUS_CANCELLED
        if self.is_completed:
            return self.STATUS_APPROVED
        return self.STATUS_ACTIVE

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    @property
    def appointment_date(self):
        """Calendar date of the slot, or None for a malformed date-key"""
        try:
            return parse_date_key(self.slot_date)
        except InvalidDateKeyError:
            return None
