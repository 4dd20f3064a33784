# doctors/models.py
import uuid
from decimal import Decimal
from django.db import models
from django.core.validators import MinValueValidator
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _


def default_address():
    return {'line1': '', 'line2': ''}


class Doctor(models.Model):
    """
    Doctor profile managed by clinic admins.

    slots_booked is the per-doctor slot ledger: a mapping of date-key
    ("day_month_year") to the list of time labels already booked on that day.
    It is only mutated through the ledger service while the doctor row is locked.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    name = models.CharField(
        _('name'),
        max_length=200,
        help_text=_("Doctor's full name")
    )
    name_extension = models.CharField(
        _('name extension'),
        max_length=20,
        blank=True,
        help_text=_("Suffix such as Jr. or III")
    )
    email = models.EmailField(
        _('email address'),
        unique=True,
        help_text=_("Where appointment notifications are sent")
    )
    image = models.URLField(
        _('image'),
        max_length=512,
        blank=True
    )
    speciality = models.CharField(_('speciality'), max_length=100)
    degree = models.CharField(_('degree'), max_length=100)
    experience = models.CharField(
        _('experience'),
        max_length=50,
        help_text=_("Free text, e.g. '4 Years'")
    )
    about = models.TextField(_('about'), blank=True)
    available = models.BooleanField(
        _('available'),
        default=True,
        help_text=_("Unavailable doctors cannot receive new bookings")
    )
    fees = models.DecimalField(
        _('fees'),
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text=_("Consultation fee charged per appointment")
    )
    address = models.JSONField(_('address'), default=default_address, blank=True)
    license_id = models.CharField(
        _('license ID'),
        max_length=100,
        blank=True,
        help_text=_("Professional license number")
    )
    slots_booked = models.JSONField(
        _('booked slots'),
        default=dict,
        blank=True,
        help_text=_("Date-key to list of booked time labels")
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Doctor')
        verbose_name_plural = _('Doctors')
        db_table = 'doctors'
        ordering = ['name']
        indexes = [
            models.Index(fields=['speciality'], name='doctors_special_1c3e5a_idx'),
            models.Index(fields=['available'], name='doctors_availab_7b2d4f_idx'),
        ]

    def __str__(self):
        return self.display_name

    @property
    def display_name(self):
        if self.name_extension:
            return f"{self.name} {self.name_extension}"
        return self.name

    def booked_times(self, slot_date: str):
        """Time labels already booked on a date-key"""
        return list((self.slots_booked or {}).get(slot_date, []))

    def is_slot_booked(self, slot_date: str, slot_time: str) -> bool:
        return slot_time in self.booked_times(slot_date)

    def add_booked_slot(self, slot_date: str, slot_time: str):
        """Append a time label to the ledger and persist it"""
        if self.is_slot_booked(slot_date, slot_time):
            raise ValidationError(_("Slot is already booked"))

        ledger = dict(self.slots_booked or {})
        ledger[slot_date] = self.booked_times(slot_date) + [slot_time]
        self.slots_booked = ledger
        self.save(update_fields=['slots_booked', 'updated_at'])

    def remove_booked_slot(self, slot_date: str, slot_time: str) -> bool:
        """
        Remove every occurrence of a time label from one date-key.
        Returns False when there was nothing to remove.
        """
        times = self.booked_times(slot_date)
        if slot_time not in times:
            return False

        ledger = dict(self.slots_booked or {})
        ledger[slot_date] = [t for t in times if t != slot_time]
        self.slots_booked = ledger
        self.save(update_fields=['slots_booked', 'updated_at'])
        return True

    def to_snapshot(self):
        """Denormalized copy stored on appointments at booking time (ledger excluded)"""
        return {
            'id': str(self.id),
            'name': self.name,
            'name_extension': self.name_extension,
            'email': self.email,
            'image': self.image,
            'speciality': self.speciality,
            'degree': self.degree,
            'experience': self.experience,
            'about': self.about,
            'fees': str(self.fees),
            'address': self.address,
        }
