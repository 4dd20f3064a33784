# factories/appointments.py
import factory
from django.utils import timezone
from factory import fuzzy

from appointments.models import Appointment
from .base import BaseFactory, TIME_LABELS, date_key_in
from .doctors import DoctorFactory
from .users import PatientUserFactory


class AppointmentFactory(BaseFactory):
    """
    Factory for appointments. A live (not cancelled) appointment also gets its
    slot written to the doctor's ledger, so the two stay consistent.
    """

    class Meta:
        model = Appointment

    user = factory.SubFactory(PatientUserFactory)
    doctor = factory.SubFactory(DoctorFactory)
    user_data = factory.LazyAttribute(lambda obj: obj.user.to_snapshot() if obj.user else {})
    doc_data = factory.LazyAttribute(lambda obj: obj.doctor.to_snapshot() if obj.doctor else {})
    slot_date = factory.LazyFunction(lambda: date_key_in(7))
    slot_time = fuzzy.FuzzyChoice(TIME_LABELS)
    amount = factory.LazyAttribute(lambda obj: obj.doctor.fees if obj.doctor else 0)
    booked_at = factory.LazyFunction(timezone.now)

    @factory.post_generation
    def sync_ledger(obj, create, extracted, **kwargs):
        if not create or extracted is False or obj.cancelled or obj.doctor is None:
            return
        if not obj.doctor.is_slot_booked(obj.slot_date, obj.slot_time):
            obj.doctor.add_booked_slot(obj.slot_date, obj.slot_time)


class ApprovedAppointmentFactory(AppointmentFactory):
    is_completed = True
    approved_at = factory.LazyFunction(timezone.now)


class CancelledAppointmentFactory(AppointmentFactory):
    cancelled = True
    cancelled_by = Appointment.CANCELLED_BY_PATIENT
    cancellation_reason = 'Cancelled by patient'
    cancelled_at = factory.LazyFunction(timezone.now)
