# appointments/serializers.py
from rest_framework import serializers
from django.utils.translation import gettext_lazy as _

from .models import Appointment


class AppointmentSerializer(serializers.ModelSerializer):
    """
    Appointment as seen by its patient. Doctor and patient details come from the
    booking-time snapshots, so they survive later edits or deletion.
    """
    status = serializers.CharField(read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id',
            'user',
            'doctor',
            'user_data',
            'doc_data',
            'slot_date',
            'slot_time',
            'amount',
            'booked_at',
            'status',
            'cancelled',
            'cancelled_by',
            'cancellation_reason',
            'cancelled_at',
            'is_completed',
            'approved_at',
            'payment',
            'is_read',
        ]
        read_only_fields = fields


class AdminAppointmentSerializer(AppointmentSerializer):
    class Meta(AppointmentSerializer.Meta):
        fields = AppointmentSerializer.Meta.fields + ['created_at', 'updated_at']
        read_only_fields = fields


class AppointmentBookingSerializer(serializers.Serializer):
    """
    Booking request. Date-key and window rules are enforced by the booking
    policy so that rejections carry the right error category.
    """
    doctor_id = serializers.UUIDField()
    slot_date = serializers.CharField(
        max_length=20,
        help_text=_("Date-key in day_month_year form, e.g. 7_3_2026")
    )
    slot_time = serializers.CharField(
        max_length=20,
        help_text=_("Time label, e.g. 10:30 AM")
    )


class AppointmentCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class DashboardSerializer(serializers.Serializer):
    doctors = serializers.IntegerField()
    appointments = serializers.IntegerField()
    patients = serializers.IntegerField()
    latest_appointments = AdminAppointmentSerializer(many=True)


class UserAppointmentStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    approved = serializers.IntegerField()
    pending = serializers.IntegerField()
    cancelled = serializers.IntegerField()
