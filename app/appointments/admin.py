from django.contrib import admin

from .models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['slot_date', 'slot_time', 'doctor', 'user', 'amount', 'cancelled', 'is_completed', 'payment', 'booked_at']
    list_filter = ['cancelled', 'is_completed', 'payment', 'cancelled_by']
    search_fields = ['user__email', 'doctor__name', 'slot_date']
    # Lifecycle changes go through the services so the slot ledger stays in step
    readonly_fields = [
        'user', 'doctor', 'user_data', 'doc_data', 'slot_date', 'slot_time', 'amount', 'booked_at',
        'cancelled', 'cancelled_by', 'cancellation_reason', 'cancelled_at', 'is_completed',
        'approved_at', 'payment', 'created_at', 'updated_at'
    ]
