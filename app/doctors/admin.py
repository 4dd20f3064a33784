from django.contrib import admin

from .models import Doctor


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ['name', 'speciality', 'email', 'fees', 'available', 'created_at']
    list_filter = ['speciality', 'available']
    search_fields = ['name', 'email', 'license_id']
    readonly_fields = ['slots_booked', 'created_at', 'updated_at']
