# appointments/permissions.py
from rest_framework import permissions
from django.utils.translation import gettext_lazy as _


class IsAppointmentOwner(permissions.BasePermission):
    """
    Patients may only see and change their own appointments; admins see all
    """
    message = _("You can only access your own appointments.")

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_patient or user.is_admin or user.is_staff

    def has_object_permission(self, request, view, obj):
        if request.user.is_admin or request.user.is_staff:
            return True
        return obj.user_id == request.user.id


class CanBookAppointments(permissions.BasePermission):
    """
    Permission for booking appointments - only approved, active patients
    """
    message = _("Only approved patients can book appointments.")

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.can_book_appointments
