# users/permissions.py
from rest_framework import permissions
from django.utils.translation import gettext_lazy as _


class IsClinicAdmin(permissions.BasePermission):
    """
    Clinic administrators (Admin user type or Django staff)
    """
    message = _("Only administrators can perform this action.")

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and (user.is_admin or user.is_staff))


class IsApprovedPatient(permissions.BasePermission):
    """
    Patients whose registration has been approved
    """
    message = _("Your registration must be approved before you can use this feature.")

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_patient and user.is_approved and user.is_active
