# appointments/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import AppointmentViewSet, AdminAppointmentViewSet

# 'admin' is registered first so it is not captured as an appointment id
router = DefaultRouter()
router.register('admin', AdminAppointmentViewSet, basename='admin-appointment')
router.register('', AppointmentViewSet, basename='appointment')

urlpatterns = [
    path('', include(router.urls)),
]

# The resulting URL patterns will be:
#
# Patient:
# - GET    /api/appointments/                         -> own appointments
# - POST   /api/appointments/                         -> book an appointment
# - GET    /api/appointments/{id}/                    -> appointment detail
# - POST   /api/appointments/check/                   -> dry-run the booking rules
# - POST   /api/appointments/{id}/cancel/             -> cancel own appointment
# - POST   /api/appointments/{id}/mark-read/          -> mark as read
#
# Admin:
# - GET    /api/appointments/admin/                   -> all appointments (expires past ones first)
# - POST   /api/appointments/admin/{id}/cancel/       -> cancel any appointment
# - POST   /api/appointments/admin/{id}/approve/      -> approve an active appointment
# - GET    /api/appointments/admin/dashboard/         -> counts and latest appointments
