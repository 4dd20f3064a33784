from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import DoctorViewSet

router = DefaultRouter()
router.register('', DoctorViewSet, basename='doctor')

urlpatterns = [
    path('', include(router.urls)),
]

# - GET    /api/doctors/                              -> list doctors (public, ?available=true)
# - GET    /api/doctors/{id}/                         -> doctor profile with booked slots (public)
# - POST   /api/doctors/                              -> add doctor (admin, multipart with image)
# - PATCH  /api/doctors/{id}/                         -> partial update (admin)
# - DELETE /api/doctors/{id}/                         -> delete doctor (admin)
# - POST   /api/doctors/{id}/change-availability/     -> toggle availability (admin)
