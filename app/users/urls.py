from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import AuthViewSet, AdminUserViewSet

# Create router for ViewSets
router = DefaultRouter()
router.register('auth', AuthViewSet, basename='auth')
router.register('admin/users', AdminUserViewSet, basename='admin-users')

urlpatterns = [
    path('', include(router.urls)),
]

# - POST   /api/auth/register/                       -> register patient (multipart, ID document)
# - POST   /api/auth/login/                          -> token login, gated on approval status
# - POST   /api/auth/logout/                         -> delete token
# - GET    /api/auth/me/                             -> current profile
# - PATCH  /api/auth/update-profile/                 -> update profile, optional image
# - GET    /api/admin/users/                         -> list patients
# - GET    /api/admin/users/pending/                 -> registrations awaiting review
# - POST   /api/admin/users/{id}/approval/           -> approve / decline / block
# - DELETE /api/admin/users/{id}/                    -> delete patient
# - GET    /api/admin/users/appointment-stats/       -> per-patient appointment counts
