# users/views.py
from rest_framework import status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet
from rest_framework.mixins import ListModelMixin
from rest_framework.authtoken.models import Token
from django.utils.translation import gettext_lazy as _
from drf_spectacular.utils import extend_schema
import logging

from core.storage import MediaUploadError
from appointments.services import AppointmentAnalyticsService
from appointments.serializers import UserAppointmentStatsSerializer
from .models import User
from .permissions import IsClinicAdmin
from .serializers import (
    UserSerializer,
    AdminUserSerializer,
    UserRegistrationSerializer,
    LoginSerializer,
    ProfileUpdateSerializer,
    ApprovalStatusSerializer,
)
from .services import AuthenticationService, UserService, UserManagementService
from .exceptions import (
    RegistrationError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    AccountNotApprovedError,
    UserNotFoundError,
    InvalidApprovalStatusError,
)

logger = logging.getLogger(__name__)


class AuthViewSet(GenericViewSet):
    """
    ViewSet for authentication endpoints
    """

    permission_classes = [permissions.AllowAny]

    @extend_schema(
        request=UserRegistrationSerializer,
        responses={
            201: {
                'description': 'Registration successful',
                'example': {
                    'message': 'Registration submitted. You can log in once an administrator approves your account.',
                    'user': {'id': 'uuid', 'email': 'user@example.com', 'approval_status': 'pending'}
                }
            },
            400: {'description': 'Bad request'},
            502: {'description': 'ID document could not be stored'}
        },
        description="Register a new patient (multipart, ID document required)",
        tags=['Authentication']
    )
    @action(detail=False, methods=['post'])
    def register(self, request):
        """
        Register a new patient
        POST /api/auth/register/
        """
        serializer = UserRegistrationSerializer(data=request.data)

        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = dict(serializer.validated_data)
        try:
            user = AuthenticationService.register_user(
                email=data.pop('email'),
                password=data.pop('password'),
                first_name=data.pop('first_name'),
                last_name=data.pop('last_name'),
                dob=data.pop('dob'),
                valid_id_file=data.pop('valid_id'),
                **data
            )
        except (RegistrationError, EmailAlreadyExistsError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except MediaUploadError as e:
            logger.error(f"Registration upload failed for {request.data.get('email')}: {str(e)}")
            return Response({
                'error': _('Could not store the ID document. Please try again.')
            }, status=status.HTTP_502_BAD_GATEWAY)

        return Response({
            'message': _('Registration submitted. You can log in once an administrator approves your account.'),
            'user': UserSerializer(user).data
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=LoginSerializer,
        responses={
            200: {
                'description': 'Login successful',
                'example': {
                    'message': 'Login successful',
                    'user': {'id': 'uuid', 'email': 'user@example.com', 'user_type': 'Patient'},
                    'token': 'your-auth-token'
                }
            },
            400: {'description': 'Invalid credentials'},
            403: {'description': 'Registration pending, declined or blocked'}
        },
        description="User login",
        tags=['Authentication']
    )
    @action(detail=False, methods=['post'])
    def login(self, request):
        """
        User login
        POST /api/auth/login/
        """
        serializer = LoginSerializer(data=request.data)

        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            user = AuthenticationService.authenticate_user(
                serializer.validated_data['email'],
                serializer.validated_data['password'],
                request=request
            )
        except InvalidCredentialsError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except AccountNotApprovedError as e:
            return Response({
                'error': str(e),
                'approval_status': e.approval_status
            }, status=status.HTTP_403_FORBIDDEN)

        token, created = Token.objects.get_or_create(user=user)

        return Response({
            'message': _('Login successful'),
            'user': UserSerializer(user).data,
            'token': token.key
        }, status=status.HTTP_200_OK)

    @extend_schema(
        request=None,
        responses={
            200: {'description': 'Logged out successfully'},
            400: {'description': 'Logout failed'}
        },
        description="User logout - deletes authentication token",
        tags=['Authentication']
    )
    @action(detail=False, methods=['post'], permission_classes=[permissions.IsAuthenticated])
    def logout(self, request):
        """
        User logout
        POST /api/auth/logout/
        """
        deleted, _details = Token.objects.filter(user=request.user).delete()
        if not deleted:
            return Response({
                'error': _('Logout failed')
            }, status=status.HTTP_400_BAD_REQUEST)
        return Response({
            'message': _('Logged out successfully')
        }, status=status.HTTP_200_OK)

    @extend_schema(
        responses={200: UserSerializer},
        description="Get current authenticated user's profile",
        tags=['Authentication']
    )
    @action(detail=False, methods=['get'], permission_classes=[permissions.IsAuthenticated])
    def me(self, request):
        """
        Get current user profile
        GET /api/auth/me/
        """
        return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)

    @extend_schema(
        request=ProfileUpdateSerializer,
        responses={
            200: {
                'description': 'Profile updated successfully',
                'example': {
                    'message': 'Profile updated successfully',
                    'user': {'id': 'uuid', 'email': 'user@example.com', 'first_name': 'Ana'}
                }
            },
            400: {'description': 'Profile update failed'}
        },
        description="Update current user's profile (optional image upload)",
        tags=['Authentication']
    )
    @action(detail=False, methods=['patch'], url_path='update-profile', permission_classes=[permissions.IsAuthenticated])
    def update_profile(self, request):
        """
        Update current user profile
        PATCH /api/auth/update-profile/
        """
        serializer = ProfileUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = dict(serializer.validated_data)
        image_file = data.pop('image', None)
        try:
            user = UserService.update_user_profile(request.user, image_file=image_file, **data)
        except MediaUploadError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': _('Profile updated successfully'),
            'user': UserSerializer(user).data
        }, status=status.HTTP_200_OK)


@extend_schema(tags=['User Management'])
class AdminUserViewSet(GenericViewSet, ListModelMixin):
    """
    Admin management of patient accounts and registration review
    """
    serializer_class = AdminUserSerializer
    permission_classes = [permissions.IsAuthenticated, IsClinicAdmin]

    def get_queryset(self):
        return UserManagementService.get_patients()

    @extend_schema(
        description="List all patients (Admin only)",
        responses={200: AdminUserSerializer(many=True)}
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(
        description="Delete a patient account (Admin only). Appointments are kept.",
        responses={200: {'description': 'User deleted'}, 404: {'description': 'User not found'}}
    )
    def destroy(self, request, pk=None):
        try:
            UserManagementService.delete_user(pk)
        except UserNotFoundError:
            return Response({'error': _('User not found')}, status=status.HTTP_404_NOT_FOUND)
        return Response({'message': _('User deleted successfully')}, status=status.HTTP_200_OK)

    @extend_schema(
        description="Registrations awaiting review (Admin only)",
        responses={200: AdminUserSerializer(many=True)}
    )
    @action(detail=False, methods=['get'])
    def pending(self, request):
        """
        GET /api/admin/users/pending/
        """
        users = UserManagementService.get_pending_registrations()
        return Response({
            'users': AdminUserSerializer(users, many=True).data,
            'count': users.count()
        }, status=status.HTTP_200_OK)

    @extend_schema(
        request=ApprovalStatusSerializer,
        responses={
            200: {'description': 'Approval status updated'},
            400: {'description': 'Invalid status'},
            404: {'description': 'User not found'}
        },
        description="Approve, decline or block a registration (Admin only)"
    )
    @action(detail=True, methods=['post'], url_path='approval')
    def approval(self, request, pk=None):
        """
        POST /api/admin/users/{id}/approval/
        """
        serializer = ApprovalStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = UserManagementService.update_approval_status(
                pk, serializer.validated_data['approval_status']
            )
        except UserNotFoundError:
            return Response({'error': _('User not found')}, status=status.HTTP_404_NOT_FOUND)
        except InvalidApprovalStatusError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': _('Approval status updated'),
            'user': AdminUserSerializer(result['user']).data,
            'notification_sent': result['notification_sent']
        }, status=status.HTTP_200_OK)

    @extend_schema(
        description="Per-patient appointment counts (Admin only)",
        responses={200: {
            'description': 'Map of user id to counts',
            'example': {'stats': {'uuid': {'total': 3, 'approved': 1, 'pending': 1, 'cancelled': 1}}}
        }}
    )
    @action(detail=False, methods=['get'], url_path='appointment-stats')
    def appointment_stats(self, request):
        """
        GET /api/admin/users/appointment-stats/
        """
        stats = AppointmentAnalyticsService.get_users_appointment_stats()
        data = {
            user_id: UserAppointmentStatsSerializer(counts).data
            for user_id, counts in stats.items()
        }
        return Response({'stats': data}, status=status.HTTP_200_OK)
