# appointments/views.py
from rest_framework import status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet
from rest_framework.mixins import ListModelMixin, RetrieveModelMixin
from django.utils.translation import gettext_lazy as _
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes
import logging

from doctors.services import DoctorNotFoundError
from users.permissions import IsClinicAdmin
from .models import Appointment
from .permissions import IsAppointmentOwner, CanBookAppointments
from .serializers import (
    AppointmentSerializer,
    AdminAppointmentSerializer,
    AppointmentBookingSerializer,
    AppointmentCancelSerializer,
    DashboardSerializer,
)
from .services import (
    AppointmentBookingService,
    AppointmentManagementService,
    AppointmentAnalyticsService,
    BookingPolicy,
    AppointmentServiceError,
    AppointmentValidationError,
    BookingPolicyViolation,
    AppointmentNotFoundError,
    AppointmentAccessDeniedError,
    AppointmentStateError,
    AppointmentStorageError,
)

logger = logging.getLogger(__name__)


def appointment_error_response(exc: Exception) -> Response:
    """Map service exceptions to HTTP responses"""
    if isinstance(exc, BookingPolicyViolation):
        return Response({'error': str(exc), 'reason': exc.reason}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, (AppointmentValidationError, AppointmentStateError)):
        return Response({'error': str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, (AppointmentNotFoundError, DoctorNotFoundError)):
        return Response({'error': str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, AppointmentAccessDeniedError):
        return Response({'error': str(exc)}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, AppointmentStorageError):
        logger.error(f"Appointment storage failure: {str(exc)}")
        return Response({'error': _('Appointment could not be saved, please try again')},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.error(f"Unexpected appointment error: {str(exc)}")
    return Response({'error': str(exc)}, status=status.HTTP_400_BAD_REQUEST)


@extend_schema(tags=['Appointments'])
class AppointmentViewSet(GenericViewSet, ListModelMixin, RetrieveModelMixin):
    """
    Patient appointment endpoints: book, list own, cancel, mark read
    """
    serializer_class = AppointmentSerializer
    permission_classes = [permissions.IsAuthenticated, IsAppointmentOwner]

    def get_queryset(self):
        user = self.request.user
        if user.is_admin or user.is_staff:
            return Appointment.objects.select_related('doctor', 'user')
        return AppointmentManagementService.get_user_appointments(user)

    def get_permissions(self):
        if self.action in ['create', 'check']:
            permission_classes = [permissions.IsAuthenticated, CanBookAppointments]
        else:
            permission_classes = self.permission_classes
        return [permission() for permission in permission_classes]

    @extend_schema(
        request=AppointmentBookingSerializer,
        responses={
            201: AppointmentSerializer,
            400: {'description': 'Invalid request or booking rule violated'},
            403: {'description': 'Only approved patients can book'},
            404: {'description': 'Doctor not found'}
        },
        description="Book an appointment with a doctor"
    )
    def create(self, request):
        serializer = AppointmentBookingSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            appointment = AppointmentBookingService.book_appointment(
                user=request.user,
                doctor_id=serializer.validated_data['doctor_id'],
                slot_date=serializer.validated_data['slot_date'],
                slot_time=serializer.validated_data['slot_time'],
            )
        except (AppointmentServiceError, DoctorNotFoundError) as e:
            return appointment_error_response(e)

        return Response({
            'message': _('Appointment Booked'),
            'appointment': AppointmentSerializer(appointment).data
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=AppointmentBookingSerializer,
        responses={200: {
            'description': 'Booking decision',
            'example': {'allowed': False, 'reason': 'slot_taken', 'message': 'Slot Not Available'}
        }, 404: {'description': 'Doctor not found'}},
        description="Check whether a booking would be accepted, without booking"
    )
    @action(detail=False, methods=['post'])
    def check(self, request):
        """
        POST /api/appointments/check/
        """
        serializer = AppointmentBookingSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            decision = BookingPolicy.propose_booking(
                serializer.validated_data['doctor_id'],
                serializer.validated_data['slot_date'],
                serializer.validated_data['slot_time'],
            )
        except DoctorNotFoundError as e:
            return appointment_error_response(e)

        decision.pop('appointment_date', None)
        return Response(decision, status=status.HTTP_200_OK)

    @extend_schema(
        request=AppointmentCancelSerializer,
        responses={
            200: AppointmentSerializer,
            403: {'description': 'Not your appointment'},
            404: {'description': 'Appointment not found'}
        },
        description="Cancel one of your appointments"
    )
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        POST /api/appointments/{id}/cancel/
        """
        serializer = AppointmentCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = AppointmentManagementService.cancel_appointment(
                pk,
                actor=Appointment.CANCELLED_BY_PATIENT,
                user=request.user,
                reason=serializer.validated_data.get('reason'),
            )
        except AppointmentServiceError as e:
            return appointment_error_response(e)

        message = _('Appointment was already cancelled') if result['already_cancelled'] else _('Appointment Cancelled')
        return Response({
            'message': message,
            'appointment': AppointmentSerializer(result['appointment']).data
        }, status=status.HTTP_200_OK)

    @extend_schema(
        request=None,
        responses={200: AppointmentSerializer, 404: {'description': 'Appointment not found'}},
        description="Mark an appointment as read"
    )
    @action(detail=True, methods=['post'], url_path='mark-read')
    def mark_read(self, request, pk=None):
        """
        POST /api/appointments/{id}/mark-read/
        """
        try:
            appointment = AppointmentManagementService.mark_appointment_read(pk, request.user)
        except AppointmentServiceError as e:
            return appointment_error_response(e)

        return Response({'appointment': AppointmentSerializer(appointment).data}, status=status.HTTP_200_OK)


@extend_schema(tags=['Appointments - Admin'])
class AdminAppointmentViewSet(GenericViewSet):
    """
    Admin appointment management
    """
    serializer_class = AdminAppointmentSerializer
    permission_classes = [permissions.IsAuthenticated, IsClinicAdmin]

    def get_queryset(self):
        return Appointment.objects.select_related('doctor', 'user')

    @extend_schema(
        responses={200: AdminAppointmentSerializer(many=True)},
        description="All appointments, newest first. Past active appointments are expired first."
    )
    def list(self, request):
        queryset = AppointmentManagementService.list_all_appointments()

        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = AdminAppointmentSerializer(page, many=True)
            return self.get_paginated_response(serializer.data)

        serializer = AdminAppointmentSerializer(queryset, many=True)
        return Response(serializer.data)

    @extend_schema(
        request=AppointmentCancelSerializer,
        responses={200: AdminAppointmentSerializer, 404: {'description': 'Appointment not found'}},
        description="Cancel any appointment"
    )
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        POST /api/appointments/admin/{id}/cancel/
        """
        serializer = AppointmentCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = AppointmentManagementService.cancel_appointment(
                pk,
                actor=Appointment.CANCELLED_BY_ADMIN,
                reason=serializer.validated_data.get('reason'),
            )
        except AppointmentServiceError as e:
            return appointment_error_response(e)

        message = _('Appointment was already cancelled') if result['already_cancelled'] else _('Appointment Cancelled')
        return Response({
            'message': message,
            'appointment': AdminAppointmentSerializer(result['appointment']).data
        }, status=status.HTTP_200_OK)

    @extend_schema(
        request=None,
        responses={
            200: AdminAppointmentSerializer,
            400: {'description': 'Appointment is cancelled'},
            404: {'description': 'Appointment not found'}
        },
        description="Approve an active appointment"
    )
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        """
        POST /api/appointments/admin/{id}/approve/
        """
        try:
            result = AppointmentManagementService.approve_appointment(pk)
        except AppointmentServiceError as e:
            return appointment_error_response(e)

        message = _('Appointment was already approved') if result['already_approved'] else _('Appointment Approved')
        return Response({
            'message': message,
            'appointment': AdminAppointmentSerializer(result['appointment']).data
        }, status=status.HTTP_200_OK)

    @extend_schema(
        parameters=[OpenApiParameter('limit', OpenApiTypes.INT, description='Number of latest appointments')],
        responses={200: DashboardSerializer},
        description="Admin dashboard counts and latest appointments"
    )
    @action(detail=False, methods=['get'])
    def dashboard(self, request):
        """
        GET /api/appointments/admin/dashboard/
        """
        limit = request.query_params.get('limit')
        try:
            limit = int(limit) if limit else None
        except ValueError:
            limit = -1
        if limit is not None and limit < 0:
            return Response({'error': _('limit must be a non-negative integer')}, status=status.HTTP_400_BAD_REQUEST)

        data = AppointmentAnalyticsService.get_dashboard_data(limit=limit)
        return Response(DashboardSerializer(data).data, status=status.HTTP_200_OK)
