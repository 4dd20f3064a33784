# doctors/views.py
from rest_framework import status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet
from rest_framework.mixins import ListModelMixin, RetrieveModelMixin
from django.utils.translation import gettext_lazy as _
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes
import logging

from core.storage import MediaUploadError
from users.permissions import IsClinicAdmin
from .serializers import DoctorSerializer, AdminDoctorSerializer, DoctorWriteSerializer
from .services import (
    DoctorService,
    DoctorNotFoundError,
    DoctorAlreadyExistsError,
    DoctorProfileError,
)

logger = logging.getLogger(__name__)


@extend_schema(tags=['Doctors'])
class DoctorViewSet(GenericViewSet, ListModelMixin, RetrieveModelMixin):
    """
    Public doctor directory plus admin management
    """

    def get_queryset(self):
        available = self.request.query_params.get('available')
        return DoctorService.get_doctors(available_only=available in ('true', 'True', '1'))

    def get_permissions(self):
        """Directory is public; changes are admin only"""
        if self.action in ['list', 'retrieve']:
            permission_classes = [permissions.AllowAny]
        else:
            permission_classes = [permissions.IsAuthenticated, IsClinicAdmin]
        return [permission() for permission in permission_classes]

    def get_serializer_class(self):
        if self.action in ['create', 'partial_update']:
            return DoctorWriteSerializer
        user = self.request.user
        if user.is_authenticated and (user.is_admin or user.is_staff):
            return AdminDoctorSerializer
        return DoctorSerializer

    @extend_schema(
        parameters=[OpenApiParameter('available', OpenApiTypes.BOOL, description='Only doctors accepting bookings')],
        responses={200: DoctorSerializer(many=True)},
        description="List doctors"
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(
        responses={200: DoctorSerializer, 404: {'description': 'Doctor not found'}},
        description="Doctor profile including booked slots"
    )
    def retrieve(self, request, *args, **kwargs):
        return super().retrieve(request, *args, **kwargs)

    @extend_schema(
        request=DoctorWriteSerializer,
        responses={
            201: AdminDoctorSerializer,
            400: {'description': 'Invalid doctor data'},
            502: {'description': 'Image could not be stored'}
        },
        description="Add a doctor (Admin only, multipart with image)"
    )
    def create(self, request):
        serializer = DoctorWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = dict(serializer.validated_data)
        image_file = data.pop('image', None)
        try:
            doctor = DoctorService.create_doctor(data, image_file)
        except (DoctorProfileError, DoctorAlreadyExistsError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except MediaUploadError as e:
            logger.error(f"Doctor image upload failed: {str(e)}")
            return Response({'error': _('Could not store the doctor image')}, status=status.HTTP_502_BAD_GATEWAY)

        return Response({
            'message': _('Doctor added'),
            'doctor': AdminDoctorSerializer(doctor).data
        }, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=DoctorWriteSerializer,
        responses={
            200: AdminDoctorSerializer,
            400: {'description': 'Invalid doctor data'},
            404: {'description': 'Doctor not found'}
        },
        description="Update a doctor (Admin only, partial)"
    )
    def partial_update(self, request, pk=None):
        serializer = DoctorWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = dict(serializer.validated_data)
        image_file = data.pop('image', None)
        try:
            doctor = DoctorService.update_doctor(pk, data, image_file=image_file)
        except DoctorNotFoundError:
            return Response({'error': _('Doctor not found')}, status=status.HTTP_404_NOT_FOUND)
        except (DoctorAlreadyExistsError, MediaUploadError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            'message': _('Doctor updated'),
            'doctor': AdminDoctorSerializer(doctor).data
        }, status=status.HTTP_200_OK)

    @extend_schema(
        responses={200: {'description': 'Doctor deleted'}, 404: {'description': 'Doctor not found'}},
        description="Delete a doctor (Admin only). Appointments are kept."
    )
    def destroy(self, request, pk=None):
        try:
            DoctorService.delete_doctor(pk)
        except DoctorNotFoundError:
            return Response({'error': _('Doctor not found')}, status=status.HTTP_404_NOT_FOUND)
        return Response({'message': _('Doctor deleted')}, status=status.HTTP_200_OK)

    @extend_schema(
        request=None,
        responses={200: AdminDoctorSerializer, 404: {'description': 'Doctor not found'}},
        description="Toggle whether a doctor accepts bookings (Admin only)"
    )
    @action(detail=True, methods=['post'], url_path='change-availability')
    def change_availability(self, request, pk=None):
        """
        POST /api/doctors/{id}/change-availability/
        """
        try:
            doctor = DoctorService.toggle_availability(pk)
        except DoctorNotFoundError:
            return Response({'error': _('Doctor not found')}, status=status.HTTP_404_NOT_FOUND)

        return Response({
            'message': _('Availability changed'),
            'doctor': AdminDoctorSerializer(doctor).data
        }, status=status.HTTP_200_OK)
