# doctors/services.py
from django.core.exceptions import ValidationError
from django.db import transaction
import logging
from typing import Any, Dict, Optional

from core.storage import MediaStorageGateway, get_media_storage_gateway
from .models import Doctor

logger = logging.getLogger(__name__)


class DoctorServiceError(Exception):
    """Base exception for doctor service errors"""
    pass


class DoctorNotFoundError(DoctorServiceError):
    """Raised when a doctor does not exist"""
    pass


class DoctorAlreadyExistsError(DoctorServiceError):
    """Raised when a doctor with the same email already exists"""
    pass


class DoctorProfileError(DoctorServiceError):
    """Raised when doctor data is incomplete"""
    pass


# Fields an admin may set; the slot ledger is deliberately absent
EDITABLE_FIELDS = (
    'name', 'name_extension', 'email', 'speciality', 'degree', 'experience',
    'about', 'fees', 'address', 'license_id', 'available',
)

REQUIRED_FIELDS = ('name', 'email', 'speciality', 'degree', 'experience', 'fees')


class DoctorService:
    """
    Admin management of the doctor directory
    """

    @staticmethod
    def get_doctors(available_only: bool = False):
        queryset = Doctor.objects.all()
        if available_only:
            queryset = queryset.filter(available=True)
        return queryset

    @staticmethod
    def get_doctor_by_id(doctor_id) -> Doctor:
        try:
            return Doctor.objects.get(id=doctor_id)
        except (Doctor.DoesNotExist, ValidationError, ValueError):
            raise DoctorNotFoundError(f"Doctor {doctor_id} not found")

    @staticmethod
    def create_doctor(data: Dict[str, Any], image_file,
                      media_storage: Optional[MediaStorageGateway] = None) -> Doctor:
        """
        Add a doctor. A profile image is required.

        Raises:
            DoctorProfileError: missing details or image
            DoctorAlreadyExistsError: email already used
            MediaUploadError: image could not be stored
        """
        missing = [field for field in REQUIRED_FIELDS if data.get(field) in (None, '')]
        if missing:
            raise DoctorProfileError(f"Missing details: {', '.join(missing)}")
        if not image_file:
            raise DoctorProfileError("Doctor image is required")

        if Doctor.objects.filter(email__iexact=data['email']).exists():
            raise DoctorAlreadyExistsError(f"A doctor with email {data['email']} already exists")

        media_storage = media_storage or get_media_storage_gateway()
        image_url = media_storage.upload(image_file, folder='doctors')

        fields = {field: data[field] for field in EDITABLE_FIELDS if field in data}
        doctor = Doctor.objects.create(image=image_url, **fields)

        logger.info(f"Doctor added: {doctor.id} ({doctor.email})")
        return doctor

    @staticmethod
    def update_doctor(doctor_id, data: Dict[str, Any], image_file=None,
                      media_storage: Optional[MediaStorageGateway] = None) -> Doctor:
        """
        Partial update. Only the submitted fields are written, so concurrent
        ledger writes are never overwritten.
        """
        doctor = DoctorService.get_doctor_by_id(doctor_id)

        if 'email' in data and Doctor.objects.filter(
                email__iexact=data['email']).exclude(id=doctor.id).exists():
            raise DoctorAlreadyExistsError(f"A doctor with email {data['email']} already exists")

        update_fields = []
        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(doctor, field, data[field])
                update_fields.append(field)

        if image_file:
            media_storage = media_storage or get_media_storage_gateway()
            doctor.image = media_storage.upload(image_file, folder='doctors')
            update_fields.append('image')

        if update_fields:
            doctor.save(update_fields=update_fields + ['updated_at'])
            logger.info(f"Doctor {doctor.id} updated: {', '.join(update_fields)}")

        return doctor

    @staticmethod
    def delete_doctor(doctor_id) -> None:
        """Delete a doctor; their appointments keep the doctor snapshot"""
        doctor = DoctorService.get_doctor_by_id(doctor_id)
        doctor.delete()
        logger.info(f"Doctor deleted: {doctor_id}")

    @staticmethod
    def toggle_availability(doctor_id) -> Doctor:
        """Flip the available flag under the doctor row lock"""
        with transaction.atomic():
            try:
                doctor = Doctor.objects.select_for_update().get(id=doctor_id)
            except (Doctor.DoesNotExist, ValidationError, ValueError):
                raise DoctorNotFoundError(f"Doctor {doctor_id} not found")

            doctor.available = not doctor.available
            doctor.save(update_fields=['available', 'updated_at'])

        logger.info(f"Doctor {doctor.id} availability set to {doctor.available}")
        return doctor
