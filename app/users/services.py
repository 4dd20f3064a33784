# users/services.py
from django.contrib.auth import authenticate
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from rest_framework.authtoken.models import Token
import logging
from typing import Any, Dict, Optional

from core.notifications import (
    NotificationGateway,
    get_notification_gateway,
    ADMIN_NEW_REGISTRATION,
    REGISTRATION_APPROVED,
    REGISTRATION_DECLINED,
)
from core.storage import MediaStorageGateway, get_media_storage_gateway
from .models import User
from .exceptions import (
    RegistrationError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    AccountNotApprovedError,
    UserNotFoundError,
    InvalidApprovalStatusError,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

# Login refusal messages per registration state
APPROVAL_LOGIN_MESSAGES = {
    User.APPROVAL_PENDING: _("Your registration is pending approval. Please wait for admin approval."),
    User.APPROVAL_DECLINED: _("Your registration has been declined. Please contact support for more information."),
    User.APPROVAL_BLOCKED: _("Your account has been blocked. Please contact support."),
}

PROFILE_FIELDS = ('first_name', 'middle_name', 'last_name', 'phone', 'address', 'dob', 'gender')


class AuthenticationService:
    """
    Registration and login for patients and admins
    """

    @staticmethod
    def register_user(email: str, password: str, first_name: str, last_name: str, dob,
                      valid_id_file, notifier: Optional[NotificationGateway] = None,
                      media_storage: Optional[MediaStorageGateway] = None,
                      **extra_fields) -> User:
        """
        Register a patient pending admin review.

        The uploaded ID document is stored first; the admin alert is best-effort.

        Raises:
            RegistrationError: missing or invalid data
            EmailAlreadyExistsError: email already registered
            MediaUploadError: ID document could not be stored
        """
        if not all([first_name, last_name, email, password, dob]):
            raise RegistrationError(_("Missing details"))
        if not valid_id_file:
            raise RegistrationError(_("A valid ID document is required"))

        try:
            validate_email(email)
        except ValidationError:
            raise RegistrationError(_("Please enter a valid email"))

        if len(password) < MIN_PASSWORD_LENGTH:
            raise RegistrationError(_("Please enter a strong password"))

        email = User.objects.normalize_email(email)
        if User.objects.filter(email__iexact=email).exists():
            raise EmailAlreadyExistsError(email)

        media_storage = media_storage or get_media_storage_gateway()
        valid_id_url = media_storage.upload(valid_id_file, folder='valid_ids')

        user = User.objects.create_patient(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            dob=dob,
            valid_id=valid_id_url,
            **extra_fields
        )
        logger.info(f"Patient registered: {user.email} (pending approval)")

        notifier = notifier or get_notification_gateway()
        notifier.notify(ADMIN_NEW_REGISTRATION, {
            'user_name': user.full_name,
            'user_email': user.email,
            'registered_at': user.registration_date.strftime('%Y-%m-%d %H:%M'),
        })

        return user

    @staticmethod
    def authenticate_user(email: str, password: str, request=None) -> User:
        """
        Check credentials, then the registration state for patients.

        Raises:
            InvalidCredentialsError: unknown email, wrong password or inactive account
            AccountNotApprovedError: patient registration is pending, declined or blocked
        """
        user = authenticate(request=request, username=email, password=password)

        if not user:
            raise InvalidCredentialsError(_("Invalid email or password"))

        if user.is_patient and not user.is_approved:
            logger.info(f"Login refused for {user.email}: approval status {user.approval_status}")
            raise AccountNotApprovedError(
                user.approval_status,
                APPROVAL_LOGIN_MESSAGES.get(user.approval_status, _("Your account is not approved"))
            )

        user.last_login_date = timezone.now()
        user.save(update_fields=['last_login_date'])
        return user


class UserService:
    """
    Profile operations for the authenticated user
    """

    @staticmethod
    def update_user_profile(user: User, image_file=None,
                            media_storage: Optional[MediaStorageGateway] = None,
                            **profile_data) -> User:
        """
        Update the editable profile fields and optionally replace the profile image
        """
        update_fields = []
        for field in PROFILE_FIELDS:
            if field in profile_data:
                setattr(user, field, profile_data[field])
                update_fields.append(field)

        if image_file:
            media_storage = media_storage or get_media_storage_gateway()
            user.image = media_storage.upload(image_file, folder='profile_images')
            update_fields.append('image')

        if update_fields:
            user.save(update_fields=update_fields + ['updated_at'])
            logger.info(f"Profile updated for {user.email}: {', '.join(update_fields)}")

        return user


class UserManagementService:
    """
    Admin-side management of patient accounts
    """

    REVIEW_STATUSES = (User.APPROVAL_APPROVED, User.APPROVAL_DECLINED, User.APPROVAL_BLOCKED)

    @staticmethod
    def get_user_by_id(user_id) -> User:
        try:
            return User.objects.get(id=user_id)
        except (User.DoesNotExist, ValidationError, ValueError):
            raise UserNotFoundError(f"User {user_id} not found")

    @staticmethod
    def get_patients():
        return User.objects.filter(user_type='Patient').order_by('-created_at')

    @staticmethod
    def get_pending_registrations():
        return User.objects.filter(
            user_type='Patient',
            approval_status=User.APPROVAL_PENDING
        ).order_by('-created_at')

    @staticmethod
    def update_approval_status(user_id, approval_status: str,
                               notifier: Optional[NotificationGateway] = None) -> Dict[str, Any]:
        """
        Record the admin's review decision.

        Approved and declined patients are emailed; blocking is silent.

        Returns:
            {'user': User, 'notification_sent': bool}
        """
        if approval_status not in UserManagementService.REVIEW_STATUSES:
            raise InvalidApprovalStatusError(
                f"Invalid status '{approval_status}'. Use one of: {', '.join(UserManagementService.REVIEW_STATUSES)}"
            )

        user = UserManagementService.get_user_by_id(user_id)
        with transaction.atomic():
            user.approval_status = approval_status
            user.save(update_fields=['approval_status', 'updated_at'])
            if approval_status != User.APPROVAL_APPROVED:
                # Revoke API access; login is refused until approved again
                Token.objects.filter(user=user).delete()
        logger.info(f"Approval status for {user.email} set to {approval_status}")

        notification_sent = False
        if approval_status in (User.APPROVAL_APPROVED, User.APPROVAL_DECLINED):
            notifier = notifier or get_notification_gateway()
            event = REGISTRATION_APPROVED if approval_status == User.APPROVAL_APPROVED else REGISTRATION_DECLINED
            notification_sent = notifier.notify(event, {
                'recipient': user.email,
                'user_name': user.full_name or user.email,
            })

        return {'user': user, 'notification_sent': notification_sent}

    @staticmethod
    def delete_user(user_id) -> None:
        """
        Delete a user account. Their appointments are kept with the patient snapshot.
        """
        user = UserManagementService.get_user_by_id(user_id)
        email = user.email
        with transaction.atomic():
            user.delete()
        logger.info(f"User deleted: {email}")
