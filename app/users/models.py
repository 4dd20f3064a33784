# users/models.py
import uuid
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils.translation import gettext_lazy as _
from django.utils import timezone

from .managers import UserManager


def default_address():
    return {'line1': '', 'line2': ''}


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model where email is the unique identifier.
    Patients must be approved by an admin before they can log in or book.
    """

    # User Type Choices
    USER_TYPE_CHOICES = [
        ('Patient', _('Patient')),
        ('Admin', _('Admin')),
    ]

    APPROVAL_PENDING = 'pending'
    APPROVAL_APPROVED = 'approved'
    APPROVAL_DECLINED = 'declined'
    APPROVAL_BLOCKED = 'blocked'

    APPROVAL_STATUS_CHOICES = [
        (APPROVAL_PENDING, _('Pending')),
        (APPROVAL_APPROVED, _('Approved')),
        (APPROVAL_DECLINED, _('Declined')),
        (APPROVAL_BLOCKED, _('Blocked')),
    ]

    GENDER_CHOICES = [
        ('Not Selected', _('Not Selected')),
        ('Male', _('Male')),
        ('Female', _('Female')),
        ('Other', _('Other')),
    ]

    # Primary fields
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text=_("Unique identifier for the user")
    )
    email = models.EmailField(
        _('email address'),
        unique=True,
        help_text=_("User's email address, used for login")
    )
    user_type = models.CharField(
        max_length=20,
        choices=USER_TYPE_CHOICES,
        default='Patient',
        help_text=_("Type of user: Patient or Admin")
    )
    approval_status = models.CharField(
        _('approval status'),
        max_length=20,
        choices=APPROVAL_STATUS_CHOICES,
        default=APPROVAL_PENDING,
        help_text=_("Registration review outcome; only approved patients may log in and book")
    )

    # Status fields
    is_active = models.BooleanField(
        _('active'),
        default=True,
        help_text=_("Designates whether this user should be treated as active.")
    )
    is_staff = models.BooleanField(
        _('staff status'),
        default=False,
        help_text=_("Designates whether the user can log into the admin site.")
    )

    # Profile fields
    first_name = models.CharField(_('first name'), max_length=100, blank=True)
    middle_name = models.CharField(_('middle name'), max_length=100, blank=True)
    last_name = models.CharField(_('last name'), max_length=100, blank=True)
    phone = models.CharField(_('phone'), max_length=30, default='000000000', blank=True)
    address = models.JSONField(_('address'), default=default_address, blank=True)
    gender = models.CharField(
        _('gender'),
        max_length=20,
        choices=GENDER_CHOICES,
        default='Not Selected'
    )
    dob = models.DateField(_('date of birth'), null=True, blank=True)
    image = models.URLField(
        _('profile image'),
        max_length=512,
        blank=True,
        help_text=_("URL to user's profile picture")
    )
    valid_id = models.URLField(
        _('valid ID document'),
        max_length=512,
        blank=True,
        help_text=_("URL to the identity document uploaded at registration")
    )

    # Timestamp fields
    registration_date = models.DateTimeField(
        _('registration date'),
        default=timezone.now,
        help_text=_("When the user registered")
    )
    last_login_date = models.DateTimeField(
        _('last login'),
        blank=True,
        null=True,
        help_text=_("Last time user logged in")
    )
    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True
    )
    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True
    )

    # Custom manager
    objects = UserManager()

    # Django auth settings
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['user_type']

    class Meta:
        verbose_name = _('User')
        verbose_name_plural = _('Users')
        db_table = 'users'
        indexes = [
            models.Index(fields=['email'], name='users_email_4b85f2_idx'),
            models.Index(fields=['user_type'], name='users_user_ty_5a7c1e_idx'),
            models.Index(fields=['approval_status'], name='users_approva_9d2e3b_idx'),
            models.Index(fields=['created_at'], name='users_created_6f1a0c_idx'),
        ]

    def __str__(self):
        return f"{self.email} ({self.user_type})"

    @property
    def full_name(self):
        parts = [self.first_name, self.middle_name, self.last_name]
        return ' '.join(part for part in parts if part).strip()

    @property
    def is_patient(self):
        """Check if user is a patient"""
        return self.user_type == 'Patient'

    @property
    def is_admin(self):
        """Check if user is an admin"""
        return self.user_type == 'Admin'

    @property
    def is_approved(self):
        return self.approval_status == self.APPROVAL_APPROVED

    @property
    def can_book_appointments(self):
        """Only active, approved patients may book"""
        return self.is_active and self.is_patient and self.is_approved

    def to_snapshot(self):
        """Denormalized copy stored on appointments at booking time"""
        return {
            'id': str(self.id),
            'email': self.email,
            'first_name': self.first_name,
            'middle_name': self.middle_name,
            'last_name': self.last_name,
            'phone': self.phone,
            'address': self.address,
            'gender': self.gender,
            'dob': self.dob.isoformat() if self.dob else None,
            'image': self.image,
        }
