from django.contrib.auth.base_user import BaseUserManager
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.utils.translation import gettext_lazy as _


class UserManager(BaseUserManager):
    '''
    Custom user manager, email is the login identifier
    '''

    def email_validator(self, email):
        '''
        Validate email address
        '''
        try:
            validate_email(email)
        except ValidationError:
            raise ValueError(_('Invalid email address'))

    def create_user(self, email, password=None, **extra_fields):
        '''
        Create user
        '''
        if not email:
            raise ValueError(_('The Email field must be set'))

        email = self.normalize_email(email)
        self.email_validator(email)

        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password, **extra_fields):
        """
        Create and save a SuperUser with the given email and password.
        Admins skip the registration review.
        """
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('user_type', 'Admin')
        extra_fields.setdefault('approval_status', 'approved')

        if extra_fields.get('is_staff') is not True:
            raise ValueError(_("Superuser must have is_staff=True."))
        if extra_fields.get('is_superuser') is not True:
            raise ValueError(_("Superuser must have is_superuser=True."))

        return self.create_user(email, password, **extra_fields)

    def create_patient(self, email, password=None, **extra_fields):
        '''
        Create patient, pending admin approval unless told otherwise
        '''
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('user_type', 'Patient')
        extra_fields.setdefault('approval_status', 'pending')

        return self.create_user(email, password, **extra_fields)

    def create_admin(self, email, password=None, **extra_fields):
        '''
        Create clinic admin (staff, not superuser)
        '''
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('user_type', 'Admin')
        extra_fields.setdefault('approval_status', 'approved')

        return self.create_user(email, password, **extra_fields)
