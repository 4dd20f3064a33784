# factories/users.py
import factory
from django.contrib.auth.hashers import make_password
from django.utils import timezone
import random

from users.models import User
from .base import (
    BaseFactory,
    RandomChoiceMixin,
    generate_phone_number,
)


class UserFactory(BaseFactory):
    """
    Factory for creating User instances. Patients are approved by default.
    """

    class Meta:
        model = User
        django_get_or_create = ('email',)  # Avoid duplicate emails

    email = factory.Sequence(lambda n: f'user{n}@example.com')
    user_type = 'Patient'
    approval_status = User.APPROVAL_APPROVED
    is_active = True
    is_staff = False

    password = factory.LazyFunction(lambda: make_password('testpass123'))

    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    phone = factory.LazyFunction(generate_phone_number)
    gender = factory.LazyFunction(
        lambda: RandomChoiceMixin.random_choice_weighted([
            ('Male', 0.45),
            ('Female', 0.45),
            ('Not Selected', 0.1),
        ])
    )
    address = factory.Dict({
        'line1': factory.Faker('street_address'),
        'line2': factory.Faker('city'),
    })
    dob = factory.Faker('date_of_birth', minimum_age=18, maximum_age=85)
    valid_id = factory.Sequence(lambda n: f'https://media.example.com/valid_ids/id{n}.png')

    # Optional profile picture (30% chance)
    image = factory.LazyFunction(
        lambda: f'https://media.example.com/users/{random.randint(1, 999)}.png' if random.random() < 0.3 else ''
    )

    registration_date = factory.Faker('date_time_between',
                                      start_date='-1y',
                                      end_date='now',
                                      tzinfo=timezone.get_current_timezone())


class PatientUserFactory(UserFactory):
    """Approved patient who can log in and book"""
    user_type = 'Patient'


class PendingPatientFactory(UserFactory):
    """Freshly registered patient awaiting review"""
    approval_status = User.APPROVAL_PENDING


class AdminUserFactory(UserFactory):
    """Clinic administrator"""
    email = factory.Sequence(lambda n: f'admin{n}@example.com')
    user_type = 'Admin'
    is_staff = True
    valid_id = ''
