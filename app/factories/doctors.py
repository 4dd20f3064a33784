# factories/doctors.py
import factory
import random
from factory import fuzzy

from doctors.models import Doctor
from .base import BaseFactory


SPECIALITIES = [
    'General physician', 'Gynecologist', 'Dermatologist',
    'Pediatricians', 'Neurologist', 'Gastroenterologist',
]


class DoctorFactory(BaseFactory):
    """
    Factory for doctors with an empty slot ledger
    """

    class Meta:
        model = Doctor
        django_get_or_create = ('email',)

    name = factory.Faker('name')
    email = factory.Sequence(lambda n: f'doctor{n}@clinic.example.com')
    image = factory.Sequence(lambda n: f'https://media.example.com/doctors/doc{n}.png')
    speciality = fuzzy.FuzzyChoice(SPECIALITIES)
    degree = 'MBBS'
    experience = factory.LazyFunction(lambda: f"{random.randint(1, 15)} Years")
    about = factory.Faker('paragraph', nb_sentences=3)
    available = True
    fees = fuzzy.FuzzyDecimal(20, 150, precision=2)
    address = factory.Dict({
        'line1': factory.Faker('street_address'),
        'line2': factory.Faker('city'),
    })
    license_id = factory.Sequence(lambda n: f'LIC-{n:06d}')
    slots_booked = factory.LazyFunction(dict)
