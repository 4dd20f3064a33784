# factories/base.py
import factory
from django.utils import timezone
import random
from datetime import timedelta

from appointments.date_keys import format_date_key


# Labels as the booking screens offer them
TIME_LABELS = [
    '10:00 AM', '10:30 AM', '11:00 AM', '11:30 AM', '12:00 PM', '12:30 PM',
    '01:00 PM', '01:30 PM', '02:00 PM', '02:30 PM', '03:00 PM', '03:30 PM',
    '04:00 PM', '04:30 PM', '05:00 PM', '05:30 PM', '06:00 PM', '06:30 PM',
    '07:00 PM', '07:30 PM', '08:00 PM', '08:30 PM',
]


class BaseFactory(factory.django.DjangoModelFactory):
    """
    Base factory with common configurations
    """

    class Meta:
        abstract = True

    @classmethod
    def _setup_next_sequence(cls):
        """Ensure unique sequences for each factory"""
        return getattr(cls._meta.model, '_factory_sequence', 0)


class RandomChoiceMixin:
    """Mixin with helper methods for random choices"""

    @staticmethod
    def random_bool(true_chance=0.5):
        """Return True with specified probability"""
        return random.random() < true_chance

    @staticmethod
    def random_choice_weighted(choices_weights):
        """
        Choose from weighted options
        Example: [('option1', 0.7), ('option2', 0.3)]
        """
        total = sum(weight for _, weight in choices_weights)
        r = random.uniform(0, total)
        upto = 0
        for choice, weight in choices_weights:
            if upto + weight >= r:
                return choice
            upto += weight
        return choices_weights[-1][0]  # fallback


def date_key_in(days: int) -> str:
    """Date-key for today (clinic timezone) plus days"""
    return format_date_key(timezone.localdate() + timedelta(days=days))


def generate_phone_number():
    """Generate a realistic phone number"""
    return f"09{random.randint(100000000, 999999999)}"
