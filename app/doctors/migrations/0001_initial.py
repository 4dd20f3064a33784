import uuid
from decimal import Decimal

import django.core.validators
from django.db import migrations, models

import doctors.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Doctor',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text="Doctor's full name", max_length=200, verbose_name='name')),
                ('name_extension', models.CharField(blank=True, help_text='Suffix such as Jr. or III', max_length=20, verbose_name='name extension')),
                ('email', models.EmailField(help_text='Where appointment notifications are sent', max_length=254, unique=True, verbose_name='email address')),
                ('image', models.URLField(blank=True, max_length=512, verbose_name='image')),
                ('speciality', models.CharField(max_length=100, verbose_name='speciality')),
                ('degree', models.CharField(max_length=100, verbose_name='degree')),
                ('experience', models.CharField(help_text="Free text, e.g. '4 Years'", max_length=50, verbose_name='experience')),
                ('about', models.TextField(blank=True, verbose_name='about')),
                ('available', models.BooleanField(default=True, help_text='Unavailable doctors cannot receive new bookings', verbose_name='available')),
                ('fees', models.DecimalField(decimal_places=2, help_text='Consultation fee charged per appointment', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='fees')),
                ('address', models.JSONField(blank=True, default=doctors.models.default_address, verbose_name='address')),
                ('license_id', models.CharField(blank=True, help_text='Professional license number', max_length=100, verbose_name='license ID')),
                ('slots_booked', models.JSONField(blank=True, default=dict, help_text='Date-key to list of booked time labels', verbose_name='booked slots')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Doctor',
                'verbose_name_plural': 'Doctors',
                'db_table': 'doctors',
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['speciality'], name='doctors_special_1c3e5a_idx'),
                    models.Index(fields=['available'], name='doctors_availab_7b2d4f_idx'),
                ],
            },
        ),
    ]
