import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('doctors', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('user_data', models.JSONField(default=dict, verbose_name='patient snapshot')),
                ('doc_data', models.JSONField(default=dict, verbose_name='doctor snapshot')),
                ('slot_date', models.CharField(help_text='Date-key in day_month_year form, e.g. 7_3_2026', max_length=20, verbose_name='slot date')),
                ('slot_time', models.CharField(help_text='Opaque time label, e.g. 10:30 AM', max_length=20, verbose_name='slot time')),
                ('amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Doctor fee at booking time', max_digits=10, verbose_name='amount')),
                ('booked_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='booked at')),
                ('cancelled', models.BooleanField(default=False, verbose_name='cancelled')),
                ('cancelled_by', models.CharField(blank=True, choices=[('patient', 'Patient'), ('admin', 'Admin'), ('system', 'System')], max_length=10, verbose_name='cancelled by')),
                ('cancellation_reason', models.CharField(blank=True, max_length=255, verbose_name='cancellation reason')),
                ('cancelled_at', models.DateTimeField(blank=True, null=True, verbose_name='cancelled at')),
                ('is_completed', models.BooleanField(default=False, help_text='Set when an admin approves the appointment', verbose_name='approved')),
                ('approved_at', models.DateTimeField(blank=True, null=True, verbose_name='approved at')),
                ('payment', models.BooleanField(default=False, verbose_name='paid')),
                ('is_read', models.BooleanField(default=False, verbose_name='read by patient')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('doctor', models.ForeignKey(help_text='Doctor booked; cleared if the doctor is deleted', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointments', to='doctors.doctor')),
                ('user', models.ForeignKey(help_text='Patient who booked; cleared if the account is deleted', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Appointment',
                'verbose_name_plural': 'Appointments',
                'db_table': 'appointments',
                'ordering': ['-booked_at'],
                'indexes': [
                    models.Index(fields=['doctor', 'slot_date'], name='appointmen_doctor__3f9a1c_idx'),
                    models.Index(fields=['cancelled', 'is_completed'], name='appointmen_cancell_8e2b7d_idx'),
                    models.Index(fields=['user', 'booked_at'], name='appointmen_user_id_5c4d2a_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('cancelled', True), ('is_completed', True), _negated=True), name='appointment_not_cancelled_and_approved'),
                    models.UniqueConstraint(condition=models.Q(('cancelled', False)), fields=('doctor', 'slot_date', 'slot_time'), name='unique_live_appointment_per_slot'),
                ],
            },
        ),
    ]
