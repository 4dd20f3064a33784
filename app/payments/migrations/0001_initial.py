import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('appointments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PaymentSession',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('provider', models.CharField(choices=[('stripe', 'Stripe')], default='stripe', max_length=20, verbose_name='payment provider')),
                ('session_ref', models.CharField(help_text="Provider's checkout session id", max_length=255, unique=True, verbose_name='session reference')),
                ('payment_url', models.URLField(blank=True, max_length=1024, verbose_name='payment URL')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))], verbose_name='amount')),
                ('currency', models.CharField(default='USD', max_length=3, verbose_name='currency')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid'), ('unpaid', 'Unpaid')], default='pending', max_length=10, verbose_name='status')),
                ('paid_at', models.DateTimeField(blank=True, null=True, verbose_name='paid at')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment', models.ForeignKey(help_text='Appointment whose fee this session collects', on_delete=django.db.models.deletion.CASCADE, related_name='payment_sessions', to='appointments.appointment')),
            ],
            options={
                'verbose_name': 'Payment Session',
                'verbose_name_plural': 'Payment Sessions',
                'db_table': 'payment_sessions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['appointment', 'status'], name='payment_ses_appoint_2d7e41_idx'),
                ],
            },
        ),
    ]
