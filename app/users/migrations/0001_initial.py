import uuid

import django.utils.timezone
from django.db import migrations, models

import users.managers
import users.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier for the user', primary_key=True, serialize=False)),
                ('email', models.EmailField(help_text="User's email address, used for login", max_length=254, unique=True, verbose_name='email address')),
                ('user_type', models.CharField(choices=[('Patient', 'Patient'), ('Admin', 'Admin')], default='Patient', help_text='Type of user: Patient or Admin', max_length=20)),
                ('approval_status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('declined', 'Declined'), ('blocked', 'Blocked')], default='pending', help_text='Registration review outcome; only approved patients may log in and book', max_length=20, verbose_name='approval status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active.', verbose_name='active')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into the admin site.', verbose_name='staff status')),
                ('first_name', models.CharField(blank=True, max_length=100, verbose_name='first name')),
                ('middle_name', models.CharField(blank=True, max_length=100, verbose_name='middle name')),
                ('last_name', models.CharField(blank=True, max_length=100, verbose_name='last name')),
                ('phone', models.CharField(blank=True, default='000000000', max_length=30, verbose_name='phone')),
                ('address', models.JSONField(blank=True, default=users.models.default_address, verbose_name='address')),
                ('gender', models.CharField(choices=[('Not Selected', 'Not Selected'), ('Male', 'Male'), ('Female', 'Female'), ('Other', 'Other')], default='Not Selected', max_length=20, verbose_name='gender')),
                ('dob', models.DateField(blank=True, null=True, verbose_name='date of birth')),
                ('image', models.URLField(blank=True, help_text="URL to user's profile picture", max_length=512, verbose_name='profile image')),
                ('valid_id', models.URLField(blank=True, help_text='URL to the identity document uploaded at registration', max_length=512, verbose_name='valid ID document')),
                ('registration_date', models.DateTimeField(default=django.utils.timezone.now, help_text='When the user registered', verbose_name='registration date')),
                ('last_login_date', models.DateTimeField(blank=True, help_text='Last time user logged in', null=True, verbose_name='last login')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'User',
                'verbose_name_plural': 'Users',
                'db_table': 'users',
                'indexes': [
                    models.Index(fields=['email'], name='users_email_4b85f2_idx'),
                    models.Index(fields=['user_type'], name='users_user_ty_5a7c1e_idx'),
                    models.Index(fields=['approval_status'], name='users_approva_9d2e3b_idx'),
                    models.Index(fields=['created_at'], name='users_created_6f1a0c_idx'),
                ],
            },
            managers=[
                ('objects', users.managers.UserManager()),
            ],
        ),
    ]
