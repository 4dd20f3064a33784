# app/settings/base.py
from pathlib import Path
import os
import sys
from dotenv import load_dotenv
from celery.schedules import crontab

# Load environment variables
load_dotenv()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

TESTING = 'test' in sys.argv or 'pytest' in sys.modules

# Security
SECRET_KEY = os.environ.get('SECRET_KEY')
if not SECRET_KEY:
    # Only allow empty SECRET_KEY in development/testing
    if TESTING:
        SECRET_KEY = 'django-insecure-fallback-for-testing'
    elif os.environ.get('DJANGO_SETTINGS_MODULE', '').endswith('development'):
        SECRET_KEY = 'django-insecure-fallback-for-development'
    else:
        raise ValueError("SECRET_KEY environment variable is required")

DEBUG = False  # Always False in base, override in development

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'rest_framework.authtoken',
    'drf_spectacular',
    'django_extensions',
    'corsheaders',
    # Local apps
    'core',
    'users',
    'doctors',
    'appointments',
    'payments',
    'factories',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'app.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'app' / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'app.wsgi.application'

# Database - Base configuration (override in environment-specific files)
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'HOST': os.environ.get('DB_HOST'),
        'NAME': os.environ.get('DB_NAME'),
        'USER': os.environ.get('DB_USER'),
        'PASSWORD': os.environ.get('DB_PASSWORD'),
        'PORT': os.environ.get('DB_PORT', '5432'),
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# Internationalization
# Booking windows and the expiry sweep compare calendar days in this timezone
LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get('TIME_ZONE', 'UTC')
USE_I18N = True
USE_TZ = True

# Static files
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# Media files (doctor photos, patient ID documents)
MEDIA_URL = '/media/'
MEDIA_ROOT = BASE_DIR / 'media'

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Django REST Framework
REST_FRAMEWORK = {
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.TokenAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
        'rest_framework.parsers.FormParser',
        'rest_framework.parsers.MultiPartParser',
    ],
    'DEFAULT_PAGINATION_CLASS': 'rest_framework.pagination.PageNumberPagination',
    'PAGE_SIZE': 20
}

# DRF Spectacular
SPECTACULAR_SETTINGS = {
    'TITLE': 'Clinic Booking API',
    'DESCRIPTION': 'Patient registration, doctor directory and appointment booking',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
    'COMPONENT_SPLIT_REQUEST': True,
}

# Custom User Model
AUTH_USER_MODEL = 'users.User'

# Email Configuration Base
EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'  # Override in production
DEFAULT_FROM_EMAIL = os.environ.get('DEFAULT_FROM_EMAIL', 'Clinic Booking <noreply@clinic.local>')

# Application-specific settings
FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://127.0.0.1:5173')
SITE_NAME = os.environ.get('SITE_NAME', 'Clinic Booking')
SUPPORT_EMAIL = os.environ.get('SUPPORT_EMAIL', 'support@clinic.local')

# Security defaults (will be overridden in production)
ALLOWED_HOSTS = []
CORS_ALLOW_ALL_ORIGINS = False
CORS_ALLOW_CREDENTIALS = True
CSRF_TRUSTED_ORIGINS = []


# =============================================================================
# APPOINTMENT BOOKING CONFIGURATION
# =============================================================================

APPOINTMENT_BOOKING = {
    # Earliest bookable day, counted in whole days from today (inclusive)
    'MIN_DAYS_AHEAD': int(os.environ.get('BOOKING_MIN_DAYS_AHEAD', '5')),
    # Latest bookable day, counted in calendar months from today (inclusive)
    'MAX_MONTHS_AHEAD': int(os.environ.get('BOOKING_MAX_MONTHS_AHEAD', '1')),
    'MAX_TIME_LABEL_LENGTH': 20,
    'LEDGER_LOCK_MAX_ATTEMPTS': int(os.environ.get('LEDGER_LOCK_MAX_ATTEMPTS', '3')),
    'AUTO_CANCEL_REASON': 'Auto-cancelled: appointment date passed',
    'DASHBOARD_LATEST_LIMIT': 5,
}


# =============================================================================
# NOTIFICATION CONFIGURATION
# =============================================================================

NOTIFICATIONS = {
    'ENABLED': os.environ.get('NOTIFICATIONS_ENABLED', 'True') == 'True',
    'ADMIN_EMAIL': os.environ.get('ADMIN_NOTIFICATION_EMAIL', os.environ.get('ADMIN_EMAIL', '')),
}


# =============================================================================
# PAYMENT CONFIGURATION
# =============================================================================

PAYMENT_PROVIDERS = {
    'STRIPE': {
        'ENABLED': os.environ.get('STRIPE_ENABLED', 'False') == 'True',
        'PUBLISHABLE_KEY': os.environ.get('STRIPE_PUBLISHABLE_KEY', ''),
        'SECRET_KEY': os.environ.get('STRIPE_SECRET_KEY', ''),
        'WEBHOOK_SECRET': os.environ.get('STRIPE_WEBHOOK_SECRET', ''),
        'WEBHOOK_ENDPOINT': '/api/payments/webhooks/stripe/',
    },
}

PAYMENT_SETTINGS = {
    'DEFAULT_PROVIDER': 'stripe',
    'DEFAULT_CURRENCY': os.environ.get('PAYMENT_CURRENCY', 'USD'),
    'SUPPORTED_CURRENCIES': ['USD', 'EUR', 'GBP', 'PHP', 'INR'],
}

# Frontend URLs for payment redirects
PAYMENT_FRONTEND_URLS = {
    'VERIFY': f"{FRONTEND_URL}/verify",
}


# =============================================================================
# CELERY CONFIGURATION
# =============================================================================

CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://redis:6379/0')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', CELERY_BROKER_URL)
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = TESTING

CELERY_BEAT_SCHEDULE = {
    'auto-expire-past-appointments': {
        'task': 'appointments.tasks.auto_expire_past_appointments_task',
        'schedule': crontab(hour=0, minute=5),  # Daily, just after midnight
        'options': {'expires': 3600},  # Task expires in 1 hour if not executed
    },
}


# =============================================================================
# LOGGING
# =============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING' if TESTING else 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'users': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'doctors': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'appointments': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'payments': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'core': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}

if TESTING:
    for _logger in ('users', 'doctors', 'appointments', 'payments', 'core'):
        LOGGING['loggers'][_logger]['level'] = 'CRITICAL'
