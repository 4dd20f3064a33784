# app/settings/development.py
from .base import *

# Database for development
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'HOST': os.environ.get('DB_HOST', 'db'),
        'NAME': os.environ.get('DB_NAME', 'clinicdb'),
        'USER': os.environ.get('DB_USER', 'clinic'),
        'PASSWORD': os.environ.get('DB_PASSWORD', 'clinicpass'),
        'PORT': os.environ.get('DB_PORT', '5432'),
    }
}

# Override database settings if running tests
if TESTING and os.environ.get('TEST_DB_ENGINE', 'sqlite') == 'sqlite':
    DATABASES['default'] = {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'test_db.sqlite3',
    }

if TESTING:
    EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    NOTIFICATIONS['ADMIN_EMAIL'] = 'admin@clinic.local'

# Development-specific settings
CORS_ALLOW_ALL_ORIGINS = True  # Be careful with this in production

DEBUG = os.getenv("DEBUG", "False") == "True"
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
