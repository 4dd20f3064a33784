# app/celery.py
import os

from celery import Celery

if 'DJANGO_SETTINGS_MODULE' not in os.environ:
    os.environ['DJANGO_SETTINGS_MODULE'] = 'app.settings.production'

celery_app = Celery('app')

# All celery settings live in Django settings under the CELERY_ prefix
celery_app.config_from_object('django.conf:settings', namespace='CELERY')
celery_app.autodiscover_tasks()
