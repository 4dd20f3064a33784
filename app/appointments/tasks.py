# appointments/tasks.py
from celery import shared_task
import logging

from .services import AppointmentExpiryService

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def auto_expire_past_appointments_task(self):
    """
    Celery beat task: cancel active appointments whose day has passed
    """
    try:
        count = AppointmentExpiryService.sweep()
        logger.info(f"Celery task completed: auto-expired {count} past appointments")
        return {'success': True, 'expired_count': count}
    except Exception as e:
        logger.error(f"Celery task error while expiring past appointments: {str(e)}")
        raise self.retry(exc=e)
