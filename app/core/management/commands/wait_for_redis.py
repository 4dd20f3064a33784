# core/management/commands/wait_for_redis.py
import time
from urllib.parse import urlparse

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from redis.exceptions import ConnectionError
import redis


class Command(BaseCommand):
    """Wait for the Celery broker (Redis) before starting workers and beat"""

    help = 'Block until the Redis broker in CELERY_BROKER_URL answers PING'

    def add_arguments(self, parser):
        parser.add_argument('--retries', type=int, default=30)
        parser.add_argument('--delay', type=float, default=2)

    def handle(self, *args, **options):
        self.stdout.write('Waiting for Redis...')

        url_parts = urlparse(settings.CELERY_BROKER_URL)
        if url_parts.scheme not in ('redis', 'rediss'):
            raise CommandError('CELERY_BROKER_URL is not a Redis URL.')

        client = redis.Redis.from_url(settings.CELERY_BROKER_URL)
        retries = options['retries']
        for attempt in range(1, retries + 1):
            try:
                client.ping()
                self.stdout.write(self.style.SUCCESS('Redis is available!'))
                return
            except ConnectionError:
                self.stdout.write(f"Redis unavailable, waiting {options['delay']} seconds... ({attempt}/{retries})")
                time.sleep(options['delay'])

        raise CommandError('Could not connect to Redis!')
