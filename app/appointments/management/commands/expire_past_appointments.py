from datetime import datetime

from django.core.management.base import BaseCommand, CommandError

from appointments.services import AppointmentExpiryService


class Command(BaseCommand):
    help = 'Cancel active appointments whose date has passed and free their slots'

    def add_arguments(self, parser):
        parser.add_argument(
            '--as-of',
            type=str,
            help='Treat this day (YYYY-MM-DD) as today; defaults to the current date',
        )

    def handle(self, *args, **options):
        as_of = None
        if options.get('as_of'):
            try:
                as_of = datetime.strptime(options['as_of'], '%Y-%m-%d').date()
            except ValueError:
                raise CommandError(f"Invalid --as-of date '{options['as_of']}', expected YYYY-MM-DD")

        count = AppointmentExpiryService.sweep(as_of)
        self.stdout.write(self.style.SUCCESS(f'Expired {count} past appointments'))
