# factories/management/commands/clear_data.py
from django.core.management.base import BaseCommand
from django.db import transaction
from django.conf import settings

from appointments.models import Appointment
from doctors.models import Doctor
from users.models import User


class Command(BaseCommand):
    help = 'Clear generated sample data with safety checks'

    def add_arguments(self, parser):
        parser.add_argument(
            '--type',
            type=str,
            choices=['all', 'appointments', 'doctors', 'patients'],
            default='all',
            help='Type of data to clear (default: all)'
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Skip confirmation prompts'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without actually deleting'
        )

    def handle(self, *args, **options):
        if not settings.DEBUG and not options['force']:
            self.stdout.write(self.style.ERROR('WARNING: DEBUG is off, this may be a production database!'))
            confirm = input('Are you absolutely sure? Type "DELETE PRODUCTION DATA" to confirm: ')
            if confirm != 'DELETE PRODUCTION DATA':
                self.stdout.write(self.style.ERROR('Aborted.'))
                return

        clear_type = options['type']
        querysets = {}
        if clear_type in ['all', 'appointments']:
            querysets['appointments'] = Appointment.objects.all()
        if clear_type in ['all', 'doctors']:
            querysets['doctors'] = Doctor.objects.all()
        if clear_type in ['all', 'patients']:
            querysets['patients'] = User.objects.filter(user_type='Patient')

        self.stdout.write('Data to be deleted:')
        total_records = 0
        for label, queryset in querysets.items():
            count = queryset.count()
            total_records += count
            self.stdout.write(f'  - {label}: {count}')

        if total_records == 0:
            self.stdout.write(self.style.WARNING('\nNo data matches the criteria. Nothing to delete.'))
            return

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('\n[DRY RUN] No data was actually deleted.'))
            return

        if not options['force']:
            confirm = input(f'\nDelete {total_records} records? Type "yes" to confirm: ')
            if confirm.lower() != 'yes':
                self.stdout.write(self.style.ERROR('Aborted.'))
                return

        with transaction.atomic():
            # Appointments first; deleting doctors or patients alone keeps appointment snapshots
            for label, queryset in querysets.items():
                deleted = queryset.delete()[0]
                self.stdout.write(self.style.SUCCESS(f'✓ Deleted {deleted} {label}'))

        self.stdout.write(self.style.SUCCESS('\nData cleared successfully!'))
