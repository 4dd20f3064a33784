# factories/management/commands/generate_sample_data.py
import random
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from factories.appointments import AppointmentFactory
from factories.base import TIME_LABELS, RandomChoiceMixin, date_key_in
from factories.doctors import DoctorFactory
from factories.users import PatientUserFactory, PendingPatientFactory, AdminUserFactory
from appointments.models import Appointment


class Command(BaseCommand):
    help = 'Generate realistic sample data for development and testing'

    def add_arguments(self, parser):
        parser.add_argument(
            '--doctors',
            type=int,
            default=10,
            help='Number of doctors to create (default: 10)'
        )
        parser.add_argument(
            '--patients',
            type=int,
            default=30,
            help='Number of patients to create (default: 30)'
        )
        parser.add_argument(
            '--pending-ratio',
            type=float,
            default=0.2,
            help='Ratio of patients still awaiting approval (default: 0.2)'
        )
        parser.add_argument(
            '--appointments-per-patient',
            type=str,
            default='0-3',
            help='Range of appointments per approved patient as "min-max" (default: 0-3)'
        )
        parser.add_argument(
            '--seed',
            type=int,
            help='Random seed for reproducible data'
        )
        parser.add_argument(
            '--verbose',
            action='store_true',
            help='Show detailed progress'
        )

    def handle(self, *args, **options):
        if options['seed']:
            random.seed(options['seed'])
            self.stdout.write(self.style.SUCCESS(f'Using random seed: {options["seed"]}'))

        if not 0 <= options['pending_ratio'] <= 1:
            raise CommandError('pending-ratio must be between 0 and 1')

        try:
            min_appts, max_appts = map(int, options['appointments_per_patient'].split('-'))
        except ValueError:
            raise CommandError('Invalid appointments-per-patient format. Use "min-max" (e.g., "0-3")')

        self.stdout.write('Starting sample data generation...\n')

        with transaction.atomic():
            AdminUserFactory(email='admin@clinic.local')

            doctors = DoctorFactory.create_batch(options['doctors'])
            # A few doctors on leave
            for doctor in random.sample(doctors, k=len(doctors) // 5):
                doctor.available = False
                doctor.save(update_fields=['available'])
            self.stdout.write(self.style.SUCCESS(f'✓ Created {len(doctors)} doctors'))

            pending_count = int(options['patients'] * options['pending_ratio'])
            approved = PatientUserFactory.create_batch(options['patients'] - pending_count)
            PendingPatientFactory.create_batch(pending_count)
            self.stdout.write(self.style.SUCCESS(
                f'✓ Created {len(approved)} approved and {pending_count} pending patients'
            ))

            available_doctors = [d for d in doctors if d.available]
            created = 0
            for patient in approved:
                if not available_doctors:
                    break
                for _ in range(random.randint(min_appts, max_appts)):
                    doctor = random.choice(available_doctors)
                    slot_date = date_key_in(random.randint(5, 28))
                    free = [t for t in TIME_LABELS if not doctor.is_slot_booked(slot_date, t)]
                    if not free:
                        continue

                    state = RandomChoiceMixin.random_choice_weighted([
                        (Appointment.STATUS_ACTIVE, 0.6),
                        (Appointment.STATUS_APPROVED, 0.25),
                        (Appointment.STATUS_CANCELLED, 0.15),
                    ])
                    AppointmentFactory(
                        user=patient,
                        doctor=doctor,
                        slot_date=slot_date,
                        slot_time=random.choice(free),
                        is_completed=state == Appointment.STATUS_APPROVED,
                        cancelled=state == Appointment.STATUS_CANCELLED,
                        cancelled_by=Appointment.CANCELLED_BY_PATIENT if state == Appointment.STATUS_CANCELLED else '',
                        payment=state != Appointment.STATUS_CANCELLED and RandomChoiceMixin.random_bool(0.4),
                    )
                    created += 1
                    if options['verbose']:
                        self.stdout.write(f'  - {patient.email} with {doctor.name} on {slot_date} ({state})')

            self.stdout.write(self.style.SUCCESS(f'✓ Created {created} appointments'))

        self.stdout.write('\n' + self.style.SUCCESS('Sample data generation complete!'))
        self.stdout.write('Admin login: admin@clinic.local / testpass123')
