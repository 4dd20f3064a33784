from django.core.management.base import BaseCommand, CommandError

from core.notifications import NotificationGateway, REGISTRATION_APPROVED


class Command(BaseCommand):
    help = 'Send a sample notification email to check the mail configuration'

    def add_arguments(self, parser):
        parser.add_argument('email', type=str, help='Email address to send test to')

    def handle(self, *args, **options):
        gateway = NotificationGateway(max_attempts=1, retry_delay=0)
        sent = gateway.notify(REGISTRATION_APPROVED, {
            'recipient': options['email'],
            'user_name': 'Test Recipient',
        })
        if not sent:
            raise CommandError(f"Could not send test email to {options['email']}, see logs")
        self.stdout.write(self.style.SUCCESS(f"Test email sent to {options['email']}"))
