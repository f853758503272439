"""
Management command running the daily lease maintenance tasks
Usage: python manage.py run_scheduled_tasks [--date YYYY-MM-DD] [--force-invoices]
"""
from datetime import datetime
from django.core.management.base import BaseCommand, CommandError
from backend.core.scheduled_tasks import run_scheduled_tasks


class Command(BaseCommand):
    help = 'Mark overdue invoices, send payment reminders, renew or expire contracts and generate monthly invoices'

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            type=str,
            help='Run as if today were this date (YYYY-MM-DD)',
        )
        parser.add_argument(
            '--force-invoices',
            action='store_true',
            help='Generate monthly invoices even if today is not the first of the month',
        )

    def handle(self, *args, **options):
        today = None
        if options['date']:
            try:
                today = datetime.strptime(options['date'], '%Y-%m-%d').date()
            except ValueError:
                raise CommandError(f"Invalid date '{options['date']}', expected YYYY-MM-DD")

        self.stdout.write('Running scheduled tasks...')
        try:
            summary = run_scheduled_tasks(today=today, force_invoices=options['force_invoices'])
        except Exception as e:
            raise CommandError(f'Scheduled tasks failed: {e}')

        results = summary['results']
        self.stdout.write(self.style.SUCCESS(f"  ✓ Marked {results['overdue_invoices']} overdue invoices"))
        self.stdout.write(self.style.SUCCESS(f"  ✓ Sent {results['payment_reminders']} payment reminders"))
        self.stdout.write(self.style.SUCCESS(f"  ✓ Processed {results['contracts_processed']} contract renewals"))
        if results['invoices_generated'] is None:
            self.stdout.write('  - Monthly invoices skipped (not the first of the month)')
        else:
            self.stdout.write(self.style.SUCCESS(f"  ✓ Generated {results['invoices_generated']} monthly invoices"))
        self.stdout.write(self.style.SUCCESS(summary['message']))
