from django.core.management.base import BaseCommand
from tracker.reminders import REMINDER_OFFSETS, ReminderScheduler


class Command(BaseCommand):
    help = 'Email deadline reminders for opportunities due in 1, 3 or 7 days'

    def add_arguments(self, parser):
        parser.add_argument('--offset', '-o', type=int, action='append', default=[], choices=REMINDER_OFFSETS,
            help=f'One of: {", ".join(map(str, REMINDER_OFFSETS))}. Repeatable; omit for all.')

    def handle(self, *args, **options):
        offsets = options['offset'] or REMINDER_OFFSETS
        self.stdout.write(self.style.WARNING('─── OpTracker Reminders ───'))
        result = ReminderScheduler(offsets=offsets).run()
        fn = self.style.SUCCESS if result.sent_count > 0 else self.style.WARNING
        self.stdout.write(fn(f'  sent: {result.sent_count}'))
        if result.failed_count:
            self.stdout.write(self.style.ERROR(f'  failed: {result.failed_count}'))
        self.stdout.write(f'  skipped: {result.skipped_count}')
        self.stdout.write(self.style.SUCCESS('─── Done ───'))
