"""
Cycle progress reconciliation.
Recomputes total/completed/remaining meetings (and cycle status) from the meeting ledger.
Usage: python manage.py sync_progress [--cycle ID] [--apply]
Without --apply: dry-run only (report drift, no changes).
"""
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from cycles.models import Cycle
from cycles.services.progress import progress_snapshot, rebuild_from_ledger


class Command(BaseCommand):
    help = 'Recompute cycle progress counters from the meeting ledger'

    def add_arguments(self, parser):
        parser.add_argument(
            '--apply',
            action='store_true',
            help='Apply fixes (default: dry-run only)',
        )
        parser.add_argument(
            '--cycle',
            type=int,
            help='Only check this cycle id',
        )

    def handle(self, *args, **options):
        apply = options['apply']
        if not apply:
            self.stdout.write(self.style.WARNING('DRY RUN - no changes will be made. Use --apply to fix.'))

        qs = Cycle.objects.all().order_by('id')
        if options.get('cycle'):
            qs = qs.filter(pk=options['cycle'])
            if not qs.exists():
                raise CommandError(f"Cycle {options['cycle']} not found")

        drifted = []
        for cycle in qs:
            counts = progress_snapshot(cycle)
            total = counts['total']
            completed = counts['completed']
            if (
                cycle.total_meetings != total
                or cycle.completed_meetings != completed
                or cycle.remaining_meetings != total - completed
            ):
                drifted.append(cycle.id)
                self.stdout.write(
                    f'  Cycle id={cycle.id} "{cycle.name}": '
                    f'stored total={cycle.total_meetings} completed={cycle.completed_meetings} '
                    f'remaining={cycle.remaining_meetings}; ledger total={total} completed={completed}'
                )

        if not drifted:
            self.stdout.write('No progress drift found.')
            return

        if not apply:
            self.stdout.write(self.style.WARNING(f'{len(drifted)} cycles drifted. Run with --apply to fix.'))
            return

        fixed = 0
        for cycle_id in drifted:
            with transaction.atomic():
                report = rebuild_from_ledger(cycle_id)
            if report['changed']:
                fixed += 1
                self.stdout.write(self.style.SUCCESS(f"    Fixed cycle id={cycle_id}: {report['after']}"))
        self.stdout.write(self.style.SUCCESS(f'Sync complete. Fixed {fixed} cycles.'))
