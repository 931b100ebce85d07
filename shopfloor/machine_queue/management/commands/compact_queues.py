"""
Management command to renumber waiting queue entries.

Waiting entries of each machine end up at positions 1..n, ordered by
(position, priority, arrival).

Usage:
    python manage.py compact_queues
    python manage.py compact_queues --machine CNC-01
"""

from django.core.management.base import BaseCommand, CommandError

from shopfloor.exceptions import QueueError
from shopfloor.machine_queue.models import Machine
from shopfloor.machine_queue.service import machine_queue


class Command(BaseCommand):
    help = 'Compacta as posições das filas das máquinas'

    def add_arguments(self, parser):
        parser.add_argument('--machine', help='Compactar apenas esta máquina (machine_id)')

    def handle(self, *args, **options):
        if options['machine']:
            machine_ids = [options['machine']]
        else:
            machine_ids = list(Machine.objects.values_list('machine_id', flat=True))

        total = 0
        for machine_id in machine_ids:
            try:
                changed = machine_queue.compact(machine_id)
            except QueueError as e:
                raise CommandError(e.message) from e
            if changed:
                self.stdout.write(f'{machine_id}: {changed} posição(ões) ajustada(s)')
            total += changed

        self.stdout.write(self.style.SUCCESS(
            f'{len(machine_ids)} máquina(s) verificada(s), {total} posição(ões) ajustada(s)'
        ))
