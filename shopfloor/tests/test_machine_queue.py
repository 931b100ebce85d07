"""
Tests for machines and machine queues.
"""

from io import StringIO

import pytest
from django.core.management import call_command
from django.db import IntegrityError

from shopfloor.exceptions import QueueError
from shopfloor.machine_queue.models import QueueEntry, QueueStatus
from shopfloor.machine_queue.service import machine_queue


pytestmark = pytest.mark.django_db


def waiting_order(machine_id):
    """(batch_id, position) of waiting entries, in queue order."""
    return list(
        QueueEntry.objects.filter(machine__machine_id=machine_id, status=QueueStatus.WAITING)
        .order_by('position')
        .values_list('batch_id', 'position')
    )


class TestMachines:

    def test_create_duplicate(self, cnc):
        with pytest.raises(QueueError) as exc:
            machine_queue.create_machine('CNC-01', 'Outro')
        assert exc.value.code == 'DUPLICATE'

    @pytest.mark.parametrize('fields', [
        {'status': 'broken'},
        {'hours_per_day': 30},
        {'hours_per_day': 'NaN'},
        {'hours_per_day': 'Infinity'},
        {'hours_per_day': '7.25'},
    ])
    def test_invalid_fields(self, db, fields):
        with pytest.raises(QueueError) as exc:
            machine_queue.create_machine('X-1', 'X', **fields)
        assert exc.value.code == 'VALIDATION_ERROR'

    def test_available_excludes_busy_and_stopped(self, cnc, mill):
        machine_queue.create_machine('PRESS-01', 'Prensa', status='maintenance')
        entry = machine_queue.enqueue('CNC-01', 'B1')
        machine_queue.start(entry.queue_id)

        assert [m.machine_id for m in machine_queue.available_machines()] == ['MILL-01']

    def test_delete_refused_with_active_entries(self, cnc):
        machine_queue.enqueue('CNC-01', 'B1')

        with pytest.raises(QueueError) as exc:
            machine_queue.delete_machine('CNC-01')
        assert exc.value.code == 'INVALID_STATUS'

    def test_delete_with_history(self, cnc):
        entry = machine_queue.enqueue('CNC-01', 'B1')
        machine_queue.cancel(entry.queue_id)

        machine_queue.delete_machine('CNC-01')

        assert not QueueEntry.objects.exists()


class TestEnqueue:

    def test_appends_in_arrival_order(self, cnc):
        for batch_id in ('B1', 'B2', 'B3'):
            machine_queue.enqueue('CNC-01', batch_id)

        assert waiting_order('CNC-01') == [('B1', 1), ('B2', 2), ('B3', 3)]

    def test_priority_aware_insertion(self, cnc):
        machine_queue.enqueue('CNC-01', 'N1')
        machine_queue.enqueue('CNC-01', 'L1', priority='low')
        machine_queue.enqueue('CNC-01', 'N2')
        urgent = machine_queue.enqueue('CNC-01', 'U1', priority='urgent')
        machine_queue.enqueue('CNC-01', 'H1', priority='high')

        assert urgent.position == 1
        assert waiting_order('CNC-01') == [('U1', 1), ('H1', 2), ('N1', 3), ('N2', 4), ('L1', 5)]

    def test_priority_advisory_when_disabled(self, cnc, settings):
        settings.SHOPFLOOR = {**settings.SHOPFLOOR, 'QUEUE_PRIORITY_ORDERING': False}

        machine_queue.enqueue('CNC-01', 'N1')
        machine_queue.enqueue('CNC-01', 'U1', priority='urgent')

        assert waiting_order('CNC-01') == [('N1', 1), ('U1', 2)]

    def test_unknown_machine(self, db):
        with pytest.raises(QueueError) as exc:
            machine_queue.enqueue('NOPE', 'B1')
        assert exc.value.code == 'MACHINE_NOT_FOUND'

    def test_machine_not_operational(self, cnc):
        machine_queue.update_machine('CNC-01', status='maintenance')

        with pytest.raises(QueueError) as exc:
            machine_queue.enqueue('CNC-01', 'B1')
        assert exc.value.code == 'MACHINE_NOT_OPERATIONAL'

    def test_same_step_twice(self, cnc):
        machine_queue.enqueue('CNC-01', 'B1', step_id=7)

        with pytest.raises(QueueError) as exc:
            machine_queue.enqueue('CNC-01', 'B1', step_id=7)
        assert exc.value.code == 'DUPLICATE'

    def test_invalid_priority(self, cnc):
        with pytest.raises(QueueError) as exc:
            machine_queue.enqueue('CNC-01', 'B1', priority='asap')
        assert exc.value.code == 'VALIDATION_ERROR'

    @pytest.mark.parametrize('hours', ['NaN', 'Infinity', '0', '1.005'])
    def test_invalid_hours(self, cnc, hours):
        with pytest.raises(QueueError) as exc:
            machine_queue.enqueue('CNC-01', 'B1', hours_required=hours)
        assert exc.value.code == 'VALIDATION_ERROR'

    def test_batch_steps_all_or_nothing(self, cnc, mill):
        machine_queue.update_machine('MILL-01', status='offline')

        with pytest.raises(QueueError) as exc:
            machine_queue.enqueue_batch_steps('B1', [
                {'machine_id': 'CNC-01', 'step_id': 1, 'step_name': 'Torneamento'},
                {'machine_id': 'MILL-01', 'step_id': 2, 'step_name': 'Fresamento'},
            ])

        assert exc.value.code == 'MACHINE_NOT_OPERATIONAL'
        assert not QueueEntry.objects.exists()

    def test_batch_steps(self, cnc, mill):
        entries = machine_queue.enqueue_batch_steps('B1', [
            {'machine_id': 'CNC-01', 'step_id': 1, 'step_name': 'Torneamento'},
            {'machine_id': 'MILL-01', 'step_id': 2, 'step_name': 'Fresamento', 'hours_required': 3},
        ], product_name='Eixo', priority='high')

        assert [e.machine.machine_id for e in entries] == ['CNC-01', 'MILL-01']
        assert {e.priority for e in entries} == {'high'}


class TestEntryLifecycle:

    def test_start_moves_to_front_and_compacts(self, cnc):
        first = machine_queue.enqueue('CNC-01', 'B1')
        machine_queue.enqueue('CNC-01', 'B2')
        machine_queue.enqueue('CNC-01', 'B3')

        started = machine_queue.start(first.queue_id, operator_id='42')

        assert started.status == QueueStatus.IN_PROGRESS
        assert started.position == 0
        assert started.actual_start is not None
        assert waiting_order('CNC-01') == [('B2', 1), ('B3', 2)]

    def test_one_in_progress_per_machine(self, cnc):
        first = machine_queue.enqueue('CNC-01', 'B1')
        second = machine_queue.enqueue('CNC-01', 'B2')
        machine_queue.start(first.queue_id)

        with pytest.raises(QueueError) as exc:
            machine_queue.start(second.queue_id)
        assert exc.value.code == 'MACHINE_BUSY'

    def test_paused_entry_keeps_machine_busy(self, cnc):
        first = machine_queue.enqueue('CNC-01', 'B1')
        second = machine_queue.enqueue('CNC-01', 'B2')
        machine_queue.start(first.queue_id)
        paused = machine_queue.pause(first.queue_id, reason='Troca de ferramenta')

        assert paused.position == 0
        with pytest.raises(QueueError) as exc:
            machine_queue.start(second.queue_id)
        assert exc.value.code == 'MACHINE_BUSY'

        assert machine_queue.resume(first.queue_id).status == QueueStatus.IN_PROGRESS

    def test_database_allows_one_in_progress(self, cnc):
        QueueEntry.objects.create(queue_id='Q1', machine=cnc, batch_id='B1', status=QueueStatus.IN_PROGRESS)

        with pytest.raises(IntegrityError):
            QueueEntry.objects.create(queue_id='Q2', machine=cnc, batch_id='B2', status=QueueStatus.IN_PROGRESS)

    def test_complete_frees_machine(self, cnc):
        first = machine_queue.enqueue('CNC-01', 'B1')
        second = machine_queue.enqueue('CNC-01', 'B2')
        machine_queue.start(first.queue_id)

        done = machine_queue.complete(first.queue_id)

        assert done.status == QueueStatus.COMPLETED
        assert done.actual_end is not None
        assert machine_queue.start(second.queue_id).position == 0

    def test_complete_requires_in_progress(self, cnc):
        entry = machine_queue.enqueue('CNC-01', 'B1')

        with pytest.raises(QueueError) as exc:
            machine_queue.complete(entry.queue_id)
        assert exc.value.code == 'INVALID_STATUS'

    def test_cancel_compacts(self, cnc):
        machine_queue.enqueue('CNC-01', 'B1')
        middle = machine_queue.enqueue('CNC-01', 'B2')
        machine_queue.enqueue('CNC-01', 'B3')

        machine_queue.cancel(middle.queue_id)

        assert waiting_order('CNC-01') == [('B1', 1), ('B3', 2)]

    def test_cancel_terminal_rejected(self, cnc):
        entry = machine_queue.enqueue('CNC-01', 'B1')
        machine_queue.cancel(entry.queue_id)

        with pytest.raises(QueueError) as exc:
            machine_queue.cancel(entry.queue_id)
        assert exc.value.code == 'INVALID_STATUS'

    def test_remove_refused_in_progress(self, cnc):
        entry = machine_queue.enqueue('CNC-01', 'B1')
        machine_queue.start(entry.queue_id)

        with pytest.raises(QueueError) as exc:
            machine_queue.remove(entry.queue_id)
        assert exc.value.code == 'INVALID_STATUS'

    def test_remove_compacts(self, cnc):
        first = machine_queue.enqueue('CNC-01', 'B1')
        machine_queue.enqueue('CNC-01', 'B2')

        machine_queue.remove(first.queue_id)

        assert waiting_order('CNC-01') == [('B2', 1)]

    def test_move(self, cnc):
        machine_queue.enqueue('CNC-01', 'B1')
        machine_queue.enqueue('CNC-01', 'B2')
        last = machine_queue.enqueue('CNC-01', 'B3')

        machine_queue.move(last.queue_id, 1)

        assert waiting_order('CNC-01') == [('B3', 1), ('B1', 2), ('B2', 3)]

    def test_move_clamps_to_queue_length(self, cnc):
        first = machine_queue.enqueue('CNC-01', 'B1')
        machine_queue.enqueue('CNC-01', 'B2')

        assert machine_queue.move(first.queue_id, 99).position == 2

    def test_unknown_entry(self, db):
        with pytest.raises(QueueError) as exc:
            machine_queue.start('Q-NOPE')
        assert exc.value.code == 'QUEUE_ENTRY_NOT_FOUND'


class TestCompaction:

    def test_compact_closes_gaps(self, cnc):
        for batch_id in ('B1', 'B2', 'B3'):
            machine_queue.enqueue('CNC-01', batch_id)
        QueueEntry.objects.filter(batch_id='B2').update(position=7)
        QueueEntry.objects.filter(batch_id='B3').update(position=12)

        changed = machine_queue.compact('CNC-01')

        assert changed == 2
        assert waiting_order('CNC-01') == [('B1', 1), ('B2', 2), ('B3', 3)]

    def test_command(self, cnc, mill):
        machine_queue.enqueue('CNC-01', 'B1')
        QueueEntry.objects.update(position=5)
        out = StringIO()

        call_command('compact_queues', stdout=out)

        assert waiting_order('CNC-01') == [('B1', 1)]
        assert '2 máquina(s)' in out.getvalue()

    def test_command_unknown_machine(self, db):
        from django.core.management.base import CommandError

        with pytest.raises(CommandError):
            call_command('compact_queues', '--machine', 'NOPE', stdout=StringIO())


class TestBatchLevel:

    def test_complete_step_from_waiting(self, cnc):
        machine_queue.enqueue('CNC-01', 'B1', step_id=1)

        entry = machine_queue.complete_step('B1', 1)

        assert entry.status == QueueStatus.COMPLETED
        assert entry.actual_start is not None

    def test_complete_step_not_queued(self, cnc):
        assert machine_queue.complete_step('B1', 1) is None

    def test_cancel_batch(self, cnc, mill):
        machine_queue.enqueue('CNC-01', 'B1', step_id=1)
        machine_queue.enqueue('MILL-01', 'B1', step_id=2)
        machine_queue.enqueue('CNC-01', 'B2', step_id=3)

        assert machine_queue.cancel_batch('B1', reason='Lote cancelado') == 2
        assert waiting_order('CNC-01') == [('B2', 1)]
        assert machine_queue.cancel_batch('B1') == 0
