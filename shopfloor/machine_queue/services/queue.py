"""
Machine queue — ordering and lifecycle of queue entries.

Every change to a machine's queue locks the Machine row first, so
positions on one machine are only ever rewritten by one transaction at a
time. Waiting entries hold positions 1..n after compact(); the entry
being worked (in progress or paused) sits at 0.
"""

import logging
import uuid
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from shopfloor.choices import Priority
from shopfloor.conf import shopfloor_settings
from shopfloor.exceptions import QueueError
from shopfloor.machine_queue.models import QueueEntry, QueueStatus
from shopfloor.machine_queue.services.machines import MachineRegistry, lock_machine
from shopfloor.quantities import HOURS_DIGITS, HOURS_PLACES, parse_decimal

logger = logging.getLogger('shopfloor')

ENTRY_FIELDS = ('priority', 'hours_required', 'scheduled_start', 'scheduled_end',
                'operator_id', 'operator_name', 'notes', 'product_name')


def generate_queue_id() -> str:
    return f"Q{timezone.now():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


def _check_priority(priority) -> str:
    if priority not in Priority.values:
        raise QueueError('VALIDATION_ERROR', f"Prioridade inválida: {priority}",
                         priority=priority, expected=Priority.values)
    return priority


def _check_hours(hours) -> Decimal:
    try:
        value = parse_decimal(hours, HOURS_PLACES, HOURS_DIGITS)
    except ValueError as e:
        raise QueueError('VALIDATION_ERROR', f"hours_required inválido: {e}") from None
    if value <= 0:
        raise QueueError('VALIDATION_ERROR', 'hours_required deve ser positivo')
    return value


def _lock_entry(queue_id: str) -> QueueEntry:
    """Lock the entry's machine, then the entry."""
    try:
        machine_code = QueueEntry.objects.values_list('machine__machine_id', flat=True).get(queue_id=queue_id)
    except QueueEntry.DoesNotExist:
        raise QueueError('QUEUE_ENTRY_NOT_FOUND', queue_id=queue_id) from None
    lock_machine(machine_code)
    return QueueEntry.objects.select_for_update().select_related('machine').get(queue_id=queue_id)


def _expect(entry: QueueEntry, *statuses: str) -> None:
    if entry.status not in statuses:
        raise QueueError(
            'INVALID_STATUS',
            current=entry.status,
            expected=list(statuses),
            queue_id=entry.queue_id,
        )


def _waiting(machine):
    return QueueEntry.objects.select_for_update().filter(machine=machine, status=QueueStatus.WAITING)


def compact_machine(machine) -> int:
    """
    Renumber waiting entries 1..n by (position, priority desc, arrival).

    Must run inside transaction.atomic() with the machine locked.

    Returns:
        Number of entries whose position changed.
    """
    entries = sorted(
        _waiting(machine),
        key=lambda e: (e.position, -Priority.rank(e.priority), e.created_at, e.pk),
    )
    changed = 0
    for index, entry in enumerate(entries, start=1):
        if entry.position != index:
            entry.position = index
            entry.save(update_fields=['position', 'updated_at'])
            changed += 1
    return changed


def _insert_position(machine, priority: str) -> int:
    """
    Where a new waiting entry goes.

    Default: non-terminal count + 1. With QUEUE_PRIORITY_ORDERING, before
    the first waiting entry of strictly lower priority (entries from there
    on shift down by one).
    """
    position = QueueEntry.objects.filter(machine=machine, status__in=QueueStatus.active()).count() + 1
    if not shopfloor_settings.QUEUE_PRIORITY_ORDERING:
        return position

    rank = Priority.rank(priority)
    for entry in _waiting(machine).order_by('position', 'created_at', 'pk'):
        if Priority.rank(entry.priority) < rank:
            QueueEntry.objects.filter(
                machine=machine, status=QueueStatus.WAITING, position__gte=entry.position,
            ).update(position=F('position') + 1)
            return entry.position
    return position


class MachineQueue:
    """Queue entry methods."""

    @classmethod
    def enqueue(cls, machine_id: str, batch_id: str, product_name: str = '',
                step_id: int | None = None, step_name: str = '',
                priority: str = Priority.NORMAL, hours_required=Decimal('1'),
                scheduled_start=None, scheduled_end=None, notes: str = '') -> QueueEntry:
        """
        Add work to a machine's queue (status WAITING).

        Raises:
            QueueError('MACHINE_NOT_FOUND')
            QueueError('MACHINE_NOT_OPERATIONAL')
            QueueError('DUPLICATE'): the batch step is already queued
        """
        if not batch_id:
            raise QueueError('VALIDATION_ERROR', 'batch_id é obrigatório')
        priority = _check_priority(priority or Priority.NORMAL)
        hours_required = _check_hours(hours_required if hours_required is not None else 1)

        with transaction.atomic():
            machine = lock_machine(machine_id)
            if not machine.is_operational:
                raise QueueError('MACHINE_NOT_OPERATIONAL', machine_id=machine_id, status=machine.status)
            if step_id is not None and QueueEntry.objects.filter(
                batch_id=batch_id, step_id=step_id, status__in=QueueStatus.active(),
            ).exists():
                raise QueueError(
                    'DUPLICATE',
                    f"Etapa {step_id} do lote {batch_id} já está na fila",
                    batch_id=batch_id,
                    step_id=step_id,
                )

            entry = QueueEntry.objects.create(
                queue_id=generate_queue_id(),
                machine=machine,
                batch_id=batch_id,
                product_name=product_name or '',
                step_id=step_id,
                step_name=step_name or '',
                position=_insert_position(machine, priority),
                status=QueueStatus.WAITING,
                priority=priority,
                hours_required=hours_required,
                scheduled_start=scheduled_start,
                scheduled_end=scheduled_end,
                notes=notes or '',
            )
            if compact_machine(machine):
                entry.refresh_from_db(fields=['position'])

        logger.info(
            "queue.entry.enqueued",
            extra={
                "queue_id": entry.queue_id,
                "machine_id": machine_id,
                "batch_id": batch_id,
                "step_id": step_id,
                "position": entry.position,
                "priority": priority,
            },
        )
        return entry

    @classmethod
    def enqueue_batch_steps(cls, batch_id: str, steps, product_name: str = '',
                            priority: str = Priority.NORMAL) -> list[QueueEntry]:
        """
        Queue every step of a batch, all-or-nothing.

        Each step: {machine_id, step_id?, step_name?, hours_required?,
        scheduled_start?, scheduled_end?}. Machines are validated first.

        Raises:
            QueueError('VALIDATION_ERROR'): empty list / step without machine
            QueueError('MACHINE_NOT_FOUND' | 'MACHINE_NOT_OPERATIONAL' | 'DUPLICATE')
        """
        if not steps:
            raise QueueError('VALIDATION_ERROR', 'Lista de etapas vazia')
        for step in steps:
            if not isinstance(step, dict) or not step.get('machine_id'):
                raise QueueError('VALIDATION_ERROR', 'Cada etapa exige machine_id')

        with transaction.atomic():
            # Lock every machine in a stable order before queueing anything
            for machine_id in sorted({s['machine_id'] for s in steps}):
                machine = lock_machine(machine_id)
                if not machine.is_operational:
                    raise QueueError('MACHINE_NOT_OPERATIONAL', machine_id=machine_id, status=machine.status)

            entries = [
                cls.enqueue(
                    step['machine_id'],
                    batch_id,
                    product_name=product_name,
                    step_id=step.get('step_id'),
                    step_name=step.get('step_name', ''),
                    priority=priority,
                    hours_required=step.get('hours_required') or Decimal('1'),
                    scheduled_start=step.get('scheduled_start'),
                    scheduled_end=step.get('scheduled_end'),
                )
                for step in steps
            ]

        logger.info("queue.batch.enqueued", extra={"batch_id": batch_id, "entries": len(entries)})
        return entries

    @classmethod
    def update_entry(cls, queue_id: str, **fields) -> QueueEntry:
        changes = {k: v for k, v in fields.items() if k in ENTRY_FIELDS}
        if 'priority' in changes:
            changes['priority'] = _check_priority(changes['priority'])
        if 'hours_required' in changes:
            changes['hours_required'] = _check_hours(changes['hours_required'])

        with transaction.atomic():
            entry = _lock_entry(queue_id)
            if entry.is_terminal:
                raise QueueError('INVALID_STATUS', current=entry.status, queue_id=queue_id)
            for attr, value in changes.items():
                setattr(entry, attr, value)
            entry.save()

        logger.info("queue.entry.updated", extra={"queue_id": queue_id, "fields": sorted(changes)})
        return entry

    @classmethod
    def start(cls, queue_id: str, operator_id: str = '', operator_name: str = '') -> QueueEntry:
        """
        WAITING → IN_PROGRESS (position 0).

        Raises:
            QueueError('INVALID_STATUS'): not waiting
            QueueError('MACHINE_NOT_OPERATIONAL')
            QueueError('MACHINE_BUSY'): another entry is in progress or paused
        """
        with transaction.atomic():
            entry = _lock_entry(queue_id)
            _expect(entry, QueueStatus.WAITING)
            machine = entry.machine
            if not machine.is_operational:
                raise QueueError('MACHINE_NOT_OPERATIONAL', machine_id=machine.machine_id, status=machine.status)
            busy = machine.entries.filter(status__in=QueueStatus.occupying()).exclude(pk=entry.pk).first()
            if busy is not None:
                raise QueueError(
                    'MACHINE_BUSY',
                    machine_id=machine.machine_id,
                    busy_with=busy.queue_id,
                )

            entry.status = QueueStatus.IN_PROGRESS
            entry.position = 0
            entry.actual_start = timezone.now()
            if operator_id:
                entry.operator_id = operator_id
            if operator_name:
                entry.operator_name = operator_name
            try:
                with transaction.atomic():
                    entry.save()
            except IntegrityError:
                raise QueueError('MACHINE_BUSY', machine_id=machine.machine_id) from None
            compact_machine(machine)

        logger.info(
            "queue.entry.started",
            extra={"queue_id": queue_id, "machine_id": machine.machine_id, "operator": operator_id},
        )
        return entry

    @classmethod
    def pause(cls, queue_id: str, reason: str = '') -> QueueEntry:
        """IN_PROGRESS → PAUSED. The machine stays occupied."""
        with transaction.atomic():
            entry = _lock_entry(queue_id)
            _expect(entry, QueueStatus.IN_PROGRESS)
            entry.status = QueueStatus.PAUSED
            if reason:
                entry.notes = f"{entry.notes}\n{reason}".strip()
            entry.save(update_fields=['status', 'notes', 'updated_at'])
        logger.info("queue.entry.paused", extra={"queue_id": queue_id, "reason": reason})
        return entry

    @classmethod
    def resume(cls, queue_id: str) -> QueueEntry:
        """PAUSED → IN_PROGRESS."""
        with transaction.atomic():
            entry = _lock_entry(queue_id)
            _expect(entry, QueueStatus.PAUSED)
            entry.status = QueueStatus.IN_PROGRESS
            entry.save(update_fields=['status', 'updated_at'])
        logger.info("queue.entry.resumed", extra={"queue_id": queue_id})
        return entry

    @classmethod
    def complete(cls, queue_id: str, notes: str = '') -> QueueEntry:
        """IN_PROGRESS → COMPLETED, then the machine's queue is compacted."""
        with transaction.atomic():
            entry = _lock_entry(queue_id)
            _expect(entry, QueueStatus.IN_PROGRESS)
            cls._finish(entry, QueueStatus.COMPLETED, notes)
        logger.info("queue.entry.completed", extra={"queue_id": queue_id})
        return entry

    @classmethod
    def cancel(cls, queue_id: str, reason: str = '') -> QueueEntry:
        """Any non-terminal → CANCELLED, then compaction."""
        with transaction.atomic():
            entry = _lock_entry(queue_id)
            _expect(entry, *QueueStatus.active())
            cls._finish(entry, QueueStatus.CANCELLED, reason)
        logger.info("queue.entry.cancelled", extra={"queue_id": queue_id, "reason": reason})
        return entry

    @classmethod
    def remove(cls, queue_id: str) -> None:
        """
        Delete an entry (not while in progress), then compaction.

        Raises:
            QueueError('INVALID_STATUS'): entry is in progress
        """
        with transaction.atomic():
            entry = _lock_entry(queue_id)
            if entry.status == QueueStatus.IN_PROGRESS:
                raise QueueError(
                    'INVALID_STATUS',
                    'Item em andamento não pode ser removido',
                    current=entry.status,
                    queue_id=queue_id,
                )
            machine = entry.machine
            entry.delete()
            compact_machine(machine)
        logger.info("queue.entry.removed", extra={"queue_id": queue_id})

    @classmethod
    def move(cls, queue_id: str, new_position: int) -> QueueEntry:
        """
        Manually reorder a waiting entry to new_position (1-based,
        clamped to the queue length); the others keep their order.
        """
        if isinstance(new_position, bool) or not isinstance(new_position, int) or new_position < 1:
            raise QueueError('VALIDATION_ERROR', 'Posição deve ser um inteiro >= 1', position=new_position)

        with transaction.atomic():
            entry = _lock_entry(queue_id)
            _expect(entry, QueueStatus.WAITING)
            others = [
                e for e in _waiting(entry.machine).order_by('position', 'created_at', 'pk')
                if e.pk != entry.pk
            ]
            index = min(new_position, len(others) + 1) - 1
            others.insert(index, entry)
            for position, e in enumerate(others, start=1):
                if e.position != position:
                    e.position = position
                    e.save(update_fields=['position', 'updated_at'])

        logger.info("queue.entry.moved", extra={"queue_id": queue_id, "position": entry.position})
        return entry

    @classmethod
    def compact(cls, machine_id: str) -> int:
        with transaction.atomic():
            machine = lock_machine(machine_id)
            changed = compact_machine(machine)
        logger.info("queue.machine.compacted", extra={"machine_id": machine_id, "changed": changed})
        return changed

    @classmethod
    def _finish(cls, entry: QueueEntry, status: str, notes: str = '') -> None:
        entry.status = status
        entry.actual_end = timezone.now()
        if notes:
            entry.notes = f"{entry.notes}\n{notes}".strip()
        entry.save(update_fields=['status', 'actual_end', 'notes', 'updated_at'])
        compact_machine(entry.machine)

    # ══════════════════════════════════════════════════════════════
    # BATCH-LEVEL (called by production)
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def complete_step(cls, batch_id: str, step_id: int) -> QueueEntry | None:
        """
        Production finished a step: close its entry whatever its state.

        Returns:
            The completed entry, or None if the step was not queued.
        """
        entry = QueueEntry.objects.filter(
            batch_id=batch_id, step_id=step_id, status__in=QueueStatus.active(),
        ).first()
        if entry is None:
            logger.info("queue.step.not_queued", extra={"batch_id": batch_id, "step_id": step_id})
            return None

        with transaction.atomic():
            entry = _lock_entry(entry.queue_id)
            if entry.is_terminal:
                return entry
            if entry.actual_start is None:
                entry.actual_start = timezone.now()
                entry.save(update_fields=['actual_start'])
            cls._finish(entry, QueueStatus.COMPLETED)

        logger.info(
            "queue.step.completed",
            extra={"queue_id": entry.queue_id, "batch_id": batch_id, "step_id": step_id},
        )
        return entry

    @classmethod
    def cancel_batch(cls, batch_id: str, reason: str = '') -> int:
        """Cancel every non-terminal entry of a batch. Returns how many."""
        queue_ids = list(
            QueueEntry.objects.filter(batch_id=batch_id, status__in=QueueStatus.active())
            .order_by('machine__machine_id', 'pk')
            .values_list('queue_id', flat=True)
        )
        with transaction.atomic():
            for queue_id in queue_ids:
                entry = _lock_entry(queue_id)
                if not entry.is_terminal:
                    cls._finish(entry, QueueStatus.CANCELLED, reason)

        logger.info("queue.batch.cancelled", extra={"batch_id": batch_id, "entries": len(queue_ids)})
        return len(queue_ids)

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def get_entry(cls, queue_id: str) -> QueueEntry:
        try:
            return QueueEntry.objects.select_related('machine').get(queue_id=queue_id)
        except QueueEntry.DoesNotExist:
            raise QueueError('QUEUE_ENTRY_NOT_FOUND', queue_id=queue_id) from None

    @classmethod
    def list_entries(cls, machine_id: str | None = None, status: str | None = None,
                     batch_id: str | None = None):
        qs = QueueEntry.objects.select_related('machine')
        if machine_id:
            qs = qs.filter(machine__machine_id=machine_id)
        if status:
            qs = qs.filter(status=status)
        if batch_id:
            qs = qs.filter(batch_id=batch_id)
        return qs

    @classmethod
    def machine_queue(cls, machine_id: str):
        """Non-terminal entries of a machine: the running one first, then 1..n."""
        machine = MachineRegistry.get_machine(machine_id)
        return (
            QueueEntry.objects.select_related('machine')
            .filter(machine=machine, status__in=QueueStatus.active())
            .order_by('position', 'created_at', 'pk')
        )

    @classmethod
    def entries_for_batch(cls, batch_id: str):
        return (
            QueueEntry.objects.select_related('machine')
            .filter(batch_id=batch_id)
            .order_by('step_id', 'created_at')
        )
