"""
Machine registry.
"""

import logging

from django.db import transaction
from django.db.models import Exists, OuterRef

from shopfloor.exceptions import QueueError
from shopfloor.machine_queue.models import Machine, MachineStatus, QueueEntry, QueueStatus
from shopfloor.quantities import parse_decimal

logger = logging.getLogger('shopfloor')

MACHINE_FIELDS = ('name', 'machine_type', 'status', 'hours_per_day', 'location', 'notes')


def lock_machine(machine_id: str) -> Machine:
    """Fetch a machine with a row lock. Serializes every queue change on it."""
    try:
        return Machine.objects.select_for_update().get(machine_id=machine_id)
    except Machine.DoesNotExist:
        raise QueueError('MACHINE_NOT_FOUND', machine_id=machine_id) from None


def _clean(fields: dict) -> dict:
    changes = {k: v for k, v in fields.items() if k in MACHINE_FIELDS}
    if 'status' in changes and changes['status'] not in MachineStatus.values:
        raise QueueError('VALIDATION_ERROR', f"Status inválido: {changes['status']}",
                         expected=MachineStatus.values)
    if 'hours_per_day' in changes:
        try:
            hours = parse_decimal(changes['hours_per_day'], places=1, max_digits=4)
        except ValueError as e:
            raise QueueError('VALIDATION_ERROR', f"hours_per_day inválido: {e}") from None
        if not 0 < hours <= 24:
            raise QueueError('VALIDATION_ERROR', 'hours_per_day deve estar entre 0 e 24')
        changes['hours_per_day'] = hours
    return changes


class MachineRegistry:
    """Machine CRUD and availability."""

    @classmethod
    def create_machine(cls, machine_id: str, name: str, **fields) -> Machine:
        if not machine_id or not name:
            raise QueueError('VALIDATION_ERROR', 'machine_id e name são obrigatórios')
        changes = _clean(fields)

        with transaction.atomic():
            if Machine.objects.filter(machine_id=machine_id).exists():
                raise QueueError('DUPLICATE', f"Máquina {machine_id} já existe", machine_id=machine_id)
            machine = Machine.objects.create(machine_id=machine_id, name=name, **changes)

        logger.info("queue.machine.created", extra={"machine_id": machine_id})
        return machine

    @classmethod
    def update_machine(cls, machine_id: str, **fields) -> Machine:
        changes = _clean(fields)
        with transaction.atomic():
            machine = lock_machine(machine_id)
            for attr, value in changes.items():
                setattr(machine, attr, value)
            machine.save()
        logger.info("queue.machine.updated", extra={"machine_id": machine_id, "fields": sorted(changes)})
        return machine

    @classmethod
    def delete_machine(cls, machine_id: str) -> None:
        """
        Raises:
            QueueError('INVALID_STATUS'): machine has waiting/running entries
        """
        with transaction.atomic():
            machine = lock_machine(machine_id)
            if machine.entries.filter(status__in=QueueStatus.active()).exists():
                raise QueueError(
                    'INVALID_STATUS',
                    'Máquina possui itens ativos na fila',
                    machine_id=machine_id,
                )
            machine.entries.all().delete()
            machine.delete()
        logger.info("queue.machine.deleted", extra={"machine_id": machine_id})

    @classmethod
    def get_machine(cls, machine_id: str) -> Machine:
        try:
            return Machine.objects.get(machine_id=machine_id)
        except Machine.DoesNotExist:
            raise QueueError('MACHINE_NOT_FOUND', machine_id=machine_id) from None

    @classmethod
    def list_machines(cls, status: str | None = None, machine_type: str | None = None):
        qs = Machine.objects.all()
        if status:
            qs = qs.filter(status=status)
        if machine_type:
            qs = qs.filter(machine_type=machine_type)
        return qs

    @classmethod
    def available_machines(cls, machine_type: str | None = None):
        """Operational machines with nothing in progress or paused."""
        busy = QueueEntry.objects.filter(
            machine=OuterRef('pk'),
            status__in=QueueStatus.occupying(),
        )
        qs = Machine.objects.filter(status=MachineStatus.OPERATIONAL).exclude(Exists(busy))
        if machine_type:
            qs = qs.filter(machine_type=machine_type)
        return qs
