"""
Local Backends.

Implement the protocols by calling the other shopfloor apps in the same
process (all apps mounted in one deployment). Domain errors propagate
unchanged (StockError, QueueError, ProductionError).

Imports of the apps are deferred to call time so that a deployment
only needs the apps it actually mounts.
"""

from __future__ import annotations

import logging
from datetime import date

from shopfloor.exceptions import ProductionError
from shopfloor.protocols import (
    BatchInfo,
    MaterialLine,
    QueueStep,
    QueueTicket,
    RequestInfo,
    ReservationResult,
)

logger = logging.getLogger(__name__)


def _reservation(reservation) -> ReservationResult:
    return ReservationResult(
        reservation_id=reservation.pk,
        batch_id=reservation.batch_id,
        status=reservation.status,
        lines=tuple(
            MaterialLine(
                material_id=line.material.material_id,
                quantity=line.quantity_reserved,
                unit_of_measure=line.unit_of_measure,
            )
            for line in reservation.lines.select_related('material')
        ),
    )


def _ticket(entry) -> QueueTicket:
    return QueueTicket(
        queue_id=entry.queue_id,
        machine_id=entry.machine.machine_id,
        position=entry.position,
        status=entry.status,
        step_id=entry.step_id,
    )


class LocalInventoryBackend:
    """InventoryBackend backed by shopfloor.inventory."""

    def reserve_materials(self, batch_id: str, lines: list[MaterialLine]) -> ReservationResult:
        from shopfloor.inventory.service import inventory

        reservation = inventory.reserve_materials(batch_id, [
            {
                'material_id': line.material_id,
                'quantity_required': line.quantity,
                'unit_of_measure': line.unit_of_measure,
            }
            for line in lines
        ])
        return _reservation(reservation)

    def release_materials(self, batch_id: str) -> ReservationResult:
        from shopfloor.inventory.service import inventory

        return _reservation(inventory.release_materials(batch_id))

    def consume_materials(self, batch_id: str) -> ReservationResult:
        from shopfloor.inventory.service import inventory

        return _reservation(inventory.consume_reservation(batch_id))


class LocalMachineQueueBackend:
    """MachineQueueBackend backed by shopfloor.machine_queue."""

    def enqueue_batch_steps(self, batch_id: str, product_name: str, priority: str,
                            steps: list[QueueStep]) -> list[QueueTicket]:
        from shopfloor.machine_queue.service import machine_queue

        entries = machine_queue.enqueue_batch_steps(
            batch_id,
            [
                {
                    'machine_id': step.machine_id,
                    'step_id': step.step_id,
                    'step_name': step.step_name,
                    'hours_required': step.hours_required,
                    'scheduled_start': step.scheduled_start,
                    'scheduled_end': step.scheduled_end,
                }
                for step in steps
            ],
            product_name=product_name,
            priority=priority,
        )
        return [_ticket(e) for e in entries]

    def complete_step(self, batch_id: str, step_id: int) -> QueueTicket | None:
        from shopfloor.machine_queue.service import machine_queue

        entry = machine_queue.complete_step(batch_id, step_id)
        return _ticket(entry) if entry is not None else None

    def cancel_batch(self, batch_id: str, reason: str = "") -> int:
        from shopfloor.machine_queue.service import machine_queue

        return machine_queue.cancel_batch(batch_id, reason)


class LocalProductionBackend:
    """ProductionBackend backed by shopfloor.production."""

    def get_request(self, request_id: str) -> RequestInfo | None:
        from shopfloor.production.service import production

        try:
            request = production.get_request(request_id)
        except ProductionError as e:
            if e.code == 'REQUEST_NOT_FOUND':
                return None
            raise
        return RequestInfo(
            request_id=request.request_id,
            product_name=request.product_name,
            quantity=request.quantity,
            priority=request.priority,
            status=request.status,
            due_date=request.due_date,
        )

    def create_batch(self, request_id: str, quantity: int, scheduled_start_date: date | None = None,
                     scheduled_end_date: date | None = None, notes: str = "") -> BatchInfo:
        from shopfloor.production.service import production

        batch = production.create_batch(
            request_id,
            quantity,
            scheduled_start_date=scheduled_start_date,
            scheduled_end_date=scheduled_end_date,
            notes=notes,
        )
        return BatchInfo(
            batch_number=batch.batch_number,
            request_id=request_id,
            quantity=batch.quantity,
            status=batch.status,
        )
