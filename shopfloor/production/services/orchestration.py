
"""
Cross-service orchestration — reserve material, queue steps, compensate.

assign_batch() runs as a saga:

    1. inventory.reserve_materials      → materials_assigned = True
    2. machine_queue.enqueue_batch_steps → machine_assigned = True
       on failure: inventory.release_materials, materials_assigned = False,
       then the enqueue error is re-raised
    3. PENDING → SCHEDULED

Remote calls happen outside database transactions; each flag update is
its own short transaction. No retries here, but a caller's retry is
safe: DUPLICATE from a step means an earlier call already did it.

Error codes are compared through error_code(), so a remote service's
code (carried by UpstreamError) counts the same as a local one.
"""

import logging

from django.db import transaction

from shopfloor.adapters import get_inventory_backend, get_machine_queue_backend
from shopfloor.exceptions import BaseError, ProductionError, UpstreamError, error_code
from shopfloor.production.models import BatchStatus, RequestStatus
from shopfloor.production.services.lifecycle import (
    ProductionLifecycle,
    lock_request,
)
from shopfloor.protocols import MaterialLine, QueueStep

logger = logging.getLogger('shopfloor')


def material_lines(batch) -> list[MaterialLine]:
    return [
        MaterialLine(
            material_id=m.material_id,
            quantity=m.quantity_required,
            unit_of_measure=m.unit_of_measure,
        )
        for m in batch.materials.all()
    ]


def queue_steps(batch) -> list[QueueStep]:
    return [
        QueueStep(
            step_id=s.pk,
            step_name=s.step_name,
            machine_id=s.machine_id,
            hours_required=s.hours_required,
            scheduled_start=s.scheduled_start,
            scheduled_end=s.scheduled_end,
        )
        for s in batch.steps.order_by('step_order')
        if s.machine_id and not s.is_terminal
    ]


class ProductionOrchestration:
    """Methods that span production, inventory and machine queue."""

    @classmethod
    def assign_batch(cls, batch_number: str):
        """
        Reserve the batch's materials, queue its steps and schedule it.

        Steps already done (flags set) are skipped, and a DUPLICATE from
        inventory or the queue counts as done, so a failed call can simply
        be retried by the caller. A batch without material lines counts
        as having its materials assigned.

        Raises:
            ProductionError('INVALID_STATUS'): batch not pending/scheduled
            StockError / QueueError / UpstreamError: from the other services,
                after compensation
        """
        batch = ProductionLifecycle.get_batch(batch_number)
        if batch.status not in (BatchStatus.PENDING, BatchStatus.SCHEDULED):
            raise ProductionError('INVALID_STATUS', current=batch.status, batch_number=batch_number)

        reserved_now = False
        if not batch.materials_assigned:
            lines = material_lines(batch)
            if lines:
                try:
                    get_inventory_backend().reserve_materials(batch_number, lines)
                except BaseError as e:
                    # A reserve that committed but whose reply was lost
                    if error_code(e) != 'DUPLICATE':
                        raise
                    logger.info("production.assign.reservation_exists", extra={"batch_number": batch_number})
                reserved_now = True
            batch = ProductionLifecycle.mark_materials_assigned(batch_number, True)

        if not batch.machine_assigned:
            steps = queue_steps(batch)
            if steps:
                request = batch.request
                try:
                    get_machine_queue_backend().enqueue_batch_steps(
                        batch_number, request.product_name, request.priority, steps,
                    )
                except BaseError as e:
                    if error_code(e) != 'DUPLICATE':
                        logger.warning(
                            "production.assign.enqueue_failed",
                            extra={"batch_number": batch_number, "error": e.as_dict()},
                        )
                        if reserved_now:
                            cls._compensate_reservation(batch_number)
                        raise
                    logger.info("production.assign.steps_already_queued", extra={"batch_number": batch_number})
                batch = ProductionLifecycle.mark_machine_assigned(batch_number, True)

        if batch.status == BatchStatus.PENDING:
            batch = ProductionLifecycle.transition(batch_number, BatchStatus.SCHEDULED)

        logger.info(
            "production.batch.assigned",
            extra={
                "batch_number": batch_number,
                "materials_assigned": batch.materials_assigned,
                "machine_assigned": batch.machine_assigned,
            },
        )
        return ProductionLifecycle.get_batch(batch_number)

    @classmethod
    def _compensate_reservation(cls, batch_number: str) -> None:
        """Undo step 1 of assign_batch. Failure here is logged, not raised."""
        try:
            get_inventory_backend().release_materials(batch_number)
        except BaseError as e:
            # Reservation stays active; materials_assigned stays True to match
            logger.error(
                "production.assign.compensation_failed",
                extra={"batch_number": batch_number, "error": e.as_dict()},
            )
            return
        ProductionLifecycle.mark_materials_assigned(batch_number, False)
        logger.info("production.assign.compensated", extra={"batch_number": batch_number})

    @classmethod
    def cancel_batch(cls, batch_number: str, reason: str = 'Cancelado'):
        """
        Cancel a batch and give back what it holds.

        Order: queue entries, then reserved material, then the status.
        Whatever succeeded is recorded in the flags; if anything failed
        the batch is NOT marked cancelled and UPSTREAM_SERVICE_ERROR is
        raised, so the call can be repeated.
        """
        batch = ProductionLifecycle.get_batch(batch_number)
        if batch.is_terminal:
            raise ProductionError('INVALID_STATUS', current=batch.status, batch_number=batch_number)

        failures = []

        # Also with the flags clear: a call whose reply was lost may have
        # committed remotely.
        if batch.machine_assigned or batch.steps.exclude(machine_id='').exists():
            try:
                get_machine_queue_backend().cancel_batch(batch_number, reason)
            except BaseError as e:
                failures.append(e)
            else:
                if batch.machine_assigned:
                    ProductionLifecycle.mark_machine_assigned(batch_number, False)

        if batch.materials.exists():
            try:
                get_inventory_backend().release_materials(batch_number)
            except BaseError as e:
                if error_code(e) != 'RESERVATION_NOT_FOUND':
                    failures.append(e)
                elif batch.materials_assigned:
                    ProductionLifecycle.mark_materials_assigned(batch_number, False)
            else:
                ProductionLifecycle.mark_materials_assigned(batch_number, False)
        elif batch.materials_assigned:
            ProductionLifecycle.mark_materials_assigned(batch_number, False)

        if failures:
            logger.error(
                "production.cancel.compensation_failed",
                extra={"batch_number": batch_number, "errors": [f.as_dict() for f in failures]},
            )
            raise UpstreamError(
                'UPSTREAM_SERVICE_ERROR',
                batch_number=batch_number,
                causes=[f.as_dict() for f in failures],
            )

        batch = ProductionLifecycle._apply_transition(batch_number, BatchStatus.CANCELLED)
        logger.info("production.batch.cancelled", extra={"batch_number": batch_number, "reason": reason})
        return batch

    @classmethod
    def cancel_request(cls, request_id: str, reason: str = 'Cancelado'):
        """
        Cancel a request and every open batch it has.

        Raises:
            ProductionError('INVALID_STATUS'): request already terminal
            UpstreamError: a batch could not give back its material/queue
                slots (request stays open)
        """
        request = ProductionLifecycle.get_request(request_id)
        if request.is_terminal:
            raise ProductionError('INVALID_STATUS', current=request.status, request_id=request_id)

        for batch in request.batches.exclude(status__in=BatchStatus.terminal()):
            cls.cancel_batch(batch.batch_number, reason)

        with transaction.atomic():
            request = lock_request(request_id)
            # Completed already if the remaining batches had finished
            if request.status != RequestStatus.COMPLETED:
                request.status = RequestStatus.CANCELLED
                request.save(update_fields=['status', 'updated_at'])

        logger.info(
            "production.request.cancelled",
            extra={"request_id": request_id, "status": request.status, "reason": reason},
        )
        return request
