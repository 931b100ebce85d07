"""
Batch lifecycle — requests, batches, steps and their status transitions.

Transitions are external (API calls); nothing here runs on a timer.
All state-changing methods use transaction.atomic() with row locks.
"""

import logging
import uuid

from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from shopfloor.adapters import (
    get_feedback_backend,
    get_inventory_backend,
    get_machine_queue_backend,
)
from shopfloor.choices import Priority
from shopfloor.exceptions import BaseError, ProductionError, error_code
from shopfloor.production.models import (
    BatchMaterial,
    BatchStatus,
    ProductionBatch,
    ProductionRequest,
    ProductionStep,
    RequestStatus,
)
from shopfloor.quantities import HOURS_DIGITS, HOURS_PLACES, parse_decimal

logger = logging.getLogger('shopfloor')

REQUEST_FIELDS = ('product_name', 'quantity', 'priority', 'due_date', 'notes')
BATCH_FIELDS = ('quantity', 'scheduled_start_date', 'scheduled_end_date', 'notes')
STEP_FIELDS = ('machine_type', 'machine_id', 'hours_required', 'scheduled_start',
               'scheduled_end', 'notes')


def generate_request_id() -> str:
    return f"REQ-{timezone.now():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


def generate_batch_number() -> str:
    return f"B{timezone.now():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool):
        raise ProductionError('INVALID_QUANTITY', requested=quantity)
    try:
        value = int(quantity)
    except (TypeError, ValueError):
        raise ProductionError('INVALID_QUANTITY', requested=quantity) from None
    if value < 1:
        raise ProductionError('INVALID_QUANTITY', requested=quantity)
    return value


def _check_priority(priority) -> str:
    if priority not in Priority.values:
        raise ProductionError(
            'VALIDATION_ERROR',
            f"Prioridade inválida: {priority}",
            priority=priority,
            expected=Priority.values,
        )
    return priority


def _material_lines(materials) -> list[dict]:
    lines = []
    for item in materials or []:
        if not isinstance(item, dict):
            raise ProductionError('VALIDATION_ERROR', 'Material inválido')
        material_id = item.get('material_id')
        raw_qty = item.get('quantity_required', item.get('quantity'))
        if not material_id or raw_qty in (None, ''):
            raise ProductionError('VALIDATION_ERROR', 'Cada material exige material_id e quantity_required')
        try:
            quantity = parse_decimal(raw_qty)
        except ValueError as e:
            raise ProductionError('VALIDATION_ERROR', f"quantity_required inválido: {e}",
                                  material_id=material_id) from None
        if quantity <= 0:
            raise ProductionError('INVALID_QUANTITY', material_id=material_id, requested=quantity)
        lines.append({
            'material_id': material_id,
            'quantity_required': quantity,
            'unit_of_measure': item.get('unit_of_measure') or '',
        })
    return lines


def _step_fields(step: dict) -> dict:
    if not step.get('step_name'):
        raise ProductionError('VALIDATION_ERROR', 'Cada etapa exige step_name')
    fields = {k: step[k] for k in STEP_FIELDS if step.get(k) not in (None, '')}
    if 'hours_required' in fields:
        try:
            fields['hours_required'] = parse_decimal(fields['hours_required'], HOURS_PLACES, HOURS_DIGITS)
        except ValueError as e:
            raise ProductionError('VALIDATION_ERROR', f"hours_required inválido: {e}") from None
        if fields['hours_required'] <= 0:
            raise ProductionError('VALIDATION_ERROR', 'hours_required deve ser positivo')
    return fields


def lock_request(request_id: str) -> ProductionRequest:
    try:
        return ProductionRequest.objects.select_for_update().get(request_id=request_id)
    except ProductionRequest.DoesNotExist:
        raise ProductionError('REQUEST_NOT_FOUND', request_id=request_id) from None


def lock_batch(batch_number: str) -> ProductionBatch:
    try:
        return ProductionBatch.objects.select_for_update().get(batch_number=batch_number)
    except ProductionBatch.DoesNotExist:
        raise ProductionError('BATCH_NOT_FOUND', batch_number=batch_number) from None


def _lock_step(batch: ProductionBatch, step_id) -> ProductionStep:
    try:
        return ProductionStep.objects.select_for_update().get(batch=batch, pk=step_id)
    except (ProductionStep.DoesNotExist, ValueError):
        raise ProductionError('STEP_NOT_FOUND', batch_number=batch.batch_number, step_id=step_id) from None


def sync_request_status(request: ProductionRequest) -> bool:
    """
    Complete the request once every batch is terminal (and one completed).

    Must run inside transaction.atomic() with `request` locked.

    Returns:
        True if the request was completed by this call.
    """
    if request.is_terminal:
        return False
    statuses = set(request.batches.values_list('status', flat=True))
    if statuses and statuses <= set(BatchStatus.terminal()) and BatchStatus.COMPLETED in statuses:
        request.status = RequestStatus.COMPLETED
        request.save(update_fields=['status', 'updated_at'])
        logger.info("production.request.completed", extra={"request_id": request.request_id})
        return True
    return False


def notify_request_completed(request: ProductionRequest) -> None:
    """Tell the feedback service (best-effort: failures are logged)."""
    try:
        get_feedback_backend().status_update(
            request.request_id, RequestStatus.COMPLETED,
            notes=f"{request.product_name} x{request.quantity}",
        )
    except BaseError as e:
        logger.warning(
            "production.feedback.notify_failed",
            extra={"request_id": request.request_id, "error": e.as_dict()},
        )


def consume_batch_materials(batch: ProductionBatch) -> None:
    """
    Issue a completed batch's reservation out of stock (best-effort: failures are logged).

    A batch without material lines has nothing to consume.
    """
    if not batch.materials.exists():
        return
    try:
        get_inventory_backend().consume_materials(batch.batch_number)
    except BaseError as e:
        if error_code(e) == 'RESERVATION_NOT_FOUND':
            logger.info("production.inventory.nothing_to_consume", extra={"batch_number": batch.batch_number})
            return
        logger.warning(
            "production.inventory.consume_failed",
            extra={"batch_number": batch.batch_number, "error": e.as_dict()},
        )
        return
    logger.info("production.inventory.consumed", extra={"batch_number": batch.batch_number})


class ProductionLifecycle:
    """Request, batch and step methods."""

    # ══════════════════════════════════════════════════════════════
    # REQUESTS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_request(cls, product_name: str, quantity, request_id: str | None = None,
                       priority: str = Priority.NORMAL, due_date=None, notes: str = '') -> ProductionRequest:
        """
        Register a production request (status RECEIVED).

        Raises:
            ProductionError('DUPLICATE'): request_id exists
            ProductionError('INVALID_QUANTITY'): quantity < 1
        """
        if not product_name:
            raise ProductionError('VALIDATION_ERROR', 'product_name é obrigatório')
        quantity = _check_quantity(quantity)
        priority = _check_priority(priority or Priority.NORMAL)
        request_id = request_id or generate_request_id()

        with transaction.atomic():
            if ProductionRequest.objects.filter(request_id=request_id).exists():
                raise ProductionError('DUPLICATE', f"Solicitação {request_id} já existe", request_id=request_id)
            request = ProductionRequest.objects.create(
                request_id=request_id,
                product_name=product_name,
                quantity=quantity,
                priority=priority,
                due_date=due_date,
                notes=notes or '',
            )

        logger.info(
            "production.request.created",
            extra={"request_id": request_id, "product": product_name, "qty": quantity},
        )
        return request

    @classmethod
    def update_request(cls, request_id: str, **fields) -> ProductionRequest:
        changes = {k: v for k, v in fields.items() if k in REQUEST_FIELDS}
        if 'quantity' in changes:
            changes['quantity'] = _check_quantity(changes['quantity'])
        if 'priority' in changes:
            changes['priority'] = _check_priority(changes['priority'])

        with transaction.atomic():
            request = lock_request(request_id)
            if request.is_terminal:
                raise ProductionError('INVALID_STATUS', current=request.status, request_id=request_id)
            for attr, value in changes.items():
                setattr(request, attr, value)
            request.save()

        logger.info("production.request.updated", extra={"request_id": request_id, "fields": sorted(changes)})
        return request

    @classmethod
    def delete_request(cls, request_id: str) -> None:
        """Delete a request that has no batches."""
        with transaction.atomic():
            request = lock_request(request_id)
            if request.batches.exists():
                raise ProductionError(
                    'INVALID_STATUS',
                    'Solicitação possui lotes; cancele em vez de excluir',
                    request_id=request_id,
                )
            request.delete()
        logger.info("production.request.deleted", extra={"request_id": request_id})

    @classmethod
    def get_request(cls, request_id: str) -> ProductionRequest:
        try:
            return ProductionRequest.objects.get(request_id=request_id)
        except ProductionRequest.DoesNotExist:
            raise ProductionError('REQUEST_NOT_FOUND', request_id=request_id) from None

    @classmethod
    def list_requests(cls, status: str | None = None, priority: str | None = None):
        qs = ProductionRequest.objects.all()
        if status:
            qs = qs.filter(status=status)
        if priority:
            qs = qs.filter(priority=priority)
        return qs

    # ══════════════════════════════════════════════════════════════
    # BATCHES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_batch(cls, request_id: str, quantity, scheduled_start_date=None,
                     scheduled_end_date=None, notes: str = '', steps=None,
                     materials=None) -> ProductionBatch:
        """
        Create a PENDING batch with its steps and material lines.

        Steps are numbered 1..n in the given order. The request moves
        RECEIVED → PLANNED.

        Raises:
            ProductionError('REQUEST_NOT_FOUND')
            ProductionError('INVALID_STATUS'): request completed/cancelled
            ProductionError('INVALID_QUANTITY')
        """
        quantity = _check_quantity(quantity)
        step_rows = [_step_fields(s) | {'step_name': s['step_name']} for s in steps or []]
        material_rows = _material_lines(materials)

        with transaction.atomic():
            request = lock_request(request_id)
            if request.is_terminal:
                raise ProductionError('INVALID_STATUS', current=request.status, request_id=request_id)

            batch = ProductionBatch.objects.create(
                batch_number=generate_batch_number(),
                request=request,
                quantity=quantity,
                scheduled_start_date=scheduled_start_date,
                scheduled_end_date=scheduled_end_date,
                notes=notes or '',
            )
            for order, row in enumerate(step_rows, start=1):
                ProductionStep.objects.create(batch=batch, step_order=order, **row)
            for row in material_rows:
                BatchMaterial.objects.create(batch=batch, **row)

            if request.status == RequestStatus.RECEIVED:
                request.status = RequestStatus.PLANNED
                request.save(update_fields=['status', 'updated_at'])

        logger.info(
            "production.batch.created",
            extra={
                "batch_number": batch.batch_number,
                "request_id": request_id,
                "qty": quantity,
                "steps": len(step_rows),
                "materials": len(material_rows),
            },
        )
        return batch

    @classmethod
    def update_batch(cls, batch_number: str, **fields) -> ProductionBatch:
        """Dates, notes and quantity, while the batch is not terminal."""
        changes = {k: v for k, v in fields.items() if k in BATCH_FIELDS}
        if 'quantity' in changes:
            changes['quantity'] = _check_quantity(changes['quantity'])

        with transaction.atomic():
            batch = lock_batch(batch_number)
            if batch.is_terminal:
                raise ProductionError('INVALID_STATUS', current=batch.status, batch_number=batch_number)
            for attr, value in changes.items():
                setattr(batch, attr, value)
            batch.save()

        logger.info("production.batch.updated", extra={"batch_number": batch_number, "fields": sorted(changes)})
        return batch

    @classmethod
    def delete_batch(cls, batch_number: str) -> None:
        """
        Delete a batch that never started and holds nothing.

        Raises:
            ProductionError('INVALID_STATUS'): in progress/completed, or
                materials/machines still assigned (cancel it instead)
        """
        with transaction.atomic():
            batch = lock_batch(batch_number)
            if batch.status in (BatchStatus.IN_PROGRESS, BatchStatus.COMPLETED):
                raise ProductionError('INVALID_STATUS', current=batch.status, batch_number=batch_number)
            if batch.materials_assigned or batch.machine_assigned:
                raise ProductionError(
                    'INVALID_STATUS',
                    'Lote possui materiais ou máquinas atribuídos; cancele antes de excluir',
                    batch_number=batch_number,
                )
            batch.delete()
        logger.info("production.batch.deleted", extra={"batch_number": batch_number})

    @classmethod
    def get_batch(cls, batch_number: str) -> ProductionBatch:
        try:
            return (
                ProductionBatch.objects
                .select_related('request')
                .prefetch_related('steps', 'materials')
                .get(batch_number=batch_number)
            )
        except ProductionBatch.DoesNotExist:
            raise ProductionError('BATCH_NOT_FOUND', batch_number=batch_number) from None

    @classmethod
    def list_batches(cls, status: str | None = None, request_id: str | None = None):
        qs = ProductionBatch.objects.select_related('request').prefetch_related('steps', 'materials')
        if status:
            qs = qs.filter(status=status)
        if request_id:
            qs = qs.filter(request__request_id=request_id)
        return qs

    @classmethod
    def transition(cls, batch_number: str, to_status: str) -> ProductionBatch:
        """
        Move a batch along its state machine.

        PENDING → SCHEDULED additionally requires materials_assigned.
        Cancelling is refused here: ProductionOrchestration.cancel_batch
        gives back material and queue slots before the status changes.

        Raises:
            ProductionError('VALIDATION_ERROR'): unknown status
            ProductionError('INVALID_TRANSITION')
        """
        if to_status == BatchStatus.CANCELLED:
            raise ProductionError(
                'INVALID_TRANSITION',
                'Use o cancelamento do lote para liberar materiais e fila',
                requested=to_status,
                batch_number=batch_number,
            )
        return cls._apply_transition(batch_number, to_status)

    @classmethod
    def _apply_transition(cls, batch_number: str, to_status: str) -> ProductionBatch:
        if to_status not in BatchStatus.values:
            raise ProductionError('VALIDATION_ERROR', f"Status inválido: {to_status}", status=to_status)

        request_completed = False
        with transaction.atomic():
            batch = lock_batch(batch_number)
            if not batch.can_transition_to(to_status):
                raise ProductionError(
                    'INVALID_TRANSITION',
                    f"Transição inválida: {batch.status} → {to_status}",
                    current=batch.status,
                    requested=to_status,
                )
            if to_status == BatchStatus.SCHEDULED and not batch.materials_assigned:
                raise ProductionError(
                    'INVALID_TRANSITION',
                    'Lote só pode ser agendado após a reserva de materiais',
                    current=batch.status,
                    requested=to_status,
                )

            from_status = batch.status
            batch.status = to_status
            batch.save(update_fields=['status', 'updated_at'])

            request = lock_request(batch.request.request_id)
            if to_status == BatchStatus.IN_PROGRESS and request.status in (
                RequestStatus.RECEIVED, RequestStatus.PLANNED,
            ):
                request.status = RequestStatus.IN_PRODUCTION
                request.save(update_fields=['status', 'updated_at'])
            if to_status in BatchStatus.terminal():
                batch.steps.exclude(status__in=BatchStatus.terminal()).update(status=BatchStatus.CANCELLED)
                request_completed = sync_request_status(request)

        logger.info(
            "production.batch.transitioned",
            extra={"batch_number": batch_number, "from": from_status, "to": to_status},
        )
        if to_status == BatchStatus.COMPLETED:
            consume_batch_materials(batch)
        if request_completed:
            notify_request_completed(request)
        return batch

    @classmethod
    def mark_materials_assigned(cls, batch_number: str, value: bool = True) -> ProductionBatch:
        """
        Set/clear materials_assigned.

        The flag is trusted as-is; setting it without an inventory
        reservation is a caller error. assign_batch() is the normal path.
        """
        with transaction.atomic():
            batch = lock_batch(batch_number)
            batch.materials_assigned = bool(value)
            batch.save(update_fields=['materials_assigned', 'updated_at'])
        logger.info("production.batch.materials_assigned", extra={"batch_number": batch_number, "value": bool(value)})
        return batch

    @classmethod
    def mark_machine_assigned(cls, batch_number: str, value: bool = True) -> ProductionBatch:
        with transaction.atomic():
            batch = lock_batch(batch_number)
            batch.machine_assigned = bool(value)
            batch.save(update_fields=['machine_assigned', 'updated_at'])
        logger.info("production.batch.machine_assigned", extra={"batch_number": batch_number, "value": bool(value)})
        return batch

    # ══════════════════════════════════════════════════════════════
    # STEPS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def list_steps(cls, batch_number: str):
        batch = cls.get_batch(batch_number)
        return batch.steps.order_by('step_order')

    @classmethod
    def add_step(cls, batch_number: str, step_name: str, **fields) -> ProductionStep:
        """Append a step at the end of the batch's sequence."""
        row = _step_fields({'step_name': step_name, **fields})

        with transaction.atomic():
            batch = lock_batch(batch_number)
            if batch.is_terminal:
                raise ProductionError('INVALID_STATUS', current=batch.status, batch_number=batch_number)
            last = batch.steps.aggregate(m=Max('step_order'))['m'] or 0
            step = ProductionStep.objects.create(
                batch=batch, step_name=step_name, step_order=last + 1, **row,
            )

        logger.info(
            "production.step.added",
            extra={"batch_number": batch_number, "step_id": step.pk, "order": step.step_order},
        )
        return step

    @classmethod
    def start_step(cls, batch_number: str, step_id, operator_id: str = '') -> ProductionStep:
        """
        Start a step. The batch goes IN_PROGRESS (and the request
        IN_PRODUCTION) with its first started step.

        Raises:
            ProductionError('INVALID_STATUS'): batch not scheduled/in progress,
                or step not pending/scheduled
        """
        with transaction.atomic():
            batch = lock_batch(batch_number)
            if batch.status not in (BatchStatus.SCHEDULED, BatchStatus.IN_PROGRESS):
                raise ProductionError(
                    'INVALID_STATUS',
                    'Lote precisa estar agendado para iniciar etapas',
                    current=batch.status,
                    batch_number=batch_number,
                )
            step = _lock_step(batch, step_id)
            if step.status not in (BatchStatus.PENDING, BatchStatus.SCHEDULED):
                raise ProductionError('INVALID_STATUS', current=step.status, step_id=step.pk)

            step.status = BatchStatus.IN_PROGRESS
            step.actual_start = timezone.now()
            if operator_id:
                step.operator_id = operator_id
            step.save(update_fields=['status', 'actual_start', 'operator_id'])

            if batch.status == BatchStatus.SCHEDULED:
                batch.status = BatchStatus.IN_PROGRESS
                batch.save(update_fields=['status', 'updated_at'])
                request = lock_request(batch.request.request_id)
                if request.status in (RequestStatus.RECEIVED, RequestStatus.PLANNED):
                    request.status = RequestStatus.IN_PRODUCTION
                    request.save(update_fields=['status', 'updated_at'])

        logger.info(
            "production.step.started",
            extra={"batch_number": batch_number, "step_id": step.pk, "operator": operator_id},
        )
        return step

    @classmethod
    def complete_step(cls, batch_number: str, step_id, notes: str = '') -> ProductionStep:
        """
        Complete an in-progress step.

        When every step is terminal the batch completes; when every batch
        of the request is terminal the request completes. Afterwards the
        batch's reservation is consumed and the machine queue and the
        feedback service are told (all best-effort).
        """
        request_completed = False
        batch_completed = False
        with transaction.atomic():
            batch = lock_batch(batch_number)
            step = _lock_step(batch, step_id)
            if step.status != BatchStatus.IN_PROGRESS:
                raise ProductionError(
                    'INVALID_STATUS',
                    current=step.status,
                    expected=BatchStatus.IN_PROGRESS,
                    step_id=step.pk,
                )

            step.status = BatchStatus.COMPLETED
            step.actual_end = timezone.now()
            if notes:
                step.notes = notes
            step.save(update_fields=['status', 'actual_end', 'notes'])

            open_steps = batch.steps.exclude(status__in=BatchStatus.terminal()).exists()
            if not open_steps and batch.status == BatchStatus.IN_PROGRESS:
                batch.status = BatchStatus.COMPLETED
                batch.save(update_fields=['status', 'updated_at'])
                batch_completed = True
                logger.info("production.batch.completed", extra={"batch_number": batch_number})
                request = lock_request(batch.request.request_id)
                request_completed = sync_request_status(request)

        logger.info("production.step.completed", extra={"batch_number": batch_number, "step_id": step.pk})

        if batch.machine_assigned and step.machine_id:
            try:
                get_machine_queue_backend().complete_step(batch_number, step.pk)
            except BaseError as e:
                logger.warning(
                    "production.queue.notify_failed",
                    extra={"batch_number": batch_number, "step_id": step.pk, "error": e.as_dict()},
                )
        if batch_completed:
            consume_batch_materials(batch)
        if request_completed:
            notify_request_completed(request)
        return step
