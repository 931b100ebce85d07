"""
Production plans.

A plan is drafted (by hand or from a new-request notification), edited
while in draft, then approved. Approval creates the batches in the
production service, one call per batch, splitting the request quantity.
"""

import logging
import uuid

from django.db import transaction
from django.utils import timezone

from shopfloor.adapters import get_production_backend
from shopfloor.choices import Priority
from shopfloor.exceptions import BaseError, ProductionError
from shopfloor.planning.models import PlanStatus, ProductionPlan

logger = logging.getLogger('shopfloor')

PLAN_FIELDS = ('product_name', 'priority', 'planned_start_date', 'planned_end_date',
               'planned_batches', 'planning_notes')


def generate_plan_id() -> str:
    return f"PLAN-{timezone.now():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


def split_quantity(total: int, parts: int) -> list[int]:
    """
    Split `total` into at most `parts` positive integers, remainder first.

    >>> split_quantity(10, 3)
    [4, 3, 3]
    """
    parts = max(1, min(parts, total))
    base, remainder = divmod(total, parts)
    return [base + 1 if i < remainder else base for i in range(parts)]


def lock_plan(plan_id: str) -> ProductionPlan:
    try:
        return ProductionPlan.objects.select_for_update().get(plan_id=plan_id)
    except ProductionPlan.DoesNotExist:
        raise ProductionError('PLAN_NOT_FOUND', plan_id=plan_id) from None


def _clean(fields: dict) -> dict:
    changes = {k: v for k, v in fields.items() if k in PLAN_FIELDS}
    if 'priority' in changes and changes['priority'] not in Priority.values:
        raise ProductionError('VALIDATION_ERROR', f"Prioridade inválida: {changes['priority']}",
                              expected=Priority.values)
    if 'planned_batches' in changes:
        batches = changes['planned_batches']
        if isinstance(batches, bool) or not isinstance(batches, int) or batches < 1:
            raise ProductionError('VALIDATION_ERROR', 'planned_batches deve ser um inteiro >= 1')
    return changes


def _check_dates(plan: ProductionPlan) -> None:
    start, end = plan.planned_start_date, plan.planned_end_date
    if start and end and end < start:
        raise ProductionError(
            'VALIDATION_ERROR',
            'Fim planejado anterior ao início',
            planned_start_date=start,
            planned_end_date=end,
        )


def _expect_draft(plan: ProductionPlan) -> None:
    if not plan.is_draft:
        raise ProductionError('INVALID_STATUS', current=plan.status, plan_id=plan.plan_id)


class Planning:
    """Production plan methods."""

    @classmethod
    def create_plan(cls, product_name: str = '', request_id: str = '', **fields) -> ProductionPlan:
        """
        Draft a plan.

        With a request_id, the product (and priority, when not given) is
        taken from the production request.

        Raises:
            ProductionError('REQUEST_NOT_FOUND'): request_id unknown
            ProductionError('VALIDATION_ERROR'): no product, bad fields
            UpstreamError: production service unreachable
        """
        changes = _clean(fields)
        if request_id:
            info = get_production_backend().get_request(request_id)
            if info is None:
                raise ProductionError('REQUEST_NOT_FOUND', request_id=request_id)
            product_name = product_name or info.product_name
            changes.setdefault('priority', info.priority)
        if not product_name:
            raise ProductionError('VALIDATION_ERROR', 'product_name ou request_id é obrigatório')

        plan = ProductionPlan(
            plan_id=generate_plan_id(),
            request_id=request_id or '',
            product_name=product_name,
            **{k: v for k, v in changes.items() if k != 'product_name'},
        )
        _check_dates(plan)
        plan.save()

        logger.info(
            "planning.plan.created",
            extra={"plan_id": plan.plan_id, "request_id": plan.request_id},
        )
        return plan

    @classmethod
    def receive_request_notification(cls, request_id: str, priority: str | None = None,
                                     due_date=None) -> ProductionPlan:
        """
        A new production request exists: draft a plan for it.

        Starts today and ends at the due date. Repeated notifications
        return the request's open plan.
        """
        if not request_id:
            raise ProductionError('VALIDATION_ERROR', 'request_id é obrigatório')

        existing = ProductionPlan.objects.filter(request_id=request_id).exclude(
            status=PlanStatus.CANCELLED,
        ).first()
        if existing is not None:
            logger.info(
                "planning.notification.duplicate",
                extra={"plan_id": existing.plan_id, "request_id": request_id},
            )
            return existing

        info = get_production_backend().get_request(request_id)
        if info is None:
            raise ProductionError('REQUEST_NOT_FOUND', request_id=request_id)

        return cls.create_plan(
            info.product_name,
            request_id=request_id,
            priority=priority or info.priority,
            planned_start_date=timezone.localdate(),
            planned_end_date=due_date or info.due_date,
            planning_notes='Plano criado automaticamente a partir de nova solicitação',
        )

    @classmethod
    def receive_request_update(cls, request_id: str, priority: str | None = None,
                               status: str | None = None) -> ProductionPlan:
        """A production request changed: follow its priority and cancellation."""
        with transaction.atomic():
            plan = (
                ProductionPlan.objects.select_for_update()
                .filter(request_id=request_id)
                .exclude(status=PlanStatus.CANCELLED)
                .first()
            )
            if plan is None:
                raise ProductionError('PLAN_NOT_FOUND', request_id=request_id)
            if priority:
                plan.priority = _clean({'priority': priority})['priority']
            if status == 'cancelled':
                plan.status = PlanStatus.CANCELLED
            plan.save()

        logger.info(
            "planning.plan.synced",
            extra={"plan_id": plan.plan_id, "request_id": request_id, "status": plan.status},
        )
        return plan

    @classmethod
    def update_plan(cls, plan_id: str, **fields) -> ProductionPlan:
        """
        Raises:
            ProductionError('INVALID_STATUS'): plan is not a draft
        """
        changes = _clean(fields)
        with transaction.atomic():
            plan = lock_plan(plan_id)
            _expect_draft(plan)
            for attr, value in changes.items():
                setattr(plan, attr, value)
            _check_dates(plan)
            plan.save()

        logger.info("planning.plan.updated", extra={"plan_id": plan_id, "fields": sorted(changes)})
        return plan

    @classmethod
    def cancel_plan(cls, plan_id: str, reason: str = '') -> ProductionPlan:
        """
        Cancel a draft or approved plan. Batches already created stay
        in production; cancel them there.
        """
        with transaction.atomic():
            plan = lock_plan(plan_id)
            if plan.status == PlanStatus.CANCELLED:
                raise ProductionError('INVALID_STATUS', current=plan.status, plan_id=plan_id)
            plan.status = PlanStatus.CANCELLED
            if reason:
                plan.planning_notes = f"{plan.planning_notes}\n{reason}".strip()
            plan.save(update_fields=['status', 'planning_notes', 'updated_at'])

        logger.info("planning.plan.cancelled", extra={"plan_id": plan_id, "reason": reason})
        return plan

    @classmethod
    def delete_plan(cls, plan_id: str) -> None:
        with transaction.atomic():
            plan = lock_plan(plan_id)
            _expect_draft(plan)
            plan.delete()
        logger.info("planning.plan.deleted", extra={"plan_id": plan_id})

    @classmethod
    def approve_plan(cls, plan_id: str, notes: str = '') -> tuple[ProductionPlan, BaseError | None]:
        """
        DRAFT → APPROVED, then create the batches in production.

        The approval is committed before any batch is created. Batches
        are created one by one and recorded as they succeed; the first
        failure stops the loop and is returned (not raised), leaving the
        plan approved with the batches created so far.

        Returns:
            (plan, None) on success, (plan, error) on partial failure.
        """
        with transaction.atomic():
            plan = lock_plan(plan_id)
            _expect_draft(plan)
            plan.status = PlanStatus.APPROVED
            if notes:
                plan.planning_notes = f"{plan.planning_notes}\n{notes}".strip()
            plan.save(update_fields=['status', 'planning_notes', 'updated_at'])

        logger.info("planning.plan.approved", extra={"plan_id": plan_id})

        if not plan.request_id:
            return plan, None

        backend = get_production_backend()
        try:
            info = backend.get_request(plan.request_id)
            if info is None:
                raise ProductionError('REQUEST_NOT_FOUND', request_id=plan.request_id)
            for quantity in split_quantity(info.quantity, plan.planned_batches):
                batch = backend.create_batch(
                    plan.request_id,
                    quantity,
                    scheduled_start_date=plan.planned_start_date,
                    scheduled_end_date=plan.planned_end_date,
                    notes=f"Plano {plan.plan_id}",
                )
                cls._record_batch(plan, batch.batch_number)
        except BaseError as e:
            logger.warning(
                "planning.plan.batch_failed",
                extra={"plan_id": plan_id, "created": len(plan.batch_numbers), "error": e.as_dict()},
            )
            return plan, e

        logger.info(
            "planning.plan.batches_created",
            extra={"plan_id": plan_id, "batches": plan.batch_numbers},
        )
        return plan, None

    @classmethod
    def _record_batch(cls, plan: ProductionPlan, batch_number: str) -> None:
        with transaction.atomic():
            locked = lock_plan(plan.plan_id)
            locked.batch_numbers = [*locked.batch_numbers, batch_number]
            locked.save(update_fields=['batch_numbers', 'updated_at'])
        plan.batch_numbers = locked.batch_numbers

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def get_plan(cls, plan_id: str) -> ProductionPlan:
        try:
            return ProductionPlan.objects.get(plan_id=plan_id)
        except ProductionPlan.DoesNotExist:
            raise ProductionError('PLAN_NOT_FOUND', plan_id=plan_id) from None

    @classmethod
    def list_plans(cls, status: str | None = None, request_id: str | None = None,
                   priority: str | None = None):
        qs = ProductionPlan.objects.all()
        if status:
            qs = qs.filter(status=status)
        if request_id:
            qs = qs.filter(request_id=request_id)
        if priority:
            qs = qs.filter(priority=priority)
        return qs
