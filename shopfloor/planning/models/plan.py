"""
ProductionPlan model — how a production request will be produced.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from shopfloor.choices import Priority


class PlanStatus(models.TextChoices):
    DRAFT = 'draft', _('Rascunho')
    APPROVED = 'approved', _('Aprovado')
    CANCELLED = 'cancelled', _('Cancelado')


class ProductionPlan(models.Model):
    """
    A plan for one production request.

    DRAFT ──approve()──► APPROVED (batches created in production)
      │                     │
      └──── cancel() ───────┴──► CANCELLED

    Only drafts can be edited or deleted.
    """

    plan_id = models.CharField(max_length=50, unique=True, verbose_name=_('Código'))
    request_id = models.CharField(
        max_length=50,
        blank=True,
        db_index=True,
        verbose_name=_('Solicitação'),
        help_text=_('Código da solicitação de produção'),
    )
    product_name = models.CharField(max_length=200, verbose_name=_('Produto'))
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.NORMAL,
        verbose_name=_('Prioridade'),
    )
    planned_start_date = models.DateField(null=True, blank=True, verbose_name=_('Início Planejado'))
    planned_end_date = models.DateField(null=True, blank=True, verbose_name=_('Fim Planejado'))
    planned_batches = models.PositiveIntegerField(default=1, verbose_name=_('Lotes Planejados'))
    status = models.CharField(
        max_length=20,
        choices=PlanStatus.choices,
        default=PlanStatus.DRAFT,
        db_index=True,
        verbose_name=_('Status'),
    )
    batch_numbers = models.JSONField(default=list, blank=True, verbose_name=_('Lotes Criados'))
    planning_notes = models.TextField(blank=True, verbose_name=_('Observações'))

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Plano de Produção')
        verbose_name_plural = _('Planos de Produção')
        ordering = ['-created_at', '-pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(planned_batches__gte=1),
                name='planning_plan_batches_positive',
            ),
        ]

    @property
    def is_draft(self) -> bool:
        return self.status == PlanStatus.DRAFT

    def __str__(self) -> str:
        return f"{self.plan_id} {self.product_name} [{self.status}]"
