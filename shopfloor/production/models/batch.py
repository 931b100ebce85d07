"""
ProductionBatch and BatchMaterial models.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from shopfloor.production.models.enums import BATCH_TRANSITIONS, BatchStatus


class ProductionBatch(models.Model):
    """
    A unit of production work for a request.

    LIFECYCLE:

        PENDING ──► SCHEDULED ──► IN_PROGRESS ──► COMPLETED
           │            │              │
           └────────────┴──────────────┴──────► CANCELLED

    PENDING → SCHEDULED requires materials_assigned (set by the
    orchestrator once inventory has reserved the batch's materials).
    machine_assigned is set once its steps are queued on machines.
    """

    batch_number = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Número do Lote'),
    )
    request = models.ForeignKey(
        'production.ProductionRequest',
        on_delete=models.PROTECT,
        related_name='batches',
        verbose_name=_('Solicitação'),
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantidade'))
    scheduled_start_date = models.DateField(null=True, blank=True, verbose_name=_('Início Previsto'))
    scheduled_end_date = models.DateField(null=True, blank=True, verbose_name=_('Fim Previsto'))
    status = models.CharField(
        max_length=20,
        choices=BatchStatus.choices,
        default=BatchStatus.PENDING,
        db_index=True,
        verbose_name=_('Status'),
    )
    materials_assigned = models.BooleanField(default=False, verbose_name=_('Materiais Reservados'))
    machine_assigned = models.BooleanField(default=False, verbose_name=_('Máquinas Atribuídas'))
    notes = models.TextField(blank=True, verbose_name=_('Observações'))

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Lote de Produção')
        verbose_name_plural = _('Lotes de Produção')
        ordering = ['-created_at', '-pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name='production_batch_quantity_positive',
            ),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in BatchStatus.terminal()

    def can_transition_to(self, status: str) -> bool:
        return status in BATCH_TRANSITIONS.get(self.status, set())

    def __str__(self) -> str:
        return f"{self.batch_number} ({self.get_status_display()})"


class BatchMaterial(models.Model):
    """Material the batch needs; what the orchestrator reserves."""

    batch = models.ForeignKey(
        ProductionBatch,
        on_delete=models.CASCADE,
        related_name='materials',
        verbose_name=_('Lote'),
    )
    material_id = models.CharField(max_length=50, verbose_name=_('Material'))
    quantity_required = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantidade Necessária'),
    )
    unit_of_measure = models.CharField(max_length=20, blank=True, verbose_name=_('Unidade'))

    class Meta:
        verbose_name = _('Material do Lote')
        verbose_name_plural = _('Materiais do Lote')
        ordering = ['pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_required__gt=0),
                name='production_batchmaterial_quantity_positive',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.quantity_required} {self.unit_of_measure} {self.material_id}"
