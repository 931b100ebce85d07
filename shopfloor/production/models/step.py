"""
ProductionStep model — one operation of a batch, run on one machine.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from shopfloor.production.models.enums import BatchStatus


class ProductionStep(models.Model):
    """
    A step of a batch (cutting, welding, ...), in step_order.

    machine_id is the machine's code in the machine queue service.
    """

    batch = models.ForeignKey(
        'production.ProductionBatch',
        on_delete=models.CASCADE,
        related_name='steps',
        verbose_name=_('Lote'),
    )
    step_name = models.CharField(max_length=100, verbose_name=_('Etapa'))
    step_order = models.PositiveIntegerField(verbose_name=_('Ordem'))
    machine_type = models.CharField(max_length=50, blank=True, verbose_name=_('Tipo de Máquina'))
    machine_id = models.CharField(max_length=50, blank=True, verbose_name=_('Máquina'))
    hours_required = models.DecimalField(
        max_digits=8, decimal_places=2, default=Decimal('1'),
        verbose_name=_('Horas Necessárias'),
    )
    scheduled_start = models.DateTimeField(null=True, blank=True, verbose_name=_('Início Previsto'))
    scheduled_end = models.DateTimeField(null=True, blank=True, verbose_name=_('Fim Previsto'))
    actual_start = models.DateTimeField(null=True, blank=True, verbose_name=_('Início Real'))
    actual_end = models.DateTimeField(null=True, blank=True, verbose_name=_('Fim Real'))
    status = models.CharField(
        max_length=20,
        choices=BatchStatus.choices,
        default=BatchStatus.PENDING,
        db_index=True,
        verbose_name=_('Status'),
    )
    operator_id = models.CharField(max_length=50, blank=True, verbose_name=_('Operador'))
    notes = models.TextField(blank=True, verbose_name=_('Observações'))

    class Meta:
        verbose_name = _('Etapa de Produção')
        verbose_name_plural = _('Etapas de Produção')
        ordering = ['batch', 'step_order']
        constraints = [
            models.UniqueConstraint(
                fields=['batch', 'step_order'],
                name='production_step_unique_order',
            ),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in BatchStatus.terminal()

    def __str__(self) -> str:
        return f"{self.step_order}. {self.step_name} ({self.get_status_display()})"
