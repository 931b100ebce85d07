"""
QueueEntry model — one unit of work waiting on (or running on) a machine.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from shopfloor.choices import Priority
from shopfloor.machine_queue.models.enums import QueueStatus


class QueueEntry(models.Model):
    """
    A batch step queued on a machine.

    LIFECYCLE:

        WAITING ──start()──► IN_PROGRESS ──complete()──► COMPLETED
           │                   │    ▲
           │             pause()    resume()
           │                   ▼    │
           │                  PAUSED
           └──────── cancel() (any non-terminal) ───────► CANCELLED

    Position: 0 while being worked (in progress or paused), 1..n for
    waiting entries. At most one entry per machine is in progress
    (enforced by the database).
    """

    queue_id = models.CharField(max_length=50, unique=True, verbose_name=_('Código'))
    machine = models.ForeignKey(
        'machine_queue.Machine',
        on_delete=models.PROTECT,
        related_name='entries',
        verbose_name=_('Máquina'),
    )
    batch_id = models.CharField(
        max_length=100,
        db_index=True,
        verbose_name=_('Lote'),
        help_text=_('Número do lote de produção'),
    )
    product_name = models.CharField(max_length=200, blank=True, verbose_name=_('Produto'))
    step_id = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('Etapa (ID)'))
    step_name = models.CharField(max_length=100, blank=True, verbose_name=_('Etapa'))

    position = models.PositiveIntegerField(default=0, verbose_name=_('Posição'))
    status = models.CharField(
        max_length=20,
        choices=QueueStatus.choices,
        default=QueueStatus.WAITING,
        db_index=True,
        verbose_name=_('Status'),
    )
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.NORMAL,
        verbose_name=_('Prioridade'),
    )
    hours_required = models.DecimalField(
        max_digits=8, decimal_places=2, default=Decimal('1'),
        verbose_name=_('Horas Necessárias'),
    )

    scheduled_start = models.DateTimeField(null=True, blank=True, verbose_name=_('Início Previsto'))
    scheduled_end = models.DateTimeField(null=True, blank=True, verbose_name=_('Fim Previsto'))
    actual_start = models.DateTimeField(null=True, blank=True, verbose_name=_('Início Real'))
    actual_end = models.DateTimeField(null=True, blank=True, verbose_name=_('Fim Real'))

    operator_id = models.CharField(max_length=50, blank=True, verbose_name=_('Operador (ID)'))
    operator_name = models.CharField(max_length=150, blank=True, verbose_name=_('Operador'))
    notes = models.TextField(blank=True, verbose_name=_('Observações'))

    created_at = models.DateTimeField(default=timezone.now, verbose_name=_('Entrada na fila'))
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Item da Fila')
        verbose_name_plural = _('Itens da Fila')
        ordering = ['machine', 'position', 'created_at', 'pk']
        indexes = [
            models.Index(fields=['machine', 'status', 'position'], name='mq_entry_machine_status_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['machine'],
                condition=Q(status='in_progress'),
                name='machine_queue_one_in_progress_per_machine',
            ),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in QueueStatus.terminal()

    def __str__(self) -> str:
        return f"{self.queue_id} {self.batch_id}/{self.step_name} @{self.machine.machine_id} #{self.position}"
