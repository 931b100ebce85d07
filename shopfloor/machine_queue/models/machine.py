"""
Machine model.
"""

from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from shopfloor.machine_queue.models.enums import MachineStatus


class Machine(models.Model):
    """A workstation that runs production steps one at a time."""

    machine_id = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Código'),
        help_text=_('Ex: CNC-01'),
    )
    name = models.CharField(max_length=200, verbose_name=_('Nome'))
    machine_type = models.CharField(max_length=50, blank=True, db_index=True, verbose_name=_('Tipo'))
    status = models.CharField(
        max_length=20,
        choices=MachineStatus.choices,
        default=MachineStatus.OPERATIONAL,
        db_index=True,
        verbose_name=_('Status'),
    )
    hours_per_day = models.DecimalField(
        max_digits=4, decimal_places=1, default=Decimal('8'),
        verbose_name=_('Horas por Dia'),
    )
    location = models.CharField(max_length=100, blank=True, verbose_name=_('Local'))
    notes = models.TextField(blank=True, verbose_name=_('Observações'))

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Máquina')
        verbose_name_plural = _('Máquinas')
        ordering = ['machine_id']

    @property
    def is_operational(self) -> bool:
        return self.status == MachineStatus.OPERATIONAL

    def __str__(self) -> str:
        return f"{self.machine_id} {self.name}"
