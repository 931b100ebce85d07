"""
MaterialTransaction model — immutable ledger of stock mutations.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from shopfloor.inventory.models.enums import TransactionKind


class MaterialTransaction(models.Model):
    """
    Immutable record of one stock mutation.

    Rules:
    - NEVER update() or delete()
    - Corrections are new transactions (adjustment)
    - `quantity` is signed: + entrada/reserva, - consumo/liberação
    - current_after / reserved_after snapshot the ledger row
    """

    material = models.ForeignKey(
        'inventory.Material',
        on_delete=models.CASCADE,
        related_name='transactions',
        verbose_name=_('Material'),
    )
    kind = models.CharField(
        max_length=20,
        choices=TransactionKind.choices,
        db_index=True,
        verbose_name=_('Tipo'),
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantidade'),
    )
    current_after = models.DecimalField(max_digits=12, decimal_places=3, verbose_name=_('Atual após'))
    reserved_after = models.DecimalField(max_digits=12, decimal_places=3, verbose_name=_('Reservado após'))

    reference = models.CharField(
        max_length=100,
        blank=True,
        db_index=True,
        verbose_name=_('Referência'),
        help_text=_('Ex: número do lote, nota fiscal'),
    )
    reason = models.CharField(max_length=255, blank=True, verbose_name=_('Motivo'))
    user = models.CharField(max_length=150, blank=True, verbose_name=_('Usuário'))
    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Data/Hora'))

    class Meta:
        verbose_name = _('Transação de Material')
        verbose_name_plural = _('Transações de Material')
        ordering = ['timestamp', 'pk']
        indexes = [
            models.Index(fields=['material', 'timestamp'], name='inventory_tx_material_ts_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError(
                "Transações são imutáveis. "
                "Para corrigir, registre um ajuste."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Transações são imutáveis.")

    def __str__(self) -> str:
        signal = '+' if self.quantity > 0 else ''
        return f"{self.get_kind_display()} {signal}{self.quantity} | {self.material_id}"
