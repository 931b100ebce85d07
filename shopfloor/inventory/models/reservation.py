"""
Reservation model — material set aside for a production batch.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from shopfloor.inventory.models.enums import ReservationStatus


class Reservation(models.Model):
    """
    Material reserved for one production batch.

    LIFECYCLE:

        PENDING ──(all lines applied)──► RESERVED ──release()──► RELEASED
                                              │
                                              └──consume()──► CONSUMED

    Each line's quantity moves available → reserved when the reservation
    is made. Release moves it back exactly; consume issues it out of
    current stock when the batch is finished. Either way the whole
    reservation closes at once, and a batch has at most one active
    (pending/reserved) reservation at a time.
    """

    batch_id = models.CharField(
        max_length=100,
        db_index=True,
        verbose_name=_('Lote'),
        help_text=_('Número do lote de produção'),
    )
    status = models.CharField(
        max_length=20,
        choices=ReservationStatus.choices,
        default=ReservationStatus.PENDING,
        db_index=True,
        verbose_name=_('Status'),
    )
    created_at = models.DateTimeField(default=timezone.now, verbose_name=_('Criado em'))
    released_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Liberado em'))
    consumed_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Consumido em'))
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadados'))

    class Meta:
        verbose_name = _('Reserva')
        verbose_name_plural = _('Reservas')
        ordering = ['-created_at', '-pk']
        constraints = [
            models.UniqueConstraint(
                fields=['batch_id'],
                condition=Q(status__in=['pending', 'reserved']),
                name='inventory_reservation_one_active_per_batch',
            ),
        ]

    @property
    def is_active(self) -> bool:
        return self.status in ReservationStatus.active()

    def __str__(self) -> str:
        return f"#{self.pk} {self.batch_id} ({self.get_status_display()})"


class ReservationLine(models.Model):
    """One material of a reservation."""

    reservation = models.ForeignKey(
        Reservation,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('Reserva'),
    )
    material = models.ForeignKey(
        'inventory.Material',
        on_delete=models.PROTECT,
        related_name='reservation_lines',
        verbose_name=_('Material'),
    )
    quantity_reserved = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantidade Reservada'),
    )
    unit_of_measure = models.CharField(max_length=20, blank=True, verbose_name=_('Unidade'))

    class Meta:
        verbose_name = _('Item da Reserva')
        verbose_name_plural = _('Itens da Reserva')
        ordering = ['pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_reserved__gt=0),
                name='inventory_reservationline_quantity_positive',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.quantity_reserved} {self.unit_of_measure} {self.material.material_id}"
