"""
Material model — one row of the stock ledger.
"""

from decimal import Decimal

from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from shopfloor.inventory.models.enums import MaterialType


class MaterialQuerySet(models.QuerySet):

    def low_stock(self):
        """Materials at or below their minimum."""
        return self.filter(current_stock__lte=F('minimum_stock'))

    def search(self, term: str):
        return self.filter(
            Q(material_id__icontains=term)
            | Q(name__icontains=term)
            | Q(supplier__name__icontains=term)
        )


class Material(models.Model):
    """
    A stocked material.

    Quantities:
    - current_stock: physically on hand
    - reserved_stock: set aside for batches (never more than current)
    - available_stock: current - reserved, stored for cheap filtering

    Stock fields change only through shopfloor.inventory.services
    (ledger and reservations), which lock the row, bump `version` and
    write a MaterialTransaction. available_stock is recomputed in Python
    on every write (write_stock); the database only checks the bounds,
    since SQLite compares decimal columns as floats.
    """

    material_id = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Código'),
        help_text=_('Ex: MAT001'),
    )
    name = models.CharField(max_length=200, verbose_name=_('Nome'))
    material_type = models.CharField(
        max_length=20,
        choices=MaterialType.choices,
        default=MaterialType.RAW,
        db_index=True,
        verbose_name=_('Tipo'),
    )
    unit_of_measure = models.CharField(
        max_length=20,
        default='unit',
        verbose_name=_('Unidade'),
        help_text=_('Ex: kg, m, unit'),
    )

    current_stock = models.DecimalField(
        max_digits=12, decimal_places=3, default=Decimal('0'),
        verbose_name=_('Estoque Atual'),
    )
    reserved_stock = models.DecimalField(
        max_digits=12, decimal_places=3, default=Decimal('0'),
        verbose_name=_('Estoque Reservado'),
    )
    available_stock = models.DecimalField(
        max_digits=12, decimal_places=3, default=Decimal('0'),
        verbose_name=_('Estoque Disponível'),
    )
    minimum_stock = models.DecimalField(
        max_digits=12, decimal_places=3, default=Decimal('0'),
        verbose_name=_('Estoque Mínimo'),
        help_text=_('Relatório de estoque baixo dispara quando atual <= mínimo'),
    )

    standard_cost = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0'),
        verbose_name=_('Custo Padrão'),
    )
    supplier = models.ForeignKey(
        'inventory.Supplier',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='materials',
        verbose_name=_('Fornecedor'),
    )

    version = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Versão'),
        help_text=_('Incrementada a cada alteração de estoque'),
    )
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadados'))

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MaterialQuerySet.as_manager()

    class Meta:
        verbose_name = _('Material')
        verbose_name_plural = _('Materiais')
        ordering = ['material_id']
        constraints = [
            models.CheckConstraint(
                condition=Q(reserved_stock__gte=0) & Q(reserved_stock__lte=F('current_stock')),
                name='inventory_material_reserved_within_current',
            ),
            models.CheckConstraint(
                condition=Q(current_stock__gte=0),
                name='inventory_material_current_non_negative',
            ),
        ]

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.minimum_stock

    @property
    def utilization_rate(self) -> str:
        """(current - available) / current as a percentage string."""
        if not self.current_stock:
            return '0.00%'
        rate = (self.current_stock - self.available_stock) / self.current_stock * 100
        return f"{rate.quantize(Decimal('0.01'))}%"

    def recompute_available(self) -> None:
        self.available_stock = self.current_stock - self.reserved_stock

    def __str__(self) -> str:
        return f"{self.material_id} {self.name} ({self.available_stock}/{self.current_stock} {self.unit_of_measure})"
