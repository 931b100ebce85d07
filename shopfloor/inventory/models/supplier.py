"""
Supplier model — who a material is bought from.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from shopfloor.inventory.models.enums import SupplierStatus


class SupplierQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status=SupplierStatus.ACTIVE)

    def search(self, term: str):
        return self.filter(
            Q(supplier_id__icontains=term)
            | Q(name__icontains=term)
            | Q(contact_person__icontains=term)
            | Q(email__icontains=term)
        )


class Supplier(models.Model):
    """
    A material supplier.

    Suppliers referenced by a material are never deleted, only set
    INACTIVE (Material.supplier is PROTECT).
    """

    supplier_id = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Código'),
        help_text=_('Ex: SUP-1A2B3C'),
    )
    name = models.CharField(max_length=200, verbose_name=_('Nome'))
    contact_person = models.CharField(max_length=200, blank=True, verbose_name=_('Contato'))
    email = models.EmailField(blank=True, verbose_name=_('E-mail'))
    phone = models.CharField(max_length=50, blank=True, verbose_name=_('Telefone'))

    address = models.CharField(max_length=300, blank=True, verbose_name=_('Endereço'))
    city = models.CharField(max_length=100, blank=True, verbose_name=_('Cidade'))
    country = models.CharField(max_length=100, blank=True, verbose_name=_('País'))
    postal_code = models.CharField(max_length=20, blank=True, verbose_name=_('CEP'))
    website = models.CharField(max_length=200, blank=True, verbose_name=_('Site'))

    payment_terms = models.CharField(max_length=100, blank=True, verbose_name=_('Condições de Pagamento'))
    lead_time_days = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Prazo de Entrega'),
        help_text=_('Em dias'),
    )
    rating = models.DecimalField(
        max_digits=2, decimal_places=1, default=Decimal('0'),
        verbose_name=_('Avaliação'),
        help_text=_('De 0 a 5'),
    )
    status = models.CharField(
        max_length=20,
        choices=SupplierStatus.choices,
        default=SupplierStatus.ACTIVE,
        db_index=True,
        verbose_name=_('Status'),
    )
    notes = models.TextField(blank=True, verbose_name=_('Observações'))

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SupplierQuerySet.as_manager()

    class Meta:
        verbose_name = _('Fornecedor')
        verbose_name_plural = _('Fornecedores')
        ordering = ['name', 'supplier_id']
        constraints = [
            models.CheckConstraint(
                condition=Q(rating__gte=0) & Q(rating__lte=5),
                name='inventory_supplier_rating_range',
            ),
        ]

    @property
    def is_active(self) -> bool:
        return self.status == SupplierStatus.ACTIVE

    def __str__(self) -> str:
        return f"{self.supplier_id} {self.name}"
