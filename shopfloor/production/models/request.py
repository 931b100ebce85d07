"""
ProductionRequest model — what the customer/sales side asked for.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from shopfloor.choices import Priority
from shopfloor.production.models.enums import RequestStatus


class ProductionRequest(models.Model):
    """
    A request to produce `quantity` of a product by `due_date`.

    received → planned (first batch created) → in_production (first step
    started) → completed (every batch terminal). Cancelling cascades to
    the request's open batches.
    """

    request_id = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Código'),
        help_text=_('Ex: REQ-2024-001'),
    )
    product_name = models.CharField(max_length=200, verbose_name=_('Produto'))
    quantity = models.PositiveIntegerField(verbose_name=_('Quantidade'))
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.NORMAL,
        db_index=True,
        verbose_name=_('Prioridade'),
    )
    due_date = models.DateField(null=True, blank=True, verbose_name=_('Prazo'))
    status = models.CharField(
        max_length=20,
        choices=RequestStatus.choices,
        default=RequestStatus.RECEIVED,
        db_index=True,
        verbose_name=_('Status'),
    )
    notes = models.TextField(blank=True, verbose_name=_('Observações'))

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Solicitação de Produção')
        verbose_name_plural = _('Solicitações de Produção')
        ordering = ['-created_at', '-pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name='production_request_quantity_positive',
            ),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in RequestStatus.terminal()

    def __str__(self) -> str:
        return f"{self.request_id} {self.product_name} x{self.quantity}"
