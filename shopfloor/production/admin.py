"""
Production Admin.

- ProductionRequest: editable
- ProductionBatch: flags read-only, steps/materials inline,
  "assign" and "cancel" actions (same path as the API)
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from shopfloor.exceptions import BaseError
from shopfloor.production.models import (
    BatchMaterial,
    BatchStatus,
    ProductionBatch,
    ProductionRequest,
    ProductionStep,
)

logger = logging.getLogger(__name__)


@admin.register(ProductionRequest)
class ProductionRequestAdmin(admin.ModelAdmin):
    list_display = ['request_id', 'product_name', 'quantity', 'priority', 'due_date', 'status']
    list_filter = ['status', 'priority']
    search_fields = ['request_id', 'product_name']
    readonly_fields = ['status', 'created_at', 'updated_at']


class ProductionStepInline(admin.TabularInline):
    model = ProductionStep
    fields = ['step_order', 'step_name', 'machine_type', 'machine_id', 'hours_required', 'status']
    readonly_fields = ['status']
    extra = 0


class BatchMaterialInline(admin.TabularInline):
    model = BatchMaterial
    fields = ['material_id', 'quantity_required', 'unit_of_measure']
    extra = 0


@admin.register(ProductionBatch)
class ProductionBatchAdmin(admin.ModelAdmin):
    """Batch admin. Status and flags only change via the production service."""

    list_display = ['batch_number', 'request', 'quantity', 'status',
                    'materials_assigned', 'machine_assigned', 'scheduled_start_date']
    list_filter = ['status', 'materials_assigned', 'machine_assigned']
    search_fields = ['batch_number', 'request__request_id', 'request__product_name']
    readonly_fields = ['batch_number', 'status', 'materials_assigned', 'machine_assigned',
                       'created_at', 'updated_at']
    inlines = [ProductionStepInline, BatchMaterialInline]
    actions = ['assign_batches', 'cancel_batches']

    def _run(self, request, queryset, operation, label):
        count = 0
        for batch in queryset.exclude(status__in=BatchStatus.terminal()):
            try:
                operation(batch.batch_number)
                count += 1
            except BaseError as exc:
                logger.warning("%s: failed for %s: %s", label, batch.batch_number, exc)
                self.message_user(request, f"{batch.batch_number}: {exc.message}", level='warning')
        return count

    @admin.action(description=_('Reservar materiais e enfileirar etapas'))
    def assign_batches(self, request, queryset):
        from shopfloor.production.service import production

        count = self._run(request, queryset, production.assign_batch, 'assign_batches')
        self.message_user(request, _('{count} lote(s) atribuído(s).').format(count=count))

    @admin.action(description=_('Cancelar lotes selecionados'))
    def cancel_batches(self, request, queryset):
        from shopfloor.production.service import production

        count = self._run(request, queryset, production.cancel_batch, 'cancel_batches')
        self.message_user(request, _('{count} lote(s) cancelado(s).').format(count=count))
