"""
Machine Queue Admin.

- Machine: editable
- QueueEntry: read-only, with "compact" and "cancel" actions
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from shopfloor.exceptions import QueueError
from shopfloor.machine_queue.models import Machine, QueueEntry, QueueStatus

logger = logging.getLogger(__name__)


@admin.register(Machine)
class MachineAdmin(admin.ModelAdmin):
    list_display = ['machine_id', 'name', 'machine_type', 'status', 'hours_per_day', 'location']
    list_filter = ['status', 'machine_type']
    search_fields = ['machine_id', 'name', 'location']
    readonly_fields = ['created_at', 'updated_at']
    actions = ['compact_queues']

    @admin.action(description=_('Compactar filas selecionadas'))
    def compact_queues(self, request, queryset):
        from shopfloor.machine_queue.service import machine_queue

        changed = sum(machine_queue.compact(m.machine_id) for m in queryset)
        self.message_user(request, _('{count} posição(ões) ajustada(s).').format(count=changed))


@admin.register(QueueEntry)
class QueueEntryAdmin(admin.ModelAdmin):
    """Queue entries change only through the machine queue service."""

    list_display = ['queue_id', 'machine', 'position', 'status', 'priority',
                    'batch_id', 'step_name', 'created_at']
    list_filter = ['status', 'priority', 'machine']
    search_fields = ['queue_id', 'batch_id', 'product_name', 'step_name']
    ordering = ['machine', 'position', 'created_at']
    actions = ['cancel_entries']

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description=_('Cancelar itens selecionados'))
    def cancel_entries(self, request, queryset):
        from shopfloor.machine_queue.service import machine_queue

        count = 0
        for entry in queryset.filter(status__in=QueueStatus.active()):
            try:
                machine_queue.cancel(entry.queue_id, reason='Cancelado via admin')
                count += 1
            except QueueError as exc:
                logger.warning("cancel_entries: failed for %s: %s", entry.queue_id, exc)

        self.message_user(request, _('{count} item(ns) cancelado(s).').format(count=count))
