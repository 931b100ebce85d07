"""
Inventory Admin.

- Supplier: plain CRUD
- Material: descriptive fields editable, stock fields read-only
- Reservation: read-only with "release" action
- MaterialTransaction: read-only audit trail
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from shopfloor.exceptions import StockError
from shopfloor.inventory.models import (
    Material,
    MaterialTransaction,
    Reservation,
    ReservationLine,
    ReservationStatus,
    Supplier,
)

logger = logging.getLogger(__name__)


class ReadOnlyAdminMixin:

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['supplier_id', 'name', 'contact_person', 'email', 'rating',
                    'lead_time_days', 'status']
    list_filter = ['status', 'country']
    search_fields = ['supplier_id', 'name', 'contact_person', 'email']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Material)
class MaterialAdmin(admin.ModelAdmin):
    """Material admin. Stock only changes via the inventory service."""

    list_display = ['material_id', 'name', 'material_type', 'supplier', 'current_stock',
                    'reserved_stock', 'available_stock', 'minimum_stock', 'is_low_stock_display']
    list_filter = ['material_type']
    search_fields = ['material_id', 'name', 'supplier__name']
    readonly_fields = ['current_stock', 'reserved_stock', 'available_stock',
                       'version', 'created_at', 'updated_at']

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return ['material_id', *self.readonly_fields]
        return self.readonly_fields

    @admin.display(description=_('Estoque baixo?'), boolean=True)
    def is_low_stock_display(self, obj):
        return obj.is_low_stock


class ReservationLineInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = ReservationLine
    fields = ['material', 'quantity_reserved', 'unit_of_measure']
    readonly_fields = fields
    extra = 0


@admin.register(Reservation)
class ReservationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Reservation admin — read-only with release action."""

    list_display = ['id', 'batch_id', 'status', 'created_at', 'released_at', 'consumed_at']
    list_filter = ['status']
    search_fields = ['batch_id']
    readonly_fields = ['batch_id', 'status', 'created_at', 'released_at', 'consumed_at', 'metadata']
    inlines = [ReservationLineInline]
    actions = ['release_reservations']

    @admin.action(description=_('Liberar reservas selecionadas'))
    def release_reservations(self, request, queryset):
        from shopfloor.inventory.service import inventory

        count = 0
        for reservation in queryset.filter(status__in=ReservationStatus.active()):
            try:
                inventory.release_materials(
                    reservation.batch_id,
                    reason='Liberado via admin',
                    user=request.user.get_username(),
                )
                count += 1
            except StockError as exc:
                logger.warning("release_reservations: failed to release %s: %s",
                               reservation.batch_id, exc)

        self.message_user(request, _('{count} reserva(s) liberada(s).').format(count=count))


@admin.register(MaterialTransaction)
class MaterialTransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Transaction admin — immutable audit trail."""

    list_display = ['timestamp', 'material', 'kind', 'quantity',
                    'current_after', 'reserved_after', 'reference', 'user']
    list_filter = ['kind', 'timestamp']
    search_fields = ['material__material_id', 'reference', 'reason']
    readonly_fields = ['material', 'kind', 'quantity', 'current_after', 'reserved_after',
                       'reference', 'reason', 'user', 'timestamp']
    date_hierarchy = 'timestamp'
