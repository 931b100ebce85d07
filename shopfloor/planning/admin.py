"""
Planning Admin.
"""

from django.contrib import admin

from shopfloor.planning.models import ProductionPlan


@admin.register(ProductionPlan)
class ProductionPlanAdmin(admin.ModelAdmin):
    list_display = ['plan_id', 'request_id', 'product_name', 'priority', 'status',
                    'planned_start_date', 'planned_end_date', 'planned_batches']
    list_filter = ['status', 'priority']
    search_fields = ['plan_id', 'request_id', 'product_name']
    readonly_fields = ['plan_id', 'status', 'batch_numbers', 'created_at', 'updated_at']
