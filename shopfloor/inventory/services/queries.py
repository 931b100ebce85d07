"""
Stock queries and reports (read-only).
"""

import logging
from decimal import Decimal

from shopfloor.exceptions import StockError
from shopfloor.inventory.models import Material, MaterialTransaction
from shopfloor.inventory.services.reservations import normalize_items

logger = logging.getLogger('shopfloor')


class InventoryQueries:
    """Read-only stock methods."""

    @classmethod
    def get_material(cls, material_id: str) -> Material:
        try:
            return Material.objects.get(material_id=material_id)
        except Material.DoesNotExist:
            raise StockError('MATERIAL_NOT_FOUND', material_id=material_id) from None

    @classmethod
    def list_materials(cls, search: str | None = None, material_type: str | None = None,
                       low_stock: bool = False):
        qs = Material.objects.all()
        if search:
            qs = qs.search(search)
        if material_type:
            qs = qs.filter(material_type=material_type)
        if low_stock:
            qs = qs.low_stock()
        return qs

    @classmethod
    def check_stock(cls, items) -> dict:
        """
        Would these lines be reservable right now?

        Nothing is locked or changed. Unknown materials count as
        insufficient.

        Returns:
            {'all_sufficient': bool, 'items': [{material_id, required,
             available, sufficient, shortage}, ...]}
        """
        lines = normalize_items(items)
        materials = {
            m.material_id: m
            for m in Material.objects.filter(material_id__in=list(lines))
        }

        results = []
        for material_id, line in lines.items():
            material = materials.get(material_id)
            available = material.available_stock if material else Decimal('0')
            required = line['quantity']
            results.append({
                'material_id': material_id,
                'name': material.name if material else None,
                'found': material is not None,
                'required': required,
                'available': available,
                'sufficient': material is not None and available >= required,
                'shortage': max(required - available, Decimal('0')),
            })

        return {
            'all_sufficient': all(r['sufficient'] for r in results),
            'items': results,
        }

    @classmethod
    def list_transactions(cls, material_id: str, kind: str | None = None):
        material = cls.get_material(material_id)
        qs = MaterialTransaction.objects.filter(material=material)
        if kind:
            qs = qs.filter(kind=kind)
        return qs.order_by('-timestamp', '-pk')

    # ══════════════════════════════════════════════════════════════
    # REPORTS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def low_stock_report(cls) -> list[Material]:
        """
        Materials whose current stock is at or below the minimum.

        Logs one warning per material found.
        """
        triggered = list(Material.objects.low_stock())
        for material in triggered:
            logger.warning(
                "inventory.stock.low",
                extra={
                    "material_id": material.material_id,
                    "current": str(material.current_stock),
                    "minimum": str(material.minimum_stock),
                },
            )
        return triggered

    @classmethod
    def usage_report(cls) -> list[dict]:
        """Current / reserved / available and utilization rate per material."""
        return [
            {
                'material_id': m.material_id,
                'name': m.name,
                'current_stock': m.current_stock,
                'reserved_stock': m.reserved_stock,
                'available_stock': m.available_stock,
                'utilization_rate': m.utilization_rate,
            }
            for m in Material.objects.all()
        ]
