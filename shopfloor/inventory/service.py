"""
Inventory Service — the single public interface for inventory operations.

Usage:
    from shopfloor.inventory.service import inventory

    inventory.add_material('MAT001', 'Aço 1020', current_stock=Decimal('500'))
    inventory.reserve_materials('B-2024-0001', [
        {'material_id': 'MAT001', 'quantity_required': Decimal('100')},
    ])
    inventory.get_material('MAT001').available_stock  # 400
    inventory.release_materials('B-2024-0001')
"""

from shopfloor.inventory.services import (
    InventoryLedger,
    InventoryQueries,
    InventoryReservations,
    InventorySuppliers,
)


class Inventory(InventoryLedger, InventoryReservations, InventoryQueries, InventorySuppliers):
    """
    Single interface for all inventory operations.

    IMPORTANT: All state-changing methods use atomic transactions
    with row locking. See each method's docstring.
    """


inventory = Inventory
