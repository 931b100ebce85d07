"""
Inventory services — modular organization of inventory operations.

    from shopfloor.inventory.services import (
        InventoryLedger, InventoryReservations, InventoryQueries, InventorySuppliers,
    )
"""

from shopfloor.inventory.services.ledger import InventoryLedger
from shopfloor.inventory.services.queries import InventoryQueries
from shopfloor.inventory.services.reservations import InventoryReservations
from shopfloor.inventory.services.suppliers import InventorySuppliers

__all__ = [
    'InventoryLedger',
    'InventoryReservations',
    'InventoryQueries',
    'InventorySuppliers',
]
