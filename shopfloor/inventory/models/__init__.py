"""
Inventory Models.

- Supplier: who materials are bought from
- Material: stock ledger row (current / reserved / available)
- Reservation + ReservationLine: material set aside for a batch
- MaterialTransaction: immutable record of every stock mutation
"""

from shopfloor.inventory.models.enums import (
    MaterialType,
    ReservationStatus,
    SupplierStatus,
    TransactionKind,
)
from shopfloor.inventory.models.supplier import Supplier
from shopfloor.inventory.models.material import Material
from shopfloor.inventory.models.reservation import Reservation, ReservationLine
from shopfloor.inventory.models.transaction import MaterialTransaction

__all__ = [
    'MaterialType',
    'ReservationStatus',
    'SupplierStatus',
    'TransactionKind',
    'Supplier',
    'Material',
    'Reservation',
    'ReservationLine',
    'MaterialTransaction',
]
