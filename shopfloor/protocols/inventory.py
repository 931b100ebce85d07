"""
Inventory Backend Protocol.

Interface the production service uses to set material aside for a batch.

Vocabulary mapping (production → inventory):
    reserve_materials()  →  POST /api/reservations/reserve/
    release_materials()  →  POST /api/reservations/release/
    consume_materials()  →  POST /api/reservations/consume/
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class MaterialLine:
    """One requested (or reserved) material quantity."""

    material_id: str
    quantity: Decimal
    unit_of_measure: str = ""


@dataclass(frozen=True)
class ReservationResult:
    """State of a reservation after reserve/release/consume."""

    reservation_id: int
    batch_id: str
    status: str  # "reserved" | "released" | "consumed"
    lines: tuple[MaterialLine, ...] = ()


@runtime_checkable
class InventoryBackend(Protocol):
    """
    Interface for reserving material for a production batch.

    Implementations:
        - HttpInventoryBackend: talks to a remote inventory service
        - LocalInventoryBackend: calls shopfloor.inventory in-process
    """

    def reserve_materials(
        self,
        batch_id: str,
        lines: list[MaterialLine],
    ) -> ReservationResult:
        """
        Reserve every line for the batch, all-or-nothing.

        Raises:
            StockError: MATERIAL_NOT_FOUND / INSUFFICIENT_STOCK (in-process)
            UpstreamError: remote failure or rejection (HTTP)
        """
        ...

    def release_materials(self, batch_id: str) -> ReservationResult:
        """
        Release the batch's active reservation.

        Raises:
            StockError('RESERVATION_NOT_FOUND') / UpstreamError
        """
        ...

    def consume_materials(self, batch_id: str) -> ReservationResult:
        """
        Issue the batch's reserved material out of stock (batch completed).

        Raises:
            StockError('RESERVATION_NOT_FOUND') / UpstreamError
        """
        ...
