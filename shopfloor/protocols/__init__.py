"""
Shopfloor Protocols.

Defines the interfaces each service exposes to the others. Adapters
(shopfloor.adapters) implement them over HTTP or in-process.
"""

from shopfloor.protocols.auth import AuthBackend
from shopfloor.protocols.feedback import FeedbackBackend
from shopfloor.protocols.inventory import (
    InventoryBackend,
    MaterialLine,
    ReservationResult,
)
from shopfloor.protocols.machine_queue import (
    MachineQueueBackend,
    QueueStep,
    QueueTicket,
)
from shopfloor.protocols.production import (
    BatchInfo,
    ProductionBackend,
    RequestInfo,
)

__all__ = [
    "AuthBackend",
    "BatchInfo",
    "FeedbackBackend",
    "InventoryBackend",
    "MachineQueueBackend",
    "MaterialLine",
    "ProductionBackend",
    "QueueStep",
    "QueueTicket",
    "RequestInfo",
    "ReservationResult",
]
