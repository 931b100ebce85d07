"""
Machine Queue Backend Protocol.

Interface the production service uses to put batch steps on machines.

Vocabulary mapping (production → machine_queue):
    enqueue_batch_steps()  →  POST /api/queues/batch-steps/
    complete_step()        →  POST /api/queues/complete-step/
    cancel_batch()         →  POST /api/queues/cancel-batch/
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class QueueStep:
    """A batch step to be queued on a machine."""

    step_id: int | None
    step_name: str
    machine_id: str
    hours_required: Decimal = Decimal("1")
    scheduled_start: datetime | None = None
    scheduled_end: datetime | None = None


@dataclass(frozen=True)
class QueueTicket:
    """A queue entry as seen by other services."""

    queue_id: str
    machine_id: str
    position: int
    status: str
    step_id: int | None = None


@runtime_checkable
class MachineQueueBackend(Protocol):
    """
    Interface for queueing production work on machines.

    Implementations:
        - HttpMachineQueueBackend: remote machine_queue service
        - LocalMachineQueueBackend: shopfloor.machine_queue in-process
    """

    def enqueue_batch_steps(
        self,
        batch_id: str,
        product_name: str,
        priority: str,
        steps: list[QueueStep],
    ) -> list[QueueTicket]:
        """Queue every step (all-or-nothing) and return the created entries."""
        ...

    def complete_step(self, batch_id: str, step_id: int) -> QueueTicket | None:
        """Mark the entry for a finished step as completed (None if absent)."""
        ...

    def cancel_batch(self, batch_id: str, reason: str = "") -> int:
        """Cancel every non-terminal entry of the batch; returns how many."""
        ...
