"""
Production Backend Protocol.

Interface the planning service uses to read requests and create batches.

Vocabulary mapping (planning → production):
    get_request()   →  GET  /api/requests/<request_id>/
    create_batch()  →  POST /api/batches/
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class RequestInfo:
    """A production request as seen by other services."""

    request_id: str
    product_name: str
    quantity: int
    priority: str
    status: str
    due_date: date | None = None


@dataclass(frozen=True)
class BatchInfo:
    """A production batch as seen by other services."""

    batch_number: str
    request_id: str
    quantity: int
    status: str


@runtime_checkable
class ProductionBackend(Protocol):
    """
    Interface for planning to drive production.

    Implementations:
        - HttpProductionBackend: remote production service
        - LocalProductionBackend: shopfloor.production in-process
    """

    def get_request(self, request_id: str) -> RequestInfo | None:
        """Fetch a production request (None if not found)."""
        ...

    def create_batch(
        self,
        request_id: str,
        quantity: int,
        scheduled_start_date: date | None = None,
        scheduled_end_date: date | None = None,
        notes: str = "",
    ) -> BatchInfo:
        """Create a pending batch for the request."""
        ...
