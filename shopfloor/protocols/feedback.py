"""
Feedback Backend Protocol.

The production feedback service is told when a request finishes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class FeedbackBackend(Protocol):
    """Receives production status notifications."""

    def status_update(self, request_id: str, status: str, notes: str = "") -> None:
        """Notify a request status change."""
        ...
