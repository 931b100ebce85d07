"""
Noop Backends — stand-ins for development and testing.

- NoopAuthBackend: every non-empty token is an admin user
- NoopFeedbackBackend: notifications are only logged

Usage in settings.py:
    SHOPFLOOR = {
        "AUTH_BACKEND": "shopfloor.adapters.noop.NoopAuthBackend",
        "FEEDBACK_BACKEND": "shopfloor.adapters.noop.NoopFeedbackBackend",
    }

WARNING: Do NOT use NoopAuthBackend in production. It performs no
verification and grants every capability to any caller with a token.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

DEV_USER = {"id": 1, "username": "dev", "role": "admin"}


class NoopAuthBackend:
    """
    Accepts any token as the `dev` admin user.

    Suitable for:
    - Local development without a running user service
    - Tests that don't exercise authentication itself
    """

    def verify(self, token: str) -> dict[str, Any] | None:
        if not token:
            return None
        return dict(DEV_USER)


class NoopFeedbackBackend:
    """Logs status updates instead of sending them."""

    def status_update(self, request_id: str, status: str, notes: str = "") -> None:
        logger.info(
            "feedback.status_update",
            extra={"request_id": request_id, "status": status, "notes": notes},
        )
