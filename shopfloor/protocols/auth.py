"""
Auth Backend Protocol.

Token verification is delegated to the user service; every service
authenticates through this single interface.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class AuthBackend(Protocol):
    """Verifies bearer tokens."""

    def verify(self, token: str) -> dict[str, Any] | None:
        """
        Verify a token.

        Returns:
            User dict (at least "id", "username", "role") or None if the
            token is invalid.

        Raises:
            UpstreamError: the user service could not be reached
        """
        ...
