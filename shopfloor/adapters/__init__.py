"""
Shopfloor Adapters.

Implementations of the protocols in shopfloor.protocols:
- http: talks to the other services over HTTP (requests)
- local: calls the other apps in-process (single deployment)
- noop: development/testing stand-ins (auth, feedback)

Which one is used is configured per backend:

    SHOPFLOOR = {
        "INVENTORY_BACKEND": "shopfloor.adapters.local.LocalInventoryBackend",
        "AUTH_BACKEND": "shopfloor.adapters.noop.NoopAuthBackend",
    }
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from shopfloor.conf import shopfloor_settings
from shopfloor.protocols import (
    AuthBackend,
    FeedbackBackend,
    InventoryBackend,
    MachineQueueBackend,
    ProductionBackend,
)

logger = logging.getLogger(__name__)


# Cached backend instances, keyed by setting name
_lock = threading.Lock()
_backends: dict[str, Any] = {}


def _get_backend(setting: str) -> Any:
    """
    Return the backend configured under SHOPFLOOR[setting].

    Raises:
        ImproperlyConfigured: If the path is empty or cannot be imported
    """
    backend = _backends.get(setting)
    if backend is None:
        with _lock:
            backend = _backends.get(setting)
            if backend is None:  # double-checked
                path = getattr(shopfloor_settings, setting)
                if not path:
                    raise ImproperlyConfigured(
                        f"SHOPFLOOR['{setting}'] must be configured. "
                        "Example: 'shopfloor.adapters.http.HttpInventoryBackend'"
                    )
                try:
                    backend_class = import_string(path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import {setting} '{path}': {e}"
                    ) from e
                backend = backend_class()
                _backends[setting] = backend
                logger.debug("Loaded %s: %s", setting, path)
    return backend


def get_inventory_backend() -> InventoryBackend:
    return _get_backend("INVENTORY_BACKEND")


def get_machine_queue_backend() -> MachineQueueBackend:
    return _get_backend("MACHINE_QUEUE_BACKEND")


def get_production_backend() -> ProductionBackend:
    return _get_backend("PRODUCTION_BACKEND")


def get_auth_backend() -> AuthBackend:
    return _get_backend("AUTH_BACKEND")


def get_feedback_backend() -> FeedbackBackend:
    return _get_backend("FEEDBACK_BACKEND")


def reset_backends() -> None:
    """Reset every cached backend. Useful for testing."""
    with _lock:
        _backends.clear()


__all__ = [
    "get_auth_backend",
    "get_feedback_backend",
    "get_inventory_backend",
    "get_machine_queue_backend",
    "get_production_backend",
    "reset_backends",
]
