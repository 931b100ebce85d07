"""
Shopfloor configuration.

Usage in settings.py:
    SHOPFLOOR = {
        "INVENTORY_SERVICE_URL": "http://inventory:3001",
        "INVENTORY_BACKEND": "shopfloor.adapters.http.HttpInventoryBackend",
        "HTTP_TIMEOUT_SECONDS": 5,
        "QUEUE_PRIORITY_ORDERING": True,
    }

Service URLs fall back to the environment variables of the same name
(INVENTORY_SERVICE_URL, USER_SERVICE_URL, ...) when not set here.
"""

import os
from dataclasses import dataclass, field
from typing import Any

from django.conf import settings


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default)


def _default_role_capabilities() -> dict[str, list[str]]:
    return {
        "admin": ["*"],
        "planner": [
            "inventory.view", "inventory.reserve",
            "production.view", "production.manage",
            "queue.view", "queue.manage",
            "planning.view", "planning.manage",
        ],
        "inventory_manager": [
            "inventory.view", "inventory.manage", "inventory.reserve",
            "production.view", "queue.view",
        ],
        "operator": [
            "inventory.view", "production.view", "production.operate",
            "queue.view", "queue.operate",
        ],
        "viewer": [
            "inventory.view", "production.view", "queue.view", "planning.view",
        ],
    }


@dataclass
class ShopfloorSettings:
    """Shopfloor configuration settings."""

    # Cross-service base URLs (no service discovery)
    INVENTORY_SERVICE_URL: str = field(default_factory=lambda: _env("INVENTORY_SERVICE_URL", "http://localhost:3001"))
    MACHINE_QUEUE_SERVICE_URL: str = field(default_factory=lambda: _env("MACHINE_QUEUE_SERVICE_URL", "http://localhost:3002"))
    PRODUCTION_SERVICE_URL: str = field(default_factory=lambda: _env("PRODUCTION_SERVICE_URL", "http://localhost:3004"))
    USER_SERVICE_URL: str = field(default_factory=lambda: _env("USER_SERVICE_URL", "http://localhost:3000"))
    FEEDBACK_SERVICE_URL: str = field(default_factory=lambda: _env("FEEDBACK_SERVICE_URL", "http://localhost:3005"))

    # Bearer token sent on service-to-service calls (empty = none)
    SERVICE_TOKEN: str = field(default_factory=lambda: _env("SERVICE_TOKEN"))

    # Timeout for every outgoing call (seconds)
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Backends (dotted paths)
    INVENTORY_BACKEND: str = "shopfloor.adapters.http.HttpInventoryBackend"
    MACHINE_QUEUE_BACKEND: str = "shopfloor.adapters.http.HttpMachineQueueBackend"
    PRODUCTION_BACKEND: str = "shopfloor.adapters.http.HttpProductionBackend"
    AUTH_BACKEND: str = "shopfloor.adapters.http.HttpAuthBackend"
    FEEDBACK_BACKEND: str = "shopfloor.adapters.http.HttpFeedbackBackend"

    # Authentication
    AUTH_REQUIRED: bool = True
    AUTH_EXEMPT_PATHS: list[str] = field(default_factory=lambda: ["/health"])
    ROLE_CAPABILITIES: dict[str, list[str]] = field(default_factory=_default_role_capabilities)

    # Machine queue: priority-aware insertion (False = priority is advisory)
    QUEUE_PRIORITY_ORDERING: bool = True

    # Name reported by /health
    SERVICE_NAME: str = "shopfloor"


def get_shopfloor_settings() -> ShopfloorSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "SHOPFLOOR", {})
    return ShopfloorSettings(**{
        k: v for k, v in user_settings.items()
        if k in ShopfloorSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_shopfloor_settings(), name)


shopfloor_settings = _LazySettings()
