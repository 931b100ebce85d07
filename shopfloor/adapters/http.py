"""
HTTP Backends.

Implement the protocols in shopfloor.protocols against the REST API of
the other services, using `requests`.

Every call:
- uses SHOPFLOOR["HTTP_TIMEOUT_SECONDS"]
- sends SHOPFLOOR["SERVICE_TOKEN"] as a bearer token when set
- expects the JSON envelope {"success": ..., "data": ...}

Connection errors, timeouts, non-2xx responses and `success: false`
envelopes all become UpstreamError('UPSTREAM_SERVICE_ERROR'). No retries.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import requests
from django.core.serializers.json import DjangoJSONEncoder
from django.utils.dateparse import parse_date

from shopfloor.conf import shopfloor_settings
from shopfloor.exceptions import UpstreamError
from shopfloor.protocols import (
    BatchInfo,
    MaterialLine,
    QueueStep,
    QueueTicket,
    RequestInfo,
    ReservationResult,
)

logger = logging.getLogger(__name__)


class ServiceClient:
    """
    Minimal JSON client for one remote service.

    Usage:
        client = ServiceClient("inventory", "INVENTORY_SERVICE_URL")
        data = client.post("/api/reservations/reserve/", {...})
    """

    def __init__(self, service: str, url_setting: str, session: requests.Session | None = None):
        self.service = service
        self.url_setting = url_setting
        self.session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return getattr(shopfloor_settings, self.url_setting).rstrip("/")

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, payload: dict | None = None, **kwargs) -> Any:
        return self.request("POST", path, payload=payload, **kwargs)

    def request(self, method: str, path: str, payload: dict | None = None,
                headers: dict | None = None, allow_404: bool = False) -> Any:
        """
        Perform a call and return the envelope's `data`.

        Args:
            allow_404: Return None on 404 instead of raising.

        Raises:
            UpstreamError: unreachable, timeout, non-2xx, success=false
        """
        url = f"{self.base_url}{path}"
        all_headers = {"Accept": "application/json"}
        token = shopfloor_settings.SERVICE_TOKEN
        if token:
            all_headers["Authorization"] = f"Bearer {token}"
        body = None
        if payload is not None:
            all_headers["Content-Type"] = "application/json"
            body = json.dumps(payload, cls=DjangoJSONEncoder)
        all_headers.update(headers or {})

        try:
            response = self.session.request(
                method,
                url,
                data=body,
                headers=all_headers,
                timeout=shopfloor_settings.HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logger.warning(
                "http.request_failed",
                extra={"service": self.service, "method": method, "url": url, "error": str(e)},
            )
            raise UpstreamError(
                "UPSTREAM_SERVICE_ERROR",
                service=self.service,
                url=url,
                upstream_message=str(e),
            ) from e

        if allow_404 and response.status_code == 404:
            return None

        envelope = _json(response)
        if not response.ok or envelope.get("success") is False:
            logger.warning(
                "http.upstream_rejected",
                extra={
                    "service": self.service,
                    "method": method,
                    "url": url,
                    "status": response.status_code,
                    "upstream_code": envelope.get("code"),
                },
            )
            raise UpstreamError(
                "UPSTREAM_SERVICE_ERROR",
                service=self.service,
                url=url,
                status=response.status_code,
                upstream_code=envelope.get("code"),
                upstream_message=envelope.get("message"),
            )
        return envelope.get("data")


def _json(response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {"data": data}


def _to_decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def _to_date(value) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    return parse_date(str(value)[:10])


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════


def _reservation(data: dict) -> ReservationResult:
    return ReservationResult(
        reservation_id=data.get("reservation_id"),
        batch_id=data.get("batch_id", ""),
        status=data.get("status", ""),
        lines=tuple(
            MaterialLine(
                material_id=line["material_id"],
                quantity=_to_decimal(line.get("quantity_reserved")),
                unit_of_measure=line.get("unit_of_measure", ""),
            )
            for line in data.get("lines") or []
        ),
    )


class HttpInventoryBackend:
    """InventoryBackend over INVENTORY_SERVICE_URL."""

    def __init__(self, client: ServiceClient | None = None):
        self.client = client or ServiceClient("inventory", "INVENTORY_SERVICE_URL")

    def reserve_materials(self, batch_id: str, lines: list[MaterialLine]) -> ReservationResult:
        data = self.client.post("/api/reservations/reserve/", {
            "batch_id": batch_id,
            "materials": [
                {
                    "material_id": line.material_id,
                    "quantity_required": line.quantity,
                    "unit_of_measure": line.unit_of_measure,
                }
                for line in lines
            ],
        })
        return _reservation(data or {})

    def release_materials(self, batch_id: str) -> ReservationResult:
        data = self.client.post("/api/reservations/release/", {"batch_id": batch_id})
        return _reservation(data or {})

    def consume_materials(self, batch_id: str) -> ReservationResult:
        data = self.client.post("/api/reservations/consume/", {"batch_id": batch_id})
        return _reservation(data or {})


# ══════════════════════════════════════════════════════════════
# MACHINE QUEUE
# ══════════════════════════════════════════════════════════════


def _ticket(data: dict) -> QueueTicket:
    return QueueTicket(
        queue_id=data["queue_id"],
        machine_id=data.get("machine_id", ""),
        position=data.get("position", 0),
        status=data.get("status", ""),
        step_id=data.get("step_id"),
    )


class HttpMachineQueueBackend:
    """MachineQueueBackend over MACHINE_QUEUE_SERVICE_URL."""

    def __init__(self, client: ServiceClient | None = None):
        self.client = client or ServiceClient("machine_queue", "MACHINE_QUEUE_SERVICE_URL")

    def enqueue_batch_steps(self, batch_id: str, product_name: str, priority: str,
                            steps: list[QueueStep]) -> list[QueueTicket]:
        data = self.client.post("/api/queues/batch-steps/", {
            "batch_id": batch_id,
            "product_name": product_name,
            "priority": priority,
            "steps": [
                {
                    "step_id": step.step_id,
                    "step_name": step.step_name,
                    "machine_id": step.machine_id,
                    "hours_required": step.hours_required,
                    "scheduled_start": _iso(step.scheduled_start),
                    "scheduled_end": _iso(step.scheduled_end),
                }
                for step in steps
            ],
        })
        return [_ticket(entry) for entry in data or []]

    def complete_step(self, batch_id: str, step_id: int) -> QueueTicket | None:
        data = self.client.post("/api/queues/complete-step/", {"batch_id": batch_id, "step_id": step_id})
        return _ticket(data) if data else None

    def cancel_batch(self, batch_id: str, reason: str = "") -> int:
        data = self.client.post("/api/queues/cancel-batch/", {"batch_id": batch_id, "reason": reason})
        return int((data or {}).get("cancelled", 0))


# ══════════════════════════════════════════════════════════════
# PRODUCTION
# ══════════════════════════════════════════════════════════════


class HttpProductionBackend:
    """ProductionBackend over PRODUCTION_SERVICE_URL."""

    def __init__(self, client: ServiceClient | None = None):
        self.client = client or ServiceClient("production", "PRODUCTION_SERVICE_URL")

    def get_request(self, request_id: str) -> RequestInfo | None:
        data = self.client.get(f"/api/requests/{request_id}/", allow_404=True)
        if not data:
            return None
        return RequestInfo(
            request_id=data["request_id"],
            product_name=data.get("product_name", ""),
            quantity=int(data.get("quantity") or 0),
            priority=data.get("priority", "normal"),
            status=data.get("status", ""),
            due_date=_to_date(data.get("due_date")),
        )

    def create_batch(self, request_id: str, quantity: int, scheduled_start_date: date | None = None,
                     scheduled_end_date: date | None = None, notes: str = "") -> BatchInfo:
        data = self.client.post("/api/batches/", {
            "request_id": request_id,
            "quantity": quantity,
            "scheduled_start_date": _iso(scheduled_start_date),
            "scheduled_end_date": _iso(scheduled_end_date),
            "notes": notes,
        })
        return BatchInfo(
            batch_number=data["batch_number"],
            request_id=data.get("request_id", request_id),
            quantity=int(data.get("quantity") or quantity),
            status=data.get("status", ""),
        )


# ══════════════════════════════════════════════════════════════
# AUTH / FEEDBACK
# ══════════════════════════════════════════════════════════════


class HttpAuthBackend:
    """
    AuthBackend over USER_SERVICE_URL.

    POST /api/auth/verify with the caller's token; the user service
    answers {"success": true, "user": {...}} or 401.
    """

    def __init__(self, session: requests.Session | None = None):
        self.session = session or requests.Session()

    def verify(self, token: str) -> dict[str, Any] | None:
        url = f"{shopfloor_settings.USER_SERVICE_URL.rstrip('/')}/api/auth/verify"
        try:
            response = self.session.request(
                "POST",
                url,
                headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
                timeout=shopfloor_settings.HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logger.warning("http.auth_unreachable", extra={"url": url, "error": str(e)})
            raise UpstreamError(
                "UPSTREAM_SERVICE_ERROR", service="user", url=url, upstream_message=str(e),
            ) from e

        if response.status_code in (401, 403):
            return None
        envelope = _json(response)
        if not response.ok:
            raise UpstreamError(
                "UPSTREAM_SERVICE_ERROR",
                service="user",
                url=url,
                status=response.status_code,
                upstream_message=envelope.get("message"),
            )
        if not envelope.get("success"):
            return None
        return envelope.get("user") or envelope.get("data")


class HttpFeedbackBackend:
    """FeedbackBackend over FEEDBACK_SERVICE_URL."""

    def __init__(self, client: ServiceClient | None = None):
        self.client = client or ServiceClient("feedback", "FEEDBACK_SERVICE_URL")

    def status_update(self, request_id: str, status: str, notes: str = "") -> None:
        self.client.post("/api/feedback/status-update", {
            "request_id": request_id,
            "status": status,
            "notes": notes,
        })
