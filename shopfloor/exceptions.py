"""
Exceptions for Shopfloor.

All errors carry a structured code for programmatic handling. Each app
raises its own subclass; the API layer maps codes to HTTP status.
"""

from decimal import Decimal
from typing import Any


class BaseError(Exception):
    """
    Structured exception: code + human-readable message + context data.

    Usage:
        raise StockError('INSUFFICIENT_STOCK', material_id='MAT002',
                         available=Decimal('180'), requested=Decimal('200'))

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.data!r})"

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs and logs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            },
        }


class StockError(BaseError):
    """
    Stock ledger and reservation errors.

    Usage:
        try:
            inventory.reserve_materials('B-1', items)
        except StockError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Só tem {e.available} disponível")
    """

    _default_messages = {
        'MATERIAL_NOT_FOUND': 'Material não encontrado',
        'SUPPLIER_NOT_FOUND': 'Fornecedor não encontrado',
        'RESERVATION_NOT_FOUND': 'Reserva não encontrada',
        'INSUFFICIENT_STOCK': 'Estoque insuficiente',
        'INVALID_QUANTITY': 'Quantidade inválida (deve ser positiva)',
        'VALIDATION_ERROR': 'Dados inválidos',
        'DUPLICATE': 'Registro já existe',
        'MATERIAL_IN_USE': 'Material possui reservas vinculadas',
        'REASON_REQUIRED': 'Motivo é obrigatório',
        'CONCURRENT_MODIFICATION': 'Modificação concorrente detectada',
    }

    @property
    def available(self) -> Decimal:
        """Shortcut for data['available']."""
        return self.data.get('available', Decimal('0'))

    @property
    def requested(self) -> Decimal:
        """Shortcut for data['requested']."""
        return self.data.get('requested', Decimal('0'))


class ProductionError(BaseError):
    """Production request, batch and step errors."""

    _default_messages = {
        'REQUEST_NOT_FOUND': 'Solicitação de produção não encontrada',
        'BATCH_NOT_FOUND': 'Lote de produção não encontrado',
        'STEP_NOT_FOUND': 'Etapa de produção não encontrada',
        'PLAN_NOT_FOUND': 'Plano de produção não encontrado',
        'INVALID_TRANSITION': 'Transição de status inválida',
        'INVALID_STATUS': 'Status inválido para esta operação',
        'INVALID_QUANTITY': 'Quantidade inválida (deve ser positiva)',
        'VALIDATION_ERROR': 'Dados inválidos',
        'DUPLICATE': 'Registro já existe',
    }


class QueueError(BaseError):
    """Machine and queue entry errors."""

    _default_messages = {
        'MACHINE_NOT_FOUND': 'Máquina não encontrada',
        'QUEUE_ENTRY_NOT_FOUND': 'Item da fila não encontrado',
        'MACHINE_NOT_OPERATIONAL': 'Máquina não está operacional',
        'MACHINE_BUSY': 'Máquina já possui um item em andamento',
        'INVALID_STATUS': 'Status inválido para esta operação',
        'VALIDATION_ERROR': 'Dados inválidos',
        'DUPLICATE': 'Registro já existe',
    }


class UpstreamError(BaseError):
    """
    A dependent service call failed, timed out or rejected the request.

    data usually carries: service, status (HTTP status, if any),
    upstream_code and upstream_message (from the remote envelope).
    """

    _default_messages = {
        'UPSTREAM_SERVICE_ERROR': 'Falha ao comunicar com serviço dependente',
    }

    @property
    def upstream_code(self) -> str | None:
        """Error code returned by the remote service, if any."""
        return self.data.get('upstream_code')


class AuthError(BaseError):
    """Authentication / authorization failures."""

    _default_messages = {
        'AUTH_REQUIRED': 'Token de acesso não fornecido',
        'INVALID_TOKEN': 'Token inválido',
        'FORBIDDEN': 'Permissão insuficiente',
    }


# HTTP status per code; anything not listed here is a 400.
STATUS_BY_CODE = {
    'MATERIAL_NOT_FOUND': 404,
    'SUPPLIER_NOT_FOUND': 404,
    'RESERVATION_NOT_FOUND': 404,
    'REQUEST_NOT_FOUND': 404,
    'BATCH_NOT_FOUND': 404,
    'STEP_NOT_FOUND': 404,
    'PLAN_NOT_FOUND': 404,
    'MACHINE_NOT_FOUND': 404,
    'QUEUE_ENTRY_NOT_FOUND': 404,
    'CONCURRENT_MODIFICATION': 409,
    'UPSTREAM_SERVICE_ERROR': 500,
    'AUTH_REQUIRED': 401,
    'INVALID_TOKEN': 401,
    'FORBIDDEN': 403,
}


def http_status_for(error: BaseError) -> int:
    """HTTP status for a structured error."""
    return STATUS_BY_CODE.get(error.code, 400)


def error_code(error: BaseError) -> str:
    """The code to branch on: the remote service's code when an UpstreamError carries one."""
    if isinstance(error, UpstreamError) and error.upstream_code:
        return error.upstream_code
    return error.code
