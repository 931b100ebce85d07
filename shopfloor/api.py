"""
JSON API helpers shared by every service.

Envelope:
    success -> {"success": true, "data": ..., "message"?: str, "total"?: int}
    failure -> {"success": false, "message": str, "code": str}

Usage:
    @api_view(['GET', 'POST'])
    def materials(request):
        if request.method == 'POST':
            material = inventory.add_material(**body(request, 'material_id', 'name'))
            return ok(serialize_material(material), status=201)
        ...
"""

import functools
import json
import logging
from decimal import Decimal, InvalidOperation

from django.core.serializers.json import DjangoJSONEncoder
from django.http import JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from django.views.decorators.csrf import csrf_exempt

from shopfloor.exceptions import BaseError, UpstreamError, http_status_for

logger = logging.getLogger(__name__)


class ValidationError(BaseError):
    """Bad request payload (missing fields, wrong types)."""

    _default_messages = {
        'VALIDATION_ERROR': 'Dados inválidos',
    }


def ok(data=None, status=200, message=None, **extra):
    """Success envelope."""
    payload = {'success': True, 'data': data}
    if message:
        payload['message'] = message
    payload.update(extra)
    return JsonResponse(payload, status=status, encoder=DjangoJSONEncoder)


def fail(message, status=400, code='VALIDATION_ERROR', **extra):
    """Error envelope."""
    payload = {'success': False, 'message': message, 'code': code}
    payload.update(extra)
    return JsonResponse(payload, status=status, encoder=DjangoJSONEncoder)


def error_response(error: BaseError):
    """Translate a structured error to the error envelope."""
    status = http_status_for(error)
    if isinstance(error, UpstreamError):
        # Cause stays in the logs, the caller gets the generic message
        logger.error("api.upstream_error", extra={"error": error.as_dict()})
        return fail(error._default_messages['UPSTREAM_SERVICE_ERROR'],
                    status=status, code='UPSTREAM_SERVICE_ERROR')
    return fail(error.message, status=status, code=error.code)


def api_view(methods):
    """
    Decorate a function view as a JSON endpoint.

    - Rejects methods not in `methods` with 405
    - Parses the JSON body into request.json ({} when empty)
    - Converts BaseError to the error envelope
    - Converts anything else to a generic 500 (logged with traceback)
    """
    allowed = [m.upper() for m in methods]

    def decorator(view):
        @csrf_exempt
        @functools.wraps(view)
        def wrapper(request, *args, **kwargs):
            if request.method not in allowed:
                return fail('Método não permitido', status=405, code='METHOD_NOT_ALLOWED')
            try:
                request.json = _parse_body(request)
                return view(request, *args, **kwargs)
            except BaseError as e:
                return error_response(e)
            except Exception:
                logger.exception("api.internal_error", extra={"path": request.path})
                return fail('Internal server error', status=500, code='INTERNAL_ERROR')
        return wrapper
    return decorator


def _parse_body(request) -> dict:
    if request.method in ('GET', 'HEAD', 'DELETE') or not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError('VALIDATION_ERROR', 'JSON inválido') from None
    if not isinstance(data, dict):
        raise ValidationError('VALIDATION_ERROR', 'Corpo deve ser um objeto JSON')
    return data


# ══════════════════════════════════════════════════════════════
# PAYLOAD COERCION
# ══════════════════════════════════════════════════════════════


def require(data: dict, *fields: str) -> None:
    """Raise VALIDATION_ERROR if any field is missing or blank."""
    missing = [f for f in fields if data.get(f) in (None, '')]
    if missing:
        raise ValidationError(
            'VALIDATION_ERROR',
            f"Campos obrigatórios: {', '.join(missing)}",
            missing=missing,
        )


def to_decimal(value, field: str) -> Decimal:
    """Coerce a JSON number/string to a finite Decimal."""
    if isinstance(value, bool):
        raise ValidationError('VALIDATION_ERROR', f"{field} deve ser numérico", field=field)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError('VALIDATION_ERROR', f"{field} deve ser numérico", field=field) from None
    if not number.is_finite():
        raise ValidationError('VALIDATION_ERROR', f"{field} deve ser finito", field=field)
    return number


def to_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError('VALIDATION_ERROR', f"{field} deve ser inteiro", field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError('VALIDATION_ERROR', f"{field} deve ser inteiro", field=field) from None


def to_date(value, field: str):
    if value in (None, ''):
        return None
    parsed = parse_date(str(value)[:10])
    if parsed is None:
        raise ValidationError('VALIDATION_ERROR', f"{field} deve ser uma data (AAAA-MM-DD)", field=field)
    return parsed


def to_datetime(value, field: str):
    if value in (None, ''):
        return None
    parsed = parse_datetime(str(value))
    if parsed is None:
        raise ValidationError('VALIDATION_ERROR', f"{field} deve ser data/hora ISO 8601", field=field)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def pick(data: dict, *fields: str) -> dict:
    """Subset of `data` with only the given keys that are present."""
    return {f: data[f] for f in fields if f in data}
