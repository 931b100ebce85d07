"""
Production REST endpoints.
"""

from shopfloor.api import (
    ValidationError,
    api_view,
    ok,
    pick,
    require,
    to_date,
    to_datetime,
    to_int,
)
from shopfloor.auth import check_capability, require_capability
from shopfloor.production.serializers import serialize_batch, serialize_request, serialize_step
from shopfloor.production.service import production


def _request_fields(data: dict) -> dict:
    fields = pick(data, 'product_name', 'quantity', 'priority', 'due_date', 'notes')
    if 'quantity' in fields:
        fields['quantity'] = to_int(fields['quantity'], 'quantity')
    if 'due_date' in fields:
        fields['due_date'] = to_date(fields['due_date'], 'due_date')
    return fields


def _batch_fields(data: dict) -> dict:
    fields = pick(data, 'quantity', 'scheduled_start_date', 'scheduled_end_date', 'notes')
    if 'quantity' in fields:
        fields['quantity'] = to_int(fields['quantity'], 'quantity')
    for name in ('scheduled_start_date', 'scheduled_end_date'):
        if name in fields:
            fields[name] = to_date(fields[name], name)
    return fields


def _step_payload(data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError('VALIDATION_ERROR', 'Etapa inválida')
    step = dict(data)
    for name in ('scheduled_start', 'scheduled_end'):
        if name in step:
            step[name] = to_datetime(step[name], name)
    return step


# ══════════════════════════════════════════════════════════════
# REQUESTS
# ══════════════════════════════════════════════════════════════


@api_view(['GET', 'POST'])
@require_capability('production.view')
def requests_(request):
    if request.method == 'POST':
        check_capability(request, 'production.manage')
        data = request.json
        require(data, 'product_name', 'quantity')
        fields = _request_fields(data)
        created = production.create_request(
            fields.pop('product_name'),
            fields.pop('quantity'),
            request_id=data.get('request_id'),
            **fields,
        )
        return ok(serialize_request(created), status=201, message='Solicitação criada')

    qs = production.list_requests(
        status=request.GET.get('status'),
        priority=request.GET.get('priority'),
    )
    data = [serialize_request(r) for r in qs]
    return ok(data, total=len(data))


@api_view(['GET', 'PUT', 'DELETE'])
@require_capability('production.view')
def request_detail(request, request_id):
    if request.method == 'PUT':
        check_capability(request, 'production.manage')
        updated = production.update_request(request_id, **_request_fields(request.json))
        return ok(serialize_request(updated), message='Solicitação atualizada')

    if request.method == 'DELETE':
        check_capability(request, 'production.manage')
        production.delete_request(request_id)
        return ok(None, message='Solicitação excluída')

    return ok(serialize_request(production.get_request(request_id), with_batches=True))


@api_view(['POST'])
@require_capability('production.manage')
def request_cancel(request, request_id):
    cancelled = production.cancel_request(request_id, reason=request.json.get('reason') or 'Cancelado')
    return ok(serialize_request(cancelled, with_batches=True), message='Solicitação cancelada')


# ══════════════════════════════════════════════════════════════
# BATCHES
# ══════════════════════════════════════════════════════════════


@api_view(['GET', 'POST'])
@require_capability('production.view')
def batches(request):
    if request.method == 'POST':
        check_capability(request, 'production.manage')
        data = request.json
        require(data, 'request_id', 'quantity')
        fields = _batch_fields(data)
        batch = production.create_batch(
            data['request_id'],
            fields.pop('quantity'),
            steps=[_step_payload(s) for s in data.get('steps') or []],
            materials=data.get('materials') or [],
            **fields,
        )
        batch = production.get_batch(batch.batch_number)
        return ok(serialize_batch(batch), status=201, message='Lote criado')

    qs = production.list_batches(
        status=request.GET.get('status'),
        request_id=request.GET.get('request_id'),
    )
    data = [serialize_batch(b) for b in qs]
    return ok(data, total=len(data))


@api_view(['GET', 'PUT', 'DELETE'])
@require_capability('production.view')
def batch_detail(request, batch_number):
    if request.method == 'PUT':
        check_capability(request, 'production.manage')
        production.update_batch(batch_number, **_batch_fields(request.json))
        return ok(serialize_batch(production.get_batch(batch_number)), message='Lote atualizado')

    if request.method == 'DELETE':
        check_capability(request, 'production.manage')
        production.delete_batch(batch_number)
        return ok(None, message='Lote excluído')

    return ok(serialize_batch(production.get_batch(batch_number)))


@api_view(['POST'])
@require_capability('production.manage')
def batch_transition(request, batch_number):
    data = request.json
    require(data, 'status')
    if data['status'] == 'cancelled':
        production.cancel_batch(batch_number, reason=data.get('reason') or 'Cancelado')
    else:
        production.transition(batch_number, data['status'])
    return ok(serialize_batch(production.get_batch(batch_number)), message='Status atualizado')


@api_view(['POST'])
@require_capability('production.manage')
def batch_assign(request, batch_number):
    batch = production.assign_batch(batch_number)
    return ok(serialize_batch(batch), message='Materiais reservados e etapas enfileiradas')


@api_view(['POST'])
@require_capability('production.manage')
def batch_cancel(request, batch_number):
    production.cancel_batch(batch_number, reason=request.json.get('reason') or 'Cancelado')
    return ok(serialize_batch(production.get_batch(batch_number)), message='Lote cancelado')


# ══════════════════════════════════════════════════════════════
# STEPS
# ══════════════════════════════════════════════════════════════


@api_view(['GET', 'POST'])
@require_capability('production.view')
def batch_steps(request, batch_number):
    if request.method == 'POST':
        check_capability(request, 'production.manage')
        data = _step_payload(request.json)
        require(data, 'step_name')
        step = production.add_step(batch_number, data.pop('step_name'), **data)
        return ok(serialize_step(step), status=201, message='Etapa criada')

    data = [serialize_step(s) for s in production.list_steps(batch_number)]
    return ok(data, total=len(data))


@api_view(['POST'])
@require_capability('production.operate')
def step_start(request, batch_number, step_id):
    step = production.start_step(batch_number, step_id, operator_id=request.json.get('operator_id', ''))
    return ok(serialize_step(step), message='Etapa iniciada')


@api_view(['POST'])
@require_capability('production.operate')
def step_complete(request, batch_number, step_id):
    step = production.complete_step(batch_number, step_id, notes=request.json.get('notes', ''))
    return ok(serialize_step(step), message='Etapa concluída')
