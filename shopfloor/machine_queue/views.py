"""
Machine queue REST endpoints.
"""

from shopfloor.api import (
    ValidationError,
    api_view,
    ok,
    pick,
    require,
    to_datetime,
    to_decimal,
    to_int,
)
from shopfloor.auth import acting_user, check_capability, require_capability
from shopfloor.machine_queue.serializers import serialize_entry, serialize_machine
from shopfloor.machine_queue.service import machine_queue

MACHINE_FIELDS = ('name', 'machine_type', 'status', 'hours_per_day', 'location', 'notes')
ENTRY_FIELDS = ('priority', 'hours_required', 'scheduled_start', 'scheduled_end',
                'operator_id', 'operator_name', 'notes', 'product_name')


def _entry_fields(data: dict) -> dict:
    fields = pick(data, *ENTRY_FIELDS)
    if 'hours_required' in fields:
        fields['hours_required'] = to_decimal(fields['hours_required'], 'hours_required')
    for name in ('scheduled_start', 'scheduled_end'):
        if name in fields:
            fields[name] = to_datetime(fields[name], name)
    return fields


def _step_payload(data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError('VALIDATION_ERROR', 'Etapa inválida')
    step = pick(data, 'machine_id', 'step_id', 'step_name', 'hours_required',
                'scheduled_start', 'scheduled_end')
    if step.get('step_id') is not None:
        step['step_id'] = to_int(step['step_id'], 'step_id')
    if step.get('hours_required') is not None:
        step['hours_required'] = to_decimal(step['hours_required'], 'hours_required')
    for name in ('scheduled_start', 'scheduled_end'):
        if name in step:
            step[name] = to_datetime(step[name], name)
    return step


# ══════════════════════════════════════════════════════════════
# MACHINES
# ══════════════════════════════════════════════════════════════


@api_view(['GET', 'POST'])
@require_capability('queue.view')
def machines(request):
    if request.method == 'POST':
        check_capability(request, 'queue.manage')
        data = request.json
        require(data, 'machine_id', 'name')
        machine = machine_queue.create_machine(
            data['machine_id'], data['name'], **pick(data, *MACHINE_FIELDS[1:]),
        )
        return ok(serialize_machine(machine), status=201, message='Máquina criada')

    qs = machine_queue.list_machines(
        status=request.GET.get('status'),
        machine_type=request.GET.get('machine_type'),
    )
    data = [serialize_machine(m) for m in qs]
    return ok(data, total=len(data))


@api_view(['GET'])
@require_capability('queue.view')
def available_machines(request):
    qs = machine_queue.available_machines(machine_type=request.GET.get('machine_type'))
    data = [serialize_machine(m) for m in qs]
    return ok(data, total=len(data))


@api_view(['GET', 'PUT', 'DELETE'])
@require_capability('queue.view')
def machine_detail(request, machine_id):
    if request.method == 'PUT':
        check_capability(request, 'queue.manage')
        machine = machine_queue.update_machine(machine_id, **pick(request.json, *MACHINE_FIELDS))
        return ok(serialize_machine(machine), message='Máquina atualizada')

    if request.method == 'DELETE':
        check_capability(request, 'queue.manage')
        machine_queue.delete_machine(machine_id)
        return ok(None, message='Máquina excluída')

    return ok(serialize_machine(machine_queue.get_machine(machine_id)))


@api_view(['GET'])
@require_capability('queue.view')
def machine_entries(request, machine_id):
    data = [serialize_entry(e) for e in machine_queue.machine_queue(machine_id)]
    return ok(data, total=len(data))


@api_view(['POST'])
@require_capability('queue.manage')
def machine_compact(request, machine_id):
    changed = machine_queue.compact(machine_id)
    data = [serialize_entry(e) for e in machine_queue.machine_queue(machine_id)]
    return ok(data, total=len(data), changed=changed, message='Fila compactada')


# ══════════════════════════════════════════════════════════════
# QUEUE ENTRIES
# ══════════════════════════════════════════════════════════════


@api_view(['GET', 'POST'])
@require_capability('queue.view')
def entries(request):
    if request.method == 'POST':
        check_capability(request, 'queue.manage')
        data = request.json
        require(data, 'machine_id', 'batch_id')
        fields = _entry_fields(data)
        step_id = data.get('step_id')
        entry = machine_queue.enqueue(
            data['machine_id'],
            data['batch_id'],
            product_name=fields.get('product_name', ''),
            step_id=to_int(step_id, 'step_id') if step_id is not None else None,
            step_name=data.get('step_name', ''),
            priority=fields.get('priority') or 'normal',
            hours_required=fields.get('hours_required', 1),
            scheduled_start=fields.get('scheduled_start'),
            scheduled_end=fields.get('scheduled_end'),
            notes=fields.get('notes', ''),
        )
        return ok(serialize_entry(entry), status=201, message='Item adicionado à fila')

    qs = machine_queue.list_entries(
        machine_id=request.GET.get('machine_id'),
        status=request.GET.get('status'),
        batch_id=request.GET.get('batch_id'),
    )
    data = [serialize_entry(e) for e in qs]
    return ok(data, total=len(data))


@api_view(['GET', 'PUT', 'DELETE'])
@require_capability('queue.view')
def entry_detail(request, queue_id):
    if request.method == 'PUT':
        check_capability(request, 'queue.manage')
        entry = machine_queue.update_entry(queue_id, **_entry_fields(request.json))
        return ok(serialize_entry(entry), message='Item atualizado')

    if request.method == 'DELETE':
        check_capability(request, 'queue.manage')
        machine_queue.remove(queue_id)
        return ok(None, message='Item removido da fila')

    return ok(serialize_entry(machine_queue.get_entry(queue_id)))


@api_view(['POST'])
@require_capability('queue.operate')
def entry_start(request, queue_id):
    data = request.json
    user = getattr(request, 'service_user', None) or {}
    entry = machine_queue.start(
        queue_id,
        operator_id=str(data.get('operator_id') or user.get('id') or ''),
        operator_name=data.get('operator_name') or acting_user(request),
    )
    return ok(serialize_entry(entry), message='Produção iniciada')


@api_view(['POST'])
@require_capability('queue.operate')
def entry_pause(request, queue_id):
    entry = machine_queue.pause(queue_id, reason=request.json.get('reason', ''))
    return ok(serialize_entry(entry), message='Produção pausada')


@api_view(['POST'])
@require_capability('queue.operate')
def entry_resume(request, queue_id):
    entry = machine_queue.resume(queue_id)
    return ok(serialize_entry(entry), message='Produção retomada')


@api_view(['POST'])
@require_capability('queue.operate')
def entry_complete(request, queue_id):
    entry = machine_queue.complete(queue_id, notes=request.json.get('notes', ''))
    return ok(serialize_entry(entry), message='Produção concluída')


@api_view(['POST'])
@require_capability('queue.manage')
def entry_cancel(request, queue_id):
    entry = machine_queue.cancel(queue_id, reason=request.json.get('reason', ''))
    return ok(serialize_entry(entry), message='Item cancelado')


@api_view(['POST'])
@require_capability('queue.manage')
def entry_move(request, queue_id):
    data = request.json
    require(data, 'position')
    entry = machine_queue.move(queue_id, to_int(data['position'], 'position'))
    return ok(serialize_entry(entry), message='Item reposicionado')


# ══════════════════════════════════════════════════════════════
# BATCH-LEVEL (production → machine queue)
# ══════════════════════════════════════════════════════════════


@api_view(['POST'])
@require_capability('queue.manage')
def batch_steps(request):
    data = request.json
    require(data, 'batch_id', 'steps')
    steps = data['steps']
    if not isinstance(steps, list):
        raise ValidationError('VALIDATION_ERROR', 'steps deve ser uma lista')
    created = machine_queue.enqueue_batch_steps(
        data['batch_id'],
        [_step_payload(s) for s in steps],
        product_name=data.get('product_name', ''),
        priority=data.get('priority') or 'normal',
    )
    payload = [serialize_entry(e) for e in created]
    return ok(payload, status=201, total=len(payload), message='Etapas enfileiradas')


@api_view(['POST'])
@require_capability('queue.operate')
def complete_step(request):
    data = request.json
    require(data, 'batch_id', 'step_id')
    entry = machine_queue.complete_step(data['batch_id'], to_int(data['step_id'], 'step_id'))
    return ok(serialize_entry(entry) if entry is not None else None)


@api_view(['POST'])
@require_capability('queue.manage')
def cancel_batch(request):
    data = request.json
    require(data, 'batch_id')
    cancelled = machine_queue.cancel_batch(data['batch_id'], reason=data.get('reason', ''))
    return ok({'cancelled': cancelled}, message='Itens do lote cancelados')


@api_view(['GET'])
@require_capability('queue.view')
def batch_entries(request, batch_id):
    data = [serialize_entry(e) for e in machine_queue.entries_for_batch(batch_id)]
    return ok(data, total=len(data))
