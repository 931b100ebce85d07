"""
Planning REST endpoints.
"""

from shopfloor.api import api_view, ok, pick, require, to_date, to_int
from shopfloor.auth import check_capability, require_capability
from shopfloor.planning.serializers import serialize_plan
from shopfloor.planning.service import planning

PLAN_FIELDS = ('product_name', 'priority', 'planned_start_date', 'planned_end_date',
               'planned_batches', 'planning_notes')


def _plan_fields(data: dict) -> dict:
    fields = pick(data, *PLAN_FIELDS)
    for name in ('planned_start_date', 'planned_end_date'):
        if name in fields:
            fields[name] = to_date(fields[name], name)
    if 'planned_batches' in fields:
        fields['planned_batches'] = to_int(fields['planned_batches'], 'planned_batches')
    return fields


@api_view(['GET', 'POST'])
@require_capability('planning.view')
def plans(request):
    if request.method == 'POST':
        check_capability(request, 'planning.manage')
        data = request.json
        fields = _plan_fields(data)
        plan = planning.create_plan(
            fields.pop('product_name', ''),
            request_id=data.get('request_id') or '',
            **fields,
        )
        return ok(serialize_plan(plan), status=201, message='Plano criado')

    qs = planning.list_plans(
        status=request.GET.get('status'),
        request_id=request.GET.get('request_id'),
        priority=request.GET.get('priority'),
    )
    data = [serialize_plan(p) for p in qs]
    return ok(data, total=len(data))


@api_view(['GET', 'PUT', 'DELETE'])
@require_capability('planning.view')
def plan_detail(request, plan_id):
    if request.method == 'PUT':
        check_capability(request, 'planning.manage')
        plan = planning.update_plan(plan_id, **_plan_fields(request.json))
        return ok(serialize_plan(plan), message='Plano atualizado')

    if request.method == 'DELETE':
        check_capability(request, 'planning.manage')
        planning.delete_plan(plan_id)
        return ok(None, message='Plano excluído')

    return ok(serialize_plan(planning.get_plan(plan_id)))


@api_view(['POST'])
@require_capability('planning.manage')
def plan_approve(request, plan_id):
    plan, error = planning.approve_plan(plan_id, notes=request.json.get('notes', ''))
    if error is not None:
        return ok(
            serialize_plan(plan),
            status=207,
            message='Plano aprovado, mas houve falha ao criar os lotes de produção',
            error={'code': error.code, 'message': error.message},
        )
    return ok(serialize_plan(plan), message='Plano aprovado e lotes de produção criados')


@api_view(['POST'])
@require_capability('planning.manage')
def plan_cancel(request, plan_id):
    plan = planning.cancel_plan(plan_id, reason=request.json.get('reason', ''))
    return ok(serialize_plan(plan), message='Plano cancelado')


@api_view(['POST'])
@require_capability('planning.manage')
def notifications(request):
    data = request.json
    require(data, 'request_id')
    plan = planning.receive_request_notification(
        data['request_id'],
        priority=data.get('priority'),
        due_date=to_date(data.get('due_date'), 'due_date'),
    )
    return ok(serialize_plan(plan), status=201, message='Notificação recebida')


@api_view(['POST'])
@require_capability('planning.manage')
def notification_update(request):
    data = request.json
    require(data, 'request_id')
    plan = planning.receive_request_update(
        data['request_id'],
        priority=data.get('priority'),
        status=data.get('status'),
    )
    return ok(serialize_plan(plan), message='Plano sincronizado')
