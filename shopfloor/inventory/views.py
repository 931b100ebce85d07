"""
Inventory REST endpoints.
"""

from shopfloor.api import api_view, ok, pick, require, to_decimal
from shopfloor.auth import acting_user, check_capability, require_capability
from shopfloor.inventory.serializers import (
    serialize_material,
    serialize_reservation,
    serialize_stock,
    serialize_supplier,
    serialize_transaction,
)
from shopfloor.inventory.service import inventory
from shopfloor.inventory.services.suppliers import SUPPLIER_FIELDS

MATERIAL_FIELDS = (
    'name', 'material_type', 'unit_of_measure', 'minimum_stock',
    'standard_cost', 'supplier_id', 'metadata',
)
DECIMAL_FIELDS = ('minimum_stock', 'standard_cost')


def _material_fields(data: dict) -> dict:
    fields = pick(data, *MATERIAL_FIELDS)
    for name in DECIMAL_FIELDS:
        if name in fields:
            fields[name] = to_decimal(fields[name], name)
    return fields


# ══════════════════════════════════════════════════════════════
# MATERIALS
# ══════════════════════════════════════════════════════════════


@api_view(['GET', 'POST'])
@require_capability('inventory.view')
def materials(request):
    if request.method == 'POST':
        check_capability(request, 'inventory.manage')
        data = request.json
        require(data, 'material_id', 'name')
        material = inventory.add_material(
            data['material_id'],
            data['name'],
            current_stock=to_decimal(data.get('current_stock', 0), 'current_stock'),
            user=acting_user(request),
            **_material_fields(data),
        )
        return ok(serialize_material(material), status=201, message='Material criado')

    qs = inventory.list_materials(
        search=request.GET.get('search'),
        material_type=request.GET.get('material_type'),
        low_stock=request.GET.get('low_stock') in ('1', 'true'),
    )
    data = [serialize_material(m) for m in qs]
    return ok(data, total=len(data))


@api_view(['GET', 'PUT', 'DELETE'])
@require_capability('inventory.view')
def material_detail(request, material_id):
    if request.method == 'PUT':
        check_capability(request, 'inventory.manage')
        material = inventory.update_material(material_id, **_material_fields(request.json))
        return ok(serialize_material(material), message='Material atualizado')

    if request.method == 'DELETE':
        check_capability(request, 'inventory.manage')
        inventory.delete_material(material_id)
        return ok(None, message='Material excluído')

    return ok(serialize_material(inventory.get_material(material_id)))


@api_view(['GET'])
@require_capability('inventory.view')
def material_stock(request, material_id):
    return ok(serialize_stock(inventory.get_material(material_id)))


@api_view(['POST'])
@require_capability('inventory.manage')
def stock_add(request, material_id):
    data = request.json
    require(data, 'quantity')
    material = inventory.add_stock(
        material_id,
        to_decimal(data['quantity'], 'quantity'),
        reference=data.get('reference', ''),
        reason=data.get('reason') or 'Recebimento',
        user=acting_user(request),
    )
    return ok(serialize_stock(material), message='Estoque adicionado')


@api_view(['POST'])
@require_capability('inventory.manage')
def stock_consume(request, material_id):
    data = request.json
    require(data, 'quantity')
    material = inventory.consume_stock(
        material_id,
        to_decimal(data['quantity'], 'quantity'),
        reference=data.get('reference', ''),
        reason=data.get('reason') or 'Consumo',
        user=acting_user(request),
    )
    return ok(serialize_stock(material), message='Estoque consumido')


@api_view(['POST'])
@require_capability('inventory.manage')
def stock_adjust(request, material_id):
    data = request.json
    require(data, 'quantity')
    material = inventory.adjust_stock(
        material_id,
        to_decimal(data['quantity'], 'quantity'),
        reason=data.get('reason', ''),
        user=acting_user(request),
    )
    return ok(serialize_stock(material), message='Estoque ajustado')


@api_view(['GET'])
@require_capability('inventory.view')
def material_transactions(request, material_id):
    qs = inventory.list_transactions(material_id, kind=request.GET.get('kind'))
    data = [serialize_transaction(tx) for tx in qs.select_related('material')]
    return ok(data, total=len(data))


@api_view(['POST'])
@require_capability('inventory.view')
def check_stock(request):
    result = inventory.check_stock(request.json.get('materials'))
    return ok(result)


@api_view(['GET'])
@require_capability('inventory.view')
def low_stock_report(request):
    data = [serialize_stock(m) for m in inventory.low_stock_report()]
    return ok(data, total=len(data))


@api_view(['GET'])
@require_capability('inventory.view')
def usage_report(request):
    data = inventory.usage_report()
    return ok(data, total=len(data))


# ══════════════════════════════════════════════════════════════
# RESERVATIONS
# ══════════════════════════════════════════════════════════════


@api_view(['GET'])
@require_capability('inventory.view')
def reservations(request):
    qs = inventory.list_reservations(
        status=request.GET.get('status'),
        batch_id=request.GET.get('batch_id'),
    )
    data = [serialize_reservation(r) for r in qs]
    return ok(data, total=len(data))


@api_view(['GET'])
@require_capability('inventory.view')
def reservation_detail(request, batch_id):
    return ok(serialize_reservation(inventory.reservation_for_batch(batch_id)))


@api_view(['POST'])
@require_capability('inventory.reserve')
def reserve(request):
    data = request.json
    require(data, 'batch_id')
    reservation = inventory.reserve_materials(
        str(data['batch_id']),
        data.get('materials'),
        user=acting_user(request),
    )
    return ok(serialize_reservation(reservation), message='Materiais reservados')


@api_view(['POST'])
@require_capability('inventory.reserve')
def release(request):
    data = request.json
    require(data, 'batch_id')
    reservation = inventory.release_materials(
        str(data['batch_id']),
        reason=data.get('reason') or 'Liberado',
        user=acting_user(request),
    )
    return ok(serialize_reservation(reservation), message='Materiais liberados')


@api_view(['POST'])
@require_capability('inventory.reserve')
def consume(request):
    data = request.json
    require(data, 'batch_id')
    reservation = inventory.consume_reservation(
        str(data['batch_id']),
        reason=data.get('reason') or 'Consumo de produção',
        user=acting_user(request),
    )
    return ok(serialize_reservation(reservation), message='Materiais consumidos')


# ══════════════════════════════════════════════════════════════
# SUPPLIERS
# ══════════════════════════════════════════════════════════════


@api_view(['GET', 'POST'])
@require_capability('inventory.view')
def suppliers(request):
    if request.method == 'POST':
        check_capability(request, 'inventory.manage')
        data = request.json
        require(data, 'name')
        supplier = inventory.create_supplier(
            data['name'],
            supplier_id=data.get('supplier_id') or None,
            **pick(data, *(f for f in SUPPLIER_FIELDS if f != 'name')),
        )
        return ok(serialize_supplier(supplier), status=201, message='Fornecedor criado')

    qs = inventory.list_suppliers(
        status=request.GET.get('status'),
        search=request.GET.get('search'),
    )
    data = [serialize_supplier(s) for s in qs]
    return ok(data, total=len(data))


@api_view(['GET'])
@require_capability('inventory.view')
def supplier_performance(request):
    data = inventory.supplier_performance()
    return ok(data, total=len(data))


@api_view(['GET', 'PUT', 'DELETE'])
@require_capability('inventory.view')
def supplier_detail(request, supplier_id):
    if request.method == 'PUT':
        check_capability(request, 'inventory.manage')
        supplier = inventory.update_supplier(supplier_id, **pick(request.json, *SUPPLIER_FIELDS))
        return ok(serialize_supplier(supplier), message='Fornecedor atualizado')

    if request.method == 'DELETE':
        check_capability(request, 'inventory.manage')
        if inventory.delete_supplier(supplier_id):
            return ok(None, message='Fornecedor excluído')
        return ok(serialize_supplier(inventory.get_supplier(supplier_id)),
                  message='Fornecedor possui materiais vinculados e foi desativado')

    return ok(serialize_supplier(inventory.get_supplier(supplier_id)))


@api_view(['GET'])
@require_capability('inventory.view')
def supplier_materials(request, supplier_id):
    data = [serialize_material(m) for m in inventory.supplier_materials(supplier_id)]
    return ok(data, total=len(data))
