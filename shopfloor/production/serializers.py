"""
Plain-dict representations of production models.
"""


def serialize_request(request, with_batches: bool = False) -> dict:
    data = {
        'request_id': request.request_id,
        'product_name': request.product_name,
        'quantity': request.quantity,
        'priority': request.priority,
        'due_date': request.due_date,
        'status': request.status,
        'notes': request.notes,
        'created_at': request.created_at,
        'updated_at': request.updated_at,
    }
    if with_batches:
        data['batches'] = [serialize_batch(b) for b in request.batches.all()]
    return data


def serialize_step(step) -> dict:
    return {
        'id': step.pk,
        'step_name': step.step_name,
        'step_order': step.step_order,
        'machine_type': step.machine_type,
        'machine_id': step.machine_id,
        'hours_required': step.hours_required,
        'scheduled_start': step.scheduled_start,
        'scheduled_end': step.scheduled_end,
        'actual_start': step.actual_start,
        'actual_end': step.actual_end,
        'status': step.status,
        'operator_id': step.operator_id,
        'notes': step.notes,
    }


def serialize_batch(batch) -> dict:
    return {
        'batch_number': batch.batch_number,
        'request_id': batch.request.request_id,
        'product_name': batch.request.product_name,
        'quantity': batch.quantity,
        'scheduled_start_date': batch.scheduled_start_date,
        'scheduled_end_date': batch.scheduled_end_date,
        'status': batch.status,
        'materials_assigned': batch.materials_assigned,
        'machine_assigned': batch.machine_assigned,
        'notes': batch.notes,
        'steps': [serialize_step(s) for s in batch.steps.all()],
        'materials': [
            {
                'material_id': m.material_id,
                'quantity_required': m.quantity_required,
                'unit_of_measure': m.unit_of_measure,
            }
            for m in batch.materials.all()
        ],
        'created_at': batch.created_at,
        'updated_at': batch.updated_at,
    }
