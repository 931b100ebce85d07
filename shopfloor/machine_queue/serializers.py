"""
Plain-dict representations of machine queue models.
"""


def serialize_machine(machine) -> dict:
    return {
        'machine_id': machine.machine_id,
        'name': machine.name,
        'machine_type': machine.machine_type,
        'status': machine.status,
        'hours_per_day': machine.hours_per_day,
        'location': machine.location,
        'notes': machine.notes,
        'created_at': machine.created_at,
        'updated_at': machine.updated_at,
    }


def serialize_entry(entry) -> dict:
    return {
        'queue_id': entry.queue_id,
        'machine_id': entry.machine.machine_id,
        'batch_id': entry.batch_id,
        'product_name': entry.product_name,
        'step_id': entry.step_id,
        'step_name': entry.step_name,
        'position': entry.position,
        'status': entry.status,
        'priority': entry.priority,
        'hours_required': entry.hours_required,
        'scheduled_start': entry.scheduled_start,
        'scheduled_end': entry.scheduled_end,
        'actual_start': entry.actual_start,
        'actual_end': entry.actual_end,
        'operator_id': entry.operator_id,
        'operator_name': entry.operator_name,
        'notes': entry.notes,
        'created_at': entry.created_at,
    }
