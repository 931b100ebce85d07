"""
Plain-dict representation of production plans.
"""


def serialize_plan(plan) -> dict:
    return {
        'plan_id': plan.plan_id,
        'request_id': plan.request_id,
        'product_name': plan.product_name,
        'priority': plan.priority,
        'planned_start_date': plan.planned_start_date,
        'planned_end_date': plan.planned_end_date,
        'planned_batches': plan.planned_batches,
        'status': plan.status,
        'batch_numbers': plan.batch_numbers,
        'planning_notes': plan.planning_notes,
        'created_at': plan.created_at,
        'updated_at': plan.updated_at,
    }
