"""
Planning Service — the single public interface for production plans.

Usage:
    from shopfloor.planning.service import planning

    plan = planning.receive_request_notification('REQ-20240101-ABC123')
    planning.update_plan(plan.plan_id, planned_batches=2)
    plan, error = planning.approve_plan(plan.plan_id)
"""

from shopfloor.planning.services import Planning


class PlanningService(Planning):
    """Single interface for planning operations."""


planning = PlanningService
