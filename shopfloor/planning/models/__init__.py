"""
Planning Models.

- ProductionPlan: when and in how many batches a request is produced
"""

from shopfloor.planning.models.plan import PlanStatus, ProductionPlan

__all__ = [
    'PlanStatus',
    'ProductionPlan',
]
