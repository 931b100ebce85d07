"""
Production services.

    from shopfloor.production.services import ProductionLifecycle, ProductionOrchestration
"""

from shopfloor.production.services.lifecycle import ProductionLifecycle
from shopfloor.production.services.orchestration import ProductionOrchestration

__all__ = [
    'ProductionLifecycle',
    'ProductionOrchestration',
]
