"""
Production Service — the single public interface for production operations.

Usage:
    from shopfloor.production.service import production

    req = production.create_request('Eixo 30mm', 100, priority='high')
    batch = production.create_batch(req.request_id, 50,
        steps=[{'step_name': 'Torneamento', 'machine_id': 'CNC-01'}],
        materials=[{'material_id': 'MAT001', 'quantity_required': 100}])
    production.assign_batch(batch.batch_number)   # reserve + queue + schedule
"""

from shopfloor.production.services import ProductionLifecycle, ProductionOrchestration


class Production(ProductionLifecycle, ProductionOrchestration):
    """Single interface for all production operations."""


production = Production
