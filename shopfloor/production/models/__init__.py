"""
Production Models.

- ProductionRequest: what was asked for
- ProductionBatch: a unit of work for a request (+ BatchMaterial lines)
- ProductionStep: ordered operations of a batch, each on one machine
"""

from shopfloor.production.models.batch import BatchMaterial, ProductionBatch
from shopfloor.production.models.enums import (
    BATCH_TRANSITIONS,
    BatchStatus,
    RequestStatus,
)
from shopfloor.production.models.request import ProductionRequest
from shopfloor.production.models.step import ProductionStep

__all__ = [
    'BATCH_TRANSITIONS',
    'BatchStatus',
    'RequestStatus',
    'ProductionRequest',
    'ProductionBatch',
    'BatchMaterial',
    'ProductionStep',
]
