"""
Machine Queue Models.

- Machine: a workstation
- QueueEntry: work waiting on / running on a machine
"""

from shopfloor.machine_queue.models.entry import QueueEntry
from shopfloor.machine_queue.models.enums import MachineStatus, QueueStatus
from shopfloor.machine_queue.models.machine import Machine

__all__ = [
    'MachineStatus',
    'QueueStatus',
    'Machine',
    'QueueEntry',
]
