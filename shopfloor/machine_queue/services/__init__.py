"""
Machine queue services.
"""

from shopfloor.machine_queue.services.machines import MachineRegistry
from shopfloor.machine_queue.services.queue import MachineQueue

__all__ = [
    'MachineRegistry',
    'MachineQueue',
]
