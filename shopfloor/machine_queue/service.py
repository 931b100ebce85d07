"""
Machine Queue Service — the single public interface for machines and queues.

Usage:
    from shopfloor.machine_queue.service import machine_queue

    machine_queue.create_machine('CNC-01', 'Torno CNC', machine_type='cnc')
    entry = machine_queue.enqueue('CNC-01', 'B20240101-0001', step_name='Torneamento')
    machine_queue.start(entry.queue_id, operator_id='42')
    machine_queue.complete(entry.queue_id)
"""

from shopfloor.machine_queue.services import MachineQueue, MachineRegistry


class MachineQueueService(MachineRegistry, MachineQueue):
    """
    Single interface for machine and queue operations.

    Every queue change locks the machine row first; see
    services/queue.py.
    """


machine_queue = MachineQueueService
