"""
Django Shopfloor — operações de fábrica.

Estoque de materiais, produção, filas de máquinas e planejamento, como
apps Django que rodam juntos ou como serviços separados.

Uso:
    from shopfloor import inventory, production, StockError

    inventory.reserve_materials('B20240101-ABC123', [
        {'material_id': 'MAT001', 'quantity_required': 100},
    ])
    production.assign_batch('B20240101-ABC123')
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'inventory':
        from shopfloor.inventory.service import inventory
        return inventory
    elif name == 'production':
        from shopfloor.production.service import production
        return production
    elif name == 'machine_queue':
        from shopfloor.machine_queue.service import machine_queue
        return machine_queue
    elif name == 'planning':
        from shopfloor.planning.service import planning
        return planning
    elif name in ('BaseError', 'StockError', 'ProductionError', 'QueueError', 'UpstreamError', 'AuthError'):
        from shopfloor import exceptions
        return getattr(exceptions, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'inventory',
    'production',
    'machine_queue',
    'planning',
    'BaseError',
    'StockError',
    'ProductionError',
    'QueueError',
    'UpstreamError',
    'AuthError',
]

__version__ = '0.1.0'
