"""
Material inventory: stock ledger and reservation registry.

Usage:
    from shopfloor.inventory.service import inventory

    inventory.add_stock('MAT001', Decimal('100'))
    inventory.reserve_materials('B-2024-0001', [
        {'material_id': 'MAT001', 'quantity_required': Decimal('100')},
    ])
"""
