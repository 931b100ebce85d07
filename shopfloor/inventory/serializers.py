"""
Plain-dict representations of inventory models (JSON envelope payloads).
"""


def serialize_material(material) -> dict:
    return {
        'material_id': material.material_id,
        'name': material.name,
        'material_type': material.material_type,
        'unit_of_measure': material.unit_of_measure,
        'current_stock': material.current_stock,
        'reserved_stock': material.reserved_stock,
        'available_stock': material.available_stock,
        'minimum_stock': material.minimum_stock,
        'standard_cost': material.standard_cost,
        'supplier_id': material.supplier.supplier_id if material.supplier else None,
        'supplier_name': material.supplier.name if material.supplier else '',
        'is_low_stock': material.is_low_stock,
        'version': material.version,
        'metadata': material.metadata,
        'created_at': material.created_at,
        'updated_at': material.updated_at,
    }


def serialize_stock(material) -> dict:
    return {
        'material_id': material.material_id,
        'name': material.name,
        'unit_of_measure': material.unit_of_measure,
        'current_stock': material.current_stock,
        'reserved_stock': material.reserved_stock,
        'available_stock': material.available_stock,
        'minimum_stock': material.minimum_stock,
    }


def serialize_reservation(reservation) -> dict:
    return {
        'reservation_id': reservation.pk,
        'batch_id': reservation.batch_id,
        'status': reservation.status,
        'lines': [
            {
                'material_id': line.material.material_id,
                'quantity_reserved': line.quantity_reserved,
                'unit_of_measure': line.unit_of_measure,
            }
            for line in reservation.lines.all()
        ],
        'created_at': reservation.created_at,
        'released_at': reservation.released_at,
        'consumed_at': reservation.consumed_at,
        'metadata': reservation.metadata,
    }


def serialize_transaction(tx) -> dict:
    return {
        'id': tx.pk,
        'material_id': tx.material.material_id,
        'kind': tx.kind,
        'quantity': tx.quantity,
        'current_after': tx.current_after,
        'reserved_after': tx.reserved_after,
        'reference': tx.reference,
        'reason': tx.reason,
        'user': tx.user,
        'timestamp': tx.timestamp,
    }


def serialize_supplier(supplier) -> dict:
    return {
        'supplier_id': supplier.supplier_id,
        'name': supplier.name,
        'contact_person': supplier.contact_person,
        'email': supplier.email,
        'phone': supplier.phone,
        'address': supplier.address,
        'city': supplier.city,
        'country': supplier.country,
        'postal_code': supplier.postal_code,
        'website': supplier.website,
        'payment_terms': supplier.payment_terms,
        'lead_time_days': supplier.lead_time_days,
        'rating': supplier.rating,
        'status': supplier.status,
        'notes': supplier.notes,
        'created_at': supplier.created_at,
        'updated_at': supplier.updated_at,
    }
