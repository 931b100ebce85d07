"""
Stock ledger — material registry and stock mutations (add, consume, adjust).

All state-changing methods use transaction.atomic() and lock the
material row with select_for_update(). Every stock write is also guarded
by the material's `version` (see write_stock).
"""

import logging
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from shopfloor.exceptions import StockError
from shopfloor.inventory.models import (
    Material,
    MaterialTransaction,
    ReservationLine,
    Supplier,
    TransactionKind,
)
from shopfloor.quantities import parse_decimal

logger = logging.getLogger('shopfloor')

# Fields callers may change through update_material()
DESCRIPTIVE_FIELDS = (
    'name', 'material_type', 'unit_of_measure', 'minimum_stock',
    'standard_cost', 'supplier_id', 'metadata',
)


def lock_material(material_id: str) -> Material:
    """Fetch a material with a row lock. Must run inside transaction.atomic()."""
    try:
        return Material.objects.select_for_update().get(material_id=material_id)
    except Material.DoesNotExist:
        raise StockError('MATERIAL_NOT_FOUND', material_id=material_id) from None


def write_stock(material: Material) -> None:
    """
    Persist the stock fields of a locked material.

    The UPDATE only matches if nobody bumped `version` since the row was
    read; otherwise CONCURRENT_MODIFICATION is raised and the caller's
    transaction rolls back.
    """
    material.recompute_available()
    updated = Material.objects.filter(
        pk=material.pk,
        version=material.version,
    ).update(
        current_stock=material.current_stock,
        reserved_stock=material.reserved_stock,
        available_stock=material.available_stock,
        version=F('version') + 1,
        updated_at=timezone.now(),
    )
    if not updated:
        raise StockError(
            'CONCURRENT_MODIFICATION',
            material_id=material.material_id,
            version=material.version,
        )
    material.version += 1


def record(material: Material, kind: str, quantity: Decimal,
           reference: str = '', reason: str = '', user: str = '') -> MaterialTransaction:
    """Append a ledger transaction with the material's post-mutation state."""
    return MaterialTransaction.objects.create(
        material=material,
        kind=kind,
        quantity=quantity,
        current_after=material.current_stock,
        reserved_after=material.reserved_stock,
        reference=reference or '',
        reason=reason or '',
        user=user or '',
    )


def _parse(quantity, material_id: str) -> Decimal:
    try:
        return parse_decimal(quantity)
    except ValueError as e:
        raise StockError('VALIDATION_ERROR', f"Quantidade inválida: {e}",
                         material_id=material_id, requested=str(quantity)) from None


def _check_positive(quantity, material_id: str) -> Decimal:
    value = _parse(quantity, material_id)
    if value <= 0:
        raise StockError('INVALID_QUANTITY', material_id=material_id, requested=value)
    return value


def _descriptive(fields: dict, material_id: str) -> dict:
    """Keep DESCRIPTIVE_FIELDS; parse amounts and resolve supplier_id to a Supplier."""
    changes = {k: v for k, v in fields.items() if k in DESCRIPTIVE_FIELDS}
    if 'minimum_stock' in changes:
        changes['minimum_stock'] = _parse(changes['minimum_stock'], material_id)
        if changes['minimum_stock'] < 0:
            raise StockError('VALIDATION_ERROR', 'minimum_stock não pode ser negativo',
                             material_id=material_id)
    if 'standard_cost' in changes:
        try:
            changes['standard_cost'] = parse_decimal(changes['standard_cost'], places=2)
        except ValueError as e:
            raise StockError('VALIDATION_ERROR', f"standard_cost inválido: {e}",
                             material_id=material_id) from None
    if 'supplier_id' in changes:
        supplier_id = changes.pop('supplier_id')
        if supplier_id in (None, ''):
            changes['supplier'] = None
        else:
            try:
                changes['supplier'] = Supplier.objects.get(supplier_id=supplier_id)
            except Supplier.DoesNotExist:
                raise StockError('SUPPLIER_NOT_FOUND', supplier_id=supplier_id) from None
    return changes


class InventoryLedger:
    """Material registry and stock mutation methods."""

    @classmethod
    def add_material(cls, material_id: str, name: str, current_stock=Decimal('0'),
                     user: str = '', **fields) -> Material:
        """
        Register a material.

        Opening stock (if any) is recorded as a receipt.

        Raises:
            StockError('DUPLICATE'): material_id already exists
            StockError('INVALID_QUANTITY'): negative opening stock
        """
        if not material_id or not name:
            raise StockError('VALIDATION_ERROR', 'material_id e name são obrigatórios')
        opening = _parse(current_stock or 0, material_id)
        if opening < 0:
            raise StockError('INVALID_QUANTITY', material_id=material_id, requested=opening)

        extra = _descriptive(fields, material_id)

        with transaction.atomic():
            if Material.objects.filter(material_id=material_id).exists():
                raise StockError('DUPLICATE', f"Material {material_id} já existe", material_id=material_id)
            try:
                with transaction.atomic():
                    material = Material.objects.create(
                        material_id=material_id,
                        name=name,
                        current_stock=opening,
                        reserved_stock=Decimal('0'),
                        available_stock=opening,
                        **extra,
                    )
            except IntegrityError:
                raise StockError('DUPLICATE', f"Material {material_id} já existe", material_id=material_id) from None

            if opening > 0:
                record(material, TransactionKind.RECEIPT, opening,
                       reason='Estoque inicial', user=user)

        logger.info(
            "inventory.material.created",
            extra={"material_id": material_id, "opening": str(opening)},
        )
        return material

    @classmethod
    def update_material(cls, material_id: str, **fields) -> Material:
        """
        Update descriptive fields.

        Stock fields are ignored here; they change only through
        add_stock / consume_stock / adjust_stock / reservations.
        """
        changes = _descriptive(fields, material_id)

        with transaction.atomic():
            material = lock_material(material_id)
            for attr, value in changes.items():
                setattr(material, attr, value)
            if changes:
                material.save(update_fields=[*changes, 'updated_at'])

        logger.info(
            "inventory.material.updated",
            extra={"material_id": material_id, "fields": sorted(changes)},
        )
        return material

    @classmethod
    def delete_material(cls, material_id: str) -> None:
        """
        Delete a material.

        Raises:
            StockError('MATERIAL_IN_USE'): referenced by a reservation line
                or still holding reserved stock
        """
        with transaction.atomic():
            material = lock_material(material_id)
            if material.reserved_stock > 0 or ReservationLine.objects.filter(material=material).exists():
                raise StockError('MATERIAL_IN_USE', material_id=material_id)
            material.delete()

        logger.info("inventory.material.deleted", extra={"material_id": material_id})

    @classmethod
    def add_stock(cls, material_id: str, quantity, reference: str = '',
                  reason: str = 'Recebimento', user: str = '') -> Material:
        """
        Stock entry: current += quantity.

        Raises:
            StockError('INVALID_QUANTITY'): quantity <= 0
            StockError('MATERIAL_NOT_FOUND')
        """
        quantity = _check_positive(quantity, material_id)

        with transaction.atomic():
            material = lock_material(material_id)
            material.current_stock += quantity
            write_stock(material)
            record(material, TransactionKind.RECEIPT, quantity,
                   reference=reference, reason=reason, user=user)

        logger.info(
            "inventory.stock.added",
            extra={
                "material_id": material_id,
                "qty": str(quantity),
                "current": str(material.current_stock),
            },
        )
        return material

    @classmethod
    def consume_stock(cls, material_id: str, quantity, reference: str = '',
                      reason: str = 'Consumo', user: str = '') -> Material:
        """
        Stock exit: current -= quantity.

        Reserved stock stays covered: consuming more than what is
        available fails even when current stock would allow it.

        Raises:
            StockError('INVALID_QUANTITY'): quantity <= 0
            StockError('MATERIAL_NOT_FOUND')
            StockError('INSUFFICIENT_STOCK'): quantity > current or > available
        """
        quantity = _check_positive(quantity, material_id)

        with transaction.atomic():
            material = lock_material(material_id)
            if quantity > material.current_stock or quantity > material.available_stock:
                raise StockError(
                    'INSUFFICIENT_STOCK',
                    f"Estoque insuficiente para {material.name}",
                    material_id=material_id,
                    current=material.current_stock,
                    available=material.available_stock,
                    requested=quantity,
                )
            material.current_stock -= quantity
            write_stock(material)
            record(material, TransactionKind.ISSUE, -quantity,
                   reference=reference, reason=reason, user=user)

        logger.info(
            "inventory.stock.consumed",
            extra={
                "material_id": material_id,
                "qty": str(quantity),
                "current": str(material.current_stock),
            },
        )
        if material.is_low_stock:
            logger.warning(
                "inventory.stock.low",
                extra={
                    "material_id": material_id,
                    "current": str(material.current_stock),
                    "minimum": str(material.minimum_stock),
                },
            )
        return material

    @classmethod
    def adjust_stock(cls, material_id: str, new_quantity, reason: str,
                     user: str = '') -> Material:
        """
        Inventory adjustment (physical count): current = new_quantity.

        Raises:
            StockError('REASON_REQUIRED')
            StockError('INVALID_QUANTITY'): negative, or below reserved stock
        """
        if not reason:
            raise StockError('REASON_REQUIRED', material_id=material_id)
        new_quantity = _parse(new_quantity, material_id)
        if new_quantity < 0:
            raise StockError('INVALID_QUANTITY', material_id=material_id, requested=new_quantity)

        with transaction.atomic():
            material = lock_material(material_id)
            if new_quantity < material.reserved_stock:
                raise StockError(
                    'INVALID_QUANTITY',
                    f"Quantidade abaixo do reservado ({material.reserved_stock})",
                    material_id=material_id,
                    reserved=material.reserved_stock,
                    requested=new_quantity,
                )
            delta = new_quantity - material.current_stock
            if delta == 0:
                return material
            material.current_stock = new_quantity
            write_stock(material)
            record(material, TransactionKind.ADJUSTMENT, delta, reason=reason, user=user)

        logger.info(
            "inventory.stock.adjusted",
            extra={
                "material_id": material_id,
                "delta": str(delta),
                "current": str(new_quantity),
                "reason": reason,
            },
        )
        return material
