"""
Reservations — set material aside for a batch, and give it back.

reserve_materials() is all-or-nothing: every referenced material is
locked (in material_id order, so concurrent reservations cannot
deadlock) and every line is validated before any stock moves.
"""

import logging
from collections import OrderedDict
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.utils import timezone

from shopfloor.exceptions import StockError
from shopfloor.inventory.models import (
    Material,
    Reservation,
    ReservationLine,
    ReservationStatus,
    TransactionKind,
)
from shopfloor.inventory.services.ledger import record, write_stock
from shopfloor.quantities import parse_decimal

logger = logging.getLogger('shopfloor')


def normalize_items(items) -> "OrderedDict[str, dict]":
    """
    Validate requested lines and merge repeated material ids.

    Accepts dicts with material_id + quantity_required (or quantity)
    and an optional unit_of_measure.

    Returns:
        material_id -> {'quantity': Decimal, 'unit_of_measure': str},
        in first-seen order.
    """
    if not items:
        raise StockError('VALIDATION_ERROR', 'Lista de materiais vazia')

    merged: OrderedDict[str, dict] = OrderedDict()
    for item in items:
        if not isinstance(item, dict):
            raise StockError('VALIDATION_ERROR', 'Item de material inválido')
        material_id = item.get('material_id')
        raw_qty = item.get('quantity_required', item.get('quantity'))
        if not material_id or raw_qty in (None, ''):
            raise StockError(
                'VALIDATION_ERROR',
                'Cada item exige material_id e quantity_required',
                item=item,
            )
        try:
            quantity = parse_decimal(raw_qty)
        except ValueError as e:
            raise StockError('VALIDATION_ERROR', f"quantity_required inválido: {e}",
                             material_id=material_id) from None
        if quantity <= 0:
            raise StockError('INVALID_QUANTITY', material_id=material_id, requested=quantity)

        line = merged.setdefault(material_id, {
            'quantity': Decimal('0'),
            'unit_of_measure': item.get('unit_of_measure') or '',
        })
        line['quantity'] += quantity
    return merged


def _lock_materials(material_ids) -> dict[str, Material]:
    locked = Material.objects.select_for_update().filter(
        material_id__in=list(material_ids),
    ).order_by('material_id')
    return {m.material_id: m for m in locked}


class InventoryReservations:
    """Reservation lifecycle methods."""

    @classmethod
    def reserve_materials(cls, batch_id: str, items, user: str = '', **metadata) -> Reservation:
        """
        Reserve every requested material for the batch.

        Transition: (none) -> PENDING -> RESERVED, inside one transaction.

        Raises:
            StockError('VALIDATION_ERROR'): empty list / missing fields
            StockError('INVALID_QUANTITY'): non-positive quantity
            StockError('DUPLICATE'): batch already has an active reservation
            StockError('MATERIAL_NOT_FOUND')
            StockError('INSUFFICIENT_STOCK'): quantity > available (nothing changes)
        """
        if not batch_id:
            raise StockError('VALIDATION_ERROR', 'batch_id é obrigatório')
        lines = normalize_items(items)

        with transaction.atomic():
            if Reservation.objects.select_for_update().filter(
                batch_id=batch_id,
                status__in=ReservationStatus.active(),
            ).exists():
                raise StockError(
                    'DUPLICATE',
                    f"Lote {batch_id} já possui reserva ativa",
                    batch_id=batch_id,
                )

            materials = _lock_materials(lines)

            # Validate everything before touching anything
            for material_id, line in lines.items():
                material = materials.get(material_id)
                if material is None:
                    raise StockError(
                        'MATERIAL_NOT_FOUND',
                        f"Material {material_id} não encontrado",
                        material_id=material_id,
                    )
                if line['quantity'] > material.available_stock:
                    raise StockError(
                        'INSUFFICIENT_STOCK',
                        f"Estoque insuficiente para {material.name}",
                        material_id=material_id,
                        available=material.available_stock,
                        requested=line['quantity'],
                    )

            try:
                with transaction.atomic():
                    reservation = Reservation.objects.create(
                        batch_id=batch_id,
                        status=ReservationStatus.PENDING,
                        metadata=metadata,
                    )
            except IntegrityError:
                raise StockError(
                    'DUPLICATE',
                    f"Lote {batch_id} já possui reserva ativa",
                    batch_id=batch_id,
                ) from None

            for material_id, line in lines.items():
                material = materials[material_id]
                material.reserved_stock += line['quantity']
                write_stock(material)
                record(material, TransactionKind.RESERVATION, line['quantity'],
                       reference=batch_id, reason='Reserva para produção', user=user)
                ReservationLine.objects.create(
                    reservation=reservation,
                    material=material,
                    quantity_reserved=line['quantity'],
                    unit_of_measure=line['unit_of_measure'] or material.unit_of_measure,
                )

            reservation.status = ReservationStatus.RESERVED
            reservation.save(update_fields=['status'])

        logger.info(
            "inventory.reservation.created",
            extra={
                "reservation_id": reservation.pk,
                "batch_id": batch_id,
                "lines": {k: str(v['quantity']) for k, v in lines.items()},
            },
        )
        return reservation

    @classmethod
    def release_materials(cls, batch_id: str, reason: str = 'Liberado',
                          user: str = '') -> Reservation:
        """
        Release the batch's active reservation, line by line, exactly.

        Transition: RESERVED -> RELEASED

        Raises:
            StockError('RESERVATION_NOT_FOUND'): no active reservation
        """
        with transaction.atomic():
            reservation = (
                Reservation.objects.select_for_update()
                .filter(batch_id=batch_id, status__in=ReservationStatus.active())
                .first()
            )
            if reservation is None:
                raise StockError(
                    'RESERVATION_NOT_FOUND',
                    f"Nenhuma reserva ativa para o lote {batch_id}",
                    batch_id=batch_id,
                )

            lines = list(reservation.lines.select_related('material'))
            materials = _lock_materials(line.material.material_id for line in lines)

            for line in lines:
                material = materials[line.material.material_id]
                material.reserved_stock -= line.quantity_reserved
                write_stock(material)
                record(material, TransactionKind.RELEASE, -line.quantity_reserved,
                       reference=batch_id, reason=reason, user=user)

            reservation.status = ReservationStatus.RELEASED
            reservation.released_at = timezone.now()
            reservation.metadata['release_reason'] = reason
            reservation.save(update_fields=['status', 'released_at', 'metadata'])

        logger.info(
            "inventory.reservation.released",
            extra={"reservation_id": reservation.pk, "batch_id": batch_id, "reason": reason},
        )
        return reservation

    @classmethod
    def consume_reservation(cls, batch_id: str, reason: str = 'Consumo de produção',
                            user: str = '') -> Reservation:
        """
        Issue the batch's reserved material out of stock (batch finished).

        Per line: reserved -= q and current -= q, so available is unchanged.

        Transition: RESERVED -> CONSUMED

        Raises:
            StockError('RESERVATION_NOT_FOUND'): no active reservation
        """
        with transaction.atomic():
            reservation = (
                Reservation.objects.select_for_update()
                .filter(batch_id=batch_id, status__in=ReservationStatus.active())
                .first()
            )
            if reservation is None:
                raise StockError(
                    'RESERVATION_NOT_FOUND',
                    f"Nenhuma reserva ativa para o lote {batch_id}",
                    batch_id=batch_id,
                )

            lines = list(reservation.lines.select_related('material'))
            materials = _lock_materials(line.material.material_id for line in lines)

            for line in lines:
                material = materials[line.material.material_id]
                material.reserved_stock -= line.quantity_reserved
                material.current_stock -= line.quantity_reserved
                write_stock(material)
                record(material, TransactionKind.ISSUE, -line.quantity_reserved,
                       reference=batch_id, reason=reason, user=user)

            reservation.status = ReservationStatus.CONSUMED
            reservation.consumed_at = timezone.now()
            reservation.metadata['consume_reason'] = reason
            reservation.save(update_fields=['status', 'consumed_at', 'metadata'])

        logger.info(
            "inventory.reservation.consumed",
            extra={"reservation_id": reservation.pk, "batch_id": batch_id},
        )
        return reservation

    @classmethod
    def reservation_for_batch(cls, batch_id: str) -> Reservation:
        """
        The batch's active reservation, or its most recent one.

        Raises:
            StockError('RESERVATION_NOT_FOUND')
        """
        qs = Reservation.objects.filter(batch_id=batch_id).prefetch_related('lines__material')
        reservation = (
            qs.filter(status__in=ReservationStatus.active()).first()
            or qs.order_by('-created_at', '-pk').first()
        )
        if reservation is None:
            raise StockError('RESERVATION_NOT_FOUND', batch_id=batch_id)
        return reservation

    @classmethod
    def list_reservations(cls, status: str | None = None, batch_id: str | None = None):
        qs = Reservation.objects.prefetch_related('lines__material')
        if status:
            qs = qs.filter(status=status)
        if batch_id:
            qs = qs.filter(batch_id=batch_id)
        return qs
