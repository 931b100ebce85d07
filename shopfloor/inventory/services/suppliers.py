"""
Suppliers — registry of who materials are bought from.

A supplier still referenced by a material is deactivated instead of
deleted.
"""

import logging
import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.db.models import Count

from shopfloor.exceptions import StockError
from shopfloor.inventory.models import Supplier, SupplierStatus
from shopfloor.quantities import parse_decimal

logger = logging.getLogger('shopfloor')

SUPPLIER_FIELDS = (
    'name', 'contact_person', 'email', 'phone', 'address', 'city', 'country',
    'postal_code', 'website', 'payment_terms', 'lead_time_days', 'rating',
    'status', 'notes',
)


def generate_supplier_id() -> str:
    return f"SUP-{uuid.uuid4().hex[:6].upper()}"


def _clean(fields: dict) -> dict:
    changes = {k: v for k, v in fields.items() if k in SUPPLIER_FIELDS}
    for attr in ('contact_person', 'email', 'phone', 'address', 'city', 'country',
                 'postal_code', 'website', 'payment_terms', 'notes'):
        if attr in changes and changes[attr] is None:
            changes[attr] = ''

    if changes.get('email'):
        try:
            validate_email(changes['email'])
        except DjangoValidationError:
            raise StockError('VALIDATION_ERROR', f"E-mail inválido: {changes['email']}") from None
    if 'status' in changes and changes['status'] not in SupplierStatus.values:
        raise StockError('VALIDATION_ERROR', f"Status inválido: {changes['status']}",
                         expected=SupplierStatus.values)
    if 'rating' in changes:
        try:
            rating = parse_decimal(changes['rating'], places=1, max_digits=2)
        except ValueError as e:
            raise StockError('VALIDATION_ERROR', f"rating inválido: {e}") from None
        if not Decimal('0') <= rating <= Decimal('5'):
            raise StockError('VALIDATION_ERROR', 'rating deve estar entre 0 e 5')
        changes['rating'] = rating
    if 'lead_time_days' in changes:
        lead_time = changes['lead_time_days']
        if isinstance(lead_time, bool) or not isinstance(lead_time, (int, str)):
            raise StockError('VALIDATION_ERROR', 'lead_time_days deve ser inteiro')
        try:
            lead_time = int(lead_time)
        except ValueError:
            raise StockError('VALIDATION_ERROR', 'lead_time_days deve ser inteiro') from None
        if lead_time < 0:
            raise StockError('VALIDATION_ERROR', 'lead_time_days não pode ser negativo')
        changes['lead_time_days'] = lead_time
    return changes


def lock_supplier(supplier_id: str) -> Supplier:
    try:
        return Supplier.objects.select_for_update().get(supplier_id=supplier_id)
    except Supplier.DoesNotExist:
        raise StockError('SUPPLIER_NOT_FOUND', supplier_id=supplier_id) from None


class InventorySuppliers:
    """Supplier registry methods."""

    @classmethod
    def create_supplier(cls, name: str, supplier_id: str | None = None, **fields) -> Supplier:
        """
        Register a supplier (status ACTIVE unless given).

        Raises:
            StockError('VALIDATION_ERROR'): missing name, bad e-mail/rating/status
            StockError('DUPLICATE'): supplier_id exists
        """
        if not name:
            raise StockError('VALIDATION_ERROR', 'name é obrigatório')
        changes = _clean(fields)
        supplier_id = supplier_id or generate_supplier_id()

        with transaction.atomic():
            if Supplier.objects.filter(supplier_id=supplier_id).exists():
                raise StockError('DUPLICATE', f"Fornecedor {supplier_id} já existe",
                                 supplier_id=supplier_id)
            supplier = Supplier.objects.create(supplier_id=supplier_id, name=name, **changes)

        logger.info("inventory.supplier.created", extra={"supplier_id": supplier_id})
        return supplier

    @classmethod
    def update_supplier(cls, supplier_id: str, **fields) -> Supplier:
        changes = _clean(fields)
        if 'name' in changes and not changes['name']:
            raise StockError('VALIDATION_ERROR', 'name é obrigatório')

        with transaction.atomic():
            supplier = lock_supplier(supplier_id)
            for attr, value in changes.items():
                setattr(supplier, attr, value)
            if changes:
                supplier.save(update_fields=[*changes, 'updated_at'])

        logger.info(
            "inventory.supplier.updated",
            extra={"supplier_id": supplier_id, "fields": sorted(changes)},
        )
        return supplier

    @classmethod
    def delete_supplier(cls, supplier_id: str) -> bool:
        """
        Delete a supplier, or deactivate it when materials reference it.

        Returns:
            True if the row was deleted, False if it was deactivated.
        """
        with transaction.atomic():
            supplier = lock_supplier(supplier_id)
            if supplier.materials.exists():
                supplier.status = SupplierStatus.INACTIVE
                supplier.save(update_fields=['status', 'updated_at'])
                deleted = False
            else:
                supplier.delete()
                deleted = True

        logger.info(
            "inventory.supplier.deleted" if deleted else "inventory.supplier.deactivated",
            extra={"supplier_id": supplier_id},
        )
        return deleted

    @classmethod
    def get_supplier(cls, supplier_id: str) -> Supplier:
        try:
            return Supplier.objects.get(supplier_id=supplier_id)
        except Supplier.DoesNotExist:
            raise StockError('SUPPLIER_NOT_FOUND', supplier_id=supplier_id) from None

    @classmethod
    def list_suppliers(cls, status: str | None = None, search: str | None = None):
        qs = Supplier.objects.all()
        if status:
            qs = qs.filter(status=status)
        if search:
            qs = qs.search(search)
        return qs

    @classmethod
    def supplier_materials(cls, supplier_id: str):
        supplier = cls.get_supplier(supplier_id)
        return supplier.materials.all()

    @classmethod
    def supplier_performance(cls) -> list[dict]:
        """Active suppliers with their material count, best rated first."""
        qs = (
            Supplier.objects.active()
            .annotate(material_count=Count('materials'))
            .order_by('-rating', 'name')
        )
        return [
            {
                'supplier_id': s.supplier_id,
                'name': s.name,
                'rating': s.rating,
                'lead_time_days': s.lead_time_days,
                'material_count': s.material_count,
            }
            for s in qs
        ]
