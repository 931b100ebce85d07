"""
Management command to audit the stock ledger.

For every material, checks:
- available_stock == current_stock - reserved_stock
- reserved_stock == sum of its lines in active reservations

Usage:
    python manage.py check_stock_integrity
    python manage.py check_stock_integrity --fix
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce

from shopfloor.inventory.models import (
    Material,
    ReservationLine,
    ReservationStatus,
    TransactionKind,
)
from shopfloor.inventory.services.ledger import lock_material, record, write_stock


def reserved_by_lines() -> dict[int, Decimal]:
    rows = (
        ReservationLine.objects
        .filter(reservation__status__in=ReservationStatus.active())
        .values('material_id')
        .annotate(total=Coalesce(Sum('quantity_reserved'), Decimal('0')))
    )
    return {row['material_id']: row['total'] for row in rows}


class Command(BaseCommand):
    """Stock ledger integrity check."""

    help = 'Verifica a consistência do estoque reservado/disponível'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Corrige o estoque reservado a partir das reservas ativas',
        )

    def handle(self, *args, **options):
        expected = reserved_by_lines()
        problems = 0

        for material in Material.objects.all():
            should_reserve = expected.get(material.pk, Decimal('0'))
            equation_ok = material.available_stock == material.current_stock - material.reserved_stock
            reserved_ok = material.reserved_stock == should_reserve
            if equation_ok and reserved_ok:
                continue

            problems += 1
            self.stdout.write(self.style.WARNING(
                f'{material.material_id}: atual={material.current_stock} '
                f'reservado={material.reserved_stock} (esperado {should_reserve}) '
                f'disponível={material.available_stock}'
            ))

            if options['fix']:
                self._fix(material.material_id, should_reserve)

        if problems == 0:
            self.stdout.write(self.style.SUCCESS('Estoque consistente'))
        elif options['fix']:
            self.stdout.write(self.style.SUCCESS(f'{problems} material(is) corrigido(s)'))
        else:
            self.stdout.write(self.style.ERROR(f'{problems} material(is) inconsistente(s)'))

    def _fix(self, material_id: str, reserved: Decimal) -> None:
        with transaction.atomic():
            material = lock_material(material_id)
            delta = reserved - material.reserved_stock
            material.reserved_stock = reserved
            if material.current_stock < reserved:
                material.current_stock = reserved
            write_stock(material)
            record(material, TransactionKind.ADJUSTMENT, delta,
                   reason='Correção de integridade (check_stock_integrity)')
