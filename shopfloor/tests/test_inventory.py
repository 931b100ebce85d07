"""
Tests for the inventory service: stock ledger, reservations, queries.
"""

from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command

from shopfloor.exceptions import StockError
from shopfloor.inventory.models import (
    Material,
    MaterialTransaction,
    Reservation,
    ReservationStatus,
    SupplierStatus,
    TransactionKind,
)
from shopfloor.inventory.service import inventory


pytestmark = pytest.mark.django_db


def stock_of(material_id):
    m = Material.objects.get(material_id=material_id)
    return m.current_stock, m.reserved_stock, m.available_stock


def assert_equation(material_id):
    current, reserved, available = stock_of(material_id)
    assert available == current - reserved
    assert Decimal('0') <= reserved <= current


class TestAddMaterial:

    def test_opening_stock_recorded_as_receipt(self):
        material = inventory.add_material('MAT010', 'Chapa', current_stock=Decimal('80'))

        assert material.available_stock == Decimal('80')
        tx = MaterialTransaction.objects.get(material=material)
        assert tx.kind == TransactionKind.RECEIPT
        assert tx.quantity == Decimal('80')

    def test_no_transaction_without_opening_stock(self):
        material = inventory.add_material('MAT011', 'Tinta')

        assert material.current_stock == Decimal('0')
        assert not MaterialTransaction.objects.filter(material=material).exists()

    def test_duplicate_rejected(self, mat001):
        with pytest.raises(StockError) as exc:
            inventory.add_material('MAT001', 'Outro')
        assert exc.value.code == 'DUPLICATE'

    def test_negative_opening_rejected(self):
        with pytest.raises(StockError) as exc:
            inventory.add_material('MAT012', 'X', current_stock=Decimal('-1'))
        assert exc.value.code == 'INVALID_QUANTITY'


class TestUpdateAndDelete:

    def test_update_ignores_stock_fields(self, mat001):
        inventory.update_material('MAT001', name='Aço 1045', current_stock=Decimal('1'))

        material = inventory.get_material('MAT001')
        assert material.name == 'Aço 1045'
        assert material.current_stock == Decimal('500')

    def test_delete_refused_while_referenced(self, mat001):
        with pytest.raises(StockError) as exc:
            inventory.delete_material('MAT001')
        assert exc.value.code == 'MATERIAL_IN_USE'

    def test_delete_unreferenced(self):
        inventory.add_material('MAT013', 'Lixa', current_stock=Decimal('5'))
        inventory.delete_material('MAT013')

        assert not Material.objects.filter(material_id='MAT013').exists()


class TestStockMutations:

    def test_add_stock(self, mat001):
        material = inventory.add_stock('MAT001', Decimal('25'), reference='NF-1')

        assert material.current_stock == Decimal('525')
        assert material.available_stock == Decimal('475')
        assert_equation('MAT001')

    def test_add_stock_bumps_version(self, mat001):
        before = inventory.get_material('MAT001').version
        inventory.add_stock('MAT001', Decimal('1'))

        assert inventory.get_material('MAT001').version == before + 1

    @pytest.mark.parametrize('qty', [Decimal('0'), Decimal('-5')])
    def test_non_positive_quantity_rejected(self, mat001, qty):
        with pytest.raises(StockError) as exc:
            inventory.add_stock('MAT001', qty)
        assert exc.value.code == 'INVALID_QUANTITY'

    def test_unknown_material(self, db):
        with pytest.raises(StockError) as exc:
            inventory.add_stock('NOPE', Decimal('1'))
        assert exc.value.code == 'MATERIAL_NOT_FOUND'

    def test_consume_stock(self, mat001):
        material = inventory.consume_stock('MAT001', Decimal('100'))

        assert material.current_stock == Decimal('400')
        assert material.available_stock == Decimal('350')
        tx = MaterialTransaction.objects.filter(material=material).latest('pk')
        assert tx.kind == TransactionKind.ISSUE
        assert tx.quantity == Decimal('-100')

    def test_consume_more_than_current_leaves_stock_unchanged(self, mat001):
        before = stock_of('MAT001')

        with pytest.raises(StockError) as exc:
            inventory.consume_stock('MAT001', Decimal('501'))

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert stock_of('MAT001') == before

    def test_consume_cannot_eat_reserved_stock(self, mat001):
        with pytest.raises(StockError) as exc:
            inventory.consume_stock('MAT001', Decimal('460'))

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('450')

    def test_adjust_stock_records_delta(self, mat001):
        inventory.adjust_stock('MAT001', Decimal('480'), reason='Inventário')

        tx = MaterialTransaction.objects.filter(material__material_id='MAT001').latest('pk')
        assert tx.kind == TransactionKind.ADJUSTMENT
        assert tx.quantity == Decimal('-20')
        assert stock_of('MAT001') == (Decimal('480'), Decimal('50'), Decimal('430'))

    def test_adjust_requires_reason(self, mat001):
        with pytest.raises(StockError) as exc:
            inventory.adjust_stock('MAT001', Decimal('480'), reason='')
        assert exc.value.code == 'REASON_REQUIRED'

    def test_adjust_below_reserved_rejected(self, mat001):
        with pytest.raises(StockError) as exc:
            inventory.adjust_stock('MAT001', Decimal('40'), reason='Contagem')
        assert exc.value.code == 'INVALID_QUANTITY'

    def test_transactions_cannot_be_edited(self, mat001):
        tx = MaterialTransaction.objects.filter(material=mat001).first()
        tx.reason = 'alterado'

        with pytest.raises(ValueError):
            tx.save()
        with pytest.raises(ValueError):
            tx.delete()


class TestReservations:

    def test_mat001_reserve_and_release(self, mat001):
        assert stock_of('MAT001') == (Decimal('500'), Decimal('50'), Decimal('450'))

        reservation = inventory.reserve_materials('B1', [
            {'material_id': 'MAT001', 'quantity_required': 100},
        ])

        assert reservation.status == ReservationStatus.RESERVED
        assert stock_of('MAT001') == (Decimal('500'), Decimal('150'), Decimal('350'))

        inventory.release_materials('B1')

        assert stock_of('MAT001') == (Decimal('500'), Decimal('50'), Decimal('450'))

    def test_mat002_insufficient_leaves_material_unchanged(self, mat002):
        before = stock_of('MAT002')

        with pytest.raises(StockError) as exc:
            inventory.reserve_materials('B2', [{'material_id': 'MAT002', 'quantity_required': 200}])

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('180')
        assert exc.value.requested == Decimal('200')
        assert stock_of('MAT002') == before
        assert not Reservation.objects.filter(batch_id='B2').exists()

    def test_partial_shortage_changes_nothing(self, mat001, mat002):
        before = (stock_of('MAT001'), stock_of('MAT002'))

        with pytest.raises(StockError):
            inventory.reserve_materials('B3', [
                {'material_id': 'MAT001', 'quantity_required': 100},
                {'material_id': 'MAT002', 'quantity_required': 181},
            ])

        assert (stock_of('MAT001'), stock_of('MAT002')) == before

    def test_unknown_material_changes_nothing(self, mat001):
        before = stock_of('MAT001')

        with pytest.raises(StockError) as exc:
            inventory.reserve_materials('B4', [
                {'material_id': 'MAT001', 'quantity_required': 10},
                {'material_id': 'GHOST', 'quantity_required': 1},
            ])

        assert exc.value.code == 'MATERIAL_NOT_FOUND'
        assert stock_of('MAT001') == before

    def test_repeated_material_lines_are_merged(self, mat001):
        reservation = inventory.reserve_materials('B5', [
            {'material_id': 'MAT001', 'quantity_required': 30},
            {'material_id': 'MAT001', 'quantity': 20},
        ])

        assert reservation.lines.count() == 1
        assert reservation.lines.get().quantity_reserved == Decimal('50')
        assert stock_of('MAT001')[1] == Decimal('100')

    def test_one_active_reservation_per_batch(self, mat001):
        inventory.reserve_materials('B6', [{'material_id': 'MAT001', 'quantity_required': 10}])

        with pytest.raises(StockError) as exc:
            inventory.reserve_materials('B6', [{'material_id': 'MAT001', 'quantity_required': 10}])
        assert exc.value.code == 'DUPLICATE'

    def test_reserve_again_after_release(self, mat001):
        items = [{'material_id': 'MAT001', 'quantity_required': 100}]
        inventory.reserve_materials('B7', items)
        reserved_state = stock_of('MAT001')

        inventory.release_materials('B7')
        inventory.reserve_materials('B7', items)

        assert stock_of('MAT001') == reserved_state

    def test_release_without_active_reservation(self, mat001):
        with pytest.raises(StockError) as exc:
            inventory.release_materials('NONE')
        assert exc.value.code == 'RESERVATION_NOT_FOUND'

    def test_double_release_rejected(self, mat001):
        inventory.reserve_materials('B8', [{'material_id': 'MAT001', 'quantity_required': 10}])
        inventory.release_materials('B8')

        with pytest.raises(StockError) as exc:
            inventory.release_materials('B8')
        assert exc.value.code == 'RESERVATION_NOT_FOUND'

    @pytest.mark.parametrize('items', [
        [],
        [{'material_id': 'MAT001'}],
        [{'material_id': 'MAT001', 'quantity_required': 0}],
        [{'material_id': 'MAT001', 'quantity_required': 'abc'}],
    ])
    def test_invalid_items(self, mat001, items):
        with pytest.raises(StockError) as exc:
            inventory.reserve_materials('B9', items)
        assert exc.value.code in ('VALIDATION_ERROR', 'INVALID_QUANTITY')

    def test_ledger_records_reserve_and_release(self, mat001):
        inventory.reserve_materials('B10', [{'material_id': 'MAT001', 'quantity_required': 5}])
        inventory.release_materials('B10')

        kinds = list(
            MaterialTransaction.objects.filter(material=mat001, reference='B10')
            .order_by('pk').values_list('kind', flat=True)
        )
        assert kinds == [TransactionKind.RESERVATION, TransactionKind.RELEASE]

    def test_equation_holds_after_mixed_operations(self, mat001, mat002):
        inventory.reserve_materials('B11', [
            {'material_id': 'MAT001', 'quantity_required': 40},
            {'material_id': 'MAT002', 'quantity_required': 60},
        ])
        inventory.add_stock('MAT002', Decimal('15'))
        inventory.consume_stock('MAT001', Decimal('90'))
        inventory.adjust_stock('MAT002', Decimal('190'), reason='Contagem')
        inventory.release_materials('SEED-1')

        assert_equation('MAT001')
        assert_equation('MAT002')

    def test_reservation_for_batch_falls_back_to_latest(self, mat001):
        inventory.reserve_materials('B12', [{'material_id': 'MAT001', 'quantity_required': 5}])
        inventory.release_materials('B12')

        assert inventory.reservation_for_batch('B12').status == ReservationStatus.RELEASED


class TestQueries:

    def test_check_stock(self, mat001, mat002):
        result = inventory.check_stock([
            {'material_id': 'MAT001', 'quantity_required': 100},
            {'material_id': 'MAT002', 'quantity_required': 200},
            {'material_id': 'GHOST', 'quantity_required': 1},
        ])

        assert result['all_sufficient'] is False
        by_id = {r['material_id']: r for r in result['items']}
        assert by_id['MAT001']['sufficient'] is True
        assert by_id['MAT002']['shortage'] == Decimal('20')
        assert by_id['GHOST']['found'] is False

    def test_low_stock_report(self, mat001, mat002):
        inventory.consume_stock('MAT002', Decimal('160'))

        low = inventory.low_stock_report()

        assert [m.material_id for m in low] == ['MAT002']

    def test_usage_report(self, mat001):
        row = next(r for r in inventory.usage_report() if r['material_id'] == 'MAT001')

        assert row['utilization_rate'] == '10.00%'

    def test_list_materials_search(self, mat001, mat002):
        assert [m.material_id for m in inventory.list_materials(search='parafuso')] == ['MAT002']


class TestCheckStockIntegrityCommand:

    def test_consistent(self, mat001):
        out = StringIO()
        call_command('check_stock_integrity', stdout=out)

        assert 'consistente' in out.getvalue()

    def test_fix_restores_reserved_from_lines(self, mat001):
        Material.objects.filter(material_id='MAT001').update(reserved_stock=Decimal('70'),
                                                             available_stock=Decimal('430'))
        out = StringIO()
        call_command('check_stock_integrity', '--fix', stdout=out)

        assert stock_of('MAT001') == (Decimal('500'), Decimal('50'), Decimal('450'))

    def test_fix_recomputes_drifted_available(self, mat001):
        Material.objects.filter(material_id='MAT001').update(available_stock=Decimal('449.999'))
        out = StringIO()
        call_command('check_stock_integrity', '--fix', stdout=out)

        assert 'MAT001' in out.getvalue()
        assert stock_of('MAT001') == (Decimal('500'), Decimal('50'), Decimal('450'))


class TestFractionalQuantities:

    def test_reserve_fraction_of_fractional_stock(self, db):
        inventory.add_material('MAT010', 'Fio de cobre', current_stock=Decimal('0.3'), unit_of_measure='kg')

        inventory.reserve_materials('B20', [{'material_id': 'MAT010', 'quantity_required': '0.1'}])

        assert stock_of('MAT010') == (Decimal('0.3'), Decimal('0.1'), Decimal('0.2'))

    def test_release_and_consume_fractions(self, db):
        inventory.add_material('MAT010', 'Fio de cobre', current_stock=Decimal('1.1'), unit_of_measure='kg')
        inventory.reserve_materials('B21', [{'material_id': 'MAT010', 'quantity_required': '0.7'}])
        inventory.consume_stock('MAT010', Decimal('0.2'))
        inventory.release_materials('B21')

        assert stock_of('MAT010') == (Decimal('0.9'), Decimal('0'), Decimal('0.9'))
        assert_equation('MAT010')


class TestQuantityValidation:

    @pytest.mark.parametrize('qty', ['NaN', 'Infinity', '-Infinity', 'sNaN'])
    def test_non_finite_rejected(self, mat001, qty):
        with pytest.raises(StockError) as exc:
            inventory.add_stock('MAT001', qty)

        assert exc.value.code == 'VALIDATION_ERROR'
        assert stock_of('MAT001') == (Decimal('500'), Decimal('50'), Decimal('450'))

    def test_extra_decimal_places_rejected(self, mat001):
        with pytest.raises(StockError) as exc:
            inventory.consume_stock('MAT001', Decimal('1.0001'))
        assert exc.value.code == 'VALIDATION_ERROR'

    def test_trailing_zeros_accepted(self, mat001):
        material = inventory.add_stock('MAT001', '1.50000')

        assert material.current_stock == Decimal('501.5')

    def test_too_many_integer_digits_rejected(self, mat001):
        with pytest.raises(StockError) as exc:
            inventory.add_stock('MAT001', Decimal('1e9'))
        assert exc.value.code == 'VALIDATION_ERROR'

    @pytest.mark.parametrize('qty', ['NaN', 'Infinity', '0.0001'])
    def test_reserve_rejects_bad_quantities(self, mat001, qty):
        with pytest.raises(StockError) as exc:
            inventory.reserve_materials('B22', [{'material_id': 'MAT001', 'quantity_required': qty}])

        assert exc.value.code == 'VALIDATION_ERROR'
        assert not Reservation.objects.filter(batch_id='B22').exists()

    def test_adjust_rejects_nan(self, mat001):
        with pytest.raises(StockError) as exc:
            inventory.adjust_stock('MAT001', 'NaN', reason='Contagem')
        assert exc.value.code == 'VALIDATION_ERROR'


class TestConsumeReservation:

    def test_consume_issues_reserved_stock(self, mat001):
        inventory.reserve_materials('B30', [{'material_id': 'MAT001', 'quantity_required': 100}])

        reservation = inventory.consume_reservation('B30')

        assert reservation.status == ReservationStatus.CONSUMED
        assert reservation.consumed_at is not None
        assert stock_of('MAT001') == (Decimal('400'), Decimal('50'), Decimal('350'))
        issue = MaterialTransaction.objects.get(material=mat001, reference='B30', kind=TransactionKind.ISSUE)
        assert issue.quantity == Decimal('-100')

    def test_consumed_reservation_is_closed(self, mat001):
        inventory.reserve_materials('B31', [{'material_id': 'MAT001', 'quantity_required': 10}])
        inventory.consume_reservation('B31')

        with pytest.raises(StockError) as exc:
            inventory.release_materials('B31')
        assert exc.value.code == 'RESERVATION_NOT_FOUND'

    def test_consume_without_reservation(self, mat001):
        with pytest.raises(StockError) as exc:
            inventory.consume_reservation('B32')
        assert exc.value.code == 'RESERVATION_NOT_FOUND'

    def test_integrity_after_consume(self, mat001):
        inventory.reserve_materials('B33', [{'material_id': 'MAT001', 'quantity_required': 25}])
        inventory.consume_reservation('B33')
        out = StringIO()

        call_command('check_stock_integrity', stdout=out)

        assert 'consistente' in out.getvalue()


class TestSuppliers:

    def test_create_generates_id(self, db):
        supplier = inventory.create_supplier('Aços Paulista', email='vendas@acos.com.br', rating='4.5')

        assert supplier.supplier_id.startswith('SUP-')
        assert supplier.status == SupplierStatus.ACTIVE
        assert supplier.rating == Decimal('4.5')

    def test_duplicate_id(self, db):
        inventory.create_supplier('Aços Paulista', supplier_id='SUP-1')

        with pytest.raises(StockError) as exc:
            inventory.create_supplier('Outro', supplier_id='SUP-1')
        assert exc.value.code == 'DUPLICATE'

    @pytest.mark.parametrize('fields', [
        {'email': 'sem-arroba'},
        {'rating': '5.5'},
        {'rating': 'NaN'},
        {'status': 'sumido'},
        {'lead_time_days': -2},
    ])
    def test_invalid_fields(self, db, fields):
        with pytest.raises(StockError) as exc:
            inventory.create_supplier('Aços Paulista', **fields)
        assert exc.value.code == 'VALIDATION_ERROR'

    def test_material_references_supplier(self, db):
        inventory.create_supplier('Aços Paulista', supplier_id='SUP-1')

        material = inventory.add_material('MAT020', 'Chapa', supplier_id='SUP-1')

        assert material.supplier.supplier_id == 'SUP-1'
        assert [m.material_id for m in inventory.supplier_materials('SUP-1')] == ['MAT020']
        assert [m.material_id for m in inventory.list_materials(search='paulista')] == ['MAT020']

    def test_unknown_supplier_on_material(self, db):
        with pytest.raises(StockError) as exc:
            inventory.add_material('MAT021', 'Chapa', supplier_id='SUP-X')
        assert exc.value.code == 'SUPPLIER_NOT_FOUND'

    def test_update_material_clears_supplier(self, db):
        inventory.create_supplier('Aços Paulista', supplier_id='SUP-1')
        inventory.add_material('MAT020', 'Chapa', supplier_id='SUP-1')

        material = inventory.update_material('MAT020', supplier_id=None)

        assert material.supplier is None

    def test_delete_unreferenced(self, db):
        inventory.create_supplier('Aços Paulista', supplier_id='SUP-1')

        assert inventory.delete_supplier('SUP-1') is True
        with pytest.raises(StockError) as exc:
            inventory.get_supplier('SUP-1')
        assert exc.value.code == 'SUPPLIER_NOT_FOUND'

    def test_delete_referenced_deactivates(self, db):
        inventory.create_supplier('Aços Paulista', supplier_id='SUP-1')
        inventory.add_material('MAT020', 'Chapa', supplier_id='SUP-1')

        assert inventory.delete_supplier('SUP-1') is False
        assert inventory.get_supplier('SUP-1').status == SupplierStatus.INACTIVE

    def test_list_filters(self, db):
        inventory.create_supplier('Aços Paulista', supplier_id='SUP-1')
        inventory.create_supplier('Parafusos Sul', supplier_id='SUP-2', status='inactive')

        assert [s.supplier_id for s in inventory.list_suppliers(status='active')] == ['SUP-1']
        assert [s.supplier_id for s in inventory.list_suppliers(search='sul')] == ['SUP-2']

    def test_performance_ranks_active_by_rating(self, db):
        inventory.create_supplier('Aços Paulista', supplier_id='SUP-1', rating=3)
        inventory.create_supplier('Parafusos Sul', supplier_id='SUP-2', rating='4.8')
        inventory.create_supplier('Bloqueado', supplier_id='SUP-3', rating=5, status='blacklisted')
        inventory.add_material('MAT020', 'Chapa', supplier_id='SUP-1')

        rows = inventory.supplier_performance()

        assert [r['supplier_id'] for r in rows] == ['SUP-2', 'SUP-1']
        assert rows[1]['material_count'] == 1
