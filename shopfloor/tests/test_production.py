"""
Tests for the production service: lifecycle and cross-service orchestration.
"""

import json
from decimal import Decimal
from unittest import mock

import pytest
import requests

from shopfloor.adapters.http import HttpInventoryBackend, ServiceClient
from shopfloor.adapters.local import LocalInventoryBackend
from shopfloor.adapters.noop import NoopFeedbackBackend
from shopfloor.exceptions import ProductionError, QueueError, StockError, UpstreamError
from shopfloor.inventory.models import Material, Reservation, ReservationStatus, TransactionKind
from shopfloor.inventory.service import inventory
from shopfloor.machine_queue.models import QueueEntry, QueueStatus
from shopfloor.machine_queue.service import machine_queue
from shopfloor.production.models import BatchStatus, ProductionBatch, RequestStatus
from shopfloor.production.service import production


pytestmark = pytest.mark.django_db


def reserved(material_id):
    return Material.objects.get(material_id=material_id).reserved_stock


def on_hand(material_id):
    return Material.objects.get(material_id=material_id).current_stock


def refresh(batch):
    return production.get_batch(batch.batch_number)


class LostReplyInventoryBackend(LocalInventoryBackend):
    """Commits the reservation, then fails the way a timed-out HTTP call does."""

    def reserve_materials(self, batch_id, lines):
        super().reserve_materials(batch_id, lines)
        raise UpstreamError('UPSTREAM_SERVICE_ERROR', service='inventory',
                            upstream_message='Read timed out')


def use_inventory_backend(backend):
    return mock.patch('shopfloor.production.services.orchestration.get_inventory_backend',
                      return_value=backend)


class TestRequests:

    def test_create_request_generates_id(self):
        request = production.create_request('Flange', 10)

        assert request.request_id.startswith('REQ-')
        assert request.status == RequestStatus.RECEIVED

    def test_duplicate_request_id(self, prod_request):
        with pytest.raises(ProductionError) as exc:
            production.create_request('Flange', 10, request_id='REQ-1')
        assert exc.value.code == 'DUPLICATE'

    @pytest.mark.parametrize('qty', [0, -1, 'x'])
    def test_invalid_quantity(self, db, qty):
        with pytest.raises(ProductionError) as exc:
            production.create_request('Flange', qty)
        assert exc.value.code == 'INVALID_QUANTITY'

    def test_invalid_priority(self, db):
        with pytest.raises(ProductionError) as exc:
            production.create_request('Flange', 1, priority='asap')
        assert exc.value.code == 'VALIDATION_ERROR'

    def test_delete_refused_with_batches(self, batch):
        with pytest.raises(ProductionError) as exc:
            production.delete_request('REQ-1')
        assert exc.value.code == 'INVALID_STATUS'


class TestBatchLifecycle:

    def test_create_batch_plans_request(self, batch):
        assert batch.status == BatchStatus.PENDING
        assert [s.step_order for s in batch.steps.order_by('step_order')] == [1, 2]
        assert batch.materials.get().quantity_required == Decimal('100')
        assert production.get_request('REQ-1').status == RequestStatus.PLANNED

    def test_create_batch_for_unknown_request(self, db):
        with pytest.raises(ProductionError) as exc:
            production.create_batch('REQ-X', 1)
        assert exc.value.code == 'REQUEST_NOT_FOUND'

    def test_schedule_requires_materials_assigned(self, batch):
        with pytest.raises(ProductionError) as exc:
            production.transition(batch.batch_number, BatchStatus.SCHEDULED)

        assert exc.value.code == 'INVALID_TRANSITION'
        assert refresh(batch).status == BatchStatus.PENDING

    def test_flag_is_trusted_without_reservation(self, batch):
        production.mark_materials_assigned(batch.batch_number, True)
        scheduled = production.transition(batch.batch_number, BatchStatus.SCHEDULED)

        assert scheduled.status == BatchStatus.SCHEDULED
        assert not Reservation.objects.filter(batch_id=batch.batch_number).exists()

    def test_invalid_transition(self, batch):
        with pytest.raises(ProductionError) as exc:
            production.transition(batch.batch_number, BatchStatus.COMPLETED)
        assert exc.value.code == 'INVALID_TRANSITION'

    def test_unknown_status(self, batch):
        with pytest.raises(ProductionError) as exc:
            production.transition(batch.batch_number, 'exploded')
        assert exc.value.code == 'VALIDATION_ERROR'

    def test_cancelled_status_needs_cancel_batch(self, batch):
        production.assign_batch(batch.batch_number)

        with pytest.raises(ProductionError) as exc:
            production.transition(batch.batch_number, BatchStatus.CANCELLED)

        assert exc.value.code == 'INVALID_TRANSITION'
        assert refresh(batch).status == BatchStatus.SCHEDULED
        assert reserved('MAT001') == Decimal('150')

    def test_step_hours_must_be_finite(self, prod_request):
        with pytest.raises(ProductionError) as exc:
            production.create_batch('REQ-1', 5, steps=[{'step_name': 'Corte', 'hours_required': 'Infinity'}])
        assert exc.value.code == 'VALIDATION_ERROR'

    @pytest.mark.parametrize('qty', ['NaN', '1.0005', '1e20'])
    def test_material_quantity_must_fit(self, prod_request, qty):
        with pytest.raises(ProductionError) as exc:
            production.create_batch('REQ-1', 5, materials=[{'material_id': 'MAT001', 'quantity_required': qty}])
        assert exc.value.code == 'VALIDATION_ERROR'

    def test_add_step_appends(self, batch):
        step = production.add_step(batch.batch_number, 'Inspeção')

        assert step.step_order == 3

    def test_start_step_requires_scheduled_batch(self, batch):
        step = batch.steps.order_by('step_order').first()

        with pytest.raises(ProductionError) as exc:
            production.start_step(batch.batch_number, step.pk)
        assert exc.value.code == 'INVALID_STATUS'

    def test_delete_pending_batch(self, batch):
        production.delete_batch(batch.batch_number)

        assert not ProductionBatch.objects.filter(batch_number=batch.batch_number).exists()


class TestAssignBatch:

    def test_reserves_queues_and_schedules(self, batch):
        assigned = production.assign_batch(batch.batch_number)

        assert assigned.status == BatchStatus.SCHEDULED
        assert assigned.materials_assigned and assigned.machine_assigned
        assert reserved('MAT001') == Decimal('150')
        entries = QueueEntry.objects.filter(batch_id=batch.batch_number)
        assert sorted(e.machine.machine_id for e in entries) == ['CNC-01', 'MILL-01']
        assert all(e.priority == 'high' for e in entries)

    def test_enqueue_failure_releases_reservation(self, batch, mill):
        machine_queue.update_machine('MILL-01', status='maintenance')

        with pytest.raises(QueueError) as exc:
            production.assign_batch(batch.batch_number)

        assert exc.value.code == 'MACHINE_NOT_OPERATIONAL'
        current = refresh(batch)
        assert current.status == BatchStatus.PENDING
        assert not current.materials_assigned
        assert not current.machine_assigned
        assert reserved('MAT001') == Decimal('50')
        assert Reservation.objects.get(batch_id=batch.batch_number).status == ReservationStatus.RELEASED
        assert not QueueEntry.objects.filter(batch_id=batch.batch_number).exists()

    def test_retry_after_failure(self, batch, mill):
        machine_queue.update_machine('MILL-01', status='maintenance')
        with pytest.raises(QueueError):
            production.assign_batch(batch.batch_number)

        machine_queue.update_machine('MILL-01', status='operational')
        assigned = production.assign_batch(batch.batch_number)

        assert assigned.status == BatchStatus.SCHEDULED
        assert reserved('MAT001') == Decimal('150')

    def test_insufficient_stock_changes_nothing(self, prod_request, mat001, cnc):
        batch = production.create_batch(
            'REQ-1', 5,
            steps=[{'step_name': 'Corte', 'machine_id': 'CNC-01'}],
            materials=[{'material_id': 'MAT001', 'quantity_required': 1000}],
        )

        with pytest.raises(StockError) as exc:
            production.assign_batch(batch.batch_number)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        current = refresh(batch)
        assert not current.materials_assigned and not current.machine_assigned
        assert not QueueEntry.objects.exists()

    def test_failed_compensation_keeps_flag(self, batch, mill):
        machine_queue.update_machine('MILL-01', status='offline')

        with mock.patch.object(LocalInventoryBackend, 'release_materials',
                               side_effect=UpstreamError('UPSTREAM_SERVICE_ERROR', service='inventory')):
            with pytest.raises(QueueError):
                production.assign_batch(batch.batch_number)

        current = refresh(batch)
        assert current.materials_assigned
        assert reserved('MAT001') == Decimal('150')

    def test_batch_without_materials(self, prod_request, cnc):
        batch = production.create_batch('REQ-1', 5, steps=[{'step_name': 'Corte', 'machine_id': 'CNC-01'}])

        assigned = production.assign_batch(batch.batch_number)

        assert assigned.materials_assigned
        assert assigned.status == BatchStatus.SCHEDULED

    def test_retry_after_lost_reserve_reply(self, batch):
        with use_inventory_backend(LostReplyInventoryBackend()):
            with pytest.raises(UpstreamError):
                production.assign_batch(batch.batch_number)
        assert not refresh(batch).materials_assigned
        assert reserved('MAT001') == Decimal('150')

        assigned = production.assign_batch(batch.batch_number)

        assert assigned.status == BatchStatus.SCHEDULED
        assert assigned.materials_assigned and assigned.machine_assigned
        assert reserved('MAT001') == Decimal('150')
        assert Reservation.objects.filter(batch_id=batch.batch_number).count() == 1

    def test_cancel_releases_reservation_of_lost_reply(self, batch):
        with use_inventory_backend(LostReplyInventoryBackend()):
            with pytest.raises(UpstreamError):
                production.assign_batch(batch.batch_number)

        cancelled = production.cancel_batch(batch.batch_number)

        assert cancelled.status == BatchStatus.CANCELLED
        assert reserved('MAT001') == Decimal('50')
        assert Reservation.objects.get(batch_id=batch.batch_number).status == ReservationStatus.RELEASED

    def test_terminal_batch_rejected(self, batch):
        production.cancel_batch(batch.batch_number)

        with pytest.raises(ProductionError) as exc:
            production.assign_batch(batch.batch_number)
        assert exc.value.code == 'INVALID_STATUS'


class TestSteps:

    def test_full_run_completes_batch_and_request(self, batch):
        production.assign_batch(batch.batch_number)
        first, second = batch.steps.order_by('step_order')

        with mock.patch.object(NoopFeedbackBackend, 'status_update') as notify:
            production.start_step(batch.batch_number, first.pk, operator_id='7')
            assert refresh(batch).status == BatchStatus.IN_PROGRESS
            assert production.get_request('REQ-1').status == RequestStatus.IN_PRODUCTION

            production.complete_step(batch.batch_number, first.pk)
            production.start_step(batch.batch_number, second.pk)
            production.complete_step(batch.batch_number, second.pk)

        assert refresh(batch).status == BatchStatus.COMPLETED
        assert production.get_request('REQ-1').status == RequestStatus.COMPLETED
        notify.assert_called_once()
        assert notify.call_args.args[:2] == ('REQ-1', 'completed')
        statuses = set(QueueEntry.objects.filter(batch_id=batch.batch_number).values_list('status', flat=True))
        assert statuses == {QueueStatus.COMPLETED}
        # The batch's 100 leave stock; SEED-1's 50 stay reserved
        assert on_hand('MAT001') == Decimal('400')
        assert reserved('MAT001') == Decimal('50')
        reservation = Reservation.objects.get(batch_id=batch.batch_number)
        assert reservation.status == ReservationStatus.CONSUMED
        assert reservation.consumed_at is not None
        issue = Material.objects.get(material_id='MAT001').transactions.get(
            kind=TransactionKind.ISSUE, reference=batch.batch_number,
        )
        assert issue.quantity == Decimal('-100')

    def test_completed_transition_consumes_reservation(self, batch):
        production.assign_batch(batch.batch_number)
        first = batch.steps.order_by('step_order').first()
        production.start_step(batch.batch_number, first.pk)

        production.transition(batch.batch_number, BatchStatus.COMPLETED)

        assert on_hand('MAT001') == Decimal('400')
        assert reserved('MAT001') == Decimal('50')

    def test_consume_failure_still_completes_batch(self, batch):
        production.assign_batch(batch.batch_number)
        first = batch.steps.order_by('step_order').first()
        production.start_step(batch.batch_number, first.pk)

        with mock.patch.object(LocalInventoryBackend, 'consume_materials',
                               side_effect=UpstreamError('UPSTREAM_SERVICE_ERROR', service='inventory')):
            completed = production.transition(batch.batch_number, BatchStatus.COMPLETED)

        assert completed.status == BatchStatus.COMPLETED
        assert reserved('MAT001') == Decimal('150')
        assert Reservation.objects.get(batch_id=batch.batch_number).status == ReservationStatus.RESERVED

    def test_complete_requires_in_progress(self, batch):
        production.assign_batch(batch.batch_number)
        step = batch.steps.order_by('step_order').first()

        with pytest.raises(ProductionError) as exc:
            production.complete_step(batch.batch_number, step.pk)
        assert exc.value.code == 'INVALID_STATUS'

    def test_unknown_step(self, batch):
        production.assign_batch(batch.batch_number)

        with pytest.raises(ProductionError) as exc:
            production.start_step(batch.batch_number, 999999)
        assert exc.value.code == 'STEP_NOT_FOUND'


class TestCancel:

    def test_cancel_gives_everything_back(self, batch):
        production.assign_batch(batch.batch_number)

        cancelled = production.cancel_batch(batch.batch_number, reason='Cliente desistiu')

        assert cancelled.status == BatchStatus.CANCELLED
        assert not cancelled.materials_assigned and not cancelled.machine_assigned
        assert reserved('MAT001') == Decimal('50')
        statuses = set(QueueEntry.objects.filter(batch_id=batch.batch_number).values_list('status', flat=True))
        assert statuses == {QueueStatus.CANCELLED}
        assert set(batch.steps.values_list('status', flat=True)) == {BatchStatus.CANCELLED}

    def test_cancel_stops_when_release_fails(self, batch):
        production.assign_batch(batch.batch_number)

        with mock.patch.object(LocalInventoryBackend, 'release_materials',
                               side_effect=UpstreamError('UPSTREAM_SERVICE_ERROR', service='inventory')):
            with pytest.raises(UpstreamError):
                production.cancel_batch(batch.batch_number)

        current = refresh(batch)
        assert current.status == BatchStatus.SCHEDULED
        assert current.materials_assigned
        assert not current.machine_assigned

    def test_cancel_tolerates_missing_reservation(self, batch):
        production.assign_batch(batch.batch_number)
        inventory.release_materials(batch.batch_number)

        cancelled = production.cancel_batch(batch.batch_number)

        assert cancelled.status == BatchStatus.CANCELLED

    def test_cancel_request_cascades(self, batch):
        production.assign_batch(batch.batch_number)

        request = production.cancel_request('REQ-1')

        assert request.status == RequestStatus.CANCELLED
        assert refresh(batch).status == BatchStatus.CANCELLED
        assert reserved('MAT001') == Decimal('50')

    def test_delete_refused_while_assigned(self, batch):
        production.assign_batch(batch.batch_number)

        with pytest.raises(ProductionError) as exc:
            production.delete_batch(batch.batch_number)
        assert exc.value.code == 'INVALID_STATUS'


def _response(status=200, body=None):
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(body).encode() if body is not None else b''
    return response


class TestRemoteInventory:
    """Orchestration against an inventory service reached over HTTP."""

    @pytest.fixture
    def session(self):
        return mock.Mock(spec=requests.Session)

    @pytest.fixture
    def remote(self, session, settings):
        settings.SHOPFLOOR = {**settings.SHOPFLOOR, 'INVENTORY_SERVICE_URL': 'http://inventory:3001'}
        backend = HttpInventoryBackend(ServiceClient('inventory', 'INVENTORY_SERVICE_URL', session=session))
        with use_inventory_backend(backend):
            yield session

    def test_cancel_material_less_batch(self, prod_request, cnc, remote):
        batch = production.create_batch('REQ-1', 5, steps=[{'step_name': 'Corte', 'machine_id': 'CNC-01'}])
        production.assign_batch(batch.batch_number)
        remote.request.return_value = _response(404, {
            'success': False, 'code': 'RESERVATION_NOT_FOUND', 'message': 'Reserva não encontrada',
        })

        cancelled = production.cancel_batch(batch.batch_number)

        assert cancelled.status == BatchStatus.CANCELLED
        assert not cancelled.materials_assigned

    def test_cancel_tolerates_remote_missing_reservation(self, batch, remote):
        production.mark_materials_assigned(batch.batch_number, True)
        remote.request.return_value = _response(404, {
            'success': False, 'code': 'RESERVATION_NOT_FOUND', 'message': 'Reserva não encontrada',
        })

        cancelled = production.cancel_batch(batch.batch_number)

        assert cancelled.status == BatchStatus.CANCELLED
        assert not cancelled.materials_assigned
        assert remote.request.call_args.args[1] == 'http://inventory:3001/api/reservations/release/'

    def test_cancel_request_with_remote_missing_reservation(self, batch, remote):
        production.mark_materials_assigned(batch.batch_number, True)
        remote.request.return_value = _response(404, {
            'success': False, 'code': 'RESERVATION_NOT_FOUND', 'message': 'Reserva não encontrada',
        })

        request = production.cancel_request('REQ-1')

        assert request.status == RequestStatus.CANCELLED
        assert refresh(batch).status == BatchStatus.CANCELLED

    def test_cancel_stops_on_other_remote_errors(self, batch, remote):
        production.mark_materials_assigned(batch.batch_number, True)
        remote.request.return_value = _response(500, {
            'success': False, 'code': 'INTERNAL_ERROR', 'message': 'Erro interno',
        })

        with pytest.raises(UpstreamError):
            production.cancel_batch(batch.batch_number)

        current_batch = refresh(batch)
        assert current_batch.status == BatchStatus.PENDING
        assert current_batch.materials_assigned

    def test_assign_retry_with_remote_duplicate(self, batch, remote):
        remote.request.return_value = _response(400, {
            'success': False, 'code': 'DUPLICATE', 'message': 'Registro já existe',
        })

        assigned = production.assign_batch(batch.batch_number)

        assert assigned.status == BatchStatus.SCHEDULED
        assert assigned.materials_assigned and assigned.machine_assigned
