"""
Tests for the HTTP backends (requests session mocked).
"""

import json
from datetime import date
from decimal import Decimal
from unittest import mock

import pytest
import requests

from shopfloor.adapters.http import (
    HttpAuthBackend,
    HttpFeedbackBackend,
    HttpInventoryBackend,
    HttpMachineQueueBackend,
    HttpProductionBackend,
    ServiceClient,
)
from shopfloor.exceptions import UpstreamError
from shopfloor.protocols import MaterialLine, QueueStep


def _response(status=200, body=None):
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(body).encode() if body is not None else b''
    return response


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def remote_settings(settings):
    settings.SHOPFLOOR = {
        **settings.SHOPFLOOR,
        'INVENTORY_SERVICE_URL': 'http://inventory:3001/',
        'MACHINE_QUEUE_SERVICE_URL': 'http://queue:3002',
        'PRODUCTION_SERVICE_URL': 'http://production:3004',
        'USER_SERVICE_URL': 'http://users:3000',
        'FEEDBACK_SERVICE_URL': 'http://feedback:3005',
        'SERVICE_TOKEN': 'svc-token',
        'HTTP_TIMEOUT_SECONDS': 3,
    }
    return settings


def _client(service, setting, session):
    return ServiceClient(service, setting, session=session)


class TestServiceClient:

    def test_request_shape(self, session, remote_settings):
        session.request.return_value = _response(200, {'success': True, 'data': {'ok': 1}})
        client = _client('inventory', 'INVENTORY_SERVICE_URL', session)

        data = client.post('/api/x/', {'qty': Decimal('1.5'), 'when': date(2030, 1, 2)})

        assert data == {'ok': 1}
        method, url = session.request.call_args.args
        kwargs = session.request.call_args.kwargs
        assert (method, url) == ('POST', 'http://inventory:3001/api/x/')
        assert json.loads(kwargs['data']) == {'qty': '1.5', 'when': '2030-01-02'}
        assert kwargs['headers']['Authorization'] == 'Bearer svc-token'
        assert kwargs['headers']['Content-Type'] == 'application/json'
        assert kwargs['timeout'] == 3

    def test_no_token_no_header(self, session, settings):
        settings.SHOPFLOOR = {**settings.SHOPFLOOR, 'SERVICE_TOKEN': ''}
        session.request.return_value = _response(200, {'success': True, 'data': []})

        _client('inventory', 'INVENTORY_SERVICE_URL', session).get('/api/x/')

        assert 'Authorization' not in session.request.call_args.kwargs['headers']
        assert session.request.call_args.kwargs['data'] is None

    def test_rejected_envelope(self, session, remote_settings):
        session.request.return_value = _response(400, {
            'success': False, 'code': 'INSUFFICIENT_STOCK', 'message': 'Estoque insuficiente',
        })

        with pytest.raises(UpstreamError) as exc:
            _client('inventory', 'INVENTORY_SERVICE_URL', session).post('/api/x/', {})

        assert exc.value.code == 'UPSTREAM_SERVICE_ERROR'
        assert exc.value.upstream_code == 'INSUFFICIENT_STOCK'
        assert exc.value.data['status'] == 400
        assert exc.value.data['service'] == 'inventory'

    def test_success_false_on_200(self, session, remote_settings):
        session.request.return_value = _response(200, {'success': False, 'message': 'não'})

        with pytest.raises(UpstreamError):
            _client('inventory', 'INVENTORY_SERVICE_URL', session).get('/api/x/')

    def test_timeout(self, session, remote_settings):
        session.request.side_effect = requests.Timeout('read timed out')

        with pytest.raises(UpstreamError) as exc:
            _client('production', 'PRODUCTION_SERVICE_URL', session).get('/api/x/')

        assert exc.value.data['service'] == 'production'
        assert 'timed out' in exc.value.data['upstream_message']

    def test_non_json_error_body(self, session, remote_settings):
        response = _response(502)
        response._content = b'<html>Bad Gateway</html>'
        session.request.return_value = response

        with pytest.raises(UpstreamError) as exc:
            _client('production', 'PRODUCTION_SERVICE_URL', session).get('/api/x/')

        assert exc.value.data['status'] == 502
        assert exc.value.upstream_code is None


class TestInventoryBackend:

    def test_reserve(self, session, remote_settings):
        session.request.return_value = _response(200, {'success': True, 'data': {
            'reservation_id': 4, 'batch_id': 'B1', 'status': 'reserved',
            'lines': [{'material_id': 'MAT001', 'quantity_reserved': '100.000', 'unit_of_measure': 'kg'}],
        }})
        backend = HttpInventoryBackend(_client('inventory', 'INVENTORY_SERVICE_URL', session))

        result = backend.reserve_materials('B1', [MaterialLine('MAT001', Decimal('100'), 'kg')])

        assert result.status == 'reserved'
        assert result.lines[0].quantity == Decimal('100')
        sent = json.loads(session.request.call_args.kwargs['data'])
        assert sent == {
            'batch_id': 'B1',
            'materials': [{'material_id': 'MAT001', 'quantity_required': '100', 'unit_of_measure': 'kg'}],
        }


class TestMachineQueueBackend:

    def test_enqueue_batch_steps(self, session, remote_settings):
        session.request.return_value = _response(201, {'success': True, 'data': [
            {'queue_id': 'Q1', 'machine_id': 'CNC-01', 'position': 1, 'status': 'waiting', 'step_id': 9},
        ]})
        backend = HttpMachineQueueBackend(_client('machine_queue', 'MACHINE_QUEUE_SERVICE_URL', session))

        tickets = backend.enqueue_batch_steps('B1', 'Eixo', 'high', [QueueStep(9, 'Torno', 'CNC-01')])

        assert tickets[0].queue_id == 'Q1'
        assert session.request.call_args.args[1] == 'http://queue:3002/api/queues/batch-steps/'
        sent = json.loads(session.request.call_args.kwargs['data'])
        assert sent['steps'][0]['hours_required'] == '1'

    def test_complete_step_not_queued(self, session, remote_settings):
        session.request.return_value = _response(200, {'success': True, 'data': None})
        backend = HttpMachineQueueBackend(_client('machine_queue', 'MACHINE_QUEUE_SERVICE_URL', session))

        assert backend.complete_step('B1', 3) is None

    def test_cancel_batch(self, session, remote_settings):
        session.request.return_value = _response(200, {'success': True, 'data': {'cancelled': 2}})
        backend = HttpMachineQueueBackend(_client('machine_queue', 'MACHINE_QUEUE_SERVICE_URL', session))

        assert backend.cancel_batch('B1', 'Cancelado') == 2


class TestProductionBackend:

    def test_get_request(self, session, remote_settings):
        session.request.return_value = _response(200, {'success': True, 'data': {
            'request_id': 'REQ-1', 'product_name': 'Eixo', 'quantity': 100,
            'priority': 'high', 'status': 'received', 'due_date': '2030-02-01',
        }})
        backend = HttpProductionBackend(_client('production', 'PRODUCTION_SERVICE_URL', session))

        info = backend.get_request('REQ-1')

        assert info.quantity == 100
        assert info.due_date == date(2030, 2, 1)

    def test_unknown_request(self, session, remote_settings):
        session.request.return_value = _response(404, {'success': False, 'code': 'REQUEST_NOT_FOUND'})
        backend = HttpProductionBackend(_client('production', 'PRODUCTION_SERVICE_URL', session))

        assert backend.get_request('REQ-X') is None

    def test_create_batch(self, session, remote_settings):
        session.request.return_value = _response(201, {'success': True, 'data': {
            'batch_number': 'B-1', 'request_id': 'REQ-1', 'quantity': 34, 'status': 'pending',
        }})
        backend = HttpProductionBackend(_client('production', 'PRODUCTION_SERVICE_URL', session))

        batch = backend.create_batch('REQ-1', 34, scheduled_start_date=date(2030, 1, 2))

        assert batch.batch_number == 'B-1'
        sent = json.loads(session.request.call_args.kwargs['data'])
        assert sent['scheduled_start_date'] == '2030-01-02'
        assert sent['scheduled_end_date'] is None


class TestAuthBackend:

    def test_valid_token(self, session, remote_settings):
        session.request.return_value = _response(200, {
            'success': True, 'user': {'id': 1, 'username': 'ana', 'role': 'planner'},
        })

        user = HttpAuthBackend(session).verify('user-token')

        assert user['role'] == 'planner'
        method, url = session.request.call_args.args
        assert (method, url) == ('POST', 'http://users:3000/api/auth/verify')
        assert session.request.call_args.kwargs['headers']['Authorization'] == 'Bearer user-token'

    @pytest.mark.parametrize('status', [401, 403])
    def test_rejected_token(self, session, remote_settings, status):
        session.request.return_value = _response(status, {'success': False})

        assert HttpAuthBackend(session).verify('bad') is None

    def test_user_service_error(self, session, remote_settings):
        session.request.return_value = _response(500, {'success': False, 'message': 'boom'})

        with pytest.raises(UpstreamError) as exc:
            HttpAuthBackend(session).verify('tok')
        assert exc.value.data['service'] == 'user'

    def test_unreachable(self, session, remote_settings):
        session.request.side_effect = requests.ConnectionError('refused')

        with pytest.raises(UpstreamError):
            HttpAuthBackend(session).verify('tok')


class TestFeedbackBackend:

    def test_status_update(self, session, remote_settings):
        session.request.return_value = _response(200, {'success': True, 'data': None})
        backend = HttpFeedbackBackend(_client('feedback', 'FEEDBACK_SERVICE_URL', session))

        backend.status_update('REQ-1', 'completed', 'ok')

        assert session.request.call_args.args[1] == 'http://feedback:3005/api/feedback/status-update'
        assert json.loads(session.request.call_args.kwargs['data']) == {
            'request_id': 'REQ-1', 'status': 'completed', 'notes': 'ok',
        }
