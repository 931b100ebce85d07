"""
Pytest fixtures for Shopfloor tests.
"""

import json
from decimal import Decimal

import pytest
from django.test import Client

from shopfloor.adapters import reset_backends
from shopfloor.inventory.service import inventory
from shopfloor.machine_queue.service import machine_queue
from shopfloor.production.service import production


@pytest.fixture(autouse=True)
def _fresh_backends():
    """Every test resolves backends from its own settings."""
    reset_backends()
    yield
    reset_backends()


@pytest.fixture
def mat001(db):
    """MAT001: current 500, reserved 50 (held by batch SEED-1), available 450."""
    inventory.add_material('MAT001', 'Aço 1020', current_stock=Decimal('500'),
                           unit_of_measure='kg', minimum_stock=Decimal('100'))
    inventory.reserve_materials('SEED-1', [{'material_id': 'MAT001', 'quantity_required': 50}])
    return inventory.get_material('MAT001')


@pytest.fixture
def mat002(db):
    """MAT002: current 200, reserved 20 (held by batch SEED-2), available 180."""
    inventory.add_material('MAT002', 'Parafuso M6', current_stock=Decimal('200'),
                           unit_of_measure='unit', minimum_stock=Decimal('50'))
    inventory.reserve_materials('SEED-2', [{'material_id': 'MAT002', 'quantity_required': 20}])
    return inventory.get_material('MAT002')


@pytest.fixture
def cnc(db):
    return machine_queue.create_machine('CNC-01', 'Torno CNC', machine_type='cnc')


@pytest.fixture
def mill(db):
    return machine_queue.create_machine('MILL-01', 'Fresadora', machine_type='mill')


@pytest.fixture
def prod_request(db):
    return production.create_request('Eixo 30mm', 100, request_id='REQ-1', priority='high')


@pytest.fixture
def batch(prod_request, mat001, cnc, mill):
    """Pending batch with two machine steps and one material line (MAT001 x100)."""
    return production.create_batch(
        prod_request.request_id,
        50,
        steps=[
            {'step_name': 'Torneamento', 'machine_id': 'CNC-01', 'hours_required': 2},
            {'step_name': 'Fresamento', 'machine_id': 'MILL-01', 'hours_required': 1},
        ],
        materials=[{'material_id': 'MAT001', 'quantity_required': 100, 'unit_of_measure': 'kg'}],
    )


class JsonClient(Client):
    """django.test.Client that sends JSON bodies and a bearer token."""

    def __init__(self, token='test-token', **defaults):
        if token:
            defaults.setdefault('HTTP_AUTHORIZATION', f'Bearer {token}')
        super().__init__(**defaults)

    def _json(self, method, path, data=None, **extra):
        body = json.dumps(data) if data is not None else ''
        return getattr(super(), method)(path, body, content_type='application/json', **extra)

    def post(self, path, data=None, **extra):
        return self._json('post', path, data, **extra)

    def put(self, path, data=None, **extra):
        return self._json('put', path, data, **extra)


@pytest.fixture
def api(db):
    return JsonClient()
