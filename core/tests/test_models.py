"""
Core — Model Tests

Tests for AuditLog, the audit snapshot helper and the error envelope.

@file core/tests/test_models.py
"""

import json
from decimal import Decimal

import pytest

from core.exceptions import DuplicateNumberError, InsufficientStockError, standard_exception_handler
from core.models import AuditLog
from core.renderers import StandardJSONRenderer
from core.services import AuditService
from tests.factories import AuditLogFactory, LotFactory, UserFactory


@pytest.mark.django_db
class TestAuditLog:
    def test_create_audit_log(self):
        user = UserFactory()
        log = AuditService.log(
            actor=user,
            action=AuditLog.ActionChoices.CREATE,
            model_name='TradeMaster',
            object_id='trade-123',
            new_values={'key': 'value'},
        )
        assert log.pk is not None
        assert log.action == 'CREATE'
        assert log.model_name == 'TradeMaster'

    def test_factory_builds_entry(self):
        log = AuditLogFactory()
        assert log.pk is not None

    def test_snapshot_stringifies_decimals_and_dates(self):
        lot = LotFactory(original_quantity=Decimal('12.50'), remaining_quantity=Decimal('12.50'))
        snapshot = AuditService.snapshot(lot)
        assert snapshot['original_quantity'] == '12.50'
        assert snapshot['purchase_date'] == lot.purchase_date.isoformat()
        json.dumps(snapshot)


class TestErrorEnvelope:
    def test_ledger_error_carries_payload_and_code(self):
        exc = InsufficientStockError(payload={'lot_id': 'abc', 'requested': '5', 'available': '2'})
        response = standard_exception_handler(exc, {})
        assert response.status_code == 409
        assert response.data['success'] is False
        assert response.data['code'] == 'INSUFFICIENT_STOCK'
        assert response.data['data']['available'] == '2'
        assert response.data['retryable'] is False

    def test_duplicate_number_is_retryable(self):
        response = standard_exception_handler(DuplicateNumberError(), {})
        assert response.data['retryable'] is True


class TestRenderer:
    def test_wraps_payload(self):
        body = StandardJSONRenderer().render({'id': 1})
        assert json.loads(body) == {'success': True, 'data': {'id': 1}}

    def test_empty_body_stays_empty(self):
        assert StandardJSONRenderer().render(None) == b''

    def test_paginated_results_get_meta(self):
        body = json.loads(StandardJSONRenderer().render(
            {'count': 1, 'next': None, 'previous': None, 'results': [{'id': 1}]},
        ))
        assert body['data'] == [{'id': 1}]
        assert body['meta']['count'] == 1


@pytest.mark.django_db
class TestAuditUpdateDiff:
    def test_only_changed_keys_are_kept(self):
        log = AuditService.log(
            actor=None,
            action=AuditLog.ActionChoices.UPDATE,
            model_name='TradeMaster',
            object_id='trade-1',
            old_values={'notes': '', 'status': 'DRAFT'},
            new_values={'notes': 'edited', 'status': 'DRAFT'},
        )
        assert log.old_values == {'notes': ''}
        assert log.new_values == {'notes': 'edited'}

    def test_snapshot_leaves_out_actor_columns(self):
        snapshot = AuditService.snapshot(LotFactory(created_by=UserFactory()))
        assert 'created_by' not in snapshot
        assert 'product' in snapshot
