"""
Tests — Lot, matching and allocation API endpoints (views).

@file inventory/tests/test_views.py
"""

from decimal import Decimal

import pytest
from django.urls import reverse

from inventory.models import Allocation, Lot
from tests.factories import LotFactory, SaleMasterFactory, TradeLineFactory, WarehouseFactory
from trades.models import TradeLine

pytestmark = pytest.mark.django_db


@pytest.fixture
def lot(product):
    return LotFactory(trade_line__product=product, trade_line__quantity=Decimal('30'))


@pytest.fixture
def sale_line(product):
    return TradeLineFactory(trade=SaleMasterFactory(), product=product, quantity=Decimal('20'))


class TestLotEndpoints:

    def test_list_requires_auth(self, api_client):
        resp = api_client.get(reverse('api-v1:inventory:lot-list'))
        assert resp.status_code == 401

    def test_list_filters_by_status(self, authenticated_client, lot, product):
        LotFactory(
            trade_line__product=product,
            remaining_quantity=Decimal('0'),
            status=Lot.StatusChoices.DEPLETED,
        )
        resp = authenticated_client.get(reverse('api-v1:inventory:lot-list'), {'status': 'AVAILABLE'})
        assert resp.status_code == 200
        assert [row['id'] for row in resp.data['results']] == [str(lot.pk)]

    def test_transfer_part_creates_fragment(self, admin_client, lot):
        warehouse = WarehouseFactory()
        resp = admin_client.post(
            reverse('api-v1:inventory:lot-transfer', args=[lot.pk]),
            {'quantity': '10', 'warehouse_id': str(warehouse.pk)},
            format='json',
        )
        assert resp.status_code == 201
        assert resp.data['data']['parent_lot'] == lot.pk
        assert Lot.objects.count() == 2

    def test_transfer_whole_lot(self, admin_client, lot):
        resp = admin_client.post(
            reverse('api-v1:inventory:lot-transfer', args=[lot.pk]),
            {'quantity': '30', 'warehouse_id': str(WarehouseFactory().pk)},
            format='json',
        )
        assert resp.status_code == 200
        assert Lot.objects.count() == 1

    def test_transfer_unknown_warehouse(self, admin_client, lot, product):
        resp = admin_client.post(
            reverse('api-v1:inventory:lot-transfer', args=[lot.pk]),
            {'quantity': '10', 'warehouse_id': str(product.pk)},
            format='json',
        )
        assert resp.status_code == 404

    def test_transfer_requires_permission(self, authenticated_client, lot):
        resp = authenticated_client.post(
            reverse('api-v1:inventory:lot-transfer', args=[lot.pk]),
            {'quantity': '10', 'warehouse_id': str(WarehouseFactory().pk)},
            format='json',
        )
        assert resp.status_code == 403


class TestMatchingEndpoints:

    def test_manual_match(self, admin_client, lot, sale_line):
        resp = admin_client.post(reverse('api-v1:inventory:matching-list'), {
            'sale_line_id': str(sale_line.pk),
            'matchings': [{'lot_id': str(lot.pk), 'quantity': '20'}],
        }, format='json')
        assert resp.status_code == 201
        assert resp.data['data']['matching_status'] == TradeLine.MatchingStatus.MATCHED
        lot.refresh_from_db()
        assert lot.remaining_quantity == Decimal('10')

    def test_manual_match_needs_items(self, admin_client, sale_line):
        resp = admin_client.post(reverse('api-v1:inventory:matching-list'), {
            'sale_line_id': str(sale_line.pk), 'matchings': [],
        }, format='json')
        assert resp.status_code == 400

    def test_auto_match(self, admin_client, lot, sale_line):
        resp = admin_client.post(
            reverse('api-v1:inventory:matching-auto'), {'sale_line_id': str(sale_line.pk)}, format='json',
        )
        assert resp.status_code == 201
        assert resp.data['data']['matched_items'][0]['lot_id'] == str(lot.pk)

    def test_auto_match_without_stock(self, admin_client, sale_line):
        resp = admin_client.post(
            reverse('api-v1:inventory:matching-auto'), {'sale_line_id': str(sale_line.pk)}, format='json',
        )
        assert resp.status_code == 400
        assert resp.data['code'] == 'BUSINESS_RULE_VIOLATION'

    def test_unmatch_via_allocation_delete(self, admin_client, lot, sale_line):
        admin_client.post(reverse('api-v1:inventory:matching-list'), {
            'sale_line_id': str(sale_line.pk),
            'matchings': [{'lot_id': str(lot.pk), 'quantity': '5'}],
        }, format='json')
        allocation = Allocation.objects.get()

        list_resp = admin_client.get(reverse('api-v1:inventory:allocation-list'), {'sale_line': str(sale_line.pk)})
        assert len(list_resp.data['results']) == 1

        resp = admin_client.delete(reverse('api-v1:inventory:allocation-detail', args=[allocation.pk]))
        assert resp.status_code == 204
        lot.refresh_from_db()
        assert lot.remaining_quantity == Decimal('30')
        assert not Allocation.objects.exists()
