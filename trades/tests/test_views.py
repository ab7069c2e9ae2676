"""
Tests — Trade document API endpoints (views).

@file trades/tests/test_views.py
"""

from decimal import Decimal

import pytest
from django.contrib.auth.models import Permission
from django.urls import reverse

from inventory.models import Lot
from tests.factories import UserFactory
from trades.models import TradeLine, TradeMaster

pytestmark = pytest.mark.django_db

LIST_URL = 'api-v1:trades:trade-list'
DETAIL_URL = 'api-v1:trades:trade-detail'


def purchase_body(company, product, **overrides):
    body = {
        'trade_type': 'PURCHASE',
        'company_id': str(company.pk),
        'trade_date': '2026-03-02',
        'lines': [
            {'product_id': str(product.pk), 'quantity': '100', 'unit_price': '10'},
        ],
    }
    body.update(overrides)
    return body


def create_trade(client, company, product, **overrides):
    resp = client.post(reverse(LIST_URL), purchase_body(company, product, **overrides), format='json')
    assert resp.status_code == 201, resp.data
    return resp.data['data']


class TestTradeCreate:

    def test_requires_auth(self, api_client, supplier, product):
        resp = api_client.post(reverse(LIST_URL), purchase_body(supplier, product), format='json')
        assert resp.status_code == 401

    def test_requires_add_permission(self, authenticated_client, supplier, product):
        resp = authenticated_client.post(reverse(LIST_URL), purchase_body(supplier, product), format='json')
        assert resp.status_code == 403

    def test_model_permission_is_enough(self, api_client, supplier, product):
        clerk = UserFactory()
        clerk.user_permissions.add(Permission.objects.get(codename='add_trademaster'))
        api_client.force_authenticate(user=clerk)
        resp = api_client.post(reverse(LIST_URL), purchase_body(supplier, product), format='json')
        assert resp.status_code == 201

    def test_create_purchase(self, admin_client, supplier, product):
        data = create_trade(admin_client, supplier, product)
        assert data['trade_number'] == 'PUR-20260302-001'
        trade = TradeMaster.objects.get(pk=data['id'])
        assert trade.created_by is not None
        assert Lot.objects.get(trade_line__trade=trade).remaining_quantity == Decimal('100')

    def test_duplicate_returns_conflict_with_reference(self, admin_client, supplier, product):
        first = create_trade(admin_client, supplier, product)
        resp = admin_client.post(reverse(LIST_URL), purchase_body(supplier, product), format='json')
        assert resp.status_code == 409
        assert resp.data['success'] is False
        assert resp.data['code'] == 'DUPLICATE_DOCUMENT'
        assert resp.data['data']['existing_trade_id'] == first['id']
        assert resp.data['retryable'] is False

    def test_insufficient_stock_envelope(self, admin_client, supplier, customer, product):
        create_trade(admin_client, supplier, product)
        lot = Lot.objects.get()
        resp = admin_client.post(reverse(LIST_URL), {
            'trade_type': 'SALE',
            'company_id': str(customer.pk),
            'trade_date': '2026-03-02',
            'lines': [{'product_id': str(product.pk), 'quantity': '150', 'lot_id': str(lot.pk)}],
        }, format='json')
        assert resp.status_code == 409
        assert resp.data['code'] == 'INSUFFICIENT_STOCK'
        assert resp.data['data']['lot_id'] == str(lot.pk)

    def test_unknown_product_is_validation_error(self, admin_client, supplier, product):
        body = purchase_body(supplier, product)
        body['lines'][0]['product_id'] = str(supplier.pk)
        resp = admin_client.post(reverse(LIST_URL), body, format='json')
        assert resp.status_code == 400
        assert 'lines' in resp.data['errors']

    def test_return_line_must_be_negative(self, admin_client, supplier, product):
        body = purchase_body(supplier, product)
        body['lines'][0]['parent_line_id'] = str(product.pk)
        resp = admin_client.post(reverse(LIST_URL), body, format='json')
        assert resp.status_code == 400

    def test_line_count_is_capped(self, admin_client, supplier, product, settings):
        settings.TRADE_MAX_LINES = 2
        body = purchase_body(supplier, product)
        body['lines'] = body['lines'] * 3
        resp = admin_client.post(reverse(LIST_URL), body, format='json')
        assert resp.status_code == 400

    def test_unknown_warehouse_is_not_found(self, admin_client, supplier, product):
        body = purchase_body(supplier, product, warehouse_id=str(product.pk))
        resp = admin_client.post(reverse(LIST_URL), body, format='json')
        assert resp.status_code == 404
        assert not TradeMaster.objects.exists()


class TestTradeReadUpdateDelete:

    def test_list_and_filter(self, admin_client, supplier, customer, product):
        create_trade(admin_client, supplier, product)
        create_trade(admin_client, customer, product, trade_type='SALE', lines=[])
        resp = admin_client.get(reverse(LIST_URL), {'trade_type': 'SALE'})
        assert resp.status_code == 200
        assert len(resp.data['results']) == 1
        assert resp.data['results'][0]['trade_number'] == 'SAL-20260302-001'
        assert resp.data['pages'] == 1

    def test_retrieve_with_lines(self, authenticated_client, admin_client, supplier, product):
        data = create_trade(admin_client, supplier, product)
        resp = authenticated_client.get(reverse(DETAIL_URL, args=[data['id']]))
        assert resp.status_code == 200
        assert resp.data['lines'][0]['product_name'] == product.display_name
        assert resp.data['lines'][0]['matched_quantity'] == 0

    def test_put_updates_purchase_line(self, admin_client, supplier, product):
        data = create_trade(admin_client, supplier, product)
        line = TradeLine.objects.get(trade_id=data['id'])
        body = purchase_body(supplier, product)
        body['lines'] = [{'id': str(line.pk), 'product_id': str(product.pk), 'quantity': '120'}]
        resp = admin_client.put(reverse(DETAIL_URL, args=[data['id']]), body, format='json')
        assert resp.status_code == 200
        assert resp.data['data'] == {'needs_rematching': False, 'unmatched_items': []}
        assert Lot.objects.get().original_quantity == Decimal('120')

    def test_patch_keeps_lines(self, admin_client, supplier, product):
        data = create_trade(admin_client, supplier, product)
        resp = admin_client.patch(
            reverse(DETAIL_URL, args=[data['id']]), {'notes': 'morning auction'}, format='json',
        )
        assert resp.status_code == 200
        trade = TradeMaster.objects.get(pk=data['id'])
        assert trade.notes == 'morning auction'
        assert trade.lines.count() == 1
        assert Lot.objects.get().original_quantity == Decimal('100')

    def test_patch_lines_are_validated_whole(self, admin_client, supplier, product):
        data = create_trade(admin_client, supplier, product)
        line = TradeLine.objects.get(trade_id=data['id'])
        url = reverse(DETAIL_URL, args=[data['id']])

        resp = admin_client.patch(url, {
            'lines': [{'product_id': str(product.pk), 'parent_line_id': str(line.pk)}],
        }, format='json')
        assert resp.status_code == 400
        assert 'quantity' in resp.data['errors']['lines'][0]

        resp = admin_client.patch(url, {'lines': [{'quantity': '5'}]}, format='json')
        assert resp.status_code == 400
        assert 'product_id' in resp.data['errors']['lines'][0]
        assert Lot.objects.get().original_quantity == Decimal('100')

    def test_patch_with_complete_lines(self, admin_client, supplier, product):
        data = create_trade(admin_client, supplier, product)
        line = TradeLine.objects.get(trade_id=data['id'])
        resp = admin_client.patch(reverse(DETAIL_URL, args=[data['id']]), {
            'lines': [{'id': str(line.pk), 'product_id': str(product.pk), 'quantity': '80'}],
        }, format='json')
        assert resp.status_code == 200
        line.refresh_from_db()
        assert line.quantity == Decimal('80')

    def test_sale_update_reports_rematching(self, admin_client, supplier, customer, product):
        create_trade(admin_client, supplier, product)
        lot = Lot.objects.get()
        sale = create_trade(admin_client, customer, product, trade_type='SALE', lines=[
            {'product_id': str(product.pk), 'quantity': '40', 'lot_id': str(lot.pk)},
        ])
        resp = admin_client.put(reverse(DETAIL_URL, args=[sale['id']]), {
            'trade_type': 'SALE',
            'company_id': str(customer.pk),
            'trade_date': '2026-03-02',
            'lines': [{'product_id': str(product.pk), 'quantity': '60'}],
        }, format='json')
        assert resp.status_code == 200
        assert resp.data['data']['needs_rematching'] is True
        assert resp.data['data']['unmatched_items'][0]['reason'] == 'QUANTITY_CHANGED'

    def test_delete_blocked_by_matching(self, admin_client, supplier, customer, product):
        purchase = create_trade(admin_client, supplier, product)
        lot = Lot.objects.get()
        create_trade(admin_client, customer, product, trade_type='SALE', lines=[
            {'product_id': str(product.pk), 'quantity': '40', 'lot_id': str(lot.pk)},
        ])
        resp = admin_client.delete(reverse(DETAIL_URL, args=[purchase['id']]))
        assert resp.status_code == 409
        assert resp.data['code'] == 'MATCHING_EXISTS'
        assert resp.data['data']['total_count'] == 1

    def test_delete(self, admin_client, supplier, product):
        data = create_trade(admin_client, supplier, product)
        resp = admin_client.delete(reverse(DETAIL_URL, args=[data['id']]))
        assert resp.status_code == 204
        assert not TradeMaster.objects.exists()
        assert not Lot.objects.exists()

    def test_delete_requires_permission(self, authenticated_client, admin_client, supplier, product):
        data = create_trade(admin_client, supplier, product)
        resp = authenticated_client.delete(reverse(DETAIL_URL, args=[data['id']]))
        assert resp.status_code == 403


class TestCheckDuplicate:

    def test_no_duplicate(self, authenticated_client, supplier):
        resp = authenticated_client.get(reverse('api-v1:trades:trade-check-duplicate'), {
            'company_id': str(supplier.pk), 'trade_date': '2026-03-02', 'trade_type': 'PURCHASE',
        })
        assert resp.status_code == 200
        assert resp.data['data'] == {'is_duplicate': False, 'existing': None}

    def test_duplicate_found(self, authenticated_client, admin_client, supplier, product):
        data = create_trade(admin_client, supplier, product)
        resp = authenticated_client.get(reverse('api-v1:trades:trade-check-duplicate'), {
            'company_id': str(supplier.pk), 'trade_date': '2026-03-02', 'trade_type': 'PURCHASE',
        })
        assert resp.data['data']['is_duplicate'] is True
        assert resp.data['data']['existing']['trade_number'] == data['trade_number']

    def test_missing_params(self, authenticated_client):
        resp = authenticated_client.get(reverse('api-v1:trades:trade-check-duplicate'))
        assert resp.status_code == 400
