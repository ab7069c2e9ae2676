"""
Inventory — Service Tests

Guarded lot balances, manual and FIFO matching, warehouse transfers and
the balance verification task.

@file inventory/tests/test_services.py
"""

import datetime
from decimal import Decimal

import pytest

from core.exceptions import BusinessRuleViolation, InsufficientStockError, ResourceNotFoundError
from core.models import AuditLog
from inventory.models import Allocation, Lot
from inventory.services import (
    AllocationService,
    LotService,
    LotTransferService,
    MatchingService,
)
from inventory.tasks import verify_lot_balances_task
from tests.factories import (
    AllocationFactory,
    LotFactory,
    ProductFactory,
    SaleMasterFactory,
    TradeLineFactory,
    WarehouseFactory,
)
from trades.models import TradeLine

pytestmark = pytest.mark.django_db


def make_lot(product, quantity, price='10', purchase_date=datetime.date(2026, 3, 1), **kwargs):
    return LotFactory(
        trade_line__product=product,
        trade_line__quantity=Decimal(quantity),
        trade_line__unit_price=Decimal(price),
        trade_line__trade__trade_date=purchase_date,
        **kwargs,
    )


def make_sale_line(product, quantity):
    return TradeLineFactory(trade=SaleMasterFactory(), product=product, quantity=Decimal(quantity))


# ---------------------------------------------------------------------------
# Lot balances
# ---------------------------------------------------------------------------

class TestLotService:
    def test_decrement_and_status(self, product):
        lot = make_lot(product, '10')
        LotService.decrement(lot.pk, Decimal('10'))
        lot.refresh_from_db()
        assert lot.remaining_quantity == 0
        assert lot.status == Lot.StatusChoices.DEPLETED

    def test_decrement_never_goes_negative(self, product):
        lot = make_lot(product, '10')
        with pytest.raises(InsufficientStockError) as exc_info:
            LotService.decrement(lot.pk, Decimal('11'))
        assert exc_info.value.payload['lot_id'] == str(lot.pk)
        lot.refresh_from_db()
        assert lot.remaining_quantity == Decimal('10')

    def test_decrement_missing_lot(self, product):
        with pytest.raises(ResourceNotFoundError):
            LotService.decrement(product.pk, Decimal('1'))

    def test_increment_makes_lot_available(self, product):
        lot = make_lot(product, '10', remaining_quantity=Decimal('0'), status=Lot.StatusChoices.DEPLETED)
        LotService.increment(lot.pk, Decimal('4'))
        lot.refresh_from_db()
        assert lot.remaining_quantity == Decimal('4')
        assert lot.status == Lot.StatusChoices.AVAILABLE

    @pytest.mark.django_db(transaction=True)
    def test_helpers_refuse_to_run_outside_a_transaction(self, product):
        lot = make_lot(product, '10')
        with pytest.raises(RuntimeError):
            LotService.decrement(lot.pk, Decimal('1'))
        lot.refresh_from_db()
        assert lot.remaining_quantity == Decimal('10')


class TestAllocationService:
    def test_weighted_purchase_price(self, product):
        sale_line = make_sale_line(product, '40')
        cheap = make_lot(product, '30', price='10')
        dear = make_lot(product, '30', price='13')
        AllocationService.allocate(sale_line, cheap.pk, Decimal('30'))
        AllocationService.allocate(sale_line, dear.pk, Decimal('10'))
        assert AllocationService.weighted_purchase_price(sale_line) == Decimal('10.75')

    def test_no_price_without_allocations(self, product):
        assert AllocationService.weighted_purchase_price(make_sale_line(product, '1')) is None

    def test_status_for(self):
        assert AllocationService.status_for(Decimal('10'), Decimal('0')) == TradeLine.MatchingStatus.UNMATCHED
        assert AllocationService.status_for(Decimal('10'), Decimal('4')) == TradeLine.MatchingStatus.PARTIAL
        assert AllocationService.status_for(Decimal('10'), Decimal('10')) == TradeLine.MatchingStatus.MATCHED

    def test_restore_for_lines(self, product):
        sale_line = make_sale_line(product, '10')
        lot = make_lot(product, '10')
        AllocationService.allocate(sale_line, lot.pk, Decimal('6'))
        assert AllocationService.restore_for_lines([sale_line.pk]) == 1
        lot.refresh_from_db()
        assert lot.remaining_quantity == Decimal('10')
        assert not Allocation.objects.exists()


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

class TestManualMatching:
    def test_match_two_lots(self, product, user):
        sale_line = make_sale_line(product, '50')
        first = make_lot(product, '30', price='10')
        second = make_lot(product, '30', price='13')

        result = MatchingService.match_sale_line(
            sale_line.pk, [(first.pk, Decimal('30')), (second.pk, Decimal('10'))], actor=user,
        )

        assert result['total_matched'] == Decimal('40')
        assert result['matching_status'] == TradeLine.MatchingStatus.PARTIAL
        assert result['purchase_price'] == Decimal('10.75')
        second.refresh_from_db()
        assert second.remaining_quantity == Decimal('20')

    def test_cannot_exceed_unmatched(self, product):
        sale_line = make_sale_line(product, '10')
        lot = make_lot(product, '30')
        MatchingService.match_sale_line(sale_line.pk, [(lot.pk, Decimal('6'))])
        with pytest.raises(BusinessRuleViolation) as exc_info:
            MatchingService.match_sale_line(sale_line.pk, [(lot.pk, Decimal('5'))])
        assert Decimal(exc_info.value.payload['unmatched']) == Decimal('4')

    def test_product_must_match(self, product):
        sale_line = make_sale_line(product, '10')
        lot = make_lot(ProductFactory(name='Pear'), '30')
        with pytest.raises(BusinessRuleViolation):
            MatchingService.match_sale_line(sale_line.pk, [(lot.pk, Decimal('5'))])

    def test_depleted_lot_not_available(self, product):
        sale_line = make_sale_line(product, '10')
        lot = make_lot(product, '5', remaining_quantity=Decimal('0'), status=Lot.StatusChoices.DEPLETED)
        with pytest.raises(BusinessRuleViolation):
            MatchingService.match_sale_line(sale_line.pk, [(lot.pk, Decimal('1'))])

    def test_partial_failure_rolls_back(self, product):
        sale_line = make_sale_line(product, '50')
        first = make_lot(product, '30')
        short = make_lot(product, '5')
        with pytest.raises(InsufficientStockError):
            MatchingService.match_sale_line(
                sale_line.pk, [(first.pk, Decimal('20')), (short.pk, Decimal('10'))],
            )
        first.refresh_from_db()
        assert first.remaining_quantity == Decimal('30')
        assert not Allocation.objects.exists()

    def test_nothing_to_match(self, product):
        sale_line = make_sale_line(product, '10')
        lot = make_lot(product, '30')
        with pytest.raises(BusinessRuleViolation):
            MatchingService.match_sale_line(sale_line.pk, [(lot.pk, Decimal('0'))])

    def test_purchase_line_cannot_be_matched(self, product):
        lot = make_lot(product, '30')
        with pytest.raises(BusinessRuleViolation):
            MatchingService.match_sale_line(lot.trade_line_id, [(lot.pk, Decimal('1'))])

    def test_unknown_sale_line(self, product):
        with pytest.raises(ResourceNotFoundError):
            MatchingService.match_sale_line(product.pk, [(product.pk, Decimal('1'))])


class TestAutoMatching:
    def test_oldest_lots_first(self, product):
        sale_line = make_sale_line(product, '40')
        newer = make_lot(product, '50', purchase_date=datetime.date(2026, 3, 2))
        older = make_lot(product, '30', purchase_date=datetime.date(2026, 3, 1))

        result = MatchingService.auto_match(sale_line.pk)

        assert [item['lot_id'] for item in result['matched_items']] == [str(older.pk), str(newer.pk)]
        assert result['matched_items'][1]['matched_quantity'] == Decimal('10')
        assert result['unmatched_quantity'] == 0
        assert result['matching_status'] == TradeLine.MatchingStatus.MATCHED
        older.refresh_from_db()
        assert older.status == Lot.StatusChoices.DEPLETED

    def test_partial_when_stock_runs_out(self, product):
        sale_line = make_sale_line(product, '40')
        make_lot(product, '15')
        result = MatchingService.auto_match(sale_line.pk)
        assert result['total_matched'] == Decimal('15')
        assert result['unmatched_quantity'] == Decimal('25')
        assert result['matching_status'] == TradeLine.MatchingStatus.PARTIAL

    def test_no_stock(self, product):
        with pytest.raises(BusinessRuleViolation):
            MatchingService.auto_match(make_sale_line(product, '5').pk)

    def test_already_matched(self, product):
        sale_line = make_sale_line(product, '5')
        make_lot(product, '10')
        MatchingService.auto_match(sale_line.pk)
        with pytest.raises(BusinessRuleViolation):
            MatchingService.auto_match(sale_line.pk)


class TestUnmatch:
    def test_unmatch_restores_lot_and_line(self, product):
        sale_line = make_sale_line(product, '10')
        lot = make_lot(product, '10')
        MatchingService.match_sale_line(sale_line.pk, [(lot.pk, Decimal('10'))])
        allocation = Allocation.objects.get(sale_line=sale_line)

        MatchingService.unmatch(allocation.pk)

        lot.refresh_from_db()
        sale_line.refresh_from_db()
        assert lot.remaining_quantity == Decimal('10')
        assert lot.status == Lot.StatusChoices.AVAILABLE
        assert sale_line.matching_status == TradeLine.MatchingStatus.UNMATCHED
        assert sale_line.purchase_price is None
        assert AuditLog.objects.filter(
            action=AuditLog.ActionChoices.UNMATCH, object_id=str(allocation.pk),
        ).exists()

    def test_unknown_allocation(self, product):
        with pytest.raises(ResourceNotFoundError):
            MatchingService.unmatch(product.pk)


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------

class TestLotTransfer:
    def test_whole_untouched_lot_is_rehomed(self, product):
        lot = make_lot(product, '20')
        warehouse = WarehouseFactory()
        moved = LotTransferService.transfer(lot.pk, Decimal('20'), warehouse.pk)
        assert moved.pk == lot.pk
        lot.refresh_from_db()
        assert lot.warehouse == warehouse
        assert Lot.objects.count() == 1

    def test_partial_move_creates_fragment(self, product):
        lot = make_lot(product, '20', total_weight=Decimal('100'))
        warehouse = WarehouseFactory()
        fragment = LotTransferService.transfer(lot.pk, Decimal('5'), warehouse.pk)

        lot.refresh_from_db()
        assert fragment.parent_lot == lot
        assert fragment.trade_line_id == lot.trade_line_id
        assert fragment.warehouse == warehouse
        assert fragment.original_quantity == fragment.remaining_quantity == Decimal('5')
        assert fragment.total_weight == Decimal('25.00')
        assert lot.original_quantity == lot.remaining_quantity == Decimal('15')
        assert lot.total_weight == Decimal('75.00')

    def test_move_from_matched_lot_keeps_balance(self, product):
        lot = make_lot(product, '100')
        MatchingService.match_sale_line(make_sale_line(product, '40').pk, [(lot.pk, Decimal('40'))])
        LotTransferService.transfer(lot.pk, Decimal('20'), WarehouseFactory().pk)
        lot.refresh_from_db()
        assert lot.original_quantity == Decimal('80')
        assert lot.remaining_quantity == Decimal('40')
        assert LotService.find_inconsistent_lots() == []

    def test_cannot_move_more_than_remaining(self, product):
        lot = make_lot(product, '10')
        with pytest.raises(InsufficientStockError):
            LotTransferService.transfer(lot.pk, Decimal('11'), WarehouseFactory().pk)
        assert Lot.objects.count() == 1

    def test_same_warehouse_rejected(self, product):
        warehouse = WarehouseFactory()
        lot = make_lot(product, '10', warehouse=warehouse)
        with pytest.raises(BusinessRuleViolation):
            LotTransferService.transfer(lot.pk, Decimal('5'), warehouse.pk)

    def test_quantity_must_be_positive(self, product):
        lot = make_lot(product, '10')
        with pytest.raises(BusinessRuleViolation):
            LotTransferService.transfer(lot.pk, Decimal('0'), WarehouseFactory().pk)

    def test_unknown_lot(self, product):
        with pytest.raises(ResourceNotFoundError):
            LotTransferService.transfer(product.pk, Decimal('1'), WarehouseFactory().pk)


# ---------------------------------------------------------------------------
# Balance verification
# ---------------------------------------------------------------------------

class TestBalanceVerification:
    def test_consistent_lots_pass(self, product):
        lot = make_lot(product, '10')
        MatchingService.match_sale_line(make_sale_line(product, '4').pk, [(lot.pk, Decimal('4'))])
        assert LotService.find_inconsistent_lots() == []

    def test_task_reports_drifted_lot(self, product):
        lot = make_lot(product, '10')
        AllocationFactory(lot=lot, matched_quantity=Decimal('3'))
        make_lot(product, '10')

        result = verify_lot_balances_task()

        assert result == {'inconsistent_count': 1, 'lot_ids': [str(lot.pk)]}
