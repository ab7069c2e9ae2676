"""
Inventory — Service Layer

Lot balances and sale-to-lot allocations.

LotService and AllocationService are building blocks for the trade
engine: they never open a transaction of their own and refuse to run
outside one. Every decrement of a lot is a single conditional UPDATE
(remaining_quantity >= requested), so concurrent writers can never drive
a balance negative; a zero-row update surfaces as InsufficientStockError.

MatchingService and LotTransferService are the public entry points for
manual matching and warehouse transfers; each call is one atomic unit.

@file inventory/services.py
"""

import logging
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.db.models import Case, DecimalField, ExpressionWrapper, F, Q, Sum, Value, When
from django.db.models.functions import Coalesce

from core.constants import AUDIT_ACTION_MATCH, AUDIT_ACTION_TRANSFER, AUDIT_ACTION_UNMATCH, ZERO
from core.exceptions import (
    BusinessRuleViolation,
    InsufficientStockError,
    ResourceNotFoundError,
)
from core.services import AuditService, require_atomic
from trades.models import TradeLine

from .models import Allocation, Lot

logger = logging.getLogger('tradeledger')

_DECIMAL = DecimalField(max_digits=15, decimal_places=2)
_PRICE = Decimal('0.01')

_STATUS_FROM_BALANCE = Case(
    When(remaining_quantity__lte=0, then=Value(Lot.StatusChoices.DEPLETED)),
    default=Value(Lot.StatusChoices.AVAILABLE),
)


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


# ---------------------------------------------------------------------------
# Lots
# ---------------------------------------------------------------------------

class LotService:
    """Lot creation, guarded balance changes and consistency checks."""

    @staticmethod
    def create_lot_for_line(line, *, actor=None) -> Lot:
        """
        Create the lot owned by a PURCHASE line. The lot copies product,
        supplier, date, price, weight and shipping details from the line and
        its document; original and remaining both start at line.quantity.
        """
        require_atomic()
        trade = line.trade
        lot = Lot.objects.create(
            trade_line=line,
            product_id=line.product_id,
            company_id=trade.company_id,
            purchase_date=trade.trade_date,
            warehouse_id=trade.warehouse_id,
            original_quantity=line.quantity,
            remaining_quantity=line.quantity,
            unit_price=line.unit_price,
            total_weight=line.total_weight,
            shipper_location=line.shipper_location,
            sender=line.sender,
            created_by=actor,
        )
        logger.info('Lot %s created for line %s qty=%s', lot.pk, line.pk, line.quantity)
        return lot

    @staticmethod
    def decrement(lot_id: UUID, quantity) -> None:
        """Take quantity out of a lot, only if it is still there."""
        require_atomic()
        quantity = _to_decimal(quantity)
        updated = Lot.objects.filter(
            pk=lot_id, remaining_quantity__gte=quantity,
        ).update(remaining_quantity=F('remaining_quantity') - quantity)
        if not updated:
            available = (
                Lot.objects.filter(pk=lot_id)
                .values_list('remaining_quantity', flat=True)
                .first()
            )
            if available is None:
                raise ResourceNotFoundError(detail=f'Lot {lot_id} not found.')
            logger.warning(
                'Insufficient stock on lot %s: requested=%s available=%s',
                lot_id, quantity, available,
            )
            raise InsufficientStockError(
                detail=f'Insufficient stock on lot {lot_id}: requested {quantity}, available {available}.',
                payload={
                    'lot_id': str(lot_id),
                    'requested': str(quantity),
                    'available': str(available),
                },
            )
        LotService.refresh_status([lot_id])

    @staticmethod
    def increment(lot_id: UUID, quantity) -> None:
        """Put quantity back into a lot; a restored lot is always AVAILABLE."""
        require_atomic()
        Lot.objects.filter(pk=lot_id).update(
            remaining_quantity=F('remaining_quantity') + _to_decimal(quantity),
            status=Lot.StatusChoices.AVAILABLE,
        )

    @staticmethod
    def refresh_status(lot_ids) -> None:
        require_atomic()
        Lot.objects.filter(pk__in=list(lot_ids)).update(status=_STATUS_FROM_BALANCE)

    @staticmethod
    def allocated_quantity(lot_ids) -> Decimal:
        result = Allocation.objects.filter(lot_id__in=list(lot_ids)).aggregate(
            total=Sum('matched_quantity'),
        )
        return result['total'] or ZERO

    @staticmethod
    def find_inconsistent_lots():
        """
        Lots whose stored balance disagrees with their allocations, i.e.
        remaining_quantity != original_quantity - SUM(matched_quantity).
        """
        expected = ExpressionWrapper(
            F('original_quantity') - Coalesce(Sum('allocations__matched_quantity'), Value(ZERO)),
            output_field=_DECIMAL,
        )
        return list(
            Lot.objects
            .annotate(expected_remaining=expected)
            .filter(~Q(remaining_quantity=F('expected_remaining')))
            .select_related('product')
        )


# ---------------------------------------------------------------------------
# Allocations
# ---------------------------------------------------------------------------

class AllocationService:
    """Allocate lot stock to sale lines and give it back."""

    @staticmethod
    def allocate(sale_line, lot_id: UUID, quantity, *, actor=None) -> Allocation:
        """Guarded decrement of the lot, then record the allocation."""
        require_atomic()
        quantity = _to_decimal(quantity)
        LotService.decrement(lot_id, quantity)
        return Allocation.objects.create(
            sale_line=sale_line,
            lot_id=lot_id,
            matched_quantity=quantity,
            created_by=actor,
        )

    @staticmethod
    def restore(allocation) -> None:
        require_atomic()
        LotService.increment(allocation.lot_id, allocation.matched_quantity)
        allocation.delete()

    @staticmethod
    def restore_for_lines(line_ids) -> int:
        """Give back every allocation held by the given sale lines."""
        require_atomic()
        allocations = list(Allocation.objects.filter(sale_line_id__in=list(line_ids)))
        for allocation in allocations:
            AllocationService.restore(allocation)
        return len(allocations)

    @staticmethod
    def matched_quantity(sale_line) -> Decimal:
        result = Allocation.objects.filter(sale_line=sale_line).aggregate(
            total=Sum('matched_quantity'),
        )
        return result['total'] or ZERO

    @staticmethod
    def weighted_purchase_price(sale_line) -> Decimal | None:
        """SUM(matched * lot.unit_price) / SUM(matched), or None when unmatched."""
        result = Allocation.objects.filter(sale_line=sale_line).aggregate(
            cost=Sum(
                ExpressionWrapper(F('matched_quantity') * F('lot__unit_price'), output_field=_DECIMAL),
            ),
            matched=Sum('matched_quantity'),
        )
        if not result['matched']:
            return None
        return (result['cost'] / result['matched']).quantize(_PRICE)

    @staticmethod
    def status_for(quantity, matched) -> str:
        if matched <= 0:
            return TradeLine.MatchingStatus.UNMATCHED
        if matched >= quantity:
            return TradeLine.MatchingStatus.MATCHED
        return TradeLine.MatchingStatus.PARTIAL

    @staticmethod
    def refresh_line(sale_line, *, keep_purchase_price=False) -> None:
        """Recompute matching_status and, unless told otherwise, purchase_price."""
        require_atomic()
        matched = AllocationService.matched_quantity(sale_line)
        sale_line.matching_status = AllocationService.status_for(sale_line.quantity, matched)
        fields = ['matching_status', 'updated_at']
        if not keep_purchase_price:
            sale_line.purchase_price = AllocationService.weighted_purchase_price(sale_line)
            fields.append('purchase_price')
        sale_line.save(update_fields=fields)


# ---------------------------------------------------------------------------
# Matching (public)
# ---------------------------------------------------------------------------

def _get_sale_line(sale_line_id):
    try:
        line = (
            TradeLine.objects.select_for_update(of=('self',))
            .select_related('trade', 'product')
            .get(pk=sale_line_id)
        )
    except TradeLine.DoesNotExist:
        raise ResourceNotFoundError(detail='Sale line not found.')
    if not line.trade.is_sale:
        raise BusinessRuleViolation(detail='Only lines of SALE documents can be matched.')
    return line


class MatchingService:
    """Server side of the manual and FIFO matching screens."""

    @staticmethod
    @transaction.atomic
    def match_sale_line(sale_line_id: UUID, matchings, *, actor=None) -> dict:
        """
        Allocate explicit (lot_id, quantity) pairs to a sale line.

        The total may not exceed the line's unmatched quantity; every lot
        must be AVAILABLE and carry the same product as the line.
        """
        line = _get_sale_line(sale_line_id)
        pairs = [(UUID(str(lot_id)), _to_decimal(qty)) for lot_id, qty in matchings]
        pairs = [(lot_id, qty) for lot_id, qty in pairs if qty > 0]
        if not pairs:
            raise BusinessRuleViolation(detail='Nothing to match.')

        already = AllocationService.matched_quantity(line)
        open_quantity = line.quantity - already
        requested = sum((qty for _, qty in pairs), ZERO)
        if requested > open_quantity:
            raise BusinessRuleViolation(
                detail=f'Matching quantity {requested} exceeds unmatched quantity {open_quantity}.',
                payload={'requested': str(requested), 'unmatched': str(open_quantity)},
            )

        lots = Lot.objects.in_bulk([lot_id for lot_id, _ in pairs])
        for lot_id, qty in pairs:
            lot = lots.get(lot_id)
            if lot is None or not lot.is_available:
                raise BusinessRuleViolation(detail=f'Lot {lot_id} is not available.')
            if lot.product_id != line.product_id:
                raise BusinessRuleViolation(detail='Lot product does not match the sale line.')
            allocation = AllocationService.allocate(line, lot.pk, qty, actor=actor)
            AuditService.log(
                actor=actor,
                action=AUDIT_ACTION_MATCH,
                model_name='Allocation',
                object_id=str(allocation.pk),
                new_values={'sale_line': str(line.pk), 'lot': str(lot.pk), 'matched_quantity': str(qty)},
            )

        AllocationService.refresh_line(line)
        total = AllocationService.matched_quantity(line)
        logger.info('Sale line %s matched %s (total %s/%s)', line.pk, requested, total, line.quantity)
        return {
            'sale_line_id': str(line.pk),
            'total_matched': total,
            'matching_status': line.matching_status,
            'purchase_price': line.purchase_price,
        }

    @staticmethod
    @transaction.atomic
    def auto_match(sale_line_id: UUID, *, actor=None) -> dict:
        """Cover the unmatched part of a sale line from the oldest lots first."""
        line = _get_sale_line(sale_line_id)
        open_quantity = line.quantity - AllocationService.matched_quantity(line)
        if open_quantity <= 0:
            raise BusinessRuleViolation(detail='Sale line is already fully matched.')

        candidates = list(
            Lot.objects.select_for_update()
            .filter(
                product_id=line.product_id,
                status=Lot.StatusChoices.AVAILABLE,
                remaining_quantity__gt=0,
            )
            .order_by('purchase_date', 'created_at')
        )
        if not candidates:
            raise BusinessRuleViolation(detail='No available stock for this product.')

        matched_items = []
        for lot in candidates:
            if open_quantity <= 0:
                break
            qty = min(lot.remaining_quantity, open_quantity)
            AllocationService.allocate(line, lot.pk, qty, actor=actor)
            matched_items.append({'lot_id': str(lot.pk), 'matched_quantity': qty})
            open_quantity -= qty

        AllocationService.refresh_line(line)
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_MATCH,
            model_name='TradeLine',
            object_id=str(line.pk),
            new_values={
                'auto_matched': [
                    {'lot_id': item['lot_id'], 'matched_quantity': str(item['matched_quantity'])}
                    for item in matched_items
                ],
            },
        )
        logger.info('Sale line %s auto-matched from %s lot(s), open=%s', line.pk, len(matched_items), open_quantity)
        return {
            'sale_line_id': str(line.pk),
            'matched_items': matched_items,
            'total_matched': line.quantity - open_quantity,
            'unmatched_quantity': open_quantity,
            'matching_status': line.matching_status,
        }

    @staticmethod
    @transaction.atomic
    def unmatch(allocation_id: UUID, *, actor=None) -> None:
        try:
            allocation = (
                Allocation.objects.select_for_update(of=('self',))
                .select_related('sale_line')
                .get(pk=allocation_id)
            )
        except Allocation.DoesNotExist:
            raise ResourceNotFoundError(detail='Allocation not found.')
        line = allocation.sale_line
        old_values = {
            'sale_line': str(line.pk),
            'lot': str(allocation.lot_id),
            'matched_quantity': str(allocation.matched_quantity),
        }
        AllocationService.restore(allocation)
        AllocationService.refresh_line(line)
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UNMATCH,
            model_name='Allocation',
            object_id=str(allocation_id),
            old_values=old_values,
        )
        logger.info('Allocation %s removed from sale line %s', allocation_id, line.pk)


# ---------------------------------------------------------------------------
# Warehouse transfers (public)
# ---------------------------------------------------------------------------

class LotTransferService:

    @staticmethod
    @transaction.atomic
    def transfer(lot_id: UUID, quantity, warehouse_id: UUID, *, actor=None) -> Lot:
        """
        Move quantity of a lot to another warehouse.

        An untouched lot moved in full is simply re-homed. Otherwise the
        moved quantity is carved out of the source (original and remaining
        both shrink, weight follows proportionally) into a new fragment on
        the same purchase line, which makes that line a split line.
        """
        quantity = _to_decimal(quantity)
        if quantity <= 0:
            raise BusinessRuleViolation(detail='Quantity must be positive.')
        try:
            lot = Lot.objects.select_for_update().get(pk=lot_id)
        except Lot.DoesNotExist:
            raise ResourceNotFoundError(detail='Lot not found.')
        if lot.warehouse_id is not None and str(lot.warehouse_id) == str(warehouse_id):
            raise BusinessRuleViolation(detail='Lot is already in this warehouse.')

        if quantity == lot.remaining_quantity == lot.original_quantity:
            old_warehouse = lot.warehouse_id
            lot.warehouse_id = warehouse_id
            lot.updated_by = actor
            lot.save(update_fields=['warehouse', 'updated_by', 'updated_at'])
            AuditService.log(
                actor=actor,
                action=AUDIT_ACTION_TRANSFER,
                model_name='Lot',
                object_id=str(lot.pk),
                old_values={'warehouse': str(old_warehouse) if old_warehouse else None},
                new_values={'warehouse': str(warehouse_id)},
            )
            logger.info('Lot %s moved to warehouse %s', lot.pk, warehouse_id)
            return lot

        moved_weight = ZERO
        if lot.original_quantity:
            moved_weight = (lot.total_weight * quantity / lot.original_quantity).quantize(_PRICE)

        updated = Lot.objects.filter(
            pk=lot.pk, remaining_quantity__gte=quantity,
        ).update(
            original_quantity=F('original_quantity') - quantity,
            remaining_quantity=F('remaining_quantity') - quantity,
            total_weight=F('total_weight') - moved_weight,
        )
        if not updated:
            raise InsufficientStockError(
                detail=f'Cannot move {quantity}: only {lot.remaining_quantity} remaining.',
                payload={
                    'lot_id': str(lot.pk),
                    'requested': str(quantity),
                    'available': str(lot.remaining_quantity),
                },
            )
        LotService.refresh_status([lot.pk])

        fragment = Lot.objects.create(
            trade_line_id=lot.trade_line_id,
            parent_lot=lot,
            product_id=lot.product_id,
            company_id=lot.company_id,
            purchase_date=lot.purchase_date,
            warehouse_id=warehouse_id,
            original_quantity=quantity,
            remaining_quantity=quantity,
            unit_price=lot.unit_price,
            total_weight=moved_weight,
            shipper_location=lot.shipper_location,
            sender=lot.sender,
            created_by=actor,
        )
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_TRANSFER,
            model_name='Lot',
            object_id=str(fragment.pk),
            new_values={
                'parent_lot': str(lot.pk),
                'warehouse': str(warehouse_id),
                'quantity': str(quantity),
            },
        )
        logger.info('Lot %s split: %s moved to warehouse %s as %s', lot.pk, quantity, warehouse_id, fragment.pk)
        return fragment
