"""
Trades — Service Layer

Create, update and delete trade documents together with the lots and
allocations hanging off their lines. Each public TradeService method is a
single atomic unit: a failed guard anywhere rolls back every line, lot
and allocation change made by that call.

PURCHASE documents are updated in place (their lots may already be
matched, split or counted), SALE documents by restoring every allocation,
re-inserting the lines and re-matching them from the restored pool.

@file trades/services.py
"""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.db.models.functions import Abs

from audits.services import AuditSessionService
from catalog.models import Company, Warehouse
from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_DELETE, AUDIT_ACTION_UPDATE, ZERO
from core.exceptions import (
    AuditLockedError,
    BusinessRuleViolation,
    CannotDeleteMatchedLineError,
    DuplicateDocumentError,
    DuplicateNumberError,
    MatchedLineProductLockedError,
    MatchingExistsError,
    QuantityBelowMatchedError,
    ResourceNotFoundError,
    ReturnLimitExceededError,
    SplitLotImmutableError,
    UsedInProductionError,
)
from core.services import AuditService
from finance.services import PaymentService
from inventory.models import Allocation, Lot, LotAdjustment
from inventory.services import AllocationService, LotService
from production.services import ProductionService

from .dtos import TradeLineInput, TradeMasterInput, UpdateResult
from .models import TradeLine, TradeMaster

logger = logging.getLogger('tradeledger')

NUMBER_PREFIXES = {
    TradeMaster.TradeType.PURCHASE: 'PUR',
    TradeMaster.TradeType.SALE: 'SAL',
    TradeMaster.TradeType.PRODUCTION: 'PRO',
}

# Line attributes a split purchase line may still change.
SPLIT_EDITABLE_FIELDS = (
    'unit_price', 'supply_amount', 'tax_amount', 'total_amount', 'auction_price',
    'purchase_price', 'shipper_location', 'sender', 'notes',
)


def next_trade_number(trade_type: str, trade_date) -> str:
    """
    {PREFIX}-{YYYYMMDD}-{seq}, seq = 1 + highest numeric suffix already
    issued for that prefix and date. Suffixes are compared as integers.
    """
    prefix = f'{NUMBER_PREFIXES[trade_type]}-{trade_date:%Y%m%d}-'
    numbers = TradeMaster.objects.filter(
        trade_number__startswith=prefix,
    ).values_list('trade_number', flat=True)
    suffixes = [n[len(prefix):] for n in numbers]
    seq = max((int(s) for s in suffixes if s.isdigit()), default=0) + 1
    return f'{prefix}{seq:03d}'


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

class DuplicateGuard:
    """One non-cancelled document per (company, trade_date, trade_type)."""

    @staticmethod
    def find_active(company_id, trade_date, trade_type, exclude_trade_id=None) -> TradeMaster | None:
        qs = TradeMaster.objects.filter(
            company_id=company_id,
            trade_date=trade_date,
            trade_type=trade_type,
        ).exclude(status=TradeMaster.StatusChoices.CANCELLED)
        if exclude_trade_id is not None:
            qs = qs.exclude(pk=exclude_trade_id)
        return qs.order_by('created_at').first()

    @staticmethod
    def assert_unique(company_id, trade_date, trade_type, exclude_trade_id=None) -> None:
        existing = DuplicateGuard.find_active(company_id, trade_date, trade_type, exclude_trade_id)
        if existing is None:
            return
        logger.warning(
            'Duplicate %s for company %s on %s: %s already exists',
            trade_type, company_id, trade_date, existing.trade_number,
        )
        raise DuplicateDocumentError(
            detail=f'{existing.trade_number} already exists for this company on {trade_date}.',
            payload={
                'existing_trade_id': str(existing.pk),
                'existing_trade_number': existing.trade_number,
            },
        )


class ReturnLimitValidator:
    """Cumulative returns against a line never exceed that line's quantity."""

    @staticmethod
    def validate(lines, exclude_line_ids=()) -> None:
        """
        Check every return candidate (negative quantity with a parent line).

        Returns already recorded against the same parent count unless their
        id is in exclude_line_ids or their document is cancelled. Candidates
        in the same batch that share a parent are added up.
        """
        excluded = list(exclude_line_ids)
        batch_totals: dict[UUID, Decimal] = defaultdict(lambda: ZERO)

        for line in lines:
            if not line.is_return:
                continue
            parent = (
                TradeLine.objects.select_related('product')
                .filter(pk=line.parent_line_id)
                .first()
            )
            if parent is None:
                raise ResourceNotFoundError(detail=f'Returned line {line.parent_line_id} not found.')

            parent_quantity = abs(parent.quantity)
            recorded = (
                TradeLine.objects
                .filter(parent_line_id=parent.pk)
                .exclude(pk__in=excluded)
                .exclude(trade__status=TradeMaster.StatusChoices.CANCELLED)
                .aggregate(total=Sum(Abs('quantity')))['total']
            ) or ZERO
            already_returned = recorded + batch_totals[parent.pk]
            attempted = abs(line.quantity)

            if attempted + already_returned > parent_quantity:
                remaining = max(ZERO, parent_quantity - already_returned)
                product_name = parent.product.display_name
                logger.warning(
                    'Return limit exceeded on line %s: parent=%s returned=%s attempted=%s',
                    parent.pk, parent_quantity, already_returned, attempted,
                )
                raise ReturnLimitExceededError(
                    detail=(
                        f'{product_name}: only {remaining} of {parent_quantity} can still be '
                        f'returned ({already_returned} already returned, {attempted} requested).'
                    ),
                    payload={
                        'parent_line_id': str(parent.pk),
                        'product_name': product_name,
                        'parent_quantity': str(parent_quantity),
                        'already_returned': str(already_returned),
                        'attempted': str(attempted),
                        'remaining': str(remaining),
                    },
                )
            batch_totals[parent.pk] += attempted


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------

@dataclass
class _PoolEntry:
    """Stock released from an allocation, available to re-cover new lines."""
    lot_id: UUID
    product_id: UUID
    available: Decimal


def _lock_trade(trade_id) -> TradeMaster:
    try:
        return TradeMaster.objects.select_for_update().get(pk=trade_id)
    except TradeMaster.DoesNotExist:
        raise ResourceNotFoundError(detail='Trade document not found.')


def _require_company(company_id) -> None:
    if not Company.objects.filter(pk=company_id).exists():
        raise ResourceNotFoundError(detail='Company not found.')


def _require_warehouse(warehouse_id) -> None:
    if warehouse_id is not None and not Warehouse.objects.filter(pk=warehouse_id).exists():
        raise ResourceNotFoundError(detail='Warehouse not found.')


def _insert_line(trade, seq_no, data: TradeLineInput, actor) -> TradeLine:
    """Insert one line and give it its lot (PURCHASE) or allocation (SALE)."""
    line = TradeLine.objects.create(
        trade=trade, seq_no=seq_no, created_by=actor, **data.line_values(),
    )
    if line.quantity <= 0:
        return line
    if trade.is_purchase:
        LotService.create_lot_for_line(line, actor=actor)
    elif trade.is_sale and data.lot_id is not None:
        _check_lot_product(data.lot_id, line)
        AllocationService.allocate(line, data.lot_id, line.quantity, actor=actor)
        AllocationService.refresh_line(line, keep_purchase_price=data.purchase_price is not None)
    return line


def _check_lot_product(lot_id, line) -> None:
    product_id = Lot.objects.filter(pk=lot_id).values_list('product_id', flat=True).first()
    if product_id is None:
        raise ResourceNotFoundError(detail=f'Lot {lot_id} not found.')
    if product_id != line.product_id:
        raise BusinessRuleViolation(detail=f'Lot {lot_id} holds a different product than line {line.seq_no}.')


def _apply_master(trade, master: TradeMasterInput, actor) -> None:
    for name, value in master.model_values().items():
        if name != 'trade_type':
            setattr(trade, name, value)
    trade.updated_by = actor
    trade.save()


def _guard_lot_removal(lot_ids) -> None:
    """Production use and completed audits keep a lot alive."""
    if not lot_ids:
        return
    if ProductionService.consumed_lot_ids(lot_ids):
        raise UsedInProductionError()
    if AuditSessionService.completed_lot_ids(lot_ids):
        raise AuditLockedError()


def _delete_lots(lot_ids) -> None:
    if not lot_ids:
        return
    AuditSessionService.detach_in_progress(lot_ids)
    LotAdjustment.objects.filter(lot_id__in=lot_ids).delete()
    Lot.objects.filter(pk__in=lot_ids).delete()


def _product_name(product) -> str:
    return product.display_name if product is not None else ''


# ---------------------------------------------------------------------------
# Trade service
# ---------------------------------------------------------------------------

class TradeService:
    """Create / update / delete trade documents as one unit of work."""

    @staticmethod
    def check_duplicate(company_id, trade_date, trade_type, exclude_trade_id=None) -> dict | None:
        """Read-only lookup of the active document a new one would collide with."""
        existing = DuplicateGuard.find_active(company_id, trade_date, trade_type, exclude_trade_id)
        if existing is None:
            return None
        return {
            'id': str(existing.pk),
            'trade_number': existing.trade_number,
            'trade_date': existing.trade_date.isoformat(),
            'status': existing.status,
        }

    @staticmethod
    @transaction.atomic
    def create_trade(master: TradeMasterInput, lines: list[TradeLineInput], *, actor=None) -> dict:
        ReturnLimitValidator.validate(lines)
        DuplicateGuard.assert_unique(master.company_id, master.trade_date, master.trade_type)
        _require_company(master.company_id)
        _require_warehouse(master.warehouse_id)

        trade_number = next_trade_number(master.trade_type, master.trade_date)
        try:
            with transaction.atomic():
                trade = TradeMaster.objects.create(
                    trade_number=trade_number, created_by=actor, **master.model_values(),
                )
        except IntegrityError:
            if not TradeMaster.objects.filter(trade_number=trade_number).exists():
                raise
            logger.warning('Trade number %s taken by a concurrent create', trade_number)
            raise DuplicateNumberError(payload={'trade_number': trade_number})

        for position, data in enumerate(lines, start=1):
            _insert_line(trade, position, data, actor)

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE,
            model_name='TradeMaster',
            object_id=str(trade.pk),
            new_values=AuditService.snapshot(trade),
        )
        logger.info('Trade %s created (%s, %s lines)', trade.trade_number, trade.trade_type, len(lines))
        return {'id': str(trade.pk), 'trade_number': trade.trade_number}

    @staticmethod
    @transaction.atomic
    def update_trade(trade_id, master: TradeMasterInput, lines: list[TradeLineInput], *, actor=None) -> UpdateResult:
        trade = _lock_trade(trade_id)
        if master.trade_type != trade.trade_type:
            raise BusinessRuleViolation(detail='The type of a trade document cannot be changed.')

        existing_ids = list(trade.lines.values_list('pk', flat=True))
        ReturnLimitValidator.validate(lines, exclude_line_ids=existing_ids)
        if master.company_id != trade.company_id or master.trade_date != trade.trade_date:
            DuplicateGuard.assert_unique(
                master.company_id, master.trade_date, trade.trade_type, exclude_trade_id=trade.pk,
            )
            _require_company(master.company_id)
        if master.warehouse_id != trade.warehouse_id:
            _require_warehouse(master.warehouse_id)

        old_values = AuditService.snapshot(trade)
        if trade.is_purchase:
            result = TradeService._update_purchase(trade, master, lines, actor)
        elif trade.is_sale:
            result = TradeService._update_sale(trade, master, lines, actor)
        else:
            result = TradeService._replace_lines(trade, master, lines, actor)

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='TradeMaster',
            object_id=str(trade.pk),
            old_values=old_values,
            new_values=AuditService.snapshot(trade),
        )
        logger.info(
            'Trade %s updated (%s lines, %s need rematching)',
            trade.trade_number, len(lines), len(result.unmatched_items),
        )
        return result

    @staticmethod
    def _update_purchase(trade, master, lines, actor) -> UpdateResult:
        existing = {line.pk: line for line in trade.lines.select_for_update()}
        incoming_ids = {data.id for data in lines if data.id is not None}
        unknown = incoming_ids - existing.keys()
        if unknown:
            raise ResourceNotFoundError(
                detail='Line does not belong to this document.',
                payload={'line_ids': sorted(str(pk) for pk in unknown)},
            )

        removed = [line for pk, line in existing.items() if pk not in incoming_ids]
        removed_lot_ids = list(
            Lot.objects.filter(trade_line__in=removed).values_list('pk', flat=True)
        )
        if removed_lot_ids:
            matched = LotService.allocated_quantity(removed_lot_ids)
            if matched > 0:
                raise CannotDeleteMatchedLineError(payload={'matched_quantity': str(matched)})
            _guard_lot_removal(removed_lot_ids)

        _apply_master(trade, master, actor)
        Lot.objects.filter(trade_line__trade=trade).update(
            company_id=trade.company_id, purchase_date=trade.trade_date,
        )

        _delete_lots(removed_lot_ids)
        TradeLine.objects.filter(pk__in=[line.pk for line in removed]).delete()

        for position, data in enumerate(lines, start=1):
            if data.id is None:
                _insert_line(trade, position, data, actor)
            else:
                TradeService._update_purchase_line(existing[data.id], position, data, actor)
        return UpdateResult()

    @staticmethod
    def _update_purchase_line(line, position, data: TradeLineInput, actor) -> None:
        lots = list(Lot.objects.select_for_update().filter(trade_line=line).order_by('created_at'))
        lot_ids = [lot.pk for lot in lots]
        allocated = LotService.allocated_quantity(lot_ids) if lots else ZERO

        if data.product_id != line.product_id and allocated > 0:
            raise MatchedLineProductLockedError(
                payload={'line_id': str(line.pk), 'matched_quantity': str(allocated)},
            )

        if len(lots) > 1:
            if data.quantity != line.quantity or data.total_weight != line.total_weight:
                raise SplitLotImmutableError(
                    payload={'line_id': str(line.pk), 'fragments': len(lots)},
                )
            for name in SPLIT_EDITABLE_FIELDS:
                setattr(line, name, getattr(data, name))
            line.product_id = data.product_id
            line.seq_no = position
            line.updated_by = actor
            line.save()
            Lot.objects.filter(pk__in=lot_ids).update(
                product_id=line.product_id,
                unit_price=line.unit_price,
                shipper_location=line.shipper_location,
                sender=line.sender,
            )
            return

        if data.quantity < allocated:
            raise QuantityBelowMatchedError(
                detail=f'Quantity {data.quantity} is below the {allocated} already matched.',
                payload={
                    'line_id': str(line.pk),
                    'requested': str(data.quantity),
                    'matched_quantity': str(allocated),
                },
            )

        for name, value in data.line_values().items():
            setattr(line, name, value)
        line.seq_no = position
        line.updated_by = actor
        line.save()

        if data.quantity <= 0:
            _guard_lot_removal(lot_ids)
            _delete_lots(lot_ids)
            return
        if not lots:
            LotService.create_lot_for_line(line, actor=actor)
            return

        lot = lots[0]
        lot.product_id = line.product_id
        lot.original_quantity = line.quantity
        lot.remaining_quantity = line.quantity - allocated
        lot.unit_price = line.unit_price
        lot.total_weight = line.total_weight
        lot.shipper_location = line.shipper_location
        lot.sender = line.sender
        lot.updated_by = actor
        lot.save()
        LotService.refresh_status([lot.pk])

    @staticmethod
    def _update_sale(trade, master, lines, actor) -> UpdateResult:
        existing_lines = list(trade.lines.select_for_update().order_by('seq_no'))
        allocations = list(
            Allocation.objects.select_for_update(of=('self',))
            .filter(sale_line__trade=trade)
            .select_related('sale_line')
            .order_by('sale_line__seq_no', 'created_at')
        )
        pool = [
            _PoolEntry(a.lot_id, a.sale_line.product_id, a.matched_quantity)
            for a in allocations
        ]
        by_line = defaultdict(list)
        for allocation in allocations:
            by_line[allocation.sale_line_id].append(allocation)

        queues = defaultdict(deque)
        for line in existing_lines:
            queues[line.product_id].append(line)

        def restore(line):
            for allocation in by_line.pop(line.pk, []):
                AllocationService.restore(allocation)

        outcomes = []
        for data in lines:
            queue = queues.get(data.product_id)
            if not queue:
                outcomes.append(('NEW', None))
                continue
            previous = queue.popleft()
            if previous.quantity != data.quantity and by_line.get(previous.pk):
                restore(previous)
                outcomes.append(('QUANTITY_CHANGED', previous.quantity))
            else:
                outcomes.append((None, previous.quantity))

        for queue in queues.values():
            for leftover in queue:
                restore(leftover)

        _apply_master(trade, master, actor)

        for line in existing_lines:
            restore(line)
        TradeLine.objects.filter(trade=trade).delete()

        unmatched_items = []
        for position, (data, (reason, old_quantity)) in enumerate(zip(lines, outcomes), start=1):
            line = TradeLine.objects.create(
                trade=trade, seq_no=position, created_by=actor, **data.line_values(),
            )
            if line.quantity <= 0:
                continue

            needed = line.quantity
            for entry in pool:
                if needed <= 0:
                    break
                if entry.product_id != line.product_id or entry.available <= 0:
                    continue
                take = min(entry.available, needed)
                AllocationService.allocate(line, entry.lot_id, take, actor=actor)
                entry.available -= take
                needed -= take
            if needed > 0 and data.lot_id is not None:
                _check_lot_product(data.lot_id, line)
                AllocationService.allocate(line, data.lot_id, needed, actor=actor)
                needed = ZERO
            AllocationService.refresh_line(line, keep_purchase_price=data.purchase_price is not None)

            if reason is not None and needed > 0:
                item = {
                    'line_id': str(line.pk),
                    'product_id': str(line.product_id),
                    'product_name': _product_name(line.product),
                    'quantity': str(line.quantity),
                    'unmatched_quantity': str(needed),
                    'reason': reason,
                }
                if old_quantity is not None:
                    item['old_quantity'] = str(old_quantity)
                unmatched_items.append(item)

        return UpdateResult(needs_rematching=bool(unmatched_items), unmatched_items=unmatched_items)

    @staticmethod
    def _replace_lines(trade, master, lines, actor) -> UpdateResult:
        _apply_master(trade, master, actor)
        TradeLine.objects.filter(trade=trade).delete()
        for position, data in enumerate(lines, start=1):
            _insert_line(trade, position, data, actor)
        return UpdateResult()

    @staticmethod
    @transaction.atomic
    def delete_trade(trade_id, *, actor=None) -> None:
        trade = _lock_trade(trade_id)
        old_values = AuditService.snapshot(trade)

        if trade.is_purchase:
            lot_ids = list(Lot.objects.filter(trade_line__trade=trade).values_list('pk', flat=True))
            TradeService._guard_purchase_delete(trade, lot_ids)
            _delete_lots(lot_ids)
        elif trade.is_sale:
            restored = AllocationService.restore_for_lines(
                trade.lines.values_list('pk', flat=True),
            )
            if restored:
                logger.info('Trade %s: %s allocation(s) returned to stock', trade.trade_number, restored)

        PaymentService.delete_for_trade(trade)
        trade_number = trade.trade_number
        trade.delete()

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_DELETE,
            model_name='TradeMaster',
            object_id=str(trade_id),
            old_values=old_values,
        )
        logger.info('Trade %s deleted', trade_number)

    @staticmethod
    def _guard_purchase_delete(trade, lot_ids) -> None:
        allocations = list(
            Allocation.objects.filter(lot_id__in=lot_ids)
            .select_related('lot__product', 'lot__company', 'sale_line__trade__company')
            .order_by('sale_line__trade__trade_date', 'created_at')
        )
        if allocations:
            items = [
                {
                    'product_name': _product_name(a.lot.product),
                    'supplier_name': a.lot.company.name,
                    'matched_quantity': str(a.matched_quantity),
                    'sale_trade_id': str(a.sale_line.trade_id),
                    'sale_trade_number': a.sale_line.trade.trade_number,
                    'sale_date': a.sale_line.trade.trade_date.isoformat(),
                    'customer_name': a.sale_line.trade.company.name,
                }
                for a in allocations
            ]
            total = sum((a.matched_quantity for a in allocations), ZERO)
            first = allocations[0].sale_line.trade
            logger.warning('Delete of %s blocked by %s allocation(s)', trade.trade_number, len(items))
            raise MatchingExistsError(
                detail=(
                    f'Cannot delete: {total} units already sold against '
                    f'{first.trade_number} on {first.trade_date}.'
                ),
                payload={'total_count': len(items), 'total_quantity': str(total), 'items': items},
            )
        _guard_lot_removal(lot_ids)
