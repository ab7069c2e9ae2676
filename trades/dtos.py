"""
Trades — Input Records

Typed inputs for TradeService. Callers (the DRF serializers, management
code, tests) build these once at the boundary; the engine never reads
raw dicts.

@file trades/dtos.py
"""

import datetime
from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation
from uuid import UUID

from core.constants import ZERO
from core.exceptions import BusinessRuleViolation
from trades.models import TradeMaster


def _decimal(data, key, default=ZERO):
    value = data.get(key)
    if value is None or value == '':
        return default
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise BusinessRuleViolation(detail=f'{key} must be a number.')


def _uuid(data, key):
    value = data.get(key)
    if value in (None, ''):
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise BusinessRuleViolation(detail=f'{key} is not a valid identifier.')


def _date(data, key):
    value = data.get(key)
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value))
    except ValueError:
        raise BusinessRuleViolation(detail=f'{key} must be an ISO date (YYYY-MM-DD).')


@dataclass
class TradeMasterInput:
    """Document header. Totals default to 0, status to DRAFT."""

    trade_type: str
    company_id: UUID
    trade_date: datetime.date
    status: str = 'DRAFT'
    total_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total_price: Decimal = ZERO
    payment_method: str = ''
    notes: str = ''
    warehouse_id: UUID | None = None

    @classmethod
    def from_dict(cls, data: dict) -> 'TradeMasterInput':
        trade_type = data.get('trade_type')
        if trade_type not in TradeMaster.TradeType.values:
            raise BusinessRuleViolation(detail=f'Unknown trade_type: {trade_type!r}.')
        status = data.get('status') or TradeMaster.StatusChoices.DRAFT
        if status not in TradeMaster.StatusChoices.values:
            raise BusinessRuleViolation(detail=f'Unknown status: {status!r}.')
        company_id = _uuid(data, 'company_id')
        if company_id is None:
            raise BusinessRuleViolation(detail='company_id is required.')
        return cls(
            trade_type=trade_type,
            company_id=company_id,
            trade_date=_date(data, 'trade_date'),
            status=status,
            total_amount=_decimal(data, 'total_amount'),
            tax_amount=_decimal(data, 'tax_amount'),
            total_price=_decimal(data, 'total_price'),
            payment_method=data.get('payment_method') or '',
            notes=data.get('notes') or '',
            warehouse_id=_uuid(data, 'warehouse_id'),
        )

    def model_values(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class TradeLineInput:
    """
    One incoming line.

    id is set when the line already exists (purchase upsert). lot_id is
    the lot a positive SALE line should be allocated from; it is ignored
    for other document types.
    """

    product_id: UUID
    quantity: Decimal
    id: UUID | None = None
    total_weight: Decimal = ZERO
    unit_price: Decimal = ZERO
    supply_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    auction_price: Decimal = ZERO
    purchase_price: Decimal | None = None
    shipper_location: str = ''
    sender: str = ''
    notes: str = ''
    parent_line_id: UUID | None = None
    lot_id: UUID | None = None

    # Fields written to TradeLine as-is.
    LINE_FIELDS = (
        'product_id', 'quantity', 'total_weight', 'unit_price', 'supply_amount',
        'tax_amount', 'total_amount', 'auction_price', 'purchase_price',
        'shipper_location', 'sender', 'notes', 'parent_line_id',
    )

    @classmethod
    def from_dict(cls, data: dict) -> 'TradeLineInput':
        product_id = _uuid(data, 'product_id')
        if product_id is None:
            raise BusinessRuleViolation(detail='product_id is required on every line.')
        if data.get('quantity') in (None, ''):
            raise BusinessRuleViolation(detail='quantity is required on every line.')
        unit_price = _decimal(data, 'unit_price')
        supply_amount = _decimal(data, 'supply_amount')
        return cls(
            id=_uuid(data, 'id'),
            product_id=product_id,
            quantity=_decimal(data, 'quantity'),
            total_weight=_decimal(data, 'total_weight'),
            unit_price=unit_price,
            supply_amount=supply_amount,
            tax_amount=_decimal(data, 'tax_amount'),
            total_amount=_decimal(data, 'total_amount', default=supply_amount),
            auction_price=_decimal(data, 'auction_price', default=unit_price),
            purchase_price=_decimal(data, 'purchase_price', default=None),
            shipper_location=data.get('shipper_location') or '',
            sender=data.get('sender') or data.get('sender_name') or '',
            notes=data.get('notes') or '',
            parent_line_id=_uuid(data, 'parent_line_id'),
            lot_id=_uuid(data, 'lot_id'),
        )

    @property
    def is_return(self) -> bool:
        return self.parent_line_id is not None and self.quantity < 0

    def line_values(self) -> dict:
        return {name: getattr(self, name) for name in self.LINE_FIELDS}


@dataclass
class UpdateResult:
    """Outcome of a document update; needs_rematching lists lines left uncovered."""

    needs_rematching: bool = False
    unmatched_items: list = field(default_factory=list)
