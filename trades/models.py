"""
Trades — Models

Trade documents (purchase, sale, production) with their line items.
A purchase line owns one or more inventory lots; a sale line is fulfilled
from lots through allocations. Both side effects are driven by
trades.services.TradeService, never by model hooks.

@file trades/models.py
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from core.constants import QUANTITY_DECIMAL_PLACES, QUANTITY_MAX_DIGITS
from core.models import BaseModel


class TradeMaster(BaseModel):
    """
    Trade document header.

    trade_number is rendered as {PREFIX}-{YYYYMMDD}-{seq} and unique across
    the ledger; at most one non-cancelled document may exist per
    (company, trade_date, trade_type).
    """

    class TradeType(models.TextChoices):
        PURCHASE = 'PURCHASE', _('Purchase')
        SALE = 'SALE', _('Sale')
        PRODUCTION = 'PRODUCTION', _('Production')

    class StatusChoices(models.TextChoices):
        DRAFT = 'DRAFT', _('Draft')
        CONFIRMED = 'CONFIRMED', _('Confirmed')
        CANCELLED = 'CANCELLED', _('Cancelled')

    trade_number = models.CharField(_('trade number'), max_length=32, unique=True)
    trade_type = models.CharField(
        _('trade type'), max_length=10,
        choices=TradeType.choices, db_index=True,
    )
    company = models.ForeignKey(
        'catalog.Company',
        on_delete=models.PROTECT,
        related_name='trades',
        verbose_name=_('company'),
    )
    trade_date = models.DateField(_('trade date'), db_index=True)
    status = models.CharField(
        _('status'), max_length=10,
        choices=StatusChoices.choices,
        default=StatusChoices.DRAFT,
        db_index=True,
    )
    total_amount = models.DecimalField(
        _('supply amount'), max_digits=15, decimal_places=2, default=0,
    )
    tax_amount = models.DecimalField(
        _('tax amount'), max_digits=15, decimal_places=2, default=0,
    )
    total_price = models.DecimalField(
        _('total price'), max_digits=15, decimal_places=2, default=0,
    )
    payment_method = models.CharField(_('payment method'), max_length=30, blank=True)
    notes = models.TextField(_('notes'), blank=True)
    warehouse = models.ForeignKey(
        'catalog.Warehouse',
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='trades',
        verbose_name=_('warehouse'),
    )

    class Meta:
        verbose_name = _('trade document')
        verbose_name_plural = _('trade documents')
        ordering = ['-trade_date', '-trade_number']
        indexes = [
            models.Index(fields=['company', 'trade_date', 'trade_type'], name='trade_company_date_type_idx'),
            models.Index(fields=['trade_type', 'trade_date'], name='trade_type_date_idx'),
        ]

    def __str__(self):
        return f'{self.trade_number} ({self.trade_type})'

    @property
    def is_purchase(self):
        return self.trade_type == self.TradeType.PURCHASE

    @property
    def is_sale(self):
        return self.trade_type == self.TradeType.SALE


class TradeLine(BaseModel):
    """
    Line item of a trade document.

    quantity is signed: a negative quantity with parent_line set is a return
    against that line, capped by the parent's absolute quantity.
    """

    class MatchingStatus(models.TextChoices):
        UNMATCHED = 'UNMATCHED', _('Unmatched')
        PARTIAL = 'PARTIAL', _('Partially matched')
        MATCHED = 'MATCHED', _('Matched')

    trade = models.ForeignKey(
        TradeMaster,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('trade'),
    )
    seq_no = models.PositiveIntegerField(_('sequence'))
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='trade_lines',
        verbose_name=_('product'),
    )
    quantity = models.DecimalField(
        _('quantity'), max_digits=QUANTITY_MAX_DIGITS, decimal_places=QUANTITY_DECIMAL_PLACES,
    )
    total_weight = models.DecimalField(
        _('total weight (kg)'), max_digits=15, decimal_places=2, default=0,
    )
    unit_price = models.DecimalField(_('unit price'), max_digits=15, decimal_places=2, default=0)
    supply_amount = models.DecimalField(_('supply amount'), max_digits=15, decimal_places=2, default=0)
    tax_amount = models.DecimalField(_('tax amount'), max_digits=15, decimal_places=2, default=0)
    total_amount = models.DecimalField(_('line amount'), max_digits=15, decimal_places=2, default=0)
    auction_price = models.DecimalField(_('auction price'), max_digits=15, decimal_places=2, default=0)
    purchase_price = models.DecimalField(
        _('purchase price'), max_digits=15, decimal_places=2,
        null=True, blank=True,
        help_text=_('Cost basis carried for margin reporting'),
    )
    shipper_location = models.CharField(_('shipper location'), max_length=255, blank=True)
    sender = models.CharField(_('sender'), max_length=255, blank=True)
    notes = models.CharField(_('notes'), max_length=500, blank=True)
    parent_line = models.ForeignKey(
        'self',
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='returns',
        verbose_name=_('returned line'),
    )
    matching_status = models.CharField(
        _('matching status'), max_length=10,
        choices=MatchingStatus.choices,
        default=MatchingStatus.UNMATCHED,
        db_index=True,
    )

    class Meta:
        verbose_name = _('trade line')
        verbose_name_plural = _('trade lines')
        ordering = ['trade', 'seq_no']
        indexes = [
            models.Index(fields=['trade', 'seq_no'], name='tradeline_trade_seq_idx'),
            models.Index(fields=['product'], name='tradeline_product_idx'),
        ]

    def __str__(self):
        return f'{self.trade_id} #{self.seq_no} {self.product_id} x {self.quantity}'

    @property
    def is_return(self):
        return self.parent_line_id is not None and self.quantity < 0
