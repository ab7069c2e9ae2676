"""
Inventory — Models

Purchase lots and the allocations that fulfil sale lines from them.

A Lot is born from a PURCHASE trade line and may later be split into
fragments (parent_lot) when part of it moves to another warehouse.
remaining_quantity is a stored balance, kept equal to
original_quantity - SUM(allocations.matched_quantity) by
inventory.services; the database enforces 0 <= remaining <= original.

@file inventory/models.py
"""

from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from core.constants import QUANTITY_DECIMAL_PLACES, QUANTITY_MAX_DIGITS
from core.models import BaseModel


class Lot(BaseModel):
    """Stock unit originating from one purchase line."""

    class StatusChoices(models.TextChoices):
        AVAILABLE = 'AVAILABLE', _('Available')
        DEPLETED = 'DEPLETED', _('Depleted')

    trade_line = models.ForeignKey(
        'trades.TradeLine',
        on_delete=models.PROTECT,
        related_name='lots',
        verbose_name=_('purchase line'),
    )
    parent_lot = models.ForeignKey(
        'self',
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='fragments',
        verbose_name=_('split from'),
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='lots',
        verbose_name=_('product'),
    )
    company = models.ForeignKey(
        'catalog.Company',
        on_delete=models.PROTECT,
        related_name='lots',
        verbose_name=_('supplier'),
    )
    purchase_date = models.DateField(_('purchase date'), db_index=True)
    warehouse = models.ForeignKey(
        'catalog.Warehouse',
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='lots',
        verbose_name=_('warehouse'),
    )
    original_quantity = models.DecimalField(
        _('original quantity'),
        max_digits=QUANTITY_MAX_DIGITS, decimal_places=QUANTITY_DECIMAL_PLACES,
    )
    remaining_quantity = models.DecimalField(
        _('remaining quantity'),
        max_digits=QUANTITY_MAX_DIGITS, decimal_places=QUANTITY_DECIMAL_PLACES,
    )
    unit_price = models.DecimalField(_('unit price'), max_digits=15, decimal_places=2, default=0)
    total_weight = models.DecimalField(_('total weight (kg)'), max_digits=15, decimal_places=2, default=0)
    shipper_location = models.CharField(_('shipper location'), max_length=255, blank=True)
    sender = models.CharField(_('sender'), max_length=255, blank=True)
    status = models.CharField(
        _('status'), max_length=10,
        choices=StatusChoices.choices,
        default=StatusChoices.AVAILABLE,
        db_index=True,
    )

    class Meta:
        verbose_name = _('lot')
        verbose_name_plural = _('lots')
        ordering = ['purchase_date', 'created_at']
        indexes = [
            models.Index(fields=['product', 'status', 'purchase_date'], name='lot_product_status_idx'),
            models.Index(fields=['trade_line'], name='lot_trade_line_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(remaining_quantity__gte=0),
                name='lot_remaining_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(remaining_quantity__lte=F('original_quantity')),
                name='lot_remaining_within_original',
            ),
        ]

    def __str__(self):
        return f'Lot {self.pk} ({self.remaining_quantity}/{self.original_quantity})'

    @property
    def is_available(self):
        return self.status == self.StatusChoices.AVAILABLE


class Allocation(BaseModel):
    """
    A quantity of a lot assigned to a sale line.

    Both foreign keys are PROTECT: the service layer restores the lot and
    removes the allocation before either side can be deleted.
    """

    sale_line = models.ForeignKey(
        'trades.TradeLine',
        on_delete=models.PROTECT,
        related_name='allocations',
        verbose_name=_('sale line'),
    )
    lot = models.ForeignKey(
        Lot,
        on_delete=models.PROTECT,
        related_name='allocations',
        verbose_name=_('lot'),
    )
    matched_quantity = models.DecimalField(
        _('matched quantity'),
        max_digits=QUANTITY_MAX_DIGITS, decimal_places=QUANTITY_DECIMAL_PLACES,
    )

    class Meta:
        verbose_name = _('allocation')
        verbose_name_plural = _('allocations')
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['sale_line'], name='alloc_sale_line_idx'),
            models.Index(fields=['lot'], name='alloc_lot_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(matched_quantity__gt=0),
                name='allocation_quantity_positive',
            ),
        ]

    def __str__(self):
        return f'{self.matched_quantity} of lot {self.lot_id} -> line {self.sale_line_id}'


class LotAdjustment(BaseModel):
    """Manual adjustment history for a lot (disposal, loss, correction)."""

    class AdjustmentType(models.TextChoices):
        DISPOSAL = 'DISPOSAL', _('Disposal')
        LOSS = 'LOSS', _('Loss')
        CORRECTION = 'CORRECTION', _('Correction')

    lot = models.ForeignKey(
        Lot,
        on_delete=models.CASCADE,
        related_name='adjustments',
        verbose_name=_('lot'),
    )
    adjustment_type = models.CharField(
        _('adjustment type'), max_length=12,
        choices=AdjustmentType.choices,
    )
    quantity_change = models.DecimalField(
        _('quantity change'),
        max_digits=QUANTITY_MAX_DIGITS, decimal_places=QUANTITY_DECIMAL_PLACES,
    )
    reason = models.CharField(_('reason'), max_length=255, blank=True)

    class Meta:
        verbose_name = _('lot adjustment')
        verbose_name_plural = _('lot adjustments')
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.adjustment_type} {self.quantity_change} lot={self.lot_id}'
