"""
Audits — Models

Physical inventory count sessions. A COMPLETED session freezes the lots
it counted; an IN_PROGRESS session only references them.

@file audits/models.py
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from core.constants import QUANTITY_DECIMAL_PLACES, QUANTITY_MAX_DIGITS
from core.models import BaseModel


class InventoryAudit(BaseModel):

    class StatusChoices(models.TextChoices):
        IN_PROGRESS = 'IN_PROGRESS', _('In progress')
        COMPLETED = 'COMPLETED', _('Completed')

    audit_date = models.DateField(_('audit date'))
    warehouse = models.ForeignKey(
        'catalog.Warehouse',
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='audits',
        verbose_name=_('warehouse'),
    )
    status = models.CharField(
        _('status'), max_length=12,
        choices=StatusChoices.choices,
        default=StatusChoices.IN_PROGRESS,
        db_index=True,
    )
    notes = models.TextField(_('notes'), blank=True)

    class Meta:
        verbose_name = _('inventory audit')
        verbose_name_plural = _('inventory audits')
        ordering = ['-audit_date']

    def __str__(self):
        return f'Audit {self.audit_date} ({self.status})'


class InventoryAuditItem(BaseModel):
    audit = models.ForeignKey(
        InventoryAudit,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('audit'),
    )
    lot = models.ForeignKey(
        'inventory.Lot',
        on_delete=models.PROTECT,
        related_name='audit_items',
        verbose_name=_('lot'),
    )
    expected_quantity = models.DecimalField(
        _('expected quantity'),
        max_digits=QUANTITY_MAX_DIGITS, decimal_places=QUANTITY_DECIMAL_PLACES,
    )
    counted_quantity = models.DecimalField(
        _('counted quantity'),
        max_digits=QUANTITY_MAX_DIGITS, decimal_places=QUANTITY_DECIMAL_PLACES,
        null=True, blank=True,
    )

    class Meta:
        verbose_name = _('inventory audit item')
        verbose_name_plural = _('inventory audit items')

    def __str__(self):
        return f'{self.audit_id} / lot {self.lot_id}'
