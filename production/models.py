"""
Production — Models

Records of purchase lots consumed by production runs. The ledger only
needs to know whether a lot was consumed; production planning itself
lives elsewhere.

@file production/models.py
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from core.constants import QUANTITY_DECIMAL_PLACES, QUANTITY_MAX_DIGITS
from core.models import BaseModel


class ProductionConsumption(BaseModel):
    production_trade = models.ForeignKey(
        'trades.TradeMaster',
        null=True, blank=True,
        on_delete=models.CASCADE,
        related_name='consumptions',
        verbose_name=_('production document'),
    )
    lot = models.ForeignKey(
        'inventory.Lot',
        on_delete=models.PROTECT,
        related_name='consumptions',
        verbose_name=_('lot'),
    )
    quantity = models.DecimalField(
        _('quantity'),
        max_digits=QUANTITY_MAX_DIGITS, decimal_places=QUANTITY_DECIMAL_PLACES,
    )

    class Meta:
        verbose_name = _('production consumption')
        verbose_name_plural = _('production consumptions')
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.quantity} from lot {self.lot_id}'
