"""
Finance — Models

Payment transactions recorded against counterparties. A transaction may
be generated from a trade document (source_trade); it is removed when
that document is deleted.

@file finance/models.py
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel


class PaymentTransaction(BaseModel):

    class DirectionChoices(models.TextChoices):
        RECEIPT = 'RECEIPT', _('Receipt')
        PAYMENT = 'PAYMENT', _('Payment')

    company = models.ForeignKey(
        'catalog.Company',
        on_delete=models.PROTECT,
        related_name='payments',
        verbose_name=_('company'),
    )
    transaction_date = models.DateField(_('transaction date'))
    direction = models.CharField(
        _('direction'), max_length=10,
        choices=DirectionChoices.choices,
    )
    amount = models.DecimalField(_('amount'), max_digits=15, decimal_places=2)
    payment_method = models.CharField(_('payment method'), max_length=30, blank=True)
    source_trade = models.ForeignKey(
        'trades.TradeMaster',
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name='source_payments',
        verbose_name=_('source document'),
    )
    notes = models.CharField(_('notes'), max_length=255, blank=True)

    class Meta:
        verbose_name = _('payment transaction')
        verbose_name_plural = _('payment transactions')
        ordering = ['-transaction_date']

    def __str__(self):
        return f'{self.direction} {self.amount} {self.company_id}'


class PaymentAllocation(BaseModel):
    """Part of a payment applied to a trade document."""

    payment = models.ForeignKey(
        PaymentTransaction,
        on_delete=models.CASCADE,
        related_name='allocations',
        verbose_name=_('payment'),
    )
    trade = models.ForeignKey(
        'trades.TradeMaster',
        on_delete=models.CASCADE,
        related_name='payment_allocations',
        verbose_name=_('trade'),
    )
    amount = models.DecimalField(_('amount'), max_digits=15, decimal_places=2)

    class Meta:
        verbose_name = _('payment allocation')
        verbose_name_plural = _('payment allocations')

    def __str__(self):
        return f'{self.amount} -> {self.trade_id}'
