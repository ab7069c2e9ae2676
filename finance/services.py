"""
Finance — Service Layer

@file finance/services.py
"""

import logging

from core.services import require_atomic

from .models import PaymentAllocation, PaymentTransaction

logger = logging.getLogger('tradeledger')


class PaymentService:

    @staticmethod
    def delete_for_trade(trade) -> int:
        """
        Delete payment transactions generated from a trade document,
        together with their allocations. Returns the number of
        transactions removed. Runs inside the caller's transaction.
        """
        require_atomic()
        payments = PaymentTransaction.objects.filter(source_trade=trade)
        payment_ids = list(payments.values_list('pk', flat=True))
        if not payment_ids:
            return 0
        PaymentAllocation.objects.filter(payment_id__in=payment_ids).delete()
        PaymentTransaction.objects.filter(pk__in=payment_ids).delete()
        logger.info('Deleted %s payment(s) generated from trade %s', len(payment_ids), trade.pk)
        return len(payment_ids)
