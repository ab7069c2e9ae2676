"""
Inventory — Celery Tasks

Periodic consistency check of stored lot balances.

@file inventory/tasks.py
"""

import logging

from celery import shared_task

logger = logging.getLogger('tradeledger')


@shared_task(name='inventory.verify_lot_balances')
def verify_lot_balances_task():
    """
    Daily task: report lots whose remaining_quantity no longer equals
    original_quantity minus their allocations. Nothing is repaired
    automatically; offending lots are logged for an operator.
    """
    from .services import LotService

    lots = LotService.find_inconsistent_lots()
    for lot in lots:
        logger.error(
            'Lot %s (%s) out of balance: remaining=%s expected=%s',
            lot.pk, lot.product.display_name, lot.remaining_quantity, lot.expected_remaining,
        )
    logger.info('verify_lot_balances_task completed: %d inconsistent lot(s).', len(lots))
    return {'inconsistent_count': len(lots), 'lot_ids': [str(lot.pk) for lot in lots]}
