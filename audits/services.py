"""
Audits — Service Layer

Queries the trade ledger runs before touching lots that may have been
counted by an inventory audit.

@file audits/services.py
"""

import logging
from collections.abc import Iterable

from core.services import require_atomic

from .models import InventoryAudit, InventoryAuditItem

logger = logging.getLogger('tradeledger')


def _lot_ids_in(lot_ids: Iterable, status: str) -> set:
    return set(
        InventoryAuditItem.objects
        .filter(lot_id__in=list(lot_ids), audit__status=status)
        .values_list('lot_id', flat=True)
        .distinct()
    )


class AuditSessionService:

    @staticmethod
    def completed_lot_ids(lot_ids: Iterable) -> set:
        return _lot_ids_in(lot_ids, InventoryAudit.StatusChoices.COMPLETED)

    @staticmethod
    def in_progress_lot_ids(lot_ids: Iterable) -> set:
        return _lot_ids_in(lot_ids, InventoryAudit.StatusChoices.IN_PROGRESS)

    @staticmethod
    def detach_in_progress(lot_ids: Iterable) -> int:
        """Remove items of open audit sessions that point at these lots."""
        require_atomic()
        counted = AuditSessionService.in_progress_lot_ids(lot_ids)
        if not counted:
            return 0
        deleted, _ = InventoryAuditItem.objects.filter(
            lot_id__in=counted,
            audit__status=InventoryAudit.StatusChoices.IN_PROGRESS,
        ).delete()
        logger.info('Detached %s in-progress audit item(s) from %s lot(s)', deleted, len(counted))
        return deleted
