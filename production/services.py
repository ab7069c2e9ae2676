"""
Production — Service Layer

@file production/services.py
"""

from collections.abc import Iterable

from .models import ProductionConsumption


class ProductionService:

    @staticmethod
    def consumed_lot_ids(lot_ids: Iterable) -> set:
        """Subset of lot_ids that production has drawn from."""
        return set(
            ProductionConsumption.objects
            .filter(lot_id__in=list(lot_ids))
            .values_list('lot_id', flat=True)
            .distinct()
        )
