"""
Core — Audit Service

Writes audit log entries on behalf of every app. Trade, allocation and
lot writes call AuditService.log inside their own transaction, so a
rolled-back operation leaves no audit trace.

require_atomic guards the helpers other apps call from inside the trade
engine; they join the caller's transaction instead of opening one.

@file core/services.py
"""

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from django.db import transaction
from django.forms.models import model_to_dict

from core.constants import AUDIT_ACTION_UPDATE
from core.models import AuditLog

logger = logging.getLogger('tradeledger')

# Bookkeeping columns left out of snapshots.
SNAPSHOT_EXCLUDE = ('created_by', 'updated_by')


def _plain(value):
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [str(v.pk) if hasattr(v, 'pk') else _plain(v) for v in value]
    return str(value)


def require_atomic():
    """Raise unless the caller already holds a transaction."""
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError('ledger helpers must run inside transaction.atomic()')


class AuditService:
    """Centralised audit logging for every write operation."""

    @staticmethod
    def log(
        *,
        actor,
        action: str,
        model_name: str,
        object_id: str,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> AuditLog:
        """
        Record one audit entry. For UPDATE entries carrying both sides,
        only keys whose value changed are stored.
        """
        if action == AUDIT_ACTION_UPDATE and old_values is not None and new_values is not None:
            changed = {k for k in old_values.keys() | new_values.keys() if old_values.get(k) != new_values.get(k)}
            old_values = {k: v for k, v in old_values.items() if k in changed}
            new_values = {k: v for k, v in new_values.items() if k in changed}
        if actor is not None and not getattr(actor, 'is_authenticated', False):
            actor = None
        return AuditLog.objects.create(
            actor=actor,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            old_values=old_values,
            new_values=new_values,
        )

    @staticmethod
    def snapshot(instance, fields=None) -> dict[str, Any]:
        """
        JSON-safe dict of a model instance: decimals and UUIDs as strings,
        dates ISO-formatted, actor columns dropped.
        """
        data = model_to_dict(instance, fields=fields, exclude=SNAPSHOT_EXCLUDE)
        return {key: _plain(value) for key, value in data.items()}
