"""
Trades — Permissions

Reading documents is open to authenticated users; writing requires the
matching Django model permission on TradeMaster (or superuser).

@file trades/permissions.py
"""

from rest_framework.permissions import BasePermission

WRITE_PERMS = {
    'POST': 'trades.add_trademaster',
    'PUT': 'trades.change_trademaster',
    'PATCH': 'trades.change_trademaster',
    'DELETE': 'trades.delete_trademaster',
}


class CanModifyTrades(BasePermission):

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if request.method in ('GET', 'HEAD', 'OPTIONS'):
            return True
        if user.is_superuser:
            return True
        perm = WRITE_PERMS.get(request.method)
        return perm is not None and user.has_perm(perm)
