"""
Inventory — Permissions

@file inventory/permissions.py
"""

from rest_framework.permissions import BasePermission


class CanManageInventory(BasePermission):
    """Read is open to authenticated users; matching and transfers need inventory.change_lot."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if request.method in ('GET', 'HEAD', 'OPTIONS'):
            return True
        return user.is_superuser or user.has_perm('inventory.change_lot')
