"""
Audits — Django Admin Configuration

@file audits/admin.py
"""

from django.contrib import admin

from .models import InventoryAudit, InventoryAuditItem


class InventoryAuditItemInline(admin.TabularInline):
    model = InventoryAuditItem
    extra = 0
    raw_id_fields = ('lot',)


@admin.register(InventoryAudit)
class InventoryAuditAdmin(admin.ModelAdmin):
    list_display = ('audit_date', 'warehouse', 'status')
    list_filter = ('status',)
    inlines = [InventoryAuditItemInline]
