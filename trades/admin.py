"""
Trades — Django Admin Configuration

Documents are read-only here: edits must go through TradeService so lots
and allocations stay consistent.

@file trades/admin.py
"""

from django.contrib import admin

from .models import TradeLine, TradeMaster


class TradeLineInline(admin.TabularInline):
    model = TradeLine
    extra = 0
    can_delete = False
    fields = ('seq_no', 'product', 'quantity', 'unit_price', 'total_amount', 'parent_line', 'matching_status')
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(TradeMaster)
class TradeMasterAdmin(admin.ModelAdmin):
    list_display = ('trade_number', 'trade_type', 'company', 'trade_date', 'status', 'total_price')
    list_filter = ('trade_type', 'status', 'trade_date')
    search_fields = ('trade_number', 'company__name')
    date_hierarchy = 'trade_date'
    list_select_related = ('company',)
    readonly_fields = (
        'trade_number', 'trade_type', 'company', 'trade_date', 'status',
        'total_amount', 'tax_amount', 'total_price', 'payment_method',
        'notes', 'warehouse', 'created_at', 'updated_at',
    )
    inlines = [TradeLineInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
