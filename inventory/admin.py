"""
Inventory — Django Admin Configuration

Balances are maintained by the service layer; the admin only displays them.

@file inventory/admin.py
"""

from django.contrib import admin

from .models import Allocation, Lot, LotAdjustment


class AllocationInline(admin.TabularInline):
    model = Allocation
    extra = 0
    can_delete = False
    fields = ('sale_line', 'matched_quantity', 'created_at')
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Lot)
class LotAdmin(admin.ModelAdmin):
    list_display = (
        'product', 'company', 'purchase_date', 'warehouse',
        'original_quantity', 'remaining_quantity', 'status',
    )
    list_filter = ('status', 'warehouse', 'purchase_date')
    search_fields = ('product__name', 'company__name')
    list_select_related = ('product', 'company', 'warehouse')
    readonly_fields = (
        'trade_line', 'parent_lot', 'product', 'company', 'purchase_date', 'warehouse',
        'original_quantity', 'remaining_quantity', 'unit_price', 'total_weight',
        'shipper_location', 'sender', 'status', 'created_at', 'updated_at',
    )
    inlines = [AllocationInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(LotAdjustment)
class LotAdjustmentAdmin(admin.ModelAdmin):
    list_display = ('lot', 'adjustment_type', 'quantity_change', 'reason', 'created_at')
    list_filter = ('adjustment_type',)
    raw_id_fields = ('lot',)
