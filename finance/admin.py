"""
Finance — Django Admin Configuration

@file finance/admin.py
"""

from django.contrib import admin

from .models import PaymentAllocation, PaymentTransaction


class PaymentAllocationInline(admin.TabularInline):
    model = PaymentAllocation
    extra = 0
    raw_id_fields = ('trade',)


@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    list_display = ('transaction_date', 'company', 'direction', 'amount', 'source_trade')
    list_filter = ('direction', 'transaction_date')
    search_fields = ('company__name', 'notes')
    raw_id_fields = ('source_trade',)
    inlines = [PaymentAllocationInline]
