"""
Production — Django Admin Configuration

@file production/admin.py
"""

from django.contrib import admin

from .models import ProductionConsumption


@admin.register(ProductionConsumption)
class ProductionConsumptionAdmin(admin.ModelAdmin):
    list_display = ('lot', 'quantity', 'production_trade', 'created_at')
    raw_id_fields = ('lot', 'production_trade')
    list_select_related = ('production_trade',)
