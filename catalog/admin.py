"""
Catalog — Django Admin Configuration

@file catalog/admin.py
"""

from django.contrib import admin

from .models import Company, Product, Warehouse


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'company_type', 'is_active')
    list_filter = ('company_type', 'is_active')
    search_fields = ('code', 'name')
    ordering = ('name',)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'grade', 'weight', 'unit', 'is_active')
    list_filter = ('is_active', 'unit')
    search_fields = ('code', 'name', 'grade')
    ordering = ('name', 'grade')


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'is_active')
    search_fields = ('code', 'name')
