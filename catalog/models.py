"""
Catalog — Models

Reference data the trade ledger points at: counterparties (suppliers and
customers), products and warehouses. The ledger treats them as opaque
foreign keys; maintenance screens live outside this project.

@file catalog/models.py
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel


class Company(BaseModel):
    """A trading counterparty: auction house / supplier, customer, or both."""

    class TypeChoices(models.TextChoices):
        SUPPLIER = 'SUPPLIER', _('Supplier')
        CUSTOMER = 'CUSTOMER', _('Customer')
        BOTH = 'BOTH', _('Supplier & customer')

    name = models.CharField(_('name'), max_length=255)
    code = models.CharField(_('code'), max_length=20, unique=True)
    company_type = models.CharField(
        _('type'), max_length=10,
        choices=TypeChoices.choices,
        default=TypeChoices.BOTH,
        db_index=True,
    )
    is_active = models.BooleanField(_('active'), default=True)

    class Meta:
        verbose_name = _('company')
        verbose_name_plural = _('companies')
        ordering = ['name']

    def __str__(self):
        return self.name


class Product(BaseModel):
    """A tradable produce item, e.g. 'Apple 5kg (Premium)'."""

    name = models.CharField(_('name'), max_length=255)
    code = models.CharField(_('code'), max_length=30, unique=True)
    grade = models.CharField(_('grade'), max_length=50, blank=True)
    weight = models.DecimalField(
        _('weight (kg)'), max_digits=10, decimal_places=2,
        null=True, blank=True,
        help_text=_('Nominal weight per unit'),
    )
    unit = models.CharField(_('unit'), max_length=20, default='box')
    is_active = models.BooleanField(_('active'), default=True)

    class Meta:
        verbose_name = _('product')
        verbose_name_plural = _('products')
        ordering = ['name', 'grade']

    def __str__(self):
        return self.display_name

    @property
    def display_name(self):
        """Name with weight and grade, e.g. 'Apple 5kg (Premium)'."""
        label = self.name
        if self.weight:
            weight = self.weight.normalize()
            label += f' {weight:f}kg'
        if self.grade:
            label += f' ({self.grade})'
        return label


class Warehouse(BaseModel):
    name = models.CharField(_('name'), max_length=100)
    code = models.CharField(_('code'), max_length=20, unique=True)
    is_active = models.BooleanField(_('active'), default=True)

    class Meta:
        verbose_name = _('warehouse')
        verbose_name_plural = _('warehouses')
        ordering = ['name']

    def __str__(self):
        return self.name
