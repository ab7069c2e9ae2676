"""
Catalog — Model Tests

@file catalog/tests/test_models.py
"""

from decimal import Decimal

import pytest

from tests.factories import CompanyFactory, ProductFactory


@pytest.mark.django_db
class TestProductDisplayName:
    def test_weight_and_grade(self):
        product = ProductFactory(name='Apple', weight=Decimal('5.00'), grade='Premium')
        assert product.display_name == 'Apple 5kg (Premium)'

    def test_fractional_weight(self):
        product = ProductFactory(name='Pear', weight=Decimal('7.50'), grade='')
        assert product.display_name == 'Pear 7.5kg'

    def test_name_only(self):
        product = ProductFactory(name='Tangerine', weight=None, grade='')
        assert str(product) == 'Tangerine'


@pytest.mark.django_db
def test_company_str():
    assert str(CompanyFactory(name='Garak Auction House')) == 'Garak Auction House'
