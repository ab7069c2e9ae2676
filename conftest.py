"""
TradeLedger — Root conftest for pytest

Shared fixtures available to all test modules.

@file conftest.py
"""

import datetime
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from tests.factories import (
    CustomerFactory,
    ProductFactory,
    SuperuserFactory,
    SupplierFactory,
    UserFactory,
)


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Active user with default password TestPass2026!"""
    return UserFactory()


@pytest.fixture
def admin_user(db):
    """Superuser with default password TestPass2026!"""
    return SuperuserFactory()


@pytest.fixture
def authenticated_client(user):
    """API client authenticated as a regular user."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def admin_client(admin_user):
    """API client authenticated as a superuser."""
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def supplier(db):
    return SupplierFactory(name='Garak Auction House')


@pytest.fixture
def customer(db):
    return CustomerFactory(name='Seoul Fresh Mart')


@pytest.fixture
def product(db):
    """Apple 5kg (Premium)."""
    return ProductFactory(name='Apple', weight=Decimal('5.00'), grade='Premium')


@pytest.fixture
def trade_date():
    return datetime.date(2026, 3, 2)
