"""
Core — Constants

Shared values used across apps: audit action names, pagination limits,
quantity precision.

@file core/constants.py
"""

from decimal import Decimal

AUDIT_ACTION_CREATE = 'CREATE'
AUDIT_ACTION_UPDATE = 'UPDATE'
AUDIT_ACTION_DELETE = 'DELETE'
AUDIT_ACTION_MATCH = 'MATCH'
AUDIT_ACTION_UNMATCH = 'UNMATCH'
AUDIT_ACTION_TRANSFER = 'TRANSFER'

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 200

# Quantities and money are DECIMAL(15,2) throughout the ledger.
QUANTITY_MAX_DIGITS = 15
QUANTITY_DECIMAL_PLACES = 2
ZERO = Decimal('0')
