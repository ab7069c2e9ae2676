"""
Core — Exception Handling

Domain exceptions for the trade ledger and the DRF exception handler
that renders them in the standard API error envelope.

Every ledger error carries a machine-readable code (default_code), a
human-readable message (detail) and optional structured data (payload)
so a client can render an actionable dialog without further queries.

@file core/exceptions.py
"""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('tradeledger')


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class LedgerError(APIException):
    """Base for ledger errors; payload holds structured context for the client."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Ledger operation failed.'
    default_code = 'LEDGER_ERROR'
    retryable = False

    def __init__(self, detail=None, code=None, payload=None):
        super().__init__(detail=detail, code=code)
        self.payload = payload or {}


class BusinessRuleViolation(LedgerError):
    """Raised when a business rule is violated at the service layer."""
    default_detail = 'Business rule violation.'
    default_code = 'BUSINESS_RULE_VIOLATION'


class ResourceNotFoundError(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'RESOURCE_NOT_FOUND'


class DuplicateDocumentError(LedgerError):
    """Another non-cancelled document exists for the same counterparty, date and type."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'A document for this counterparty and date already exists.'
    default_code = 'DUPLICATE_DOCUMENT'


class DuplicateNumberError(LedgerError):
    """Two creates derived the same trade number; safe to retry."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Trade number already taken, please retry.'
    default_code = 'DUPLICATE_NUMBER'
    retryable = True


class ReturnLimitExceededError(BusinessRuleViolation):
    default_detail = 'Returned quantity exceeds the original sale quantity.'
    default_code = 'RETURN_LIMIT_EXCEEDED'


class InsufficientStockError(LedgerError):
    """Raised when a guarded decrement finds less remaining stock than requested."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Insufficient stock for this operation.'
    default_code = 'INSUFFICIENT_STOCK'


class CannotDeleteMatchedLineError(BusinessRuleViolation):
    default_detail = 'Cannot remove a purchase line whose stock is already matched.'
    default_code = 'CANNOT_DELETE_MATCHED_LINE'


class SplitLotImmutableError(BusinessRuleViolation):
    default_detail = 'Quantity of a split lot cannot be edited.'
    default_code = 'SPLIT_LOT_IMMUTABLE'


class MatchedLineProductLockedError(BusinessRuleViolation):
    default_detail = 'Product of a matched purchase line cannot be changed.'
    default_code = 'MATCHED_LINE_PRODUCT_LOCKED'


class QuantityBelowMatchedError(BusinessRuleViolation):
    default_detail = 'Quantity cannot be reduced below the matched quantity.'
    default_code = 'QUANTITY_BELOW_MATCHED'


class MatchingExistsError(LedgerError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Stock from this document is already matched to sales.'
    default_code = 'MATCHING_EXISTS'


class UsedInProductionError(LedgerError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Stock from this document was consumed by production.'
    default_code = 'USED_IN_PRODUCTION'


class AuditLockedError(LedgerError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Stock from this document is part of a completed inventory audit.'
    default_code = 'AUDIT_LOCKED'


# ---------------------------------------------------------------------------
# Standard exception handler
# ---------------------------------------------------------------------------

def standard_exception_handler(exc, context):
    """
    Wraps every error response in the standard envelope:
      { "success": false, "errors": {...}, "code": "ERROR_CODE", "data": {...} }
    """
    if isinstance(exc, Http404):
        exc = ResourceNotFoundError()
    elif isinstance(exc, PermissionDenied):
        exc = APIException(detail='Permission denied.', code='PERMISSION_DENIED')
        exc.status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, ValidationError):
        data = {
            'success': False,
            'errors': exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages},
            'code': 'VALIDATION_ERROR',
        }
        return Response(data, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)

    if response is not None:
        errors = {}
        code = getattr(exc, 'default_code', 'ERROR')

        if isinstance(response.data, dict):
            errors = response.data
            code = response.data.pop('code', code) if 'code' in response.data else code
        elif isinstance(response.data, list):
            errors = {'detail': response.data}
        else:
            errors = {'detail': [str(response.data)]}

        response.data = {
            'success': False,
            'errors': errors,
            'code': code,
        }
        if isinstance(exc, LedgerError):
            response.data['data'] = exc.payload
            response.data['retryable'] = exc.retryable

    if response is None:
        logger.exception('Unhandled exception in view: %s', exc)
        return Response(
            {'success': False, 'errors': {'detail': ['Internal server error.']}, 'code': 'INTERNAL_ERROR'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
