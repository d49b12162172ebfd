"""
Error taxonomy for the pharmacy services and the unified API error envelope.

Every domain error is a DRF ``APIException`` with a stable ``default_code``
so that views can simply let them propagate; ``api_exception_handler``
turns them into ``{"ok": false, "error": {...}}`` responses.
"""
import logging

from django.db import InterfaceError, OperationalError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class PharmacyError(exceptions.APIException):
    """Base class for deterministic pharmacy outcomes."""

    def __init__(self, detail=None, code=None, details=None):
        super().__init__(detail=detail, code=code)
        self.code = code or self.default_code
        self.details = details


class InvalidInput(PharmacyError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request data.'
    default_code = 'invalid_input'


class NotFound(PharmacyError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class ItemNotFound(NotFound):
    default_detail = 'Inventory item not found.'
    default_code = 'item_not_found'

    def __init__(self, item_id=None):
        detail = f'Inventory item not found: {item_id}' if item_id else None
        super().__init__(detail=detail)
        self.item_id = item_id


class DuplicateName(PharmacyError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'An inventory item with this name already exists.'
    default_code = 'duplicate_name'


class InsufficientStock(PharmacyError):
    status_code = status.HTTP_409_CONFLICT
    default_code = 'insufficient_stock'

    def __init__(self, item_name, available: int, requested: int):
        super().__init__(
            detail=f'Insufficient stock for {item_name}. Available: {available}, Requested: {requested}',
            details={'available': available, 'requested': requested},
        )
        self.available = available
        self.requested = requested


class ReferentialConflict(PharmacyError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Cannot delete item. Inventory is linked to existing dispensation records.'
    default_code = 'referential_conflict'


class TransientInfrastructureFailure(PharmacyError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Storage temporarily unavailable. The request was not applied; retry it.'
    default_code = 'transient_failure'


def _error(code, message, status_code, details=None, headers=None):
    body = {'code': code, 'message': message}
    if details is not None:
        body['details'] = details
    return Response({'ok': False, 'error': body}, status=status_code, headers=headers)


def api_exception_handler(exc, context):
    if isinstance(exc, (OperationalError, InterfaceError)):
        logger.error('database unavailable while handling %s', context.get('view'), exc_info=exc)
        exc = TransientInfrastructureFailure()

    if isinstance(exc, PharmacyError):
        return _error(exc.code, str(exc.detail), exc.status_code, exc.details)

    if isinstance(exc, exceptions.ValidationError):
        return _error(InvalidInput.default_code, str(InvalidInput.default_detail), status.HTTP_400_BAD_REQUEST, exc.detail)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view'), exc_info=exc)
        return _error('server_error', 'An internal error occurred. Please try again later.', 500)
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    code = getattr(getattr(exc, 'detail', None), 'code', None) or 'api_error'
    headers = {k: v for k, v in resp.items() if k in ('WWW-Authenticate', 'Retry-After')}
    return _error(code, str(detail), resp.status_code, headers=headers or None)
