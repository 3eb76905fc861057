"""
Error taxonomy and the unified API exception handler.

Every error leaves the API as ``{'ok': False, 'error': {'code', 'message'}}``.
Domain errors carry their own ``code``; DRF's exceptions are mapped by
status.  Anything else is logged and answered with a generic 500.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ClinicError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = 'VALIDATION_ERROR'
    default_detail = 'Invalid request.'

    def __init__(self, message=None):
        super().__init__(detail=message or self.default_detail, code=self.error_code)


class ValidationFailed(ClinicError):
    pass


class InvalidCredentials(ClinicError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = 'AUTH_INVALID_CREDENTIALS'
    default_detail = 'Invalid email or password.'


class InvalidToken(ClinicError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = 'AUTH_INVALID_TOKEN'
    default_detail = 'Token is invalid or expired.'


class AccountForbidden(ClinicError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = 'AUTH_FORBIDDEN'
    default_detail = 'User not found or inactive.'


class Forbidden(ClinicError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = 'FORBIDDEN'
    default_detail = 'Access denied.'


class ResourceNotFound(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = 'RESOURCE_NOT_FOUND'
    default_detail = 'Resource not found.'


class ResourceConflict(ClinicError):
    status_code = status.HTTP_409_CONFLICT
    error_code = 'RESOURCE_CONFLICT'
    default_detail = 'Resource already exists.'


class SlotUnavailable(ClinicError):
    status_code = status.HTTP_409_CONFLICT
    error_code = 'SLOT_UNAVAILABLE'
    default_detail = 'Time slot unavailable.'


STATUS_CODES = {
    400: 'VALIDATION_ERROR',
    401: 'AUTH_INVALID_TOKEN',
    403: 'FORBIDDEN',
    404: 'RESOURCE_NOT_FOUND',
    405: 'METHOD_NOT_ALLOWED',
    409: 'RESOURCE_CONFLICT',
    415: 'UNSUPPORTED_MEDIA_TYPE',
    429: 'RATE_LIMITED',
}


def error_body(code: str, message) -> dict:
    return {'ok': False, 'error': {'code': code, 'message': message}}


def _first_message(data) -> str:
    """Collapse DRF error data into one readable line."""
    if isinstance(data, dict):
        if 'detail' in data:
            return _first_message(data['detail'])
        for field, value in data.items():
            msg = _first_message(value)
            return msg if field == 'non_field_errors' else f'{field}: {msg}'
        return ''
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else ''
    return str(data)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.error('Unhandled error in %s', view.__class__.__name__ if view else '-', exc_info=exc)
        return Response(
            error_body('INTERNAL_SERVER_ERROR', 'An internal server error occurred.'),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    if isinstance(exc, ClinicError):
        code = exc.error_code
    else:
        code = STATUS_CODES.get(resp.status_code, 'API_ERROR')
    resp.data = error_body(code, _first_message(resp.data))
    return resp
