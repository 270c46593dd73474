"""
Response envelope and the project-wide DRF exception handler.

Every API response has the shape ``{success, data, error}`` where
``error`` is ``{code, message}`` or ``None``.
"""
import logging

from django.conf import settings
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

from .errors import ClinicError

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = 'An unexpected error occurred. Please try again later.'

# DRF exception class -> envelope code
DRF_ERROR_CODES = (
    (exceptions.ValidationError, 'VALIDATION_ERROR'),
    (exceptions.NotAuthenticated, 'UNAUTHORIZED'),
    (exceptions.AuthenticationFailed, 'UNAUTHORIZED'),
    (exceptions.PermissionDenied, 'FORBIDDEN'),
    (exceptions.NotFound, 'NOT_FOUND'),
    (exceptions.MethodNotAllowed, 'METHOD_NOT_ALLOWED'),
    (exceptions.Throttled, 'RATE_LIMITED'),
    (exceptions.ParseError, 'INVALID_REQUEST'),
    (exceptions.UnsupportedMediaType, 'INVALID_REQUEST'),
)


def envelope(data=None, *, code: str | None = None, message=None) -> dict:
    if code is None:
        return {'success': True, 'data': data, 'error': None}
    return {'success': False, 'data': None, 'error': {'code': code, 'message': message}}


def api_response(data=None, status_code: int = status.HTTP_200_OK) -> Response:
    """Wrap successful payloads in the standard envelope."""
    return Response(envelope(data), status=status_code)


def error_response(code: str, message, status_code: int) -> Response:
    return Response(envelope(code=code, message=message), status=status_code)


def server_error_message(exc: Exception) -> str:
    return str(exc) if settings.DEBUG else SERVER_ERROR_MESSAGE


def _validation_message(detail):
    # Flatten {"field": ["msg"]} into "field: msg" for clients that only show text
    if isinstance(detail, dict):
        parts = []
        for field, errors in detail.items():
            errors = errors if isinstance(errors, list) else [errors]
            text = '; '.join(str(e) for e in errors)
            parts.append(text if field == 'non_field_errors' else f'{field}: {text}')
        return ' '.join(parts)
    if isinstance(detail, list):
        return '; '.join(str(e) for e in detail)
    return str(detail)


def api_exception_handler(exc, context):
    if isinstance(exc, ClinicError):
        set_rollback()
        return error_response(exc.kind.value, exc.message, exc.status_code)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        request = context.get('request')
        logger.exception('Unhandled error on %s %s', getattr(request, 'method', '-'), getattr(request, 'path', '-'))
        set_rollback()
        return error_response('SERVER_ERROR', server_error_message(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

    code = 'API_ERROR'
    for exc_class, exc_code in DRF_ERROR_CODES:
        if isinstance(exc, exc_class):
            code = exc_code
            break

    if isinstance(exc, exceptions.ValidationError):
        message = _validation_message(exc.detail)
    elif isinstance(resp.data, dict) and 'detail' in resp.data:
        message = str(resp.data['detail'])
    else:
        message = str(resp.data)

    wrapped = error_response(code, message, resp.status_code)
    for header in ('WWW-Authenticate', 'Retry-After'):
        if header in resp:
            wrapped[header] = resp[header]
    return wrapped
