import logging
import time

from django.http import JsonResponse

from .exceptions import envelope, server_error_message

logger = logging.getLogger(__name__)


def client_ip(request) -> str:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '') or '-'


class RequestLoggingMiddleware:
    """Log every request on entry and its status and duration on exit."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        ip = client_ip(request)
        logger.info('HTTP %s %s started from %s', request.method, request.path, ip)
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(level, 'HTTP %s %s responded %s in %.1f ms',
                   request.method, request.path, response.status_code, elapsed_ms)
        return response


class UnhandledExceptionMiddleware:
    """Return the JSON envelope for errors raised outside DRF views."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not request.path.startswith('/api/'):
            return None
        logger.exception('Unhandled exception on %s %s', request.method, request.path)
        return JsonResponse(
            envelope(code='SERVER_ERROR', message=server_error_message(exception)),
            status=500,
        )
