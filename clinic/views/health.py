import logging

from django.db import DatabaseError, connections
from django.http import JsonResponse
from django.utils import timezone

logger = logging.getLogger(__name__)


def healthz(request):
    """Liveness probe with a database round trip."""
    now = timezone.now().isoformat()
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
    except DatabaseError:
        logger.exception('Health check could not reach the database')
        return JsonResponse({'status': 'Unhealthy', 'timestamp': now}, status=503)
    healthy = bool(row and row[0] == 1)
    return JsonResponse({'status': 'Healthy' if healthy else 'Unhealthy', 'timestamp': now},
                        status=200 if healthy else 503)
