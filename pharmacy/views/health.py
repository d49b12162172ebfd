import logging

from django.db import connections, DatabaseError
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def healthz(request):
    conn = connections['default']
    try:
        with conn.cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
    except DatabaseError as e:
        logger.error('health check failed: %s', e)
        return JsonResponse({'ok': False, 'error': {'code': 'transient_failure', 'message': str(e)}}, status=503)
    return JsonResponse({'ok': True, 'db': bool(row and row[0] == 1), 'vendor': conn.vendor})
