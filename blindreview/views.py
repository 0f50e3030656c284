from django.http import JsonResponse
from django.db import connection
import logging

logger = logging.getLogger(__name__)

def custom_404(request, exception):
    """Custom 404 error handler"""
    logger.warning(f'404 error for URL: {request.path} from IP: {request.META.get("REMOTE_ADDR", "unknown")}')
    return JsonResponse({'success': False, 'error': 'not_found', 'message': 'Not found.'}, status=404)

def custom_500(request):
    """Custom 500 error handler"""
    logger.error(f'500 error for URL: {request.path} from IP: {request.META.get("REMOTE_ADDR", "unknown")}')
    return JsonResponse({'success': False, 'error': 'server_error', 'message': 'Internal server error.'}, status=500)

def custom_403(request, exception):
    """Custom 403 error handler"""
    logger.warning(f'403 error for URL: {request.path} from IP: {request.META.get("REMOTE_ADDR", "unknown")}')
    return JsonResponse({'success': False, 'error': 'not_authorized', 'message': 'Forbidden.'}, status=403)

def health_check(request):
    """Health check endpoint for monitoring"""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except Exception:
        logger.exception('Health check could not reach the database')
        return JsonResponse({'status': 'error', 'database': False}, status=503)
    return JsonResponse({'status': 'ok', 'database': True})
