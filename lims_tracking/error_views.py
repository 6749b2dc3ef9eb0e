"""
JSON error responses for the tracking API
Django's HTML error pages are replaced by the same envelope the views use.
"""
import logging

from django.http import JsonResponse

logger = logging.getLogger(__name__)


def error_response(message, status):
    return JsonResponse({
        'status': 'error',
        'message': message
    }, status=status)


def lims_error_response(error):
    """Response for a LimsError, using the status code the exception carries"""
    return error_response(str(error), error.status_code)


def storage_error_response(error, path=''):
    """Storage failures are not recoverable inside a request; log them and fail the whole request"""
    logger.exception('Storage failure while serving %s: %s', path or 'request', error)
    return error_response('Storage unavailable', 500)


def handler404(request, exception=None):
    """Handle 404 errors with JSON response"""
    return JsonResponse({
        'status': 'error',
        'code': 404,
        'message': 'Not Found',
        'path': request.path
    }, status=404)


def handler500(request):
    """Handle 500 errors with JSON response"""
    return JsonResponse({
        'status': 'error',
        'code': 500,
        'message': 'Internal Server Error'
    }, status=500)


def handler403(request, exception=None):
    return JsonResponse({
        'status': 'error',
        'code': 403,
        'message': 'Forbidden'
    }, status=403)


def handler400(request, exception=None):
    return JsonResponse({
        'status': 'error',
        'code': 400,
        'message': 'Bad Request'
    }, status=400)
