from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from mongoengine import connection
from pymongo.errors import PyMongoError

from authentication.decorators import any_authenticated_user
from lims_tracking.error_views import error_response, storage_error_response
from lims_tracking.utilities.pagination import get_pagination_params
from . import pipelines
from .lifecycle import STATUSES


@csrf_exempt
@require_http_methods(["GET"])
@any_authenticated_user
def tracking_list(request):
    """
    One row per job with its lifecycle status and milestone dates
    Query params: page, q (same fields as the job search), status
    """
    status = request.GET.get('status', '').strip()
    if status and status not in STATUSES:
        return error_response(f'Unknown status "{status}". Expected one of: {", ".join(STATUSES)}', 400)

    try:
        page, limit, offset = get_pagination_params(request)
        payload = pipelines.list_tracking_rows(
            connection.get_db(), page, limit, request.GET.get('q', ''), status or None
        )
        return JsonResponse(payload)
    except PyMongoError as e:
        return storage_error_response(e, request.path)
