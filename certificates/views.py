from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from mongoengine import connection
from pymongo.errors import PyMongoError

from authentication.decorators import any_authenticated_user
from lims_tracking.error_views import storage_error_response
from lims_tracking.utilities.pagination import SMALL_PAGE_SIZE, get_pagination_params
from tracking import pipelines


# ============= CERTIFICATE ENDPOINTS =============

@csrf_exempt
@require_http_methods(["GET"])
@any_authenticated_user
def certificate_list(request):
    """
    List certificates with the request number of their preparation
    Query params: page, q (certificate_id, customer, PO, tested/reviewed by)
    """
    try:
        page, limit, offset = get_pagination_params(request, SMALL_PAGE_SIZE)
        payload = pipelines.list_certificates(connection.get_db(), page, limit, request.GET.get('q', ''))
        return JsonResponse(payload)
    except PyMongoError as e:
        return storage_error_response(e, request.path)
