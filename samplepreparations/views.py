from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from mongoengine import connection
from pymongo.errors import PyMongoError

from authentication.decorators import any_authenticated_user
from lims_tracking.error_views import storage_error_response
from lims_tracking.utilities.pagination import get_pagination_params
from tracking import pipelines


# ============= SAMPLE PREPARATION ENDPOINTS =============

@csrf_exempt
@require_http_methods(["GET"])
@any_authenticated_user
def sample_preparation_search(request):
    """
    Search preparation requests with their job, client and specimens
    Query parameters:
    - q: request number, item text, job id, project, client or specimen id
    - jobId, clientName, projectName, specimenId: partial, case-insensitive
    - dateFrom, dateTo: creation date range (inclusive, ISO dates)
    """
    try:
        page, limit, offset = get_pagination_params(request)
        payload = pipelines.search_preparations(
            connection.get_db(), page, limit,
            q=request.GET.get('q', ''),
            job_id=request.GET.get('jobId', ''),
            client_name=request.GET.get('clientName', ''),
            project_name=request.GET.get('projectName', ''),
            specimen_id=request.GET.get('specimenId', ''),
            date_from=request.GET.get('dateFrom', ''),
            date_to=request.GET.get('dateTo', ''),
        )
        return JsonResponse(payload)
    except PyMongoError as e:
        return storage_error_response(e, request.path)
