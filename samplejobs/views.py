from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from mongoengine import connection
from pymongo.errors import PyMongoError

from authentication.decorators import any_authenticated_user
from lims_tracking.error_views import lims_error_response, storage_error_response
from lims_tracking.exceptions import LimsError
from lims_tracking.utilities.pagination import get_pagination_params
from tracking import pipelines


# ============= JOB ENDPOINTS =============

@csrf_exempt
@require_http_methods(["GET"])
@any_authenticated_user
def job_list(request):
    """
    List jobs, newest first, with client name and sample count
    Query params: page, q (matches job_id, project_name, received_by, end_user)
    """
    try:
        page, limit, offset = get_pagination_params(request)
        payload = pipelines.list_jobs(connection.get_db(), page, limit, request.GET.get('q', ''))
        return JsonResponse(payload)
    except PyMongoError as e:
        return storage_error_response(e, request.path)


@csrf_exempt
@require_http_methods(["GET"])
@any_authenticated_user
def job_complete_info(request, job_ref):
    """
    Job with every active sample lot, test method names and lifecycle status
    job_ref is the job's ObjectId or its readable job_id
    """
    try:
        payload = pipelines.job_complete_info(connection.get_db(), job_ref)
        return JsonResponse(payload)
    except LimsError as e:
        return lims_error_response(e)
    except PyMongoError as e:
        return storage_error_response(e, request.path)
