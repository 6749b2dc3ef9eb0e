import json

from bson import ObjectId
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from mongoengine import connection
from mongoengine.errors import NotUniqueError, ValidationError
from pymongo.errors import PyMongoError

from authentication.decorators import any_authenticated_user
from lims_tracking.error_views import error_response, lims_error_response, storage_error_response
from lims_tracking.exceptions import LimsError
from lims_tracking.utilities.pagination import get_pagination_params
from lims_tracking.utilities.search import active_filter
from tracking import pipelines
from tracking.resolvers import resolve_job
from .allocator import create_sample_lot

OPTIONAL_TEXT_FIELDS = (
    'sample_type', 'material_type', 'condition', 'heat_no', 'mtc_no', 'storage_location',
)


def _test_method_oids(db, raw_ids):
    """
    Validate test method ids of a create request.
    Returns (object ids, error response); one of the two is None.
    """
    if not raw_ids:
        return [], None
    if not isinstance(raw_ids, list):
        return None, error_response('test_method_oids must be a list', 400)

    object_ids = []
    for raw_id in raw_ids:
        if not ObjectId.is_valid(str(raw_id)):
            return None, error_response(f'Invalid test method ID format: {raw_id}', 400)
        object_ids.append(ObjectId(str(raw_id)))

    query = {'$and': [{'_id': {'$in': object_ids}}, active_filter()]}
    found = {doc['_id'] for doc in db.test_methods.find(query, {'_id': 1})}
    for object_id in object_ids:
        if object_id not in found:
            return None, error_response(f'Test method with ID {object_id} not found', 404)
    return object_ids, None


def _sample_lot_page(request):
    try:
        page, limit, offset = get_pagination_params(request)
        payload = pipelines.list_sample_lots(connection.get_db(), page, limit, request.GET.get('q', ''))
        return JsonResponse(payload)
    except PyMongoError as e:
        return storage_error_response(e, request.path)


# ============= SAMPLE LOT ENDPOINTS =============

@csrf_exempt
@require_http_methods(["GET", "POST"])
@any_authenticated_user
def sample_lot_list(request):
    """
    List sample lots or create a new sample lot
    GET: active sample lots, newest first. Query params: page, q
    POST: creates a sample lot; item_no is allocated when not supplied
    """
    if request.method == 'GET':
        return _sample_lot_page(request)

    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return error_response('Invalid JSON format', 400)
    if not isinstance(data, dict):
        return error_response('Invalid JSON format', 400)

    for field in ('job_id', 'description'):
        if not data.get(field):
            return error_response(f'Required field "{field}" is missing or empty', 400)

    try:
        db = connection.get_db()
        job = resolve_job(db, data['job_id'])

        test_method_oids, error = _test_method_oids(db, data.get('test_method_oids'))
        if error is not None:
            return error

        fields = {field: data.get(field, '') for field in OPTIONAL_TEXT_FIELDS}
        fields['description'] = data['description']
        fields['test_method_oids'] = test_method_oids

        sample_lot = create_sample_lot(job, fields, item_no=data.get('item_no'))

        return JsonResponse({
            'status': 'success',
            'message': 'Sample lot created successfully',
            'data': {
                'id': str(sample_lot.id),
                'item_no': sample_lot.item_no,
                'job_id': job.get('job_id', ''),
                'project_name': job.get('project_name', '')
            }
        }, status=201)

    except NotUniqueError:
        return error_response(f'Sample lot with item_no "{data.get("item_no")}" already exists', 400)
    except ValidationError as e:
        return error_response(f'Validation error: {e}', 400)
    except LimsError as e:
        return lims_error_response(e)
    except PyMongoError as e:
        return storage_error_response(e, request.path)


@csrf_exempt
@require_http_methods(["GET"])
@any_authenticated_user
def sample_lot_search(request):
    """
    Search sample lots; q also matches the readable job_id of the parent job
    """
    return _sample_lot_page(request)
