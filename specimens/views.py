import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from mongoengine import connection
from mongoengine.errors import NotUniqueError, ValidationError
from pymongo.errors import PyMongoError

from authentication.decorators import any_authenticated_user
from lims_tracking.error_views import error_response, storage_error_response
from lims_tracking.utilities.pagination import get_pagination_params
from tracking import pipelines
from .models import Specimen

logger = logging.getLogger(__name__)


def _duplicate_response(specimen_id):
    return error_response(
        f'Specimen with ID "{specimen_id}" already exists. Specimen IDs must be unique.', 400
    )


# ============= SPECIMEN ENDPOINTS =============

@csrf_exempt
@require_http_methods(["GET", "POST"])
@any_authenticated_user
def specimen_list(request):
    """
    List specimens or create a new specimen
    GET: Query params: page, q (partial specimen_id)
    POST: Creates a new specimen (specimen_id must be unique)
    """
    if request.method == 'GET':
        try:
            page, limit, offset = get_pagination_params(request)
            payload = pipelines.list_specimens(connection.get_db(), page, limit, request.GET.get('q', ''))
            return JsonResponse(payload)
        except PyMongoError as e:
            return storage_error_response(e, request.path)

    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return error_response('Invalid JSON format', 400)
    if not isinstance(data, dict):
        return error_response('Invalid JSON format', 400)

    specimen_id = str(data.get('specimen_id') or '').strip()
    if not specimen_id:
        return error_response('Required field "specimen_id" is missing or empty', 400)

    try:
        # the unique index still catches a concurrent insert of the same id
        if connection.get_db().specimens.find_one({'specimen_id': specimen_id}, {'_id': 1}):
            return _duplicate_response(specimen_id)

        specimen = Specimen(specimen_id=specimen_id)
        specimen.save(force_insert=True)
        logger.info('Created specimen %s', specimen.specimen_id)

        return JsonResponse({
            'status': 'success',
            'message': 'Specimen created successfully',
            'data': {
                'id': str(specimen.id),
                'specimen_id': specimen.specimen_id,
                'created_at': specimen.created_at.isoformat()
            }
        }, status=201)

    except NotUniqueError:
        return _duplicate_response(specimen_id)
    except ValidationError as e:
        return error_response(f'Validation error: {e}', 400)
    except PyMongoError as e:
        return storage_error_response(e, request.path)
