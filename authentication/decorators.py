import logging
from functools import wraps

from bson import ObjectId
from django.http import JsonResponse

from .jwt_utils import verify_access_token
from .models import User

logger = logging.getLogger(__name__)


def jwt_required(required_roles=None):
    """
    Decorator to require JWT authentication for endpoints

    Args:
        required_roles (list): roles allowed to call the endpoint,
                               None means any authenticated user.
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            auth_header = request.META.get('HTTP_AUTHORIZATION', '')
            if not auth_header.startswith('Bearer '):
                return JsonResponse({
                    'status': 'error',
                    'message': 'Authorization header missing or invalid. Please provide Bearer token.'
                }, status=401)

            payload = verify_access_token(auth_header.split(' ', 1)[1].strip())
            if not payload or not ObjectId.is_valid(payload.get('user_id', '')):
                return JsonResponse({
                    'status': 'error',
                    'message': 'Invalid or expired token'
                }, status=401)

            user = User.objects(id=ObjectId(payload['user_id'])).first()
            if user is None:
                return JsonResponse({
                    'status': 'error',
                    'message': 'User not found'
                }, status=401)
            if not user.is_active:
                return JsonResponse({
                    'status': 'error',
                    'message': 'User account is deactivated'
                }, status=401)

            if required_roles and user.role not in required_roles:
                logger.info('User %s denied access to %s', user.username, request.path)
                return JsonResponse({
                    'status': 'error',
                    'message': f'Access denied. Required roles: {", ".join(required_roles)}'
                }, status=403)

            request.user = user
            request.user_payload = payload

            return view_func(request, *args, **kwargs)

        return wrapper
    return decorator


def any_authenticated_user(view_func):
    """
    Decorator to require any authenticated user for endpoints
    """
    return jwt_required()(view_func)
