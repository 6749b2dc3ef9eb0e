import json
import logging
from datetime import datetime

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from mongoengine.queryset.visitor import Q

from .decorators import any_authenticated_user
from .jwt_utils import generate_access_token, generate_refresh_token, verify_refresh_token, revoke_refresh_token
from .models import User

logger = logging.getLogger(__name__)


def _read_json(request):
    try:
        return json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return None


@csrf_exempt
@require_http_methods(["POST"])
def login(request):
    """
    POST: Authenticate by username or email and return access & refresh tokens
    """
    data = _read_json(request)
    if data is None:
        return JsonResponse({'status': 'error', 'message': 'Invalid JSON format'}, status=400)

    for field in ('username', 'password'):
        if not data.get(field):
            return JsonResponse({
                'status': 'error',
                'message': f'Required field "{field}" is missing or empty'
            }, status=400)

    user = User.objects(
        (Q(username=data['username']) | Q(email=data['username'])) & Q(is_active=True)
    ).first()
    if user is None or not user.check_password(data['password']):
        return JsonResponse({
            'status': 'error',
            'message': 'Invalid username/email or password'
        }, status=401)

    user.last_login = datetime.now()
    user.save()

    access_token = generate_access_token(user)
    refresh_token, refresh_expires = generate_refresh_token(user)
    logger.info('User %s logged in', user.username)

    return JsonResponse({
        'status': 'success',
        'data': {
            'access_token': access_token,
            'refresh_token': refresh_token,
            'token_type': 'Bearer',
            'expires_in': settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            'refresh_expires_at': refresh_expires.isoformat(),
            'user': user.to_dict()
        }
    })


@csrf_exempt
@require_http_methods(["POST"])
def refresh_token(request):
    """
    POST: Exchange a valid refresh token for a new access token
    """
    data = _read_json(request)
    if data is None:
        return JsonResponse({'status': 'error', 'message': 'Invalid JSON format'}, status=400)

    stored = verify_refresh_token(data.get('refresh_token', ''))
    if stored is None or not stored.user.is_active:
        return JsonResponse({
            'status': 'error',
            'message': 'Invalid or expired refresh token'
        }, status=401)

    return JsonResponse({
        'status': 'success',
        'data': {
            'access_token': generate_access_token(stored.user),
            'token_type': 'Bearer',
            'expires_in': settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }
    })


@csrf_exempt
@require_http_methods(["POST"])
def logout(request):
    """
    POST: Revoke a refresh token
    """
    data = _read_json(request)
    if data is None:
        return JsonResponse({'status': 'error', 'message': 'Invalid JSON format'}, status=400)

    if not data.get('refresh_token'):
        return JsonResponse({
            'status': 'error',
            'message': 'Required field "refresh_token" is missing or empty'
        }, status=400)

    revoke_refresh_token(data['refresh_token'])
    return JsonResponse({'status': 'success', 'message': 'Logged out'})


@csrf_exempt
@require_http_methods(["GET"])
@any_authenticated_user
def me(request):
    return JsonResponse({'status': 'success', 'data': request.user.to_dict()})
