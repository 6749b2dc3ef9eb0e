import jwt
import secrets
from datetime import datetime, timedelta, timezone
from django.conf import settings
from .models import RefreshToken


def _jwt_settings():
    return (
        getattr(settings, 'JWT_SECRET_KEY', settings.SECRET_KEY),
        getattr(settings, 'JWT_ALGORITHM', 'HS256'),
    )


def generate_access_token(user):
    """
    Generate JWT access token for user
    """
    secret, algorithm = _jwt_settings()
    now = datetime.now(timezone.utc)
    payload = {
        'user_id': str(user.id),
        'username': user.username,
        'role': user.role,
        'iat': now,
        'exp': now + timedelta(minutes=getattr(settings, 'ACCESS_TOKEN_EXPIRE_MINUTES', 5)),
        'type': 'access'
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def generate_refresh_token(user):
    """
    Issue and store a refresh token, returns (token, expires_at)
    """
    token = secrets.token_urlsafe(32)
    expires_at = datetime.now() + timedelta(days=getattr(settings, 'REFRESH_TOKEN_EXPIRE_DAYS', 7))
    RefreshToken(user=user, token=token, expires_at=expires_at).save()
    return token, expires_at


def verify_access_token(token):
    """
    Decode an access token, None when it is invalid, expired or not an access token
    """
    secret, algorithm = _jwt_settings()
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.InvalidTokenError:
        return None

    if payload.get('type') != 'access':
        return None
    return payload


def verify_refresh_token(token):
    refresh_token = RefreshToken.objects(token=token).first()
    if refresh_token and refresh_token.is_valid():
        return refresh_token
    return None


def revoke_refresh_token(token):
    updated = RefreshToken.objects(token=token, is_revoked=False).update(set__is_revoked=True)
    return updated > 0
