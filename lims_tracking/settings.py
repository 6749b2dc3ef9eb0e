"""
Django settings for the lims_tracking project.

Values come from environment variables; the defaults are meant for local
development only.
"""
import os
from pathlib import Path

import mongoengine

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    return os.environ.get(name, str(default)).strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-lims-tracking-dev-key')
DEBUG = env_bool('DJANGO_DEBUG', False)
ALLOWED_HOSTS = [host.strip() for host in os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',') if host.strip()]

INSTALLED_APPS = [
    'authentication',
    'clients',
    'testmethods',
    'samplejobs',
    'samplelots',
    'specimens',
    'samplepreparations',
    'certificates',
    'discards',
    'tracking',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'lims_tracking.urls'
WSGI_APPLICATION = 'lims_tracking.wsgi.application'

# All application data lives in MongoDB, Django's ORM is not used
DATABASES = {}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = False
USE_TZ = False

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# ============= MONGODB =============

MONGODB_TIMEOUT_MS = int(os.environ.get('MONGODB_TIMEOUT_MS', 15000))

MONGODB_SETTINGS = {
    'db': os.environ.get('MONGODB_NAME', 'lims'),
    'host': os.environ.get('MONGODB_URI', 'mongodb://localhost:27017'),
    'serverSelectionTimeoutMS': MONGODB_TIMEOUT_MS,
    'connectTimeoutMS': MONGODB_TIMEOUT_MS,
    'socketTimeoutMS': MONGODB_TIMEOUT_MS,
    'maxPoolSize': int(os.environ.get('MONGODB_MAX_POOL_SIZE', 50)),
    # a failed read is retried once by the driver
    'retryReads': True,
    'retryWrites': True,
}

# One client per process, shared by every request
mongoengine.connect(**MONGODB_SETTINGS)


# ============= AUTHENTICATION =============

JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', SECRET_KEY)
JWT_ALGORITHM = 'HS256'
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get('JWT_ACCESS_TOKEN_MINUTES', 5))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.environ.get('JWT_REFRESH_TOKEN_DAYS', 7))


# ============= LOGGING =============

LOG_LEVEL = os.environ.get('LIMS_LOG_LEVEL', 'INFO').upper()
LOG_DIR = os.environ.get('LIMS_LOG_DIR')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '[{asctime}] {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}

PROJECT_LOGGERS = [
    'lims_tracking', 'authentication', 'samplejobs', 'samplelots', 'specimens',
    'samplepreparations', 'certificates', 'tracking',
]

if LOG_DIR:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    LOGGING['handlers']['server_file'] = {
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': os.path.join(LOG_DIR, 'server.log'),
        'maxBytes': 10 * 1024 * 1024,
        'backupCount': 5,
        'formatter': 'verbose',
    }
    LOGGING['handlers']['error_file'] = {
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': os.path.join(LOG_DIR, 'error.log'),
        'maxBytes': 10 * 1024 * 1024,
        'backupCount': 5,
        'formatter': 'verbose',
        'level': 'ERROR',
    }
    LOGGING['root']['handlers'] += ['server_file', 'error_file']
    LOGGING['loggers']['django']['handlers'] += ['server_file', 'error_file']

# Project loggers only set the level, records go to the root handlers
for _logger_name in PROJECT_LOGGERS:
    LOGGING['loggers'][_logger_name] = {'level': LOG_LEVEL}
