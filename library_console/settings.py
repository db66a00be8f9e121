"""
Django settings for library_console project.
"""

from pathlib import Path
import os

from dotenv import load_dotenv

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env file
env_path = BASE_DIR / '.env'
load_dotenv(dotenv_path=env_path)


def get_env(key, default=None, cast=None):
    """Get environment variable with optional type casting"""
    value = os.getenv(key, default)

    if value is None:
        return default

    if cast:
        if cast == bool:
            return str(value).lower() in ('true', '1', 'yes', 'on')
        elif cast == int:
            return int(value)
        elif cast == float:
            return float(value)
        return cast(value)

    return value


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = get_env('SECRET_KEY', default='django-insecure-change-this-in-production')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = get_env('DEBUG', default='True', cast=bool)

ALLOWED_HOSTS = get_env('ALLOWED_HOSTS', default='localhost,127.0.0.1').split(',')


# Application definition

INSTALLED_APPS = [
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Local apps
    'users',
    'books',
    'loans',
    'librarian',
    'reports',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'users.middleware.AuthSessionMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'library_console.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [BASE_DIR / 'templates'],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.messages.context_processors.messages',
                'librarian.context_processors.navigation',
            ],
        },
    },
]

WSGI_APPLICATION = 'library_console.wsgi.application'


# Database
# Every record lives behind the library API; the console keeps no tables.
DATABASES = {}


# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = get_env('TIME_ZONE', default='UTC')
USE_I18N = True
USE_TZ = True


# Static files (CSS, JavaScript, Images)
STATIC_URL = '/static/'
STATICFILES_DIRS = [BASE_DIR / 'static']
STATIC_ROOT = BASE_DIR / 'staticfiles'


# Login settings
LOGIN_URL = 'users:login'
LOGIN_REDIRECT_URL = 'librarian:dashboard'

# Messages
from django.contrib.messages import constants as messages
MESSAGE_TAGS = {
    messages.DEBUG: 'debug',
    messages.INFO: 'info',
    messages.SUCCESS: 'success',
    messages.WARNING: 'warning',
    messages.ERROR: 'danger',
}

# Session settings
# The bearer token is the only thing persisted, so a signed cookie is enough.
SESSION_ENGINE = 'django.contrib.sessions.backends.signed_cookies'
SESSION_COOKIE_AGE = 1800  # 30 minutes
SESSION_COOKIE_HTTPONLY = True
SESSION_SAVE_EVERY_REQUEST = True
MESSAGE_STORAGE = 'django.contrib.messages.storage.session.SessionStorage'


# ========== LIBRARY API ==========

LIBRARY_API_BASE_URL = get_env('LIBRARY_API_BASE_URL', default='http://localhost:8000/api')

# Seconds; unset means requests wait for the API indefinitely.
LIBRARY_API_TIMEOUT = get_env('LIBRARY_API_TIMEOUT', default=None, cast=float)

# Session key holding the bearer token
LIBRARY_API_TOKEN_KEY = 'token'

# Rows per page on list views
LIST_PAGE_SIZE = get_env('LIST_PAGE_SIZE', default=10, cast=int)


# ========== LOGGING ==========

LOG_LEVEL = get_env('LOG_LEVEL', default='INFO')

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
        'library_api': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'users': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'books': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'loans': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'librarian': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'reports': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}
