"""
Django settings for threepl project.

Values that differ between deployments are read from environment variables;
the defaults target local development with SQLite.
"""

import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("THREEPL_SECRET_KEY", "django-insecure-threepl-development-key")

DEBUG = env_bool("THREEPL_DEBUG", True)

ALLOWED_HOSTS = [h for h in os.environ.get("THREEPL_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]


INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "rest_framework_simplejwt",
    "django_filters",
    "users",
    "products",
    "warehouse",
    "order_fulfillment",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "threepl.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "threepl.wsgi.application"


# Database

DATABASES = {
    "default": {
        "ENGINE": os.environ.get("THREEPL_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("THREEPL_DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("THREEPL_DB_USER", ""),
        "PASSWORD": os.environ.get("THREEPL_DB_PASSWORD", ""),
        "HOST": os.environ.get("THREEPL_DB_HOST", ""),
        "PORT": os.environ.get("THREEPL_DB_PORT", ""),
        "ATOMIC_REQUESTS": False,
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

AUTH_USER_MODEL = "users.User"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]


# Internationalization

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("THREEPL_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"


# REST framework

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_FILTER_BACKENDS": [
        "django_filters.rest_framework.DjangoFilterBackend",
    ],
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": int(os.environ.get("THREEPL_PAGE_SIZE", "50")),
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=int(os.environ.get("THREEPL_ACCESS_TOKEN_MINUTES", "60"))),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=int(os.environ.get("THREEPL_REFRESH_TOKEN_DAYS", "7"))),
}


# Fulfillment engine

FULFILLMENT = {
    "NOTIFICATION_SINK": os.environ.get(
        "THREEPL_NOTIFICATION_SINK",
        "order_fulfillment.adapters.notification_adapter.DatabaseNotificationSink",
    ),
    "AUDIT_SINK": os.environ.get(
        "THREEPL_AUDIT_SINK",
        "order_fulfillment.adapters.audit_adapter.DatabaseAuditSink",
    ),
    "MERCHANT_ORDER_LINK": "/merchant/orders/{order_id}",
    "TRACKING_CODE_LENGTH": 5,
}


# Logging

LOG_LEVEL = os.environ.get("THREEPL_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "order_fulfillment": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "warehouse": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "users": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
