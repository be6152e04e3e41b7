"""Django settings for the tenderwatch project."""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "off", "no", ""}


def env_list(name, default=""):
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# IMPORTANT: change this in production
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-change-me-please")
DEBUG = env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = env_list("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "django_filters",
    "accounts",
    "tenders",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "core.middleware.RequestLoggingMiddleware",
]

ROOT_URLCONF = "core.urls"
WSGI_APPLICATION = "core.wsgi.application"

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

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DATABASE_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("DJANGO_TIME_ZONE", "Asia/Taipei")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "accounts.authentication.IdentityHeaderAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_FILTER_BACKENDS": [
        "django_filters.rest_framework.DjangoFilterBackend",
    ],
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 20,
}

# Identity provider: the gateway in front of the API forwards the verified user id.
IDENTITY_HEADER = os.environ.get("IDENTITY_HEADER", "X-User-Id")

# Upstream tender API (g0v PCC mirror)
TENDER_API_BASE_URL = os.environ.get("TENDER_API_BASE_URL", "https://pcc.g0v.ronny.tw/api")
TENDER_API_USER_AGENT = os.environ.get("TENDER_API_USER_AGENT", "Mozilla/5.0 (TenderwatchBot)")
TENDER_API_TIMEOUT = float(os.environ.get("TENDER_API_TIMEOUT", "30"))
TENDER_API_MAX_PAGES = int(os.environ.get("TENDER_API_MAX_PAGES", "5"))
TENDER_API_MAX_ATTEMPTS = int(os.environ.get("TENDER_API_MAX_ATTEMPTS", "4"))
TENDER_API_BACKOFF = float(os.environ.get("TENDER_API_BACKOFF", "1.5"))
TENDER_FETCH_WORKERS = int(os.environ.get("TENDER_FETCH_WORKERS", "3"))
# Replace each search hit with every announcement of its tender
TENDER_FETCH_DETAILS = env_bool("TENDER_FETCH_DETAILS", True)

# Pipeline
TENDERS_FREE_KEYWORD_LIMIT = int(os.environ.get("TENDERS_FREE_KEYWORD_LIMIT", "5"))
TENDERS_VOLATILE_FIELDS = env_list("TENDERS_VOLATILE_FIELDS", "fetched_at,keyword,records")

LOGS_DIR = Path(os.environ.get("LOGS_DIR", BASE_DIR / "logs"))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
        "file": {
            "class": "logging.FileHandler",
            "filename": str(LOGS_DIR / "tenderwatch.log"),
            "formatter": "verbose",
            "encoding": "utf-8",
        },
    },
    "root": {
        "handlers": ["console", "file"],
        "level": os.environ.get("LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "django": {
            "handlers": ["console", "file"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}
