"""
This configuration file overrides some necessary configs
to allow running unittests.
"""

from .base import *  # noqa

import warnings


warnings.simplefilter("ignore", category=RuntimeWarning)


ALLOWED_HOSTS = ["*"]

SECRET_KEY = "test-secret-key"

# Use in-memory SQLite database for tests
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

LANGUAGE_CODE = "en"

# Performance optimizations for tests
DEBUG = False

# Identity service is mocked in tests
IDENTITY_SERVICE_URL = "http://identity.test"

# Disable logging in tests to improve performance
LOGGING = {
    "version": 1,
    "disable_existing_loggers": True,
    "handlers": {
        "null": {
            "class": "logging.NullHandler",
        },
    },
    "root": {
        "handlers": ["null"],
    },
}
