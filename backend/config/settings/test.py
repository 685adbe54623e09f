# config/settings/test.py
"""
Test environment settings.

This file is used exclusively for running tests.
"""

from .base import *

# Force test environment; apps.infrastructure.config reads it from os.environ
ENVIRONMENT = "test"
os.environ["ENVIRONMENT"] = ENVIRONMENT

# Override with test-specific environment variables
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Load .env.test explicitly
from dotenv import load_dotenv

env_test_path = BASE_DIR / ".env.test"
if env_test_path.exists():
    load_dotenv(env_test_path, override=False)

# Nothing is persisted locally; keep the database in memory
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Console only, and every logger propagates so caplog sees domain records
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {
            "level": "WARNING",
            "class": "logging.StreamHandler",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
}
