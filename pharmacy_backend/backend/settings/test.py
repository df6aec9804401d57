# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

- in-memory SQLite, fast password hashing
- throttling off so API tests never trip rate limits
- mock payments on (tests toggle it with override_settings)
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, REST_FRAMEWORK

DEBUG = False
SECRET_KEY = "test-only-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

DEFAULT_CURRENCY = "NPR"
MOCK_PAYMENTS_ENABLED = True
LOG_LEVEL = "WARNING"
LOGGING = {**LOGGING, "root": {**LOGGING["root"], "level": LOG_LEVEL}}
