"""
Settings for the test suite.
"""
from .base import *

SECRET_KEY = "quiz-api-test-cookie-secret"

ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

SEED_INITIAL_DATA = False

LOGGING["loggers"]["quiz_api"]["level"] = "CRITICAL"
