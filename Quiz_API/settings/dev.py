"""
Development settings, used on a local machine.
"""
from .base import *

DEBUG = True

# Only for development, production reads COOKIE_SECRET
SECRET_KEY = SECRET_KEY or "django-insecure-quiz-api-dev-cookie-secret"

ALLOWED_HOSTS = ALLOWED_HOSTS or ["*"]
