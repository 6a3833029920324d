"""
WSGI config for the quiz API, used by the application server in deployment.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "Quiz_API.settings.dev")

application = get_wsgi_application()
