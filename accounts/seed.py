import secrets

from django.apps import apps
from django.contrib.auth import get_user_model

from access.engine import ListSession
from access.gates import AccessContext

import logging

logger = logging.getLogger("quiz_api")

INITIAL_ADMIN_EMAIL = "admin@example.com"
INITIAL_ADMIN_NAME = "Admin"


def initialise_data():
    """
    Create the first admin user when there are no users at all.

    Safe to call any number of times: once a user exists it does nothing and
    returns None. Otherwise returns the generated ``(email, password)``.
    """
    User = get_user_model()
    if User.objects.exists():
        logger.debug("users already exist, skipping initial data")
        return None

    password = secrets.token_hex(8)
    lists = ListSession(apps.get_app_config("access").registry, AccessContext.system())
    lists.create("User", {
        "name": INITIAL_ADMIN_NAME,
        "email": INITIAL_ADMIN_EMAIL,
        "is_admin": True,
        "password": password,
    })

    logger.info(f"User created: email: {INITIAL_ADMIN_EMAIL} password: {password}")
    return INITIAL_ADMIN_EMAIL, password
