from django.contrib.auth import get_user_model

from access.gates import user_is_admin, user_is_admin_or_owner
from access.registry import ListConfig
from accounts.validators import validate_unique_email


def clean_user(user, relations):
    validate_unique_email(user.email, exclude_pk=None if user._state.adding else user.pk)


def register(registry):
    registry.register(ListConfig(
        "User",
        get_user_model(),
        access={
            "read": user_is_admin_or_owner,
            "update": user_is_admin_or_owner,
            "create": user_is_admin,
            "delete": user_is_admin,
        },
        # Owners may edit their own row but never promote themselves
        field_access={
            "is_admin": {"update": user_is_admin},
        },
        secret_fields=("password",),
        read_only_fields=("last_login",),
        clean=clean_user,
    ))
