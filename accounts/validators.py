from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError

DUPLICATE_EMAIL_MESSAGE = "A user with that email already exists."


def validate_unique_email(email, exclude_pk=None):
    """Emails are unique regardless of case."""
    users = get_user_model()._default_manager.filter(email__iexact=email)
    if exclude_pk is not None:
        users = users.exclude(pk=exclude_pk)
    if users.exists():
        raise ValidationError({"email": [DUPLICATE_EMAIL_MESSAGE]})
