from django.contrib.auth import get_user_model
from django.contrib.auth.backends import BaseBackend
from django.core.exceptions import ValidationError

import logging

logger = logging.getLogger("quiz_api")

User = get_user_model()


class EmailBackend(BaseBackend):
    """
    Authenticate with email and password.

    Callers only learn that authentication failed, never whether the email
    or the password was wrong.
    """

    def authenticate(self, request, username=None, password=None, email=None, **kwargs):
        email = email or username
        if email is None or password is None:
            return None

        try:
            user = User.objects.get(email__iexact=email)
        except User.DoesNotExist:
            # Unknown emails still pay for one hash
            User().set_password(password)
            logger.warning("failed login attempt")
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user

        logger.warning("failed login attempt")
        return None

    def get_user(self, user_id):
        try:
            user = User.objects.get(pk=user_id)
        except (User.DoesNotExist, ValidationError, ValueError, TypeError):
            return None

        return user if self.user_can_authenticate(user) else None

    def user_can_authenticate(self, user):
        return getattr(user, "is_active", False)
