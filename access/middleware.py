from django.apps import apps
from django.utils.functional import SimpleLazyObject

from access.engine import ListSession
from access.gates import AccessContext


def build_list_session(request):
    registry = apps.get_app_config("access").registry
    return ListSession(registry, AccessContext.for_user(getattr(request, "user", None)))


def get_list_session(request):
    """The request's ListSession, built on the spot for requests the middleware never saw."""
    session = getattr(request, "lists", None)
    if session is None:
        session = request.lists = build_list_session(request)
    return session


class ListAccessMiddleware:
    """
    Attach ``request.lists``, the ListSession every handler uses to reach
    data. It must come after AuthenticationMiddleware. The session is built
    lazily so requests that never touch a list never load the user.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.lists = SimpleLazyObject(lambda: build_list_session(request))
        return self.get_response(request)


def refresh_list_session(request):
    """Rebuild ``request.lists`` after the request's user changed (login/logout)."""
    request.lists = build_list_session(request)
    return request.lists
