from django.conf import settings
from django.urls import reverse_lazy
from django.views.decorators.csrf import csrf_exempt
from django.views.generic.base import RedirectView
from graphene_django.views import GraphQLView


class HomePageView(RedirectView):
    """The default route sends visitors to the admin UI."""
    url = reverse_lazy("admin:index")


def graphql_view():
    # Session cookies authenticate the API, clients do not send a CSRF token
    return csrf_exempt(GraphQLView.as_view(graphiql=settings.DEBUG))
