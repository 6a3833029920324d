"""
URL configuration.

- /admin/api: the GraphQL API generated from the list declarations
- /admin/: the admin UI
- /: redirects to the admin UI
"""
from django.conf import settings
from django.contrib import admin
from django.urls import path

from Quiz_API.views import HomePageView, graphql_view

admin.site.site_header = f"{settings.PROJECT_NAME} admin"
admin.site.site_title = settings.PROJECT_NAME

urlpatterns = [
    path("", HomePageView.as_view(), name="home"),
    # API must come before the admin catch-all
    path("admin/api", graphql_view(), name="graphql"),
    path("admin/", admin.site.urls),
]
