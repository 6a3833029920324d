from django.contrib import admin

from access.middleware import get_list_session


class ListModelAdmin(admin.ModelAdmin):
    """
    ModelAdmin that answers permission questions with the list's gates, so
    the admin UI enforces the same rules as the API.
    """

    def _list_key(self, request):
        return get_list_session(request).registry.for_model(self.model).key

    def get_queryset(self, request):
        queryset = super().get_queryset(request)
        return get_list_session(request).restrict(self._list_key(request), queryset)

    def has_module_permission(self, request):
        return self.has_view_permission(request)

    def has_view_permission(self, request, obj=None):
        return get_list_session(request).permits(self._list_key(request), "read", obj)

    def has_add_permission(self, request):
        return get_list_session(request).permits(self._list_key(request), "create")

    def has_change_permission(self, request, obj=None):
        return get_list_session(request).permits(self._list_key(request), "update", obj)

    def has_delete_permission(self, request, obj=None):
        return get_list_session(request).permits(self._list_key(request), "delete", obj)

    def get_readonly_fields(self, request, obj=None):
        readonly = list(super().get_readonly_fields(request, obj))
        lists = get_list_session(request)
        key = self._list_key(request)
        operation = "update" if obj is not None else "create"

        for name in lists.registry.get(key).field_access:
            if name not in readonly and not lists.permits_field(key, operation, name):
                readonly.append(name)
        return readonly
