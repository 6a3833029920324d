from django.contrib import admin
from django.contrib.auth import get_user_model

from access.admin import ListModelAdmin
from accounts.forms import UserChangeForm, UserCreationForm

User = get_user_model()


class UserAdmin(ListModelAdmin):
    form = UserChangeForm
    add_form = UserCreationForm

    list_display = ("name", "email", "is_admin")
    list_filter = ("is_admin",)
    search_fields = ("name", "email")
    ordering = ("name",)

    def get_form(self, request, obj=None, **kwargs):
        if obj is None:
            kwargs["form"] = self.add_form
        return super().get_form(request, obj, **kwargs)

    def get_fields(self, request, obj=None):
        if obj is None:
            return ("name", "email", "is_admin", "password1", "password2")
        return ("name", "email", "is_admin", "password")


admin.site.register(User, UserAdmin)
