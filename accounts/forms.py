from django import forms
from django.contrib.auth import get_user_model, password_validation
from django.contrib.auth.forms import ReadOnlyPasswordHashField

from accounts.validators import validate_unique_email

User = get_user_model()


def clean_unique_email(form):
    email = User.objects.normalize_email(form.cleaned_data["email"])
    try:
        validate_unique_email(email, exclude_pk=form.instance.pk if not form.instance._state.adding else None)
    except forms.ValidationError as e:
        raise forms.ValidationError(e.message_dict["email"]) from None
    return email


class UserCreationForm(forms.ModelForm):
    password1 = forms.CharField(label="Password", widget=forms.PasswordInput)
    password2 = forms.CharField(label="Password confirmation", widget=forms.PasswordInput)

    class Meta:
        model = User
        fields = ("name", "email", "is_admin")

    def clean_email(self):
        return clean_unique_email(self)

    def clean_password2(self):
        password1 = self.cleaned_data.get("password1")
        password2 = self.cleaned_data.get("password2")
        if password1 and password2 and password1 != password2:
            raise forms.ValidationError("The two password fields didn’t match.")
        if password2:
            password_validation.validate_password(password2, self.instance)
        return password2

    def save(self, commit=True):
        user = super().save(commit=False)
        user.set_password(self.cleaned_data["password1"])
        if commit:
            user.save()
        return user


class UserChangeForm(forms.ModelForm):
    password = ReadOnlyPasswordHashField(
        label="Password",
        help_text="Raw passwords are not stored, so there is no way to see this user’s password.",
    )

    class Meta:
        model = User
        fields = ("name", "email", "is_admin", "password")

    def clean_email(self):
        return clean_unique_email(self)
