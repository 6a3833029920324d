import json
from io import StringIO
from unittest.mock import patch

from django.apps import apps
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, Client, override_settings
from django.urls import reverse

from accounts.backends import EmailBackend
from accounts.forms import UserChangeForm, UserCreationForm
from accounts.seed import initialise_data, INITIAL_ADMIN_EMAIL
from accounts.signals import seed_initial_data

User = get_user_model()


def graphql(client, query, variables=None):
    response = client.post(
        reverse("graphql"),
        data=json.dumps({"query": query, "variables": variables or {}}),
        content_type="application/json",
    )
    return response.json()


def error_code(result):
    return result["errors"][0]["extensions"]["code"]


USER_QUERY = """
query ($id: ID!) {
  user(id: $id) { id name email isAdmin passwordIsSet }
}
"""

ALL_USERS_QUERY = """
query {
  allUsers { email }
  _allUsersMeta { count }
}
"""

UPDATE_USER_MUTATION = """
mutation ($id: ID!, $data: UserUpdateInput) {
  updateUser(id: $id, data: $data) { id name isAdmin }
}
"""

CREATE_USER_MUTATION = """
mutation ($data: UserCreateInput!) {
  createUser(data: $data) { id name email isAdmin passwordIsSet }
}
"""

DELETE_USER_MUTATION = """
mutation ($id: ID!) {
  deleteUser(id: $id) { id email }
}
"""

AUTHENTICATE_MUTATION = """
mutation ($email: String!, $password: String!) {
  authenticateUserWithPassword(email: $email, password: $password) {
    token
    item { email }
  }
}
"""

UNAUTHENTICATE_MUTATION = """
mutation {
  unauthenticateUser { success }
}
"""

AUTHENTICATED_USER_QUERY = """
query {
  authenticatedUser { email isAdmin }
}
"""


class UserAccessTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(email="admin@quiz.test", name="Admin", password="adminpass123",
                                             is_admin=True)
        cls.alice = User.objects.create_user(email="alice@quiz.test", name="Alice", password="alicepass123")
        cls.bob = User.objects.create_user(email="bob@quiz.test", name="Bob", password="bobpass123")

    def setUp(self):
        self.admin_client = Client()
        self.admin_client.force_login(UserAccessTestCase.admin)
        self.alice_client = Client()
        self.alice_client.force_login(UserAccessTestCase.alice)
        self.unauthenticated_client = Client()

    def test_non_admin_lists_only_own_user(self):
        result = graphql(self.alice_client, ALL_USERS_QUERY)
        self.assertNotIn("errors", result)
        self.assertEqual(result["data"]["allUsers"], [{"email": "alice@quiz.test"}])
        self.assertEqual(result["data"]["_allUsersMeta"]["count"], 1)

    def test_admin_lists_all_users(self):
        result = graphql(self.admin_client, ALL_USERS_QUERY)
        self.assertNotIn("errors", result)
        self.assertEqual(len(result["data"]["allUsers"]), 3)
        self.assertEqual(result["data"]["_allUsersMeta"]["count"], 3)

    def test_unauthenticated_client_cannot_list_users(self):
        result = graphql(self.unauthenticated_client, ALL_USERS_QUERY)
        self.assertEqual(error_code(result), "ACCESS_DENIED")
        self.assertEqual(result["errors"][0]["message"], "You do not have access to this resource")

    def test_non_admin_reads_own_user(self):
        result = graphql(self.alice_client, USER_QUERY, {"id": str(UserAccessTestCase.alice.pk)})
        self.assertNotIn("errors", result)
        user = result["data"]["user"]
        self.assertEqual(user["email"], "alice@quiz.test")
        self.assertFalse(user["isAdmin"])
        self.assertTrue(user["passwordIsSet"])

    def test_non_admin_cannot_read_other_user(self):
        result = graphql(self.alice_client, USER_QUERY, {"id": str(UserAccessTestCase.bob.pk)})
        self.assertEqual(error_code(result), "ACCESS_DENIED")
        self.assertIsNone(result["data"]["user"])

    def test_missing_and_forbidden_users_look_the_same(self):
        forbidden = graphql(self.alice_client, USER_QUERY, {"id": str(UserAccessTestCase.bob.pk)})
        missing = graphql(self.alice_client, USER_QUERY, {"id": "00000000-0000-0000-0000-000000000000"})
        malformed = graphql(self.alice_client, USER_QUERY, {"id": "not-an-id"})
        self.assertEqual(forbidden["errors"][0]["message"], missing["errors"][0]["message"])
        self.assertEqual(forbidden["errors"][0]["message"], malformed["errors"][0]["message"])

    def test_password_cannot_be_queried(self):
        result = graphql(self.admin_client, "query { allUsers { password } }")
        self.assertIn("errors", result)
        self.assertIn("password", result["errors"][0]["message"])

    def test_non_admin_updates_own_name(self):
        result = graphql(self.alice_client, UPDATE_USER_MUTATION, {
            "id": str(UserAccessTestCase.alice.pk),
            "data": {"name": "Alice Cooper"},
        })
        self.assertNotIn("errors", result)
        self.assertEqual(result["data"]["updateUser"]["name"], "Alice Cooper")

        alice = User.objects.get(pk=UserAccessTestCase.alice.pk)
        self.assertEqual(alice.name, "Alice Cooper")
        # Untouched fields survive a partial update
        self.assertEqual(alice.email, "alice@quiz.test")

    def test_non_admin_cannot_update_other_user(self):
        result = graphql(self.alice_client, UPDATE_USER_MUTATION, {
            "id": str(UserAccessTestCase.bob.pk),
            "data": {"name": "Robert"},
        })
        self.assertEqual(error_code(result), "ACCESS_DENIED")
        self.assertEqual(User.objects.get(pk=UserAccessTestCase.bob.pk).name, "Bob")

    def test_non_admin_cannot_make_self_admin(self):
        result = graphql(self.alice_client, UPDATE_USER_MUTATION, {
            "id": str(UserAccessTestCase.alice.pk),
            "data": {"isAdmin": True},
        })
        self.assertEqual(error_code(result), "ACCESS_DENIED")
        self.assertFalse(User.objects.get(pk=UserAccessTestCase.alice.pk).is_admin)

    def test_admin_can_make_user_admin(self):
        result = graphql(self.admin_client, UPDATE_USER_MUTATION, {
            "id": str(UserAccessTestCase.bob.pk),
            "data": {"isAdmin": True},
        })
        self.assertNotIn("errors", result)
        self.assertTrue(result["data"]["updateUser"]["isAdmin"])
        self.assertTrue(User.objects.get(pk=UserAccessTestCase.bob.pk).is_admin)

    def test_non_admin_changes_own_password(self):
        result = graphql(self.alice_client, UPDATE_USER_MUTATION, {
            "id": str(UserAccessTestCase.alice.pk),
            "data": {"password": "brandnewpass456"},
        })
        self.assertNotIn("errors", result)
        self.assertTrue(User.objects.get(pk=UserAccessTestCase.alice.pk).check_password("brandnewpass456"))

        result = graphql(self.alice_client, AUTHENTICATED_USER_QUERY)
        self.assertEqual(result["data"]["authenticatedUser"], {"email": "alice@quiz.test", "isAdmin": False})

    def test_admin_changing_other_password_keeps_admin_signed_in(self):
        result = graphql(self.admin_client, UPDATE_USER_MUTATION, {
            "id": str(UserAccessTestCase.bob.pk),
            "data": {"password": "bobnewpass789"},
        })
        self.assertNotIn("errors", result)
        result = graphql(self.admin_client, AUTHENTICATED_USER_QUERY)
        self.assertEqual(result["data"]["authenticatedUser"]["email"], "admin@quiz.test")

    def test_short_password_is_rejected(self):
        result = graphql(self.admin_client, CREATE_USER_MUTATION, {
            "data": {"name": "Brief", "email": "brief@quiz.test", "password": "a"},
        })
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertIn("password", result["errors"][0]["extensions"]["fields"])
        self.assertFalse(User.objects.filter(email="brief@quiz.test").exists())

        result = graphql(self.alice_client, UPDATE_USER_MUTATION, {
            "id": str(UserAccessTestCase.alice.pk),
            "data": {"password": "short"},
        })
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertTrue(User.objects.get(pk=UserAccessTestCase.alice.pk).check_password("alicepass123"))

    def test_admin_creates_user(self):
        result = graphql(self.admin_client, CREATE_USER_MUTATION, {
            "data": {"name": "Carol", "email": "carol@quiz.test", "password": "carolpass123"},
        })
        self.assertNotIn("errors", result)
        created = result["data"]["createUser"]
        self.assertEqual(created["email"], "carol@quiz.test")
        self.assertFalse(created["isAdmin"])
        self.assertTrue(created["passwordIsSet"])

        carol = User.objects.get(email="carol@quiz.test")
        self.assertNotEqual(carol.password, "carolpass123")
        self.assertTrue(carol.check_password("carolpass123"))

    def test_create_user_with_existing_email_fails(self):
        result = graphql(self.admin_client, CREATE_USER_MUTATION, {
            "data": {"name": "Another Alice", "email": "alice@quiz.test", "password": "whatever123"},
        })
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertIn("email", result["errors"][0]["extensions"]["fields"])
        self.assertEqual(User.objects.filter(email="alice@quiz.test").count(), 1)

    def test_email_uniqueness_ignores_case(self):
        result = graphql(self.admin_client, CREATE_USER_MUTATION, {
            "data": {"name": "Loud Alice", "email": "ALICE@quiz.test", "password": "whatever123"},
        })
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertEqual(result["errors"][0]["extensions"]["fields"]["email"],
                         ["A user with that email already exists."])
        self.assertEqual(User.objects.filter(email__iexact="alice@quiz.test").count(), 1)

        result = graphql(self.admin_client, UPDATE_USER_MUTATION, {
            "id": str(UserAccessTestCase.bob.pk),
            "data": {"email": "Alice@Quiz.Test"},
        })
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        self.assertEqual(User.objects.get(pk=UserAccessTestCase.bob.pk).email, "bob@quiz.test")

    def test_created_email_domain_is_normalised(self):
        result = graphql(self.admin_client, CREATE_USER_MUTATION, {
            "data": {"name": "Carol", "email": "Carol@QUIZ.TEST", "password": "carolpass123"},
        })
        self.assertNotIn("errors", result)
        self.assertEqual(result["data"]["createUser"]["email"], "Carol@quiz.test")

    def test_user_keeps_own_email_on_update(self):
        result = graphql(self.alice_client, UPDATE_USER_MUTATION, {
            "id": str(UserAccessTestCase.alice.pk),
            "data": {"name": "Alice", "email": "alice@quiz.test"},
        })
        self.assertNotIn("errors", result)

    def test_create_user_without_required_fields_fails(self):
        result = graphql(self.admin_client, CREATE_USER_MUTATION, {"data": {"email": "nobody@quiz.test"}})
        self.assertEqual(error_code(result), "VALIDATION_ERROR")
        fields = result["errors"][0]["extensions"]["fields"]
        self.assertIn("name", fields)
        self.assertIn("password", fields)
        self.assertFalse(User.objects.filter(email="nobody@quiz.test").exists())

    def test_non_admin_cannot_create_user(self):
        result = graphql(self.alice_client, CREATE_USER_MUTATION, {
            "data": {"name": "Mallory", "email": "mallory@quiz.test", "password": "mallorypass1"},
        })
        self.assertEqual(error_code(result), "ACCESS_DENIED")
        self.assertFalse(User.objects.filter(email="mallory@quiz.test").exists())

    def test_non_admin_cannot_delete_own_user(self):
        result = graphql(self.alice_client, DELETE_USER_MUTATION, {"id": str(UserAccessTestCase.alice.pk)})
        self.assertEqual(error_code(result), "ACCESS_DENIED")
        self.assertTrue(User.objects.filter(pk=UserAccessTestCase.alice.pk).exists())

    def test_admin_deletes_user(self):
        result = graphql(self.admin_client, DELETE_USER_MUTATION, {"id": str(UserAccessTestCase.bob.pk)})
        self.assertNotIn("errors", result)
        self.assertEqual(result["data"]["deleteUser"]["id"], str(UserAccessTestCase.bob.pk))
        self.assertFalse(User.objects.filter(pk=UserAccessTestCase.bob.pk).exists())


class AuthenticationTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(email="testuser@quiz.test", name="Test User",
                                                 password="password123")

    def setUp(self):
        self.unauthenticated_client = Client()

    def test_authenticate_with_password_success(self):
        result = graphql(self.unauthenticated_client, AUTHENTICATE_MUTATION, {
            "email": "testuser@quiz.test", "password": "password123",
        })
        self.assertNotIn("errors", result)
        payload = result["data"]["authenticateUserWithPassword"]
        self.assertTrue(payload["token"])
        self.assertEqual(payload["item"]["email"], "testuser@quiz.test")

        # verify that the session now carries the user
        self.assertTrue("_auth_user_id" in self.unauthenticated_client.session)
        me = graphql(self.unauthenticated_client, AUTHENTICATED_USER_QUERY)
        self.assertEqual(me["data"]["authenticatedUser"]["email"], "testuser@quiz.test")

    def test_authenticate_wrong_password(self):
        result = graphql(self.unauthenticated_client, AUTHENTICATE_MUTATION, {
            "email": "testuser@quiz.test", "password": "wrongpassword",
        })
        self.assertEqual(error_code(result), "AUTHENTICATION_FAILURE")
        self.assertEqual(result["errors"][0]["message"], "Authentication failed.")
        self.assertFalse("_auth_user_id" in self.unauthenticated_client.session)

    def test_authenticate_unknown_email_gives_same_error(self):
        wrong_password = graphql(self.unauthenticated_client, AUTHENTICATE_MUTATION, {
            "email": "testuser@quiz.test", "password": "wrongpassword",
        })
        unknown_email = graphql(self.unauthenticated_client, AUTHENTICATE_MUTATION, {
            "email": "nobody@quiz.test", "password": "password123",
        })
        self.assertEqual(wrong_password["errors"][0]["message"], unknown_email["errors"][0]["message"])
        self.assertEqual(error_code(unknown_email), "AUTHENTICATION_FAILURE")

    def test_authenticated_user_is_null_when_anonymous(self):
        result = graphql(self.unauthenticated_client, AUTHENTICATED_USER_QUERY)
        self.assertNotIn("errors", result)
        self.assertIsNone(result["data"]["authenticatedUser"])

    def test_unauthenticate_user(self):
        self.unauthenticated_client.force_login(AuthenticationTestCase.test_user)

        result = graphql(self.unauthenticated_client, UNAUTHENTICATE_MUTATION)
        self.assertTrue(result["data"]["unauthenticateUser"]["success"])
        self.assertFalse("_auth_user_id" in self.unauthenticated_client.session)

        me = graphql(self.unauthenticated_client, AUTHENTICATED_USER_QUERY)
        self.assertIsNone(me["data"]["authenticatedUser"])

    def test_unauthenticate_when_not_signed_in(self):
        result = graphql(self.unauthenticated_client, UNAUTHENTICATE_MUTATION)
        self.assertFalse(result["data"]["unauthenticateUser"]["success"])


class EmailBackendTest(TestCase):
    def setUp(self):
        self.backend = EmailBackend()
        self.backend_user = User.objects.create_user(email="test@example.com", name="Test",
                                                     password="securepass123")

        self.inactive_user = User.objects.create_user(email="test_user_2@example.com", name="Inactive",
                                                      password="kkkksskss")
        self.inactive_user.is_active = False

    def test_authenticate_with_email_success(self):
        authenticated_user = self.backend.authenticate(
            request=None, username="test@example.com", password="securepass123"
        )
        self.assertEqual(authenticated_user, self.backend_user)

    def test_authenticate_with_email_keyword(self):
        authenticated_user = self.backend.authenticate(
            request=None, email="test@example.com", password="securepass123"
        )
        self.assertEqual(authenticated_user, self.backend_user)

    def test_authenticate_ignores_email_case(self):
        authenticated_user = self.backend.authenticate(
            request=None, username="Test@Example.com", password="securepass123"
        )
        self.assertEqual(authenticated_user, self.backend_user)

    def test_authenticate_with_wrong_password(self):
        authenticated_user = self.backend.authenticate(
            request=None, username="test@example.com", password="wrongpassword"
        )
        self.assertIsNone(authenticated_user)

    def test_authenticate_with_unknown_email(self):
        authenticated_user = self.backend.authenticate(
            request=None, username="doesnotexist@example.com", password="whatever"
        )
        self.assertIsNone(authenticated_user)

    def test_authenticate_without_credentials(self):
        self.assertIsNone(self.backend.authenticate(request=None))

    def test_get_user_valid(self):
        user = self.backend.get_user(self.backend_user.pk)
        self.assertEqual(user, self.backend_user)

    def test_get_user_invalid(self):
        self.assertIsNone(self.backend.get_user("00000000-0000-0000-0000-000000000000"))
        self.assertIsNone(self.backend.get_user(9999))

    def test_inactive_user_cannot_authenticate(self):
        self.assertFalse(self.backend.user_can_authenticate(self.inactive_user))


class UserManagerTest(TestCase):

    def test_create_user_normalises_email_domain(self):
        user = User.objects.create_user(email="Someone@EXAMPLE.COM", name="Someone", password="password123")
        self.assertEqual(user.email, "Someone@example.com")
        self.assertFalse(user.is_admin)
        self.assertFalse(user.is_staff)

    def test_create_user_requires_email(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email="", name="Nobody", password="password123")

    def test_create_superuser_is_admin(self):
        user = User.objects.create_superuser(email="root@example.com", name="Root", password="password123")
        self.assertTrue(user.is_admin)
        self.assertTrue(user.is_staff)
        self.assertTrue(user.has_perm("quiz.add_quiz"))
        self.assertTrue(user.has_module_perms("quiz"))


class InitialDataTestCase(TestCase):

    def test_initialise_data_creates_admin_when_empty(self):
        email, password = initialise_data()

        self.assertEqual(email, INITIAL_ADMIN_EMAIL)
        self.assertEqual(len(password), 16)

        admin = User.objects.get(email=INITIAL_ADMIN_EMAIL)
        self.assertTrue(admin.is_admin)
        self.assertEqual(admin.name, "Admin")
        self.assertTrue(admin.check_password(password))

    def test_initialise_data_is_idempotent(self):
        initialise_data()
        self.assertIsNone(initialise_data())
        self.assertEqual(User.objects.count(), 1)

    def test_initialise_data_skips_when_users_exist(self):
        User.objects.create_user(email="existing@quiz.test", name="Existing", password="password123")
        self.assertIsNone(initialise_data())
        self.assertFalse(User.objects.filter(email=INITIAL_ADMIN_EMAIL).exists())

    @override_settings(SEED_INITIAL_DATA=False)
    def test_post_migrate_seeding_can_be_turned_off(self):
        seed_initial_data(sender=apps.get_app_config("accounts"))
        self.assertFalse(User.objects.exists())

    @override_settings(SEED_INITIAL_DATA=True)
    def test_post_migrate_seeding(self):
        seed_initial_data(sender=apps.get_app_config("accounts"))
        self.assertTrue(User.objects.filter(email=INITIAL_ADMIN_EMAIL, is_admin=True).exists())

    @override_settings(SEED_INITIAL_DATA=True)
    def test_post_migrate_seeding_ignores_other_apps(self):
        seed_initial_data(sender=apps.get_app_config("quiz"))
        self.assertFalse(User.objects.exists())

    @patch("accounts.seed.secrets.token_hex", return_value="0123456789abcdef")
    def test_initialise_data_command(self, mock_token_hex):
        out = StringIO()
        call_command("initialise_data", stdout=out)
        self.assertIn(f"User created: email: {INITIAL_ADMIN_EMAIL} password: 0123456789abcdef", out.getvalue())
        mock_token_hex.assert_called_once_with(8)
        self.assertTrue(User.objects.get(email=INITIAL_ADMIN_EMAIL).check_password("0123456789abcdef"))

        out = StringIO()
        call_command("initialise_data", stdout=out)
        self.assertIn("nothing to do", out.getvalue())


class UserAdminTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(email="admin@quiz.test", name="Admin", password="adminpass123",
                                             is_admin=True)
        cls.test_user = User.objects.create_user(email="testuser@quiz.test", name="Test User",
                                                 password="password123")

    def test_admin_logs_in_with_email(self):
        client = Client()
        response = client.post(reverse("admin:login"), {
            "username": "admin@quiz.test",
            "password": "adminpass123",
            "next": reverse("admin:index"),
        })
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.url, reverse("admin:index"))
        self.assertTrue("_auth_user_id" in client.session)

    def test_non_admin_cannot_log_into_admin(self):
        client = Client()
        response = client.post(reverse("admin:login"), {
            "username": "testuser@quiz.test",
            "password": "password123",
        })
        self.assertEqual(response.status_code, 200)
        self.assertFalse("_auth_user_id" in client.session)

    def test_non_admin_session_is_redirected_from_admin(self):
        client = Client()
        client.force_login(UserAdminTestCase.test_user)
        response = client.get(reverse("admin:index"))
        self.assertEqual(response.status_code, 302)

    def test_admin_user_pages(self):
        client = Client()
        client.force_login(UserAdminTestCase.admin)

        response = client.get(reverse("admin:accounts_user_changelist"))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "testuser@quiz.test")

        response = client.get(reverse("admin:accounts_user_add"))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "password2")

    def test_admin_adds_user(self):
        client = Client()
        client.force_login(UserAdminTestCase.admin)
        response = client.post(reverse("admin:accounts_user_add"), {
            "name": "Dave",
            "email": "dave@quiz.test",
            "password1": "davepass123",
            "password2": "davepass123",
        })
        self.assertEqual(response.status_code, 302)
        self.assertTrue(User.objects.get(email="dave@quiz.test").check_password("davepass123"))

    def test_add_form_rejects_short_password(self):
        form = UserCreationForm(data={
            "name": "Erin",
            "email": "erin@quiz.test",
            "password1": "tiny",
            "password2": "tiny",
        })
        self.assertFalse(form.is_valid())
        self.assertIn("password2", form.errors)

    def test_add_form_rejects_email_in_other_case(self):
        form = UserCreationForm(data={
            "name": "Loud",
            "email": "TESTUSER@quiz.test",
            "password1": "loudpass123",
            "password2": "loudpass123",
        })
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors["email"], ["A user with that email already exists."])

    def test_change_form_checks_email_against_other_users(self):
        user = UserAdminTestCase.test_user
        data = {"name": user.name, "email": "Admin@quiz.test", "is_admin": False}
        form = UserChangeForm(data=data, instance=user)
        self.assertFalse(form.is_valid())
        self.assertIn("email", form.errors)

        data["email"] = "testuser@quiz.test"
        self.assertTrue(UserChangeForm(data=data, instance=user).is_valid())
