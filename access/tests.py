from django.apps import apps
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ImproperlyConfigured, ValidationError
from django.db.models import Q
from django.test import TestCase, RequestFactory

from access.engine import ListSession
from access.exceptions import AccessDeniedError
from access.gates import (
    AccessContext, RestrictedTo, UNRESTRICTED, DENIED, allow_all, as_access_result, evaluate,
    user_is_admin, user_is_admin_or_owner, user_owns_item,
)
from access.middleware import get_list_session
from access.registry import ListConfig, ListRegistry
from quiz.models import Answer, Feedback, Question, Quiz

User = get_user_model()


class GatesTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(email="admin@quiz.test", name="Admin", password="adminpass123",
                                             is_admin=True)
        cls.test_user = User.objects.create_user(email="testuser@quiz.test", name="Test User",
                                                 password="password123")

    def setUp(self):
        self.anonymous = AccessContext.for_user(AnonymousUser())
        self.admin_context = AccessContext.for_user(GatesTestCase.admin)
        self.user_context = AccessContext.for_user(GatesTestCase.test_user)

    def test_anonymous_user_has_no_actor(self):
        self.assertIsNone(self.anonymous.actor)
        self.assertFalse(self.anonymous.is_authenticated)
        self.assertIsNone(AccessContext.for_user(None).actor)

    def test_user_is_admin(self):
        self.assertEqual(user_is_admin(self.anonymous), DENIED)
        self.assertEqual(user_is_admin(self.user_context), DENIED)
        self.assertEqual(user_is_admin(self.admin_context), UNRESTRICTED)

    def test_user_owns_item(self):
        self.assertEqual(user_owns_item(self.anonymous), DENIED)
        self.assertEqual(user_owns_item(self.user_context), RestrictedTo(Q(pk=GatesTestCase.test_user.pk)))

    def test_admin_or_owner_is_unconditional_for_admins(self):
        # Admins get no filter at all, not a filter on their own row
        self.assertEqual(user_is_admin_or_owner(self.admin_context), UNRESTRICTED)
        self.assertEqual(user_is_admin_or_owner(self.user_context),
                         RestrictedTo(Q(pk=GatesTestCase.test_user.pk)))
        self.assertEqual(user_is_admin_or_owner(self.anonymous), DENIED)

    def test_allow_all(self):
        self.assertEqual(allow_all(self.anonymous), UNRESTRICTED)

    def test_as_access_result(self):
        self.assertEqual(as_access_result(True), UNRESTRICTED)
        self.assertEqual(as_access_result(False), DENIED)
        self.assertEqual(as_access_result(DENIED), DENIED)
        with self.assertRaises(TypeError):
            as_access_result({"id": 1})

    def test_evaluate_accepts_plain_booleans(self):
        self.assertEqual(evaluate(True, self.anonymous), UNRESTRICTED)
        self.assertEqual(evaluate(False, self.admin_context), DENIED)

    def test_system_context_skips_gates(self):
        system = AccessContext.system()
        self.assertEqual(evaluate(user_is_admin, system), UNRESTRICTED)
        self.assertEqual(evaluate(False, system), UNRESTRICTED)

    def test_results_filter_querysets(self):
        users = User.objects.all()
        self.assertEqual(UNRESTRICTED.apply(users).count(), 2)
        self.assertEqual(DENIED.apply(users).count(), 0)
        self.assertEqual(list(user_owns_item(self.user_context).apply(users)), [GatesTestCase.test_user])


class RegistryTestCase(TestCase):

    def test_registry_is_built_at_startup(self):
        registry = apps.get_app_config("access").registry
        self.assertEqual(sorted(config.key for config in registry),
                         ["Answer", "Feedback", "Question", "Quiz", "User"])
        self.assertEqual(registry.for_model(Quiz).key, "Quiz")
        self.assertIn("User", registry)

    def test_duplicate_list_fails(self):
        registry = ListRegistry()
        registry.register(ListConfig("Answer", Answer))
        with self.assertRaises(ImproperlyConfigured):
            registry.register(ListConfig("Answer", Answer))

    def test_unknown_list_fails(self):
        registry = ListRegistry()
        with self.assertRaises(ImproperlyConfigured):
            registry.get("Nope")
        with self.assertRaises(ImproperlyConfigured):
            registry.for_model(Answer)

    def test_unknown_operation_fails(self):
        with self.assertRaises(ImproperlyConfigured):
            ListConfig("Answer", Answer, access={"publish": True})

    def test_missing_operations_default_to_unrestricted(self):
        config = ListConfig("Answer", Answer, access={"delete": user_is_admin})
        self.assertEqual(config.gate("read"), UNRESTRICTED)
        self.assertIs(config.gate("delete"), user_is_admin)

    def test_writable_fields(self):
        registry = apps.get_app_config("access").registry
        self.assertEqual(sorted(registry.get("User").writable_fields), ["email", "is_admin", "name", "password"])
        self.assertEqual(sorted(registry.get("Question").writable_fields),
                         ["answers", "correct", "description", "image", "name"])


class ListSessionTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(email="admin@quiz.test", name="Admin", password="adminpass123",
                                             is_admin=True)
        cls.test_user = User.objects.create_user(email="testuser@quiz.test", name="Test User",
                                                 password="password123")
        cls.random_user = User.objects.create_user(email="random@quiz.test", name="Random",
                                                   password="random12345")
        cls.answer = Answer.objects.create(name="Paris")
        cls.question = Question.objects.create(description="Capital of France?")
        cls.feedback = Feedback.objects.create(description="Good", category="good")

    def setUp(self):
        self.registry = apps.get_app_config("access").registry
        self.admin_lists = ListSession(self.registry, AccessContext.for_user(ListSessionTestCase.admin))
        self.user_lists = ListSession(self.registry, AccessContext.for_user(ListSessionTestCase.test_user))
        self.anonymous_lists = ListSession(self.registry, AccessContext.for_user(AnonymousUser()))

    def test_restrict_narrows_users_to_owner(self):
        self.assertEqual(list(self.user_lists.restrict("User", User.objects.all())),
                         [ListSessionTestCase.test_user])
        self.assertEqual(self.admin_lists.restrict("User", User.objects.all()).count(), 3)
        self.assertEqual(self.anonymous_lists.restrict("User", User.objects.all()).count(), 0)

    def test_permits(self):
        self.assertTrue(self.user_lists.permits("User", "update", ListSessionTestCase.test_user))
        self.assertFalse(self.user_lists.permits("User", "update", ListSessionTestCase.random_user))
        self.assertFalse(self.user_lists.permits("User", "delete"))
        self.assertTrue(self.anonymous_lists.permits("Quiz", "read"))
        self.assertFalse(self.anonymous_lists.permits("Quiz", "create"))

    def test_permits_field(self):
        self.assertFalse(self.user_lists.permits_field("User", "update", "is_admin"))
        self.assertTrue(self.user_lists.permits_field("User", "update", "name"))
        self.assertTrue(self.admin_lists.permits_field("User", "update", "is_admin"))

    def test_read_denied_raises(self):
        with self.assertRaises(AccessDeniedError):
            self.anonymous_lists.read("User")

    def test_get_outside_restriction_raises(self):
        with self.assertRaises(AccessDeniedError):
            self.user_lists.get("User", ListSessionTestCase.random_user.pk)
        self.assertEqual(self.user_lists.get("User", ListSessionTestCase.test_user.pk),
                         ListSessionTestCase.test_user)

    def test_create_rejects_unknown_fields(self):
        with self.assertRaises(ValidationError) as cm:
            self.admin_lists.create("Answer", {"name": "Rome", "colour": "red"})
        self.assertIn("colour", cm.exception.message_dict)
        self.assertFalse(Answer.objects.filter(name="Rome").exists())

    def test_create_rejects_read_only_fields(self):
        with self.assertRaises(ValidationError) as cm:
            self.admin_lists.create("User", {"name": "X", "email": "x@quiz.test", "password": "password123",
                                             "last_login": None})
        self.assertIn("last_login", cm.exception.message_dict)

    def test_secret_field_errors_join_field_errors(self):
        with self.assertRaises(ValidationError) as cm:
            self.admin_lists.create("User", {"email": "short@quiz.test", "password": "abc"})
        self.assertIn("password", cm.exception.message_dict)
        self.assertIn("name", cm.exception.message_dict)
        self.assertFalse(User.objects.filter(email="short@quiz.test").exists())

    def test_filter_result_denies_create(self):
        registry = ListRegistry()
        registry.register(ListConfig("Answer", Answer, access={"create": user_is_admin_or_owner}))
        lists = ListSession(registry, AccessContext.for_user(ListSessionTestCase.test_user))
        with self.assertRaises(AccessDeniedError):
            lists.create("Answer", {"name": "Rome"})

    def test_field_gate_rejects_whole_update(self):
        with self.assertRaises(AccessDeniedError):
            self.user_lists.update("User", ListSessionTestCase.test_user.pk, {"name": "Renamed", "is_admin": True})
        user = User.objects.get(pk=ListSessionTestCase.test_user.pk)
        self.assertEqual(user.name, "Test User")
        self.assertFalse(user.is_admin)

    def test_clean_hook_runs_after_field_validation(self):
        calls = []
        registry = ListRegistry()
        registry.register(ListConfig("Answer", Answer, clean=lambda instance, relations: calls.append(instance)))
        lists = ListSession(registry, AccessContext.for_user(ListSessionTestCase.admin))

        with self.assertRaises(ValidationError):
            lists.create("Answer", {"description": "no name"})
        self.assertEqual(calls, [])

        lists.create("Answer", {"name": "Rome"})
        self.assertEqual(len(calls), 1)

    def test_invalid_relation_leaves_nothing_behind(self):
        with self.assertRaises(ValidationError) as cm:
            self.admin_lists.create("Quiz", {
                "name": "Broken",
                "category": "fun",
                "questions": [ListSessionTestCase.question.pk],
                "feedback": ["not-a-uuid"],
            })
        self.assertIn("feedback", cm.exception.message_dict)
        self.assertFalse(Quiz.objects.filter(name="Broken").exists())

    def test_create_links_relations(self):
        quiz = self.admin_lists.create("Quiz", {
            "name": "Linked",
            "category": "fun",
            "questions": [str(ListSessionTestCase.question.pk), str(ListSessionTestCase.question.pk)],
            "feedback": [ListSessionTestCase.feedback.pk],
        })
        self.assertEqual(list(quiz.questions.all()), [ListSessionTestCase.question])
        self.assertEqual(list(quiz.feedback.all()), [ListSessionTestCase.feedback])

    def test_none_clears_optional_text(self):
        answer = self.admin_lists.update("Answer", ListSessionTestCase.answer.pk, {"description": None})
        self.assertEqual(answer.description, "")

    def test_delete_keeps_identifier(self):
        pk = ListSessionTestCase.answer.pk
        deleted = self.admin_lists.delete("Answer", pk)
        self.assertEqual(deleted.pk, pk)
        self.assertFalse(Answer.objects.filter(pk=pk).exists())

    def test_count(self):
        self.assertEqual(self.user_lists.count("User"), 1)
        self.assertEqual(self.admin_lists.count("User", search="ran"), 1)

    def test_system_session_bypasses_gates(self):
        lists = ListSession(self.registry, AccessContext.system())
        user = lists.create("User", {"name": "Seeded", "email": "seed@quiz.test", "password": "seedpass123",
                                     "is_admin": True})
        self.assertTrue(user.is_admin)


class ListAccessMiddlewareTestCase(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(email="testuser@quiz.test", name="Test User",
                                                 password="password123")

    def test_get_list_session_without_middleware(self):
        request = RequestFactory().get("/")
        request.user = AnonymousUser()
        lists = get_list_session(request)
        self.assertIsNone(lists.context.actor)
        self.assertIs(get_list_session(request), lists)

    def test_middleware_attaches_session_for_user(self):
        self.client.force_login(ListAccessMiddlewareTestCase.test_user)
        response = self.client.get("/")
        request = response.wsgi_request
        self.assertEqual(request.lists.context.actor, ListAccessMiddlewareTestCase.test_user)
