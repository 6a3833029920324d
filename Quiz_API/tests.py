from django.conf import settings
from django.contrib.auth import get_user_model
from django.http import HttpResponse
from django.test import TestCase, RequestFactory, override_settings
from django.urls import reverse

from accounts.tests import graphql, AUTHENTICATE_MUTATION
from Quiz_API.middleware import TrustedProxyMiddleware

User = get_user_model()


def client_address(request):
    return HttpResponse(request.META["REMOTE_ADDR"])


class TrustedProxyMiddlewareTest(TestCase):

    def setUp(self):
        self.factory = RequestFactory()

    def remote_addr(self, forwarded_for=None):
        headers = {"HTTP_X_FORWARDED_FOR": forwarded_for} if forwarded_for is not None else {}
        request = self.factory.get("/", REMOTE_ADDR="10.0.0.1", **headers)
        return TrustedProxyMiddleware(client_address)(request).content.decode()

    def test_single_hop_takes_last_address(self):
        self.assertEqual(self.remote_addr("1.2.3.4, 5.6.7.8"), "5.6.7.8")

    @override_settings(TRUSTED_PROXY_HOPS=2)
    def test_two_hops(self):
        self.assertEqual(self.remote_addr("9.9.9.9, 1.2.3.4, 5.6.7.8"), "1.2.3.4")

    @override_settings(TRUSTED_PROXY_HOPS=3)
    def test_fewer_addresses_than_hops(self):
        self.assertEqual(self.remote_addr("1.2.3.4, 5.6.7.8"), "1.2.3.4")

    @override_settings(TRUSTED_PROXY_HOPS=0)
    def test_no_trusted_proxy_ignores_header(self):
        self.assertEqual(self.remote_addr("1.2.3.4"), "10.0.0.1")

    def test_missing_header(self):
        self.assertEqual(self.remote_addr(), "10.0.0.1")

    def test_forwarded_proto_marks_request_secure(self):
        request = self.factory.get("/", HTTP_X_FORWARDED_PROTO="https")
        self.assertTrue(request.is_secure())
        self.assertFalse(self.factory.get("/").is_secure())


class HomePageViewTest(TestCase):

    def test_home_redirects_to_admin(self):
        response = self.client.get(reverse("home"))
        self.assertRedirects(response, reverse("admin:index"), fetch_redirect_response=False)

    def test_admin_requires_login(self):
        response = self.client.get(reverse("admin:index"))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("admin:login"), response.url)

    def test_api_is_mounted_under_admin(self):
        self.assertEqual(reverse("graphql"), "/admin/api")


class SessionCookieTest(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.test_user = User.objects.create_user(email="testuser@quiz.test", name="Test User",
                                                 password="password123")

    def test_session_settings(self):
        self.assertFalse(settings.SESSION_COOKIE_SECURE)
        self.assertEqual(settings.SESSION_COOKIE_AGE, 30 * 24 * 60 * 60)
        self.assertEqual(settings.SESSION_COOKIE_SAMESITE, "Strict")

    def test_login_sets_session_cookie(self):
        graphql(self.client, AUTHENTICATE_MUTATION, {"email": "testuser@quiz.test", "password": "password123"})
        cookie = self.client.cookies[settings.SESSION_COOKIE_NAME]
        self.assertEqual(cookie["samesite"], "Strict")
        self.assertEqual(int(cookie["max-age"]), 2592000)
        self.assertFalse(cookie["secure"])
