"""
Integration tests — account registration, login and password reset.

Endpoints under test:
    POST /api/accounts/auth/register/          (accounts:register)
    POST /api/accounts/auth/login/             (accounts:login)
    GET  /api/accounts/me/                     (accounts:me)
    POST /api/accounts/auth/forgot-password/   (accounts:forgot-password)
    POST /api/accounts/auth/reset-password/{token}/  (accounts:reset-password)
"""

from __future__ import annotations

import re
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import UserRole

User = get_user_model()

_PASSWORD = "Str0ng!Pass99"


class RegistrationTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse("accounts:register")

    def _payload(self, **overrides) -> dict:
        payload = {
            "email": "Aisha@Example.com",
            "password": _PASSWORD,
            "first_name": "Aisha",
            "last_name": "Karim",
        }
        payload.update(overrides)
        return payload

    def test_register_creates_user_role_and_returns_tokens(self):
        resp = self.client.post(self.url, self._payload(), format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertIn("access", resp.data)
        self.assertIn("refresh", resp.data)
        self.assertEqual(resp.data["user"]["email"], "aisha@example.com")
        self.assertEqual(resp.data["user"]["role"], UserRole.USER)

        user = User.objects.get(email="aisha@example.com")
        self.assertEqual(user.username, "aisha")
        self.assertTrue(user.check_password(_PASSWORD))

    def test_role_claim_is_embedded_in_access_token(self):
        resp = self.client.post(self.url, self._payload(), format="json")
        token = AccessToken(resp.data["access"])
        self.assertEqual(token["role"], UserRole.USER)

    def test_duplicate_email_conflicts(self):
        self.client.post(self.url, self._payload(), format="json")
        resp = self.client.post(self.url, self._payload(email="aisha@example.com"), format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertIn("email", resp.data["detail"])
        self.assertEqual(User.objects.filter(email="aisha@example.com").count(), 1)

    def test_short_password_rejected(self):
        resp = self.client.post(self.url, self._payload(password="abc"), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", resp.data)

    def test_missing_names_rejected(self):
        payload = self._payload()
        del payload["first_name"]
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)


class LoginTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(
            username="login_user",
            email="login_user@example.com",
            password=_PASSWORD,
            first_name="Login",
            last_name="Tester",
        )

    def setUp(self):
        self.client = APIClient()
        self.url = reverse("accounts:login")

    def test_login_with_username(self):
        resp = self.client.post(self.url, {"identifier": "login_user", "password": _PASSWORD}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["user"]["id"], self.user.pk)

    def test_login_with_email_case_insensitive(self):
        resp = self.client.post(
            self.url, {"identifier": "LOGIN_USER@example.com", "password": _PASSWORD}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)

    def test_email_field_is_an_alias(self):
        resp = self.client.post(self.url, {"email": "login_user@example.com", "password": _PASSWORD}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)

    def test_wrong_password_rejected(self):
        resp = self.client.post(self.url, {"identifier": "login_user", "password": "wrong"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertNotIn("access", resp.data)

    def test_inactive_user_rejected(self):
        User.objects.filter(pk=self.user.pk).update(is_active=False)
        resp = self.client.post(self.url, {"identifier": "login_user", "password": _PASSWORD}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_me_requires_authentication(self):
        resp = self.client.get(reverse("accounts:me"))
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_and_updates_profile(self):
        login = self.client.post(self.url, {"identifier": "login_user", "password": _PASSWORD}, format="json")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['access']}")

        resp = self.client.get(reverse("accounts:me"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["username"], "login_user")

        resp = self.client.patch(reverse("accounts:me"), {"phone_number": "0400111222"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.user.refresh_from_db()
        self.assertEqual(self.user.phone_number, "0400111222")
        self.assertEqual(self.user.role, UserRole.USER)


class PasswordResetTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(
            username="forgetful",
            email="forgetful@example.com",
            password=_PASSWORD,
        )

    def setUp(self):
        self.client = APIClient()

    def _request_reset(self, email: str):
        with self.captureOnCommitCallbacks(execute=True):
            return self.client.post(reverse("accounts:forgot-password"), {"email": email}, format="json")

    def _token_from_mail(self) -> str:
        match = re.search(r"/reset-password/([0-9a-f]+)", mail.outbox[-1].body)
        self.assertIsNotNone(match)
        return match.group(1)

    def test_unknown_email_gets_same_message_and_no_mail(self):
        known = self._request_reset("forgetful@example.com")
        mail.outbox.clear()
        unknown = self._request_reset("nobody@example.com")
        self.assertEqual(unknown.status_code, status.HTTP_200_OK)
        self.assertEqual(unknown.data["detail"], known.data["detail"])
        self.assertEqual(len(mail.outbox), 0)

    def test_reset_flow_changes_password_once(self):
        self._request_reset("forgetful@example.com")
        self.assertEqual(mail.outbox[-1].to, ["forgetful@example.com"])
        token = self._token_from_mail()

        url = reverse("accounts:reset-password", args=[token])
        resp = self.client.post(url, {"password": "N3w!Secret"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertIn("access", resp.data)

        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("N3w!Secret"))

        resp = self.client.post(url, {"password": "Other!Secret1"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_expired_reset_token_rejected(self):
        self._request_reset("forgetful@example.com")
        token = self._token_from_mail()
        User.objects.filter(pk=self.user.pk).update(
            reset_password_expires_at=timezone.now() - timedelta(minutes=1),
        )
        resp = self.client.post(
            reverse("accounts:reset-password", args=[token]), {"password": "N3w!Secret"}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password(_PASSWORD))

    def test_change_password_requires_current_password(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(self.user)}")
        url = reverse("accounts:me-password")
        resp = self.client.post(url, {"current_password": "nope", "new_password": "N3w!Secret"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.post(
            url, {"current_password": _PASSWORD, "new_password": "N3w!Secret"}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("N3w!Secret"))
