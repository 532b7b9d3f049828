"""
Integration tests — admin accounts and user settings.

Admins are listed and created only by other admins; the very first one
comes from the ``create_admin`` management command, which is safe to
re-run and promotes an existing account instead of duplicating it.
Every user can read and change their own display/notification settings.
"""

from __future__ import annotations

import os
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import CommandError, call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.management.commands.create_admin import PASSWORD_ENV_VAR
from accounts.models import UserRole

User = get_user_model()

_PASSWORD = "Str0ng!Pass99"


def _client(user) -> APIClient:
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
    return client


class AdminAccountApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="root_admin", email="root_admin@example.com", password=_PASSWORD,
            first_name="Amina", last_name="Yusuf", role=UserRole.ADMIN,
        )
        cls.shaykh = User.objects.create_user(
            username="adm_shaykh", email="adm_shaykh@example.com", password=_PASSWORD,
            role=UserRole.SHAYKH,
        )
        cls.user = User.objects.create_user(
            username="adm_user", email="adm_user@example.com", password=_PASSWORD,
        )

    def setUp(self):
        self.url = reverse("accounts:admin-account-list")

    def _payload(self, email: str) -> dict:
        return {
            "email": email,
            "password": _PASSWORD,
            "first_name": "Bilal",
            "last_name": "Haddad",
        }

    def test_list_contains_admins_only(self):
        resp = _client(self.admin).get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        emails = {row["email"] for row in resp.data}
        self.assertEqual(emails, {"root_admin@example.com"})
        self.assertEqual(resp.data[0]["role"], UserRole.ADMIN)

    def test_list_is_admin_only(self):
        for user in (self.shaykh, self.user):
            with self.subTest(role=user.role):
                resp = _client(user).get(self.url)
                self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_requires_authentication(self):
        resp = APIClient().get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_creates_admin(self):
        resp = _client(self.admin).post(self.url, self._payload("New.Admin@Example.com"), format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertEqual(resp.data["role"], UserRole.ADMIN)
        created = User.objects.get(email="new.admin@example.com")
        self.assertEqual(created.role, UserRole.ADMIN)
        self.assertTrue(created.check_password(_PASSWORD))

    def test_duplicate_email_is_conflict(self):
        resp = _client(self.admin).post(self.url, self._payload("adm_user@example.com"), format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, UserRole.USER)

    def test_non_admin_cannot_create_admin(self):
        resp = _client(self.shaykh).post(self.url, self._payload("sneaky@example.com"), format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(User.objects.filter(email="sneaky@example.com").exists())

    def test_missing_fields_are_rejected(self):
        resp = _client(self.admin).post(self.url, {"email": "half@example.com"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", resp.data)


class UserSettingsTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(
            username="prefs_user", email="prefs_user@example.com", password=_PASSWORD,
        )

    def setUp(self):
        self.url = reverse("accounts:me-settings")
        self.client = _client(self.user)

    def test_defaults(self):
        resp = self.client.get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, {
            "language": "en",
            "email_notifications": True,
            "push_notifications": True,
            "dark_mode": False,
        })

    def test_partial_update_persists(self):
        resp = self.client.patch(self.url, {"dark_mode": True, "language": "ar"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertTrue(resp.data["dark_mode"])
        self.user.refresh_from_db()
        self.assertTrue(self.user.dark_mode)
        self.assertEqual(self.user.language, "ar")
        self.assertTrue(self.user.email_notifications)

    def test_invalid_value_is_rejected(self):
        resp = self.client.patch(self.url, {"email_notifications": "sometimes"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email_notifications", resp.data)

    def test_requires_authentication(self):
        resp = APIClient().get(self.url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)


class CreateAdminCommandTests(TestCase):
    def _run(self, **options) -> str:
        out = StringIO()
        call_command("create_admin", stdout=out, **options)
        return out.getvalue()

    def test_creates_admin(self):
        output = self._run(
            email="Boot@Example.com", password=_PASSWORD, first_name="Boot", last_name="Strap",
        )

        user = User.objects.get(email="boot@example.com")
        self.assertEqual(user.role, UserRole.ADMIN)
        self.assertTrue(user.check_password(_PASSWORD))
        self.assertEqual(user.first_name, "Boot")
        self.assertIn("Created admin boot@example.com", output)

    def test_rerun_is_idempotent(self):
        self._run(email="boot@example.com", password=_PASSWORD)
        output = self._run(email="boot@example.com", password="another-pass")

        self.assertEqual(User.objects.filter(email="boot@example.com").count(), 1)
        self.assertTrue(User.objects.get(email="boot@example.com").check_password(_PASSWORD))
        self.assertIn("already an admin", output)

    def test_promotes_existing_account(self):
        existing = User.objects.create_user(
            username="promote_me", email="promote_me@example.com", password=_PASSWORD,
        )

        output = self._run(email="promote_me@example.com")

        existing.refresh_from_db()
        self.assertEqual(existing.role, UserRole.ADMIN)
        self.assertIn("Promoted promote_me@example.com", output)

    def test_new_account_needs_password(self):
        with mock.patch.dict(os.environ):
            os.environ.pop(PASSWORD_ENV_VAR, None)
            with self.assertRaisesMessage(CommandError, "password is required"):
                self._run(email="nopass@example.com")
        self.assertFalse(User.objects.filter(email="nopass@example.com").exists())

    def test_short_password_is_rejected(self):
        with self.assertRaisesMessage(CommandError, "password"):
            self._run(email="weak@example.com", password="abc")
        self.assertFalse(User.objects.filter(email="weak@example.com").exists())
